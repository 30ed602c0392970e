"""
Settings — the validated contents of ``trustpin.yml``.

Example::

    checksums_db: checksums.json
    gpg_keys_dir: gpg-keys
    require_verified: false
    report_log: .state/verifications.ndjson
    retry:
      max_attempts: 3
      initial_delay: 2
      max_delay: 30
    tracked:
      - tool: python
        version: "3.12.7"
      - tool: k9s
        version: "0.50.16"
        platforms: [amd64, arm64]
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from trustpin.core.models.verification import EnforcementLevel


class RetrySettings(BaseModel):
    max_attempts: int = Field(default=3, ge=1)
    initial_delay: float = Field(default=2.0, ge=0)
    max_delay: float = Field(default=30.0, ge=0)
    jitter: float = Field(default=0.3, ge=0)


class HttpSettings(BaseModel):
    timeout: float = Field(default=30.0, gt=0)
    user_agent: str = "trustpin/0.1"
    cache_ttl: float = Field(default=3600.0, ge=0)


class TrackedTool(BaseModel):
    """A tool/version currently in use, kept fresh by maintenance runs."""

    tool: str
    version: str
    platforms: list[str] = Field(default_factory=lambda: ["amd64"])


class Settings(BaseModel):
    checksums_db: str = "checksums.json"
    gpg_keys_dir: str = "gpg-keys"
    require_verified: bool = False
    report_log: str | None = None
    github_token: str | None = None
    retry: RetrySettings = Field(default_factory=RetrySettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    tracked: list[TrackedTool] = Field(default_factory=list)

    # Directory relative paths are resolved against (the config file's dir)
    base_dir: str = Field(default=".", exclude=True)

    def resolve_path(self, value: str) -> Path:
        path = Path(value).expanduser()
        return path if path.is_absolute() else Path(self.base_dir) / path

    @property
    def checksums_path(self) -> Path:
        return self.resolve_path(self.checksums_db)

    @property
    def gpg_keys_path(self) -> Path:
        return self.resolve_path(self.gpg_keys_dir)

    @property
    def report_log_path(self) -> Path | None:
        return self.resolve_path(self.report_log) if self.report_log else None

    @property
    def enforcement(self) -> EnforcementLevel:
        if self.require_verified:
            return EnforcementLevel.PINNED_OR_BETTER
        return EnforcementLevel.ANY

"""
Pinned checksum models — records and the database document.

The on-disk document (``checksums.json``)::

    {
      "metadata": {"generated": "2026-01-05T10:00:00+00:00", "schema_version": 1},
      "entries": [
        {"tool": "k9s", "version": "0.50.16", "platform": "amd64",
         "algorithm": "sha256", "digest": "<64 hex>", "tier": 2,
         "captured_at": "...", "source": "https://..."}
      ]
    }

Fields are kept as plain strings so that a malformed digest survives
loading and is reported by validation instead of crashing the reader.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class HashAlgorithm(StrEnum):
    SHA256 = "sha256"
    SHA512 = "sha512"

    @property
    def hex_length(self) -> int:
        return 64 if self is HashAlgorithm.SHA256 else 128


# Architecture aliases seen in upstream filenames and on build hosts
_PLATFORM_ALIASES = {
    "x86_64": "amd64",
    "x64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def normalize_platform(platform: str) -> str:
    """Map an architecture name onto the database's canonical form."""
    key = platform.strip().lower()
    return _PLATFORM_ALIASES.get(key, key)


class ChecksumRecord(BaseModel):
    """A pinned digest for one (tool, version, platform)."""

    tool: str
    version: str
    platform: str
    algorithm: str = HashAlgorithm.SHA256.value
    digest: str
    tier: int = 2
    captured_at: str = Field(default_factory=_now_iso)
    source: str = ""

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.tool, self.version, normalize_platform(self.platform))


class DatabaseMetadata(BaseModel):
    generated: str = ""
    schema_version: int = 1


class PinnedDatabase(BaseModel):
    """Ordered collection of checksum records plus a generation stamp."""

    metadata: DatabaseMetadata = Field(default_factory=DatabaseMetadata)
    entries: list[ChecksumRecord] = Field(default_factory=list)

    def find(self, tool: str, version: str, platform: str) -> ChecksumRecord | None:
        key = (tool, version, normalize_platform(platform))
        for record in self.entries:
            if record.key == key:
                return record
        return None

    def for_release(self, tool: str, version: str) -> list[ChecksumRecord]:
        """All records for a tool+version, across platforms."""
        return [r for r in self.entries if r.tool == tool and r.version == version]

    def upsert(self, record: ChecksumRecord) -> bool:
        """Insert or replace by key. Returns True when an entry was replaced."""
        for i, existing in enumerate(self.entries):
            if existing.key == record.key:
                self.entries[i] = record
                return True
        self.entries.append(record)
        return False

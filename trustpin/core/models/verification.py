"""
Verification models — trust tiers, per-tier attempts, and the outcome
handed back to the calling installer.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import IntEnum, StrEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class TrustTier(IntEnum):
    """Integrity strategies, strongest first."""

    SIGNATURE = 1
    PINNED = 2
    PUBLISHED = 3
    CALCULATED = 4

    @property
    def label(self) -> str:
        return _TIER_LABELS[self]


_TIER_LABELS = {
    TrustTier.SIGNATURE: "publisher signature",
    TrustTier.PINNED: "pinned checksum",
    TrustTier.PUBLISHED: "publisher checksum",
    TrustTier.CALCULATED: "calculated (TOFU)",
}

# The order tiers are tried in. Nothing else decides ordering.
TIER_SEQUENCE: tuple[TrustTier, ...] = (
    TrustTier.SIGNATURE,
    TrustTier.PINNED,
    TrustTier.PUBLISHED,
    TrustTier.CALCULATED,
)


class EnforcementLevel(StrEnum):
    ANY = "any"
    PINNED_OR_BETTER = "pinned-or-better"


class TierStatus(StrEnum):
    PASSED = "passed"
    NOT_APPLICABLE = "not_applicable"
    MISMATCH = "mismatch"
    BLOCKED = "blocked"


class TierAttempt(BaseModel):
    """What happened when one tier was evaluated."""

    tier: TrustTier
    status: TierStatus
    detail: str = ""
    source: str = ""
    algorithm: str | None = None
    expected_digest: str | None = None
    computed_digest: str | None = None


def tofu_warning(tool: str, version: str, digest: str) -> str:
    return (
        f"SECURITY WARNING: {tool} {version} was accepted on trust-on-first-use. "
        f"No signature, pinned checksum or publisher checksum was available; "
        f"the calculated sha256 {digest} has not been corroborated by any external source."
    )


class VerificationOutcome(BaseModel):
    """Result of one verified download."""

    tool: str
    version: str
    platform: str
    artifact_url: str
    tier: TrustTier
    digest_source: str
    algorithm: str
    digest: str
    passed: bool = True
    digest_match: bool = True
    warning: str | None = None
    attempts: list[TierAttempt] = Field(default_factory=list)
    path: str | None = None
    size_bytes: int = 0
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())

    @model_validator(mode="after")
    def _tofu_always_warns(self) -> VerificationOutcome:
        if self.tier == TrustTier.CALCULATED:
            # Nothing external was compared against at this tier
            self.digest_match = False
            if not self.warning:
                self.warning = tofu_warning(self.tool, self.version, self.digest)
        return self

    @property
    def degraded(self) -> bool:
        return self.tier == TrustTier.CALCULATED

    def to_report(self) -> dict[str, Any]:
        """Machine-readable verification report."""
        return {
            "tool": self.tool,
            "version": self.version,
            "platform": self.platform,
            "tier": int(self.tier),
            "tier_name": self.tier.label,
            "digest_source": self.digest_source,
            "algorithm": self.algorithm,
            "digest": self.digest,
            "passed": self.passed,
            "digest_match": self.digest_match,
            "warning": self.warning,
            "size_bytes": self.size_bytes,
            "path": self.path,
            "timestamp": self.timestamp,
            "attempts": [a.model_dump(mode="json") for a in self.attempts],
        }

"""
Version models — what a caller asks for, what a feed offers, what we pick.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class SpecKind(StrEnum):
    EXACT = "exact"
    PARTIAL = "partial"
    SYMBOLIC = "symbolic"


class Channel(StrEnum):
    """Release channel tag attached to a feed entry."""

    STABLE = "stable"
    LTS = "lts"
    PRERELEASE = "prerelease"


class ResolutionMethod(StrEnum):
    EXACT_MATCH = "exact-match"
    PARTIAL_TO_LATEST_PATCH = "partial-to-latest-patch"
    SYMBOLIC_TO_CONCRETE = "symbolic-to-concrete"


class VersionSpec(BaseModel):
    """A requested version for one tool. Immutable."""

    model_config = ConfigDict(frozen=True)

    tool: str
    raw: str
    kind: SpecKind


class ReleaseCandidate(BaseModel):
    """One release as reported by an upstream feed."""

    version: str
    channel: Channel = Channel.STABLE
    published_at: str | None = None

    @property
    def is_prerelease(self) -> bool:
        return self.channel == Channel.PRERELEASE


class ResolvedVersion(BaseModel):
    """Outcome of a resolution call."""

    version: str
    spec: VersionSpec
    method: ResolutionMethod
    candidates_considered: int = 0

    def to_dict(self) -> dict:
        return {
            "tool": self.spec.tool,
            "requested": self.spec.raw,
            "spec_kind": str(self.spec.kind),
            "version": self.version,
            "method": str(self.method),
            "candidates_considered": self.candidates_considered,
        }

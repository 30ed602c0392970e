"""
Resolve use case — turn a version spec into a concrete release.
"""

from __future__ import annotations

from dataclasses import dataclass

from trustpin.core.errors import TrustpinError
from trustpin.core.models.version import ResolvedVersion
from trustpin.core.session import Session


@dataclass
class ResolveResult:
    tool: str
    requested: str
    resolved: ResolvedVersion | None = None
    error: TrustpinError | None = None

    @property
    def exit_code(self) -> int:
        return self.error.exit_code if self.error else 0

    def to_dict(self) -> dict:
        if self.error is not None:
            return {"ok": False, "tool": self.tool, "requested": self.requested, **self.error.to_dict()}
        assert self.resolved is not None
        return {"ok": True, **self.resolved.to_dict()}


def resolve_version(session: Session, tool: str, spec: str) -> ResolveResult:
    result = ResolveResult(tool=tool, requested=spec)
    try:
        result.resolved = session.resolver.resolve(tool, spec)
    except TrustpinError as e:
        result.error = e
    return result

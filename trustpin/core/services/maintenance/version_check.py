"""
Batch version checker — are the tracked versions still the newest?

For each tracked entry the checker reports the version in use, the
newest release the entry's own scope allows (``latest_patch``), and
the newest stable release overall (``latest``). The scope is the
requested version string for partial and symbolic entries ("22"
stays within 22.x) and the major.minor series for exact pins. Only
``latest_patch`` decides the status; ``latest`` is informational, so
a new major never marks an entry outdated. Exit codes follow the
batch convention:

    0  everything current
    1  something is outdated, or a feed could not be reached
    2  a tracked entry is broken (bad spec, unknown tool)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from trustpin.core.errors import ErrorKind, TrustpinError
from trustpin.core.models.settings import TrackedTool
from trustpin.core.models.version import SpecKind, VersionSpec
from trustpin.core.services.versions.matching import parse_spec, version_key
from trustpin.core.services.versions.resolver import select_release

logger = logging.getLogger(__name__)


class CheckStatus(StrEnum):
    CURRENT = "current"
    OUTDATED = "outdated"
    ERROR = "error"


@dataclass
class ToolCheck:
    tool: str
    requested: str
    current: str | None = None
    latest_patch: str | None = None
    latest: str | None = None
    status: CheckStatus = CheckStatus.ERROR
    error: str | None = None
    error_kind: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "requested": self.requested,
            "current": self.current,
            "latest_patch": self.latest_patch,
            "latest": self.latest,
            "status": str(self.status),
            "error": self.error,
            "error_kind": self.error_kind,
        }


@dataclass
class CheckReport:
    tools: list[ToolCheck] = field(default_factory=list)
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def count(self, status: CheckStatus) -> int:
        return sum(1 for t in self.tools if t.status == status)

    @property
    def exit_code(self) -> int:
        broken = {str(ErrorKind.INVALID_SPEC), str(ErrorKind.UNKNOWN_TOOL)}
        if any(t.error_kind in broken for t in self.tools):
            return 2
        if self.count(CheckStatus.OUTDATED) or self.count(CheckStatus.ERROR):
            return 1
        return 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "tools": [t.to_dict() for t in self.tools],
            "summary": {
                "total": len(self.tools),
                "current": self.count(CheckStatus.CURRENT),
                "outdated": self.count(CheckStatus.OUTDATED),
                "errors": self.count(CheckStatus.ERROR),
            },
            "exit_code": self.exit_code,
        }


def _series(version: str) -> str:
    return ".".join(version.split("-", 1)[0].split(".")[:2])


class VersionChecker:
    """Compares tracked versions against their release feeds."""

    def __init__(self, registry, http):
        self._registry = registry
        self._http = http

    def check_one(self, entry: TrackedTool) -> ToolCheck:
        result = ToolCheck(tool=entry.tool, requested=entry.version)
        try:
            adapter = self._registry.require(entry.tool)
            spec = parse_spec(entry.tool, entry.version, symbols=adapter.supported_symbols)
            candidates = adapter.list_releases(self._http)

            if spec.kind == SpecKind.EXACT:
                result.current = spec.raw
                scope = VersionSpec(tool=entry.tool, raw=_series(spec.raw), kind=SpecKind.PARTIAL)
            else:
                result.current = select_release(spec, candidates).version
                scope = spec

            latest_spec = VersionSpec(tool=entry.tool, raw="latest", kind=SpecKind.SYMBOLIC)
            result.latest = select_release(latest_spec, candidates).version
            try:
                result.latest_patch = select_release(scope, candidates).version
            except TrustpinError:
                # Series has no stable releases in the feed (e.g. pinned to a pre-release)
                result.latest_patch = result.current
        except TrustpinError as e:
            logger.warning("Version check for %s failed: %s", entry.tool, e.message)
            result.error = e.message
            result.error_kind = str(e.kind)
            return result

        # A newer major is reported in ``latest`` but is outside what the entry asks for
        current_key = version_key(result.current)
        patch_key = version_key(result.latest_patch)
        if current_key is not None and patch_key is not None and patch_key > current_key:
            result.status = CheckStatus.OUTDATED
        else:
            result.status = CheckStatus.CURRENT
        return result

    def check(self, tracked: list[TrackedTool]) -> CheckReport:
        report = CheckReport()
        for entry in tracked:
            report.tools.append(self.check_one(entry))
        return report

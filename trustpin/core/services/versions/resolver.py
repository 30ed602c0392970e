"""
Version resolver — turns a requested spec into one concrete release.

    exact     → returned as-is after syntax checks, no feed lookup
    partial   → highest stable release matching the prefix
    symbolic  → stable/latest: highest stable; beta: highest of anything;
                lts: highest release on an LTS channel (where a feed has one)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from trustpin.core.errors import ErrorKind, NetworkError, ResolutionError
from trustpin.core.models.version import (
    Channel,
    ReleaseCandidate,
    ResolutionMethod,
    ResolvedVersion,
    SpecKind,
    VersionSpec,
)
from trustpin.core.services.versions.matching import (
    matches,
    parse_spec,
    version_key,
)

logger = logging.getLogger(__name__)


def _usable(candidates: Sequence[ReleaseCandidate]) -> list[tuple[tuple, ReleaseCandidate]]:
    """Key every candidate, dropping malformed ones with a warning."""
    keyed = []
    for c in candidates:
        key = version_key(c.version)
        if key is None:
            logger.warning("Skipping malformed feed entry: %r", c.version)
            continue
        keyed.append((key, c))
    return keyed


def _is_prerelease(key: tuple, candidate: ReleaseCandidate) -> bool:
    return candidate.is_prerelease or key[1] == 0


def select_release(
    spec: VersionSpec,
    candidates: Sequence[ReleaseCandidate],
) -> ResolvedVersion:
    """Pick the release a partial or symbolic spec refers to.

    Raises:
        ResolutionError: kind ``no_match`` when nothing qualifies.
    """
    keyed = _usable(candidates)

    if spec.kind == SpecKind.PARTIAL:
        pool = [
            (k, c) for k, c in keyed
            if matches(spec.raw, c.version) and not _is_prerelease(k, c)
        ]
        method = ResolutionMethod.PARTIAL_TO_LATEST_PATCH
    elif spec.kind == SpecKind.SYMBOLIC:
        if spec.raw == "beta":
            pool = keyed
        elif spec.raw == "lts":
            pool = [(k, c) for k, c in keyed if c.channel == Channel.LTS]
        else:
            pool = [(k, c) for k, c in keyed if not _is_prerelease(k, c)]
        method = ResolutionMethod.SYMBOLIC_TO_CONCRETE
    else:
        return ResolvedVersion(
            version=spec.raw, spec=spec, method=ResolutionMethod.EXACT_MATCH,
        )

    if not pool:
        raise ResolutionError(
            f"No {spec.tool} release matches '{spec.raw}' "
            f"({len(keyed)} releases known)",
            kind=ErrorKind.NO_MATCH,
            tool=spec.tool,
            version=spec.raw,
        )

    _, best = max(pool, key=lambda kc: kc[0])
    logger.info("Resolved %s %s → %s (%s)", spec.tool, spec.raw, best.version, method)
    return ResolvedVersion(
        version=best.version,
        spec=spec,
        method=method,
        candidates_considered=len(keyed),
    )


class VersionResolver:
    """Resolves specs against the registered tools' release feeds."""

    def __init__(self, registry, http):
        self._registry = registry
        self._http = http

    def resolve(self, tool: str, raw: str) -> ResolvedVersion:
        """Resolve ``raw`` for ``tool``.

        Raises:
            ResolutionError: invalid_spec, unknown_tool, network, no_match.
        """
        adapter = self._registry.require(tool)
        spec = parse_spec(tool, raw, symbols=adapter.supported_symbols)

        if spec.kind == SpecKind.EXACT:
            logger.debug("Exact spec %s %s, skipping feed", tool, raw)
            return select_release(spec, [])

        try:
            candidates = adapter.list_releases(self._http)
        except NetworkError as e:
            raise ResolutionError(
                f"Release feed for {tool} unavailable: {e}",
                kind=ErrorKind.NETWORK,
                tool=tool,
                version=raw,
            ) from e

        logger.debug("Feed for %s returned %d candidates", tool, len(candidates))
        return select_release(spec, candidates)

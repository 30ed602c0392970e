"""
Version matching — spec parsing, prefix matching, precedence ordering.

Pure functions, no I/O.

Matching rule: a partial spec ``P`` matches a candidate ``C`` iff
``C == P`` or ``C`` starts with ``P + "."``. The dot is a mandatory
separator, so "21" never matches "210.0.0".
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from trustpin.core.errors import ErrorKind, ResolutionError
from trustpin.core.models.version import SpecKind, VersionSpec

logger = logging.getLogger(__name__)

# Strings a broken upstream JSON document tends to leak into a version slot
SENTINEL_VALUES = frozenset({"null", "undefined", "error"})

DEFAULT_SYMBOLS = ("stable", "latest", "beta")

_ALLOWED = re.compile(r"^[0-9A-Za-z.\-]+$")
_PARTIAL = re.compile(r"^\d+(\.\d+)?$")
_EXACT = re.compile(r"^\d+(\.\d+){2,}(-[0-9A-Za-z][0-9A-Za-z.\-]*)?$")
_CANDIDATE = re.compile(r"^(\d+(?:\.\d+)*)(?:-([0-9A-Za-z][0-9A-Za-z.\-]*))?$")


def syntax_error(raw: str) -> str | None:
    """Why ``raw`` cannot be a version string at all, or None if it can."""
    if not raw:
        return "empty version"
    if not _ALLOWED.match(raw):
        return f"'{raw}' contains characters outside [0-9A-Za-z.-]"
    if raw.lower() in SENTINEL_VALUES:
        return f"'{raw}' is a sentinel value, not a version"
    return None


def parse_spec(
    tool: str,
    raw: str,
    symbols: Iterable[str] = DEFAULT_SYMBOLS,
) -> VersionSpec:
    """Classify a requested version string.

    Raises:
        ResolutionError: kind ``invalid_spec``, before any I/O happens.
    """
    problem = syntax_error(raw)
    if problem is None:
        if raw.lower() in symbols:
            return VersionSpec(tool=tool, raw=raw.lower(), kind=SpecKind.SYMBOLIC)
        if _PARTIAL.match(raw):
            return VersionSpec(tool=tool, raw=raw, kind=SpecKind.PARTIAL)
        if _EXACT.match(raw):
            return VersionSpec(tool=tool, raw=raw, kind=SpecKind.EXACT)
        if not any(c.isdigit() for c in raw):
            problem = f"'{raw}' is not a supported channel for {tool} ({', '.join(symbols)})"
        else:
            problem = f"'{raw}' is not X, X.Y, X.Y.Z or a channel name"

    raise ResolutionError(
        f"Invalid version spec for {tool}: {problem}",
        kind=ErrorKind.INVALID_SPEC,
        tool=tool,
        version=raw,
    )


def is_exact_version(version: str) -> bool:
    """Whether ``version`` names one concrete release."""
    return syntax_error(version) is None and bool(_EXACT.match(version))


def matches(prefix: str, candidate: str) -> bool:
    return candidate == prefix or candidate.startswith(prefix + ".")


def version_key(version: str) -> tuple | None:
    """Sort key with numeric segment comparison, or None if malformed.

    A pre-release sorts below the release it precedes:
    ``1.2.0-rc1 < 1.2.0``.
    """
    m = _CANDIDATE.match(version)
    if not m:
        return None
    numbers = tuple(int(part) for part in m.group(1).split("."))
    suffix = m.group(2)
    if suffix is None:
        return (numbers, 1, "")
    return (numbers, 0, suffix)


def sort_versions(versions: Iterable[str]) -> list[str]:
    """Ascending precedence order. Malformed strings are dropped with a warning."""
    keyed = []
    for v in versions:
        key = version_key(v)
        if key is None:
            logger.warning("Skipping malformed version string: %r", v)
            continue
        keyed.append((key, v))
    keyed.sort(key=lambda kv: kv[0])
    return [v for _, v in keyed]

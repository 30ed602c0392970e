"""
Release feeds — upstream metadata sources turned into ReleaseCandidates.

Each ``parse_*`` function is pure (document in, candidates out) so the
formats can be tested without a network; each ``fetch_*`` wraps it
with the session's HTTP client.

Entries that cannot be read as a version are passed through unchanged
and left for the resolver to skip; a document of the wrong shape
altogether raises ``NetworkError`` because the feed is unusable.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from trustpin.core.errors import NetworkError
from trustpin.core.models.version import Channel, ReleaseCandidate

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
NODE_INDEX_URL = "https://nodejs.org/dist/index.json"
GO_RELEASES_URL = "https://go.dev/dl/?mode=json&include=all"
PYTHON_FTP_URL = "https://www.python.org/ftp/python/"
ENDOFLIFE_URL = "https://endoflife.date/api/{product}.json"
ADOPTIUM_RELEASES_URL = (
    "https://api.adoptium.net/v3/info/release_versions"
    "?release_type=ga&page_size=100&sort_order=DESC&vendor=eclipse"
)


def _require(condition: bool, source: str) -> None:
    if not condition:
        raise NetworkError(f"Unexpected document format from {source}", url=source, retryable=False)


# ── GitHub releases ─────────────────────────────────────────────


def parse_github_releases(doc: Any, tag_prefix: str = "v") -> list[ReleaseCandidate]:
    """``GET /repos/{owner}/{repo}/releases`` → candidates.

    Drafts are ignored; ``prerelease: true`` maps to the pre-release channel.
    """
    _require(isinstance(doc, list), "GitHub releases API")
    out = []
    for rel in doc:
        if not isinstance(rel, dict) or rel.get("draft"):
            continue
        tag = str(rel.get("tag_name") or "")
        if tag_prefix and tag.startswith(tag_prefix):
            tag = tag[len(tag_prefix):]
        out.append(ReleaseCandidate(
            version=tag,
            channel=Channel.PRERELEASE if rel.get("prerelease") else Channel.STABLE,
            published_at=rel.get("published_at"),
        ))
    return out


def fetch_github_releases(http, repo: str, tag_prefix: str = "v") -> list[ReleaseCandidate]:
    url = f"{GITHUB_API}/repos/{repo}/releases?per_page=100"
    return parse_github_releases(http.get_json(url), tag_prefix)


# ── Node.js ─────────────────────────────────────────────────────


def parse_node_index(doc: Any) -> list[ReleaseCandidate]:
    """nodejs.org ``dist/index.json``. ``lts`` is false or a codename."""
    _require(isinstance(doc, list), NODE_INDEX_URL)
    out = []
    for rel in doc:
        if not isinstance(rel, dict):
            continue
        version = str(rel.get("version") or "").lstrip("v")
        out.append(ReleaseCandidate(
            version=version,
            channel=Channel.LTS if rel.get("lts") else Channel.STABLE,
            published_at=rel.get("date"),
        ))
    return out


# ── Go ──────────────────────────────────────────────────────────

_GO_PRE = re.compile(r"^(\d+\.\d+)(rc|beta)(\d+)$")


def go_version_from_tag(tag: str) -> str:
    """``go1.22.3`` → ``1.22.3``; ``go1.23rc1`` → ``1.23.0-rc1``."""
    version = tag[2:] if tag.startswith("go") else tag
    m = _GO_PRE.match(version)
    if m:
        return f"{m.group(1)}.0-{m.group(2)}{m.group(3)}"
    return version


def parse_go_releases(doc: Any) -> list[ReleaseCandidate]:
    _require(isinstance(doc, list), GO_RELEASES_URL)
    out = []
    for rel in doc:
        if not isinstance(rel, dict):
            continue
        out.append(ReleaseCandidate(
            version=go_version_from_tag(str(rel.get("version") or "")),
            channel=Channel.STABLE if rel.get("stable") else Channel.PRERELEASE,
        ))
    return out


# ── Python ──────────────────────────────────────────────────────

_PY_DIR = re.compile(r'href="(\d+\.\d+(?:\.\d+)?)/"')


def parse_python_ftp_listing(html: str) -> list[ReleaseCandidate]:
    """Directory names in the python.org FTP index, one per release."""
    versions = sorted(set(_PY_DIR.findall(html)))
    _require(bool(versions), PYTHON_FTP_URL)
    return [ReleaseCandidate(version=v) for v in versions]


# ── endoflife.date ──────────────────────────────────────────────


def parse_endoflife(doc: Any) -> list[ReleaseCandidate]:
    """Each cycle contributes its latest patch release."""
    _require(isinstance(doc, list), "endoflife.date")
    out = []
    for cycle in doc:
        if not isinstance(cycle, dict) or not cycle.get("latest"):
            continue
        out.append(ReleaseCandidate(
            version=str(cycle["latest"]),
            channel=Channel.LTS if cycle.get("lts") is True else Channel.STABLE,
            published_at=cycle.get("latestReleaseDate"),
        ))
    return out


def fetch_endoflife(http, product: str) -> list[ReleaseCandidate]:
    return parse_endoflife(http.get_json(ENDOFLIFE_URL.format(product=product)))


# ── Adoptium (Java) ─────────────────────────────────────────────


def parse_adoptium_versions(doc: Any) -> list[ReleaseCandidate]:
    """``semver`` carries build metadata (``21.0.5+11``) which is dropped."""
    _require(isinstance(doc, dict) and isinstance(doc.get("versions"), list), "Adoptium API")
    seen: dict[str, ReleaseCandidate] = {}
    for entry in doc["versions"]:
        if not isinstance(entry, dict):
            continue
        semver = str(entry.get("semver") or "").split("+", 1)[0]
        if semver and semver not in seen:
            seen[semver] = ReleaseCandidate(version=semver)
    return list(seen.values())

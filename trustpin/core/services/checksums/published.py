"""
Publisher checksum formats — pull one artifact's digest out of whatever
document the publisher ships next to its releases.

Supported shapes:
    checksums.txt / SHA256SUMS   ``<hex>  <filename>`` or ``<hex> *<filename>``
    BSD tag lines                ``SHA256 (<filename>) = <hex>``
    single-file .sha256/.sha512  ``<hex>`` optionally followed by a filename
    go.dev JSON                  ``files[].sha256`` by ``filename``
    ruby-lang.org downloads      ``Ruby X.Y.Z`` followed by ``sha256: <hex>``
    Adoptium assets JSON         ``binaries[].package.checksum``
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from trustpin.core.services.checksums.digests import detect_algorithm, normalize_digest

_BSD_LINE = re.compile(r"^(?:SHA256|SHA512)\s*\((?P<name>[^)]+)\)\s*=\s*(?P<hex>[0-9a-fA-F]+)$")


@dataclass(frozen=True)
class PublishedDigest:
    """A digest obtained from the publisher's own infrastructure."""

    digest: str
    algorithm: str
    source: str


def _basename(name: str) -> str:
    return name.lstrip("*").strip().rsplit("/", 1)[-1]


def parse_checksum_listing(text: str, filename: str) -> str | None:
    """Find ``filename``'s digest in a multi-line checksum listing."""
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        bsd = _BSD_LINE.match(line)
        if bsd:
            if _basename(bsd.group("name")) == filename:
                return normalize_digest(bsd.group("hex"))
            continue
        parts = line.split(None, 1)
        if len(parts) == 2 and _basename(parts[1]) == filename:
            if detect_algorithm(parts[0]):
                return normalize_digest(parts[0])
    return None


def parse_single_digest(text: str) -> str | None:
    """A ``.sha256``/``.sha512`` side file: first token is the digest."""
    tokens = text.strip().split()
    if not tokens:
        return None
    candidate = normalize_digest(tokens[0])
    return candidate if detect_algorithm(candidate) else None


def parse_go_release_files(doc: Any, version_tag: str, filename: str) -> str | None:
    """go.dev ``?mode=json&include=all`` listing."""
    if not isinstance(doc, list):
        return None
    for release in doc:
        if not isinstance(release, dict) or release.get("version") != version_tag:
            continue
        for f in release.get("files") or []:
            if isinstance(f, dict) and f.get("filename") == filename and f.get("sha256"):
                return normalize_digest(str(f["sha256"]))
    return None


def parse_ruby_downloads_page(html: str, version: str) -> str | None:
    """ruby-lang.org downloads page: the first ``sha256:`` after ``Ruby X.Y.Z``."""
    pattern = re.compile(
        r">Ruby " + re.escape(version) + r"<.{0,400}?sha256:\s*([0-9a-f]{64})",
        re.DOTALL,
    )
    m = pattern.search(html)
    return m.group(1) if m else None


def parse_adoptium_assets(doc: Any, filename_hint: str = "") -> tuple[str, str] | None:
    """Adoptium ``/v3/assets/version/...`` → ``(download link, sha256)``."""
    if not isinstance(doc, list):
        return None
    for release in doc:
        for binary in (release or {}).get("binaries") or []:
            package = (binary or {}).get("package") or {}
            link, checksum = package.get("link"), package.get("checksum")
            if not link or not checksum:
                continue
            if filename_hint and package.get("name") != filename_hint:
                continue
            return str(link), normalize_digest(str(checksum))
    return None


def published(digest: str | None, source: str) -> PublishedDigest | None:
    """Wrap a parsed digest, or None when it is absent or of unknown length."""
    if not digest:
        return None
    algorithm = detect_algorithm(digest)
    if algorithm is None:
        return None
    return PublishedDigest(digest=normalize_digest(digest), algorithm=str(algorithm), source=source)

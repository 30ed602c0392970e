"""
Node.js adapter — official binary tarballs from nodejs.org.

``dist/index.json`` lists every release and marks LTS lines, so this
adapter also understands the ``lts`` channel. Each release directory
carries ``SHASUMS256.txt`` plus a detached GPG signature over it
(``SHASUMS256.txt.sig``): tier 1 verifies that signature and then
looks the artifact up in the signed listing; tier 3 uses the same
listing unsigned.
"""

from __future__ import annotations

from trustpin.adapters.base import ToolAdapter, build_url, url_filename
from trustpin.core.models.version import ReleaseCandidate
from trustpin.core.services.checksums.published import (
    PublishedDigest,
    parse_checksum_listing,
    published,
)
from trustpin.core.services.checksums.signatures import SignatureKind, SignatureSource
from trustpin.core.services.versions.feeds import NODE_INDEX_URL, parse_node_index
from trustpin.core.services.versions.matching import DEFAULT_SYMBOLS

NODE_DIST_URL = "https://nodejs.org/dist/"
SHASUMS_FILE = "SHASUMS256.txt"

_ARCH = {"amd64": "x64", "arm64": "arm64"}


class NodeAdapter(ToolAdapter):
    kind = "language"
    description = "Node.js linux binaries (nodejs.org)"
    supported_symbols = (*DEFAULT_SYMBOLS, "lts")

    @property
    def name(self) -> str:
        return "node"

    def list_releases(self, http) -> list[ReleaseCandidate]:
        return parse_node_index(http.get_json(NODE_INDEX_URL))

    def artifact_filename(self, version: str, platform: str) -> str:
        version, plat = self.checked(version, platform)
        return f"node-v{version}-linux-{_ARCH[plat]}.tar.xz"

    def artifact_url(self, version: str, platform: str) -> str:
        return build_url(NODE_DIST_URL, f"v{version}", self.artifact_filename(version, platform))

    def _shasums_url(self, version: str) -> str:
        return build_url(NODE_DIST_URL, f"v{version}", SHASUMS_FILE)

    def published_digest(self, http, version: str, platform: str, artifact_url: str) -> PublishedDigest | None:
        url = self._shasums_url(version)
        digest = parse_checksum_listing(http.get_text(url), url_filename(artifact_url))
        return published(digest, url)

    def signature_source(self, version: str, platform: str, artifact_url: str) -> SignatureSource:
        sums = self._shasums_url(version)
        return SignatureSource(
            kind=SignatureKind.GPG,
            signature_url=f"{sums}.sig",
            signed_url=sums,
            signed_filename=url_filename(artifact_url),
        )

"""
Go adapter — official toolchain archives from go.dev.

The go.dev download API lists every release with per-file sha256
digests, which serves as both the release feed and the tier 3 source.
Archives also ship a detached ``.asc`` signature.
"""

from __future__ import annotations

from trustpin.adapters.base import ToolAdapter, build_url, url_filename
from trustpin.core.models.version import ReleaseCandidate
from trustpin.core.services.checksums.published import (
    PublishedDigest,
    parse_go_release_files,
    published,
)
from trustpin.core.services.checksums.signatures import SignatureKind, SignatureSource
from trustpin.core.services.versions.feeds import GO_RELEASES_URL, parse_go_releases

GO_DL_URL = "https://go.dev/dl/"


class GoAdapter(ToolAdapter):
    kind = "language"
    description = "Go toolchain (go.dev)"

    @property
    def name(self) -> str:
        return "go"

    def list_releases(self, http) -> list[ReleaseCandidate]:
        return parse_go_releases(http.get_json(GO_RELEASES_URL))

    def artifact_filename(self, version: str, platform: str) -> str:
        version, plat = self.checked(version, platform)
        return f"go{version}.linux-{plat}.tar.gz"

    def artifact_url(self, version: str, platform: str) -> str:
        return build_url(GO_DL_URL, self.artifact_filename(version, platform))

    def published_digest(self, http, version: str, platform: str, artifact_url: str) -> PublishedDigest | None:
        digest = parse_go_release_files(
            http.get_json(GO_RELEASES_URL), f"go{version}", url_filename(artifact_url),
        )
        return published(digest, GO_RELEASES_URL)

    def signature_source(self, version: str, platform: str, artifact_url: str) -> SignatureSource:
        return SignatureSource(kind=SignatureKind.GPG, signature_url=f"{artifact_url}.asc")

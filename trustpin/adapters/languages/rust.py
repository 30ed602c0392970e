"""
Rust adapter — standalone toolchain installers from static.rust-lang.org.

Releases are read from the rust-lang/rust GitHub releases (tags have
no ``v`` prefix). Each dist tarball has a ``.sha256`` and an ``.asc``
next to it.
"""

from __future__ import annotations

from trustpin.adapters.base import ToolAdapter, build_url
from trustpin.core.models.version import ReleaseCandidate
from trustpin.core.services.checksums.published import (
    PublishedDigest,
    parse_single_digest,
    published,
)
from trustpin.core.services.checksums.signatures import SignatureKind, SignatureSource
from trustpin.core.services.versions.feeds import fetch_github_releases

RUST_DIST_URL = "https://static.rust-lang.org/dist/"

_TRIPLE = {
    "amd64": "x86_64-unknown-linux-gnu",
    "arm64": "aarch64-unknown-linux-gnu",
}


class RustAdapter(ToolAdapter):
    kind = "language"
    description = "Rust standalone installers (static.rust-lang.org)"

    @property
    def name(self) -> str:
        return "rust"

    def list_releases(self, http) -> list[ReleaseCandidate]:
        return fetch_github_releases(http, "rust-lang/rust", tag_prefix="")

    def artifact_filename(self, version: str, platform: str) -> str:
        version, plat = self.checked(version, platform)
        return f"rust-{version}-{_TRIPLE[plat]}.tar.gz"

    def artifact_url(self, version: str, platform: str) -> str:
        return build_url(RUST_DIST_URL, self.artifact_filename(version, platform))

    def published_digest(self, http, version: str, platform: str, artifact_url: str) -> PublishedDigest | None:
        url = f"{artifact_url}.sha256"
        return published(parse_single_digest(http.get_text(url)), url)

    def signature_source(self, version: str, platform: str, artifact_url: str) -> SignatureSource:
        return SignatureSource(kind=SignatureKind.GPG, signature_url=f"{artifact_url}.asc")

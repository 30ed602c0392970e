"""
HashiCorp tools — terraform from releases.hashicorp.com.

Each release has a ``SHA256SUMS`` listing and a detached GPG signature
over it (``SHA256SUMS.sig``). Tier 1 checks the signature and then the
artifact's entry in the listing; tier 3 reads the listing unsigned.
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
from trustpin.core.services.versions.feeds import fetch_github_releases

HASHICORP_RELEASES_URL = "https://releases.hashicorp.com/"


class HashiCorpTool(ToolAdapter):
    """A product distributed through releases.hashicorp.com."""

    def __init__(self, product: str, description: str = ""):
        self.product = product
        self.description = description or product

    @property
    def name(self) -> str:
        return self.product

    def list_releases(self, http) -> list[ReleaseCandidate]:
        return fetch_github_releases(http, f"hashicorp/{self.product}")

    def artifact_filename(self, version: str, platform: str) -> str:
        version, plat = self.checked(version, platform)
        return f"{self.product}_{version}_linux_{plat}.zip"

    def artifact_url(self, version: str, platform: str) -> str:
        return build_url(HASHICORP_RELEASES_URL, self.product, version, self.artifact_filename(version, platform))

    def _sums_url(self, version: str) -> str:
        return build_url(HASHICORP_RELEASES_URL, self.product, version, f"{self.product}_{version}_SHA256SUMS")

    def published_digest(self, http, version: str, platform: str, artifact_url: str) -> PublishedDigest | None:
        url = self._sums_url(version)
        return published(parse_checksum_listing(http.get_text(url), url_filename(artifact_url)), url)

    def signature_source(self, version: str, platform: str, artifact_url: str) -> SignatureSource:
        sums = self._sums_url(version)
        return SignatureSource(
            kind=SignatureKind.GPG,
            signature_url=f"{sums}.sig",
            signed_url=sums,
            signed_filename=url_filename(artifact_url),
        )

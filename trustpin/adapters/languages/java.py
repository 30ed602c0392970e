"""
Java adapter — Eclipse Temurin JDK builds via the Adoptium API.

Temurin archive names embed the build number (``+11``), which the
release feed drops, so there is no artifact URL builder here: callers
pass the URL they got from Adoptium. The assets API reports the
sha256 of every package and serves as tier 3.
"""

from __future__ import annotations

from urllib.parse import quote

from trustpin.adapters.base import ToolAdapter, url_filename
from trustpin.core.models.version import ReleaseCandidate
from trustpin.core.services.checksums.published import (
    PublishedDigest,
    parse_adoptium_assets,
    published,
)
from trustpin.core.services.versions.feeds import ADOPTIUM_RELEASES_URL, parse_adoptium_versions

ADOPTIUM_ASSETS_URL = (
    "https://api.adoptium.net/v3/assets/version/{version}"
    "?architecture={arch}&image_type=jdk&os=linux&vendor=eclipse&release_type=ga"
)

_ARCH = {"amd64": "x64", "arm64": "aarch64"}


class JavaAdapter(ToolAdapter):
    kind = "language"
    description = "Eclipse Temurin JDK (Adoptium)"

    @property
    def name(self) -> str:
        return "java"

    def list_releases(self, http) -> list[ReleaseCandidate]:
        return parse_adoptium_versions(http.get_json(ADOPTIUM_RELEASES_URL))

    def published_digest(self, http, version: str, platform: str, artifact_url: str) -> PublishedDigest | None:
        version, plat = self.checked(version, platform)
        url = ADOPTIUM_ASSETS_URL.format(version=quote(version, safe=""), arch=_ARCH[plat])
        found = parse_adoptium_assets(http.get_json(url), url_filename(artifact_url))
        if found is None:
            return None
        _, digest = found
        return published(digest, url)

"""
Maven adapter — Apache Maven binary distribution from Maven Central.

Central stores a ``.sha512`` beside every artifact; tags on the
apache/maven repository look like ``maven-3.9.9``.
"""

from __future__ import annotations

from trustpin.adapters.base import ToolAdapter, build_url
from trustpin.core.models.checksum import HashAlgorithm
from trustpin.core.models.version import ReleaseCandidate
from trustpin.core.services.checksums.published import (
    PublishedDigest,
    parse_single_digest,
    published,
)
from trustpin.core.services.versions.feeds import fetch_github_releases

MAVEN_CENTRAL_URL = "https://repo1.maven.org/maven2/org/apache/maven/apache-maven/"


class MavenAdapter(ToolAdapter):
    description = "Apache Maven (Maven Central)"
    default_algorithm = HashAlgorithm.SHA512
    platform_independent = True

    @property
    def name(self) -> str:
        return "maven"

    def list_releases(self, http) -> list[ReleaseCandidate]:
        return fetch_github_releases(http, "apache/maven", tag_prefix="maven-")

    def artifact_filename(self, version: str, platform: str) -> str:
        version, _ = self.checked(version, platform)
        return f"apache-maven-{version}-bin.tar.gz"

    def artifact_url(self, version: str, platform: str) -> str:
        return build_url(MAVEN_CENTRAL_URL, version, self.artifact_filename(version, platform))

    def published_digest(self, http, version: str, platform: str, artifact_url: str) -> PublishedDigest | None:
        url = f"{artifact_url}.sha512"
        return published(parse_single_digest(http.get_text(url)), url)

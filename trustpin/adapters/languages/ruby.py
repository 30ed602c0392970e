"""
Ruby adapter — source tarballs from cache.ruby-lang.org.

The release list comes from endoflife.date (latest patch per series).
Digests are scraped from the ruby-lang.org downloads page, which only
lists currently supported releases; older versions fall through to
the pinned or calculated tiers.
"""

from __future__ import annotations

from trustpin.adapters.base import ToolAdapter, build_url
from trustpin.core.models.version import ReleaseCandidate
from trustpin.core.services.checksums.published import (
    PublishedDigest,
    parse_ruby_downloads_page,
    published,
)
from trustpin.core.services.versions.feeds import fetch_endoflife

RUBY_CACHE_URL = "https://cache.ruby-lang.org/pub/ruby/"
RUBY_DOWNLOADS_URL = "https://www.ruby-lang.org/en/downloads/"


class RubyAdapter(ToolAdapter):
    kind = "language"
    description = "Ruby source releases (ruby-lang.org)"
    platform_independent = True

    @property
    def name(self) -> str:
        return "ruby"

    def list_releases(self, http) -> list[ReleaseCandidate]:
        return fetch_endoflife(http, "ruby")

    def artifact_filename(self, version: str, platform: str) -> str:
        version, _ = self.checked(version, platform)
        return f"ruby-{version}.tar.gz"

    def artifact_url(self, version: str, platform: str) -> str:
        series = ".".join(version.split(".")[:2])
        return build_url(RUBY_CACHE_URL, series, self.artifact_filename(version, platform))

    def published_digest(self, http, version: str, platform: str, artifact_url: str) -> PublishedDigest | None:
        digest = parse_ruby_downloads_page(http.get_text(RUBY_DOWNLOADS_URL), version)
        return published(digest, RUBY_DOWNLOADS_URL)

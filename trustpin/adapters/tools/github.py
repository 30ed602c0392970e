"""
GitHub release tools — binaries published as GitHub release assets.

Most CLI tools follow one pattern: a release tag ``v<version>``, one
asset per architecture, and optionally a checksum asset that is either
a listing (``checksums.txt``) or one side file per asset
(``<asset>.sha256``). ``GitHubReleaseTool`` captures that pattern as
data; the catalog at the bottom registers the concrete tools.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from trustpin.adapters.base import ToolAdapter, build_url, url_filename
from trustpin.core.models.checksum import HashAlgorithm
from trustpin.core.models.version import ReleaseCandidate
from trustpin.core.services.checksums.published import (
    PublishedDigest,
    parse_checksum_listing,
    parse_single_digest,
    published,
)
from trustpin.core.services.checksums.signatures import SignatureKind, SignatureSource
from trustpin.core.services.versions.feeds import fetch_github_releases

GITHUB_URL = "https://github.com"


@dataclass(frozen=True)
class AssetLayout:
    """How a tool names its release assets.

    ``asset`` is a format string over ``version`` and ``arch``; ``arch``
    is looked up in ``arch_map`` by canonical platform.
    """

    asset: str
    arch_map: dict[str, str] = field(default_factory=lambda: {"amd64": "amd64", "arm64": "arm64"})
    checksum_listing: str | None = None
    checksum_suffix: str | None = None
    signature_suffix: str | None = None


class GitHubReleaseTool(ToolAdapter):
    """A tool whose artifacts and digests are GitHub release assets."""

    def __init__(
        self,
        name: str,
        repo: str,
        layout: AssetLayout,
        *,
        tag_prefix: str = "v",
        description: str = "",
        default_algorithm: HashAlgorithm = HashAlgorithm.SHA256,
    ):
        self._name = name
        self.repo = repo
        self.layout = layout
        self.tag_prefix = tag_prefix
        self.description = description or f"{name} ({repo})"
        self.default_algorithm = default_algorithm
        self.platforms = tuple(layout.arch_map)

    @property
    def name(self) -> str:
        return self._name

    def list_releases(self, http) -> list[ReleaseCandidate]:
        return fetch_github_releases(http, self.repo, tag_prefix=self.tag_prefix)

    def _download_base(self, version: str) -> str:
        owner, project = self.repo.split("/", 1)
        return build_url(GITHUB_URL, owner, project, "releases", "download", f"{self.tag_prefix}{version}")

    def artifact_filename(self, version: str, platform: str) -> str:
        version, plat = self.checked(version, platform)
        return self.layout.asset.format(version=version, arch=self.layout.arch_map[plat])

    def artifact_url(self, version: str, platform: str) -> str:
        filename = self.artifact_filename(version, platform)
        return build_url(self._download_base(version), filename)

    def published_digest(self, http, version: str, platform: str, artifact_url: str) -> PublishedDigest | None:
        if self.layout.checksum_listing:
            url = build_url(self._download_base(version), self.layout.checksum_listing)
            digest = parse_checksum_listing(http.get_text(url), url_filename(artifact_url))
            return published(digest, url)
        if self.layout.checksum_suffix:
            url = f"{artifact_url}{self.layout.checksum_suffix}"
            return published(parse_single_digest(http.get_text(url)), url)
        return None

    def signature_source(self, version: str, platform: str, artifact_url: str) -> SignatureSource | None:
        if not self.layout.signature_suffix:
            return None
        return SignatureSource(
            kind=SignatureKind.PUBLIC_KEY,
            signature_url=f"{artifact_url}{self.layout.signature_suffix}",
        )


_X86 = {"amd64": "x86_64", "arm64": "arm64"}
_GNU = {"amd64": "x86_64", "arm64": "aarch64"}

GITHUB_TOOLS = (
    GitHubReleaseTool(
        "k9s", "derailed/k9s",
        AssetLayout(asset="k9s_Linux_{arch}.tar.gz", checksum_listing="checksums.sha256"),
        description="Kubernetes terminal UI",
    ),
    GitHubReleaseTool(
        "lazygit", "jesseduffield/lazygit",
        AssetLayout(asset="lazygit_{version}_linux_{arch}.tar.gz", arch_map=_X86, checksum_listing="checksums.txt"),
        description="Terminal UI for git",
    ),
    GitHubReleaseTool(
        "act", "nektos/act",
        AssetLayout(asset="act_Linux_{arch}.tar.gz", arch_map=_X86, checksum_listing="checksums.txt"),
        description="Run GitHub Actions locally",
    ),
    GitHubReleaseTool(
        "git-cliff", "orhun/git-cliff",
        AssetLayout(
            asset="git-cliff-{version}-{arch}-unknown-linux-gnu.tar.gz",
            arch_map=_GNU,
            checksum_suffix=".sha512",
        ),
        description="Changelog generator",
        default_algorithm=HashAlgorithm.SHA512,
    ),
    GitHubReleaseTool(
        # delta publishes no checksums; only the pinned and calculated tiers apply
        "delta", "dandavison/delta",
        AssetLayout(asset="delta-{version}-{arch}-unknown-linux-gnu.tar.gz", arch_map=_GNU),
        tag_prefix="",
        description="Syntax-highlighting pager for git",
    ),
    GitHubReleaseTool(
        "krew", "kubernetes-sigs/krew",
        AssetLayout(asset="krew-linux_{arch}.tar.gz", checksum_suffix=".sha256"),
        description="kubectl plugin manager",
    ),
)

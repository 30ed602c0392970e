"""
Kubernetes client tools — kubectl and helm.

kubectl binaries live on dl.k8s.io with a ``.sha256`` side file each.
Helm tarballs live on get.helm.sh; the only checksums Helm publishes
are inside GPG-signed release notes, so helm relies on the ``.asc``
signature attached to each GitHub release asset.
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

KUBERNETES_DL_URL = "https://dl.k8s.io/release/"
HELM_DL_URL = "https://get.helm.sh/"
HELM_RELEASES_URL = "https://github.com/helm/helm/releases/download/"


class KubectlAdapter(ToolAdapter):
    description = "Kubernetes CLI"

    @property
    def name(self) -> str:
        return "kubectl"

    def list_releases(self, http) -> list[ReleaseCandidate]:
        return fetch_github_releases(http, "kubernetes/kubernetes")

    def artifact_filename(self, version: str, platform: str) -> str:
        self.checked(version, platform)
        return "kubectl"

    def artifact_url(self, version: str, platform: str) -> str:
        version, plat = self.checked(version, platform)
        return build_url(KUBERNETES_DL_URL, f"v{version}", "bin", "linux", plat, "kubectl")

    def published_digest(self, http, version: str, platform: str, artifact_url: str) -> PublishedDigest | None:
        url = f"{artifact_url}.sha256"
        return published(parse_single_digest(http.get_text(url)), url)


class HelmAdapter(ToolAdapter):
    description = "Kubernetes package manager"

    @property
    def name(self) -> str:
        return "helm"

    def list_releases(self, http) -> list[ReleaseCandidate]:
        return fetch_github_releases(http, "helm/helm")

    def artifact_filename(self, version: str, platform: str) -> str:
        version, plat = self.checked(version, platform)
        return f"helm-v{version}-linux-{plat}.tar.gz"

    def artifact_url(self, version: str, platform: str) -> str:
        return build_url(HELM_DL_URL, self.artifact_filename(version, platform))

    def signature_source(self, version: str, platform: str, artifact_url: str) -> SignatureSource:
        filename = self.artifact_filename(version, platform)
        return SignatureSource(
            kind=SignatureKind.GPG,
            signature_url=build_url(HELM_RELEASES_URL, f"v{version}", f"{filename}.asc"),
        )

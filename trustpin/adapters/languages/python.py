"""
Python adapter — CPython source releases from python.org.

Releases come from the python.org FTP index. Source tarballs are
GPG-signed by the release managers (``.asc`` next to each file);
python.org publishes no plain digest files, so tier 3 does not apply.
"""

from __future__ import annotations

import logging

from trustpin.adapters.base import ToolAdapter, build_url
from trustpin.core.models.version import ReleaseCandidate
from trustpin.core.services.checksums.signatures import SignatureKind, SignatureSource
from trustpin.core.services.versions.feeds import PYTHON_FTP_URL, parse_python_ftp_listing

logger = logging.getLogger(__name__)


class PythonAdapter(ToolAdapter):
    """CPython source tarballs."""

    kind = "language"
    description = "CPython source releases (python.org)"
    platform_independent = True

    @property
    def name(self) -> str:
        return "python"

    def list_releases(self, http) -> list[ReleaseCandidate]:
        return parse_python_ftp_listing(http.get_text(PYTHON_FTP_URL))

    def artifact_filename(self, version: str, platform: str) -> str:
        version, _ = self.checked(version, platform)
        return f"Python-{version}.tgz"

    def artifact_url(self, version: str, platform: str) -> str:
        filename = self.artifact_filename(version, platform)
        return build_url(PYTHON_FTP_URL, version, filename)

    def signature_source(self, version: str, platform: str, artifact_url: str) -> SignatureSource:
        return SignatureSource(kind=SignatureKind.GPG, signature_url=f"{artifact_url}.asc")

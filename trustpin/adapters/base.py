"""
Tool adapter base — the contract between the engine and one tool or
language runtime.

An adapter answers four questions for its tool:

    where are the releases?          list_releases()
    where is the artifact?           artifact_url()
    what digest does the publisher   published_digest()
    post for it?
    is there a detached signature?   signature_source()

The engine never switches on tool names; it asks the registry for the
adapter and goes through this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import quote, urlsplit

from trustpin.core.errors import ErrorKind, TrustpinError
from trustpin.core.models.checksum import HashAlgorithm, normalize_platform
from trustpin.core.models.version import ReleaseCandidate
from trustpin.core.services.checksums.published import PublishedDigest
from trustpin.core.services.checksums.signatures import SignatureSource
from trustpin.core.services.versions.matching import DEFAULT_SYMBOLS, is_exact_version

# Platform key for artifacts that are the same on every architecture
ANY_PLATFORM = "any"


def build_url(base: str, *segments: str) -> str:
    """Join URL path segments, percent-quoting each one."""
    return base.rstrip("/") + "/" + "/".join(quote(s, safe="") for s in segments)


def url_filename(url: str) -> str:
    return urlsplit(url).path.rsplit("/", 1)[-1]


class ToolAdapter(ABC):
    """Abstract base for every registered tool.

    Subclasses override only the hooks their publisher supports; the
    defaults mean "not published", which makes the matching trust
    tier not applicable.
    """

    kind: str = "tool"
    description: str = ""
    default_algorithm: HashAlgorithm = HashAlgorithm.SHA256
    supported_symbols: tuple[str, ...] = DEFAULT_SYMBOLS
    # Architectures this adapter can build artifact names for
    platforms: tuple[str, ...] = ("amd64", "arm64")
    platform_independent: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry key, e.g. ``"python"`` or ``"k9s"``."""

    @abstractmethod
    def list_releases(self, http) -> list[ReleaseCandidate]:
        """Known releases from the upstream feed.

        Raises:
            NetworkError: the feed is unreachable or unusable.
        """

    # ── Optional hooks ──────────────────────────────────────────

    def artifact_filename(self, version: str, platform: str) -> str | None:
        return None

    def artifact_url(self, version: str, platform: str) -> str | None:
        return None

    def published_digest(self, http, version: str, platform: str, artifact_url: str) -> PublishedDigest | None:
        """Tier 3: digest from the publisher's own infrastructure, or None."""
        return None

    def signature_source(self, version: str, platform: str, artifact_url: str) -> SignatureSource | None:
        """Tier 1: where the detached signature lives, or None."""
        return None

    # ── Helpers ─────────────────────────────────────────────────

    def canonical_platform(self, platform: str) -> str:
        """Platform key used for pinned records of this tool."""
        if self.platform_independent:
            return ANY_PLATFORM
        return normalize_platform(platform)

    def checked(self, version: str, platform: str) -> tuple[str, str]:
        """Validate URL-building inputs.

        Raises:
            TrustpinError: kind ``invalid_spec`` for a non-exact version
                or a platform this adapter does not publish for.
        """
        if not is_exact_version(version):
            raise TrustpinError(
                f"{self.name}: '{version}' is not an exact version",
                kind=ErrorKind.INVALID_SPEC, tool=self.name, version=version,
            )
        plat = normalize_platform(platform)
        if not self.platform_independent and plat not in self.platforms:
            raise TrustpinError(
                f"{self.name}: unsupported platform '{platform}' (supported: {', '.join(self.platforms)})",
                kind=ErrorKind.INVALID_SPEC, tool=self.name, version=version,
            )
        return version, plat

    def describe(self) -> dict[str, Any]:
        cls = type(self)
        return {
            "name": self.name,
            "kind": self.kind,
            "description": self.description,
            "default_algorithm": str(self.default_algorithm),
            "platforms": [ANY_PLATFORM] if self.platform_independent else list(self.platforms),
            "symbols": list(self.supported_symbols),
            "signature": cls.signature_source is not ToolAdapter.signature_source,
            "published_digest": cls.published_digest is not ToolAdapter.published_digest,
        }

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class UnlistedTool(ToolAdapter):
    """Stand-in for tools nobody registered.

    Verification still works through the pinned database and the
    calculated tier; resolution is impossible without a feed.
    """

    description = "unregistered tool (pinned or calculated checksums only)"
    platform_independent = False

    def __init__(self, name: str):
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def list_releases(self, http) -> list[ReleaseCandidate]:
        raise TrustpinError(
            f"No release feed registered for '{self._name}'",
            kind=ErrorKind.UNKNOWN_TOOL, tool=self._name,
        )

    def checked(self, version: str, platform: str) -> tuple[str, str]:
        return version, normalize_platform(platform)

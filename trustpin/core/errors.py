"""
Error taxonomy — every failure the engine surfaces to a caller.

Each error carries a ``kind`` plus enough context (tool, version, tier)
for an installer to log an actionable message. ``exit_code`` maps the
kind onto the batch exit semantics:

    1  needs attention (network, mismatch, insufficient trust, no match,
       a local file that cannot be written)
    2  structurally broken input (bad spec, unknown tool, corrupt store)
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Failure categories."""

    INVALID_SPEC = "invalid_spec"
    NETWORK = "network"
    NO_MATCH = "no_match"
    DIGEST_MISMATCH = "digest_mismatch"
    INSUFFICIENT_TRUST = "insufficient_trust"
    STORE_CORRUPT = "store_corrupt"
    UNKNOWN_TOOL = "unknown_tool"
    FILESYSTEM = "filesystem"


# Kinds that mean "the input is broken", not "the artifact needs attention"
_BROKEN_INPUT = frozenset({
    ErrorKind.INVALID_SPEC,
    ErrorKind.UNKNOWN_TOOL,
    ErrorKind.STORE_CORRUPT,
})


class TrustpinError(Exception):
    """Base class for all engine errors."""

    default_kind: ErrorKind = ErrorKind.NETWORK

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind | None = None,
        tool: str = "",
        version: str = "",
        tier: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind
        self.tool = tool
        self.version = version
        self.tier = tier

    @property
    def exit_code(self) -> int:
        return 2 if self.kind in _BROKEN_INPUT else 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.message,
            "kind": str(self.kind),
            "tool": self.tool or None,
            "version": self.version or None,
            "tier": self.tier,
        }


class ResolutionError(TrustpinError):
    """A version spec could not be turned into a concrete release."""

    default_kind = ErrorKind.NO_MATCH


class VerificationError(TrustpinError):
    """A download could not be verified."""

    default_kind = ErrorKind.DIGEST_MISMATCH


class StorageError(TrustpinError):
    """A local file (pinned store, verified artifact) could not be written."""

    default_kind = ErrorKind.FILESYSTEM

    def __init__(self, message: str, *, path: str = "", **kwargs: Any):
        super().__init__(message, kind=ErrorKind.FILESYSTEM, **kwargs)
        self.path = path


class StoreCorruptError(TrustpinError):
    """The pinned checksum database failed structural validation."""

    default_kind = ErrorKind.STORE_CORRUPT

    def __init__(self, message: str, errors: list[str] | None = None, **kwargs: Any):
        super().__init__(message, kind=ErrorKind.STORE_CORRUPT, **kwargs)
        self.errors = list(errors or [])

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class NetworkError(TrustpinError):
    """An HTTP request failed.

    ``retryable`` is False for determinate answers from the server
    (404, 410, rate limiting without a token) so the retry utility
    gives up immediately instead of burning its budget.
    """

    default_kind = ErrorKind.NETWORK

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        status: int | None = None,
        retryable: bool = True,
        **kwargs: Any,
    ):
        super().__init__(message, kind=ErrorKind.NETWORK, **kwargs)
        self.url = url
        self.status = status
        self.retryable = retryable

    @property
    def not_found(self) -> bool:
        return self.status in (404, 410)


class RetryExhaustedError(NetworkError):
    """All retry attempts failed."""

    def __init__(self, message: str, *, attempts: int, last_error: BaseException | None = None):
        url = getattr(last_error, "url", "")
        status = getattr(last_error, "status", None)
        super().__init__(message, url=url, status=status, retryable=False)
        self.attempts = attempts
        self.last_error = last_error

"""
Download-and-verify executor.

Fetches the artifact first (no tier runs without the bytes), walks the
trust tiers, and either moves the verified file into place or deletes
it. Every outcome can be appended to the verification report log.

Tier 4 outcomes are logged to the security logger as a boxed warning
and carry the warning text in the outcome itself.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from trustpin.core.errors import ErrorKind, NetworkError, StorageError, TrustpinError, VerificationError
from trustpin.core.models.verification import (
    EnforcementLevel,
    TrustTier,
    VerificationOutcome,
)
from trustpin.core.observability.logging_config import SECURITY_LOGGER
from trustpin.core.persistence.checksum_store import ChecksumStore
from trustpin.core.persistence.report_log import ReportLog
from trustpin.core.services.checksums.signatures import SignatureVerifier
from trustpin.core.services.checksums.tiers import TierContext, TierSelector
from trustpin.core.services.versions.matching import is_exact_version, syntax_error

logger = logging.getLogger(__name__)
security_logger = logging.getLogger(SECURITY_LOGGER)


def format_size(num_bytes: int) -> str:
    """Human readable byte count."""
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def _warning_box(outcome: VerificationOutcome) -> str:
    lines = [
        "TRUST ON FIRST USE: checksum was calculated, not verified",
        f"Tool:     {outcome.tool} {outcome.version} ({outcome.platform})",
        f"URL:      {outcome.artifact_url}",
        f"SHA-256:  {outcome.digest}",
        "Pin this digest or provide a signing key to verify future downloads.",
    ]
    width = max(len(line) for line in lines)
    border = "+" + "-" * (width + 2) + "+"
    body = [f"| {line.ljust(width)} |" for line in lines]
    return "\n".join([border, *body, border])


class DownloadVerifier:
    """Download an artifact and prove its integrity."""

    def __init__(
        self,
        registry,
        store: ChecksumStore,
        http,
        signatures: SignatureVerifier,
        *,
        enforcement: EnforcementLevel = EnforcementLevel.ANY,
        report_log: ReportLog | None = None,
    ):
        self._registry = registry
        self._http = http
        self._selector = TierSelector(store, http, signatures)
        self.enforcement = enforcement
        self._report_log = report_log

    def verify_download(
        self,
        tool: str,
        version: str,
        platform: str,
        artifact_url: str | None = None,
        *,
        dest: Path | None = None,
        enforce_min_tier: EnforcementLevel | None = None,
    ) -> VerificationOutcome:
        """Download ``artifact_url`` and verify it.

        Args:
            tool: Tool or language name.
            version: Exact version.
            platform: Target architecture (amd64, arm64, ...).
            artifact_url: Where to download from. Built from the tool's
                adapter when omitted.
            dest: Where to place the verified file. When omitted the
                file is verified in a temp directory and discarded.
            enforce_min_tier: Overrides the verifier's enforcement level.

        Raises:
            VerificationError: invalid_spec, network, digest_mismatch,
                insufficient_trust.
            StoreCorruptError: the pinned database is unreadable.
            StorageError: ``dest`` cannot be created or written.
        """
        enforcement = enforce_min_tier or self.enforcement
        problem = syntax_error(version)
        if problem or not is_exact_version(version):
            raise VerificationError(
                f"Cannot verify {tool}: {problem or f'{version!r} is not an exact version'}",
                kind=ErrorKind.INVALID_SPEC, tool=tool, version=version,
            )

        adapter = self._registry.get_or_unlisted(tool)
        try:
            adapter.checked(version, platform)
            if artifact_url is None:
                artifact_url = adapter.artifact_url(version, platform)
        except TrustpinError as e:
            raise VerificationError(e.message, kind=e.kind, tool=tool, version=version) from e
        if not artifact_url:
            raise VerificationError(
                f"No download URL known for {tool} {version}; pass one explicitly",
                kind=ErrorKind.INVALID_SPEC, tool=tool, version=version,
            )

        work_dir = dest.parent if dest is not None else None
        if work_dir is not None:
            try:
                work_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageError(
                    f"Cannot create {work_dir} for {tool} {version}: {e}",
                    path=str(work_dir), tool=tool, version=version,
                ) from e

        with tempfile.TemporaryDirectory(prefix=".trustpin-", dir=work_dir) as tmp:
            artifact = Path(tmp) / "artifact"
            try:
                size = self._http.download(artifact_url, artifact)
            except NetworkError as e:
                raise VerificationError(
                    f"Artifact for {tool} {version} unreachable: {e}",
                    kind=ErrorKind.NETWORK, tool=tool, version=version,
                ) from e
            logger.info("Downloaded %s (%s)", artifact_url, format_size(size))

            ctx = TierContext(
                tool=tool,
                version=version,
                platform=adapter.canonical_platform(platform),
                artifact_url=artifact_url,
                artifact=artifact,
                adapter=adapter,
            )
            selection = self._selector.select(ctx, enforcement)
            winner = selection.winner

            outcome = VerificationOutcome(
                tool=tool,
                version=version,
                platform=ctx.platform,
                artifact_url=artifact_url,
                tier=winner.tier,
                digest_source=winner.source,
                algorithm=winner.algorithm or "sha256",
                digest=winner.computed_digest or "",
                attempts=selection.attempts,
                size_bytes=size,
            )

            if dest is not None:
                try:
                    shutil.move(str(artifact), dest)
                except OSError as e:
                    logger.error("Verified %s %s but could not place it at %s: %s", tool, version, dest, e)
                    raise StorageError(
                        f"Verified {tool} {version} but cannot write {dest}: {e}",
                        path=str(dest), tool=tool, version=version, tier=int(winner.tier),
                    ) from e
                outcome.path = str(dest)

        self._announce(outcome)
        if self._report_log is not None:
            self._report_log.append(outcome)
        return outcome

    def _announce(self, outcome: VerificationOutcome) -> None:
        if outcome.tier == TrustTier.CALCULATED:
            security_logger.warning("%s\n%s", _warning_box(outcome), outcome.warning)
        else:
            logger.info(
                "Verified %s %s via tier %d (%s)",
                outcome.tool, outcome.version, outcome.tier, outcome.tier.label,
            )

"""
Trust tier selection — the verification state machine.

Tiers run strictly in ``TIER_SEQUENCE`` order. Every tier evaluation
produces a ``TierAttempt`` and ``decide()`` alone maps it to what
happens next:

    PASSED          → accept, stop
    NOT_APPLICABLE  → try the next tier
    MISMATCH        → fail with digest_mismatch (never downgrade)
    BLOCKED         → fail with insufficient_trust

A tier whose lookup comes back empty (nothing signed, nothing pinned,
no publisher digest, a 404 on the side file) is NOT_APPLICABLE.
A tier that finds an expected value and disagrees with the bytes is a
MISMATCH, whatever tier it is.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from trustpin.core.errors import ErrorKind, NetworkError, StoreCorruptError, VerificationError
from trustpin.core.models.checksum import HashAlgorithm
from trustpin.core.models.verification import (
    TIER_SEQUENCE,
    EnforcementLevel,
    TierAttempt,
    TierStatus,
    TrustTier,
)
from trustpin.core.persistence.checksum_store import ChecksumStore
from trustpin.core.services.checksums.digests import (
    DigestCache,
    detect_algorithm,
    digests_equal,
    is_placeholder,
    is_valid_digest,
)
from trustpin.core.services.checksums.published import parse_checksum_listing
from trustpin.core.services.checksums.signatures import SignatureResult, SignatureVerifier

logger = logging.getLogger(__name__)


class Decision(StrEnum):
    ACCEPT = "accept"
    CONTINUE = "continue"
    FAIL = "fail"


_DECISIONS = {
    TierStatus.PASSED: Decision.ACCEPT,
    TierStatus.NOT_APPLICABLE: Decision.CONTINUE,
    TierStatus.MISMATCH: Decision.FAIL,
    TierStatus.BLOCKED: Decision.FAIL,
}


def decide(attempt: TierAttempt) -> Decision:
    """The single place that turns a tier result into control flow."""
    return _DECISIONS[attempt.status]


@dataclass
class TierContext:
    """Everything the tiers need about one downloaded artifact."""

    tool: str
    version: str
    platform: str
    artifact_url: str
    artifact: Path
    adapter: object
    digests: DigestCache = field(init=False)

    def __post_init__(self) -> None:
        self.digests = DigestCache(self.artifact)


@dataclass
class Selection:
    """The accepted tier plus the full trail of attempts that led to it."""

    winner: TierAttempt
    attempts: list[TierAttempt]


def _not_applicable(tier: TrustTier, detail: str) -> TierAttempt:
    logger.debug("Tier %d (%s) not applicable: %s", tier, tier.label, detail)
    return TierAttempt(tier=tier, status=TierStatus.NOT_APPLICABLE, detail=detail)


def _unretrievable(tier: TrustTier, what: str, error: NetworkError) -> TierAttempt:
    """A side file that could not be fetched: absent (404/410) or unreachable."""
    if error.not_found:
        return _not_applicable(tier, f"{what} not published ({error.url or 'no URL'})")
    logger.warning("Tier %d (%s) skipped, %s unreachable: %s", tier, tier.label, what, error.message)
    return _not_applicable(tier, f"{what} unreachable: {error.message}")


def _compare(tier: TrustTier, ctx: TierContext, expected: str, algorithm: str, source: str) -> TierAttempt:
    computed = ctx.digests.get(algorithm)
    ok = digests_equal(expected, computed)
    return TierAttempt(
        tier=tier,
        status=TierStatus.PASSED if ok else TierStatus.MISMATCH,
        detail="digest matches" if ok else "digest does not match",
        source=source,
        algorithm=algorithm,
        expected_digest=expected,
        computed_digest=computed,
    )


class TierSelector:
    """Walks the trust tiers for one artifact."""

    def __init__(
        self,
        store: ChecksumStore,
        http,
        signatures: SignatureVerifier,
    ):
        self._store = store
        self._http = http
        self._signatures = signatures
        self._evaluators: dict[TrustTier, Callable[[TierContext, EnforcementLevel], TierAttempt]] = {
            TrustTier.SIGNATURE: self._signature,
            TrustTier.PINNED: self._pinned,
            TrustTier.PUBLISHED: self._published,
            TrustTier.CALCULATED: self._calculated,
        }

    def evaluate(self, ctx: TierContext, tier: TrustTier, enforcement: EnforcementLevel) -> TierAttempt:
        return self._evaluators[tier](ctx, enforcement)

    def select(self, ctx: TierContext, enforcement: EnforcementLevel = EnforcementLevel.ANY) -> Selection:
        """Run tiers in order until one decides.

        Raises:
            VerificationError: digest_mismatch or insufficient_trust.
            StoreCorruptError: the pinned database cannot be read.
        """
        attempts: list[TierAttempt] = []
        for tier in TIER_SEQUENCE:
            attempt = self.evaluate(ctx, tier, enforcement)
            attempts.append(attempt)
            decision = decide(attempt)

            if decision == Decision.ACCEPT:
                return Selection(winner=attempt, attempts=attempts)
            if decision == Decision.FAIL:
                self._fail(ctx, attempt)

        # Tier 4 either passes or is blocked, so the loop always decides
        raise AssertionError("tier sequence ended without a decision")

    def _fail(self, ctx: TierContext, attempt: TierAttempt) -> None:
        if attempt.status == TierStatus.BLOCKED:
            logger.error(
                "%s %s: only calculated checksums available and enforcement forbids them",
                ctx.tool, ctx.version,
            )
            raise VerificationError(
                f"{ctx.tool} {ctx.version} ({ctx.platform}): no signature, pinned or publisher "
                f"checksum available and unverified downloads are disabled",
                kind=ErrorKind.INSUFFICIENT_TRUST,
                tool=ctx.tool, version=ctx.version, tier=int(attempt.tier),
            )
        if attempt.expected_digest is None:
            logger.error(
                "%s %s: tier %d (%s) MISMATCH: %s (%s)",
                ctx.tool, ctx.version, attempt.tier, attempt.tier.label, attempt.detail, attempt.source,
            )
            raise VerificationError(
                f"{ctx.tool} {ctx.version} ({ctx.platform}): {attempt.tier.label} check failed: "
                f"{attempt.detail} ({attempt.source})",
                kind=ErrorKind.DIGEST_MISMATCH,
                tool=ctx.tool, version=ctx.version, tier=int(attempt.tier),
            )
        logger.error(
            "%s %s: tier %d (%s) MISMATCH, expected %s, got %s",
            ctx.tool, ctx.version, attempt.tier, attempt.tier.label,
            attempt.expected_digest, attempt.computed_digest,
        )
        raise VerificationError(
            f"{ctx.tool} {ctx.version} ({ctx.platform}): {attempt.tier.label} check failed: "
            f"{attempt.detail} (expected {attempt.expected_digest}, got {attempt.computed_digest})",
            kind=ErrorKind.DIGEST_MISMATCH,
            tool=ctx.tool, version=ctx.version, tier=int(attempt.tier),
        )

    # ── Tier 1: publisher signature ─────────────────────────────

    def _signature(self, ctx: TierContext, enforcement: EnforcementLevel) -> TierAttempt:
        tier = TrustTier.SIGNATURE
        source = ctx.adapter.signature_source(ctx.version, ctx.platform, ctx.artifact_url)
        if source is None:
            return _not_applicable(tier, "publisher does not sign this artifact")
        if not self._signatures.has_keys(ctx.tool, source.kind):
            return _not_applicable(tier, f"no trusted {source.kind} key for {ctx.tool}")

        with tempfile.TemporaryDirectory(prefix="trustpin-sig-") as tmp:
            try:
                sig_path = Path(tmp) / "signature"
                sig_path.write_bytes(self._http.get_bytes(source.signature_url, use_cache=False))
                signed_path = ctx.artifact
                signed_text = None
                if source.signed_url:
                    signed_text = self._http.get_text(source.signed_url, use_cache=False)
                    signed_path = Path(tmp) / "signed-listing"
                    signed_path.write_text(signed_text, encoding="utf-8")
            except NetworkError as e:
                return _unretrievable(tier, "signature", e)

            result = self._signatures.verify(source.kind, ctx.tool, sig_path, signed_path)

        if result == SignatureResult.UNAVAILABLE:
            return _not_applicable(tier, "signature could not be checked against a trusted key")
        if result == SignatureResult.INVALID:
            return TierAttempt(
                tier=tier,
                status=TierStatus.MISMATCH,
                detail="signature does not verify against the trusted key",
                source=source.signature_url,
            )

        if signed_text is None:
            return TierAttempt(
                tier=tier,
                status=TierStatus.PASSED,
                detail=f"{source.kind} signature valid",
                source=source.signature_url,
                algorithm=HashAlgorithm.SHA256.value,
                computed_digest=ctx.digests.get(HashAlgorithm.SHA256),
            )

        expected = parse_checksum_listing(signed_text, source.signed_filename or "")
        algorithm = detect_algorithm(expected) if expected else None
        if expected is None or algorithm is None:
            return _not_applicable(tier, f"{source.signed_filename} not listed in signed checksums")
        return _compare(tier, ctx, expected, str(algorithm), source.signed_url)

    # ── Tier 2: pinned database ─────────────────────────────────

    def _pinned(self, ctx: TierContext, enforcement: EnforcementLevel) -> TierAttempt:
        tier = TrustTier.PINNED
        records = self._store.for_release(ctx.tool, ctx.version)
        record = next((r for r in records if r.key[2] == ctx.platform), None)

        if record is None:
            if records:
                pinned_for = ", ".join(sorted({r.key[2] for r in records}))
                logger.warning(
                    "Pinned checksums for %s %s exist for [%s] but not for %s",
                    ctx.tool, ctx.version, pinned_for, ctx.platform,
                )
                return _not_applicable(tier, f"no pinned entry for {ctx.platform} (pinned: {pinned_for})")
            self._suggest_series(ctx)
            return _not_applicable(tier, "no pinned entry")

        if is_placeholder(record.digest):
            logger.warning("Pinned entry for %s %s %s is a placeholder", ctx.tool, ctx.version, ctx.platform)
            return _not_applicable(tier, "pinned entry is a placeholder")
        if not is_valid_digest(record.digest, record.algorithm):
            raise StoreCorruptError(
                f"Pinned digest for {ctx.tool} {ctx.version} {ctx.platform} is malformed",
                [f"{record.algorithm} digest {record.digest!r}"],
                tool=ctx.tool, version=ctx.version, tier=int(tier),
            )

        return _compare(tier, ctx, record.digest, record.algorithm, str(self._store.path))

    def _suggest_series(self, ctx: TierContext) -> None:
        """Log which versions of the same MAJOR.MINOR series are pinned."""
        series = ".".join(ctx.version.split(".")[:2])
        nearby = sorted({
            r.version for r in self._store.load().entries
            if r.tool == ctx.tool
            and r.key[2] == ctx.platform
            and r.version.startswith(f"{series}.")
            and not is_placeholder(r.digest)
        })
        if nearby:
            logger.info(
                "Tip: %s %s is not pinned, but the %s series has pinned checksums for %s "
                "(resolve '%s' to a pinned patch, or run 'trustpin checksums update')",
                ctx.tool, ctx.version, series, ", ".join(nearby), series,
            )

    # ── Tier 3: publisher-published digest ──────────────────────

    def _published(self, ctx: TierContext, enforcement: EnforcementLevel) -> TierAttempt:
        tier = TrustTier.PUBLISHED
        try:
            found = ctx.adapter.published_digest(self._http, ctx.version, ctx.platform, ctx.artifact_url)
        except NetworkError as e:
            return _unretrievable(tier, "publisher checksum", e)
        if found is None:
            return _not_applicable(tier, "publisher does not list a digest for this artifact")
        return _compare(tier, ctx, found.digest, found.algorithm, found.source)

    # ── Tier 4: calculated ──────────────────────────────────────

    def _calculated(self, ctx: TierContext, enforcement: EnforcementLevel) -> TierAttempt:
        tier = TrustTier.CALCULATED
        if enforcement == EnforcementLevel.PINNED_OR_BETTER:
            return TierAttempt(
                tier=tier,
                status=TierStatus.BLOCKED,
                detail=f"enforcement level {enforcement} forbids calculated checksums",
            )
        digest = ctx.digests.get(HashAlgorithm.SHA256)
        return TierAttempt(
            tier=tier,
            status=TierStatus.PASSED,
            detail="calculated locally, not corroborated",
            source="calculated",
            algorithm=HashAlgorithm.SHA256.value,
            computed_digest=digest,
        )

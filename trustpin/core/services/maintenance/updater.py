"""
Auto-update agent — keeps the pinned database current.

For every tracked tool/version/platform (and, on request, every record
already pinned) it re-derives the digest from the publisher's own
checksum source and commits the result through the store's
backup → validate → atomic replace protocol.

Rules:
    * a pinned digest that the publisher now contradicts is a conflict:
      it is reported and never overwritten
    * when the publisher posts nothing, the entry fails unless
      ``allow_calculated`` is set, in which case the artifact is
      downloaded and hashed (the delta case)
    * nothing is written when any record fails validation
"""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from trustpin.adapters.base import ANY_PLATFORM
from trustpin.core.errors import StorageError, StoreCorruptError, TrustpinError
from trustpin.core.models.checksum import ChecksumRecord
from trustpin.core.models.settings import TrackedTool
from trustpin.core.persistence.checksum_store import ChecksumStore, CommitResult
from trustpin.core.services.checksums.digests import compute_digest, digests_equal, is_placeholder
from trustpin.core.services.versions.matching import is_exact_version

logger = logging.getLogger(__name__)


class ItemStatus(StrEnum):
    ADDED = "added"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    CONFLICT = "conflict"
    FAILED = "failed"


@dataclass
class UpdateItem:
    tool: str
    version: str
    platform: str
    status: ItemStatus
    digest: str | None = None
    source: str = ""
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "platform": self.platform,
            "status": str(self.status),
            "digest": self.digest,
            "source": self.source,
            "error": self.error,
        }


@dataclass
class UpdateReport:
    items: list[UpdateItem] = field(default_factory=list)
    commit: CommitResult | None = None
    dry_run: bool = False
    error: TrustpinError | None = None

    def count(self, status: ItemStatus) -> int:
        return sum(1 for i in self.items if i.status == status)

    @property
    def failed(self) -> int:
        return self.count(ItemStatus.FAILED) + self.count(ItemStatus.CONFLICT)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dry_run": self.dry_run,
            "items": [i.to_dict() for i in self.items],
            "summary": {
                "total": len(self.items),
                "added": self.count(ItemStatus.ADDED),
                "updated": self.count(ItemStatus.UPDATED),
                "unchanged": self.count(ItemStatus.UNCHANGED),
                "failed": self.failed,
            },
            "commit": self.commit.to_dict() if self.commit else None,
        }


class ChecksumUpdater:
    """Re-derives pinned checksums from publisher sources."""

    def __init__(self, registry, store: ChecksumStore, http, resolver):
        self._registry = registry
        self._store = store
        self._http = http
        self._resolver = resolver

    # ── Planning ────────────────────────────────────────────────

    def plan(
        self,
        tracked: list[TrackedTool],
        refresh_existing: bool = False,
    ) -> tuple[list[tuple[str, str, str]], list[UpdateItem]]:
        """Targets to derive, plus items that failed before derivation."""
        targets: list[tuple[str, str, str]] = []
        failures: list[UpdateItem] = []

        for entry in tracked:
            version = entry.version
            if not is_exact_version(version):
                try:
                    version = self._resolver.resolve(entry.tool, entry.version).version
                except TrustpinError as e:
                    for platform in entry.platforms:
                        failures.append(UpdateItem(
                            entry.tool, entry.version, platform, ItemStatus.FAILED, error=e.message,
                        ))
                    continue
            adapter = self._registry.get_or_unlisted(entry.tool)
            for platform in entry.platforms:
                targets.append((entry.tool, version, adapter.canonical_platform(platform)))

        if refresh_existing:
            for record in self._store.load().entries:
                targets.append(record.key)

        # Keep first occurrence order, drop repeats
        return list(dict.fromkeys(targets)), failures

    # ── Derivation ──────────────────────────────────────────────

    def derive(self, tool: str, version: str, platform: str, allow_calculated: bool = False) -> ChecksumRecord:
        """Fetch the publisher's digest for one artifact.

        Raises:
            TrustpinError: unknown tool, no source, network failure.
        """
        adapter = self._registry.require(tool)
        url_platform = "amd64" if platform == ANY_PLATFORM else platform
        url = adapter.artifact_url(version, url_platform)
        if not url:
            raise TrustpinError(f"{tool} has no artifact URL builder", tool=tool, version=version)

        found = adapter.published_digest(self._http, version, url_platform, url)
        if found is not None:
            return ChecksumRecord(
                tool=tool, version=version, platform=platform,
                algorithm=found.algorithm, digest=found.digest, source=found.source,
            )

        if not allow_calculated:
            raise TrustpinError(
                f"{tool} {version} publishes no checksum; rerun with calculated digests allowed to pin one",
                tool=tool, version=version,
            )

        logger.warning("Calculating digest for %s %s %s from a download (no publisher checksum)", tool, version, platform)
        with tempfile.TemporaryDirectory(prefix="trustpin-update-") as tmp:
            artifact = Path(tmp) / "artifact"
            self._http.download(url, artifact)
            algorithm = adapter.default_algorithm
            digest = compute_digest(artifact, algorithm)
        return ChecksumRecord(
            tool=tool, version=version, platform=platform,
            algorithm=str(algorithm), digest=digest, source=f"calculated:{url}",
        )

    # ── Run ─────────────────────────────────────────────────────

    def run(
        self,
        tracked: list[TrackedTool],
        *,
        refresh_existing: bool = False,
        dry_run: bool = False,
        allow_calculated: bool = False,
    ) -> UpdateReport:
        """Derive, compare and commit.

        A commit that is refused (validation) or fails (disk) does not
        discard the per-item results: the error lands on ``report.error``.

        Raises:
            StoreCorruptError: the existing store is unreadable.
        """
        report = UpdateReport(dry_run=dry_run)
        targets, report.items = self.plan(tracked, refresh_existing)
        current = self._store.load()
        to_write: list[ChecksumRecord] = []

        for tool, version, platform in targets:
            existing = current.find(tool, version, platform)
            try:
                record = self.derive(tool, version, platform, allow_calculated)
            except TrustpinError as e:
                logger.warning("Cannot derive checksum for %s %s %s: %s", tool, version, platform, e.message)
                report.items.append(UpdateItem(tool, version, platform, ItemStatus.FAILED, error=e.message))
                continue

            if existing is None or is_placeholder(existing.digest):
                status = ItemStatus.ADDED if existing is None else ItemStatus.UPDATED
                to_write.append(record)
            elif existing.algorithm == record.algorithm and digests_equal(existing.digest, record.digest):
                status = ItemStatus.UNCHANGED
            elif existing.algorithm != record.algorithm:
                # Publisher switched algorithms; the old pin cannot be compared
                status = ItemStatus.UPDATED
                to_write.append(record)
            else:
                logger.error(
                    "Pinned digest for %s %s %s disagrees with publisher (%s vs %s), leaving it alone",
                    tool, version, platform, existing.digest, record.digest,
                )
                report.items.append(UpdateItem(
                    tool, version, platform, ItemStatus.CONFLICT,
                    digest=record.digest, source=record.source,
                    error=f"pinned {existing.digest} != published {record.digest}",
                ))
                continue

            report.items.append(UpdateItem(
                tool, version, platform, status, digest=record.digest, source=record.source,
            ))

        if to_write:
            try:
                report.commit = self._store.commit(to_write, dry_run=dry_run)
            except (StoreCorruptError, StorageError) as e:
                logger.error("Derived %d checksum(s) but could not commit them: %s", len(to_write), e.message)
                report.error = e
        else:
            logger.info("Pinned checksums already current, nothing to write")
        return report

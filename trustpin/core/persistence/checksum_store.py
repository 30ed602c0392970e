"""
Pinned checksum store — the file-backed tier 2 database.

Reads are cheap and frequent (every verified download). Writes happen
only through ``commit()``, which follows a fixed protocol:

    1. copy the live file to ``<name>.backup-YYYYmmdd-HHMMSS``
    2. apply the changes to an in-memory copy
    3. validate the whole document (digest formats, duplicate keys,
       no placeholder among the records being written,
       ``metadata.generated`` strictly advanced)
    4. write a temp file in the same directory and rename it over the
       live file

If step 3 fails nothing is written and the live file is left
byte-for-byte as it was.
"""

from __future__ import annotations

import json
import logging
import shutil
import tempfile
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from trustpin.core.errors import StorageError, StoreCorruptError
from trustpin.core.models.checksum import ChecksumRecord, PinnedDatabase, normalize_platform
from trustpin.core.services.checksums.digests import is_placeholder, is_valid_digest
from trustpin.core.services.versions.matching import syntax_error

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup-"


def _parse_timestamp(value: str) -> datetime | None:
    try:
        ts = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    return ts if ts.tzinfo else ts.replace(tzinfo=UTC)


def validate_database(
    db: PinnedDatabase,
    previous_generated: str | None = None,
    *,
    changed: set[tuple[str, str, str]] | None = None,
) -> list[str]:
    """Structural problems with ``db``; an empty list means valid.

    Args:
        db: The document to check.
        previous_generated: When set, ``metadata.generated`` must be
            strictly later than this timestamp.
        changed: Keys written by the current commit. When given,
            placeholder digests are only errors on these records;
            placeholders already in the store are carried over as-is
            (they count as absent at lookup time).
    """
    errors: list[str] = []

    generated = _parse_timestamp(db.metadata.generated)
    if generated is None:
        errors.append(f"metadata.generated is not an ISO timestamp: {db.metadata.generated!r}")
    elif previous_generated:
        previous = _parse_timestamp(previous_generated)
        if previous is not None and generated <= previous:
            errors.append(
                f"metadata.generated did not advance ({db.metadata.generated} <= {previous_generated})"
            )

    seen: dict[tuple[str, str, str], int] = {}
    for i, record in enumerate(db.entries):
        where = f"entries[{i}] ({record.tool} {record.version} {record.platform})"
        if not record.tool or not record.platform:
            errors.append(f"{where}: tool and platform are required")
        version_problem = syntax_error(record.version)
        if version_problem:
            errors.append(f"{where}: {version_problem}")
        if is_placeholder(record.digest):
            if changed is None or record.key in changed:
                errors.append(f"{where}: placeholder digest {record.digest!r}")
        elif not is_valid_digest(record.digest, record.algorithm):
            errors.append(
                f"{where}: digest is not lowercase hex of the length {record.algorithm!r} requires"
            )
        if record.tier != 2:
            errors.append(f"{where}: only tier 2 records may be stored (got tier {record.tier})")
        if record.key in seen:
            errors.append(f"{where}: duplicate of entries[{seen[record.key]}]")
        else:
            seen[record.key] = i

    return errors


@dataclass
class CommitResult:
    """What a commit did (or would do, for a dry run)."""

    added: int = 0
    replaced: int = 0
    removed: int = 0
    generated: str = ""
    backup_path: Path | None = None
    dry_run: bool = False
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "added": self.added,
            "replaced": self.replaced,
            "removed": self.removed,
            "generated": self.generated,
            "backup_path": str(self.backup_path) if self.backup_path else None,
            "dry_run": self.dry_run,
            "errors": self.errors,
        }


class ChecksumStore:
    """Reader and sole writer of the pinned database file."""

    def __init__(self, path: Path, clock: Callable[[], datetime] | None = None):
        self._path = path
        self._clock = clock or (lambda: datetime.now(UTC))

    @property
    def path(self) -> Path:
        return self._path

    # ── Reading ─────────────────────────────────────────────────

    def load(self) -> PinnedDatabase:
        """Parse the store. A missing file is an empty database.

        Raises:
            StoreCorruptError: unreadable JSON or wrong document shape.
        """
        if not self._path.is_file():
            logger.info("No checksum store at %s — treating as empty", self._path)
            return PinnedDatabase()

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return PinnedDatabase.model_validate(data)
        except json.JSONDecodeError as e:
            raise StoreCorruptError(f"Checksum store {self._path} is not valid JSON: {e}", [str(e)]) from e
        except ValidationError as e:
            problems = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            raise StoreCorruptError(f"Checksum store {self._path} has the wrong shape", problems) from e

    def get(self, tool: str, version: str, platform: str) -> ChecksumRecord | None:
        """Look up a usable pinned record. Placeholder digests count as absent."""
        record = self.load().find(tool, version, platform)
        if record is None or is_placeholder(record.digest):
            return None
        return record

    def for_release(self, tool: str, version: str) -> list[ChecksumRecord]:
        return self.load().for_release(tool, version)

    def validate(self) -> list[str]:
        """Structural errors in the live file, including parse errors.

        A missing file is a valid empty database, as it is for ``load()``.
        """
        if not self._path.is_file():
            return []
        try:
            db = self.load()
        except StoreCorruptError as e:
            return e.errors or [e.message]
        return validate_database(db)

    # ── Writing ─────────────────────────────────────────────────

    def upsert(self, record: ChecksumRecord) -> CommitResult:
        """Pin a single record (maintenance use)."""
        return self.commit([record])

    def commit(
        self,
        records: Iterable[ChecksumRecord],
        remove: Iterable[tuple[str, str, str]] = (),
        *,
        dry_run: bool = False,
    ) -> CommitResult:
        """Apply upserts/removals under the backup → validate → replace protocol.

        Raises:
            StoreCorruptError: the current store or the updated document
                fails validation. The live file is untouched.
            StorageError: the backup or the new file could not be written.
        """
        current = self.load()
        previous_generated = current.metadata.generated or None
        result = CommitResult(dry_run=dry_run)

        if not dry_run:
            result.backup_path = self._backup()

        updated = current.model_copy(deep=True)
        for key in remove:
            tool, version, platform = key
            wanted = (tool, version, normalize_platform(platform))
            before = len(updated.entries)
            updated.entries = [r for r in updated.entries if r.key != wanted]
            result.removed += before - len(updated.entries)
        changed: set[tuple[str, str, str]] = set()
        for record in records:
            changed.add(record.key)
            if updated.upsert(record):
                result.replaced += 1
            else:
                result.added += 1

        updated.metadata.generated = self._clock().isoformat()
        result.generated = updated.metadata.generated

        errors = validate_database(updated, previous_generated, changed=changed)
        if errors:
            result.errors = errors
            logger.error("Checksum store update rejected: %d validation error(s)", len(errors))
            raise StoreCorruptError(
                f"Refusing to write {self._path}: {errors[0]}"
                + (f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""),
                errors,
            )

        if dry_run:
            logger.info("Dry run: %d added, %d replaced, %d removed", result.added, result.replaced, result.removed)
            return result

        self._write_atomic(updated)
        logger.info(
            "Checksum store %s updated: %d added, %d replaced, %d removed",
            self._path, result.added, result.replaced, result.removed,
        )
        return result

    def _backup(self) -> Path | None:
        if not self._path.is_file():
            return None
        stamp = self._clock().strftime("%Y%m%d-%H%M%S")
        backup = self._path.with_name(f"{self._path.name}{BACKUP_SUFFIX}{stamp}")
        n = 1
        while backup.exists():
            backup = self._path.with_name(f"{self._path.name}{BACKUP_SUFFIX}{stamp}.{n}")
            n += 1
        try:
            shutil.copy2(self._path, backup)
        except OSError as e:
            raise StorageError(f"Cannot back up {self._path} to {backup}: {e}", path=str(backup)) from e
        logger.debug("Backed up %s → %s", self._path, backup)
        return backup

    def _write_atomic(self, db: PinnedDatabase) -> None:
        content = json.dumps(db.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, prefix=".checksums_", suffix=".tmp")
            tmp = Path(tmp_path)
            try:
                with open(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                tmp.replace(self._path)
            except Exception:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Failed to write checksum store %s: %s", self._path, e)
            raise StorageError(f"Cannot write checksum store {self._path}: {e}", path=str(self._path)) from e

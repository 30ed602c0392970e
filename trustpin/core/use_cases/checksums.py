"""
Checksum database use cases — look up, validate, and refresh pins.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from trustpin.core.errors import StoreCorruptError, TrustpinError
from trustpin.core.models.checksum import ChecksumRecord
from trustpin.core.services.maintenance.updater import ChecksumUpdater, UpdateReport
from trustpin.core.session import Session


@dataclass
class LookupResult:
    tool: str
    version: str
    platform: str
    record: ChecksumRecord | None = None
    other_platforms: list[str] = field(default_factory=list)
    error: TrustpinError | None = None

    @property
    def exit_code(self) -> int:
        if self.error is not None:
            return self.error.exit_code
        return 0 if self.record else 1

    def to_dict(self) -> dict:
        data = {
            "tool": self.tool,
            "version": self.version,
            "platform": self.platform,
            "found": self.record is not None,
            "record": self.record.model_dump(mode="json") if self.record else None,
            "other_platforms": self.other_platforms,
        }
        if self.error is not None:
            data.update(self.error.to_dict())
        return data


def get_checksum(session: Session, tool: str, version: str, platform: str) -> LookupResult:
    adapter = session.registry.get_or_unlisted(tool)
    plat = adapter.canonical_platform(platform)
    result = LookupResult(tool=tool, version=version, platform=plat)
    try:
        result.record = session.store.get(tool, version, plat)
        if result.record is None:
            result.other_platforms = sorted(
                {r.key[2] for r in session.store.for_release(tool, version)} - {plat}
            )
    except StoreCorruptError as e:
        result.error = e
    return result


@dataclass
class ValidateResult:
    path: str
    errors: list[str] = field(default_factory=list)
    entry_count: int = 0
    generated: str = ""

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def exit_code(self) -> int:
        return 0 if self.valid else 2

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "valid": self.valid,
            "entry_count": self.entry_count,
            "generated": self.generated,
            "errors": self.errors,
        }


def validate_store(session: Session) -> ValidateResult:
    store = session.store
    result = ValidateResult(path=str(store.path))
    result.errors = store.validate()
    if not result.errors:
        db = store.load()
        result.entry_count = len(db.entries)
        result.generated = db.metadata.generated
    return result


@dataclass
class UpdateResult:
    report: UpdateReport | None = None
    error: TrustpinError | None = None

    @property
    def exit_code(self) -> int:
        if self.error is not None:
            return self.error.exit_code
        assert self.report is not None
        return 1 if self.report.failed else 0

    def to_dict(self) -> dict:
        data = self.report.to_dict() if self.report else {}
        if self.error is not None:
            data.update(self.error.to_dict())
        return data


def update_checksums(
    session: Session,
    *,
    dry_run: bool = False,
    refresh_existing: bool = False,
    allow_calculated: bool = False,
) -> UpdateResult:
    updater = ChecksumUpdater(session.registry, session.store, session.http, session.resolver)
    result = UpdateResult()
    try:
        result.report = updater.run(
            session.settings.tracked,
            refresh_existing=refresh_existing,
            dry_run=dry_run,
            allow_calculated=allow_calculated,
        )
    except StoreCorruptError as e:
        result.error = e
        return result
    result.error = result.report.error
    return result

"""
Version check use case — batch comparison of tracked versions.
"""

from __future__ import annotations

from trustpin.core.services.maintenance.version_check import CheckReport, VersionChecker
from trustpin.core.session import Session


def check_versions(session: Session) -> CheckReport:
    checker = VersionChecker(session.registry, session.http)
    return checker.check(session.settings.tracked)

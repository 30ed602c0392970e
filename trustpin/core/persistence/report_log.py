"""
Verification report log — append-only NDJSON record of every verified
download, one line per VerificationOutcome.

Build logs scroll away; this file keeps the answer to "which tier
vouched for this artifact" around for later audits.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from trustpin.core.models.verification import VerificationOutcome

logger = logging.getLogger(__name__)


class ReportLog:
    """Append-only writer/reader for verification reports."""

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def append(self, outcome: VerificationOutcome) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(outcome.to_report(), ensure_ascii=False) + "\n"
        try:
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("Report written: %s %s (tier %d)", outcome.tool, outcome.version, outcome.tier)
        except OSError as e:
            logger.error("Failed to write verification report: %s", e)

    def read_all(self) -> list[dict]:
        """All reports, oldest first. Corrupt lines are skipped."""
        if not self._path.is_file():
            return []

        reports = []
        with self._path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    reports.append(json.loads(line))
                except json.JSONDecodeError as e:
                    logger.warning("Skipping corrupt report at line %d: %s", line_num, e)
        return reports

"""
Verify use case — download one artifact through the trust tiers.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from trustpin.core.errors import TrustpinError
from trustpin.core.models.verification import VerificationOutcome
from trustpin.core.session import Session


@dataclass
class VerifyResult:
    tool: str
    version: str
    outcome: VerificationOutcome | None = None
    error: TrustpinError | None = None

    @property
    def exit_code(self) -> int:
        return self.error.exit_code if self.error else 0

    def to_dict(self) -> dict:
        if self.error is not None:
            return {"ok": False, **self.error.to_dict()}
        assert self.outcome is not None
        return {"ok": True, **self.outcome.to_report()}


def verify_artifact(
    session: Session,
    tool: str,
    version: str,
    platform: str = "amd64",
    url: str | None = None,
    output: Path | None = None,
    require_verified: bool | None = None,
) -> VerifyResult:
    """Download and verify; errors are captured in the result.

    Args:
        require_verified: Overrides the configured enforcement for this
            call (True forbids the calculated tier).
    """
    result = VerifyResult(tool=tool, version=version)
    verifier = session.verifier(require_verified=require_verified)
    try:
        result.outcome = verifier.verify_download(tool, version, platform, url, dest=output)
    except TrustpinError as e:
        result.error = e
    return result

"""
Domain models — versions, pinned checksums, verification outcomes.
"""

from trustpin.core.models.checksum import (  # noqa: F401
    ChecksumRecord,
    DatabaseMetadata,
    HashAlgorithm,
    PinnedDatabase,
    normalize_platform,
)
from trustpin.core.models.settings import (  # noqa: F401
    HttpSettings,
    RetrySettings,
    Settings,
    TrackedTool,
)
from trustpin.core.models.verification import (  # noqa: F401
    TIER_SEQUENCE,
    EnforcementLevel,
    TierAttempt,
    TierStatus,
    TrustTier,
    VerificationOutcome,
)
from trustpin.core.models.version import (  # noqa: F401
    Channel,
    ReleaseCandidate,
    ResolutionMethod,
    ResolvedVersion,
    SpecKind,
    VersionSpec,
)

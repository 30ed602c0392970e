"""
Session — wires one invocation's collaborators together from Settings.

Caches, retry counters and HTTP state belong to the session object, so
two sessions (or two tests) never share them.
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from dataclasses import dataclass

from trustpin.adapters.registry import ToolRegistry, default_registry
from trustpin.core.models.settings import Settings
from trustpin.core.persistence.checksum_store import ChecksumStore
from trustpin.core.persistence.report_log import ReportLog
from trustpin.core.reliability.retry import Retrier, RetryPolicy
from trustpin.core.services.checksums.executor import DownloadVerifier
from trustpin.core.services.checksums.signatures import SignatureVerifier
from trustpin.core.services.http_client import HttpClient, ResponseCache
from trustpin.core.services.versions.resolver import VersionResolver


@dataclass
class Session:
    settings: Settings
    registry: ToolRegistry
    http: HttpClient
    store: ChecksumStore
    signatures: SignatureVerifier
    report_log: ReportLog | None = None

    @property
    def resolver(self) -> VersionResolver:
        return VersionResolver(self.registry, self.http)

    def verifier(self, require_verified: bool | None = None) -> DownloadVerifier:
        settings = self.settings
        if require_verified is not None:
            settings = settings.model_copy(update={"require_verified": require_verified})
        return DownloadVerifier(
            self.registry,
            self.store,
            self.http,
            self.signatures,
            enforcement=settings.enforcement,
            report_log=self.report_log,
        )


def open_session(
    settings: Settings,
    *,
    registry: ToolRegistry | None = None,
    http=None,
    sleep: Callable[[float], None] = time.sleep,
) -> Session:
    """Build a session. ``registry`` and ``http`` may be injected for tests."""
    if http is None:
        policy = RetryPolicy(
            max_attempts=settings.retry.max_attempts,
            initial_delay=settings.retry.initial_delay,
            max_delay=settings.retry.max_delay,
            jitter=settings.retry.jitter,
        )
        http = HttpClient(
            Retrier(policy, sleep=sleep, rng=random.Random()),
            timeout=settings.http.timeout,
            user_agent=settings.http.user_agent,
            github_token=settings.github_token,
            cache=ResponseCache(ttl=settings.http.cache_ttl),
        )
    report_path = settings.report_log_path
    return Session(
        settings=settings,
        registry=registry or default_registry(),
        http=http,
        store=ChecksumStore(settings.checksums_path),
        signatures=SignatureVerifier(settings.gpg_keys_path),
        report_log=ReportLog(report_path) if report_path else None,
    )

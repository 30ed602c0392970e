"""
Shared test fixtures and fakes.

Nothing here touches the network: ``FakeHttp`` serves canned bodies by
URL and records every request so tests can assert on call counts.
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from trustpin.adapters.base import ToolAdapter
from trustpin.adapters.registry import ToolRegistry
from trustpin.core.errors import NetworkError
from trustpin.core.models.settings import Settings
from trustpin.core.models.version import ReleaseCandidate
from trustpin.core.observability.logging_config import SECURITY_LOGGER
from trustpin.core.persistence.checksum_store import ChecksumStore
from trustpin.core.services.checksums.published import published
from trustpin.core.services.checksums.signatures import SignatureResult
from trustpin.core.session import Session


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class FakeHttp:
    """Stand-in for HttpClient: URL → bytes, or URL → exception."""

    def __init__(self, routes: dict[str, bytes | str | Exception] | None = None):
        self.routes: dict[str, bytes | str | Exception] = dict(routes or {})
        self.requests: list[str] = []

    @property
    def request_count(self) -> int:
        return len(self.requests)

    def _lookup(self, url: str) -> bytes:
        self.requests.append(url)
        if url not in self.routes:
            raise NetworkError(f"HTTP 404 from {url}", url=url, status=404, retryable=False)
        body = self.routes[url]
        if isinstance(body, Exception):
            raise body
        return body.encode() if isinstance(body, str) else body

    def get_bytes(self, url: str, *, use_cache: bool = True) -> bytes:
        return self._lookup(url)

    def get_text(self, url: str, *, use_cache: bool = True) -> str:
        return self._lookup(url).decode()

    def get_json(self, url: str, *, use_cache: bool = True):
        return json.loads(self._lookup(url))

    def download(self, url: str, dest: Path) -> int:
        body = self._lookup(url)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(body)
        return len(body)


class FakeTool(ToolAdapter):
    """Configurable adapter; counts how often each hook runs."""

    def __init__(
        self,
        name: str = "faketool",
        releases: list[ReleaseCandidate] | None = None,
        digest: str | None = None,
        signature=None,
        base_url: str = "https://dl.example.com",
    ):
        self._name = name
        self.releases = releases or []
        self.digest = digest
        self.signature = signature
        self.base_url = base_url
        self.calls: dict[str, int] = {"list_releases": 0, "published_digest": 0, "signature_source": 0}

    @property
    def name(self) -> str:
        return self._name

    def list_releases(self, http):
        self.calls["list_releases"] += 1
        http.get_bytes(f"{self.base_url}/{self._name}/releases.json")
        return list(self.releases)

    def artifact_url(self, version, platform):
        version, plat = self.checked(version, platform)
        return f"{self.base_url}/{self._name}-{version}-{plat}.tar.gz"

    def published_digest(self, http, version, platform, artifact_url):
        self.calls["published_digest"] += 1
        if self.digest is None:
            return None
        return published(self.digest, f"{artifact_url}.sha256")

    def signature_source(self, version, platform, artifact_url):
        self.calls["signature_source"] += 1
        return self.signature


class FakeSignatures:
    """SignatureVerifier stand-in with a fixed answer."""

    def __init__(self, result: SignatureResult = SignatureResult.UNAVAILABLE, has_keys: bool = True):
        self.result = result
        self._has_keys = has_keys
        self.verified: list[tuple[str, Path, Path]] = []

    def has_keys(self, tool, kind) -> bool:
        return self._has_keys

    def verify(self, kind, tool, signature: Path, data: Path) -> SignatureResult:
        self.verified.append((tool, signature, data))
        return self.result


class StepClock:
    """Clock that advances one second per call."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 5, 10, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def write_store(path: Path, entries: list[dict], generated: str = "2026-01-01T00:00:00+00:00") -> Path:
    path.write_text(json.dumps({"metadata": {"generated": generated, "schema_version": 1}, "entries": entries}, indent=2))
    return path


def pinned_entry(tool: str, version: str, platform: str, digest: str, algorithm: str = "sha256") -> dict:
    return {
        "tool": tool,
        "version": version,
        "platform": platform,
        "algorithm": algorithm,
        "digest": digest,
        "tier": 2,
        "captured_at": "2026-01-01T00:00:00+00:00",
        "source": "test",
    }


@pytest.fixture(autouse=True)
def _restore_logging():
    """CLI tests call setup_logging(); undo it so caplog keeps working."""
    root = logging.getLogger()
    security = logging.getLogger(SECURITY_LOGGER)
    saved = (list(root.handlers), root.level, list(security.handlers), security.level, security.propagate)
    yield
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])
    security.handlers[:] = saved[2]
    security.setLevel(saved[3])
    security.propagate = saved[4]


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "checksums.json"


@pytest.fixture
def store(store_path: Path) -> ChecksumStore:
    return ChecksumStore(store_path, clock=StepClock())


@pytest.fixture
def http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def make_session(tmp_path: Path):
    """Build a Session around fakes."""

    def _make(
        http: FakeHttp,
        adapters: list[ToolAdapter] | None = None,
        signatures=None,
        **settings_kwargs,
    ) -> Session:
        settings = Settings(base_dir=str(tmp_path), **settings_kwargs)
        registry = ToolRegistry()
        for adapter in adapters or []:
            registry.register(adapter)
        return Session(
            settings=settings,
            registry=registry,
            http=http,
            store=ChecksumStore(settings.checksums_path, clock=StepClock()),
            signatures=signatures or FakeSignatures(has_keys=False),
        )

    return _make

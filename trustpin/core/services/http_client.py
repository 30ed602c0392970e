"""
HTTP client — every network call the engine makes goes through here.

Built on ``urllib.request``. Each request runs under the session's
``Retrier``; JSON/text lookups are memoised in a ``ResponseCache``
that the client owns (one hour TTL by default), so repeated feed
lookups within a session hit the network once.

Artifacts are streamed to disk and never cached.
"""

from __future__ import annotations

import http.client
import json
import logging
import shutil
import time
import urllib.error
import urllib.request
from collections.abc import Callable
from pathlib import Path
from typing import Any

from trustpin.core.errors import NetworkError, StorageError
from trustpin.core.reliability.retry import Retrier

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "trustpin/0.1"
DEFAULT_TIMEOUT = 30

# Server answers that will not change by asking again
_PERMANENT_STATUSES = frozenset({400, 401, 404, 405, 410, 451})


class ResponseCache:
    """Process-local TTL cache keyed by URL."""

    def __init__(self, ttl: float = 3600.0, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, bytes]] = {}

    def get(self, url: str) -> bytes | None:
        entry = self._entries.get(url)
        if entry is None:
            return None
        stored_at, body = entry
        if self._clock() - stored_at > self.ttl:
            del self._entries[url]
            return None
        return body

    def put(self, url: str, body: bytes) -> None:
        self._entries[url] = (self._clock(), body)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class HttpClient:
    """Retrying, caching HTTP GET client."""

    def __init__(
        self,
        retrier: Retrier | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        github_token: str | None = None,
        cache: ResponseCache | None = None,
    ):
        self.retrier = retrier or Retrier()
        self.timeout = timeout
        self.user_agent = user_agent
        self.github_token = github_token
        self.cache = cache if cache is not None else ResponseCache()
        self.request_count = 0

    # ── Public API ──────────────────────────────────────────────

    def get_bytes(self, url: str, *, use_cache: bool = True) -> bytes:
        """Fetch a small document into memory."""
        if use_cache:
            cached = self.cache.get(url)
            if cached is not None:
                logger.debug("Cache hit: %s", url)
                return cached

        body = self.retrier.call(lambda: self._fetch(url), description=f"GET {url}")
        if use_cache:
            self.cache.put(url, body)
        return body

    def get_text(self, url: str, *, use_cache: bool = True) -> str:
        return self.get_bytes(url, use_cache=use_cache).decode("utf-8", errors="replace")

    def get_json(self, url: str, *, use_cache: bool = True) -> Any:
        body = self.get_bytes(url, use_cache=use_cache)
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise NetworkError(
                f"Malformed JSON from {url}: {e}", url=url, retryable=False,
            ) from e

    def download(self, url: str, dest: Path) -> int:
        """Stream ``url`` into ``dest``. Returns the number of bytes written."""
        return self.retrier.call(
            lambda: self._stream(url, dest), description=f"download {url}",
        )

    # ── Internals ───────────────────────────────────────────────

    def _request(self, url: str) -> urllib.request.Request:
        headers = {"User-Agent": self.user_agent}
        if "api.github.com" in url:
            headers["Accept"] = "application/vnd.github+json"
            if self.github_token:
                headers["Authorization"] = f"Bearer {self.github_token}"
        return urllib.request.Request(url, headers=headers)

    def _open(self, url: str):
        if not url.startswith(("https://", "http://")):
            raise NetworkError(f"Unsupported URL scheme: {url}", url=url, retryable=False)
        self.request_count += 1
        logger.debug("GET %s", url)
        try:
            return urllib.request.urlopen(self._request(url), timeout=self.timeout)
        except urllib.error.HTTPError as e:
            raise self._http_error(url, e) from e
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            reason = getattr(e, "reason", e)
            raise NetworkError(f"Cannot reach {url}: {reason}", url=url) from e

    def _fetch(self, url: str) -> bytes:
        with self._open(url) as resp:
            try:
                return resp.read()
            except (OSError, http.client.HTTPException) as e:
                raise NetworkError(f"Response from {url} cut short: {e!r}", url=url) from e

    def _stream(self, url: str, dest: Path) -> int:
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create {dest.parent}: {e}", path=str(dest.parent)) from e

        try:
            with self._open(url) as resp, dest.open("wb") as f:
                expected = _content_length(resp)
                shutil.copyfileobj(resp, f, length=64 * 1024)
        except (OSError, http.client.HTTPException) as e:
            raise NetworkError(f"Download of {url} interrupted: {e!r}", url=url) from e

        written = dest.stat().st_size
        if expected is not None and written != expected:
            # read() returns b"" when the peer closes early, so copyfileobj stops quietly
            raise NetworkError(
                f"Download of {url} truncated: got {written} of {expected} bytes", url=url,
            )
        return written

    def _http_error(self, url: str, e: urllib.error.HTTPError) -> NetworkError:
        status = e.code
        if status == 403 and "api.github.com" in url:
            remaining = e.headers.get("X-RateLimit-Remaining") if e.headers else None
            if remaining == "0":
                hint = "" if self.github_token else " (set GITHUB_TOKEN to raise the limit)"
                return NetworkError(
                    f"GitHub API rate limit exceeded{hint}",
                    url=url, status=status, retryable=False,
                )
        retryable = status not in _PERMANENT_STATUSES and status != 403
        return NetworkError(
            f"HTTP {status} from {url}", url=url, status=status, retryable=retryable,
        )


def _content_length(resp) -> int | None:
    """Declared body size, or None when the server sent no usable header."""
    headers = getattr(resp, "headers", None)
    value = headers.get("Content-Length") if headers is not None else None
    if not isinstance(value, str) or not value.strip().isdigit():
        return None
    return int(value)

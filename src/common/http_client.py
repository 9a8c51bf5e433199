"""Shared fetch helpers used by the resolver, index and fetch-step code.

Encapsulates request/timeout error handling and outbound pacing so the core
modules only ever see ``fetch(uri) -> (status, bytes)``. Local paths and
``file://`` URIs are served from disk without touching the rate limiter.
"""
from __future__ import annotations

import logging
import os
import threading
import time
from typing import Callable, Optional, Tuple
from urllib.parse import unquote, urlsplit

import requests

from constants import Constants
from common.errors import FetchError
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


class RateLimiter:
    """Token bucket limiting outbound requests.

    ``rate`` tokens are added per second up to ``burst``; ``acquire`` blocks
    until a token is available.
    """

    def __init__(
        self,
        rate: Optional[float] = None,
        burst: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        rate = Constants.RATE_LIMIT_PER_SEC if rate is None else rate
        burst = Constants.RATE_LIMIT_BURST if burst is None else burst
        if rate <= 0:
            raise ValueError("rate must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self.rate = float(rate)
        self.burst = int(burst)
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(burst)
        self._last = clock()
        self._lock = threading.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last)
        self._last = now
        self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)

    def acquire(self) -> float:
        """Take one token, sleeping as needed. Returns the time spent waiting."""
        waited = 0.0
        with self._lock:
            self._refill()
            while self._tokens < 1.0:
                delay = (1.0 - self._tokens) / self.rate
                self._sleep(delay)
                waited += delay
                self._refill()
            self._tokens -= 1.0
        return waited


def _local_path(uri: str) -> Optional[str]:
    """Return a filesystem path for file:// URIs and bare paths, else None."""
    parts = urlsplit(uri)
    if parts.scheme == "file":
        return unquote(parts.path)
    if parts.scheme in ("http", "https"):
        return None
    if parts.scheme and len(parts.scheme) > 1:
        # ftp:// and friends are not supported
        return None
    return uri


class HttpClient:
    """Blocking byte fetcher with a shared rate limiter."""

    def __init__(
        self,
        limiter: Optional[RateLimiter] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.limiter = limiter or RateLimiter()
        self.timeout = Constants.REQUEST_TIMEOUT if timeout is None else timeout
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", Constants.USER_AGENT)

    def fetch(self, uri: str) -> Tuple[int, bytes]:
        """Retrieve ``uri`` and return ``(status, body)``.

        Raises:
            FetchError: on transport failures (connection, timeout, unreadable file).
        """
        path = _local_path(uri)
        if path is not None:
            return self._read_file(path)
        return self._get(uri)

    def _read_file(self, path: str) -> Tuple[int, bytes]:
        if not os.path.isfile(path):
            logger.debug("Local file not found: %s", path)
            return 404, b""
        try:
            with open(path, "rb") as fh:
                return 200, fh.read()
        except OSError as exc:
            raise FetchError(f"reading {path}: {exc}") from exc

    def _get(self, uri: str) -> Tuple[int, bytes]:
        safe_target = safe_url(uri)
        waited = self.limiter.acquire()
        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request",
                        component="http_client",
                        action="GET",
                        target=safe_target,
                        throttled_ms=int(waited * 1000),
                    ),
                )
            try:
                res = self.session.get(uri, timeout=self.timeout)
            except requests.Timeout as exc:
                logger.warning("Request for %s timed out after %s seconds", safe_target, self.timeout)
                raise FetchError(f"timed out getting {safe_target}") from exc
            except requests.RequestException as exc:  # includes ConnectionError
                logger.warning("Connection error for %s: %s", safe_target, exc)
                raise FetchError(f"failed getting {safe_target}: {exc}") from exc
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                ),
            )
        return res.status_code, res.content

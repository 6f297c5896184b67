"""
ClickUp API Client for the time-tracking MCP server.

1. requests.Session with HTTP keep-alive & connection pooling
2. Thread-safe token-bucket rate limiter
3. Connection-level retries only; HTTP error statuses are returned to the caller
4. Constructed explicitly and passed to the services that need it
"""

import logging
import threading
import time
from typing import Dict, Optional, Any, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from clickup_time.config import BASE_URL, CLICKUP_RATE_LIMIT_PER_MIN

logger = logging.getLogger(__name__)


# ============================================================================
# RATE LIMITER
# ============================================================================


class RateLimiter:
    """Thread-safe token-bucket rate limiter for ClickUp API."""

    def __init__(self, requests_per_minute: int = 100):
        self.rps = requests_per_minute / 60.0
        self.burst = max(1, min(150, int(requests_per_minute * 0.15)))
        self.tokens = float(self.burst)
        self.last = time.time()
        self._lock = threading.Lock()

    def acquire(self, n: int = 1) -> float:
        with self._lock:
            now = time.time()
            self.tokens = min(self.burst, self.tokens + (now - self.last) * self.rps)
            self.last = now

            if self.tokens >= n:
                self.tokens -= n
                return 0.0

            deficit = n - self.tokens
            wait = deficit / self.rps
            self.tokens = 0

        # Sleep outside the lock to avoid blocking other threads
        if wait > 0:
            logger.debug("Rate limiter sleeping %.2fs", wait)
            time.sleep(wait)
        return wait


# ============================================================================
# CLICKUP API CLIENT
# ============================================================================


def _error_text(r: requests.Response) -> str:
    return f"API {r.status_code}: {r.text[:200]}"


class ClickUpClient:
    """
    Thin ClickUp v2 HTTP client.

    Every verb returns ``(data, error_or_None)``; it never raises for HTTP
    failures so callers decide how to surface them.
    """

    def __init__(
        self,
        api_token: str,
        team_id: Optional[str] = None,
        base_url: str = BASE_URL,
        requests_per_minute: int = CLICKUP_RATE_LIMIT_PER_MIN,
        pool_size: int = 20,
    ):
        self.base_url = base_url.rstrip("/")
        self._team_id = team_id

        # --- Pooled Session ---
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": api_token or "",
                "Content-Type": "application/json",
            }
        )

        # Only connection-level failures are retried; the request never
        # reached ClickUp, so POSTs (start timer, add entry) stay safe.
        retry_strategy = Retry(
            total=3,
            connect=3,
            read=0,
            status=0,
            backoff_factor=0.5,
            raise_on_status=False,
            raise_on_redirect=False,
        )
        adapter = HTTPAdapter(
            pool_connections=pool_size,
            pool_maxsize=pool_size,
            max_retries=retry_strategy,
        )
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

        self.limiter = RateLimiter(requests_per_minute=requests_per_minute)

    # ------------------------------------------------------------------
    # Core HTTP Methods
    # ------------------------------------------------------------------

    def get(
        self, endpoint: str, params=None, timeout: int = 30
    ) -> Tuple[Optional[Any], Optional[str]]:
        """GET ``endpoint``. Returns (data, error_or_None)."""
        self.limiter.acquire()
        try:
            r = self.session.get(
                f"{self.base_url}{endpoint}", params=params, timeout=timeout
            )
            if r.status_code == 200:
                return r.json(), None
            return None, _error_text(r)
        except (requests.RequestException, ValueError) as e:
            return None, str(e)

    def post(
        self, endpoint: str, payload=None, params=None, timeout: int = 30
    ) -> Tuple[Optional[Any], Optional[str]]:
        self.limiter.acquire()
        try:
            r = self.session.post(
                f"{self.base_url}{endpoint}",
                json=payload,
                params=params,
                timeout=timeout,
            )
            return (
                (r.json(), None)
                if r.status_code in (200, 201)
                else (None, _error_text(r))
            )
        except (requests.RequestException, ValueError) as e:
            return None, str(e)

    def delete(
        self, endpoint: str, timeout: int = 30
    ) -> Tuple[Optional[Dict], Optional[str]]:
        self.limiter.acquire()
        try:
            r = self.session.delete(f"{self.base_url}{endpoint}", timeout=timeout)
            return (
                ({}, None)
                if r.status_code in (200, 204)
                else (None, _error_text(r))
            )
        except requests.RequestException as e:
            return None, str(e)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def get_team_id(self) -> Optional[str]:
        """Returns workspace/team ID (looked up once when not configured)."""
        if self._team_id:
            return self._team_id
        d, err = self.get("/team")
        if d and d.get("teams"):
            self._team_id = d["teams"][0]["id"]
            return self._team_id
        logger.warning("Could not determine ClickUp team id: %s", err)
        return None

"""Per-IP sliding window rate limiting for the /api routes.

Two windows are kept per client:

- every ``/api/`` request counts towards ``RATE_LIMIT_MAX_REQUESTS``;
- failed login/register attempts (status >= 400) count towards
  ``AUTH_RATE_LIMIT_MAX_ATTEMPTS``. Successful attempts are not counted.

State lives in process memory, so limits are per worker.
"""
import logging
import time
from collections import defaultdict
from threading import Lock
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.core.config import settings

logger = logging.getLogger(__name__)

API_PREFIX = "/api/"
AUTH_PATHS = {"/api/auth/login", "/api/auth/register"}

API_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."
AUTH_LIMIT_MESSAGE = "Too many authentication attempts, please try again later."


class SlidingWindow:
    """Timestamps of recent hits per key, trimmed to the window on access.

    Keys whose hits have all expired are swept every ``sweep_every`` hits so
    clients that never return do not accumulate.
    """

    def __init__(self, sweep_every: int = 1000):
        self._hits: Dict[str, List[float]] = defaultdict(list)
        self._lock = Lock()
        self._sweep_every = sweep_every
        self._hits_since_sweep = 0

    def __len__(self) -> int:
        return len(self._hits)

    def _trim(self, key: str, now: float, window: int) -> List[float]:
        hits = [ts for ts in self._hits.get(key, ()) if ts > now - window]
        if hits:
            self._hits[key] = hits
        else:
            self._hits.pop(key, None)
        return hits

    def _retry_after(self, hits: List[float], now: float, window: int) -> int:
        return int(hits[0] + window - now) + 1

    def _record(self, key: str, now: float, window: int) -> None:
        self._hits[key].append(now)
        self._hits_since_sweep += 1
        if self._hits_since_sweep >= self._sweep_every:
            self._sweep(now, window)

    def _sweep(self, now: float, window: int) -> None:
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= now - window]
        for key in stale:
            del self._hits[key]
        self._hits_since_sweep = 0
        if stale:
            logger.debug("Dropped %d inactive rate limit keys", len(stale))

    def count(self, key: str, now: float, window: int) -> int:
        with self._lock:
            return len(self._trim(key, now, window))

    def check(self, key: str, now: float, window: int, limit: int) -> int:
        """Seconds until ``key`` may retry, or 0 if it is under ``limit``."""
        with self._lock:
            hits = self._trim(key, now, window)
            return self._retry_after(hits, now, window) if len(hits) >= limit else 0

    def acquire(self, key: str, now: float, window: int, limit: int) -> int:
        """Check and record in one step; returns 0 when the hit was allowed."""
        with self._lock:
            hits = self._trim(key, now, window)
            if len(hits) >= limit:
                return self._retry_after(hits, now, window)
            self._record(key, now, window)
            return 0

    def hit(self, key: str, now: float, window: int) -> None:
        with self._lock:
            self._record(key, now, window)

    def sweep(self, now: float, window: int) -> None:
        with self._lock:
            self._sweep(now, window)


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self.api_window = SlidingWindow()
        self.auth_window = SlidingWindow()

    @staticmethod
    def _client_ip(request: Request) -> str:
        return request.client.host if request.client else "unknown"

    @staticmethod
    def _reject(message: str, retry_after: int) -> JSONResponse:
        return JSONResponse(
            status_code=429,
            content={"success": False, "error": message},
            headers={"Retry-After": str(retry_after)},
        )

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if not settings.RATE_LIMIT_ENABLED or not path.startswith(API_PREFIX):
            return await call_next(request)

        client_ip = self._client_ip(request)
        window = settings.RATE_LIMIT_WINDOW_SECONDS
        now = time.time()

        retry_after = self.api_window.acquire(client_ip, now, window, settings.RATE_LIMIT_MAX_REQUESTS)
        if retry_after:
            logger.warning("Rate limit exceeded for %s", client_ip)
            return self._reject(API_LIMIT_MESSAGE, retry_after)

        is_auth = path in AUTH_PATHS
        if is_auth:
            retry_after = self.auth_window.check(
                client_ip, now, window, settings.AUTH_RATE_LIMIT_MAX_ATTEMPTS
            )
            if retry_after:
                logger.warning("Auth rate limit exceeded for %s", client_ip)
                return self._reject(AUTH_LIMIT_MESSAGE, retry_after)

        response = await call_next(request)

        if is_auth and response.status_code >= 400:
            self.auth_window.hit(client_ip, now, window)
        return response

from __future__ import annotations

import threading
from datetime import datetime, timedelta

from flask import Flask, Response, current_app, request

from app.regdesk.config import is_production
from app.regdesk.errors import RateLimited
from app.regdesk.models import utcnow

CONTENT_SECURITY_POLICY = (
    "default-src 'self'; "
    "script-src 'self'; "
    "style-src 'self' https:; "
    "img-src 'self' data: https:; "
    "connect-src 'self'"
)

_EXEMPT_PATHS = ("/healthz",)


class RateLimiter:
    """
    Sliding-window counter per key (client IP). In-process only, so each
    gunicorn worker counts separately. Thread-safe. Keys whose window has
    emptied are dropped, and a sweep at most once per window drops idle ones.
    """

    def __init__(self, limit: int, window_seconds: int):
        self.limit = limit
        self.window = timedelta(seconds=window_seconds)
        self._hits: dict[str, list[datetime]] = {}
        self._lock = threading.Lock()
        self._last_sweep: datetime | None = None

    def _prune(self, key: str, now: datetime) -> list[datetime]:
        # caller holds self._lock
        cutoff = now - self.window
        hits = [t for t in self._hits.get(key, ()) if t > cutoff]
        if hits:
            self._hits[key] = hits
        else:
            self._hits.pop(key, None)
        return hits

    def _sweep(self, now: datetime) -> None:
        # caller holds self._lock
        if self._last_sweep is not None and now - self._last_sweep < self.window:
            return
        self._last_sweep = now
        for key in list(self._hits):
            self._prune(key, now)

    def is_limited(self, key: str, now: datetime | None = None) -> bool:
        if self.limit <= 0:
            return False
        with self._lock:
            return len(self._prune(key, now or utcnow())) >= self.limit

    def hit(self, key: str, now: datetime | None = None) -> None:
        if self.limit <= 0:
            return
        now = now or utcnow()
        with self._lock:
            self._sweep(now)
            self._hits.setdefault(key, []).append(now)

    def allow(self, key: str, now: datetime | None = None) -> bool:
        """Check and record in one step. False means the caller is over the limit."""
        if self.limit <= 0:
            return True
        now = now or utcnow()
        with self._lock:
            self._sweep(now)
            hits = self._prune(key, now)
            if len(hits) >= self.limit:
                return False
            self._hits.setdefault(key, []).append(now)
            return True

    def reset(self, key: str) -> None:
        with self._lock:
            self._hits.pop(key, None)


def client_ip() -> str:
    return request.remote_addr or "unknown"


def _rate_limit_guard():
    if request.path.startswith(_EXEMPT_PATHS):
        return None
    limiter: RateLimiter = current_app.extensions["request_rate_limiter"]
    ip = client_ip()
    if not limiter.allow(ip):
        current_app.logger.warning("Rate limit exceeded ip=%s path=%s", ip, request.path)
        raise RateLimited()
    return None


def _allowed_origin(origin: str) -> str | None:
    if is_production(current_app.config.get("ENV")):
        allowed = current_app.config.get("FRONTEND_URL") or ""
        return origin if allowed and origin == allowed else None
    return origin


def add_security_headers(response: Response) -> Response:
    """Add security headers and CORS headers to all responses"""
    response.headers.setdefault("Content-Security-Policy", CONTENT_SECURITY_POLICY)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault("Referrer-Policy", "no-referrer")

    origin = request.headers.get("Origin")
    if origin:
        allowed = _allowed_origin(origin)
        if allowed:
            response.headers["Access-Control-Allow-Origin"] = allowed
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers.add("Vary", "Origin")
            if request.method == "OPTIONS":
                response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
                response.headers["Access-Control-Allow-Headers"] = request.headers.get(
                    "Access-Control-Request-Headers", "Content-Type"
                )
    return response


def init_security(app: Flask) -> None:
    app.extensions["request_rate_limiter"] = RateLimiter(
        limit=int(app.config.get("RATE_LIMIT_PER_MINUTE") or 0),
        window_seconds=60,
    )
    app.before_request(_rate_limit_guard)
    app.after_request(add_security_headers)

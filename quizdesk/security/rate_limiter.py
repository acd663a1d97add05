"""
Rate limiting module to slow down credential guessing and submission floods.

Request timestamps are tracked in memory per IP address or per user.
"""

from functools import wraps
from flask import request, current_app
from collections import defaultdict
import threading
import time

from quizdesk.common.errors import error_response
from .security_logger import SecurityLogger


class RateLimiter:
    """
    Rate limiter that tracks requests per IP address or user.

    Uses a sliding window algorithm to track requests within a time period.
    """

    def __init__(self, cleanup_interval: int = 3600):
        self._storage = defaultdict(list)
        self._lock = threading.Lock()
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = time.time()

    def _cleanup_old_entries(self, now: float):
        """Drop identifiers with no requests in the last cleanup interval."""
        if now - self._last_cleanup < self._cleanup_interval:
            return

        with self._lock:
            cutoff = now - self._cleanup_interval
            for key in list(self._storage):
                self._storage[key] = [ts for ts in self._storage[key] if ts > cutoff]
                if not self._storage[key]:
                    del self._storage[key]
            self._last_cleanup = now

    def is_allowed(self, identifier: str, max_requests: int, window_seconds: int,
                   now: float | None = None) -> tuple[bool, int]:
        """
        Check if a request is allowed based on rate limit.

        Args:
            identifier: Unique identifier (IP address or user ID)
            max_requests: Maximum number of requests allowed
            window_seconds: Time window in seconds
            now: Current time, for tests

        Returns:
            Tuple of (is_allowed, remaining_requests)
        """
        now = time.time() if now is None else now
        self._cleanup_old_entries(now)
        cutoff = now - window_seconds

        with self._lock:
            timestamps = self._storage[identifier]
            timestamps[:] = [ts for ts in timestamps if ts > cutoff]

            if len(timestamps) >= max_requests:
                return False, 0

            timestamps.append(now)
            return True, max_requests - len(timestamps)

    def reset(self, identifier: str | None = None):
        """Reset one identifier, or everything when none is given."""
        with self._lock:
            if identifier is None:
                self._storage.clear()
            else:
                self._storage.pop(identifier, None)


# Global rate limiter instance
_rate_limiter = RateLimiter()


def get_rate_limiter() -> RateLimiter:
    return _rate_limiter


def _identifier(per: str) -> str:
    if per == 'user':
        from flask_login import current_user
        if current_user.is_authenticated:
            return f"user:{current_user.id}"
    ip = request.remote_addr or request.environ.get('REMOTE_ADDR', 'unknown')
    return f"ip:{ip}"


def rate_limit(max_requests=10, window_seconds: int = 60, per: str = 'ip',
               error_message: str = "Rate limit exceeded. Please try again later."):
    """
    Decorator to rate limit a route.

    ``max_requests`` may be a callable so the limit can come from config at
    request time.

    Example:
        @auth_bp.route('/login', methods=['POST'])
        @rate_limit(max_requests=5, window_seconds=60)
        def login():
            ...
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_app.config.get('RATE_LIMIT_ENABLED', True):
                return f(*args, **kwargs)

            identifier = _identifier(per)
            limit = max_requests() if callable(max_requests) else max_requests
            key = f"{identifier}:{request.endpoint}"
            allowed, remaining = _rate_limiter.is_allowed(key, limit, window_seconds)
            if not allowed:
                SecurityLogger.log_rate_limit_exceeded(identifier, request.endpoint)
                response, status = error_response(error_message, 429)
                response.headers['Retry-After'] = str(window_seconds)
                return response, status

            response = current_app.make_response(f(*args, **kwargs))
            response.headers['X-RateLimit-Limit'] = str(limit)
            response.headers['X-RateLimit-Remaining'] = str(remaining)
            return response
        return decorated_function
    return decorator

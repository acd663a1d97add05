"""
Security module for the application.

Provides rate limiting, security headers and security event logging.
"""

from .rate_limiter import RateLimiter, rate_limit, get_rate_limiter
from .security_headers import SecurityHeaders
from .security_logger import SecurityLogger
from .security_init import init_security

__all__ = [
    'RateLimiter',
    'rate_limit',
    'get_rate_limiter',
    'SecurityHeaders',
    'SecurityLogger',
    'init_security',
]

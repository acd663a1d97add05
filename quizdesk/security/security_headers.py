"""
Security headers module.

Adds headers suited to a JSON API to every response.
"""

from flask import current_app


class SecurityHeaders:
    """Security headers middleware."""

    @staticmethod
    def init_app(app):
        """
        Initialize security headers for the Flask app.

        Args:
            app: Flask application instance
        """
        @app.after_request
        def add_security_headers(response):
            """Add security headers to all responses."""
            # Nothing here is meant to be rendered as a document
            response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
            response.headers['X-Content-Type-Options'] = 'nosniff'
            response.headers['X-Frame-Options'] = 'DENY'
            response.headers['Referrer-Policy'] = 'no-referrer'

            # API payloads carry per-user data
            if response.content_type and 'application/json' in response.content_type:
                response.cache_control.no_store = True

            if current_app.config.get('SESSION_COOKIE_SECURE', False):
                response.headers['Strict-Transport-Security'] = (
                    'max-age=31536000; includeSubDomains'
                )

            if 'Server' in response.headers:
                del response.headers['Server']

            return response

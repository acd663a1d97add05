"""
Application error types and their JSON rendering.

Routes and services raise these; ``register_error_handlers`` turns them into
``{"success": false, "message": ...}`` responses with the matching status.
"""
from flask import jsonify, request, current_app
from werkzeug.exceptions import HTTPException

from quizdesk.config import config


class QuizDeskError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(QuizDeskError):
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(QuizDeskError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(QuizDeskError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(QuizDeskError):
    status_code = 404
    default_message = "Not found"


class Conflict(QuizDeskError):
    status_code = 409
    default_message = "Conflict"


class InternalError(QuizDeskError):
    status_code = 500


def error_response(message: str, status_code: int):
    return jsonify({"success": False, "message": message}), status_code


def register_error_handlers(app):
    """Install JSON error handlers on the app."""

    @app.errorhandler(QuizDeskError)
    def handle_quizdesk_error(e):
        if e.status_code >= 500:
            current_app.logger.error(f"{request.method} {request.path} failed: {e.message}")
        return error_response(e.message, e.status_code)

    @app.errorhandler(404)
    def handle_404(e):
        """Handle 404 errors - return JSON for API routes."""
        path = request.path
        current_app.logger.warning(f"404 error: {request.method} {path}")
        if path.startswith(config.API_PREFIX + "/"):
            return error_response(f"Route not found: {request.method} {path}", 404)
        return e

    @app.errorhandler(405)
    def handle_405(e):
        """Handle 405 Method Not Allowed - return JSON for API routes."""
        path = request.path
        current_app.logger.warning(f"405 error: {request.method} {path}")
        if path.startswith(config.API_PREFIX + "/"):
            return error_response(f"Method not allowed: {request.method} {path}", 405)
        return e

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return e
        from quizdesk import db
        db.session.rollback()
        current_app.logger.exception(f"Unhandled error on {request.method} {request.path}")
        return error_response("Internal server error", 500)

"""
Security logging module.

Specialized log lines for security events such as failed logins,
access-policy denials and membership changes.
"""

from flask import request, current_app
from datetime import datetime


class SecurityLogger:
    """
    Security event logger.

    Logs security-related events for monitoring and auditing.
    """

    @staticmethod
    def _ip() -> str:
        return request.remote_addr or "unknown"

    @staticmethod
    def log_failed_login(email: str, reason: str = "Invalid credentials"):
        current_app.logger.warning(
            f"SECURITY: Failed login attempt - Email: {email}, "
            f"IP: {SecurityLogger._ip()}, Reason: {reason}, "
            f"Time: {datetime.utcnow().isoformat()}"
        )

    @staticmethod
    def log_successful_login(user_id: int, email: str):
        current_app.logger.info(
            f"SECURITY: Successful login - User ID: {user_id}, "
            f"Email: {email}, IP: {SecurityLogger._ip()}, "
            f"Time: {datetime.utcnow().isoformat()}"
        )

    @staticmethod
    def log_registration_denied(email: str, role: str):
        current_app.logger.warning(
            f"SECURITY: Registration denied - Email: {email}, Role: {role}, "
            f"IP: {SecurityLogger._ip()}"
        )

    @staticmethod
    def log_access_denied(user_id: int, quiz_id: int, reason: str):
        """
        Log a quiz access-policy denial.

        Args:
            user_id: Actor ID
            quiz_id: Quiz that was requested
            reason: Reason returned by the access resolver
        """
        current_app.logger.warning(
            f"SECURITY: Quiz access denied - User ID: {user_id}, Quiz: {quiz_id}, "
            f"Reason: {reason}, IP: {SecurityLogger._ip()}"
        )

    @staticmethod
    def log_duplicate_attempt(user_id: int, quiz_id: int):
        current_app.logger.warning(
            f"SECURITY: Duplicate single-attempt submission - User ID: {user_id}, "
            f"Quiz: {quiz_id}, IP: {SecurityLogger._ip()}"
        )

    @staticmethod
    def log_rate_limit_exceeded(identifier: str, endpoint: str):
        current_app.logger.warning(
            f"SECURITY: Rate limit exceeded - Identifier: {identifier}, "
            f"Endpoint: {endpoint}, IP: {SecurityLogger._ip()}, "
            f"Time: {datetime.utcnow().isoformat()}"
        )

    @staticmethod
    def log_membership_change(group_id: int, member_id: int, action: str, actor_id: int):
        """
        Log a group membership change.

        Args:
            group_id: Group ID
            member_id: Member who joined, left or was removed
            action: 'joined', 'left' or 'removed'
            actor_id: User who performed the change
        """
        current_app.logger.info(
            f"SECURITY: Group membership {action} - Group: {group_id}, "
            f"Member: {member_id}, By: {actor_id}"
        )

from flask import current_app, jsonify, request
from flask_login import login_user, logout_user
from sqlalchemy.exc import IntegrityError

from quizdesk import db
from quizdesk.config import config
from quizdesk.auth import auth_bp
from quizdesk.auth.models import Role, User
from quizdesk.auth.session import Actor
from quizdesk.auth.utils import (
    hash_password,
    is_valid_email,
    normalize_email,
    secret_matches,
    validate_registration,
    verify_password,
)
from quizdesk.common.decorators import auth_required
from quizdesk.common.errors import Conflict, Forbidden, Unauthorized, ValidationError
from quizdesk.security import SecurityLogger, rate_limit


def _check_role_secret(role: Role, data: dict, email: str) -> None:
    """Admin registration always needs ADMIN_SECRET; teacher only when TEACHER_SECRET is set."""
    if role is Role.ADMIN:
        if not secret_matches(data.get("admin_secret"), config.ADMIN_SECRET):
            SecurityLogger.log_registration_denied(email, role.value)
            raise Forbidden("Invalid admin secret")
    elif role is Role.TEACHER and config.TEACHER_SECRET:
        if not secret_matches(data.get("teacher_secret"), config.TEACHER_SECRET):
            SecurityLogger.log_registration_denied(email, role.value)
            raise Forbidden("Invalid teacher secret")


@auth_bp.route("/register", methods=["POST"])
@rate_limit(max_requests=lambda: config.LOGIN_RATE_LIMIT, window_seconds=60)
def register():
    data = request.get_json(silent=True) or {}
    name, email, password = validate_registration(data)

    role = Role.normalize(data.get("role"))
    _check_role_secret(role, data, email)

    if db.session.query(User.id).filter_by(email=email).first():
        raise Conflict("Email already registered")

    user = User(name=name, email=email, password_hash=hash_password(password), role=role)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        db.session.rollback()
        raise Conflict("Email already registered")

    login_user(user)
    current_app.logger.info(f"Registered user {user.id} ({role.value})")
    return jsonify({"success": True, "user": user.to_public_dict()}), 201


@auth_bp.route("/login", methods=["POST"])
@rate_limit(max_requests=lambda: config.LOGIN_RATE_LIMIT, window_seconds=60)
def login():
    data = request.get_json(silent=True) or {}
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""
    remember = bool(data.get("remember", False))

    if not email or not password:
        raise ValidationError("Email and password are required")

    if not is_valid_email(email):
        raise ValidationError("Please provide a valid email address")

    user = User.query.filter_by(email=email).first()
    if not user or not isinstance(password, str) or not verify_password(password, user.password_hash):
        SecurityLogger.log_failed_login(email)
        raise Unauthorized("Invalid credentials")

    login_user(user, remember=remember)
    SecurityLogger.log_successful_login(user.id, user.email)

    return jsonify({"success": True, "user": user.to_public_dict()}), 200


@auth_bp.route("/logout", methods=["POST"])
def logout():
    logout_user()
    return jsonify({"success": True, "message": "Logged out"}), 200


@auth_bp.route("/me", methods=["GET"])
@auth_required
def me(actor: Actor):
    """Return the session identity ``{id, role, name}``."""
    return jsonify(actor.to_dict()), 200

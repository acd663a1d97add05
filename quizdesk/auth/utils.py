"""Password hashing and registration input checks."""
import hmac
import re

from passlib.hash import bcrypt

from quizdesk.common.errors import ValidationError
from quizdesk.config import config


EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _truncate_password(plain_password: str) -> str:
    """Cut the password to its first 72 UTF-8 bytes, dropping a split trailing character."""
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore")


def hash_password(plain_password: str) -> str:
    return bcrypt.using(rounds=config.BCRYPT_ROUNDS).hash(_truncate_password(plain_password))


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a password against a hash, using the same truncation as hash_password."""
    return bcrypt.verify(_truncate_password(plain_password), password_hash)


def normalize_email(email) -> str:
    return str(email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(email and EMAIL_REGEX.match(email))


def validate_password(password: str) -> tuple[bool, str | None]:
    """
    Basic server-side password validation.
    Returns (is_valid, error_message).
    """
    min_length = config.MIN_PASSWORD_LENGTH
    if len(password) < min_length:
        return False, f"Password must be at least {min_length} characters long"
    return True, None


def validate_registration(data: dict) -> tuple[str, str, str]:
    """
    Check a registration payload and return ``(name, email, password)``.

    Raises ValidationError on missing fields, a malformed email or a short
    password.
    """
    name = str(data.get("name") or "").strip()
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""

    if not name or not email or not password:
        raise ValidationError("Name, email and password are required")
    if not is_valid_email(email):
        raise ValidationError("Please provide a valid email address")
    if not isinstance(password, str):
        raise ValidationError("Password must be text")

    ok, error = validate_password(password)
    if not ok:
        raise ValidationError(error)
    return name, email, password


def secret_matches(supplied, expected: str) -> bool:
    """Constant-time comparison; an unset secret never matches."""
    if not expected or not isinstance(supplied, str):
        return False
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))

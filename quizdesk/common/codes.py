"""Human-shareable codes for groups and code-restricted quizzes."""
import hashlib
import hmac
import secrets

# No 0/O or 1/I so codes survive being read aloud or copied by hand
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def normalize_code(code) -> str:
    return str(code or "").strip().upper()


def generate_code(length: int) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def generate_unique_code(length: int, exists, attempts: int = 5) -> str:
    """
    Generate a code for which ``exists(code)`` is false.

    Raises RuntimeError if every attempt collides.
    """
    for _ in range(attempts):
        code = generate_code(length)
        if not exists(code):
            return code
    raise RuntimeError("Unable to generate unique code")


def hash_access_code(code: str) -> str:
    return hashlib.sha256(normalize_code(code).encode("utf-8")).hexdigest()


def verify_access_code(supplied: str | None, code_hash: str | None) -> bool:
    """Constant-time check of a supplied code against a stored hash."""
    if not supplied or not code_hash:
        return False
    return hmac.compare_digest(hash_access_code(supplied), code_hash)

from functools import wraps
from flask_login import current_user

from quizdesk.auth.session import Actor
from quizdesk.common.errors import Forbidden, Unauthorized


def _current_actor() -> Actor:
    if not current_user.is_authenticated:
        raise Unauthorized()
    return Actor.from_user(current_user)


def auth_required(f):
    """Require a logged-in user and pass it to the route as ``actor``."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        kwargs["actor"] = _current_actor()
        return f(*args, **kwargs)
    return decorated_function


def staff_required(f):
    """Require a teacher or admin; passes ``actor``."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        actor = _current_actor()
        if not actor.is_staff:
            raise Forbidden()
        kwargs["actor"] = actor
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Require an admin; passes ``actor``."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        actor = _current_actor()
        if not actor.is_admin:
            raise Forbidden()
        kwargs["actor"] = actor
        return f(*args, **kwargs)
    return decorated_function

"""Groups blueprint: shareable-code groups used for quiz access."""
from flask import Blueprint
from quizdesk.config import config

groups_bp = Blueprint('groups', __name__, url_prefix=f"{config.API_PREFIX}/groups")

from quizdesk.groups import routes  # noqa: E402,F401

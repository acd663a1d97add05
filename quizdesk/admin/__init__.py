"""Admin blueprint: quiz authoring, question bank and statistics for staff."""
from flask import Blueprint
from quizdesk.config import config

admin_bp = Blueprint('admin', __name__, url_prefix=f"{config.API_PREFIX}/admin")

from quizdesk.admin import routes, question_routes  # noqa: E402,F401

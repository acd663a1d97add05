"""
Quiz module: catalog, attempts and leaderboards.

Students browse and attempt quizzes here; staff authoring lives under the
admin blueprint.
"""
from flask import Blueprint
from quizdesk.config import config

quiz_bp = Blueprint('quiz', __name__, url_prefix=f"{config.API_PREFIX}/quizzes")

from quizdesk.quiz import student_routes  # noqa: E402,F401

"""
Student routes for quiz functionality.

Students can:
- List the quizzes open to them
- Fetch a quiz (shuffled, without answers) and submit one attempt
- Redeem an access code
- Read leaderboards and their own attempt history
"""
from flask import jsonify, request

from quizdesk.auth.session import Actor
from quizdesk.common.decorators import auth_required
from quizdesk.config import config
from quizdesk.quiz import quiz_bp
from quizdesk.quiz.service import AttemptService, Leaderboard, QuizCatalog
from quizdesk.security import rate_limit


def _supplied_code():
    """Access code sent with a read, as ``?code=`` or the X-Access-Code header."""
    return request.args.get('code') or request.headers.get('X-Access-Code')


@quiz_bp.route('', methods=['GET'])
@auth_required
def list_quizzes(actor: Actor):
    return jsonify(QuizCatalog.list_visible(actor, request.args.get('scope'))), 200


@quiz_bp.route('/<int:quiz_id>', methods=['GET'])
@auth_required
def get_quiz(quiz_id, actor: Actor):
    return jsonify(QuizCatalog.get_for_attempt(actor, quiz_id, _supplied_code())), 200


@quiz_bp.route('/<int:quiz_id>/attempt', methods=['POST'])
@auth_required
@rate_limit(max_requests=lambda: config.SUBMIT_RATE_LIMIT, window_seconds=60, per='user',
            error_message='Too many submissions. Please slow down.')
def submit_attempt(quiz_id, actor: Actor):
    """
    Score and store a completed attempt.

    Body: ``{"answers": [{"question_id", "selected_index"}], "time_taken_seconds",
    "access_code"}``. The score is computed here from the stored answer key;
    nothing the client sends about correctness is trusted.
    """
    data = request.get_json(silent=True) or {}
    result = AttemptService.submit(
        actor,
        quiz_id,
        data.get('access_code') or _supplied_code(),
        data.get('answers'),
        data.get('time_taken_seconds'),
    )
    return jsonify(result), 201


@quiz_bp.route('/<int:quiz_id>/leaderboard', methods=['GET'])
@auth_required
def leaderboard(quiz_id, actor: Actor):
    return jsonify(Leaderboard.for_quiz(actor, quiz_id, _supplied_code())), 200


@quiz_bp.route('/access', methods=['POST'])
@auth_required
@rate_limit(max_requests=lambda: config.LOGIN_RATE_LIMIT, window_seconds=60, per='user',
            error_message='Too many access code attempts. Please try again later.')
def redeem_access_code(actor: Actor):
    data = request.get_json(silent=True) or {}
    quiz = QuizCatalog.redeem_code(actor, data.get('code'))
    return jsonify({'success': True, 'quiz': quiz.summary_dict()}), 200


@quiz_bp.route('/attempts/me', methods=['GET'])
@auth_required
def my_attempts(actor: Actor):
    return jsonify(AttemptService.list_for_user(actor)), 200


@quiz_bp.route('/attempts/<int:attempt_id>', methods=['GET'])
@auth_required
def attempt_review(attempt_id, actor: Actor):
    return jsonify(AttemptService.review(actor, attempt_id)), 200

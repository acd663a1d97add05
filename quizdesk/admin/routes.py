"""Staff routes for authoring quizzes and reading results."""
from flask import jsonify, request

from quizdesk.admin import admin_bp
from quizdesk.auth.session import Actor
from quizdesk.common.decorators import admin_required, staff_required
from quizdesk.quiz.authoring import QuizAuthoring
from quizdesk.quiz.service import AttemptService, Leaderboard


@admin_bp.route('/quizzes', methods=['GET'])
@staff_required
def list_quizzes(actor: Actor):
    """Quizzes the caller manages, with answer keys and access codes."""
    quizzes = QuizAuthoring.list_managed(actor)
    return jsonify([quiz.to_staff_dict() for quiz in quizzes]), 200


@admin_bp.route('/quizzes', methods=['POST'])
@staff_required
def create_quiz(actor: Actor):
    data = request.get_json(silent=True) or {}
    quiz = QuizAuthoring.create(actor, data)
    return jsonify(quiz.to_staff_dict()), 201


@admin_bp.route('/quizzes/<int:quiz_id>', methods=['GET'])
@staff_required
def get_quiz(quiz_id, actor: Actor):
    return jsonify(QuizAuthoring.get_managed(actor, quiz_id).to_staff_dict()), 200


@admin_bp.route('/quizzes/<int:quiz_id>', methods=['PUT'])
@staff_required
def update_quiz(quiz_id, actor: Actor):
    data = request.get_json(silent=True) or {}
    quiz = QuizAuthoring.update(actor, quiz_id, data)
    return jsonify(quiz.to_staff_dict()), 200


@admin_bp.route('/quizzes/<int:quiz_id>', methods=['DELETE'])
@staff_required
def delete_quiz(quiz_id, actor: Actor):
    QuizAuthoring.delete(actor, quiz_id)
    return jsonify({'success': True, 'message': 'Quiz deleted.'}), 200


@admin_bp.route('/quizzes/<int:quiz_id>/toggle', methods=['PATCH'])
@staff_required
def toggle_quiz(quiz_id, actor: Actor):
    quiz = QuizAuthoring.toggle(actor, quiz_id)
    return jsonify({'success': True, 'id': quiz.id, 'is_enabled': quiz.is_enabled}), 200


@admin_bp.route('/quizzes/<int:quiz_id>/questions/from-bank', methods=['POST'])
@staff_required
def add_questions_from_bank(quiz_id, actor: Actor):
    data = request.get_json(silent=True) or {}
    quiz = QuizAuthoring.add_from_bank(actor, quiz_id, data.get('question_ids'))
    return jsonify(quiz.to_staff_dict()), 200


@admin_bp.route('/quizzes/<int:quiz_id>/stats', methods=['GET'])
@staff_required
def quiz_stats(quiz_id, actor: Actor):
    quiz = QuizAuthoring.get_managed(actor, quiz_id)
    return jsonify(Leaderboard.quiz_stats(quiz)), 200


@admin_bp.route('/attempts', methods=['GET'])
@staff_required
def list_attempts(actor: Actor):
    quiz_id = request.args.get('quiz_id', type=int)
    return jsonify(AttemptService.list_for_staff(actor, quiz_id)), 200


@admin_bp.route('/stats', methods=['GET'])
@admin_required
def platform_stats(actor: Actor):
    return jsonify(Leaderboard.platform_stats()), 200

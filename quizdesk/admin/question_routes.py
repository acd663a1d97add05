"""Question bank routes."""
from flask import jsonify, request

from quizdesk.admin import admin_bp
from quizdesk.auth.session import Actor
from quizdesk.common.decorators import staff_required
from quizdesk.quiz.authoring import QuestionBankService


@admin_bp.route('/questions', methods=['GET'])
@staff_required
def list_questions(actor: Actor):
    """``?scope=all|personal|global`` and optional ``?category=``."""
    questions = QuestionBankService.list_for(actor, request.args.get('scope'), request.args.get('category'))
    return jsonify([question.to_dict() for question in questions]), 200


@admin_bp.route('/questions', methods=['POST'])
@staff_required
def create_question(actor: Actor):
    data = request.get_json(silent=True) or {}
    question = QuestionBankService.create(actor, data)
    return jsonify(question.to_dict()), 201


@admin_bp.route('/questions/<int:question_id>', methods=['DELETE'])
@staff_required
def delete_question(question_id, actor: Actor):
    QuestionBankService.delete(actor, question_id)
    return jsonify({'success': True, 'message': 'Question deleted.'}), 200

"""
Staff-side quiz and question-bank management.

Teachers manage the quizzes and bank questions they created; admins manage
everything.
"""
from flask import current_app
from sqlalchemy import or_

from quizdesk import db
from quizdesk.auth.session import Actor
from quizdesk.common.codes import generate_unique_code, hash_access_code
from quizdesk.common.errors import Forbidden, InternalError, NotFound, ValidationError
from quizdesk.config import config
from quizdesk.groups.models import Group
from quizdesk.quiz.models import AccessType, Attempt, BankQuestion, QuestionScope, Quiz


def _required_text(data: dict, key: str, label: str) -> str:
    value = data.get(key)
    value = value.strip() if isinstance(value, str) else ""
    if not value:
        raise ValidationError(f"{label} is required")
    return value


def _positive_int(value, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError(f"{label} must be a positive integer")
    try:
        number = int(value)
    except ValueError:
        raise ValidationError(f"{label} must be a positive integer")
    if number <= 0:
        raise ValidationError(f"{label} must be a positive integer")
    return number


def _bool_field(data: dict, key: str, default: bool) -> bool:
    if key not in data:
        return default
    value = data[key]
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be true or false")
    return value


def validate_question(raw, label: str = "Question") -> dict:
    """
    Validate one multiple-choice question.

    Needs non-empty text, at least two non-empty options and an integer
    ``correct_index`` pointing at one of them.
    """
    if not isinstance(raw, dict):
        raise ValidationError(f"{label} must be an object")
    text = _required_text(raw, "text", f"{label} text")

    options = raw.get("options")
    if not isinstance(options, list) or len(options) < 2:
        raise ValidationError(f"{label} needs at least two options")
    cleaned = []
    for option in options:
        if not isinstance(option, str) or not option.strip():
            raise ValidationError(f"{label} options must be non-empty text")
        cleaned.append(option.strip())

    correct_index = raw.get("correct_index")
    if isinstance(correct_index, bool) or not isinstance(correct_index, int):
        raise ValidationError(f"{label} correct_index must be an integer")
    if not 0 <= correct_index < len(cleaned):
        raise ValidationError(f"{label} correct_index is out of range")

    return {"text": text, "options": cleaned, "correct_index": correct_index}


def validate_questions(raw) -> list[dict]:
    if not isinstance(raw, list):
        raise ValidationError("Questions must be a list")
    return [validate_question(q, f"Question {index + 1}") for index, q in enumerate(raw)]


class QuizAuthoring:
    """Create, edit, toggle and delete quizzes."""

    @staticmethod
    def get_managed(actor: Actor, quiz_id: int) -> Quiz:
        quiz = db.session.get(Quiz, quiz_id)
        if not quiz:
            raise NotFound("Quiz not found")
        if not actor.can_manage(quiz):
            raise Forbidden()
        return quiz

    @staticmethod
    def list_managed(actor: Actor) -> list[Quiz]:
        query = Quiz.query
        if not actor.is_admin:
            query = query.filter(Quiz.created_by == actor.id)
        return query.order_by(Quiz.created_at.desc(), Quiz.id.desc()).all()

    @staticmethod
    def create(actor: Actor, data: dict) -> Quiz:
        quiz = Quiz(
            title=_required_text(data, "title", "Title"),
            category=_required_text(data, "category", "Category"),
            time_limit_minutes=_positive_int(data.get("time_limit_minutes"), "time_limit_minutes"),
            marks_per_question=_positive_int(data.get("marks_per_question", 1), "marks_per_question"),
            is_enabled=_bool_field(data, "is_enabled", True),
            single_attempt=_bool_field(data, "single_attempt", True),
            created_by=actor.id,
        )
        if "questions" not in data:
            raise ValidationError("Questions are required")
        quiz.set_questions(validate_questions(data["questions"]))
        QuizAuthoring._apply_access(actor, quiz, data.get("access_type", AccessType.GLOBAL.value), data.get("group_id"))

        db.session.add(quiz)
        db.session.commit()
        current_app.logger.info(f"Quiz {quiz.id} created by user {actor.id}")
        return quiz

    @staticmethod
    def update(actor: Actor, quiz_id: int, data: dict) -> Quiz:
        """Partial update; ``questions`` replaces the whole list."""
        quiz = QuizAuthoring.get_managed(actor, quiz_id)

        if "title" in data:
            quiz.title = _required_text(data, "title", "Title")
        if "category" in data:
            quiz.category = _required_text(data, "category", "Category")
        if "time_limit_minutes" in data:
            quiz.time_limit_minutes = _positive_int(data["time_limit_minutes"], "time_limit_minutes")
        if "marks_per_question" in data:
            quiz.marks_per_question = _positive_int(data["marks_per_question"], "marks_per_question")
        quiz.is_enabled = _bool_field(data, "is_enabled", quiz.is_enabled)
        quiz.single_attempt = _bool_field(data, "single_attempt", quiz.single_attempt)
        if "questions" in data:
            quiz.set_questions(validate_questions(data["questions"]))
        else:
            quiz.recompute_total_marks()
        if "access_type" in data or "group_id" in data:
            QuizAuthoring._apply_access(
                actor, quiz,
                data.get("access_type", quiz.access_type.value),
                data.get("group_id", quiz.group_id),
            )

        db.session.commit()
        current_app.logger.info(f"Quiz {quiz.id} updated by user {actor.id}")
        return quiz

    @staticmethod
    def toggle(actor: Actor, quiz_id: int) -> Quiz:
        quiz = QuizAuthoring.get_managed(actor, quiz_id)
        quiz.is_enabled = not quiz.is_enabled
        db.session.commit()
        return quiz

    @staticmethod
    def delete(actor: Actor, quiz_id: int) -> None:
        """Delete the quiz, then its attempts. Not transactional across both."""
        quiz = QuizAuthoring.get_managed(actor, quiz_id)
        db.session.delete(quiz)
        db.session.commit()
        deleted = Attempt.query.filter_by(quiz_id=quiz_id).delete(synchronize_session=False)
        db.session.commit()
        current_app.logger.info(f"Quiz {quiz_id} deleted by user {actor.id} ({deleted} attempts removed)")

    @staticmethod
    def add_from_bank(actor: Actor, quiz_id: int, question_ids) -> Quiz:
        """Append copies of bank questions; later bank edits do not reach the quiz."""
        quiz = QuizAuthoring.get_managed(actor, quiz_id)
        if not isinstance(question_ids, list) or not question_ids:
            raise ValidationError("question_ids must be a non-empty list")
        if any(isinstance(qid, bool) or not isinstance(qid, int) for qid in question_ids):
            raise ValidationError("question_ids must be integers")

        visible = {q.id: q for q in QuestionBankService.visible_query(actor).filter(
            BankQuestion.id.in_(question_ids)
        )}
        missing = [qid for qid in question_ids if qid not in visible]
        if missing:
            raise NotFound(f"Question not found: {missing[0]}")

        quiz.append_questions([visible[qid].as_quiz_question() for qid in question_ids])
        db.session.commit()
        return quiz

    @staticmethod
    def _apply_access(actor: Actor, quiz: Quiz, access_type, group_id) -> None:
        try:
            access = AccessType(access_type)
        except ValueError:
            raise ValidationError("access_type must be one of: global, group, code")

        quiz.access_type = access
        if access is AccessType.GROUP:
            if group_id in (None, ""):
                raise ValidationError("group_id is required for group access")
            group = db.session.get(Group, group_id) if isinstance(group_id, int) else None
            if not group:
                raise NotFound("Group not found")
            if not (actor.is_admin or actor.owns(group)):
                raise Forbidden("You can only restrict quizzes to your own groups")
            quiz.group_id = group.id
        else:
            quiz.group_id = None

        if access is AccessType.CODE:
            if not quiz.access_code:
                try:
                    code = generate_unique_code(
                        config.ACCESS_CODE_LENGTH,
                        lambda candidate: db.session.query(Quiz.id).filter_by(
                            access_code_hash=hash_access_code(candidate)
                        ).first() is not None,
                    )
                except RuntimeError as e:
                    raise InternalError(str(e))
                quiz.access_code = code
                quiz.access_code_hash = hash_access_code(code)
        else:
            quiz.access_code = None
            quiz.access_code_hash = None


class QuestionBankService:
    """Personal and shared reusable questions."""

    @staticmethod
    def visible_query(actor: Actor):
        if actor.is_admin:
            return BankQuestion.query
        return BankQuestion.query.filter(
            or_(BankQuestion.created_by == actor.id, BankQuestion.scope == QuestionScope.GLOBAL)
        )

    @staticmethod
    def list_for(actor: Actor, scope: str | None = None, category: str | None = None) -> list[BankQuestion]:
        scope = scope or "all"
        if scope == "personal":
            query = BankQuestion.query.filter(BankQuestion.created_by == actor.id)
        elif scope == "global":
            query = BankQuestion.query.filter(BankQuestion.scope == QuestionScope.GLOBAL)
        elif scope == "all":
            query = QuestionBankService.visible_query(actor)
        else:
            raise ValidationError("scope must be one of: all, personal, global")

        if category and category.strip():
            query = query.filter(BankQuestion.category == category.strip())
        return query.order_by(BankQuestion.created_at.desc(), BankQuestion.id.desc()).all()

    @staticmethod
    def create(actor: Actor, data: dict) -> BankQuestion:
        question = validate_question(data)
        category = _required_text(data, "category", "Category")
        try:
            scope = QuestionScope(data.get("scope") or QuestionScope.PERSONAL.value)
        except ValueError:
            raise ValidationError("scope must be one of: personal, global")

        bank_question = BankQuestion(
            text=question["text"],
            options=question["options"],
            correct_index=question["correct_index"],
            category=category,
            scope=scope,
            created_by=actor.id,
        )
        db.session.add(bank_question)
        db.session.commit()
        return bank_question

    @staticmethod
    def delete(actor: Actor, question_id: int) -> None:
        question = db.session.get(BankQuestion, question_id)
        if not question:
            raise NotFound("Question not found")
        if not actor.can_manage(question):
            raise Forbidden()
        db.session.delete(question)
        db.session.commit()

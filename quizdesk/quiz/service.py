"""
Quiz catalog, attempt engine and leaderboard.

Routes hand these services an explicit ``Actor``; services raise
``QuizDeskError`` subclasses that the app renders as JSON.
"""
from datetime import datetime

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from quizdesk import db
from quizdesk.auth.models import User
from quizdesk.auth.session import Actor
from quizdesk.common.codes import hash_access_code, normalize_code
from quizdesk.common.errors import Conflict, Forbidden, InternalError, NotFound
from quizdesk.config import config
from quizdesk.groups.service import GroupService
from quizdesk.quiz.access import resolve_access
from quizdesk.quiz.models import AccessType, Attempt, Quiz
from quizdesk.quiz.scoring import parse_answers, parse_time_taken, score_answers, shuffle_questions
from quizdesk.security import SecurityLogger


def _isoformat(value):
    return value.isoformat() if value else None


def _answer_snapshot(questions, review) -> list[dict]:
    """Review entries enriched with the question text and options as scored."""
    by_id = {q.id: q for q in questions}
    snapshot = []
    for item in review:
        entry = item.to_dict()
        question = by_id.get(item.question_id)
        entry["text"] = question.text if question is not None else None
        entry["options"] = list(question.options) if question is not None else []
        snapshot.append(entry)
    return snapshot


class QuizCatalog:
    """Student-facing reads of quiz definitions."""

    @staticmethod
    def get_enabled_or_404(quiz_id: int) -> Quiz:
        quiz = db.session.get(Quiz, quiz_id)
        if not quiz or not quiz.is_enabled:
            raise NotFound("Quiz not found")
        return quiz

    @staticmethod
    def authorize(actor: Actor, quiz: Quiz, supplied_code: str | None) -> None:
        """Run the access policy for this request; Forbidden on denial."""
        member_groups = GroupService.member_group_ids(actor.id) if quiz.access_type is AccessType.GROUP else set()
        decision = resolve_access(actor, quiz, supplied_code, member_groups)
        if not decision:
            SecurityLogger.log_access_denied(actor.id, quiz.id, decision.reason)
            raise Forbidden(decision.reason)

    @staticmethod
    def has_attempted(actor: Actor, quiz_id: int) -> bool:
        return db.session.query(Attempt.id).filter_by(user_id=actor.id, quiz_id=quiz_id).first() is not None

    @staticmethod
    def list_visible(actor: Actor, scope: str | None = None) -> list[dict]:
        """
        Enabled quizzes the actor can open without a code.

        ``scope='global'`` restricts to public quizzes. Code quizzes are never
        listed; they are reached through code redemption.
        """
        query = Quiz.query.filter(Quiz.is_enabled.is_(True))
        if scope == "global":
            query = query.filter(Quiz.access_type == AccessType.GLOBAL)
        else:
            visible = [Quiz.access_type == AccessType.GLOBAL]
            group_ids = GroupService.member_group_ids(actor.id)
            if group_ids:
                visible.append((Quiz.access_type == AccessType.GROUP) & Quiz.group_id.in_(group_ids))
            if actor.is_admin:
                visible.append(Quiz.id.isnot(None))
            elif actor.is_staff:
                visible.append(Quiz.created_by == actor.id)
            query = query.filter(or_(*visible))

        quizzes = query.order_by(Quiz.created_at.desc(), Quiz.id.desc()).all()
        attempted = {
            row.quiz_id for row in db.session.query(Attempt.quiz_id).filter(Attempt.user_id == actor.id).distinct()
        }
        result = []
        for quiz in quizzes:
            data = quiz.summary_dict()
            data["attempted"] = quiz.id in attempted
            result.append(data)
        return result

    @staticmethod
    def get_for_attempt(actor: Actor, quiz_id: int, supplied_code: str | None) -> dict:
        """
        The quiz as a student sees it: questions in a fresh random order
        and without correct answers.
        """
        quiz = QuizCatalog.get_enabled_or_404(quiz_id)
        QuizCatalog.authorize(actor, quiz, supplied_code)

        data = quiz.summary_dict()
        data["questions"] = [q.to_dict(include_answer=False) for q in shuffle_questions(quiz.questions)]
        data["attempted"] = QuizCatalog.has_attempted(actor, quiz.id)
        return data

    @staticmethod
    def redeem_code(actor: Actor, code: str) -> Quiz:
        """Find the enabled code-restricted quiz this code opens."""
        normalized = normalize_code(code)
        if not normalized:
            raise NotFound("Quiz not found")
        quiz = Quiz.query.filter_by(
            access_type=AccessType.CODE,
            access_code_hash=hash_access_code(normalized),
            is_enabled=True,
        ).first()
        if not quiz:
            current_app.logger.warning(f"SECURITY: Unknown quiz access code from user {actor.id}")
            raise NotFound("Quiz not found")
        return quiz


class AttemptService:
    """Accepts submissions, scores them and exposes attempt history."""

    @staticmethod
    def submit(actor: Actor, quiz_id: int, supplied_code: str | None, raw_answers, raw_time_taken) -> dict:
        quiz = QuizCatalog.get_enabled_or_404(quiz_id)
        # Re-check access; it may have changed since the quiz was fetched
        QuizCatalog.authorize(actor, quiz, supplied_code)

        answers = parse_answers(raw_answers)
        time_taken = parse_time_taken(raw_time_taken)

        if quiz.single_attempt and QuizCatalog.has_attempted(actor, quiz.id):
            SecurityLogger.log_duplicate_attempt(actor.id, quiz.id)
            raise Conflict("Attempt already exists")

        result = score_answers(quiz.questions, answers, quiz.marks_per_question)

        attempt = Attempt(
            user_id=actor.id,
            quiz_id=quiz.id,
            answers=_answer_snapshot(quiz.questions, result.review),
            score=result.score,
            total_marks=quiz.total_marks,
            time_taken_seconds=time_taken,
            attempt_date=datetime.utcnow(),
            single_attempt_lock=True if quiz.single_attempt else None,
        )
        db.session.add(attempt)
        try:
            db.session.commit()
        except IntegrityError:
            # A concurrent submission won the unique constraint
            db.session.rollback()
            SecurityLogger.log_duplicate_attempt(actor.id, quiz.id)
            raise Conflict("Attempt already exists")
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(f"Failed to save attempt for quiz {quiz.id}")
            raise InternalError("Submission failed")

        current_app.logger.info(
            f"Attempt {attempt.id} recorded: user {actor.id}, quiz {quiz.id}, score {result.score}/{quiz.total_marks}"
        )
        return {
            "attempt_id": attempt.id,
            "score": result.score,
            "total_marks": quiz.total_marks,
            "review": [item.to_dict() for item in result.review],
        }

    @staticmethod
    def list_for_user(actor: Actor) -> list[dict]:
        attempts = (
            Attempt.query.filter_by(user_id=actor.id)
            .order_by(Attempt.attempt_date.desc(), Attempt.id.desc())
            .all()
        )
        result = []
        for attempt in attempts:
            data = attempt.to_dict()
            data["quiz"] = {
                "id": attempt.quiz.id,
                "title": attempt.quiz.title,
                "category": attempt.quiz.category,
                "total_marks": attempt.quiz.total_marks,
            } if attempt.quiz else None
            result.append(data)
        return result

    @staticmethod
    def list_for_staff(actor: Actor, quiz_id: int | None = None) -> list[dict]:
        """Attempts on quizzes the actor manages; admins see every attempt."""
        query = (
            db.session.query(Attempt, User, Quiz)
            .join(User, User.id == Attempt.user_id)
            .join(Quiz, Quiz.id == Attempt.quiz_id)
        )
        if not actor.is_admin:
            query = query.filter(Quiz.created_by == actor.id)
        if quiz_id is not None:
            query = query.filter(Attempt.quiz_id == quiz_id)

        rows = query.order_by(Attempt.attempt_date.desc(), Attempt.id.desc()).all()
        result = []
        for attempt, user, quiz in rows:
            data = attempt.to_dict()
            data["user"] = {"id": user.id, "name": user.name, "email": user.email}
            data["quiz"] = {"id": quiz.id, "title": quiz.title, "total_marks": quiz.total_marks}
            result.append(data)
        return result

    @staticmethod
    def review(actor: Actor, attempt_id: int) -> dict:
        """
        Detailed review of a stored attempt, with question text and options.

        Read from the snapshot taken at submission; edits to the quiz since
        then do not change it. Visible to the student who made it, the quiz
        owner and admins.
        """
        attempt = db.session.get(Attempt, attempt_id)
        if not attempt:
            raise NotFound("Attempt not found")
        quiz = attempt.quiz
        if attempt.user_id != actor.id and not (quiz and actor.can_manage(quiz)):
            raise Forbidden()

        review = [
            {
                "question_id": entry.get("question_id"),
                "selected_index": entry.get("selected_index"),
                "correct_index": entry.get("correct_index"),
                "is_correct": bool(entry.get("is_correct")),
                "text": entry.get("text"),
                "options": list(entry.get("options") or []),
            }
            for entry in attempt.answers or []
        ]

        data = attempt.to_dict()
        data.update({
            "quiz": quiz.summary_dict() if quiz else None,
            "review": review,
        })
        return data


class Leaderboard:
    """Rankings and summary statistics computed from stored attempts."""

    @staticmethod
    def for_quiz(actor: Actor, quiz_id: int, supplied_code: str | None) -> list[dict]:
        """
        Top attempts for a quiz: higher score first, then faster, then earlier.
        Recomputed on every call.
        """
        quiz = QuizCatalog.get_enabled_or_404(quiz_id)
        QuizCatalog.authorize(actor, quiz, supplied_code)

        rows = (
            db.session.query(Attempt, User)
            .join(User, User.id == Attempt.user_id)
            .filter(Attempt.quiz_id == quiz.id)
            .order_by(
                Attempt.score.desc(),
                Attempt.time_taken_seconds.asc(),
                Attempt.attempt_date.asc(),
                Attempt.id.asc(),
            )
            .limit(config.LEADERBOARD_SIZE)
            .all()
        )
        return [
            {
                "rank": index + 1,
                "attempt_id": attempt.id,
                "user": {"id": user.id, "name": user.name},
                "score": attempt.score,
                "time_taken_seconds": attempt.time_taken_seconds,
                "attempt_date": _isoformat(attempt.attempt_date),
            }
            for index, (attempt, user) in enumerate(rows)
        ]

    @staticmethod
    def quiz_stats(quiz: Quiz) -> dict:
        count, average, highest, lowest, average_time = db.session.query(
            func.count(Attempt.id),
            func.avg(Attempt.score),
            func.max(Attempt.score),
            func.min(Attempt.score),
            func.avg(Attempt.time_taken_seconds),
        ).filter(Attempt.quiz_id == quiz.id).one()
        return {
            "quiz_id": quiz.id,
            "total_marks": quiz.total_marks,
            "attempts_count": count,
            "average_score": round(float(average), 2) if average is not None else 0,
            "highest_score": highest if highest is not None else 0,
            "lowest_score": lowest if lowest is not None else 0,
            "average_time_seconds": round(float(average_time), 2) if average_time is not None else 0,
        }

    @staticmethod
    def platform_stats() -> dict:
        average = db.session.query(func.avg(Attempt.score)).scalar()
        return {
            "users_count": db.session.query(func.count(User.id)).scalar(),
            "quiz_count": db.session.query(func.count(Quiz.id)).scalar(),
            "attempts_count": db.session.query(func.count(Attempt.id)).scalar(),
            "average_score": round(float(average), 2) if average is not None else 0,
        }

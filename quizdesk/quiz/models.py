"""
Database models for quiz functionality.

Questions are multiple choice: a list of option strings and the index of
the correct one. Bank questions are copied by value into quizzes.
"""
import enum
from datetime import datetime

from quizdesk import db


def _enum_column(enum_cls, name: str):
    return db.Enum(enum_cls, name=name, values_callable=lambda members: [m.value for m in members])


class AccessType(str, enum.Enum):
    GLOBAL = "global"
    GROUP = "group"
    CODE = "code"


class QuestionScope(str, enum.Enum):
    PERSONAL = "personal"
    GLOBAL = "global"


class Quiz(db.Model):
    """
    A timed multiple-choice quiz.

    ``total_marks`` is kept equal to question count times ``marks_per_question``
    by ``set_questions``.
    """
    __tablename__ = "quizzes"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False, index=True)
    time_limit_minutes = db.Column(db.Integer, nullable=False)
    total_marks = db.Column(db.Integer, nullable=False, default=0)
    marks_per_question = db.Column(db.Integer, nullable=False, default=1)
    is_enabled = db.Column(db.Boolean, nullable=False, default=True, index=True)
    single_attempt = db.Column(db.Boolean, nullable=False, default=True)
    access_type = db.Column(_enum_column(AccessType, "quiz_access_type"), nullable=False, default=AccessType.GLOBAL)
    access_code = db.Column(db.String(20), nullable=True)
    access_code_hash = db.Column(db.String(64), nullable=True, index=True)
    group_id = db.Column(db.Integer, db.ForeignKey("groups.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    creator = db.relationship("User", foreign_keys=[created_by])
    group = db.relationship("Group", foreign_keys=[group_id])
    questions = db.relationship(
        "QuizQuestion", backref="quiz", lazy="selectin",
        cascade="all, delete-orphan", order_by="QuizQuestion.position",
    )

    __table_args__ = (
        db.Index('ix_quizzes_enabled_access', 'is_enabled', 'access_type'),
    )

    def __repr__(self) -> str:
        return f"<Quiz {self.id}: {self.title}>"

    def set_questions(self, questions: list[dict]) -> None:
        """Replace the question list with validated ``{text, options, correct_index}`` dicts."""
        self.questions = [
            QuizQuestion(position=index, text=q["text"], options=list(q["options"]), correct_index=q["correct_index"])
            for index, q in enumerate(questions)
        ]
        self.recompute_total_marks()

    def append_questions(self, questions: list[dict]) -> None:
        start = len(self.questions)
        for offset, q in enumerate(questions):
            self.questions.append(
                QuizQuestion(position=start + offset, text=q["text"], options=list(q["options"]),
                             correct_index=q["correct_index"])
            )
        self.recompute_total_marks()

    def recompute_total_marks(self) -> None:
        self.total_marks = len(self.questions) * (self.marks_per_question or 1)

    def summary_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "time_limit_minutes": self.time_limit_minutes,
            "total_marks": self.total_marks,
            "question_count": len(self.questions),
            "single_attempt": self.single_attempt,
            "access_type": self.access_type.value,
        }

    def to_staff_dict(self) -> dict:
        """Full definition including the answer key; only for the owner or an admin."""
        data = self.summary_dict()
        data.update({
            "marks_per_question": self.marks_per_question,
            "is_enabled": self.is_enabled,
            "access_code": self.access_code,
            "group_id": self.group_id,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "questions": [q.to_dict(include_answer=True) for q in self.questions],
        })
        return data


class QuizQuestion(db.Model):
    """A question owned by one quiz."""
    __tablename__ = "quiz_questions"

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    text = db.Column(db.Text, nullable=False)
    options = db.Column(db.JSON, nullable=False)
    correct_index = db.Column(db.Integer, nullable=False)

    __table_args__ = (
        db.Index('ix_quiz_questions_quiz_position', 'quiz_id', 'position'),
    )

    def __repr__(self) -> str:
        return f"<QuizQuestion {self.id} of quiz {self.quiz_id}>"

    def to_dict(self, include_answer: bool = False) -> dict:
        data = {"id": self.id, "text": self.text, "options": list(self.options)}
        if include_answer:
            data["correct_index"] = self.correct_index
        return data


class BankQuestion(db.Model):
    """Reusable question in the question bank."""
    __tablename__ = "bank_questions"

    id = db.Column(db.Integer, primary_key=True)
    text = db.Column(db.Text, nullable=False)
    options = db.Column(db.JSON, nullable=False)
    correct_index = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(120), nullable=False, index=True)
    scope = db.Column(_enum_column(QuestionScope, "question_scope"), nullable=False, default=QuestionScope.PERSONAL)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        db.Index('ix_bank_questions_scope_category', 'scope', 'category'),
    )

    def __repr__(self) -> str:
        return f"<BankQuestion {self.id}: {self.category}>"

    def as_quiz_question(self) -> dict:
        return {"text": self.text, "options": list(self.options), "correct_index": self.correct_index}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "options": list(self.options),
            "correct_index": self.correct_index,
            "category": self.category,
            "scope": self.scope.value,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Attempt(db.Model):
    """
    One completed submission of a quiz.

    ``answers`` holds one entry per submitted answer with the selection, the
    answer key and the question text and options as they were when the
    attempt was scored, so later quiz edits leave the attempt unchanged.

    ``single_attempt_lock`` is True for attempts on single-attempt quizzes and
    NULL otherwise. The unique constraint over (user, quiz, lock) therefore
    allows exactly one locked attempt per user and quiz, while NULLs never
    collide and multi-attempt quizzes stay unconstrained.
    """
    __tablename__ = "attempts"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    answers = db.Column(db.JSON, nullable=False, default=list)
    score = db.Column(db.Integer, nullable=False)
    total_marks = db.Column(db.Integer, nullable=True)
    time_taken_seconds = db.Column(db.Integer, nullable=False, default=0)
    attempt_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    single_attempt_lock = db.Column(db.Boolean, nullable=True)

    user = db.relationship("User", foreign_keys=[user_id])
    quiz = db.relationship("Quiz", foreign_keys=[quiz_id])

    __table_args__ = (
        db.UniqueConstraint('user_id', 'quiz_id', 'single_attempt_lock', name='uq_attempts_single'),
        db.Index('ix_attempts_quiz_ranking', 'quiz_id', 'score', 'time_taken_seconds'),
    )

    def __repr__(self) -> str:
        return f"<Attempt {self.id}: user {self.user_id}, quiz {self.quiz_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "quiz_id": self.quiz_id,
            "score": self.score,
            "total_marks": self.total_marks,
            "time_taken_seconds": self.time_taken_seconds,
            "attempt_date": self.attempt_date.isoformat() if self.attempt_date else None,
        }

"""
Scoring and shuffling for quiz attempts.

These functions work on plain values (anything with ``id`` and
``correct_index`` attributes for questions) so they can be used without a
database session.
"""
import random
from dataclasses import dataclass, field

from quizdesk.common.errors import ValidationError


UNANSWERED = -1


@dataclass
class ReviewItem:
    question_id: object
    selected_index: int
    correct_index: int | None
    is_correct: bool

    def to_dict(self) -> dict:
        return {
            "question_id": self.question_id,
            "selected_index": self.selected_index,
            "correct_index": self.correct_index,
            "is_correct": self.is_correct,
        }


@dataclass
class ScoreResult:
    score: int = 0
    review: list[ReviewItem] = field(default_factory=list)


def _as_int(value, field_name: str) -> int:
    """Accept ints, integral floats and numeric strings; reject bools and the rest."""
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"{field_name} must be an integer")


def parse_answers(raw) -> list[dict]:
    """
    Validate a submitted answer list.

    Returns ``[{"question_id": int, "selected_index": int}]``. A missing
    ``selected_index`` means unanswered (-1). Each question may be answered
    at most once.
    """
    if not isinstance(raw, list):
        raise ValidationError("Invalid answers")

    answers = []
    seen = set()
    for item in raw:
        if not isinstance(item, dict) or item.get("question_id") is None:
            raise ValidationError("Each answer needs a question_id")
        question_id = _as_int(item["question_id"], "question_id")
        if question_id in seen:
            raise ValidationError(f"Duplicate answer for question {question_id}")
        seen.add(question_id)
        selected = item.get("selected_index")
        answers.append({
            "question_id": question_id,
            "selected_index": UNANSWERED if selected is None else _as_int(selected, "selected_index"),
        })
    return answers


def parse_time_taken(raw) -> int:
    if raw is None or raw == "":
        return 0
    seconds = _as_int(raw, "time_taken_seconds")
    if seconds < 0:
        raise ValidationError("time_taken_seconds must not be negative")
    return seconds


def score_answers(questions, answers: list[dict], marks_per_question: int = 1) -> ScoreResult:
    """
    Score submitted answers against the authoritative questions.

    Every submitted answer gets a review entry, in submission order. An
    answer for a question id the quiz does not have is incorrect and has no
    correct index.
    """
    by_id = {q.id: q for q in questions}
    marks = marks_per_question or 1
    result = ScoreResult()

    for answer in answers:
        question = by_id.get(answer["question_id"])
        correct_index = question.correct_index if question is not None else None
        is_correct = question is not None and answer["selected_index"] == correct_index
        if is_correct:
            result.score += marks
        result.review.append(ReviewItem(
            question_id=answer["question_id"],
            selected_index=answer["selected_index"],
            correct_index=correct_index,
            is_correct=is_correct,
        ))
    return result


def shuffle_questions(questions, rng: random.Random | None = None) -> list:
    """Return a uniformly shuffled copy; the input sequence is left untouched."""
    shuffled = list(questions)
    (rng or random).shuffle(shuffled)
    return shuffled

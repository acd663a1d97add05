"""
Quiz access policy.

``resolve_access`` is the single predicate used when a quiz is fetched,
when an attempt is submitted and when a leaderboard is read, so revoking
access between viewing and submitting takes effect on submit.
"""
from dataclasses import dataclass

from quizdesk.auth.session import Actor
from quizdesk.common.codes import verify_access_code
from quizdesk.quiz.models import AccessType


DENIED_REASON = "Access denied"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = AccessDecision(True)


def resolve_access(actor: Actor, quiz, supplied_code: str | None, member_group_ids) -> AccessDecision:
    """
    Decide whether ``actor`` may view or attempt ``quiz``.

    Args:
        actor: The calling user
        quiz: Anything with ``created_by``, ``access_type``, ``group_id`` and
            ``access_code_hash``
        supplied_code: Access code sent with the request, if any
        member_group_ids: Ids of the groups the actor belongs to
    """
    if actor.can_manage(quiz):
        return ALLOW

    if quiz.access_type is AccessType.GLOBAL:
        return ALLOW

    if quiz.access_type is AccessType.GROUP:
        if quiz.group_id is not None and quiz.group_id in member_group_ids:
            return ALLOW
        return AccessDecision(False, DENIED_REASON)

    if quiz.access_type is AccessType.CODE:
        if verify_access_code(supplied_code, quiz.access_code_hash):
            return ALLOW
        return AccessDecision(False, DENIED_REASON)

    return AccessDecision(False, DENIED_REASON)

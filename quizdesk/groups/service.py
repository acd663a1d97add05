"""Group membership operations."""
from flask import current_app
from sqlalchemy.exc import IntegrityError

from quizdesk import db
from quizdesk.auth.models import User
from quizdesk.auth.session import Actor
from quizdesk.common.codes import generate_unique_code, normalize_code
from quizdesk.common.errors import Forbidden, InternalError, NotFound, ValidationError
from quizdesk.config import config
from quizdesk.groups.models import Group, group_members
from quizdesk.security import SecurityLogger


class GroupService:
    """Create, join, leave and administer groups."""

    @staticmethod
    def member_group_ids(user_id: int) -> set[int]:
        """Ids of every group the user belongs to."""
        rows = db.session.query(group_members.c.group_id).filter(group_members.c.user_id == user_id).all()
        return {row.group_id for row in rows}

    @staticmethod
    def get_or_404(group_id: int) -> Group:
        group = db.session.get(Group, group_id)
        if not group:
            raise NotFound("Group not found")
        return group

    @staticmethod
    def list_for(actor: Actor, scope: str | None = None) -> list[Group]:
        query = Group.query
        if scope == "owned":
            if not actor.is_staff:
                raise Forbidden()
            query = query.filter(Group.created_by == actor.id)
        elif actor.is_admin:
            pass
        elif actor.is_staff:
            query = query.filter(Group.created_by == actor.id)
        else:
            query = query.join(group_members, group_members.c.group_id == Group.id).filter(
                group_members.c.user_id == actor.id
            )
        return query.order_by(Group.created_at.desc(), Group.id.desc()).all()

    @staticmethod
    def get_visible(actor: Actor, group_id: int) -> Group:
        group = GroupService.get_or_404(group_id)
        if not (actor.is_admin or actor.owns(group) or group.has_member(actor.id)):
            raise Forbidden()
        return group

    @staticmethod
    def create(actor: Actor, name: str) -> Group:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Group name required")

        try:
            code = generate_unique_code(
                config.GROUP_CODE_LENGTH,
                lambda candidate: db.session.query(Group.id).filter_by(code=candidate).first() is not None,
            )
        except RuntimeError as e:
            raise InternalError(str(e))

        owner = db.session.get(User, actor.id)
        group = Group(name=name, code=code, created_by=actor.id)
        group.members.append(owner)
        db.session.add(group)
        db.session.commit()
        current_app.logger.info(f"Group {group.id} created by user {actor.id}")
        return group

    @staticmethod
    def join(actor: Actor, code: str) -> Group:
        """Add the actor to the group with this code. Joining twice changes nothing."""
        normalized = normalize_code(code)
        if not normalized:
            raise ValidationError("Join code required")

        group = Group.query.filter_by(code=normalized).first()
        if not group:
            raise NotFound("Group not found")

        if group.has_member(actor.id):
            return group

        group_id = group.id
        group.members.append(db.session.get(User, actor.id))
        try:
            db.session.commit()
        except IntegrityError:
            # A concurrent join by the same user already added the row
            db.session.rollback()
            return GroupService.get_or_404(group_id)
        SecurityLogger.log_membership_change(group_id, actor.id, "joined", actor.id)
        return group

    @staticmethod
    def leave(actor: Actor, group_id: int) -> None:
        group = GroupService.get_or_404(group_id)
        if actor.owns(group):
            raise ValidationError("Group owner cannot leave the group.")
        if not group.has_member(actor.id):
            raise ValidationError("You are not a member of this group.")

        GroupService._remove(group, actor.id)
        SecurityLogger.log_membership_change(group.id, actor.id, "left", actor.id)

    @staticmethod
    def remove_member(actor: Actor, group_id: int, member_id: int) -> None:
        group = GroupService.get_or_404(group_id)
        if not (actor.is_admin or actor.owns(group)):
            raise Forbidden()
        if group.created_by == member_id:
            raise ValidationError("Owner cannot be removed from group.")
        if not group.has_member(member_id):
            raise NotFound("Member not found in group.")

        GroupService._remove(group, member_id)
        SecurityLogger.log_membership_change(group.id, member_id, "removed", actor.id)

    @staticmethod
    def delete(actor: Actor, group_id: int) -> None:
        group = GroupService.get_or_404(group_id)
        if not (actor.is_admin or actor.owns(group)):
            raise Forbidden()
        # Quizzes restricted to this group lose their group and stay staff-only
        from quizdesk.quiz.models import Quiz
        Quiz.query.filter_by(group_id=group.id).update({"group_id": None}, synchronize_session=False)
        db.session.delete(group)
        db.session.commit()
        current_app.logger.info(f"Group {group_id} deleted by user {actor.id}")

    @staticmethod
    def _remove(group: Group, user_id: int) -> None:
        group.members = [member for member in group.members if member.id != user_id]
        db.session.commit()

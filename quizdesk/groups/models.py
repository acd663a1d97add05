"""
Database models for groups.

A group is a named set of users joined through a shareable code. Membership
is only used to decide who may open group-restricted quizzes.
"""
from datetime import datetime

from quizdesk import db


# The composite primary key makes joining twice a no-op at the storage level
group_members = db.Table(
    "group_members",
    db.Column("group_id", db.Integer, db.ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True),
    db.Column("user_id", db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True),
    db.Column("joined_at", db.DateTime, default=datetime.utcnow, nullable=False),
)


class Group(db.Model):
    __tablename__ = "groups"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(20), unique=True, nullable=False, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    creator = db.relationship("User", foreign_keys=[created_by])
    members = db.relationship("User", secondary=group_members, lazy="selectin", order_by="User.name")

    def __repr__(self) -> str:
        return f"<Group {self.id}: {self.name} ({self.code})>"

    def has_member(self, user_id: int) -> bool:
        return any(member.id == user_id for member in self.members)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "created_by": {"id": self.creator.id, "name": self.creator.name, "email": self.creator.email}
            if self.creator else None,
            "members": [
                {"id": m.id, "name": m.name, "email": m.email, "role": m.role.value}
                for m in self.members
            ],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

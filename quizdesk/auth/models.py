import enum
from datetime import datetime

from flask_login import UserMixin

from quizdesk import db


class Role(str, enum.Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"

    @classmethod
    def normalize(cls, value) -> "Role":
        """Map a requested role onto the enum; anything unknown becomes student."""
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.STUDENT

    @property
    def is_staff(self) -> bool:
        return self in (Role.TEACHER, Role.ADMIN)


class User(db.Model, UserMixin):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.Enum(Role, name="user_role", values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=Role.STUDENT,
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User {self.email} ({self.role.value})>"

    def to_public_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email, "role": self.role.value}

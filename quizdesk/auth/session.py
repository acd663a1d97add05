"""The per-request view of who is calling, passed explicitly into handlers."""
from dataclasses import dataclass

from quizdesk.auth.models import Role


@dataclass(frozen=True)
class Actor:
    id: int
    role: Role
    name: str

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.id, role=user.role, name=user.name)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def is_staff(self) -> bool:
        return self.role.is_staff

    def owns(self, record) -> bool:
        """True when the record's ``created_by`` is this actor."""
        return record.created_by == self.id

    def can_manage(self, record) -> bool:
        """Admins manage everything; teachers only what they created."""
        if self.is_admin:
            return True
        return self.is_staff and self.owns(record)

    def to_dict(self) -> dict:
        return {"id": self.id, "role": self.role.value, "name": self.name}

"""
Caller identity passed explicitly into service operations.
"""
from dataclasses import dataclass
from typing import Optional

from app.models.user import UserRole


@dataclass(frozen=True)
class Identity:
    email: str
    role: UserRole
    user_id: int
    employee_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.MANAGER)

    def owns(self, employee_id: Optional[int]) -> bool:
        return employee_id is not None and self.employee_id == employee_id

    @classmethod
    def from_user(cls, user) -> "Identity":
        profile = getattr(user, "employee_profile", None)
        return cls(
            email=user.email,
            role=user.role,
            user_id=user.id,
            employee_id=profile.id if profile else None,
        )

"""Authenticated caller identity passed explicitly into service operations."""

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True, frozen=True)
class AuthenticatedUser:
    user_id: str
    email: Optional[str] = None
    is_admin: bool = False

    def can_act_for(self, user_id: str) -> bool:
        return self.is_admin or self.user_id == user_id

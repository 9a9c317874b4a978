"""
Purpose: Core data models for the couriers domain.
What it does:
Defines the structure of a User (administrator or delivery agent) and their role
without relying on any ORM constraints.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import uuid


class UserRole(str, Enum):
    """
    Closed set of roles. Only DELIVERYMAN users can be assigned to an order.
    """
    ADMIN = "admin"
    DELIVERYMAN = "deliveryman"


@dataclass(frozen=True)
class User:
    id: str
    first_name: str
    last_name: str
    role: UserRole
    email: Optional[str] = None

    @property
    def is_deliveryman(self) -> bool:
        return self.role == UserRole.DELIVERYMAN

    @classmethod
    def new(
        cls,
        first_name: str,
        last_name: str,
        role: str | UserRole = UserRole.DELIVERYMAN,
        email: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> User:
        if isinstance(role, str):
            role = UserRole(role)

        return cls(
            id=user_id or str(uuid.uuid4()),
            first_name=first_name,
            last_name=last_name,
            role=role,
            email=email,
        )

"""
Purpose: In-memory user store.
Implements the user store contract (find_by_id, save) used by the dispatcher
to validate delivery agents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from .models import User


@dataclass
class InMemoryUserStore:
    _users: Dict[str, User] = field(default_factory=dict)

    def save(self, user: User) -> User:
        self._users[user.id] = user
        return user

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

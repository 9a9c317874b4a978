"""
Couriers domain package.

Public API:
- Domain models: User, UserRole
- In-memory store: InMemoryUserStore
"""
from .models import User, UserRole
from .store import InMemoryUserStore

__all__ = ["User", "UserRole", "InMemoryUserStore"]

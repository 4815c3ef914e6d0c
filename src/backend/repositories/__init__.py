"""Repository modules for database access."""

from repositories.session_repository import SessionRepository
from repositories.user_repository import UserRepository

__all__ = [
    "SessionRepository",
    "UserRepository",
]

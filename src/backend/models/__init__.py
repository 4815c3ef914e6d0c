"""Database models module."""

from models.activity import UserActivity
from models.badge import UserBadge
from models.perk import PerkRedemption
from models.session import UserSession
from models.user import User

__all__ = [
    "User",
    "UserActivity",
    "UserBadge",
    "PerkRedemption",
    "UserSession",
]

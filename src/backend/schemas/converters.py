"""
Schema converter functions.

Centralized helper functions for converting SQLAlchemy models and catalog
definitions to Pydantic schemas.
"""

from typing import TYPE_CHECKING

from core.exceptions import UserNotFoundError
from schemas.gamification import CatalogBadge, LeaderboardEntry
from schemas.user import (
    BadgeResponse,
    PerkRedemptionResponse,
    UserProfileResponse,
    UserResponse,
)
from services.catalog import BadgeDefinition

if TYPE_CHECKING:
    from models.user import User
    from repositories.user_repository import UserRepository


def badge_definition_to_schema(badge: BadgeDefinition) -> CatalogBadge:
    return CatalogBadge(
        id=badge.id,
        name=badge.name,
        description=badge.description,
        icon=badge.icon,
        rarity=badge.rarity.value,
        token_bonus=badge.token_bonus,
    )


def user_to_leaderboard_entry(user: "User", badges_count: int, position: int | None = None) -> LeaderboardEntry:
    return LeaderboardEntry(
        id=str(user.id),
        name=user.name,
        avatar=user.avatar,
        tokens=user.tokens,
        level=user.level,
        streak=user.streak,
        badges_count=badges_count,
        position=position,
    )


async def load_user_profile(repo: "UserRepository", user_id: str) -> UserProfileResponse:
    """
    Read a user and their progression history into a profile response.

    This is the single source of truth for the profile shape returned by the
    auth and user endpoints.
    """
    user = await repo.get_by_id(user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    badges = await repo.list_badges(user_id)
    activity_ids = await repo.list_completed_activity_ids(user_id)
    perks = await repo.list_perks(user_id)

    base = UserResponse.model_validate(user)
    return UserProfileResponse(
        **base.model_dump(),
        badges=[BadgeResponse.model_validate(b) for b in badges],
        completed_activities=activity_ids,
        redeemed_perks=[PerkRedemptionResponse.model_validate(p) for p in perks],
    )

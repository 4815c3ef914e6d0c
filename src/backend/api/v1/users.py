"""
User profile and progression endpoints.

Every progression change goes through the event processor; these handlers
only translate requests into ledger events and read back the result.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_event_processor, get_progression_service
from db.session import get_db
from db.types import utc_now
from models.user import User
from repositories.user_repository import UserRepository
from schemas.converters import badge_definition_to_schema, load_user_profile
from schemas.gamification import (
    ActivityCompleteRequest,
    BadgeAwardRequest,
    GameResultRequest,
    PerkRedeemRequest,
    ProgressionResponse,
)
from schemas.user import (
    ActivityResponse,
    BadgeResponse,
    PerkRedemptionResponse,
    UserProfileResponse,
    UserProfileUpdate,
)
from services.catalog import BadgeDefinition, BadgeRarity
from services.event_processor import EventProcessor
from services.progression_service import ProgressionResult, ProgressionService

logger = structlog.get_logger(__name__)

router = APIRouter()


async def _progression_response(db: AsyncSession, user_id: str, result: ProgressionResult) -> ProgressionResponse:
    return ProgressionResponse(
        user=await load_user_profile(UserRepository(db), user_id),
        badges_awarded=[badge_definition_to_schema(b) for b in result.badges_awarded],
        tokens_earned=result.rewards.tokens if result.rewards else None,
        xp_earned=result.rewards.xp if result.rewards else None,
    )


# =============================================================================
# Profile
# =============================================================================


@router.put("/profile", response_model=UserProfileResponse)
async def update_profile(
    profile_data: UserProfileUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> UserProfileResponse:
    """
    Update the current user's profile.

    Only identity and preference fields can be changed here.
    """
    repo = UserRepository(db)
    await repo.update_profile(
        user_id=current_user.id,
        name=profile_data.name,
        email=profile_data.email,
        avatar=profile_data.avatar,
        language=profile_data.language,
        tts_enabled=profile_data.tts_enabled,
    )
    return await load_user_profile(repo, current_user.id)


@router.delete("/account")
async def delete_account(
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Delete the account with all badges, activities, perks and sessions."""
    await UserRepository(db).delete(current_user.id)
    return {"message": "Account deleted successfully"}


# =============================================================================
# Badges
# =============================================================================


@router.get("/badges", response_model=list[BadgeResponse])
async def get_badges(
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> list[BadgeResponse]:
    badges = await UserRepository(db).list_badges(current_user.id)
    return [BadgeResponse.model_validate(b) for b in badges]


@router.post("/badges", response_model=UserProfileResponse, status_code=status.HTTP_201_CREATED)
async def award_badge(
    request: BadgeAwardRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
    processor: EventProcessor = Depends(get_event_processor),
) -> UserProfileResponse:
    """Award a badge. A badge the user already holds is rejected with 409."""
    badge = BadgeDefinition(
        id=request.badge_id,
        name=request.badge_name,
        description=request.badge_description or "",
        icon=request.badge_icon or "",
        rarity=BadgeRarity(request.badge_rarity),
    )
    await processor.award_badge(current_user.id, badge, utc_now())
    return await load_user_profile(UserRepository(db), current_user.id)


# =============================================================================
# Activities
# =============================================================================


@router.get("/activities", response_model=list[ActivityResponse])
async def get_activities(
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> list[ActivityResponse]:
    activities = await UserRepository(db).list_activities(current_user.id)
    return [ActivityResponse.model_validate(a) for a in activities]


@router.post("/activities", response_model=ProgressionResponse, status_code=status.HTTP_201_CREATED)
async def complete_activity(
    request: ActivityCompleteRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
    progression: ProgressionService = Depends(get_progression_service),
) -> ProgressionResponse:
    """Complete an activity once, crediting the given tokens and xp."""
    result = await progression.complete_activity(
        current_user.id,
        request.activity_id,
        request.tokens_earned,
        request.xp_earned,
        utc_now(),
    )
    return await _progression_response(db, current_user.id, result)


@router.post("/game-results", response_model=ProgressionResponse, status_code=status.HTTP_201_CREATED)
async def submit_game_result(
    request: GameResultRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
    progression: ProgressionService = Depends(get_progression_service),
) -> ProgressionResponse:
    """
    Record a finished game for a catalog activity.

    Rewards are computed from the activity's base values and the score, then
    score and first-activity badges are checked.
    """
    result = await progression.record_game_result(
        current_user.id,
        request.activity_id,
        request.score,
        request.perfect,
        utc_now(),
    )
    return await _progression_response(db, current_user.id, result)


# =============================================================================
# Perks
# =============================================================================


@router.get("/perks", response_model=list[PerkRedemptionResponse])
async def get_perks(
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> list[PerkRedemptionResponse]:
    perks = await UserRepository(db).list_perks(current_user.id)
    return [PerkRedemptionResponse.model_validate(p) for p in perks]


@router.post("/perks", response_model=UserProfileResponse, status_code=status.HTTP_201_CREATED)
async def redeem_perk(
    request: PerkRedeemRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
    processor: EventProcessor = Depends(get_event_processor),
) -> UserProfileResponse:
    """Spend tokens on a perk. Rejected with 400 when the balance is too low."""
    await processor.redeem_perk(
        current_user.id,
        request.perk_id,
        request.perk_name,
        request.cost,
        utc_now(),
    )
    return await load_user_profile(UserRepository(db), current_user.id)


# =============================================================================
# Streak
# =============================================================================


@router.put("/streak", response_model=ProgressionResponse)
async def refresh_streak(
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
    progression: ProgressionService = Depends(get_progression_service),
) -> ProgressionResponse:
    """Refresh the daily streak and check streak badges."""
    result = await progression.refresh_streak(current_user.id, utc_now())
    return await _progression_response(db, current_user.id, result)

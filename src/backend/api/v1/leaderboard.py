"""
Leaderboard endpoints.

Users are ranked by tokens, then level; earlier sign-ups win ties.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user_optional
from core.config import settings
from core.exceptions import UserNotFoundError
from db.session import get_db
from models.user import User
from repositories.user_repository import UserRepository
from schemas.converters import user_to_leaderboard_entry
from schemas.gamification import (
    LeaderboardPositionResponse,
    LeaderboardResponse,
    Pagination,
    UserPosition,
)

router = APIRouter()

NEIGHBOURS = 2


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(
    current_user: Annotated[Optional[User], Depends(get_current_user_optional)],
    db: AsyncSession = Depends(get_db),
    limit: int = Query(10, ge=1, le=settings.LEADERBOARD_MAX_LIMIT),
    offset: int = Query(0, ge=0),
) -> LeaderboardResponse:
    """
    Get a page of the leaderboard.

    Authenticated callers also get their own position.
    """
    repo = UserRepository(db)
    rows = await repo.get_leaderboard(limit=limit, offset=offset)
    total = await repo.count_users()

    entries = [
        user_to_leaderboard_entry(user, badges_count, position=offset + i + 1)
        for i, (user, badges_count) in enumerate(rows)
    ]

    user_position = None
    if current_user is not None:
        rank = await repo.get_user_rank(current_user.id)
        if rank is not None:
            badges = await repo.list_badges(current_user.id)
            user_position = UserPosition(
                position=rank,
                user=user_to_leaderboard_entry(current_user, len(badges), position=rank),
            )

    return LeaderboardResponse(
        leaderboard=entries,
        pagination=Pagination(
            limit=limit,
            offset=offset,
            total=total,
            has_more=offset + limit < total,
        ),
        user_position=user_position,
    )


@router.get("/position", response_model=LeaderboardPositionResponse)
async def get_position(
    db: AsyncSession = Depends(get_db),
    user_id: Optional[str] = Query(None),
) -> LeaderboardPositionResponse:
    """A user's position with up to two neighbours above and below."""
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="user_id is required",
        )

    repo = UserRepository(db)
    rank = await repo.get_user_rank(user_id)
    if rank is None:
        raise UserNotFoundError(user_id)

    start = max(rank - 1 - NEIGHBOURS, 0)
    rows = await repo.get_leaderboard(limit=rank - start + NEIGHBOURS, offset=start)

    me = None
    nearby = []
    for i, (user, badges_count) in enumerate(rows):
        entry = user_to_leaderboard_entry(user, badges_count, position=start + i + 1)
        if str(user.id) == user_id:
            me = entry
        else:
            nearby.append(entry)

    if me is None:
        # Ranking shifted between the two reads
        raise UserNotFoundError(user_id)

    return LeaderboardPositionResponse(position=rank, user=me, nearby_users=nearby)

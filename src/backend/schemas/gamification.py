"""
Progression and leaderboard Pydantic schemas.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from schemas.user import UserProfileResponse
from services.ledger_rules import MAX_AMOUNT


class ActivityCompleteRequest(BaseModel):
    """Completion of an activity with caller-computed rewards."""

    activity_id: str = Field(..., min_length=1, max_length=50)
    tokens_earned: int = Field(..., ge=0, le=MAX_AMOUNT)
    xp_earned: int = Field(..., ge=0, le=MAX_AMOUNT)


class GameResultRequest(BaseModel):
    """A finished game; rewards are computed from the catalog and the score."""

    activity_id: str = Field(..., min_length=1, max_length=50)
    score: int = Field(..., ge=0, le=MAX_AMOUNT)
    perfect: bool = False


class PerkRedeemRequest(BaseModel):
    perk_id: str = Field(..., min_length=1, max_length=50)
    perk_name: str = Field(..., min_length=1, max_length=100)
    cost: int = Field(..., ge=1, le=MAX_AMOUNT)


class BadgeAwardRequest(BaseModel):
    badge_id: str = Field(..., min_length=1, max_length=50)
    badge_name: str = Field(..., min_length=1, max_length=100)
    badge_description: Optional[str] = Field(None, max_length=500)
    badge_icon: Optional[str] = Field(None, max_length=10)
    badge_rarity: Literal["common", "rare", "epic", "legendary"] = "common"


class CatalogBadge(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    rarity: str
    token_bonus: int = 0


class ProgressionResponse(BaseModel):
    """Updated user after a ledger event, plus any badges it unlocked."""

    user: UserProfileResponse
    badges_awarded: List[CatalogBadge] = []
    tokens_earned: Optional[int] = None
    xp_earned: Optional[int] = None


class LeaderboardEntry(BaseModel):
    """Leaderboard row."""

    id: str
    name: str
    avatar: Optional[str] = None
    tokens: int
    level: int
    streak: int
    badges_count: int = 0
    position: Optional[int] = None


class Pagination(BaseModel):
    limit: int
    offset: int
    total: int
    has_more: bool


class UserPosition(BaseModel):
    position: int
    user: LeaderboardEntry


class LeaderboardResponse(BaseModel):
    """Leaderboard page, with the caller's own position when authenticated."""

    leaderboard: List[LeaderboardEntry]
    pagination: Pagination
    user_position: Optional[UserPosition] = None


class LeaderboardPositionResponse(BaseModel):
    """A user's position and up to two neighbours on each side."""

    position: int
    user: LeaderboardEntry
    nearby_users: List[LeaderboardEntry]

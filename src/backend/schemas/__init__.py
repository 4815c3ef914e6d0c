"""Schemas module initialization."""

from schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from schemas.catalog import CatalogActivity, CatalogPerk
from schemas.gamification import (
    ActivityCompleteRequest,
    BadgeAwardRequest,
    CatalogBadge,
    GameResultRequest,
    LeaderboardEntry,
    LeaderboardPositionResponse,
    LeaderboardResponse,
    PerkRedeemRequest,
    ProgressionResponse,
)
from schemas.user import (
    ActivityResponse,
    BadgeResponse,
    PerkRedemptionResponse,
    UserProfileResponse,
    UserProfileUpdate,
    UserResponse,
)

__all__ = [
    "ActivityCompleteRequest",
    "ActivityResponse",
    "BadgeAwardRequest",
    "BadgeResponse",
    "CatalogActivity",
    "CatalogBadge",
    "CatalogPerk",
    "GameResultRequest",
    "LeaderboardEntry",
    "LeaderboardPositionResponse",
    "LeaderboardResponse",
    "LoginRequest",
    "PerkRedeemRequest",
    "PerkRedemptionResponse",
    "ProgressionResponse",
    "RegisterRequest",
    "TokenResponse",
    "UserProfileResponse",
    "UserProfileUpdate",
    "UserResponse",
]

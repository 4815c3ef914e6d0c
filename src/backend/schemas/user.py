"""
User-related Pydantic schemas.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field


class BadgeResponse(BaseModel):
    """An earned badge."""

    badge_id: str
    badge_name: str
    badge_description: Optional[str] = None
    badge_icon: Optional[str] = None
    badge_rarity: str = "common"
    token_bonus: int = 0
    earned_at: datetime

    model_config = {"from_attributes": True}


class ActivityResponse(BaseModel):
    """A completed activity."""

    activity_id: str
    tokens_earned: int
    xp_earned: int
    completed_at: datetime

    model_config = {"from_attributes": True}


class PerkRedemptionResponse(BaseModel):
    """A redeemed perk."""

    perk_id: str
    perk_name: str
    cost: int
    redeemed_at: datetime

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    """Schema for user responses (no credentials)."""

    id: str
    name: str
    email: EmailStr
    avatar: Optional[str] = None
    tokens: int = 0
    xp: int = 0
    level: int = 1
    streak: int = 1
    last_login: Optional[datetime] = None
    language: str = "en"
    tts_enabled: bool = False
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserProfileResponse(UserResponse):
    """User with their full progression history."""

    badges: List[BadgeResponse] = []
    completed_activities: List[str] = []
    redeemed_perks: List[PerkRedemptionResponse] = []


class UserProfileUpdate(BaseModel):
    """Schema for updating the user profile. Progression fields are not accepted."""

    name: Optional[str] = Field(None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    avatar: Optional[str] = Field(None, max_length=500)
    language: Optional[Literal["en", "hi"]] = None
    tts_enabled: Optional[bool] = None

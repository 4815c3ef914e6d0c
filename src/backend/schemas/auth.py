"""
Authentication-related Pydantic schemas.
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from schemas.user import UserProfileResponse


class RegisterRequest(BaseModel):
    """New account registration."""

    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)  # bcrypt input limit
    avatar: Optional[str] = Field(None, max_length=500)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """JWT token response."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: UserProfileResponse

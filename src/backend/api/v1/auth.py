"""
Authentication endpoints.

Email and password accounts. Every issued token is recorded as a session row
(by hash), so logout and refresh revoke the old token immediately.
"""

from datetime import datetime
from typing import Annotated
from urllib.parse import quote

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_progression_service, security
from core.config import settings
from core.security import create_access_token, hash_password, hash_token, verify_password
from db.session import get_db
from db.types import utc_now
from models.user import User
from repositories.session_repository import SessionRepository
from repositories.user_repository import UserRepository
from schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from schemas.converters import load_user_profile
from schemas.user import UserProfileResponse
from services.progression_service import ProgressionService

logger = structlog.get_logger(__name__)

router = APIRouter()

DEFAULT_AVATAR_URL = "https://api.dicebear.com/7.x/avataaars/svg?seed={seed}"


async def _issue_token(db: AsyncSession, user_id: str, now: datetime) -> TokenResponse:
    """Create a JWT, store its session and build the token response."""
    token, expires_at = create_access_token({"sub": user_id})
    await SessionRepository(db).create(user_id, hash_token(token), expires_at, now)

    return TokenResponse(
        access_token=token,
        expires_in=int((expires_at - now).total_seconds()),
        user=await load_user_profile(UserRepository(db), user_id),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """
    Register a new account.

    New users start with the welcome token grant, level 1 and a 1-day streak.
    """
    now = utc_now()
    repo = UserRepository(db)

    user = await repo.create(
        name=request.name,
        email=request.email,
        password_hash=hash_password(request.password),
        now=now,
        avatar=request.avatar or DEFAULT_AVATAR_URL.format(seed=quote(request.name)),
        welcome_tokens=settings.WELCOME_TOKENS,
    )

    logger.info("user_registered", user_id=user.id)
    return await _issue_token(db, user.id, now)


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
    progression: ProgressionService = Depends(get_progression_service),
) -> TokenResponse:
    """
    Log in with email and password.

    Logging in counts as daily activity: the streak is refreshed and streak
    badges are checked before the token is issued.
    """
    repo = UserRepository(db)
    user = await repo.get_by_email(request.email)

    if not user or not verify_password(request.password, user.password_hash):
        logger.info("login_failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    now = utc_now()
    # Ledger write commits in its own transaction before this request writes anything
    await progression.refresh_streak(user.id, now)

    logger.info("user_logged_in", user_id=user.id)
    return await _issue_token(db, user.id, now)


@router.post("/logout")
async def logout(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Revoke the current token."""
    await SessionRepository(db).delete(hash_token(credentials.credentials))
    logger.info("user_logged_out", user_id=current_user.id)
    return {"message": "Logged out successfully"}


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """Exchange the current token for a new one; the old token stops working."""
    await SessionRepository(db).delete(hash_token(credentials.credentials))
    return await _issue_token(db, current_user.id, utc_now())


@router.get("/me", response_model=UserProfileResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> UserProfileResponse:
    """Current user's profile with badges, completed activities and redeemed perks."""
    return await load_user_profile(UserRepository(db), current_user.id)

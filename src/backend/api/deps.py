"""
Shared dependencies for API endpoints.

Includes:
- User JWT authentication, backed by stored sessions
- The event processor and progression service used by every ledger endpoint
"""

from typing import Annotated, Optional

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core.security import decode_token, hash_token
from db.session import get_db, get_session_maker
from db.types import utc_now
from models.user import User
from repositories.session_repository import SessionRepository
from repositories.user_repository import UserRepository
from services.event_processor import EventProcessor, create_event_processor
from services.progression_service import ProgressionService

logger = structlog.get_logger(__name__)

# Security schemes
security = HTTPBearer()
security_optional = HTTPBearer(auto_error=False)


# =============================================================================
# Ledger services
# =============================================================================

_event_processor: Optional[EventProcessor] = None
_progression_service: Optional[ProgressionService] = None


def get_event_processor() -> EventProcessor:
    """
    Process-wide event processor.

    A single instance is shared so that its per-user locks serialize every
    request for the same user.
    """
    global _event_processor
    if _event_processor is None:
        _event_processor = create_event_processor(get_session_maker())
    return _event_processor


def get_progression_service(
    processor: EventProcessor = Depends(get_event_processor),
) -> ProgressionService:
    global _progression_service
    if _progression_service is None or _progression_service.processor is not processor:
        _progression_service = ProgressionService(processor)
    return _progression_service


def reset_ledger_services() -> None:
    """Drop the cached processor (used when the database is reconfigured)."""
    global _event_processor, _progression_service
    _event_processor = None
    _progression_service = None


# =============================================================================
# User Authentication (JWT + session)
# =============================================================================


async def _resolve_user(token: str, db: AsyncSession) -> Optional[User]:
    """Return the token's user if the JWT is valid and its session is still active."""
    payload = decode_token(token)
    if payload is None:
        return None

    user_id = payload.get("sub")
    if user_id is None:
        return None

    session = await SessionRepository(db).get_active(hash_token(token), utc_now())
    if session is None or session.user_id != user_id:
        logger.info("inactive_session_used", user_id=user_id)
        return None

    return await UserRepository(db).get_by_id(user_id)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Extract and validate the current user from the bearer token.

    Raises:
        HTTPException: If token is invalid, revoked, expired, or user not found.
    """
    user = await _resolve_user(credentials.credentials, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_user_optional(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security_optional)],
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """
    Optionally extract and validate the current user from the bearer token.

    Returns None if no token is provided or token is invalid.
    """
    if credentials is None:
        return None
    return await _resolve_user(credentials.credentials, db)

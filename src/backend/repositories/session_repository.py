"""Login session persistence."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.session import UserSession


class SessionRepository:
    """Repository for issued access tokens, keyed by token hash."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _get_rowcount(self, result: Any) -> int:
        return getattr(result, "rowcount", 0) or 0

    async def create(self, user_id: str, token_hash: str, expires_at: datetime, now: datetime) -> UserSession:
        session = UserSession(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            created_at=now,
        )
        self.db.add(session)
        await self.db.flush()
        return session

    async def get_active(self, token_hash: str, now: datetime) -> Optional[UserSession]:
        """Return the session for a token hash unless it has expired."""
        result = await self.db.execute(
            select(UserSession).where(
                UserSession.token_hash == token_hash,
                UserSession.expires_at > now,
            )
        )
        return result.scalar_one_or_none()

    async def delete(self, token_hash: str) -> bool:
        result = await self.db.execute(delete(UserSession).where(UserSession.token_hash == token_hash))
        return self._get_rowcount(result) > 0

    async def delete_expired(self, now: datetime) -> int:
        """Remove expired sessions. Returns the number removed."""
        result = await self.db.execute(delete(UserSession).where(UserSession.expires_at <= now))
        return self._get_rowcount(result)

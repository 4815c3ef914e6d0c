"""
User repository: durable storage of user progression.

apply_delta() is the only path that writes tokens, xp, level, streak,
last_login, or appends activity/badge/perk records. Each write is guarded by
the user's version counter, so a delta computed from a stale snapshot is
never applied.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

import structlog
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import DuplicateEmailError, UserNotFoundError, VersionConflictError
from models.activity import UserActivity
from models.badge import UserBadge
from models.perk import PerkRedemption
from models.session import UserSession
from models.user import User
from services.catalog import BadgeRarity
from services.ledger_rules import (
    BadgeRecord,
    LedgerDelta,
    PerkRedemptionRecord,
    UserState,
)

logger = structlog.get_logger(__name__)


def to_user_state(
    user: User,
    activities: list[UserActivity],
    badges: list[UserBadge],
    perks: list[PerkRedemption],
) -> UserState:
    """Build the immutable ledger snapshot from ORM rows (rows in insertion order)."""
    return UserState(
        id=str(user.id),
        tokens=user.tokens,
        xp=user.xp,
        level=user.level,
        streak=user.streak,
        last_login=user.last_login,
        completed_activity_ids=tuple(a.activity_id for a in activities),
        badges=tuple(
            BadgeRecord(
                badge_id=b.badge_id,
                name=b.badge_name,
                description=b.badge_description or "",
                icon=b.badge_icon or "",
                rarity=BadgeRarity(b.badge_rarity),
                earned_at=b.earned_at,
                token_bonus=b.token_bonus or 0,
            )
            for b in badges
        ),
        redeemed_perks=tuple(
            PerkRedemptionRecord(
                perk_id=p.perk_id,
                perk_name=p.perk_name,
                cost=p.cost,
                redeemed_at=p.redeemed_at,
            )
            for p in perks
        ),
        version=user.version,
    )


class UserRepository:
    """Repository for user database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _get_rowcount(self, result: Any) -> int:
        """Safely get rowcount from result."""
        return getattr(result, "rowcount", 0) or 0

    # =========================================================================
    # Lookups
    # =========================================================================

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by ID."""
        result = await self.db.execute(
            select(User).where(User.id == user_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by email."""
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        """Check if email is already registered."""
        result = await self.db.execute(select(func.count(User.id)).where(User.email == email.lower()))
        count = result.scalar() or 0
        return count > 0

    async def get_state(self, user_id: str) -> Optional[UserState]:
        """Load the full progression snapshot for a user."""
        user = await self.get_by_id(user_id)
        if not user:
            return None

        activities = await self.db.execute(
            select(UserActivity).where(UserActivity.user_id == user_id).order_by(UserActivity.id)
        )
        badges = await self.db.execute(
            select(UserBadge).where(UserBadge.user_id == user_id).order_by(UserBadge.id)
        )
        perks = await self.db.execute(
            select(PerkRedemption).where(PerkRedemption.user_id == user_id).order_by(PerkRedemption.id)
        )
        return to_user_state(
            user,
            list(activities.scalars().all()),
            list(badges.scalars().all()),
            list(perks.scalars().all()),
        )

    async def list_badges(self, user_id: str) -> list[UserBadge]:
        """Earned badges, most recent first."""
        result = await self.db.execute(
            select(UserBadge)
            .where(UserBadge.user_id == user_id)
            .order_by(UserBadge.earned_at.desc(), UserBadge.id.desc())
        )
        return list(result.scalars().all())

    async def list_activities(self, user_id: str) -> list[UserActivity]:
        """Completed activities, most recent first."""
        result = await self.db.execute(
            select(UserActivity)
            .where(UserActivity.user_id == user_id)
            .order_by(UserActivity.completed_at.desc(), UserActivity.id.desc())
        )
        return list(result.scalars().all())

    async def list_completed_activity_ids(self, user_id: str) -> list[str]:
        """Completed activity IDs in completion order."""
        result = await self.db.execute(
            select(UserActivity.activity_id).where(UserActivity.user_id == user_id).order_by(UserActivity.id)
        )
        return list(result.scalars().all())

    async def list_perks(self, user_id: str) -> list[PerkRedemption]:
        """Perk redemptions, most recent first."""
        result = await self.db.execute(
            select(PerkRedemption)
            .where(PerkRedemption.user_id == user_id)
            .order_by(PerkRedemption.redeemed_at.desc(), PerkRedemption.id.desc())
        )
        return list(result.scalars().all())

    # =========================================================================
    # Writes
    # =========================================================================

    async def create(
        self,
        name: str,
        email: str,
        password_hash: str,
        now: datetime,
        avatar: Optional[str] = None,
        welcome_tokens: int = 100,
        user_id: Optional[str] = None,
        language: str = "en",
        tts_enabled: bool = False,
    ) -> User:
        """
        Create a new user with the starting progression.

        Raises:
            DuplicateEmailError: the email is already registered
        """
        if await self.email_exists(email):
            raise DuplicateEmailError(email)

        user = User(
            id=user_id or str(uuid4()),
            name=name,
            email=email.lower(),
            password_hash=password_hash,
            avatar=avatar,
            language=language,
            tts_enabled=tts_enabled,
            tokens=welcome_tokens,
            xp=0,
            level=1,
            streak=1,
            last_login=now,
            version=0,
            created_at=now,
            updated_at=now,
        )

        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same email
            raise DuplicateEmailError(email) from e
        await self.db.refresh(user)

        return user

    async def apply_delta(self, user_id: str, delta: LedgerDelta, expected_version: int) -> UserState:
        """
        Apply a ledger delta if the user is still at `expected_version`.

        The caller owns the transaction; nothing is visible until it commits.

        Raises:
            UserNotFoundError: no such user
            VersionConflictError: the user changed since the snapshot was taken
        """
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id, User.version == expected_version)
            .values(**delta.field_updates(), version=expected_version + 1)
            .execution_options(synchronize_session=False)
        )

        if self._get_rowcount(result) != 1:
            exists = await self.db.execute(select(func.count(User.id)).where(User.id == user_id))
            if not exists.scalar():
                raise UserNotFoundError(user_id)
            raise VersionConflictError(user_id, expected_version)

        if delta.activity is not None:
            self.db.add(
                UserActivity(
                    user_id=user_id,
                    activity_id=delta.activity.activity_id,
                    tokens_earned=delta.activity.tokens_earned,
                    xp_earned=delta.activity.xp_earned,
                    completed_at=delta.activity.completed_at,
                )
            )
        if delta.badge is not None:
            self.db.add(
                UserBadge(
                    user_id=user_id,
                    badge_id=delta.badge.badge_id,
                    badge_name=delta.badge.name,
                    badge_description=delta.badge.description,
                    badge_icon=delta.badge.icon,
                    badge_rarity=delta.badge.rarity.value,
                    token_bonus=delta.badge.token_bonus,
                    earned_at=delta.badge.earned_at,
                )
            )
        if delta.perk_redemption is not None:
            self.db.add(
                PerkRedemption(
                    user_id=user_id,
                    perk_id=delta.perk_redemption.perk_id,
                    perk_name=delta.perk_redemption.perk_name,
                    cost=delta.perk_redemption.cost,
                    redeemed_at=delta.perk_redemption.redeemed_at,
                )
            )
        await self.db.flush()

        state = await self.get_state(user_id)
        if state is None:
            raise UserNotFoundError(user_id)
        return state

    async def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        avatar: Optional[str] = None,
        language: Optional[str] = None,
        tts_enabled: Optional[bool] = None,
    ) -> User:
        """
        Update profile fields. Progression fields are not writable here.

        Raises:
            UserNotFoundError: no such user
            DuplicateEmailError: the new email belongs to another account
        """
        user = await self.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)

        updates: dict[str, Any] = {}
        if name is not None:
            updates["name"] = name
        if email is not None and email.lower() != user.email:
            if await self.email_exists(email):
                raise DuplicateEmailError(email)
            updates["email"] = email.lower()
        if avatar is not None:
            updates["avatar"] = avatar
        if language is not None:
            updates["language"] = language
        if tts_enabled is not None:
            updates["tts_enabled"] = tts_enabled

        if updates:
            await self.db.execute(update(User).where(User.id == user_id).values(**updates))

        refreshed = await self.get_by_id(user_id)
        if not refreshed:
            raise UserNotFoundError(user_id)
        return refreshed

    async def delete(self, user_id: str) -> None:
        """
        Delete a user and everything they own in one transaction.

        Raises:
            UserNotFoundError: no such user
        """
        for model in (UserSession, UserActivity, UserBadge, PerkRedemption):
            await self.db.execute(delete(model).where(model.user_id == user_id))

        result = await self.db.execute(delete(User).where(User.id == user_id))
        if self._get_rowcount(result) == 0:
            raise UserNotFoundError(user_id)

        logger.info("user_deleted", user_id=user_id)

    # =========================================================================
    # Leaderboard
    # =========================================================================

    async def get_leaderboard(
        self,
        limit: int = 10,
        offset: int = 0,
    ) -> list[tuple[User, int]]:
        """Users ranked by tokens then level, each with their badge count."""
        badges_count = func.count(UserBadge.id).label("badges_count")
        result = await self.db.execute(
            select(User, badges_count)
            .outerjoin(UserBadge, UserBadge.user_id == User.id)
            .group_by(User.id)
            .order_by(User.tokens.desc(), User.level.desc(), User.created_at, User.id)
            .offset(offset)
            .limit(limit)
        )
        return [(user, count) for user, count in result.all()]

    async def count_users(self) -> int:
        result = await self.db.execute(select(func.count(User.id)))
        return result.scalar() or 0

    async def get_user_rank(self, user_id: str) -> Optional[int]:
        """1-based leaderboard position, consistent with get_leaderboard ordering."""
        user = await self.get_by_id(user_id)
        if not user:
            return None

        result = await self.db.execute(
            select(func.count(User.id)).where(
                or_(
                    User.tokens > user.tokens,
                    (User.tokens == user.tokens) & (User.level > user.level),
                    (User.tokens == user.tokens)
                    & (User.level == user.level)
                    & (User.created_at < user.created_at),
                    (User.tokens == user.tokens)
                    & (User.level == user.level)
                    & (User.created_at == user.created_at)
                    & (User.id < user.id),
                )
            )
        )
        higher_count = result.scalar() or 0
        return higher_count + 1

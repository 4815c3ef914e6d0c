"""
Event Processor

The single entry point for changing a user's progression. For every event:

    Received -> Validated -> Applied        success
    Received -> Rejected                    validation failure or unknown user
    Received -> Validated -> StorageFailed  store failure, nothing persisted

Events for the same user are serialized by an in-process lock, and every
write is version-checked so that other processes cannot interleave either.
A version conflict restarts the read-validate-apply cycle from a fresh
snapshot. Storage failures are never retried here.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from weakref import WeakValueDictionary

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import (
    ConcurrentUpdateError,
    LedgerError,
    StorageError,
    UserNotFoundError,
    VersionConflictError,
)
from db.errors import storage_errors
from repositories.user_repository import UserRepository
from services.catalog import BadgeDefinition
from services.ledger_events import (
    ActivityCompleted,
    BadgeAwarded,
    LedgerEvent,
    PerkRedeemed,
    StreakCheck,
    event_name,
)
from services.ledger_rules import (
    LedgerDelta,
    UserState,
    apply_activity_completion,
    apply_badge_award,
    apply_perk_redemption,
    compute_streak_transition,
)

logger = structlog.get_logger(__name__)

DEFAULT_MAX_CONFLICT_RETRIES = 3


class EventState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    APPLIED = "applied"
    REJECTED = "rejected"
    STORAGE_FAILED = "storage_failed"


@dataclass(frozen=True)
class EventOutcome:
    """Result of a processed event: the snapshot it was validated against and the new state."""

    previous: UserState
    state: UserState
    applied: bool  # False when the rules produced an empty delta


def compute_delta(user: UserState, event: LedgerEvent) -> LedgerDelta:
    """Run the ledger rule that handles this event kind."""
    if isinstance(event, ActivityCompleted):
        return apply_activity_completion(
            user,
            event.activity_id,
            event.tokens_earned,
            event.xp_earned,
            event.occurred_at,
        )
    if isinstance(event, PerkRedeemed):
        return apply_perk_redemption(
            user,
            event.perk_id,
            event.perk_name,
            event.cost,
            event.occurred_at,
        )
    if isinstance(event, StreakCheck):
        return compute_streak_transition(user, event.occurred_at)
    if isinstance(event, BadgeAwarded):
        return apply_badge_award(user, event.badge, event.occurred_at)
    raise TypeError(f"Unsupported ledger event: {type(event).__name__}")


class EventProcessor:
    """Validates ledger events against fresh user state and persists the result."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        max_conflict_retries: int = DEFAULT_MAX_CONFLICT_RETRIES,
    ):
        self._session_maker = session_maker
        self.max_conflict_retries = max_conflict_retries
        self._locks: "WeakValueDictionary[str, asyncio.Lock]" = WeakValueDictionary()

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    async def process(self, event: LedgerEvent) -> EventOutcome:
        """
        Process one event to completion.

        Raises:
            LedgerValidationError: the event was rejected, state is unchanged
            UserNotFoundError: no such user
            StorageError: the store failed or kept conflicting, nothing was persisted
        """
        log = logger.bind(event_type=event_name(event), user_id=event.user_id)
        log.debug("ledger_event_state", state=EventState.RECEIVED.value)

        lock = self._lock_for(event.user_id)
        async with lock:
            attempts = 0
            while True:
                attempts += 1
                try:
                    outcome = await self._attempt(event)
                except VersionConflictError as e:
                    log.warning(
                        "ledger_version_conflict",
                        expected_version=e.expected_version,
                        attempt=attempts,
                    )
                    if attempts > self.max_conflict_retries:
                        error = ConcurrentUpdateError(event.user_id, attempts)
                        log.error(
                            "ledger_event_storage_failed",
                            state=EventState.STORAGE_FAILED.value,
                            error=error.code,
                        )
                        raise error from e
                    continue
                except StorageError as e:
                    log.error(
                        "ledger_event_storage_failed",
                        state=EventState.STORAGE_FAILED.value,
                        error=e.code,
                    )
                    raise
                except LedgerError as e:
                    log.info(
                        "ledger_event_rejected",
                        state=EventState.REJECTED.value,
                        error=e.code,
                        reason=e.message,
                    )
                    raise
                break

        if outcome.applied:
            log.info(
                "ledger_event_applied",
                state=EventState.APPLIED.value,
                tokens=outcome.state.tokens,
                xp=outcome.state.xp,
                level=outcome.state.level,
                streak=outcome.state.streak,
                version=outcome.state.version,
            )
        else:
            log.debug("ledger_event_noop", state=EventState.VALIDATED.value)
        return outcome

    async def _attempt(self, event: LedgerEvent) -> EventOutcome:
        """One read-validate-apply cycle inside a single transaction."""
        async with self._session_maker() as session:
            with storage_errors(event_name(event)):
                async with session.begin():
                    repo = UserRepository(session)
                    previous = await repo.get_state(event.user_id)
                    if previous is None:
                        raise UserNotFoundError(event.user_id)

                    delta = compute_delta(previous, event)
                    if delta.is_empty:
                        return EventOutcome(previous=previous, state=previous, applied=False)

                    state = await repo.apply_delta(event.user_id, delta, previous.version)

        return EventOutcome(previous=previous, state=state, applied=True)

    # =========================================================================
    # Operation families
    # =========================================================================

    async def complete_activity(
        self,
        user_id: str,
        activity_id: str,
        tokens_earned: int,
        xp_earned: int,
        now: datetime,
    ) -> UserState:
        outcome = await self.process(
            ActivityCompleted(
                user_id=user_id,
                activity_id=activity_id,
                tokens_earned=tokens_earned,
                xp_earned=xp_earned,
                occurred_at=now,
            )
        )
        return outcome.state

    async def redeem_perk(
        self,
        user_id: str,
        perk_id: str,
        perk_name: str,
        cost: int,
        now: datetime,
    ) -> UserState:
        outcome = await self.process(
            PerkRedeemed(
                user_id=user_id,
                perk_id=perk_id,
                perk_name=perk_name,
                cost=cost,
                occurred_at=now,
            )
        )
        return outcome.state

    async def refresh_streak(self, user_id: str, now: datetime) -> UserState:
        outcome = await self.process(StreakCheck(user_id=user_id, occurred_at=now))
        return outcome.state

    async def award_badge(self, user_id: str, badge: BadgeDefinition, now: datetime) -> UserState:
        """Award a badge. Raises DuplicateBadgeError if already held; callers may ignore it."""
        outcome = await self.process(BadgeAwarded(user_id=user_id, badge=badge, occurred_at=now))
        return outcome.state


def create_event_processor(
    session_maker: async_sessionmaker[AsyncSession],
    max_conflict_retries: Optional[int] = None,
) -> EventProcessor:
    """Build a processor using the configured retry limit."""
    if max_conflict_retries is None:
        from core.config import settings

        max_conflict_retries = settings.LEDGER_MAX_CONFLICT_RETRIES
    return EventProcessor(session_maker, max_conflict_retries=max_conflict_retries)

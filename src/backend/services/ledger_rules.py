"""
Ledger rules engine.

Pure functions that take an immutable snapshot of a user's progression and
an event's inputs, and return either a LedgerDelta or raise a validation
error. Nothing here performs I/O or reads the clock: "now" is always passed
in by the caller.

Rules:
- tokens never go negative; a redemption that would overdraw is rejected whole
- an activity can be completed once per user
- a badge can be earned once per user
- level is always floor(xp / 100) + 1
- streak depends only on whole days elapsed since last_login
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from core.exceptions import (
    DuplicateActivityError,
    DuplicateBadgeError,
    InsufficientTokensError,
    InvalidAmountError,
    LedgerValidationError,
)
from services.catalog import BadgeDefinition, BadgeRarity

XP_PER_LEVEL = 100

# Largest amount a stored counter can hold (32-bit signed INTEGER columns)
MAX_AMOUNT = 2**31 - 1

ONE_DAY = timedelta(days=1)


# =============================================================================
# Snapshot and delta types
# =============================================================================


@dataclass(frozen=True)
class ActivityRecord:
    activity_id: str
    tokens_earned: int
    xp_earned: int
    completed_at: datetime


@dataclass(frozen=True)
class BadgeRecord:
    badge_id: str
    name: str
    description: str
    icon: str
    rarity: BadgeRarity
    earned_at: datetime
    token_bonus: int = 0


@dataclass(frozen=True)
class PerkRedemptionRecord:
    perk_id: str
    perk_name: str
    cost: int
    redeemed_at: datetime


@dataclass(frozen=True)
class UserState:
    """Immutable view of a user's progression at a given version."""

    id: str
    tokens: int
    xp: int
    level: int
    streak: int
    last_login: Optional[datetime]
    completed_activity_ids: tuple[str, ...] = ()
    badges: tuple[BadgeRecord, ...] = ()
    redeemed_perks: tuple[PerkRedemptionRecord, ...] = ()
    version: int = 0

    def has_completed(self, activity_id: str) -> bool:
        return activity_id in self.completed_activity_ids

    def has_badge(self, badge_id: str) -> bool:
        return any(badge.badge_id == badge_id for badge in self.badges)

    @property
    def badge_ids(self) -> tuple[str, ...]:
        return tuple(badge.badge_id for badge in self.badges)


@dataclass(frozen=True)
class LedgerDelta:
    """
    Field changes computed by the rules engine.

    Scalar fields hold the new absolute value, or None when unchanged.
    Record fields hold at most one record to append.
    """

    tokens: Optional[int] = None
    xp: Optional[int] = None
    level: Optional[int] = None
    streak: Optional[int] = None
    last_login: Optional[datetime] = None
    activity: Optional[ActivityRecord] = None
    badge: Optional[BadgeRecord] = None
    perk_redemption: Optional[PerkRedemptionRecord] = None

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.tokens,
                self.xp,
                self.level,
                self.streak,
                self.last_login,
                self.activity,
                self.badge,
                self.perk_redemption,
            )
        )

    def field_updates(self) -> dict[str, object]:
        """Scalar column updates for the users row."""
        updates = {
            "tokens": self.tokens,
            "xp": self.xp,
            "level": self.level,
            "streak": self.streak,
            "last_login": self.last_login,
        }
        return {key: value for key, value in updates.items() if value is not None}

    def apply_to(self, state: UserState) -> UserState:
        """Return the state that results from applying this delta (no I/O)."""
        new_state = replace(state, **self.field_updates())
        if self.activity is not None:
            new_state = replace(
                new_state,
                completed_activity_ids=new_state.completed_activity_ids + (self.activity.activity_id,),
            )
        if self.badge is not None:
            new_state = replace(new_state, badges=new_state.badges + (self.badge,))
        if self.perk_redemption is not None:
            new_state = replace(
                new_state,
                redeemed_perks=new_state.redeemed_perks + (self.perk_redemption,),
            )
        return new_state


# =============================================================================
# Rules
# =============================================================================


def derive_level(xp: int) -> int:
    """Level for a given xp total: floor(xp / 100) + 1."""
    if xp < 0:
        raise ValueError(f"xp must be non-negative, got {xp}")
    return xp // XP_PER_LEVEL + 1


def _require_amount(field_name: str, value: int, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not minimum <= value <= MAX_AMOUNT:
        raise InvalidAmountError(field_name, value, minimum, MAX_AMOUNT)


def _require_identifier(field_name: str, value: str) -> None:
    if not value or not value.strip():
        raise LedgerValidationError(f"{field_name} is required", {"field": field_name})


def apply_activity_completion(
    user: UserState,
    activity_id: str,
    tokens_earned: int,
    xp_earned: int,
    now: datetime,
) -> LedgerDelta:
    """
    Credit an activity's rewards.

    Raises:
        InvalidAmountError: tokens_earned or xp_earned is negative, or a total
            would exceed MAX_AMOUNT
        DuplicateActivityError: the activity was already completed
    """
    _require_identifier("activity_id", activity_id)
    _require_amount("tokens_earned", tokens_earned, 0)
    _require_amount("xp_earned", xp_earned, 0)

    if user.has_completed(activity_id):
        raise DuplicateActivityError(activity_id)

    new_tokens = user.tokens + tokens_earned
    new_xp = user.xp + xp_earned
    _require_amount("tokens", new_tokens, 0)
    _require_amount("xp", new_xp, 0)
    return LedgerDelta(
        tokens=new_tokens,
        xp=new_xp,
        level=derive_level(new_xp),
        activity=ActivityRecord(
            activity_id=activity_id,
            tokens_earned=tokens_earned,
            xp_earned=xp_earned,
            completed_at=now,
        ),
    )


def apply_perk_redemption(
    user: UserState,
    perk_id: str,
    perk_name: str,
    cost: int,
    now: datetime,
) -> LedgerDelta:
    """
    Spend tokens on a perk.

    Raises:
        InvalidAmountError: cost is below 1
        InsufficientTokensError: balance is lower than cost (nothing is deducted)
    """
    _require_identifier("perk_id", perk_id)
    _require_identifier("perk_name", perk_name)
    _require_amount("cost", cost, 1)

    if user.tokens < cost:
        raise InsufficientTokensError(user.tokens, cost)

    return LedgerDelta(
        tokens=user.tokens - cost,
        perk_redemption=PerkRedemptionRecord(
            perk_id=perk_id,
            perk_name=perk_name,
            cost=cost,
            redeemed_at=now,
        ),
    )


def apply_badge_award(user: UserState, badge: BadgeDefinition, now: datetime) -> LedgerDelta:
    """
    Grant a badge, plus its token bonus if it has one.

    Raises:
        DuplicateBadgeError: the badge was already earned
    """
    _require_identifier("badge_id", badge.id)
    _require_amount("token_bonus", badge.token_bonus, 0)

    if user.has_badge(badge.id):
        raise DuplicateBadgeError(badge.id)

    new_tokens = None
    if badge.token_bonus:
        new_tokens = user.tokens + badge.token_bonus
        _require_amount("tokens", new_tokens, 0)

    return LedgerDelta(
        tokens=new_tokens,
        badge=BadgeRecord(
            badge_id=badge.id,
            name=badge.name,
            description=badge.description,
            icon=badge.icon,
            rarity=BadgeRarity(badge.rarity),
            earned_at=now,
            token_bonus=badge.token_bonus,
        ),
    )


def elapsed_days(since: datetime, now: datetime) -> int:
    """Whole days between two instants, rounded down."""
    return (now - since) // ONE_DAY


def compute_streak_transition(user: UserState, now: datetime) -> LedgerDelta:
    """
    Streak update for a login or activity at `now`. Never raises.

    0 days elapsed  -> streak unchanged, last_login moves forward only
    1 day elapsed   -> streak + 1
    2+ days elapsed -> streak resets to 1
    """
    if user.last_login is None:
        return LedgerDelta(last_login=now)

    days = elapsed_days(user.last_login, now)

    if days <= 0:
        if now > user.last_login:
            return LedgerDelta(last_login=now)
        return LedgerDelta()

    if days == 1:
        return LedgerDelta(streak=user.streak + 1, last_login=now)

    return LedgerDelta(streak=1, last_login=now)

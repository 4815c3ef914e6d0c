"""
Progression service.

Runs activity and streak events through the event processor, then checks the
badge rule table against the before/after states and awards whatever was newly
earned. Badge awards are separate ledger events, so a user who already holds a
badge (for example after a concurrent award) is simply skipped.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import structlog

from core.exceptions import DuplicateBadgeError, InvalidAmountError, UnknownCatalogItemError
from services.badge_rules import evaluate_badges
from services.catalog import ActivityDefinition, BadgeDefinition, get_activity
from services.event_processor import EventProcessor
from services.ledger_events import ActivityCompleted, StreakCheck
from services.ledger_rules import MAX_AMOUNT, UserState

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GameRewards:
    tokens: int
    xp: int


@dataclass(frozen=True)
class ProgressionResult:
    state: UserState
    badges_awarded: list[BadgeDefinition] = field(default_factory=list)
    rewards: Optional[GameRewards] = None


def compute_game_rewards(activity: ActivityDefinition, score: int, perfect: bool) -> GameRewards:
    """
    Rewards for a finished game.

    bonus tokens = floor(score * 0.1), doubled for a perfect run
    xp = base + floor(base * 0.5) for a perfect run, else base + floor(score * 0.05)
    """
    if not 0 <= score <= MAX_AMOUNT:
        raise InvalidAmountError("score", score, 0, MAX_AMOUNT)

    bonus_tokens = score // 10
    if perfect:
        bonus_tokens *= 2
        bonus_xp = activity.xp // 2
    else:
        bonus_xp = score // 20

    rewards = GameRewards(tokens=activity.tokens + bonus_tokens, xp=activity.xp + bonus_xp)
    if rewards.tokens > MAX_AMOUNT:
        raise InvalidAmountError("tokens_earned", rewards.tokens, 0, MAX_AMOUNT)
    if rewards.xp > MAX_AMOUNT:
        raise InvalidAmountError("xp_earned", rewards.xp, 0, MAX_AMOUNT)
    return rewards


class ProgressionService:
    """Activity completion and streak refresh followed by badge evaluation."""

    def __init__(self, processor: EventProcessor):
        self.processor = processor

    async def record_game_result(
        self,
        user_id: str,
        activity_id: str,
        score: int,
        perfect: bool,
        now: datetime,
    ) -> ProgressionResult:
        """
        Complete a catalog activity with score-based rewards and award badges.

        Raises:
            UnknownCatalogItemError: activity_id is not in the catalog
            InvalidAmountError: score out of range, or rewards too large to store
            DuplicateActivityError: the activity was already completed
        """
        activity = get_activity(activity_id)
        if activity is None:
            raise UnknownCatalogItemError("activity", activity_id)

        rewards = compute_game_rewards(activity, score, perfect)
        outcome = await self.processor.process(
            ActivityCompleted(
                user_id=user_id,
                activity_id=activity.id,
                tokens_earned=rewards.tokens,
                xp_earned=rewards.xp,
                occurred_at=now,
            )
        )

        earned = evaluate_badges(outcome.previous, outcome.state, score=score, perfect=perfect)
        state, awarded = await self._award_badges(user_id, earned, outcome.state, now)

        logger.info(
            "game_result_recorded",
            user_id=user_id,
            activity_id=activity.id,
            score=score,
            perfect=perfect,
            tokens_earned=rewards.tokens,
            xp_earned=rewards.xp,
            badges=[badge.id for badge in awarded],
        )
        return ProgressionResult(state=state, badges_awarded=awarded, rewards=rewards)

    async def complete_activity(
        self,
        user_id: str,
        activity_id: str,
        tokens_earned: int,
        xp_earned: int,
        now: datetime,
    ) -> ProgressionResult:
        """Complete an activity with caller-supplied rewards, then award badges."""
        outcome = await self.processor.process(
            ActivityCompleted(
                user_id=user_id,
                activity_id=activity_id,
                tokens_earned=tokens_earned,
                xp_earned=xp_earned,
                occurred_at=now,
            )
        )
        earned = evaluate_badges(outcome.previous, outcome.state)
        state, awarded = await self._award_badges(user_id, earned, outcome.state, now)
        return ProgressionResult(state=state, badges_awarded=awarded)

    async def refresh_streak(self, user_id: str, now: datetime) -> ProgressionResult:
        """Apply the streak transition for `now` and award streak badges."""
        outcome = await self.processor.process(StreakCheck(user_id=user_id, occurred_at=now))
        earned = evaluate_badges(outcome.previous, outcome.state)
        state, awarded = await self._award_badges(user_id, earned, outcome.state, now)
        return ProgressionResult(state=state, badges_awarded=awarded)

    async def _award_badges(
        self,
        user_id: str,
        badges: list[BadgeDefinition],
        state: UserState,
        now: datetime,
    ) -> tuple[UserState, list[BadgeDefinition]]:
        awarded: list[BadgeDefinition] = []
        for badge in badges:
            try:
                state = await self.processor.award_badge(user_id, badge, now)
            except DuplicateBadgeError:
                logger.debug("badge_already_held", user_id=user_id, badge_id=badge.id)
                continue
            awarded.append(badge)
            logger.info("badge_awarded", user_id=user_id, badge_id=badge.id)
        return state, awarded

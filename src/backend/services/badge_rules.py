"""
Badge eligibility rules.

The rule table is data: each row names a trigger kind, a threshold and the
badge to award. Callers evaluate it after an activity or streak event has
been applied, passing the state before and after the event.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from services.catalog import (
    FIRST_ACTIVITY_BADGE,
    HIGH_SCORER_BADGE,
    PERFECTIONIST_BADGE,
    WEEK_WARRIOR_BADGE,
    BadgeDefinition,
)
from services.ledger_rules import UserState


class BadgeTrigger(str, Enum):
    FIRST_ACTIVITY = "first_activity"  # completed activities go from 0 to 1
    PERFECT_SCORE = "perfect_score"  # game reported a perfect run
    SCORE_AT_LEAST = "score_at_least"  # game score >= threshold
    STREAK_REACHED = "streak_reached"  # streak transitions to exactly threshold


@dataclass(frozen=True)
class BadgeRule:
    trigger: BadgeTrigger
    badge: BadgeDefinition
    threshold: int = 0


@dataclass(frozen=True)
class BadgeContext:
    before: UserState
    after: UserState
    score: Optional[int] = None
    perfect: bool = False


BADGE_RULES: tuple[BadgeRule, ...] = (
    BadgeRule(BadgeTrigger.FIRST_ACTIVITY, FIRST_ACTIVITY_BADGE),
    BadgeRule(BadgeTrigger.PERFECT_SCORE, PERFECTIONIST_BADGE),
    BadgeRule(BadgeTrigger.SCORE_AT_LEAST, HIGH_SCORER_BADGE, threshold=800),
    BadgeRule(BadgeTrigger.STREAK_REACHED, WEEK_WARRIOR_BADGE, threshold=7),
)


def _first_activity(ctx: BadgeContext, rule: BadgeRule) -> bool:
    return len(ctx.before.completed_activity_ids) == 0 and len(ctx.after.completed_activity_ids) == 1


def _perfect_score(ctx: BadgeContext, rule: BadgeRule) -> bool:
    return ctx.perfect


def _score_at_least(ctx: BadgeContext, rule: BadgeRule) -> bool:
    return ctx.score is not None and ctx.score >= rule.threshold


def _streak_reached(ctx: BadgeContext, rule: BadgeRule) -> bool:
    return ctx.before.streak != rule.threshold and ctx.after.streak == rule.threshold


_CONDITIONS: dict[BadgeTrigger, Callable[[BadgeContext, BadgeRule], bool]] = {
    BadgeTrigger.FIRST_ACTIVITY: _first_activity,
    BadgeTrigger.PERFECT_SCORE: _perfect_score,
    BadgeTrigger.SCORE_AT_LEAST: _score_at_least,
    BadgeTrigger.STREAK_REACHED: _streak_reached,
}


def evaluate_badges(
    before: UserState,
    after: UserState,
    score: Optional[int] = None,
    perfect: bool = False,
    rules: tuple[BadgeRule, ...] = BADGE_RULES,
) -> list[BadgeDefinition]:
    """
    Badges newly earned by a transition from `before` to `after`.

    Badges the user already holds are left out.
    """
    ctx = BadgeContext(before=before, after=after, score=score, perfect=perfect)
    earned: list[BadgeDefinition] = []
    for rule in rules:
        if after.has_badge(rule.badge.id) or any(b.id == rule.badge.id for b in earned):
            continue
        if _CONDITIONS[rule.trigger](ctx, rule):
            earned.append(rule.badge)
    return earned

"""
Tests for the badge rule table.
"""

from datetime import datetime, timezone

import pytest

from services.badge_rules import BADGE_RULES, BadgeRule, BadgeTrigger, evaluate_badges
from services.catalog import BadgeDefinition, BadgeRarity
from services.ledger_rules import BadgeRecord, UserState

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def state(activities: tuple[str, ...] = (), streak: int = 1, badges: tuple[str, ...] = ()) -> UserState:
    return UserState(
        id="u1",
        tokens=100,
        xp=0,
        level=1,
        streak=streak,
        last_login=NOW,
        completed_activity_ids=activities,
        badges=tuple(
            BadgeRecord(badge_id=b, name=b, description="", icon="", rarity=BadgeRarity.COMMON, earned_at=NOW)
            for b in badges
        ),
    )


def ids(badges: list[BadgeDefinition]) -> list[str]:
    return [b.id for b in badges]


@pytest.mark.unit
class TestBadgeRules:
    def test_first_activity(self) -> None:
        earned = evaluate_badges(state(), state(activities=("quiz-1",)))
        assert ids(earned) == ["first-activity"]

    def test_second_activity_earns_nothing(self) -> None:
        earned = evaluate_badges(state(activities=("quiz-1",)), state(activities=("quiz-1", "game-1")))
        assert earned == []

    def test_perfect_and_high_score(self) -> None:
        before = state(activities=("quiz-1",))
        after = state(activities=("quiz-1", "game-1"))

        earned = evaluate_badges(before, after, score=950, perfect=True)

        assert ids(earned) == ["perfectionist", "high-scorer"]

    @pytest.mark.parametrize("score,expected", [(799, []), (800, ["high-scorer"])])
    def test_high_score_threshold(self, score: int, expected: list[str]) -> None:
        before = state(activities=("quiz-1",))
        after = state(activities=("quiz-1", "game-1"))
        assert ids(evaluate_badges(before, after, score=score)) == expected

    def test_streak_reaching_seven(self) -> None:
        assert ids(evaluate_badges(state(streak=6), state(streak=7))) == ["streak-7"]

    def test_streak_staying_at_seven_earns_nothing(self) -> None:
        assert evaluate_badges(state(streak=7), state(streak=7)) == []

    def test_streak_past_seven_earns_nothing(self) -> None:
        assert evaluate_badges(state(streak=7), state(streak=8)) == []

    def test_badges_already_held_are_skipped(self) -> None:
        after = state(activities=("quiz-1",), badges=("first-activity", "perfectionist"))
        earned = evaluate_badges(state(), after, score=900, perfect=True)
        assert ids(earned) == ["high-scorer"]

    def test_custom_rule_table(self) -> None:
        bronze = BadgeDefinition("streak-3", "Three in a Row")
        rules = (BadgeRule(BadgeTrigger.STREAK_REACHED, bronze, threshold=3),)

        assert ids(evaluate_badges(state(streak=2), state(streak=3), rules=rules)) == ["streak-3"]
        assert evaluate_badges(state(streak=6), state(streak=7), rules=rules) == []

    def test_default_table_covers_every_trigger(self) -> None:
        assert {rule.trigger for rule in BADGE_RULES} == set(BadgeTrigger)

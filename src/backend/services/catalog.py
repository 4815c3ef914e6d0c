"""
Static reward catalogs: activities, perks and badges.

Catalog entries are not user-owned. A user's relation to an activity is
only "completed or not"; perks are priced here but the price is copied onto
each redemption.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BadgeRarity(str, Enum):
    """Badge rarity. Fixed metadata, never derived."""

    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class ActivityDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class ActivityDefinition:
    """A playable activity and its base rewards."""

    id: str
    title: str
    type: str  # quiz, game, video, puzzle, ...
    category: str
    tokens: int
    xp: int
    difficulty: ActivityDifficulty


@dataclass(frozen=True)
class PerkDefinition:
    """A redeemable telco perk."""

    id: str
    name: str
    description: str
    cost: int
    category: str


@dataclass(frozen=True)
class BadgeDefinition:
    """Badge metadata. `token_bonus` is credited when the badge is awarded."""

    id: str
    name: str
    description: str = ""
    icon: str = ""
    rarity: BadgeRarity = BadgeRarity.COMMON
    token_bonus: int = 0


ACTIVITIES: tuple[ActivityDefinition, ...] = (
    ActivityDefinition("quiz-1", "Telco Knowledge Quiz", "quiz", "Education", 50, 25, ActivityDifficulty.EASY),
    ActivityDefinition("game-1", "Signal Strength Game", "game", "Strategy", 75, 40, ActivityDifficulty.MEDIUM),
    ActivityDefinition("video-1", "5G Technology Overview", "video", "Education", 30, 15, ActivityDifficulty.EASY),
    ActivityDefinition("puzzle-1", "Network Puzzle Challenge", "puzzle", "Logic", 60, 35, ActivityDifficulty.MEDIUM),
    ActivityDefinition("trivia-1", "Mobile History Trivia", "trivia", "Fun", 40, 20, ActivityDifficulty.EASY),
    ActivityDefinition("memory-1", "Data Plan Memory Game", "memory", "Memory", 55, 30, ActivityDifficulty.MEDIUM),
    ActivityDefinition("strategy-1", "Tower Defense Strategy", "strategy", "Strategy", 85, 50, ActivityDifficulty.HARD),
    ActivityDefinition("arcade-1", "Spectrum Surfing", "arcade", "Action", 70, 45, ActivityDifficulty.MEDIUM),
    ActivityDefinition(
        "simulator-1", "Network Operations Center", "simulator", "Simulation", 100, 60, ActivityDifficulty.HARD
    ),
)

PERKS: tuple[PerkDefinition, ...] = (
    PerkDefinition("data-1gb", "1GB Free Data", "Extra 1GB data for your mobile plan", 100, "Data"),
    PerkDefinition("minutes-100", "100 Free Minutes", "Free calling minutes for local calls", 150, "Voice"),
    PerkDefinition("sms-500", "500 Free SMS", "Free text messages", 75, "SMS"),
    PerkDefinition("premium-subscription", "Premium Subscription", "30-day premium features access", 500, "Premium"),
)

# Badges awarded automatically by the rule table
FIRST_ACTIVITY_BADGE = BadgeDefinition(
    "first-activity", "Getting Started", "Completed your first activity", "🎯", BadgeRarity.COMMON
)
PERFECTIONIST_BADGE = BadgeDefinition(
    "perfectionist", "Perfectionist", "Achieved a perfect score", "💯", BadgeRarity.RARE
)
HIGH_SCORER_BADGE = BadgeDefinition(
    "high-scorer", "High Scorer", "Scored 800+ points in a game", "🏆", BadgeRarity.EPIC
)
WEEK_WARRIOR_BADGE = BadgeDefinition("streak-7", "Week Warrior", "7-day login streak", "🔥", BadgeRarity.RARE)

BADGES: tuple[BadgeDefinition, ...] = (
    FIRST_ACTIVITY_BADGE,
    PERFECTIONIST_BADGE,
    HIGH_SCORER_BADGE,
    WEEK_WARRIOR_BADGE,
    BadgeDefinition("welcome", "Welcome Badge", "Completed your first activity", "👋", BadgeRarity.COMMON),
    BadgeDefinition("quiz-master", "Quiz Master", "Completed 10 quizzes", "🧠", BadgeRarity.EPIC),
    BadgeDefinition("token-collector", "Token Collector", "Earned 1000 tokens", "💰", BadgeRarity.LEGENDARY),
)

_ACTIVITIES_BY_ID = {activity.id: activity for activity in ACTIVITIES}
_PERKS_BY_ID = {perk.id: perk for perk in PERKS}
_BADGES_BY_ID = {badge.id: badge for badge in BADGES}


def get_activity(activity_id: str) -> Optional[ActivityDefinition]:
    return _ACTIVITIES_BY_ID.get(activity_id)


def get_perk(perk_id: str) -> Optional[PerkDefinition]:
    return _PERKS_BY_ID.get(perk_id)


def get_badge(badge_id: str) -> Optional[BadgeDefinition]:
    return _BADGES_BY_ID.get(badge_id)

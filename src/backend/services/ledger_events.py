"""
Ledger events.

The closed set of requests that may mutate a user's progression. Every event
carries the wall-clock time it happened at; the ledger never reads the clock.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Union

from services.catalog import BadgeDefinition


@dataclass(frozen=True)
class ActivityCompleted:
    user_id: str
    activity_id: str
    tokens_earned: int
    xp_earned: int
    occurred_at: datetime


@dataclass(frozen=True)
class PerkRedeemed:
    user_id: str
    perk_id: str
    perk_name: str
    cost: int
    occurred_at: datetime


@dataclass(frozen=True)
class StreakCheck:
    user_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class BadgeAwarded:
    user_id: str
    badge: BadgeDefinition
    occurred_at: datetime


LedgerEvent = Union[ActivityCompleted, PerkRedeemed, StreakCheck, BadgeAwarded]


def event_name(event: LedgerEvent) -> str:
    return type(event).__name__

"""
Seed demo users for local development.

Creates three demo accounts (password: password123) and gives them some
history through the event processor, so the ledger rules apply exactly as
they would for real traffic. Accounts that already exist are skipped.

Usage:
    python scripts/seed_demo_users.py
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import settings  # noqa: E402
from core.exceptions import DuplicateEmailError  # noqa: E402
from core.security import hash_password  # noqa: E402
from db.session import close_db, get_session_maker, init_db  # noqa: E402
from db.types import utc_now  # noqa: E402
from repositories.user_repository import UserRepository  # noqa: E402
from services.catalog import get_activity, get_badge  # noqa: E402
from services.event_processor import create_event_processor  # noqa: E402

DEMO_PASSWORD = "password123"

DEMO_USERS = [
    {
        "name": "Alex Chen",
        "email": "alex@example.com",
        "activities": ["quiz-1", "game-1", "strategy-1", "simulator-1"],
        "badges": ["welcome", "quiz-master"],
    },
    {
        "name": "Sarah Johnson",
        "email": "sarah@example.com",
        "activities": ["quiz-1", "puzzle-1", "arcade-1"],
        "badges": ["welcome"],
    },
    {
        "name": "Mike Rodriguez",
        "email": "mike@example.com",
        "activities": ["trivia-1", "memory-1"],
        "badges": ["welcome"],
    },
]


async def seed_demo_users() -> None:
    """Create the demo users and replay their activities and badges."""
    await init_db()
    session_maker = get_session_maker()
    processor = create_event_processor(session_maker)
    password_hash = hash_password(DEMO_PASSWORD)

    for demo in DEMO_USERS:
        now = utc_now()
        try:
            async with session_maker() as session, session.begin():
                user = await UserRepository(session).create(
                    name=demo["name"],
                    email=demo["email"],
                    password_hash=password_hash,
                    now=now,
                    avatar=f"https://api.dicebear.com/7.x/avataaars/svg?seed={demo['name'].split()[0]}",
                    welcome_tokens=settings.WELCOME_TOKENS,
                )
                user_id = user.id
        except DuplicateEmailError:
            print(f"- {demo['email']} already exists, skipping")
            continue

        for activity_id in demo["activities"]:
            activity = get_activity(activity_id)
            if activity is None:
                raise RuntimeError(f"Unknown demo activity: {activity_id}")
            await processor.complete_activity(user_id, activity.id, activity.tokens, activity.xp, now)

        for badge_id in demo["badges"]:
            badge = get_badge(badge_id)
            if badge is None:
                raise RuntimeError(f"Unknown demo badge: {badge_id}")
            await processor.award_badge(user_id, badge, now)

        print(f"✓ Created {demo['name']} ({demo['email']})")

    await close_db()
    print(f"\nDone! Demo password for all accounts: {DEMO_PASSWORD}")


if __name__ == "__main__":
    asyncio.run(seed_demo_users())

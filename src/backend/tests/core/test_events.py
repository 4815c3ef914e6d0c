"""
Tests for application lifecycle handlers.
"""

from datetime import timedelta

import pytest

from core.events import prune_expired_sessions
from db.types import utc_now
from repositories.session_repository import SessionRepository


@pytest.mark.integration
class TestStartupMaintenance:
    async def test_prune_expired_sessions(self, database, create_user) -> None:
        user_id = await create_user()
        now = utc_now()

        async with database() as session, session.begin():
            repo = SessionRepository(session)
            await repo.create(user_id, "e" * 64, now - timedelta(minutes=1), now - timedelta(days=7))
            await repo.create(user_id, "f" * 64, now + timedelta(days=7), now)

        assert await prune_expired_sessions() == 1

        async with database() as session:
            assert await SessionRepository(session).get_active("f" * 64, now) is not None

"""
Tests for API dependencies (deps.py).

Tests the shared ledger services and bearer-token resolution.
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from api import deps
from core.security import create_access_token, hash_token
from db.types import utc_now
from repositories.session_repository import SessionRepository


@pytest.mark.unit
class TestLedgerServices:
    def test_processor_is_shared(self, database) -> None:
        first = deps.get_event_processor()
        assert deps.get_event_processor() is first

    def test_progression_service_wraps_processor(self, database) -> None:
        processor = deps.get_event_processor()
        service = deps.get_progression_service(processor)

        assert service.processor is processor
        assert deps.get_progression_service(processor) is service

    def test_reset(self, database) -> None:
        first = deps.get_event_processor()
        deps.reset_ledger_services()
        assert deps.get_event_processor() is not first


@pytest.mark.integration
class TestResolveUser:
    async def test_token_needs_active_session(self, database, create_user) -> None:
        user_id = await create_user()
        token, expires_at = create_access_token({"sub": user_id})

        async with database() as session:
            # Valid JWT, but no session row yet
            assert await deps._resolve_user(token, session) is None

            await SessionRepository(session).create(user_id, hash_token(token), expires_at, utc_now())
            user = await deps._resolve_user(token, session)
            assert user is not None and user.id == user_id

    async def test_session_of_another_user_rejected(self, database, create_user) -> None:
        owner = await create_user()
        other = await create_user()
        token, _ = create_access_token({"sub": other})

        async with database() as session:
            await SessionRepository(session).create(owner, hash_token(token), utc_now() + timedelta(days=1), utc_now())
            assert await deps._resolve_user(token, session) is None

    async def test_optional_user_without_credentials(self) -> None:
        assert await deps.get_current_user_optional(None, db=MagicMock()) is None

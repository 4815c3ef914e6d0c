"""
Tests for lazy engine and session factory setup.
"""

import pytest

from db import session as db_session


@pytest.fixture
async def unconfigured(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """No engine yet; settings point at a throwaway SQLite file."""
    monkeypatch.setattr(db_session, "_engine", None)
    monkeypatch.setattr(db_session, "_session_maker", None)
    monkeypatch.setattr(db_session.settings, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'lazy.db'}")
    yield
    await db_session.close_db()


@pytest.mark.integration
class TestLazyConfiguration:
    async def test_session_maker_created_on_first_use(self, unconfigured) -> None:
        maker = db_session.get_session_maker()

        assert maker is db_session.get_session_maker()
        assert maker.kw["bind"] is db_session.get_engine()
        assert "lazy.db" in str(db_session.get_engine().url)

    async def test_engine_created_on_first_use(self, unconfigured) -> None:
        engine = db_session.get_engine()

        assert engine is db_session.get_engine()
        assert db_session.get_session_maker().kw["bind"] is engine

    async def test_close_resets_state(self, unconfigured) -> None:
        db_session.get_session_maker()
        await db_session.close_db()

        assert db_session._engine is None
        assert db_session._session_maker is None

"""
Tests for application settings.
"""

import pytest
from pydantic import ValidationError

from core.config import Settings


@pytest.mark.unit
class TestSettings:
    def test_defaults(self) -> None:
        s = Settings(_env_file=None, SECRET_KEY="k")

        assert s.WELCOME_TOKENS == 100
        assert s.ACCESS_TOKEN_EXPIRE_DAYS == 7
        assert s.LEDGER_MAX_CONFLICT_RETRIES == 3

    def test_secret_key_required(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, SECRET_KEY="")

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("http://a.test, http://b.test", ["http://a.test", "http://b.test"]),
            ('["http://a.test"]', ["http://a.test"]),
        ],
    )
    def test_cors_origins_list(self, raw: str, expected: list[str]) -> None:
        s = Settings(_env_file=None, SECRET_KEY="k", CORS_ORIGINS=raw)
        assert s.cors_origins_list == expected

    def test_sqlite_detection(self) -> None:
        assert Settings(_env_file=None, SECRET_KEY="k", DATABASE_URL="sqlite+aiosqlite:///x.db").is_sqlite
        assert not Settings(
            _env_file=None, SECRET_KEY="k", DATABASE_URL="postgresql+asyncpg://u:p@h/db"
        ).is_sqlite

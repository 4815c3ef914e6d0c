"""
Tests for database error translation and UTC datetime handling.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from core.exceptions import ConstraintViolationError, StorageError, StorageUnavailableError
from db.errors import storage_errors
from db.types import UTCDateTime

SQLITE = SimpleNamespace(name="sqlite")
POSTGRES = SimpleNamespace(name="postgresql")


@pytest.mark.unit
class TestStorageErrors:
    def test_integrity_error_is_constraint_violation(self) -> None:
        with pytest.raises(ConstraintViolationError) as exc_info:
            with storage_errors("insert"):
                raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
        assert exc_info.value.details["operation"] == "insert"

    def test_operational_error_is_storage_unavailable(self) -> None:
        with pytest.raises(StorageUnavailableError):
            with storage_errors("update"):
                raise OperationalError("UPDATE", {}, Exception("database is locked"))

    def test_other_errors_pass_through(self) -> None:
        with pytest.raises(KeyError):
            with storage_errors("read"):
                raise KeyError("x")

    def test_storage_errors_share_a_base(self) -> None:
        assert issubclass(ConstraintViolationError, StorageError)
        assert issubclass(StorageUnavailableError, StorageError)


@pytest.mark.unit
class TestUTCDateTime:
    def test_naive_datetime_rejected(self) -> None:
        with pytest.raises(ValueError):
            UTCDateTime().process_bind_param(datetime(2025, 1, 1, 12, 0), dialect=POSTGRES)

    def test_aware_datetime_normalized_to_utc(self) -> None:
        ist = timezone(timedelta(hours=5, minutes=30))
        value = datetime(2025, 1, 1, 17, 30, tzinfo=ist)

        expected = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert UTCDateTime().process_bind_param(value, dialect=POSTGRES) == expected
        # SQLite stores naive UTC
        assert UTCDateTime().process_bind_param(value, dialect=SQLITE) == datetime(2025, 1, 1, 12, 0)

    def test_result_tagged_as_utc(self) -> None:
        loaded = UTCDateTime().process_result_value(datetime(2025, 1, 1, 12, 0), dialect=SQLITE)
        assert loaded.tzinfo == timezone.utc

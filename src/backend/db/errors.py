"""
Translation of SQLAlchemy failures into the ledger's storage errors.
"""

from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.exceptions import ConstraintViolationError, StorageUnavailableError

logger = structlog.get_logger(__name__)


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """
    Re-raise database errors as ConstraintViolationError / StorageUnavailableError.

    Usage:
        with storage_errors("apply_delta"):
            await session.commit()
    """
    try:
        yield
    except IntegrityError as e:
        logger.warning("storage_constraint_violation", operation=operation, error=str(e.orig))
        raise ConstraintViolationError(
            "Write rejected by a database constraint",
            {"operation": operation},
        ) from e
    except SQLAlchemyError as e:
        logger.error("storage_unavailable", operation=operation, error=str(e))
        raise StorageUnavailableError(
            "Storage is unavailable, nothing was saved",
            {"operation": operation},
        ) from e

"""
Application lifecycle event handlers.

Manages startup and shutdown tasks: schema creation, expired session
pruning and closing database connections.
"""

from typing import Callable

import structlog
from fastapi import FastAPI

from db.errors import storage_errors
from db.session import close_db, get_session_maker, init_db
from db.types import utc_now
from repositories.session_repository import SessionRepository

logger = structlog.get_logger(__name__)


async def prune_expired_sessions() -> int:
    """Delete sessions whose token has expired. Returns the number removed."""
    async with get_session_maker()() as session:
        with storage_errors("prune_expired_sessions"):
            async with session.begin():
                removed = await SessionRepository(session).delete_expired(utc_now())
    logger.info("expired_sessions_pruned", removed=removed)
    return removed


def create_start_app_handler(app: FastAPI) -> Callable:
    """Create startup event handler."""

    async def start_app() -> None:
        logger.info("app_starting")

        await init_db()
        await prune_expired_sessions()

        logger.info("app_started")

    return start_app


def create_stop_app_handler(app: FastAPI) -> Callable:
    """Create shutdown event handler."""

    async def stop_app() -> None:
        logger.info("app_stopping")

        # Drop the processor bound to the engine that is about to be disposed
        from api.deps import reset_ledger_services

        reset_ledger_services()
        await close_db()

        logger.info("app_stopped")

    return stop_app

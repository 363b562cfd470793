"""Database connection and store management."""

import logging

from ..config import DatabaseBackend, Settings, settings
from .base import StoreSession, WaitlistStore
from .connection import DatabaseManager
from .memory import MemoryStore
from .postgres import PostgresStore

logger = logging.getLogger(__name__)


def create_store(config: Settings | None = None) -> WaitlistStore:
    """Create the store selected by DATABASE_BACKEND."""
    config = config or settings
    backend = config.database_backend

    logger.info(f"Creating waitlist store for: {backend.value}")

    if backend == DatabaseBackend.POSTGRES:
        return PostgresStore(
            database_url=config.database_url,
            isolation=config.transaction_isolation,
            apply_schema=config.database_apply_schema,
            db_manager=DatabaseManager(
                min_size=config.database_pool_min_size,
                max_size=config.database_pool_max_size,
                command_timeout=config.database_command_timeout
            ),
            max_attempts=config.transaction_max_attempts
        )
    elif backend == DatabaseBackend.MEMORY:
        return MemoryStore(max_attempts=config.transaction_max_attempts)
    else:
        raise ValueError(f"Unsupported database backend: {backend}")


# Global store instance (lazy initialization)
_store: WaitlistStore | None = None


async def get_store() -> WaitlistStore:
    """Get the global store, connecting on first use."""
    global _store

    if _store is None:
        store = create_store()
        await store.connect()
        _store = store

    return _store


async def close_store():
    """Close the global store."""
    global _store

    if _store:
        await _store.close()
        _store = None


__all__ = [
    "DatabaseManager",
    "MemoryStore",
    "PostgresStore",
    "StoreSession",
    "WaitlistStore",
    "create_store",
    "get_store",
    "close_store",
]

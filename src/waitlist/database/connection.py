"""PostgreSQL database connection management."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

import asyncpg

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")


class DatabaseManager:
    """Manages PostgreSQL database connections."""

    def __init__(
        self,
        min_size: int = 5,
        max_size: int = 20,
        command_timeout: float = 30.0
    ):
        self.pool: asyncpg.Pool | None = None
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self._initialized = False

    async def initialize(self, database_url: str | None):
        """Initialize database connection pool."""
        if self._initialized:
            logger.warning("Database already initialized")
            return

        if not database_url:
            raise ValueError("DATABASE_URL environment variable is required")

        try:
            self.pool = await asyncpg.create_pool(
                database_url,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=self.command_timeout,
                server_settings={
                    'application_name': 'waitlist-service'
                }
            )

            async with self.pool.acquire() as conn:
                await conn.fetchval('SELECT 1')

            self._initialized = True
            logger.info("PostgreSQL connection pool initialized")

        except Exception as e:
            logger.error(f"Failed to initialize database pool: {e}")
            raise

    async def apply_schema(self, path: Path = SCHEMA_PATH):
        """Create the waitlist tables if they do not exist."""
        async with self.get_connection() as conn:
            await conn.execute(path.read_text())
        logger.info(f"Applied schema from {path.name}")

    async def close(self):
        """Close database connection pool."""
        if self.pool:
            await self.pool.close()
            self._initialized = False
            logger.info("PostgreSQL connection pool closed")

    @asynccontextmanager
    async def get_connection(self):
        """Get a database connection from the pool."""
        if not self._initialized or not self.pool:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        async with self.pool.acquire() as connection:
            yield connection

    @asynccontextmanager
    async def transaction(self, isolation: str | None = None, readonly: bool = False):
        """Get a connection with an open transaction; rolls back on any exception."""
        async with self.get_connection() as conn:
            async with conn.transaction(isolation=isolation, readonly=readonly):
                yield conn

    async def execute_scalar(self, query: str, *args):
        """Execute a query and return scalar value."""
        async with self.get_connection() as conn:
            return await conn.fetchval(query, *args)

    @property
    def is_initialized(self) -> bool:
        """Check if database is initialized."""
        return self._initialized and self.pool is not None

    async def health_check(self) -> bool:
        """Check database health."""
        if not self.is_initialized:
            return False
        try:
            result = await self.execute_scalar('SELECT 1')
            return result == 1
        except (asyncpg.PostgresError, OSError, RuntimeError) as e:
            logger.warning(f"Database health check failed: {e}")
            return False

"""
Database connection pool for directory lookups
Read-only from the pipeline's point of view
"""
import asyncpg
from typing import Optional, Dict, Any
import logging

from .config import Settings
from .exceptions import DirectoryError

logger = logging.getLogger(__name__)

class DatabasePool:
    """
    Async PostgreSQL connection pool
    Query timeouts are enforced by the pool (command_timeout)
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.dsn = settings.database_url
        self.pool: Optional[asyncpg.Pool] = None
        self._initialized = False

    async def initialize(self):
        """Create connection pool"""
        if self._initialized:
            return

        try:
            logger.info("Creating database pool...")

            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=self.settings.db_pool_min_size,
                max_size=self.settings.db_pool_max_size,
                max_inactive_connection_lifetime=300,
                command_timeout=self.settings.db_command_timeout,
                server_settings={
                    'application_name': 'tenant_gate',
                    'default_transaction_read_only': 'on'
                }
            )

            async with self.pool.acquire() as conn:
                version = await conn.fetchval("SELECT version()")
                logger.info(f"Connected to PostgreSQL: {version[:30]}...")

            self._initialized = True
            logger.info(f"Database pool ready: {self.get_stats()}")

        except (OSError, asyncpg.PostgresError) as e:
            logger.error(f"Failed to initialize database pool: {e}")
            raise DirectoryError(f"Cannot connect to database: {e}", operation="connect")

    async def close(self):
        """Close connection pool"""
        if self.pool:
            await self.pool.close()
            self._initialized = False
            logger.info("Database pool closed")

    def get_stats(self) -> Dict[str, Any]:
        """Get pool statistics"""
        if not self.pool:
            return {"status": "not_initialized"}

        return {
            "size": self.pool.get_size(),
            "min_size": self.pool.get_min_size(),
            "max_size": self.pool.get_max_size(),
            "free_connections": self.pool.get_idle_size(),
        }

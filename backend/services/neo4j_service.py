"""
Neo4j Graph Service - session management for the marketplace graph

Owns the single AsyncDriver for the process. Repositories never touch the
driver directly: they borrow a session through with_session() (or the
session() context manager), and the session is closed whether the work
succeeds or raises.

Node labels:
- user, seller, buyer, deviceToken
- wallet, plan, payoutAccount, withdrawalRequest
- post, collection, picture, category
- notification
"""
import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional, TypeVar

from neo4j import AsyncGraphDatabase, AsyncDriver, AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Neo4jService:
    """Service for Neo4j connections and sessions"""

    def __init__(
        self,
        uri: str,
        user: str,
        password: str,
        database: Optional[str] = None
    ):
        self.uri = uri
        self.user = user
        self.password = password
        self.database = database

        self.driver: Optional[AsyncDriver] = None

    async def connect(self):
        """Establish connection to Neo4j"""
        if not self.driver:
            self.driver = AsyncGraphDatabase.driver(
                self.uri,
                auth=(self.user, self.password)
            )
            # Verify connectivity
            await self.driver.verify_connectivity()
            logger.info(f"✅ Connected to Neo4j at {self.uri}")

    async def close(self):
        """Close Neo4j connection"""
        if self.driver:
            await self.driver.close()
            self.driver = None
            logger.info("🔌 Closed Neo4j connection")

    async def verify(self) -> bool:
        """Check that the database answers (used by /health)"""
        if not self.driver:
            return False
        try:
            await self.driver.verify_connectivity()
            return True
        except Exception as e:
            logger.warning(f"⚠️ Neo4j connectivity check failed: {e}")
            return False

    def _open_session(self) -> AsyncSession:
        if not self.driver:
            raise RuntimeError("Neo4j driver is not connected; call connect() first")
        if self.database:
            return self.driver.session(database=self.database)
        return self.driver.session()

    async def with_session(self, callback: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """
        Run callback with a fresh session and always close it.

        Args:
            callback: async function receiving the session

        Returns:
            Whatever the callback returns (exceptions propagate unchanged)
        """
        session = self._open_session()
        try:
            return await callback(session)
        finally:
            await session.close()

    @asynccontextmanager
    async def session(self):
        """Context manager form of with_session()"""
        session = self._open_session()
        try:
            yield session
        finally:
            await session.close()

"""
Pytest configuration for the FeetFlight API tests.

Settings are read from the environment when main is imported, so the
defaults below are set before any application module is loaded.
"""
import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-0123")
os.environ.setdefault("NEO4J_URI", "bolt://localhost:7687")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="feetflight-public-"))
os.environ.setdefault("LOG_LEVEL", "warning")

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from config.settings import Settings
from models.domain.user import User
from services.tokens import TokenService


class FakeResult:
    """Async-iterable stand-in for neo4j.AsyncResult over plain dict records"""

    def __init__(self, records: List[Dict]):
        self._records = list(records)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for record in self._records:
            yield record


class FakeTransaction:
    def __init__(self, neo4j: 'FakeNeo4jService'):
        self.neo4j = neo4j

    async def run(self, query: str, params: Optional[Dict] = None) -> FakeResult:
        self.neo4j.queries.append((' '.join(query.split()), params or {}))
        if self.neo4j.error is not None:
            raise self.neo4j.error
        records = self.neo4j.responses.pop(0) if self.neo4j.responses else []
        return FakeResult(records)


class FakeSession:
    def __init__(self, neo4j: 'FakeNeo4jService'):
        self.neo4j = neo4j
        self.closed = False

    async def execute_read(self, work):
        return await work(FakeTransaction(self.neo4j))

    async def execute_write(self, work):
        return await work(FakeTransaction(self.neo4j))

    async def close(self):
        self.closed = True


class FakeNeo4jService:
    """
    Records every query and answers with scripted records, one list per query.

    Queries past the end of the script get no records.
    """

    def __init__(self, responses: Optional[List[List[Dict]]] = None, error: Optional[Exception] = None):
        self.responses = list(responses or [])
        self.error = error
        self.queries: List[tuple] = []
        self.sessions: List[FakeSession] = []

    async def with_session(self, callback):
        session = FakeSession(self)
        self.sessions.append(session)
        try:
            return await callback(session)
        finally:
            await session.close()

    async def verify(self) -> bool:
        return self.error is None


@pytest.fixture
def settings():
    return Settings(secret_key=os.environ["SECRET_KEY"], _env_file=None)


@pytest.fixture
def tokens(settings):
    return TokenService(settings)


@pytest.fixture
def fake_neo4j():
    return FakeNeo4jService()


def make_user(user_id: str = "cus_buyer", **overrides: Any) -> User:
    fields = {
        "id": user_id,
        "email": f"{user_id}@example.com",
        "name": "Test User",
        "user_name": f"user_{user_id}",
    }
    fields.update(overrides)
    return User(**fields)


@pytest.fixture
def stripe_gateway():
    gateway = MagicMock()
    for name in (
        "create_customer", "create_product", "retrieve_product", "rename_product",
        "create_price", "retrieve_price", "deactivate_price", "first_price",
        "create_checkout_session", "cancel_subscription",
    ):
        setattr(gateway, name, AsyncMock())
    gateway.create_checkout_session.return_value = {"id": "cs_test_1", "url": "https://checkout.test/cs_test_1"}
    return gateway


@pytest.fixture
def mailer():
    return AsyncMock()


@pytest.fixture
def push():
    return AsyncMock()

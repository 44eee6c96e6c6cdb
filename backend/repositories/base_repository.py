"""
Base Repository - shared Neo4j query plumbing

Every domain repository runs its Cypher through execute_read/execute_write,
which borrow a session from Neo4jService.with_session() and run the query
inside a managed transaction. Failures are logged with the query and its
parameters, then re-raised unchanged (no retry).

The get_* helpers read records through record.get()/record.keys() so they
work on neo4j.Record and plain dicts alike.
"""
import logging
from typing import Any, Dict, List, Optional

from neo4j.graph import Node, Relationship

from services.neo4j_service import Neo4jService

logger = logging.getLogger(__name__)


def to_native(value: Any) -> Any:
    """
    Recursively convert driver values into plain Python values.

    - Node / Relationship -> dict of properties
    - neo4j.time values   -> datetime/date/time (via to_native())
    - list / tuple        -> list, element-wise
    - dict                -> dict, value-wise
    - everything else     -> unchanged (the driver already maps Integer to int)
    """
    if value is None:
        return None
    if isinstance(value, (Node, Relationship)):
        return {key: to_native(val) for key, val in dict(value).items()}
    if isinstance(value, dict):
        return {key: to_native(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_native(item) for item in value]
    if hasattr(value, 'to_native') and not isinstance(value, (str, bytes)):
        return value.to_native()
    return value


def to_number(value: Any) -> float:
    """Coerce a stored number (int, float, numeric string, None) to a Python number"""
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            return float(text)
    raise TypeError(f"Cannot convert {type(value).__name__} to a number")


class BaseRepository:
    """Base class for Neo4j-backed repositories"""

    def __init__(self, neo4j_service: Neo4jService):
        self.neo4j = neo4j_service

    # =========================================================================
    # QUERY EXECUTION
    # =========================================================================

    async def execute_read(self, query: str, params: Optional[Dict] = None) -> List[Any]:
        """
        Run a read query in a managed read transaction.

        Returns:
            List of records
        """
        return await self._execute(query, params or {}, write=False)

    async def execute_write(self, query: str, params: Optional[Dict] = None) -> List[Any]:
        """
        Run a write query in a managed write transaction.

        Returns:
            List of records
        """
        return await self._execute(query, params or {}, write=True)

    async def _execute(self, query: str, params: Dict, write: bool) -> List[Any]:
        async def work(tx):
            result = await tx.run(query, params)
            return [record async for record in result]

        async def run(session):
            if write:
                return await session.execute_write(work)
            return await session.execute_read(work)

        try:
            return await self.neo4j.with_session(run)
        except Exception as e:
            compact = ' '.join(query.split())
            logger.error(
                f"❌ Neo4j {'write' if write else 'read'} failed: {e} | query: {compact} | params: {params}",
                extra={'query': compact, 'params': params},
            )
            raise

    # =========================================================================
    # RESULT HELPERS
    # =========================================================================

    @staticmethod
    def get_value(records: List[Any], key: str) -> Any:
        """First record's value for key (converted), or None"""
        if not records:
            return None
        return to_native(records[0].get(key))

    @staticmethod
    def get_node(records: List[Any], key: str) -> Optional[Dict]:
        """First record's node properties for key, or None"""
        if not records:
            return None
        node = records[0].get(key)
        if node is None:
            return None
        return to_native(node)

    @staticmethod
    def get_nodes(records: List[Any], key: str) -> List[Dict]:
        """Node properties for key from every record (nulls skipped)"""
        nodes = []
        for record in records:
            node = record.get(key)
            if node is not None:
                nodes.append(to_native(node))
        return nodes

    @staticmethod
    def get_records(records: List[Any]) -> List[Dict]:
        """Every record as a plain dict"""
        return [
            {key: to_native(record.get(key)) for key in record.keys()}
            for record in records
        ]

    @staticmethod
    def to_number(value: Any) -> float:
        return to_number(value)

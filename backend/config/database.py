"""
Database Configuration
======================

Neo4j connection configuration and the process-wide graph session manager.
"""
from dataclasses import dataclass
from typing import Optional

from .settings import Settings, get_settings


@dataclass
class Neo4jConfig:
    """Neo4j connection configuration."""
    uri: str
    user: str
    password: str
    database: str = "neo4j"

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> 'Neo4jConfig':
        """Create config from application settings."""
        settings = settings or get_settings()
        if not settings.neo4j_uri:
            raise ValueError("NEO4J_URI environment variable is required")

        return cls(
            uri=settings.neo4j_uri,
            user=settings.neo4j_username,
            password=settings.neo4j_password,
            database=settings.neo4j_database,
        )


def get_neo4j_config() -> Neo4jConfig:
    """Get Neo4j configuration from environment."""
    return Neo4jConfig.from_settings()


# Shared graph session manager (created on first use)
neo4j_service = None


def get_neo4j_service():
    """Get or create the shared Neo4j service (not yet connected)"""
    global neo4j_service
    if neo4j_service is None:
        from services.neo4j_service import Neo4jService
        config = get_neo4j_config()
        neo4j_service = Neo4jService(
            uri=config.uri,
            user=config.user,
            password=config.password,
            database=config.database,
        )
    return neo4j_service


async def create_neo4j_service():
    """Create and connect the shared Neo4j service"""
    service = get_neo4j_service()
    await service.connect()
    return service


async def close_neo4j_service():
    """Close the shared Neo4j service if it was created"""
    global neo4j_service
    if neo4j_service is not None:
        await neo4j_service.close()
        neo4j_service = None

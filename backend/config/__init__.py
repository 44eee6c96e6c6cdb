"""
Configuration module for settings, logging and database connections.
"""
from .settings import Settings, get_settings
from .logging_config import setup_logging
from .database import (
    Neo4jConfig,
    get_neo4j_config,
    get_neo4j_service,
    create_neo4j_service,
    close_neo4j_service,
)

__all__ = [
    'Settings',
    'get_settings',
    'setup_logging',
    'Neo4jConfig',
    'get_neo4j_config',
    'get_neo4j_service',
    'create_neo4j_service',
    'close_neo4j_service',
]

"""
Models

- domain: storage-agnostic dataclasses built from Neo4j records
- api:    pydantic request bodies
"""

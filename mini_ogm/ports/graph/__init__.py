"""Graph store adapter exports."""

from .neo4j import Neo4jGraphSession

__all__ = [
    "Neo4jGraphSession",
]

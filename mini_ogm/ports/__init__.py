"""Public port exports for concrete adapter implementations."""

from .graph import Neo4jGraphSession

__all__ = [
    "Neo4jGraphSession",
]

"""Neo4j adapter implementing the graph session port.

This adapter is optional and requires the `neo4j` package installed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional

from ...core.metadata import MetaData
from ...core.paging import PageRequest, Sort
from ...core.result_types import GraphNode, GraphRelationship, QueryResult

logger = logging.getLogger(__name__)

_COUNTERS = (
    "nodes_created",
    "nodes_deleted",
    "relationships_created",
    "relationships_deleted",
    "properties_set",
    "labels_added",
    "labels_removed",
    "indexes_added",
    "indexes_removed",
    "constraints_added",
    "constraints_removed",
)
_IDENTITIES = {"element_id", "id"}


class Neo4jGraphSession:
    """Graph session adapter for Neo4j using the official Python driver."""

    def __init__(
        self,
        *,
        uri: str = "bolt://localhost:7687",
        user: str | None = None,
        password: str | None = None,
        database: str | None = None,
        metadata: MetaData | None = None,
        identity: str = "element_id",
        driver: Any = None,
    ) -> None:
        """Create a Neo4j session adapter.

        Args:
            uri: Bolt or neo4j URI used when no driver is injected.
            user: Basic auth user name.
            password: Basic auth password.
            database: Target database name, or server default when `None`.
            metadata: Entity registry used for identity resolution and mapping.
            identity: Node identity exposed to entities: `element_id` or the
                legacy numeric `id`.
            driver: Existing driver instance; the adapter then does not own it.
        """

        if identity not in _IDENTITIES:
            raise ValueError(
                f"Unsupported identity {identity!r}. Use 'element_id' or 'id'."
            )

        try:
            from neo4j import GraphDatabase  # type: ignore[import-not-found]
            from neo4j.graph import Node, Path, Relationship  # type: ignore[import-not-found]
        except ImportError as exc:  # pragma: no cover - env dependent
            raise ImportError(
                "neo4j is required for Neo4jGraphSession. "
                "Install with `pip install neo4j`."
            ) from exc

        self._node_type = Node
        self._relationship_type = Relationship
        self._path_type = Path
        self.database = database
        self.identity = identity
        self.metadata = metadata or MetaData()

        if driver is not None:
            self._driver = driver
            self._owns_driver = False
        else:
            auth = (user, password) if user is not None else None
            self._driver = GraphDatabase.driver(uri, auth=auth)
            self._owns_driver = True

    def resolve_graph_id(self, obj: Any) -> Optional[Any]:
        return self.metadata.resolve_graph_id(obj)

    def query(self, cypher: str, parameters: Mapping[str, Any]) -> QueryResult:
        """Run one statement and return its normalized rows and counters."""

        logger.debug("Running Cypher statement on database %s", self.database or "<default>")
        records, summary, _keys = self._driver.execute_query(
            cypher,
            parameters_=self._driver_parameters(parameters),
            database_=self.database,
        )
        rows = [
            {key: self._normalize(value) for key, value in record.items()}
            for record in records
        ]
        return QueryResult(rows=rows, statistics=self._statistics(summary))

    def close(self) -> None:
        if self._owns_driver:
            self._driver.close()

    def __enter__(self) -> Neo4jGraphSession:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def _driver_parameters(self, parameters: Mapping[str, Any]) -> Dict[str, Any]:
        # Paging carriers and projection classes shape the statement, not its values.
        return {
            key: value
            for key, value in parameters.items()
            if not isinstance(value, (PageRequest, Sort, type))
        }

    def _normalize(self, value: Any) -> Any:
        if isinstance(value, self._node_type):
            return GraphNode(
                id=self._identity_of(value),
                labels=tuple(sorted(value.labels)),
                properties=dict(value.items()),
            )
        if isinstance(value, self._relationship_type):
            return GraphRelationship(
                id=self._identity_of(value),
                type=value.type,
                start_id=self._identity_of(value.start_node),
                end_id=self._identity_of(value.end_node),
                properties=dict(value.items()),
            )
        if isinstance(value, self._path_type):
            return {
                "nodes": [self._normalize(node) for node in value.nodes],
                "relationships": [self._normalize(rel) for rel in value.relationships],
            }
        if isinstance(value, list):
            return [self._normalize(item) for item in value]
        if isinstance(value, Mapping):
            return {key: self._normalize(item) for key, item in value.items()}
        return value

    def _identity_of(self, entity: Any) -> Any:
        if entity is None:
            return None
        return getattr(entity, self.identity)

    def _statistics(self, summary: Any) -> Dict[str, int]:
        counters = getattr(summary, "counters", None)
        if counters is None:
            return {}
        stats: Dict[str, int] = {}
        for name in _COUNTERS:
            value = getattr(counters, name, 0)
            if isinstance(value, int) and value:
                stats[name] = value
        return stats


"""Store-neutral result values produced by graph session adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Mapping, Optional, Tuple

from .paging import PageRequest
from .types import Row


@dataclass(frozen=True)
class GraphNode:
    """Node value with its store-assigned identity."""

    id: Any
    labels: Tuple[str, ...] = ()
    properties: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class GraphRelationship:
    """Relationship value with its endpoints' identities."""

    id: Any
    type: str
    start_id: Any
    end_id: Any
    properties: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class QueryResult:
    """Raw tabular result of one statement.

    Rows are column-name to value mappings in statement order. `statistics`
    holds the store's update counters when it reports any.
    """

    rows: List[Row] = field(default_factory=list)
    statistics: Mapping[str, int] = field(default_factory=dict)

    def scalar(self) -> Any:
        """Return the first column of the first row, or `None`."""

        if not self.rows:
            return None
        first = self.rows[0]
        return next(iter(first.values()), None)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class PagedQueryResult:
    """Raw page content plus the total row count it belongs to."""

    result: QueryResult
    request: PageRequest
    total: int
    count_result: Optional[QueryResult] = None

"""Execution strategies chosen from a query method's return shape and kind."""

from __future__ import annotations

from typing import Any, Optional, Protocol

from .contracts import GraphSessionPort
from .paging import PageRequest, Sort
from .query import GraphQuery
from .query_method import GraphQueryMethod, ReturnShape
from .result_types import PagedQueryResult, QueryResult
from .types import ArgumentValues


class GraphQueryExecution(Protocol):
    """Runs a resolved query against the store and returns the raw result."""

    def execute(self, query: GraphQuery, values: ArgumentValues) -> Any: ...


class _SessionExecution:
    def __init__(self, session: GraphSessionPort, method: GraphQueryMethod):
        self.session = session
        self.method = method

    def _run(self, query: GraphQuery) -> QueryResult:
        return self.session.query(query.cypher, query.parameters)

    def _argument(self, index: Optional[int], values: ArgumentValues) -> Any:
        if index is None or index >= len(values):
            return None
        return values[index]


class QueryResultExecution(_SessionExecution):
    """Return the store's raw result untouched."""

    def execute(self, query: GraphQuery, values: ArgumentValues) -> QueryResult:
        return self._run(query)


class SingleEntityExecution(_SessionExecution):
    def execute(self, query: GraphQuery, values: ArgumentValues) -> QueryResult:
        return self._run(query)


class CollectionExecution(_SessionExecution):
    """Run the query, ordered by the method's `Sort` argument when given."""

    def execute(self, query: GraphQuery, values: ArgumentValues) -> QueryResult:
        sort: Optional[Sort] = self._argument(self.method.sort_index, values)
        return self._run(query.with_sort(sort))


class PagedExecution(_SessionExecution):
    """Run one page of the query and determine the total row count.

    The count query is used when the method declares one. Otherwise one extra
    row is fetched: the total is exact when the page is the last one and a
    lower bound that signals a next page otherwise. An empty page past the
    end reports a total of 0.
    """

    def execute(self, query: GraphQuery, values: ArgumentValues) -> PagedQueryResult:
        request: Optional[PageRequest] = self._argument(self.method.page_index, values)
        sort: Optional[Sort] = self._argument(self.method.sort_index, values)
        if request is None:
            result = self._run(query.with_sort(sort))
            return PagedQueryResult(
                result=result,
                request=PageRequest(0, max(len(result), 1)),
                total=len(result),
            )

        if sort and not request.sort:
            request = PageRequest(request.page, request.size, sort)

        if query.count_cypher:
            result = self._run(query.with_paging(request))
            count_result = self.session.query(query.count_cypher, query.parameters)
            total = int(count_result.scalar() or 0)
            return PagedQueryResult(result, request, total, count_result)

        probe = self._run(query.with_paging(request, extra_rows=1))
        rows = probe.rows[: request.size]
        total = request.offset + len(probe.rows) if probe.rows else 0
        return PagedQueryResult(QueryResult(rows, probe.statistics), request, total)


class CountExecution(_SessionExecution):
    def execute(self, query: GraphQuery, values: ArgumentValues) -> int:
        return int(self._run(query).scalar() or 0)


class ExistsExecution(_SessionExecution):
    def execute(self, query: GraphQuery, values: ArgumentValues) -> bool:
        result = self._run(query)
        if not result.rows:
            return False
        return bool(result.scalar())


class DeleteExecution(_SessionExecution):
    """Run a deleting statement and report the number of deleted nodes."""

    def execute(self, query: GraphQuery, values: ArgumentValues) -> int:
        result = self._run(query)
        if "nodes_deleted" in result.statistics:
            return int(result.statistics["nodes_deleted"])
        return int(result.scalar() or 0)


_SHAPE_EXECUTIONS = {
    ReturnShape.RAW: QueryResultExecution,
    ReturnShape.SINGLE: SingleEntityExecution,
    ReturnShape.COLLECTION: CollectionExecution,
    ReturnShape.PAGED: PagedExecution,
}


def select_execution(
    session: GraphSessionPort,
    method: GraphQueryMethod,
    *,
    count: bool = False,
    exists: bool = False,
    delete: bool = False,
) -> GraphQueryExecution:
    """Pick the execution strategy for one query method.

    Query kind flags take precedence over the declared return shape.
    """

    if count:
        return CountExecution(session, method)
    if exists:
        return ExistsExecution(session, method)
    if delete:
        return DeleteExecution(session, method)
    return _SHAPE_EXECUTIONS[method.return_info.shape](session, method)

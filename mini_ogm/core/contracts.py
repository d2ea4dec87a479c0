"""Core port contracts used by store adapters and the query pipeline."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from .metadata import MetaData
from .parameters import MethodParameters
from .result_types import QueryResult
from .types import ArgumentValues, EvaluationContext


class GraphSessionPort(Protocol):
    """Graph store behavior required by repository queries."""

    metadata: MetaData

    def resolve_graph_id(self, obj: Any) -> Optional[Any]: ...

    def query(self, cypher: str, parameters: Mapping[str, Any]) -> QueryResult: ...


class EvaluationContextProvider(Protocol):
    """Supplies extra variables visible to `:#{...}` query expressions."""

    def __call__(
        self,
        parameters: MethodParameters,
        values: ArgumentValues,
    ) -> EvaluationContext: ...


class ResultConverterPort(Protocol):
    """Converts one raw result row to a target type."""

    def convert(self, row: Mapping[str, Any], target: Any) -> Any: ...

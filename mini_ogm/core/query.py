"""Executable query descriptor and its assembly from a compiled template."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from .errors import UnresolvedParameterError
from .paging import PageRequest, Sort, order_by_clause
from .parameters import MethodParameters
from .templates import ParameterizedQuery
from .types import ArgumentValues, EvaluationContext, ParameterMap

SKIP_PARAMETER = "__skip"
LIMIT_PARAMETER = "__limit"


@dataclass(frozen=True)
class GraphQuery:
    """Resolved statement, optional count statement, and bound parameters."""

    cypher: str
    count_cypher: Optional[str]
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def parameter_map(self) -> ParameterMap:
        """Return a fresh mutable copy of the bound parameters."""

        return dict(self.parameters)

    def with_sort(self, sort: Optional[Sort]) -> GraphQuery:
        """Return a copy whose statement is ordered by `sort`."""

        if not sort:
            return self
        return replace(self, cypher=self.cypher.rstrip().rstrip(";") + order_by_clause(sort))

    def with_paging(self, page: PageRequest, *, extra_rows: int = 0) -> GraphQuery:
        """Return a copy restricted to one page, optionally reading extra rows."""

        sorted_query = self.with_sort(page.sort)
        params = sorted_query.parameter_map()
        params[SKIP_PARAMETER] = page.offset
        params[LIMIT_PARAMETER] = page.size + extra_rows
        return replace(
            sorted_query,
            cypher=(
                f"{sorted_query.cypher.rstrip().rstrip(';')} "
                f"SKIP ${SKIP_PARAMETER} LIMIT ${LIMIT_PARAMETER}"
            ),
            parameters=MappingProxyType(params),
        )


def assemble_query(
    template: ParameterizedQuery,
    parameters: ParameterMap,
    *,
    method_parameters: MethodParameters,
    values: ArgumentValues,
    context: EvaluationContext | None = None,
    method_name: Optional[str] = None,
    resolve_value: Callable[[Any], Any] | None = None,
) -> GraphQuery:
    """Combine a compiled template and a bound parameter map into a `GraphQuery`.

    Args:
        template: Compiled query template of the method.
        parameters: Bound parameter map for this call.
        method_parameters: Descriptors used to resolve `#name` expression roots.
        values: Raw call argument values used by expression placeholders.
        context: Extra variables visible to expression placeholders.
        method_name: Query method name used in error messages.
        resolve_value: Post-processing applied to expression results, normally
            entity dereferencing.

    Raises:
        UnresolvedParameterError: If a placeholder or expression has no value.
    """

    # The count statement runs with the same unpaged parameters.
    for placeholder in sorted(template.placeholders | template.count_placeholders):
        if placeholder not in parameters:
            raise UnresolvedParameterError(placeholder, method_name)

    resolved = dict(parameters)
    for expression in template.expressions:
        value = expression.evaluate(
            method_parameters,
            values,
            context or {},
            method_name=method_name,
        )
        resolved[expression.parameter] = resolve_value(value) if resolve_value else value

    return GraphQuery(
        cypher=template.query,
        count_cypher=template.count_query,
        parameters=MappingProxyType(resolved),
    )

"""Exception hierarchy for query method registration and execution."""

from __future__ import annotations

from typing import Optional


class GraphQueryError(Exception):
    """Base class for errors raised by the query pipeline itself.

    Errors raised by a store adapter (bad Cypher, constraint violations,
    connectivity) are never wrapped in this hierarchy.
    """


class QueryMethodDefinitionError(GraphQueryError, TypeError):
    """Raised when a repository method cannot be registered as a query method."""


class AmbiguousParameterError(QueryMethodDefinitionError):
    """Raised when two bindable parameters would share one placeholder key."""


class UnresolvedParameterError(GraphQueryError, ValueError):
    """Raised when a query placeholder has no bound value."""

    def __init__(self, placeholder: str, method_name: Optional[str] = None):
        self.placeholder = placeholder
        self.method_name = method_name
        location = f" in query method {method_name!r}" if method_name else ""
        super().__init__(f"Unresolved query parameter {placeholder!r}{location}.")


class ResultConversionError(GraphQueryError, TypeError):
    """Raised when a query ran but its result does not fit the declared return type."""


class IncorrectResultSizeError(ResultConversionError):
    """Raised when a single-result query returns more than one row."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Incorrect result size: expected at most {expected}, got {actual}."
        )

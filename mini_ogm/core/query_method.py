"""Query method registration: templates, parameter descriptors, and return shapes.

Everything here is derived once, when a repository class is defined, so the
per-call pipeline never inspects function signatures or type hints again.
"""

from __future__ import annotations

import collections.abc
import inspect
import types
from dataclasses import dataclass
from enum import Enum
from typing import (
    Annotated,
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from .errors import QueryMethodDefinitionError
from .paging import Page, PageRequest, Sort
from .parameters import MethodParameter, MethodParameters, Param, Special
from .result_types import QueryResult

F = TypeVar("F", bound=Callable[..., Any])

QUERY_ATTRIBUTE = "__graph_query__"

_COLLECTION_ORIGINS: Dict[Any, type] = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Iterator: list,
    collections.abc.Set: frozenset,
}


class ReturnShape(str, Enum):
    """Closed set of result shapes a query method can declare."""

    RAW = "raw"
    SINGLE = "single"
    COLLECTION = "collection"
    PAGED = "paged"
    # Reserved for count/exists/delete query kinds.
    COUNT = "count"


@dataclass(frozen=True)
class ReturnTypeInfo:
    """Classified declared return type of a query method.

    Attributes:
        shape: Result shape.
        declared: The declared annotation, as written.
        returned_type: Element/domain type results are converted to.
        container: Collection type for `COLLECTION` results.
    """

    shape: ReturnShape
    declared: Any
    returned_type: Any = Any
    container: Optional[type] = None


@dataclass(frozen=True)
class QueryAnnotation:
    """Query text attached to a repository method by `@query`."""

    cypher: str
    count_query: Optional[str] = None


def query(cypher: str, *, count_query: Optional[str] = None) -> Callable[[F], F]:
    """Mark a repository method as an annotated graph query.

    Args:
        cypher: Query template. Supports `$name`/`$0` parameters, legacy
            `{name}`/`{0}` placeholders, and `:#{...}` expressions.
        count_query: Statement returning the total row count for paged
            methods. It is run as written and accepts `$name`/`$0`
            parameters only.
    """

    if not isinstance(cypher, str) or not cypher.strip():
        raise QueryMethodDefinitionError("@query requires non-empty query text.")

    def decorator(func: F) -> F:
        setattr(func, QUERY_ATTRIBUTE, QueryAnnotation(cypher, count_query))
        return func

    return decorator


def query_annotation(func: Any) -> Optional[QueryAnnotation]:
    annotation = getattr(func, QUERY_ATTRIBUTE, None)
    return annotation if isinstance(annotation, QueryAnnotation) else None


@dataclass(frozen=True)
class GraphQueryMethod:
    """Static metadata of one annotated query method."""

    name: str
    query: str
    count_query: Optional[str]
    parameters: MethodParameters
    return_info: ReturnTypeInfo
    argument_names: Tuple[str, ...] = ()
    signature: Optional[inspect.Signature] = None
    page_index: Optional[int] = None
    sort_index: Optional[int] = None
    projection_index: Optional[int] = None

    @classmethod
    def from_function(
        cls,
        func: Callable[..., Any],
        *,
        skip_self: bool = True,
        annotation: Optional[QueryAnnotation] = None,
    ) -> GraphQueryMethod:
        """Build query method metadata from a decorated function.

        Raises:
            QueryMethodDefinitionError: If the function cannot be used as a
                query method.
        """

        name = getattr(func, "__qualname__", getattr(func, "__name__", repr(func)))
        annotation = annotation or query_annotation(func)
        if annotation is None:
            raise QueryMethodDefinitionError(f"{name} has no @query annotation.")

        try:
            hints = get_type_hints(func, include_extras=True)
        except Exception as exc:
            raise QueryMethodDefinitionError(
                f"Cannot resolve type hints of query method {name}: {exc}"
            ) from exc

        signature = inspect.signature(func)
        declared = list(signature.parameters.values())
        if skip_self and declared and declared[0].kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            declared = declared[1:]

        descriptors: List[MethodParameter] = []
        page_index: Optional[int] = None
        sort_index: Optional[int] = None
        projection_index: Optional[int] = None

        for index, parameter in enumerate(declared):
            if parameter.kind in (
                inspect.Parameter.VAR_POSITIONAL,
                inspect.Parameter.VAR_KEYWORD,
            ):
                raise QueryMethodDefinitionError(
                    f"Query method {name} cannot declare *args or **kwargs."
                )

            raw_hint = hints.get(parameter.name, Any)
            base, markers = _split_annotated(raw_hint)
            base = _unwrap_optional(base)

            special = any(isinstance(marker, Special) for marker in markers)
            if base is PageRequest:
                page_index = _claim_once(page_index, index, "PageRequest", name)
                special = True
            elif base is Sort:
                sort_index = _claim_once(sort_index, index, "Sort", name)
                special = True
            elif _is_projection_hint(base):
                projection_index = _claim_once(projection_index, index, "projection", name)
                special = True

            alias = next((m.name for m in markers if isinstance(m, Param)), None)
            descriptors.append(
                MethodParameter(
                    index=index,
                    name=alias or parameter.name,
                    special=special,
                    annotation=raw_hint,
                )
            )

        return_info = classify_return_type(hints.get("return", inspect.Signature.empty))
        if return_info.shape is ReturnShape.PAGED and page_index is None:
            raise QueryMethodDefinitionError(
                f"Query method {name} returns a Page but declares no PageRequest parameter."
            )

        return cls(
            name=name,
            query=annotation.cypher,
            count_query=annotation.count_query,
            parameters=MethodParameters(descriptors),
            return_info=return_info,
            argument_names=tuple(parameter.name for parameter in declared),
            signature=signature.replace(parameters=declared),
            page_index=page_index,
            sort_index=sort_index,
            projection_index=projection_index,
        )

    def argument_values(
        self,
        args: Sequence[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
    ) -> Tuple[Any, ...]:
        """Order call arguments by declaration, applying defaults."""

        if self.signature is None:
            if kwargs:
                raise TypeError(f"{self.name} does not accept keyword arguments.")
            return tuple(args)
        bound = self.signature.bind(*args, **dict(kwargs or {}))
        bound.apply_defaults()
        return tuple(bound.arguments[name] for name in self.argument_names)


def classify_return_type(hint: Any) -> ReturnTypeInfo:
    """Classify a declared return annotation into a `ReturnTypeInfo`."""

    if hint is inspect.Signature.empty or hint is QueryResult:
        return ReturnTypeInfo(ReturnShape.RAW, QueryResult, QueryResult)
    if hint is None or hint is type(None):
        return ReturnTypeInfo(ReturnShape.RAW, None, type(None))

    base, _ = _split_annotated(hint)
    base = _unwrap_optional(base)
    origin = get_origin(base)
    args = get_args(base)

    if base is Page or origin is Page:
        return ReturnTypeInfo(ReturnShape.PAGED, hint, args[0] if args else Any)

    container = _COLLECTION_ORIGINS.get(origin if origin is not None else base)
    if container is not None:
        element: Any = Any
        if args:
            element = args[0]
        return ReturnTypeInfo(ReturnShape.COLLECTION, hint, element, container)

    return ReturnTypeInfo(ReturnShape.SINGLE, hint, base)


def _claim_once(current: Optional[int], index: int, kind: str, method_name: str) -> int:
    if current is not None:
        raise QueryMethodDefinitionError(
            f"Query method {method_name} declares more than one {kind} parameter."
        )
    return index


def _split_annotated(hint: Any) -> Tuple[Any, Tuple[Any, ...]]:
    if get_origin(hint) is Annotated:
        base, *markers = get_args(hint)
        return base, tuple(markers)
    return hint, ()


def _unwrap_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin not in {Union, types.UnionType}:
        return annotation
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    if len(args) == 1:
        return args[0]
    return annotation


def _is_projection_hint(hint: Any) -> bool:
    return hint is type or hint is Type or get_origin(hint) is type

"""Conversion of raw query results into declared query method return types."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import is_dataclass
from typing import Any, List, Optional, get_args, get_origin

from .contracts import ResultConverterPort
from .errors import IncorrectResultSizeError, ResultConversionError
from .metadata import MetaData
from .models import build_instance, project_instance
from .paging import Page
from .query_method import GraphQueryMethod, ReturnShape
from .result_types import GraphNode, GraphRelationship, PagedQueryResult, QueryResult
from .types import ArgumentValues, Row

_SCALAR_TYPES = (int, float, str, bool)
_PASSTHROUGH_TARGETS = (Any, object, None)


class GraphResultConverter:
    """Map result rows and graph values onto entities, projections, or scalars.

    Nodes whose labels match a registered entity are built as the most
    specific registered entity compatible with the requested target.
    """

    def __init__(self, metadata: MetaData):
        self.metadata = metadata

    def convert(self, row: Row, target: Any) -> Any:
        """Convert one result row to `target`."""

        if _is_mapping_target(target):
            return dict(row)

        if len(row) == 1:
            value = next(iter(row.values()))
            if not _is_plain_dataclass_target(target) or _is_structured(value):
                return self.convert_value(value, target)

        if _is_passthrough(target):
            return dict(row)
        if _is_plain_dataclass_target(target):
            return self._build(target, row)
        raise ResultConversionError(
            f"Cannot convert a row with columns {list(row.keys())} to {_type_name(target)}."
        )

    def convert_value(self, value: Any, target: Any) -> Any:
        """Convert one graph value to `target`."""

        if value is None:
            return None

        if isinstance(value, GraphNode):
            entity = self._entity_for_node(value, target)
            if entity is not None:
                return self._build(entity, value.properties, identity=value.id)
            if _is_passthrough(target):
                return value
            if _is_mapping_target(target):
                return dict(value.properties)
            if _is_plain_dataclass_target(target):
                return self._build(target, value.properties, identity=value.id)

        if isinstance(value, GraphRelationship):
            if _is_passthrough(target):
                return value
            if _is_mapping_target(target):
                return dict(value.properties)
            if _is_plain_dataclass_target(target):
                return self._build(target, value.properties, identity=value.id)

        if _is_passthrough(target):
            return value

        origin = get_origin(target)
        if origin in (list, tuple, set, frozenset) and isinstance(value, (list, tuple)):
            args = get_args(target)
            element = args[0] if args else Any
            return origin(self.convert_value(item, element) for item in value)

        if isinstance(target, type) and origin is None and isinstance(value, target):
            return value

        if _is_mapping_target(target) and isinstance(value, Mapping):
            return dict(value)

        if _is_plain_dataclass_target(target):
            if isinstance(value, Mapping):
                return self._build(target, value)
            if is_dataclass(value) and not isinstance(value, type):
                try:
                    return project_instance(target, value)
                except (TypeError, ValueError) as exc:
                    raise ResultConversionError(
                        f"Cannot project {type(value).__name__} onto {_type_name(target)}: {exc}"
                    ) from exc

        if target in _SCALAR_TYPES:
            return _coerce_scalar(value, target)

        raise ResultConversionError(
            f"Cannot convert value of type {type(value).__name__} to {_type_name(target)}."
        )

    def _entity_for_node(self, node: GraphNode, target: Any) -> Optional[type]:
        if not node.labels or not (
            _is_passthrough(target) or _is_plain_dataclass_target(target)
        ):
            return None
        candidates = [
            meta.entity
            for meta in self.metadata
            if meta.label in node.labels
            and (_is_passthrough(target) or issubclass(meta.entity, target))
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda entity: len(entity.__mro__))

    def _build(self, target: type, values: Mapping[str, Any], *, identity: Any = None) -> Any:
        try:
            return build_instance(target, values, identity=identity)
        except (TypeError, ValueError) as exc:
            raise ResultConversionError(
                f"Cannot build {_type_name(target)} from {sorted(values.keys())}: {exc}"
            ) from exc


class ResultProcessor:
    """Apply a query method's declared return shape to a raw execution result."""

    def __init__(self, method: GraphQueryMethod, target: Any = None):
        self.method = method
        self._target = target

    @property
    def returned_type(self) -> Any:
        """Type each result row converts to, after dynamic projection."""

        if self._target is not None:
            return self._target
        return self.method.return_info.returned_type

    def with_dynamic_projection(self, values: ArgumentValues) -> ResultProcessor:
        """Return a processor targeting the projection argument, if one was passed."""

        index = self.method.projection_index
        if index is None or index >= len(values) or values[index] is None:
            return self
        projection = values[index]
        if not isinstance(projection, type):
            raise TypeError(
                f"Projection argument of {self.method.name} must be a class, "
                f"got {type(projection).__name__}."
            )
        return ResultProcessor(self.method, projection)

    def process(
        self,
        raw: Any,
        converter: ResultConverterPort,
        *,
        shape: Optional[ReturnShape] = None,
    ) -> Any:
        """Convert `raw` to the declared return type.

        `shape` overrides the declared shape, as count, exists, and delete
        query kinds do with `ReturnShape.COUNT`.
        """

        info = self.method.return_info
        shape = shape or info.shape
        if shape is ReturnShape.COUNT:
            return raw
        if info.declared is QueryResult:
            return raw
        if shape is ReturnShape.RAW:
            return None if info.returned_type is type(None) else raw

        target = self.returned_type
        if shape is ReturnShape.SINGLE:
            rows = list(_rows(raw))
            if not rows:
                return None
            if len(rows) > 1:
                raise IncorrectResultSizeError(1, len(rows))
            return converter.convert(rows[0], target)

        if shape is ReturnShape.COLLECTION:
            container = info.container or list
            return container(converter.convert(row, target) for row in _rows(raw))

        if shape is ReturnShape.PAGED:
            if not isinstance(raw, PagedQueryResult):
                raise ResultConversionError(
                    f"Paged method {self.method.name} expects a paged execution result."
                )
            content: List[Any] = [converter.convert(row, target) for row in raw.result]
            return Page(content=content, request=raw.request, total=raw.total)

        raise ResultConversionError(f"Unsupported return shape {shape!r}.")


def _rows(raw: Any) -> QueryResult:
    if isinstance(raw, QueryResult):
        return raw
    raise ResultConversionError(
        f"Expected a QueryResult from execution, got {type(raw).__name__}."
    )


def _coerce_scalar(value: Any, target: type) -> Any:
    if target is bool and not isinstance(value, bool):
        raise ResultConversionError(f"Cannot convert {value!r} to bool.")
    if isinstance(value, (GraphNode, GraphRelationship, Mapping, list)):
        raise ResultConversionError(
            f"Cannot convert {type(value).__name__} to {target.__name__}."
        )
    try:
        return target(value)
    except (TypeError, ValueError) as exc:
        raise ResultConversionError(
            f"Cannot convert {value!r} to {target.__name__}."
        ) from exc


def _is_passthrough(target: Any) -> bool:
    return any(target is candidate for candidate in _PASSTHROUGH_TARGETS)


def _is_mapping_target(target: Any) -> bool:
    return target in (dict, Mapping) or get_origin(target) in (dict, Mapping)


def _is_plain_dataclass_target(target: Any) -> bool:
    return isinstance(target, type) and is_dataclass(target)


def _is_structured(value: Any) -> bool:
    return isinstance(value, (GraphNode, GraphRelationship, Mapping)) or (
        is_dataclass(value) and not isinstance(value, type)
    )


def _type_name(target: Any) -> str:
    return getattr(target, "__name__", repr(target))

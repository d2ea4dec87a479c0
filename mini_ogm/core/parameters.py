"""Query method parameter descriptors and call-argument binding.

Descriptors are built once, when a query method is registered. Binding runs
once per call and turns the actual argument values into the flat
`ParameterMap` handed to the query template: every value is reachable by the
string form of its position, and bindable parameters are additionally
reachable by their declared name.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional, Sequence, Tuple, cast

from .errors import AmbiguousParameterError
from .types import ArgumentValues, ParameterMap

GraphIdResolver = Callable[[Any], Any]


@dataclass(frozen=True)
class Param:
    """`Annotated` marker that overrides the placeholder name of a parameter."""

    name: str

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise TypeError("Param name must be a non-empty string.")


@dataclass(frozen=True)
class Special:
    """`Annotated` marker that excludes a parameter from named binding."""


@dataclass(frozen=True)
class MethodParameter:
    """Static description of one declared query method parameter.

    Attributes:
        index: Zero-based position among the bindable call arguments.
        name: Declared placeholder name, if any.
        special: Framework parameter (paging, sorting, projection) that is
            never bound by name.
        annotation: Declared type annotation, informational only.
    """

    index: int
    name: Optional[str] = None
    special: bool = False
    annotation: Any = None

    @property
    def is_named_parameter(self) -> bool:
        return self.name is not None and not self.special

    @property
    def index_key(self) -> str:
        return str(self.index)


class MethodParameters:
    """Ordered, validated descriptor list for one query method."""

    def __init__(self, parameters: Sequence[MethodParameter] = ()):
        ordered = tuple(parameters)
        for position, parameter in enumerate(ordered):
            if parameter.index != position:
                raise ValueError(
                    f"Parameter indexes must be contiguous from 0; got "
                    f"{parameter.index} at position {position}."
                )
        _validate_names(ordered)
        self._parameters: Tuple[MethodParameter, ...] = ordered

    def __iter__(self) -> Iterator[MethodParameter]:
        return iter(self._parameters)

    def __len__(self) -> int:
        return len(self._parameters)

    def __getitem__(self, index: int) -> MethodParameter:
        return self._parameters[index]

    @property
    def named(self) -> Dict[str, MethodParameter]:
        return {p.name: p for p in self._parameters if p.is_named_parameter}  # type: ignore[misc]

    def find(self, name: str) -> Optional[MethodParameter]:
        """Return the parameter declared as `name`, special or not.

        A bindable parameter wins over a special one of the same name.
        """

        found = self.named.get(name)
        if found is not None:
            return found
        return next((p for p in self._parameters if p.name == name), None)


def _validate_names(parameters: Sequence[MethodParameter]) -> None:
    seen: Dict[str, int] = {}
    for parameter in parameters:
        if not parameter.is_named_parameter:
            continue
        name = cast(str, parameter.name)
        if name.isdigit():
            raise AmbiguousParameterError(
                f"Parameter name {name!r} at index {parameter.index} would shadow "
                "an index placeholder."
            )
        if name in seen:
            raise AmbiguousParameterError(
                f"Parameters at index {seen[name]} and {parameter.index} are both "
                f"bound to the name {name!r}."
            )
        seen[name] = parameter.index


class ParameterBinder:
    """Resolve one call's argument values into a `ParameterMap`."""

    def __init__(self, resolve_graph_id: GraphIdResolver):
        self._resolve_graph_id = resolve_graph_id

    def resolve_value(self, value: Any) -> Any:
        """Return the persisted identity of an entity, otherwise `value`."""

        graph_id = self._resolve_graph_id(value)
        if graph_id is None:
            return value
        return graph_id

    def bind(self, parameters: MethodParameters, values: ArgumentValues) -> ParameterMap:
        if len(values) < len(parameters):
            raise TypeError(
                f"Expected {len(parameters)} argument values, got {len(values)}."
            )

        resolved: ParameterMap = {}
        for parameter in parameters:
            value = self.resolve_value(values[parameter.index])
            # Index keys are always bound so templates can mix both styles.
            resolved[parameter.index_key] = value
            if parameter.is_named_parameter:
                resolved[parameter.name] = value  # type: ignore[index]
        return resolved

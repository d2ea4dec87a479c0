"""Node entity utilities for dataclass validation and mapping."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import Field, fields, is_dataclass
from typing import Any, Dict, List, Optional, Type, TypeVar

from .codecs import deserialize_entity_value


T = TypeVar("T")


def require_dataclass_entity(cls: Type[Any]) -> None:
    """Validate that a class is a dataclass entity."""

    if not isinstance(cls, type) or not is_dataclass(cls):
        name = getattr(cls, "__name__", repr(cls))
        raise TypeError(f"{name} must be a dataclass.")


def node_label(entity_or_cls: Any) -> str:
    """Resolve node label from entity class or instance.

    Uses `__label__` override when present, otherwise the class name.
    """

    cls = entity_or_cls if isinstance(entity_or_cls, type) else type(entity_or_cls)
    label = getattr(cls, "__label__", None)
    return label if isinstance(label, str) and label else cls.__name__


def entity_fields(cls: Type[Any]) -> List[Field[Any]]:
    """Return dataclass fields for an entity type."""

    require_dataclass_entity(cls)
    return list(fields(cls))


def id_field(cls: Type[Any]) -> Optional[Field[Any]]:
    """Return the identity field of an entity type.

    The identity field is the one declared with `metadata={'id': True}`,
    otherwise a field named `id`. Returns `None` when neither exists.
    """

    all_fields = entity_fields(cls)
    marked = [f for f in all_fields if f.metadata.get("id")]
    if len(marked) > 1:
        raise ValueError(
            f"{cls.__name__} declares more than one identity field: "
            f"{', '.join(f.name for f in marked)}."
        )
    if marked:
        return marked[0]
    for f in all_fields:
        if f.name == "id":
            return f
    return None


def build_instance(
    cls: Type[T],
    properties: Mapping[str, Any],
    *,
    identity: Any = None,
) -> T:
    """Build a dataclass instance from node properties or a row mapping.

    Keys without a matching field are ignored. Values are decoded through the
    field codecs. When `identity` is given it fills the identity field.
    """

    require_dataclass_entity(cls)
    known = {f.name: f for f in fields(cls) if f.init}
    values: Dict[str, Any] = {}
    for key, value in properties.items():
        if key in known:
            values[key] = deserialize_entity_value(cls, key, value)

    if identity is not None:
        ident = id_field(cls)
        if ident is not None and ident.name in known:
            values[ident.name] = identity

    return cls(**values)


def project_instance(cls: Type[T], source: Any) -> T:
    """Copy same-named field values of a dataclass instance into `cls`."""

    require_dataclass_entity(cls)
    values = {f.name: getattr(source, f.name) for f in fields(source)}
    return build_instance(cls, values)

"""Entity metadata registry used by parameter binding and result mapping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterator, List, Optional, Type, TypeVar

from .models import entity_fields, id_field, node_label, require_dataclass_entity

T = TypeVar("T")


@dataclass(frozen=True)
class EntityMetadata(Generic[T]):
    """Normalized node entity description."""

    entity: Type[T]
    label: str
    id_field: Optional[str]
    properties: List[str]


def build_entity_metadata(entity: Type[T]) -> EntityMetadata[T]:
    """Build normalized metadata for one node entity class."""

    require_dataclass_entity(entity)
    ident = id_field(entity)
    ident_name = ident.name if ident else None
    properties = [f.name for f in entity_fields(entity) if f.name != ident_name]
    return EntityMetadata(
        entity=entity,
        label=node_label(entity),
        id_field=ident_name,
        properties=properties,
    )


class MetaData:
    """Registry of the node entity classes known to one store session."""

    def __init__(self, *entities: Type[Any]):
        self._entities: Dict[Type[Any], EntityMetadata[Any]] = {}
        for entity in entities:
            self.register(entity)

    def register(self, entity: Type[T]) -> EntityMetadata[T]:
        """Register an entity class and return its metadata."""

        existing = self._entities.get(entity)
        if existing is not None:
            return existing
        meta = build_entity_metadata(entity)
        if meta.id_field is None:
            raise ValueError(
                f"{entity.__name__} has no identity field. "
                "Use field(metadata={'id': True}) or name a field `id`."
            )
        self._entities[entity] = meta
        return meta

    def entity_metadata(self, entity_or_cls: Any) -> Optional[EntityMetadata[Any]]:
        """Return metadata for an entity class or instance, if registered.

        Subclasses of a registered entity resolve to their closest registered
        base class.
        """

        cls = entity_or_cls if isinstance(entity_or_cls, type) else type(entity_or_cls)
        meta = self._entities.get(cls)
        if meta is not None:
            return meta
        for base in cls.__mro__[1:]:
            meta = self._entities.get(base)
            if meta is not None:
                return meta
        return None

    def is_entity(self, entity_or_cls: Any) -> bool:
        return self.entity_metadata(entity_or_cls) is not None

    def resolve_graph_id(self, obj: Any) -> Any:
        """Return the persisted identity of an entity instance.

        Returns `None` when `obj` is not a registered entity instance or its
        identity field is unset.
        """

        if obj is None or isinstance(obj, type):
            return None
        meta = self.entity_metadata(obj)
        if meta is None or meta.id_field is None:
            return None
        return getattr(obj, meta.id_field, None)

    def __iter__(self) -> Iterator[EntityMetadata[Any]]:
        return iter(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)

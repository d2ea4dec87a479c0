"""Paging and sorting carriers accepted as special query method parameters."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Generic, Iterator, List, Sequence, Tuple, TypeVar

T = TypeVar("T")

_PROPERTY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


@dataclass(frozen=True)
class Order:
    """One sort key, written as `alias.property` or `property`."""

    property: str
    desc: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.property, str) or not _PROPERTY_RE.match(self.property):
            raise ValueError(f"Invalid sort property {self.property!r}.")


@dataclass(frozen=True)
class Sort:
    """Ordered collection of sort keys."""

    orders: Tuple[Order, ...] = ()

    @classmethod
    def by(cls, *properties: str, desc: bool = False) -> Sort:
        """Build a sort over `properties` in one direction."""

        return cls(tuple(Order(name, desc=desc) for name in properties))

    def and_(self, other: Sort) -> Sort:
        return Sort(self.orders + other.orders)

    def __bool__(self) -> bool:
        return bool(self.orders)

    def __iter__(self) -> Iterator[Order]:
        return iter(self.orders)


@dataclass(frozen=True)
class PageRequest:
    """Zero-based page index, page size, and optional sort."""

    page: int = 0
    size: int = 20
    sort: Sort = field(default_factory=Sort)

    def __post_init__(self) -> None:
        if self.page < 0:
            raise ValueError("page must be >= 0")
        if self.size <= 0:
            raise ValueError("size must be > 0")

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of converted query results and the known total."""

    content: List[T]
    request: PageRequest
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.request.size) if self.total else 0

    @property
    def has_next(self) -> bool:
        return self.request.offset + len(self.content) < self.total

    @property
    def has_previous(self) -> bool:
        return self.request.page > 0

    def __iter__(self) -> Iterator[T]:
        return iter(self.content)

    def __len__(self) -> int:
        return len(self.content)


def order_by_clause(sort: Sort | Sequence[Order]) -> str:
    """Compile a Cypher `ORDER BY` fragment, or an empty string."""

    orders = list(sort)
    if not orders:
        return ""
    keys = ", ".join(
        f"{order.property} {'DESC' if order.desc else 'ASC'}" for order in orders
    )
    return f" ORDER BY {keys}"

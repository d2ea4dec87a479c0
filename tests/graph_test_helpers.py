from __future__ import annotations

import time
import unittest
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, TypeVar

from mini_ogm import GraphNode, MetaData, QueryResult

T = TypeVar("T")


class Status(str, Enum):
    ACTIVE = "active"
    RETIRED = "retired"


@dataclass
class Person:
    id: Optional[int] = None
    name: str = ""
    born: Optional[int] = None
    status: Status = Status.ACTIVE


@dataclass
class Actor(Person):
    roles: List[str] = field(default_factory=list)


@dataclass
class Movie:
    __label__ = "Film"

    uid: Optional[str] = field(default=None, metadata={"id": True})
    title: str = ""
    tags: Optional[dict] = field(default=None, metadata={"codec": "json"})


@dataclass
class PersonName:
    name: str = ""


def person_node(node_id: Any, name: str, **properties: Any) -> GraphNode:
    return GraphNode(id=node_id, labels=("Person",), properties={"name": name, **properties})


def rows(*values: Mapping[str, Any]) -> QueryResult:
    return QueryResult(rows=[dict(value) for value in values])


class RecordingGraphSession:
    """Graph session double that records statements and replays results."""

    def __init__(self, metadata: MetaData | None = None) -> None:
        self.metadata = metadata or MetaData(Person, Actor, Movie)
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._responses: list[Any] = []
        self.default = QueryResult()

    def respond(self, *responses: Any) -> None:
        """Queue results (or exceptions to raise) for the next statements."""

        self._responses.extend(responses)

    def resolve_graph_id(self, obj: Any) -> Optional[Any]:
        return self.metadata.resolve_graph_id(obj)

    def query(self, cypher: str, parameters: Mapping[str, Any]) -> QueryResult:
        self.calls.append((cypher, dict(parameters)))
        if not self._responses:
            return self.default
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last_cypher(self) -> str:
        return self.calls[-1][0]

    @property
    def last_parameters(self) -> dict[str, Any]:
        return self.calls[-1][1]


def wait_for_service_or_skip(
    *,
    service_name: str,
    endpoint: str,
    initializer: Callable[[], T],
    retries: int = 20,
    delay_seconds: float = 1.0,
) -> T:
    """Retry service initialization and skip test class when unavailable."""

    last_exc: Exception | None = None
    for _ in range(retries):
        try:
            return initializer()
        except Exception as exc:
            last_exc = exc
            time.sleep(delay_seconds)

    raise unittest.SkipTest(
        f"{service_name} is not reachable at {endpoint}: {last_exc}"
    ) from last_exc

"""Annotated Cypher query methods against a Neo4j server.

Connection options come from MINI_OGM_NEO4J_URI, MINI_OGM_NEO4J_USER, and
MINI_OGM_NEO4J_PASSWORD.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "mini_ogm").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from mini_ogm import (
    GraphRepository,
    MetaData,
    Neo4jGraphSession,
    Page,
    PageRequest,
    Sort,
    query,
)


@dataclass
class Person:
    __label__ = "ExamplePerson"

    id: Optional[str] = None
    name: str = ""
    born: Optional[int] = None


@dataclass
class PersonName:
    name: str = ""


class PersonRepository(GraphRepository):
    @query("CREATE (p:ExamplePerson {name: $name, born: $born}) RETURN p")
    def create(self, name: str, born: int) -> Person: ...

    # Legacy placeholders are rewritten to native parameters.
    @query("MATCH (p:ExamplePerson) WHERE elementId(p) = {0} RETURN p")
    def reload(self, person: Person) -> Optional[Person]: ...

    @query("MATCH (p:ExamplePerson) WHERE p.born >= :#{#since} RETURN p")
    def born_since(
        self,
        since: int,
        sort: Optional[Sort] = None,
        projection: Optional[type[Any]] = None,
    ) -> list[Person]: ...

    @query(
        "MATCH (p:ExamplePerson) RETURN p",
        count_query="MATCH (p:ExamplePerson) RETURN count(p)",
    )
    def page(self, request: PageRequest) -> Page[Person]: ...

    @query("MATCH (p:ExamplePerson) DETACH DELETE p")
    def clear(self) -> None: ...


def main() -> None:
    logging.basicConfig(level=logging.DEBUG)

    with Neo4jGraphSession(
        uri=os.getenv("MINI_OGM_NEO4J_URI", "bolt://localhost:7687"),
        user=os.getenv("MINI_OGM_NEO4J_USER", "neo4j"),
        password=os.getenv("MINI_OGM_NEO4J_PASSWORD", "password"),
        metadata=MetaData(Person),
    ) as session:
        repo = PersonRepository(session)
        repo.clear()

        alice = repo.create("alice", 1980)
        repo.create("bob", 1990)
        repo.create("carol", 2000)

        # Entity arguments are sent as their node identity.
        print("Reloaded:", repo.reload(alice))

        print("Born since 1985:", repo.born_since(1985, Sort.by("p.name", desc=True)))
        print("Names only:", repo.born_since(1985, projection=PersonName))

        first = repo.page(PageRequest(0, 2, Sort.by("p.name")))
        print("Page 1:", list(first), "total:", first.total, "next:", first.has_next)
        print("Page 2:", list(repo.page(PageRequest(1, 2, Sort.by("p.name")))))

        repo.clear()


if __name__ == "__main__":
    main()

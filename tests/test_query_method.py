from __future__ import annotations

import unittest
from collections.abc import Iterable, Sequence
from typing import Annotated, Any, Optional

from mini_ogm import (
    AmbiguousParameterError,
    GraphQueryMethod,
    Page,
    PageRequest,
    Param,
    QueryMethodDefinitionError,
    QueryResult,
    ReturnShape,
    Sort,
    Special,
    classify_return_type,
    query,
)
from tests.graph_test_helpers import Person


class ClassifyReturnTypeTests(unittest.TestCase):
    def test_shapes(self) -> None:
        samples = [
            (QueryResult, ReturnShape.RAW, QueryResult, None),
            (Person, ReturnShape.SINGLE, Person, None),
            (Optional[Person], ReturnShape.SINGLE, Person, None),
            (int, ReturnShape.SINGLE, int, None),
            (list[Person], ReturnShape.COLLECTION, Person, list),
            (Sequence[Person], ReturnShape.COLLECTION, Person, list),
            (Iterable[str], ReturnShape.COLLECTION, str, list),
            (set[str], ReturnShape.COLLECTION, str, set),
            (tuple[Person, ...], ReturnShape.COLLECTION, Person, tuple),
            (Page[Person], ReturnShape.PAGED, Person, None),
        ]

        for hint, shape, returned, container in samples:
            with self.subTest(hint=hint):
                info = classify_return_type(hint)
                self.assertIs(info.shape, shape)
                self.assertEqual(info.returned_type, returned)
                self.assertEqual(info.container, container)

    def test_none_return_is_raw_without_value(self) -> None:
        info = classify_return_type(type(None))

        self.assertIs(info.shape, ReturnShape.RAW)
        self.assertIs(info.returned_type, type(None))


class FromFunctionTests(unittest.TestCase):
    def test_parameters_are_described_once(self) -> None:
        @query("MATCH (p:Person) WHERE p.name = $name RETURN p SKIP $1")
        def find(
            self: Any,
            name: str,
            page: PageRequest,
            sort: Optional[Sort] = None,
            projection: Optional[type[Any]] = None,
        ) -> Page[Person]: ...

        method = GraphQueryMethod.from_function(find)

        self.assertEqual(method.query, "MATCH (p:Person) WHERE p.name = $name RETURN p SKIP $1")
        self.assertEqual([p.name for p in method.parameters], ["name", "page", "sort", "projection"])
        self.assertEqual([p.special for p in method.parameters], [False, True, True, True])
        self.assertEqual(method.page_index, 1)
        self.assertEqual(method.sort_index, 2)
        self.assertEqual(method.projection_index, 3)
        self.assertIs(method.return_info.shape, ReturnShape.PAGED)

    def test_param_alias_and_special_marker(self) -> None:
        @query("MATCH (p:Person) WHERE p.name = $who RETURN p LIMIT $1")
        def find(
            self: Any,
            name: Annotated[str, Param("who")],
            limit: Annotated[int, Special()],
        ) -> list[Person]: ...

        method = GraphQueryMethod.from_function(find)

        self.assertEqual(method.parameters[0].name, "who")
        self.assertTrue(method.parameters[0].is_named_parameter)
        self.assertTrue(method.parameters[1].special)
        self.assertEqual(list(method.parameters.named), ["who"])

    def test_aliases_colliding_with_parameter_names_are_rejected(self) -> None:
        @query("MATCH (p) WHERE p.name = $name RETURN p")
        def find(self: Any, name: str, other: Annotated[str, Param("name")]) -> list[Person]: ...

        with self.assertRaises(AmbiguousParameterError):
            GraphQueryMethod.from_function(find)

    def test_invalid_definitions(self) -> None:
        @query("MATCH (p) RETURN p")
        def variadic(self: Any, *names: str) -> list[Person]: ...

        @query("MATCH (p) RETURN p")
        def unpaged(self: Any, name: str) -> Page[Person]: ...

        @query("MATCH (p) RETURN p")
        def two_sorts(self: Any, a: Sort, b: Sort) -> list[Person]: ...

        def undecorated(self: Any) -> list[Person]: ...

        for func in (variadic, unpaged, two_sorts, undecorated):
            with self.subTest(func=func.__name__):
                with self.assertRaises(QueryMethodDefinitionError):
                    GraphQueryMethod.from_function(func)

    def test_empty_query_text_is_rejected(self) -> None:
        with self.assertRaises(QueryMethodDefinitionError):
            query(" ")

    def test_argument_values_follow_declaration_order(self) -> None:
        @query("MATCH (p) WHERE p.name = $name AND p.born = $born RETURN p")
        def find(self: Any, name: str, born: int = 1970, *, active: bool = True) -> list[Person]: ...

        method = GraphQueryMethod.from_function(find)

        self.assertEqual(method.argument_values(("alice",)), ("alice", 1970, True))
        self.assertEqual(
            method.argument_values((), {"born": 1980, "name": "bob", "active": False}),
            ("bob", 1980, False),
        )
        with self.assertRaises(TypeError):
            method.argument_values((), {})


if __name__ == "__main__":
    unittest.main()

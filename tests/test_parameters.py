from __future__ import annotations

import unittest

from mini_ogm import (
    AmbiguousParameterError,
    MetaData,
    MethodParameter,
    MethodParameters,
    ParameterBinder,
)
from tests.graph_test_helpers import Movie, Person


class MethodParametersTests(unittest.TestCase):
    def test_named_excludes_special_and_unnamed(self) -> None:
        params = MethodParameters(
            [
                MethodParameter(0, "name"),
                MethodParameter(1, "page", special=True),
                MethodParameter(2),
            ]
        )

        self.assertEqual(list(params.named), ["name"])
        self.assertEqual(len(params), 3)
        self.assertTrue(params[0].is_named_parameter)
        self.assertFalse(params[1].is_named_parameter)
        self.assertFalse(params[2].is_named_parameter)

    def test_indexes_must_follow_declaration_order(self) -> None:
        with self.assertRaises(ValueError):
            MethodParameters([MethodParameter(1, "name")])

    def test_duplicate_names_are_rejected(self) -> None:
        with self.assertRaises(AmbiguousParameterError):
            MethodParameters([MethodParameter(0, "name"), MethodParameter(1, "name")])

    def test_duplicate_name_on_special_parameter_is_allowed(self) -> None:
        params = MethodParameters(
            [MethodParameter(0, "name"), MethodParameter(1, "name", special=True)]
        )

        self.assertEqual(params.named["name"].index, 0)
        self.assertEqual(params.find("name").index, 0)

    def test_find_includes_special_parameters(self) -> None:
        params = MethodParameters(
            [MethodParameter(0, "name"), MethodParameter(1, "page", special=True)]
        )

        self.assertEqual(params.find("page").index, 1)
        self.assertIsNone(params.find("missing"))

    def test_digit_names_are_rejected(self) -> None:
        with self.assertRaises(AmbiguousParameterError):
            MethodParameters([MethodParameter(0, "title"), MethodParameter(1, "0")])


class ParameterBinderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.binder = ParameterBinder(MetaData(Person, Movie).resolve_graph_id)

    def test_binds_every_parameter_by_index(self) -> None:
        params = MethodParameters(
            [MethodParameter(0), MethodParameter(1, "b"), MethodParameter(2, "c", special=True)]
        )

        bound = self.binder.bind(params, ["x", "y", "z"])

        for index, value in enumerate(["x", "y", "z"]):
            with self.subTest(index=index):
                self.assertEqual(bound[str(index)], value)

    def test_named_parameter_shares_value_with_index_key(self) -> None:
        params = MethodParameters([MethodParameter(0, "title")])

        bound = self.binder.bind(params, ["Heat"])

        self.assertEqual(bound, {"0": "Heat", "title": "Heat"})

    def test_special_parameter_is_bound_by_index_only(self) -> None:
        params = MethodParameters(
            [MethodParameter(0, "name"), MethodParameter(1, "limit", special=True)]
        )

        bound = self.binder.bind(params, ["alice", 5])

        self.assertEqual(bound, {"0": "alice", "name": "alice", "1": 5})
        self.assertNotIn("limit", bound)

    def test_persisted_entity_is_bound_as_its_identity(self) -> None:
        params = MethodParameters([MethodParameter(0, "person"), MethodParameter(1, "movie")])
        person = Person(id=42, name="alice")
        movie = Movie(uid="m-1", title="Heat")

        bound = self.binder.bind(params, [person, movie])

        self.assertEqual(bound["0"], 42)
        self.assertEqual(bound["person"], 42)
        self.assertEqual(bound["1"], "m-1")
        self.assertEqual(bound["movie"], "m-1")

    def test_unpersisted_entity_and_plain_values_are_bound_unchanged(self) -> None:
        params = MethodParameters([MethodParameter(0, "person"), MethodParameter(1, "tags")])
        person = Person(name="bob")
        tags = ["a", "b"]

        bound = self.binder.bind(params, [person, tags])

        self.assertIs(bound["person"], person)
        self.assertIs(bound["1"], tags)
        self.assertEqual(tags, ["a", "b"])
        self.assertIsNone(person.id)

    def test_missing_values_raise_type_error(self) -> None:
        params = MethodParameters([MethodParameter(0, "a"), MethodParameter(1, "b")])

        with self.assertRaises(TypeError):
            self.binder.bind(params, ["only-one"])

    def test_no_parameters_bind_to_empty_map(self) -> None:
        self.assertEqual(self.binder.bind(MethodParameters(), []), {})


if __name__ == "__main__":
    unittest.main()

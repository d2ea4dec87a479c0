from __future__ import annotations

import unittest

from mini_ogm import (
    GraphQuery,
    MethodParameter,
    MethodParameters,
    PageRequest,
    Sort,
    UnresolvedParameterError,
    assemble_query,
    compile_template,
)
from tests.graph_test_helpers import Person


class AssembleQueryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.params = MethodParameters([MethodParameter(0, "name"), MethodParameter(1, "person")])

    def test_unresolved_placeholder_names_the_method(self) -> None:
        template = compile_template("MATCH (p) WHERE p.name = {nickname} RETURN p")

        with self.assertRaises(UnresolvedParameterError) as ctx:
            assemble_query(
                template,
                {"0": "alice", "name": "alice"},
                method_parameters=self.params,
                values=("alice", None),
                method_name="PersonRepository.find",
            )

        self.assertEqual(ctx.exception.placeholder, "nickname")
        self.assertIn("PersonRepository.find", str(ctx.exception))

    def test_count_query_passes_through_unchanged(self) -> None:
        template = compile_template(
            "MATCH (p) WHERE p.name = {0} RETURN p",
            "MATCH (p) WHERE p.name = $0 RETURN count(p)",
        )

        query = assemble_query(
            template,
            {"0": "alice", "name": "alice"},
            method_parameters=self.params,
            values=("alice", None),
        )

        self.assertEqual(query.cypher, "MATCH (p) WHERE p.name = $0 RETURN p")
        self.assertEqual(query.count_cypher, "MATCH (p) WHERE p.name = $0 RETURN count(p)")
        self.assertEqual(dict(query.parameters), {"0": "alice", "name": "alice"})

    def test_unresolved_count_query_parameter_is_rejected(self) -> None:
        template = compile_template(
            "MATCH (p) WHERE p.name = $name RETURN p",
            "MATCH (p) WHERE p.name = $nickname RETURN count(p)",
        )

        with self.assertRaises(UnresolvedParameterError) as ctx:
            assemble_query(
                template,
                {"0": "alice", "name": "alice"},
                method_parameters=self.params,
                values=("alice", None),
                method_name="PersonRepository.page",
            )

        self.assertEqual(ctx.exception.placeholder, "nickname")

    def test_count_query_does_not_see_paging_parameters(self) -> None:
        template = compile_template(
            "MATCH (p) RETURN p",
            "MATCH (p) RETURN count(p) SKIP $__skip",
        )

        with self.assertRaises(UnresolvedParameterError) as ctx:
            assemble_query(
                template,
                {"0": "alice", "name": "alice"},
                method_parameters=self.params,
                values=("alice", None),
            )

        self.assertEqual(ctx.exception.placeholder, "__skip")

    def test_expressions_are_evaluated_against_raw_arguments(self) -> None:
        template = compile_template(
            "MATCH (p) WHERE p.name = :#{#person.name} AND id(p) = :#{#person} "
            "AND p.tenant = :#{#tenant} RETURN p"
        )
        person = Person(id=7, name="alice")
        resolved: list[object] = []

        def resolve(value: object) -> object:
            resolved.append(value)
            return 7 if value is person else value

        query = assemble_query(
            template,
            {"0": "x", "name": "x", "1": 7, "person": 7},
            method_parameters=self.params,
            values=("x", person),
            context={"tenant": "acme"},
            resolve_value=resolve,
        )

        self.assertEqual(query.parameters["__expr_0"], "alice")
        self.assertEqual(query.parameters["__expr_1"], 7)
        self.assertEqual(query.parameters["__expr_2"], "acme")
        self.assertEqual(resolved, ["alice", person, "acme"])

    def test_input_map_is_not_modified(self) -> None:
        template = compile_template("MATCH (p) WHERE p.name = :#{#name} RETURN p")
        bound = {"0": "alice", "name": "alice"}

        query = assemble_query(
            template,
            bound,
            method_parameters=self.params,
            values=("alice", None),
        )

        self.assertEqual(bound, {"0": "alice", "name": "alice"})
        self.assertIn("__expr_0", query.parameters)
        with self.assertRaises(TypeError):
            query.parameters["x"] = 1  # type: ignore[index]


class GraphQueryPagingTests(unittest.TestCase):
    def test_with_sort_appends_order_by(self) -> None:
        query = GraphQuery("MATCH (p:Person) RETURN p;", None, {"0": 1})

        sorted_query = query.with_sort(Sort.by("p.name").and_(Sort.by("p.born", desc=True)))

        self.assertEqual(
            sorted_query.cypher,
            "MATCH (p:Person) RETURN p ORDER BY p.name ASC, p.born DESC",
        )
        self.assertIs(query.with_sort(Sort()), query)
        self.assertIs(query.with_sort(None), query)

    def test_with_paging_binds_skip_and_limit(self) -> None:
        query = GraphQuery("MATCH (p:Person) RETURN p", "MATCH (p:Person) RETURN count(p)", {"0": 1})

        paged = query.with_paging(PageRequest(2, 10, Sort.by("p.name")), extra_rows=1)

        self.assertEqual(
            paged.cypher,
            "MATCH (p:Person) RETURN p ORDER BY p.name ASC SKIP $__skip LIMIT $__limit",
        )
        self.assertEqual(paged.parameters["__skip"], 20)
        self.assertEqual(paged.parameters["__limit"], 11)
        self.assertEqual(paged.count_cypher, "MATCH (p:Person) RETURN count(p)")
        self.assertNotIn("__skip", query.parameters)

    def test_invalid_sort_properties_are_rejected(self) -> None:
        for name in ("p.name DESC", "p.name; MATCH (n) DETACH DELETE n", "", "1abc"):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    Sort.by(name)


if __name__ == "__main__":
    unittest.main()

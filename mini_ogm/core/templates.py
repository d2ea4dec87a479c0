"""Query template compilation, placeholder expressions, and the per-method cache.

A template is compiled once per query method. Compilation rewrites legacy
`{name}` placeholders to Cypher `$name` parameters and lifts every expression
placeholder `:#{...}` into a generated parameter, so that execution only has
to bind values and never re-parses the query text.

Expression placeholders use a small path language:

- `#name`: argument of the parameter declared as `name` (special parameters
  included), or an evaluation context variable of that name;
- `[0]`: argument at position 0;
- followed by `.attr`, `?.attr` (yields `None` on a `None` receiver),
  `[n]`, or `['key']` accessors.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, List, Optional, Tuple

from .errors import UnresolvedParameterError
from .parameters import MethodParameters
from .types import ArgumentValues, EvaluationContext

EXPRESSION_PARAMETER_PREFIX = "__expr_"

_TOKEN_RE = re.compile(
    r"""
    (?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|`[^`]*`)
  | (?P<expression>:\#\{(?P<body>[^}]*)\})
  | (?P<legacy>\{\s*(?P<legacy_name>[A-Za-z_][A-Za-z0-9_]*|[0-9]+)\s*\})
  | (?P<parameter>\$(?P<name>[A-Za-z_][A-Za-z0-9_]*|[0-9]+))
    """,
    re.VERBOSE,
)

_ROOT_RE = re.compile(r"\s*(?:\#(?P<name>[A-Za-z_]\w*)|\[\s*(?P<index>[0-9]+)\s*\])")
_STEP_RE = re.compile(
    r"""
    \s*(?:
        (?P<safe>\?)?\.(?P<attr>[A-Za-z_]\w*)
      | \[\s*(?:(?P<index>-?[0-9]+)|'(?P<skey>[^']*)'|"(?P<dkey>[^"]*)")\s*\]
    )
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class ExpressionStep:
    """One accessor applied to the value produced by the previous step."""

    key: Any
    attribute: bool
    safe: bool = False


@dataclass(frozen=True)
class PlaceholderExpression:
    """Parsed `:#{...}` placeholder bound under `parameter`."""

    source: str
    parameter: str
    root_name: Optional[str]
    root_index: Optional[int]
    steps: Tuple[ExpressionStep, ...]

    def evaluate(
        self,
        parameters: MethodParameters,
        values: ArgumentValues,
        context: EvaluationContext,
        *,
        method_name: Optional[str] = None,
    ) -> Any:
        current = self._root_value(parameters, values, context, method_name)
        for step in self.steps:
            if current is None and step.safe:
                return None
            current = _apply_step(current, step, self.source, method_name)
        return current

    def _root_value(
        self,
        parameters: MethodParameters,
        values: ArgumentValues,
        context: EvaluationContext,
        method_name: Optional[str],
    ) -> Any:
        if self.root_index is not None:
            if self.root_index < len(values):
                return values[self.root_index]
            raise UnresolvedParameterError(self.source, method_name)

        parameter = parameters.find(self.root_name)  # type: ignore[arg-type]
        if parameter is not None and parameter.index < len(values):
            return values[parameter.index]
        if self.root_name in context:
            return context[self.root_name]
        raise UnresolvedParameterError(self.source, method_name)


@dataclass(frozen=True)
class ParameterizedQuery:
    """Compiled, immutable form of an annotated query and its count query."""

    query: str
    count_query: Optional[str]
    placeholders: FrozenSet[str]
    expressions: Tuple[PlaceholderExpression, ...] = ()
    count_placeholders: FrozenSet[str] = frozenset()


def parse_expression(source: str, parameter: str) -> PlaceholderExpression:
    """Parse the body of one `:#{...}` placeholder."""

    text = source.strip()
    root = _ROOT_RE.match(text)
    if root is None:
        raise ValueError(f"Invalid query expression {source!r}.")

    steps: List[ExpressionStep] = []
    position = root.end()
    while position < len(text):
        match = _STEP_RE.match(text, position)
        if match is None or match.end() == position:
            if text[position:].strip():
                raise ValueError(f"Invalid query expression {source!r}.")
            break
        if match.group("attr") is not None:
            steps.append(
                ExpressionStep(match.group("attr"), True, safe=bool(match.group("safe")))
            )
        elif match.group("index") is not None:
            steps.append(ExpressionStep(int(match.group("index")), False))
        else:
            key = match.group("skey")
            if key is None:
                key = match.group("dkey")
            steps.append(ExpressionStep(key, False))
        position = match.end()

    root_index = root.group("index")
    return PlaceholderExpression(
        source=text,
        parameter=parameter,
        root_name=root.group("name"),
        root_index=int(root_index) if root_index is not None else None,
        steps=tuple(steps),
    )


def compile_template(query: str, count_query: Optional[str] = None) -> ParameterizedQuery:
    """Compile an annotated query into a reusable `ParameterizedQuery`.

    The count query is carried through as written. Its `$name` parameters are
    recorded so they can be checked before execution; legacy `{name}`
    placeholders and `:#{...}` expressions are rejected there.
    """

    if not isinstance(query, str) or not query.strip():
        raise ValueError("Query text must be a non-empty string.")

    placeholders: set[str] = set()
    expressions: List[PlaceholderExpression] = []

    def replace(match: re.Match[str]) -> str:
        if match.group("string") is not None:
            return match.group(0)
        if match.group("expression") is not None:
            parameter = f"{EXPRESSION_PARAMETER_PREFIX}{len(expressions)}"
            expressions.append(parse_expression(match.group("body"), parameter))
            return f"${parameter}"
        name = match.group("legacy_name") or match.group("name")
        placeholders.add(name)
        return f"${name}"

    compiled = _TOKEN_RE.sub(replace, query)
    return ParameterizedQuery(
        query=compiled,
        count_query=count_query,
        placeholders=frozenset(placeholders),
        expressions=tuple(expressions),
        count_placeholders=_count_placeholders(count_query),
    )


def _count_placeholders(count_query: Optional[str]) -> FrozenSet[str]:
    if count_query is None:
        return frozenset()
    names: set[str] = set()
    for match in _TOKEN_RE.finditer(count_query):
        if match.group("string") is not None:
            continue
        if match.group("parameter") is None:
            raise ValueError(
                f"Count query placeholder {match.group(0)!r} is not supported; "
                "use $name parameters in count queries."
            )
        names.add(match.group("name"))
    return frozenset(names)


class TemplateCache:
    """Write-once slot holding the compiled template of one query method.

    Concurrent first calls may each compile; compilation is deterministic, so
    whichever result is stored last is equal to the others.
    """

    def __init__(self, compile_fn: Callable[[], ParameterizedQuery]):
        self._compile = compile_fn
        self._template: Optional[ParameterizedQuery] = None

    @property
    def compiled(self) -> bool:
        return self._template is not None

    def get(self) -> ParameterizedQuery:
        template = self._template
        if template is None:
            template = self._compile()
            self._template = template
        return template


def _apply_step(
    current: Any,
    step: ExpressionStep,
    source: str,
    method_name: Optional[str],
) -> Any:
    if step.attribute:
        if isinstance(current, Mapping):
            if step.key in current:
                return current[step.key]
            raise UnresolvedParameterError(source, method_name)
        try:
            return getattr(current, step.key)
        except AttributeError as exc:
            raise UnresolvedParameterError(source, method_name) from exc
    try:
        return current[step.key]
    except (KeyError, IndexError, TypeError) as exc:
        raise UnresolvedParameterError(source, method_name) from exc

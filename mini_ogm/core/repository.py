"""Declarative repository base class for annotated graph query methods."""

from __future__ import annotations

import functools
from typing import Any, Callable, ClassVar, Dict, Optional

from .contracts import EvaluationContextProvider, GraphSessionPort
from .query_method import GraphQueryMethod, query_annotation
from .repository_query import GraphRepositoryQuery


class _QueryMethodDescriptor:
    """Class attribute that routes calls of a `@query` method into its query."""

    def __init__(self, name: str, func: Callable[..., Any]):
        self.name = name
        self.func = func
        functools.update_wrapper(self, func)

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None:
            return self
        repository_query = instance.query_for(self.name)
        method = repository_query.query_method

        @functools.wraps(self.func)
        def call(*args: Any, **kwargs: Any) -> Any:
            return repository_query.execute(method.argument_values(args, kwargs))

        return call


class GraphRepository:
    """Base class for repositories declaring `@query` methods.

    Query methods are registered once per subclass, when the class is
    created. Each repository instance owns one `GraphRepositoryQuery` per
    method, which caches that method's compiled template.

    Example:
        class PersonRepository(GraphRepository):
            @query("MATCH (p:Person) WHERE p.name = $name RETURN p")
            def find_by_name(self, name: str) -> list[Person]: ...
    """

    __query_methods__: ClassVar[Dict[str, GraphQueryMethod]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        methods: Dict[str, GraphQueryMethod] = dict(cls.__query_methods__)
        for attr_name, value in list(vars(cls).items()):
            annotation = query_annotation(value)
            if annotation is None:
                continue
            methods[attr_name] = GraphQueryMethod.from_function(value, annotation=annotation)
            setattr(cls, attr_name, _QueryMethodDescriptor(attr_name, value))
        cls.__query_methods__ = methods

    def __init__(
        self,
        session: GraphSessionPort,
        *,
        evaluation_context_provider: Optional[EvaluationContextProvider] = None,
    ):
        """Create repository bound to a graph session.

        Args:
            session: Graph store adapter implementing `GraphSessionPort`.
            evaluation_context_provider: Optional source of extra variables
                for `:#{...}` query expressions.
        """

        self.session = session
        self._queries: Dict[str, GraphRepositoryQuery] = {
            name: GraphRepositoryQuery(
                method,
                session,
                evaluation_context_provider=evaluation_context_provider,
            )
            for name, method in self.__query_methods__.items()
        }

    @classmethod
    def query_methods(cls) -> Dict[str, GraphQueryMethod]:
        return dict(cls.__query_methods__)

    def query_for(self, name: str) -> GraphRepositoryQuery:
        """Return the repository query backing the method `name`."""

        try:
            return self._queries[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__} has no query method {name!r}."
            ) from None

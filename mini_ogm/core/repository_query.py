"""Repository queries: bind arguments, resolve the template, execute, adapt."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from .contracts import EvaluationContextProvider, GraphSessionPort
from .executions import GraphQueryExecution, select_execution
from .parameters import MethodParameters, ParameterBinder
from .query import GraphQuery, assemble_query
from .query_method import GraphQueryMethod, ReturnShape
from .results import GraphResultConverter, ResultProcessor
from .templates import ParameterizedQuery, TemplateCache, compile_template
from .types import ArgumentValues, ParameterMap

logger = logging.getLogger(__name__)


class AbstractGraphRepositoryQuery(ABC):
    """Shared dispatch and result adaptation flow for graph query kinds."""

    def __init__(self, query_method: GraphQueryMethod, session: GraphSessionPort):
        self.query_method = query_method
        self.session = session
        self.converter = GraphResultConverter(session.metadata)

    def execute(self, values: ArgumentValues) -> Any:
        """Run the query for one call's ordered argument values."""

        values = tuple(values)
        query = self.get_query(values)
        return self.do_execute(query, values)

    def do_execute(self, query: GraphQuery, values: ArgumentValues) -> Any:
        processor = ResultProcessor(self.query_method).with_dynamic_projection(values)
        raw = self.get_execution().execute(query, values)
        shape = ReturnShape.COUNT if self._is_count_like() else None
        return processor.process(raw, self.converter, shape=shape)

    def get_execution(self) -> GraphQueryExecution:
        return select_execution(
            self.session,
            self.query_method,
            count=self.is_count_query(),
            exists=self.is_exists_query(),
            delete=self.is_delete_query(),
        )

    def _is_count_like(self) -> bool:
        return self.is_count_query() or self.is_exists_query() or self.is_delete_query()

    @abstractmethod
    def get_query(self, values: ArgumentValues) -> GraphQuery: ...

    @abstractmethod
    def is_count_query(self) -> bool: ...

    @abstractmethod
    def is_exists_query(self) -> bool: ...

    @abstractmethod
    def is_delete_query(self) -> bool: ...


class GraphRepositoryQuery(AbstractGraphRepositoryQuery):
    """Query method backed by an annotated `@query` template.

    The template is compiled on first use and reused for every later call of
    the same query method.
    """

    def __init__(
        self,
        query_method: GraphQueryMethod,
        session: GraphSessionPort,
        *,
        evaluation_context_provider: Optional[EvaluationContextProvider] = None,
    ):
        super().__init__(query_method, session)
        self.evaluation_context_provider = evaluation_context_provider
        self._binder = ParameterBinder(session.resolve_graph_id)
        self._template_cache = TemplateCache(self._compile_template)

    @property
    def template(self) -> ParameterizedQuery:
        return self._template_cache.get()

    def do_execute(self, query: GraphQuery, values: ArgumentValues) -> Any:
        logger.debug("Executing query for method %s", self.query_method.name)
        return super().do_execute(query, values)

    def get_query(self, values: ArgumentValues) -> GraphQuery:
        parameters = self.query_method.parameters
        context = {}
        if self.evaluation_context_provider is not None:
            context = dict(self.evaluation_context_provider(parameters, values))
        return assemble_query(
            self._template_cache.get(),
            self.resolve_params(parameters, values),
            method_parameters=parameters,
            values=values,
            context=context,
            method_name=self.query_method.name,
            resolve_value=self._binder.resolve_value,
        )

    def resolve_params(self, parameters: MethodParameters, values: ArgumentValues) -> ParameterMap:
        return self._binder.bind(parameters, values)

    def is_count_query(self) -> bool:
        return False

    def is_exists_query(self) -> bool:
        return False

    def is_delete_query(self) -> bool:
        return False

    def _compile_template(self) -> ParameterizedQuery:
        return compile_template(self.query_method.query, self.query_method.count_query)

"""Public core API for annotated graph query methods."""

from .contracts import EvaluationContextProvider, GraphSessionPort, ResultConverterPort
from .errors import (
    AmbiguousParameterError,
    GraphQueryError,
    IncorrectResultSizeError,
    QueryMethodDefinitionError,
    ResultConversionError,
    UnresolvedParameterError,
)
from .metadata import EntityMetadata, MetaData, build_entity_metadata
from .models import build_instance, id_field, node_label
from .paging import Order, Page, PageRequest, Sort
from .parameters import MethodParameter, MethodParameters, Param, ParameterBinder, Special
from .query import GraphQuery, assemble_query
from .query_method import GraphQueryMethod, ReturnShape, ReturnTypeInfo, classify_return_type, query
from .repository import GraphRepository
from .repository_query import AbstractGraphRepositoryQuery, GraphRepositoryQuery
from .result_types import GraphNode, GraphRelationship, PagedQueryResult, QueryResult
from .results import GraphResultConverter, ResultProcessor
from .templates import ParameterizedQuery, TemplateCache, compile_template
from .types import ParameterMap

__all__ = [
    "AbstractGraphRepositoryQuery",
    "AmbiguousParameterError",
    "EntityMetadata",
    "EvaluationContextProvider",
    "GraphNode",
    "GraphQuery",
    "GraphQueryError",
    "GraphQueryMethod",
    "GraphRelationship",
    "GraphRepository",
    "GraphRepositoryQuery",
    "GraphResultConverter",
    "GraphSessionPort",
    "IncorrectResultSizeError",
    "MetaData",
    "MethodParameter",
    "MethodParameters",
    "Order",
    "Page",
    "PageRequest",
    "PagedQueryResult",
    "Param",
    "ParameterBinder",
    "ParameterMap",
    "ParameterizedQuery",
    "QueryMethodDefinitionError",
    "QueryResult",
    "ResultConversionError",
    "ResultConverterPort",
    "ResultProcessor",
    "ReturnShape",
    "ReturnTypeInfo",
    "Sort",
    "Special",
    "TemplateCache",
    "UnresolvedParameterError",
    "assemble_query",
    "build_entity_metadata",
    "build_instance",
    "classify_return_type",
    "compile_template",
    "id_field",
    "node_label",
    "query",
]

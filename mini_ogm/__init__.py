"""mini_ogm: annotated Cypher query methods for dataclass graph entities."""

from .core import *  # noqa: F401,F403
from .core import __all__ as _core_all
from .ports import Neo4jGraphSession

__all__ = [*_core_all, "Neo4jGraphSession"]

from .config import SuiteConfig
from .exceptions import (
    ExpectationError,
    QueryBuildError,
    RelationAssertionError,
    ScopeNotFoundError,
    TestsuiteError,
    UnknownQueryMethodError,
    UnknownRelationError,
)
from .model_base import BaseSurrealModel, SurrealConfigDict
from .query_set import ModelQuerySet, QueryBuilder
from .testing import ModelTestSuite, MocksMixins
from .types import OrderBy, RelationType

__all__ = [
    "BaseSurrealModel",
    "SurrealConfigDict",
    "ModelQuerySet",
    "QueryBuilder",
    "ModelTestSuite",
    "MocksMixins",
    "SuiteConfig",
    "OrderBy",
    "RelationType",
    "TestsuiteError",
    "ExpectationError",
    "UnknownRelationError",
    "RelationAssertionError",
    "ScopeNotFoundError",
    "UnknownQueryMethodError",
    "QueryBuildError",
]

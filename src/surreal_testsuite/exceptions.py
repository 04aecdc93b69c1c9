"""
Testsuite exceptions.

Assertion-type failures also derive from ``AssertionError`` so that test
runners report them as failures rather than errors.
"""


class TestsuiteError(Exception):
    """Base exception for all testsuite errors."""

    __test__ = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ExpectationError(TestsuiteError, AssertionError):
    """Raised when a registered expectation is not met."""

    def __init__(self, message: str, method: str | None = None):
        self.method = method
        super().__init__(message)


class UnknownRelationError(TestsuiteError, AssertionError):
    """Raised when a relation name or class is not a known relation type."""

    def __init__(self, relation: object):
        self.relation = relation
        name = relation.__name__ if isinstance(relation, type) else relation
        super().__init__(f"Unknown relation provided: {name}")


class RelationAssertionError(TestsuiteError, AssertionError):
    """Raised when a model method does not return the expected relation type."""

    pass


class ScopeNotFoundError(TestsuiteError):
    """Raised when a model does not define the requested query scope."""

    def __init__(self, message: str, scope: str | None = None):
        self.scope = scope
        super().__init__(message)


class UnknownQueryMethodError(TestsuiteError):
    """Raised when an expectation names a method the query mock cannot receive."""

    pass


class QueryBuildError(TestsuiteError, ValueError):
    """Raised when a query builder receives an invalid identifier, operator or value."""

    pass

"""
Testing helpers for model relations and query scopes.

Example::

    from surreal_testsuite.testing import ModelTestSuite

    def test_author_relation():
        with ModelTestSuite() as suite:
            post = suite.create_relation_mock(Post, "belongs_to", User)
            suite.assert_relation("belongs_to", post.author())

    def test_published_scope():
        ModelTestSuite.assert_scope_filters(Post, "published", "status", "published")
"""

from .expectations import Expectation, QueryCallback
from .mixins import MocksMixins
from .suite import ModelTestSuite

__all__ = [
    "Expectation",
    "MocksMixins",
    "ModelTestSuite",
    "QueryCallback",
]

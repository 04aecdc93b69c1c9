"""
Type definitions for the testsuite ORM surface.

This module contains the enums used by the query builders and the
relation registry.
"""

from enum import StrEnum


class OrderBy(StrEnum):
    """Sort direction for ORDER BY clauses."""

    ASC = "ASC"
    DESC = "DESC"


class RelationType(StrEnum):
    """
    Relation-declaring method names available on every model.

    Each value is the name of the ``BaseSurrealModel`` method that builds
    the relation. ``MORPHED_BY_MANY`` is the inverse side of
    ``MORPH_TO_MANY`` and shares its relation class.
    """

    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    MORPH_TO = "morph_to"
    MORPH_ONE = "morph_one"
    BELONGS_TO = "belongs_to"
    MORPH_MANY = "morph_many"
    MORPH_TO_MANY = "morph_to_many"
    MORPHED_BY_MANY = "morphed_by_many"
    BELONGS_TO_MANY = "belongs_to_many"
    HAS_ONE_THROUGH = "has_one_through"
    HAS_MANY_THROUGH = "has_many_through"

"""
Relation classes returned by the relation-declaring model methods.

A relation wraps a ``ModelQuerySet`` for the related model, constrained to
its parent record. Anything a relation does not define is forwarded to that
query set, so query methods can be chained directly on the relation:

Example:
    class User(BaseSurrealModel):
        id: str | None = None

        def posts(self):
            return self.has_many(Post, "author").where("status", "published").latest()

    relation = User(id="alice").posts()
    isinstance(relation, HasMany)  # True
    relation.to_surql()
    # ("SELECT * FROM Post WHERE author = $_f0 AND status = $_f1 ORDER BY created_at DESC;",
    #  {"_f0": "User:alice", "_f1": "published"})
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any

from .exceptions import QueryBuildError
from .query_set import ModelQuerySet, bind_variable
from .utils import validate_identifier

if TYPE_CHECKING:
    from .model_base import BaseSurrealModel

logger = logging.getLogger(__name__)


class Relation:
    """
    Base class for all relations.

    Subclasses constrain the related query to the parent record in
    ``add_constraints()`` and describe the correlated sub-select used by
    ``ModelQuerySet.where_has()`` in ``get_existence_query()``.
    """

    def __init__(self, query: ModelQuerySet, parent: "BaseSurrealModel") -> None:
        self._query = query
        self._parent = parent
        self._related = query.get_model()
        self.add_constraints()

    def __repr__(self) -> str:
        return f"<{type(self).__name__}({type(self._parent).__name__} -> {self._related.__name__})>"

    def add_constraints(self) -> None:
        """Constrain the related query to the parent record."""

    def get_query(self) -> ModelQuerySet:
        return self._query

    def get_parent(self) -> "BaseSurrealModel":
        return self._parent

    def get_related(self) -> type["BaseSurrealModel"]:
        return self._related

    def to_surql(self) -> tuple[str, dict[str, Any]]:
        """Compile the constrained related query."""
        return self._query.to_surql()

    def get_existence_query(self, query: ModelQuerySet, variables: dict[str, Any], counter: list[int]) -> str:
        """
        Render the sub-select correlating ``query`` to an outer ``$parent`` record.

        Args:
            query: Query set on the related model carrying extra conditions
            variables: Mutable dict collecting parameterized variables
            counter: Mutable single-element variable counter
        """
        raise NotImplementedError(f"{type(self).__name__} does not support existence queries")

    @staticmethod
    def _existence_select(
        query: ModelQuerySet,
        correlation: str,
        variables: dict[str, Any],
        counter: list[int],
    ) -> str:
        builder = query.get_query()
        sql = f"SELECT id FROM {builder.table} WHERE {correlation}"
        conditions = builder.compile_wheres(variables, counter)
        if conditions:
            sql += f" AND ({conditions})"
        return sql

    def __getattr__(self, name: str) -> Any:
        """
        Forward unknown attributes to the related query set.

        Forwarded calls returning the query set return this relation instead.
        """
        if name.startswith("_"):
            raise AttributeError(name)

        target = getattr(self._query, name)
        if not callable(target):
            return target

        @functools.wraps(target)
        def forward(*args: Any, **kwargs: Any) -> Any:
            result = target(*args, **kwargs)
            return self if result is self._query else result

        return forward


class HasOneOrMany(Relation):
    """Relation where the related records hold a key pointing at the parent."""

    def __init__(
        self,
        query: ModelQuerySet,
        parent: "BaseSurrealModel",
        foreign_key: str,
        local_key: str,
    ) -> None:
        validate_identifier(foreign_key, "foreign key")
        validate_identifier(local_key, "local key")
        self._foreign_key = foreign_key
        self._local_key = local_key
        super().__init__(query, parent)

    def get_foreign_key_name(self) -> str:
        return self._foreign_key

    def get_local_key_name(self) -> str:
        return self._local_key

    def get_parent_key(self) -> Any:
        """Value stored in the related records' foreign key for this parent."""
        if self._local_key == "id":
            return self._parent.get_thing()
        return getattr(self._parent, self._local_key, None)

    def add_constraints(self) -> None:
        parent_key = self.get_parent_key()
        if parent_key is not None:
            self._query.get_query().where(self._foreign_key, parent_key)

    def get_existence_query(self, query: ModelQuerySet, variables: dict[str, Any], counter: list[int]) -> str:
        correlation = f"{self._foreign_key} = $parent.{self._local_key}"
        return self._existence_select(query, correlation, variables, counter)


class HasOne(HasOneOrMany):
    """One-to-one relation: the related record holds the parent's key."""


class HasMany(HasOneOrMany):
    """One-to-many relation: the related records hold the parent's key."""


class MorphOneOrMany(HasOneOrMany):
    """Polymorphic has-one/has-many: related records store the parent's key and table."""

    def __init__(
        self,
        query: ModelQuerySet,
        parent: "BaseSurrealModel",
        type_field: str,
        id_field: str,
        local_key: str,
    ) -> None:
        validate_identifier(type_field, "morph type field")
        self._morph_type = type_field
        super().__init__(query, parent, id_field, local_key)

    def get_morph_type(self) -> str:
        return self._morph_type

    def get_morph_class(self) -> str:
        return self._parent.get_table_name()

    def add_constraints(self) -> None:
        parent_key = self.get_parent_key()
        if parent_key is not None:
            builder = self._query.get_query()
            builder.where(self._foreign_key, parent_key)
            builder.where(self._morph_type, self.get_morph_class())

    def get_existence_query(self, query: ModelQuerySet, variables: dict[str, Any], counter: list[int]) -> str:
        morph_class = bind_variable(variables, counter, self.get_morph_class())
        correlation = f"{self._foreign_key} = $parent.{self._local_key} AND {self._morph_type} = {morph_class}"
        return self._existence_select(query, correlation, variables, counter)


class MorphOne(MorphOneOrMany):
    """Polymorphic one-to-one relation."""


class MorphMany(MorphOneOrMany):
    """Polymorphic one-to-many relation."""


class BelongsTo(Relation):
    """Inverse one-to-one/one-to-many relation: the child holds the related key."""

    def __init__(
        self,
        query: ModelQuerySet,
        child: "BaseSurrealModel",
        foreign_key: str,
        owner_key: str,
        relation_name: str | None = None,
    ) -> None:
        validate_identifier(foreign_key, "foreign key")
        validate_identifier(owner_key, "owner key")
        self._foreign_key = foreign_key
        self._owner_key = owner_key
        self._relation_name = relation_name
        super().__init__(query, child)

    def get_child(self) -> "BaseSurrealModel":
        return self._parent

    def get_foreign_key_name(self) -> str:
        return self._foreign_key

    def get_owner_key_name(self) -> str:
        return self._owner_key

    def get_relation_name(self) -> str | None:
        return self._relation_name

    def add_constraints(self) -> None:
        child_key = getattr(self._parent, self._foreign_key, None)
        if child_key is not None:
            self._query.get_query().where(self._owner_key, child_key)

    def get_existence_query(self, query: ModelQuerySet, variables: dict[str, Any], counter: list[int]) -> str:
        correlation = f"{self._owner_key} = $parent.{self._foreign_key}"
        return self._existence_select(query, correlation, variables, counter)


class MorphTo(BelongsTo):
    """Polymorphic inverse relation; the related table comes from the type field."""

    def __init__(
        self,
        query: ModelQuerySet,
        parent: "BaseSurrealModel",
        foreign_key: str,
        owner_key: str,
        type_field: str,
        relation_name: str,
    ) -> None:
        validate_identifier(type_field, "morph type field")
        self._morph_type = type_field
        super().__init__(query, parent, foreign_key, owner_key, relation_name)

    def get_morph_type(self) -> str:
        return self._morph_type

    def get_existence_query(self, query: ModelQuerySet, variables: dict[str, Any], counter: list[int]) -> str:
        raise QueryBuildError("where_has() is not supported on morph_to relations.")


class BelongsToMany(Relation):
    """Many-to-many relation through a SurrealDB graph edge table."""

    def __init__(
        self,
        query: ModelQuerySet,
        parent: "BaseSurrealModel",
        through: str,
        foreign_pivot_key: str,
        related_pivot_key: str,
    ) -> None:
        validate_identifier(through, "edge table")
        self._through = through
        self._foreign_pivot_key = foreign_pivot_key
        self._related_pivot_key = related_pivot_key
        super().__init__(query, parent)

    def get_table(self) -> str:
        return self._through

    def get_foreign_pivot_key_name(self) -> str:
        return self._foreign_pivot_key

    def get_related_pivot_key_name(self) -> str:
        return self._related_pivot_key

    @property
    def traversal_direction(self) -> str:
        """SurrealDB traversal direction operator."""
        return "->"

    def add_constraints(self) -> None:
        thing = self._parent.get_thing()
        if thing is not None:
            direction = self.traversal_direction
            path = f"{direction}{self._through}{direction}{self._related.get_table_name()}"
            self._query.get_query().traverse(thing, path)

    def get_existence_query(self, query: ModelQuerySet, variables: dict[str, Any], counter: list[int]) -> str:
        builder = query.get_query()
        related = f"SELECT VALUE id FROM {builder.table}"
        conditions = builder.compile_wheres(variables, counter)
        if conditions:
            related += f" WHERE {conditions}"
        return (
            f"SELECT id FROM {self._through} WHERE {self._foreign_pivot_key} = $parent.id "
            f"AND {self._related_pivot_key} IN ({related})"
        )


class MorphToMany(BelongsToMany):
    """Polymorphic many-to-many relation; ``inverse`` traverses the edge backwards."""

    def __init__(
        self,
        query: ModelQuerySet,
        parent: "BaseSurrealModel",
        name: str,
        through: str,
        inverse: bool = False,
    ) -> None:
        self._morph_name = name
        self._inverse = inverse
        if inverse:
            super().__init__(query, parent, through, "out", "in")
        else:
            super().__init__(query, parent, through, "in", "out")

    def get_morph_name(self) -> str:
        return self._morph_name

    def is_inverse(self) -> bool:
        return self._inverse

    @property
    def traversal_direction(self) -> str:
        return "<-" if self._inverse else "->"


class HasManyThrough(Relation):
    """One-to-many relation reached through an intermediate model."""

    def __init__(
        self,
        query: ModelQuerySet,
        far_parent: "BaseSurrealModel",
        through: type["BaseSurrealModel"],
        first_key: str,
        second_key: str,
    ) -> None:
        validate_identifier(first_key, "first key")
        validate_identifier(second_key, "second key")
        self._through = through
        self._first_key = first_key
        self._second_key = second_key
        super().__init__(query, far_parent)

    def get_through(self) -> type["BaseSurrealModel"]:
        return self._through

    def get_first_key_name(self) -> str:
        return self._first_key

    def get_second_key_name(self) -> str:
        return self._second_key

    def add_constraints(self) -> None:
        thing = self._parent.get_thing()
        if thing is None:
            return

        through_table = self._through.get_table_name()

        def render(variables: dict[str, Any], counter: list[int]) -> str:
            parent_ref = bind_variable(variables, counter, thing)
            return (
                f"{self._second_key} IN "
                f"(SELECT VALUE id FROM {through_table} WHERE {self._first_key} = {parent_ref})"
            )

        self._query.get_query()._where_rendered(render)

    def get_existence_query(self, query: ModelQuerySet, variables: dict[str, Any], counter: list[int]) -> str:
        builder = query.get_query()
        related = f"SELECT VALUE {self._second_key} FROM {builder.table}"
        conditions = builder.compile_wheres(variables, counter)
        if conditions:
            related += f" WHERE {conditions}"
        return (
            f"SELECT id FROM {self._through.get_table_name()} WHERE {self._first_key} = $parent.id "
            f"AND id IN ({related})"
        )


class HasOneThrough(HasManyThrough):
    """One-to-one relation reached through an intermediate model."""


__all__ = [
    "Relation",
    "HasOneOrMany",
    "HasOne",
    "HasMany",
    "MorphOneOrMany",
    "MorphOne",
    "MorphMany",
    "BelongsTo",
    "MorphTo",
    "BelongsToMany",
    "MorphToMany",
    "HasManyThrough",
    "HasOneThrough",
]

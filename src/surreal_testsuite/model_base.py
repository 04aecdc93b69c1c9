import inspect
import logging
from typing import TYPE_CHECKING, Any, TypeGuard

from pydantic import BaseModel, ConfigDict

from .exceptions import QueryBuildError
from .utils import format_thing, parse_record_id, snake_case

if TYPE_CHECKING:
    from .query_set import ModelQuerySet
    from .relations import (
        BelongsTo,
        BelongsToMany,
        HasMany,
        HasManyThrough,
        HasOne,
        HasOneThrough,
        MorphMany,
        MorphOne,
        MorphTo,
        MorphToMany,
    )

logger = logging.getLogger(__name__)

# Query scopes are model methods named ``scope_<name>(self, query, *args)``
SCOPE_PREFIX = "scope_"

# Global registry of all models, used to resolve related models given by name
_MODEL_REGISTRY: list[type["BaseSurrealModel"]] = []


def get_registered_models() -> list[type["BaseSurrealModel"]]:
    """
    Get all registered models.

    Returns:
        List of all model classes that inherit from BaseSurrealModel
    """
    return _MODEL_REGISTRY.copy()


def clear_model_registry() -> None:
    """
    Clear the model registry. Useful for testing.
    """
    _MODEL_REGISTRY.clear()


def _caller_name() -> str | None:
    """Name of the function that called the relation-declaring method."""
    frame = inspect.currentframe()
    try:
        caller = frame.f_back.f_back if frame is not None and frame.f_back is not None else None
        return caller.f_code.co_name if caller is not None else None
    finally:
        del frame


def _usable_name(name: str | None) -> TypeGuard[str]:
    return name is not None and name.isidentifier()


class SurrealConfigDict(ConfigDict):
    """
    SurrealConfigDict is a configuration dictionary for models.

    Attributes:
        primary_key: The primary key field name for the model
        table_name: Override the default table name (default: class name)
    """

    primary_key: str | None
    table_name: str | None


class BaseSurrealModel(BaseModel):
    """
    Base class for models.

    Models declare relations by returning one of the relation-declaring
    methods, and query scopes as ``scope_<name>`` methods:

    Example:
        class Post(BaseSurrealModel):
            id: str | None = None
            title: str
            author_id: str | None = None
            status: str = "draft"

            def author(self):
                return self.belongs_to(User, "author_id")

            def comments(self):
                return self.has_many(Comment).latest()

            def scope_published(self, query):
                return query.where("status", "published")
    """

    model_config = ConfigDict(
        populate_by_name=True,
    )

    def __init_subclass__(cls, **kwargs: Any) -> None:
        """Register subclasses in the model registry."""
        super().__init_subclass__(**kwargs)
        # Only register concrete models, not intermediate base classes
        if cls.__name__ != "BaseSurrealModel" and not cls.__name__.startswith("_"):
            if cls not in _MODEL_REGISTRY:
                _MODEL_REGISTRY.append(cls)

    @classmethod
    def get_table_name(cls) -> str:
        """
        Get the table name for the model.

        Returns the table_name from model_config if set,
        otherwise returns the class name.
        """
        table_name = cls.model_config.get("table_name", None)
        if isinstance(table_name, str):
            return table_name
        return cls.__name__

    @classmethod
    def get_index_primary_key(cls) -> str | None:
        """
        Get the primary key field name, if configured.
        """
        primary_key = cls.model_config.get("primary_key", None)
        return primary_key if isinstance(primary_key, str) else None

    def get_id(self) -> str | None:
        """
        Get the record ID, from the configured primary key or the ``id`` field.
        """
        primary_key = self.get_index_primary_key()
        value = getattr(self, primary_key, None) if primary_key else getattr(self, "id", None)
        return None if value is None else str(value)

    def get_thing(self) -> str | None:
        """
        Get the formatted ``table:id`` reference of this record, or None if unsaved.
        """
        record_id = self.get_id()
        if record_id is None:
            return None
        table, raw_id = parse_record_id(record_id)
        return format_thing(table or self.get_table_name(), raw_id)

    @classmethod
    def objects(cls) -> "ModelQuerySet":
        """
        Return a new ModelQuerySet for the model class.
        """
        from .query_set import ModelQuerySet

        return ModelQuerySet(cls)

    @classmethod
    def query(cls) -> "ModelQuerySet":
        return cls.objects()

    @classmethod
    def resolve_model(cls, related: "type[BaseSurrealModel] | str") -> "type[BaseSurrealModel]":
        """
        Resolve a related model given as a class, a class name or a table name.

        Raises:
            QueryBuildError: If no registered model matches.
        """
        if isinstance(related, type) and issubclass(related, BaseSurrealModel):
            return related
        if isinstance(related, str):
            # Latest definitions win when test modules reuse class names
            for model in reversed(_MODEL_REGISTRY):
                if related in (model.__name__, model.get_table_name()):
                    return model
        raise QueryBuildError(f"Unknown related model: {related!r}")

    def _default_foreign_key(self) -> str:
        return snake_case(type(self).__name__)

    # ==================== Relations ====================

    def has_one(
        self,
        related: "type[BaseSurrealModel] | str",
        foreign_key: str | None = None,
        local_key: str | None = None,
    ) -> "HasOne":
        """
        Define a one-to-one relation where the related record holds the key.

        Args:
            related: Related model class or name
            foreign_key: Field on the related record (default: snake-cased parent class name)
            local_key: Field on this record (default: ``id``)
        """
        from .relations import HasOne

        related_model = self.resolve_model(related)
        return HasOne(related_model.objects(), self, foreign_key or self._default_foreign_key(), local_key or "id")

    def has_many(
        self,
        related: "type[BaseSurrealModel] | str",
        foreign_key: str | None = None,
        local_key: str | None = None,
    ) -> "HasMany":
        """
        Define a one-to-many relation where the related records hold the key.
        """
        from .relations import HasMany

        related_model = self.resolve_model(related)
        return HasMany(related_model.objects(), self, foreign_key or self._default_foreign_key(), local_key or "id")

    def belongs_to(
        self,
        related: "type[BaseSurrealModel] | str",
        foreign_key: str | None = None,
        owner_key: str | None = None,
        relation: str | None = None,
    ) -> "BelongsTo":
        """
        Define the inverse of a one-to-one or one-to-many relation.

        The default foreign key is ``<relation>_<owner_key>``, where the
        relation is the name of the calling method unless ``relation`` is given.

        Example:
            def author(self):
                return self.belongs_to(User)  # foreign key "author_id"
        """
        from .relations import BelongsTo

        relation = relation or _caller_name()
        related_model = self.resolve_model(related)
        owner_key = owner_key or "id"
        if foreign_key is None:
            name = relation if _usable_name(relation) else related_model.__name__
            foreign_key = f"{snake_case(name)}_{owner_key}"
        return BelongsTo(related_model.objects(), self, foreign_key, owner_key, relation)

    def belongs_to_many(
        self,
        related: "type[BaseSurrealModel] | str",
        through: str | None = None,
        foreign_pivot_key: str | None = None,
        related_pivot_key: str | None = None,
    ) -> "BelongsToMany":
        """
        Define a many-to-many relation through a graph edge table.

        Args:
            related: Related model class or name
            through: Edge table (default: ``<parent_table>_<related_table>``)
            foreign_pivot_key: Edge field pointing at this record (default: ``in``)
            related_pivot_key: Edge field pointing at the related record (default: ``out``)
        """
        from .relations import BelongsToMany

        related_model = self.resolve_model(related)
        through = through or f"{self.get_table_name()}_{related_model.get_table_name()}"
        return BelongsToMany(
            related_model.objects(),
            self,
            through,
            foreign_pivot_key or "in",
            related_pivot_key or "out",
        )

    def morph_to(
        self,
        name: str | None = None,
        type_field: str | None = None,
        id_field: str | None = None,
    ) -> "MorphTo":
        """
        Define a polymorphic inverse relation.

        The related model is resolved from the ``<name>_type`` field. While
        that field is empty the relation queries the parent's own table.
        """
        from .relations import MorphTo

        name = name or _caller_name()
        if not _usable_name(name):
            raise QueryBuildError("morph_to() needs a relation name when not called from a model method.")
        type_field = type_field or f"{name}_type"
        id_field = id_field or f"{name}_id"

        type_value = getattr(self, type_field, None)
        related_model = self.resolve_model(type_value) if type_value else type(self)
        return MorphTo(related_model.objects(), self, id_field, "id", type_field, name)

    def morph_one(
        self,
        related: "type[BaseSurrealModel] | str",
        name: str,
        type_field: str | None = None,
        id_field: str | None = None,
        local_key: str | None = None,
    ) -> "MorphOne":
        """
        Define a polymorphic one-to-one relation.
        """
        from .relations import MorphOne

        related_model = self.resolve_model(related)
        return MorphOne(
            related_model.objects(),
            self,
            type_field or f"{name}_type",
            id_field or f"{name}_id",
            local_key or "id",
        )

    def morph_many(
        self,
        related: "type[BaseSurrealModel] | str",
        name: str,
        type_field: str | None = None,
        id_field: str | None = None,
        local_key: str | None = None,
    ) -> "MorphMany":
        """
        Define a polymorphic one-to-many relation.
        """
        from .relations import MorphMany

        related_model = self.resolve_model(related)
        return MorphMany(
            related_model.objects(),
            self,
            type_field or f"{name}_type",
            id_field or f"{name}_id",
            local_key or "id",
        )

    def morph_to_many(
        self,
        related: "type[BaseSurrealModel] | str",
        name: str,
        through: str | None = None,
        inverse: bool = False,
    ) -> "MorphToMany":
        """
        Define a polymorphic many-to-many relation through a graph edge table.

        Args:
            related: Related model class or name
            name: Morph name; also the default edge table
            through: Edge table override
            inverse: Traverse the edge in reverse (<-) direction
        """
        from .relations import MorphToMany

        related_model = self.resolve_model(related)
        return MorphToMany(related_model.objects(), self, name, through or name, inverse)

    def morphed_by_many(
        self,
        related: "type[BaseSurrealModel] | str",
        name: str,
        through: str | None = None,
    ) -> "MorphToMany":
        """
        Define the inverse side of a polymorphic many-to-many relation.
        """
        return self.morph_to_many(related, name, through, inverse=True)

    def has_one_through(
        self,
        related: "type[BaseSurrealModel] | str",
        through: "type[BaseSurrealModel] | str",
        first_key: str | None = None,
        second_key: str | None = None,
    ) -> "HasOneThrough":
        """
        Define a one-to-one relation reached through an intermediate model.
        """
        from .relations import HasOneThrough

        related_model = self.resolve_model(related)
        through_model = self.resolve_model(through)
        return HasOneThrough(
            related_model.objects(),
            self,
            through_model,
            first_key or self._default_foreign_key(),
            second_key or snake_case(through_model.__name__),
        )

    def has_many_through(
        self,
        related: "type[BaseSurrealModel] | str",
        through: "type[BaseSurrealModel] | str",
        first_key: str | None = None,
        second_key: str | None = None,
    ) -> "HasManyThrough":
        """
        Define a one-to-many relation reached through an intermediate model.

        Args:
            related: Far related model class or name
            through: Intermediate model class or name
            first_key: Field on the intermediate record pointing at this record
            second_key: Field on the far record pointing at the intermediate record
        """
        from .relations import HasManyThrough

        related_model = self.resolve_model(related)
        through_model = self.resolve_model(through)
        return HasManyThrough(
            related_model.objects(),
            self,
            through_model,
            first_key or self._default_foreign_key(),
            second_key or snake_case(through_model.__name__),
        )


__all__ = [
    "BaseSurrealModel",
    "SurrealConfigDict",
    "SCOPE_PREFIX",
    "get_registered_models",
    "clear_model_registry",
]

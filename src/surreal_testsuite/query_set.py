from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Self

from .exceptions import QueryBuildError
from .types import OrderBy
from .utils import validate_identifier

if TYPE_CHECKING:
    from .model_base import BaseSurrealModel
    from .relations import Relation

logger = logging.getLogger(__name__)

# Comparison operators accepted by ``where()``, mapped to their SurrealQL form
OPERATORS = {
    "=": "=",
    "==": "==",
    "!=": "!=",
    ">": ">",
    ">=": ">=",
    "<": "<",
    "<=": "<=",
    "~": "~",
    "!~": "!~",
    "@@": "@@",
    "CONTAINS": "CONTAINS",
    "CONTAINSNOT": "CONTAINSNOT",
    "CONTAINSALL": "CONTAINSALL",
    "CONTAINSANY": "CONTAINSANY",
    "INSIDE": "INSIDE",
    "NOTINSIDE": "NOTINSIDE",
}

_UNSET: Any = object()

Renderer = Callable[[dict[str, Any], list[int]], str]


def bind_variable(variables: dict[str, Any], counter: list[int], value: Any) -> str:
    """
    Bind a value as ``$_fN`` and return the variable reference.

    Args:
        variables: Mutable dict collecting parameterized variables.
        counter: Mutable single-element list ``[int]`` used as auto-increment counter.
        value: The value to bind.
    """
    name = f"_f{counter[0]}"
    counter[0] += 1
    variables[name] = value
    return f"${name}"


@dataclass
class WhereClause:
    """A single WHERE condition recorded by ``QueryBuilder``."""

    kind: str
    boolean: str = "AND"
    column: str | None = None
    operator: str | None = None
    value: Any = None
    negated: bool = False
    nested: QueryBuilder | None = None
    renderer: Renderer | None = None
    bindings: dict[str, Any] = field(default_factory=dict)


class QueryBuilder:
    """
    Table-level query builder rendering parameterized SurrealQL.

    The builder only describes a query. ``to_surql()`` compiles it into a
    ``(query, variables)`` pair; nothing is ever sent to a database.

    Example:
        ```python
        query, variables = (
            QueryBuilder("post")
            .where("status", "published")
            .where_not_null("published_at")
            .latest()
            .limit(10)
            .to_surql()
        )
        # SELECT * FROM post WHERE status = $_f0 AND published_at IS NOT NULL
        #   ORDER BY created_at DESC LIMIT 10;
        ```
    """

    def __init__(self, table: str | None = None) -> None:
        if table is not None:
            validate_identifier(table, "table name")
        self.table = table
        self.columns: list[str] = []
        self.wheres: list[WhereClause] = []
        self.orders: list[tuple[str, OrderBy]] = []
        self.limit_value: int | None = None
        self.offset_value: int | None = None
        self.fetch_fields: list[str] = []
        self.traversal: tuple[str, str] | None = None

    def __repr__(self) -> str:
        return f"<QueryBuilder({self.table})>"

    # ==================== Sources & projection ====================

    def from_(self, table: str) -> Self:
        """Set the table the query selects from."""
        validate_identifier(table, "table name")
        self.table = table
        return self

    def traverse(self, origin: str, path: str) -> Self:
        """
        Select through a graph traversal path instead of a plain table.

        Args:
            origin: Formatted record the traversal starts from (``user:alice``).
            path: Traversal path (``->follows->user``).
        """
        self.traversal = (origin, path)
        return self

    def select(self, *columns: str) -> Self:
        """Restrict the selected fields. By default all fields are selected."""
        for column in columns:
            validate_identifier(column, "column")
        self.columns = list(columns)
        return self

    # ==================== Conditions ====================

    def where(
        self,
        column: str | Callable[[QueryBuilder], Any],
        operator: Any = None,
        value: Any = _UNSET,
        boolean: str = "AND",
    ) -> Self:
        """
        Add a basic WHERE condition.

        ``where("status", "active")`` compares with ``=``; pass the operator
        explicitly for anything else: ``where("age", ">=", 18)``. A callable
        opens a nested, parenthesised group.

        Example:
            ```python
            builder.where(lambda q: q.where("role", "admin").or_where("role", "owner"))
            ```
        """
        if callable(column):
            nested = QueryBuilder(self.table)
            column(nested)
            if nested.wheres:
                self.wheres.append(WhereClause("nested", boolean, nested=nested))
            return self

        if value is _UNSET:
            operator, value = "=", operator

        if value is None and operator in ("=", "=="):
            return self.where_null(column, boolean)
        if value is None and operator == "!=":
            return self.where_null(column, boolean, negated=True)

        validate_identifier(column, "column")
        op = OPERATORS.get(str(operator).upper())
        if op is None:
            raise QueryBuildError(f"Invalid operator {operator!r} for column {column!r}.")
        self.wheres.append(WhereClause("basic", boolean, column=column, operator=op, value=value))
        return self

    def or_where(self, column: Any, operator: Any = None, value: Any = _UNSET) -> Self:
        """Add an OR-joined basic WHERE condition."""
        return self.where(column, operator, value, boolean="OR")

    def where_null(self, column: str, boolean: str = "AND", negated: bool = False) -> Self:
        """Add an ``IS NULL`` (or ``IS NOT NULL``) condition."""
        validate_identifier(column, "column")
        self.wheres.append(WhereClause("null", boolean, column=column, negated=negated))
        return self

    def or_where_null(self, column: str) -> Self:
        return self.where_null(column, boolean="OR")

    def where_not_null(self, column: str, boolean: str = "AND") -> Self:
        return self.where_null(column, boolean, negated=True)

    def or_where_not_null(self, column: str) -> Self:
        return self.where_null(column, boolean="OR", negated=True)

    def where_in(self, column: str, values: Any, boolean: str = "AND", negated: bool = False) -> Self:
        """
        Add an ``IN`` (or ``NOT IN``) condition.

        Raises:
            QueryBuildError: If ``values`` is not a list, tuple or set.
        """
        validate_identifier(column, "column")
        if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple, set, frozenset)):
            raise QueryBuildError(
                f"Value for 'where_in' on column {column!r} must be a list, tuple, or set, "
                f"got {type(values).__name__!r}."
            )
        self.wheres.append(WhereClause("in", boolean, column=column, value=list(values), negated=negated))
        return self

    def or_where_in(self, column: str, values: Any) -> Self:
        return self.where_in(column, values, boolean="OR")

    def where_not_in(self, column: str, values: Any, boolean: str = "AND") -> Self:
        return self.where_in(column, values, boolean, negated=True)

    def or_where_not_in(self, column: str, values: Any) -> Self:
        return self.where_in(column, values, boolean="OR", negated=True)

    def where_between(self, column: str, values: Any, boolean: str = "AND") -> Self:
        """Add an inclusive range condition from a two-item sequence."""
        validate_identifier(column, "column")
        bounds = list(values)
        if len(bounds) != 2:
            raise QueryBuildError(f"'where_between' on column {column!r} needs exactly two values.")
        self.wheres.append(WhereClause("between", boolean, column=column, value=bounds))
        return self

    def where_column(self, first: str, operator: str, second: str | None = None, boolean: str = "AND") -> Self:
        """Compare two columns: ``where_column("updated_at", ">", "created_at")``."""
        if second is None:
            operator, second = "=", operator
        validate_identifier(first, "column")
        validate_identifier(second, "column")
        op = OPERATORS.get(operator.upper())
        if op is None:
            raise QueryBuildError(f"Invalid operator {operator!r} for column {first!r}.")
        self.wheres.append(WhereClause("column", boolean, column=first, operator=op, value=second))
        return self

    def where_raw(self, sql: str, bindings: dict[str, Any] | None = None, boolean: str = "AND") -> Self:
        """Add a raw SurrealQL condition. ``bindings`` are merged into the variables."""
        self.wheres.append(WhereClause("raw", boolean, value=sql, bindings=dict(bindings or {})))
        return self

    def _where_rendered(self, renderer: Renderer, boolean: str = "AND") -> Self:
        # Rendered lazily so sub-selects share this query's variable counter
        self.wheres.append(WhereClause("rendered", boolean, renderer=renderer))
        return self

    # ==================== Ordering & paging ====================

    def order_by(self, column: str, direction: OrderBy | str = OrderBy.ASC) -> Self:
        """
        Add an ORDER BY column. Supports Django-style ``-column`` for descending.

        Example:
            ```python
            builder.order_by("name").order_by("-created_at")
            ```
        """
        if column.startswith("-"):
            column, direction = column[1:], OrderBy.DESC
        validate_identifier(column, "column")
        try:
            order = OrderBy(str(direction).upper())
        except ValueError as e:
            raise QueryBuildError(f"Invalid order direction {direction!r}.") from e
        self.orders.append((column, order))
        return self

    def latest(self, column: str = "created_at") -> Self:
        return self.order_by(column, OrderBy.DESC)

    def oldest(self, column: str = "created_at") -> Self:
        return self.order_by(column, OrderBy.ASC)

    def limit(self, value: int) -> Self:
        self.limit_value = value
        return self

    def offset(self, value: int) -> Self:
        self.offset_value = value
        return self

    def fetch(self, *fields: str) -> Self:
        """Add FETCH targets so record links are resolved inline."""
        for name in fields:
            validate_identifier(name, "FETCH target")
            if name not in self.fetch_fields:
                self.fetch_fields.append(name)
        return self

    # ==================== Compilation ====================

    def _render_where(self, where: WhereClause, variables: dict[str, Any], counter: list[int]) -> str:
        if where.kind == "basic":
            return f"{where.column} {where.operator} {bind_variable(variables, counter, where.value)}"
        if where.kind == "null":
            return f"{where.column} IS {'NOT NULL' if where.negated else 'NULL'}"
        if where.kind == "in":
            op = "NOT IN" if where.negated else "IN"
            return f"{where.column} {op} {bind_variable(variables, counter, where.value)}"
        if where.kind == "between":
            low = bind_variable(variables, counter, where.value[0])
            high = bind_variable(variables, counter, where.value[1])
            return f"({where.column} >= {low} AND {where.column} <= {high})"
        if where.kind == "column":
            return f"{where.column} {where.operator} {where.value}"
        if where.kind == "raw":
            variables.update(where.bindings)
            return str(where.value)
        if where.kind == "nested" and where.nested is not None:
            return f"({where.nested.compile_wheres(variables, counter)})"
        if where.kind == "rendered" and where.renderer is not None:
            return where.renderer(variables, counter)
        raise QueryBuildError(f"Unsupported where clause {where.kind!r}.")

    def compile_wheres(self, variables: dict[str, Any], counter: list[int]) -> str:
        """Render all conditions, joined by their AND/OR connectors."""
        parts: list[str] = []
        for where in self.wheres:
            rendered = self._render_where(where, variables, counter)
            parts.append(rendered if not parts else f"{where.boolean} {rendered}")
        return " ".join(parts)

    def compile(self, variables: dict[str, Any], counter: list[int]) -> str:
        """Compile the SELECT statement without a trailing semicolon."""
        if self.traversal is not None:
            source = "".join(self.traversal)
        elif self.table is not None:
            source = self.table
        else:
            raise QueryBuildError("Cannot compile a query without a table.")

        fields = ", ".join(self.columns) if self.columns else "*"
        query = f"SELECT {fields} FROM {source}"

        conditions = self.compile_wheres(variables, counter)
        if conditions:
            query += f" WHERE {conditions}"
        if self.orders:
            query += " ORDER BY " + ", ".join(f"{column} {order}" for column, order in self.orders)
        if self.limit_value is not None:
            query += f" LIMIT {self.limit_value}"
        if self.offset_value is not None:
            query += f" START {self.offset_value}"
        if self.fetch_fields:
            query += f" FETCH {', '.join(self.fetch_fields)}"
        return query

    def to_surql(self) -> tuple[str, dict[str, Any]]:
        """
        Compile the builder into a parameterized SurrealQL statement.

        Returns:
            tuple[str, dict]: The query string and its bound variables.
        """
        variables: dict[str, Any] = {}
        query = self.compile(variables, [0]) + ";"
        return query, variables


class ModelQuerySet:
    """
    Model-aware query builder.

    Declares only model-level operations (eager loading, relation existence,
    scopes). Everything else resolves through ``__getattr__``: first the
    model's ``scope_<name>`` methods, then the underlying ``QueryBuilder``.
    Builder calls return this query set so chains keep their model context.

    Example:
        ```python
        class Post(BaseSurrealModel):
            id: str | None = None
            status: str = "draft"

            def scope_published(self, query):
                return query.where("status", "published")

        Post.objects().published().with_("author").latest().to_surql()
        ```
    """

    def __init__(self, model: type[BaseSurrealModel], builder: QueryBuilder | None = None) -> None:
        self.model = model
        self.builder = builder if builder is not None else QueryBuilder(model.get_table_name())

    def __repr__(self) -> str:
        return f"<ModelQuerySet({self.model.__name__})>"

    def get_model(self) -> type[BaseSurrealModel]:
        return self.model

    def get_query(self) -> QueryBuilder:
        return self.builder

    def with_(self, *relations: str) -> Self:
        """Eager-load relations via FETCH."""
        self.builder.fetch(*relations)
        return self

    def where_has(
        self,
        relation: str,
        callback: Callable[[ModelQuerySet], Any] | None = None,
        operator: str = ">=",
        count: int = 1,
    ) -> Self:
        """
        Keep records with related records, optionally constrained by ``callback``.

        Example:
            ```python
            User.objects().where_has("posts", lambda q: q.where("status", "published"))
            ```
        """
        return self._has(relation, callback, operator, count, "AND")

    def or_where_has(
        self,
        relation: str,
        callback: Callable[[ModelQuerySet], Any] | None = None,
        operator: str = ">=",
        count: int = 1,
    ) -> Self:
        return self._has(relation, callback, operator, count, "OR")

    def where_doesnt_have(self, relation: str, callback: Callable[[ModelQuerySet], Any] | None = None) -> Self:
        return self._has(relation, callback, "=", 0, "AND")

    def _has(
        self,
        relation: str,
        callback: Callable[[ModelQuerySet], Any] | None,
        operator: str,
        count: int,
        boolean: str,
    ) -> Self:
        relation_obj = self._get_relation(relation)
        op = OPERATORS.get(operator)
        if op is None:
            raise QueryBuildError(f"Invalid operator {operator!r} for relation {relation!r}.")

        sub_query = relation_obj.get_related().objects()
        if callback is not None:
            callback(sub_query)

        def render(variables: dict[str, Any], counter: list[int]) -> str:
            sub_select = relation_obj.get_existence_query(sub_query, variables, counter)
            return f"count(({sub_select})) {op} {int(count)}"

        self.builder._where_rendered(render, boolean)
        return self

    def _get_relation(self, name: str) -> Relation:
        from .relations import Relation

        method = getattr(self.model, name, None)
        if name.startswith("_") or not callable(method):
            raise QueryBuildError(f"{self.model.__name__} has no relation {name!r}.")
        relation = getattr(self.model.model_construct(), name)()
        if not isinstance(relation, Relation):
            raise QueryBuildError(f"{self.model.__name__}.{name}() did not return a relation.")
        return relation

    def apply_scope(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """
        Apply the model's ``scope_<name>`` to this query set.

        Raises:
            AttributeError: If the model defines no such scope.
        """
        from .model_base import SCOPE_PREFIX

        scope = getattr(self.model, f"{SCOPE_PREFIX}{name}", None)
        if not callable(scope):
            raise AttributeError(f"{self.model.__name__} has no scope {name!r}")
        result = getattr(self.model.model_construct(), f"{SCOPE_PREFIX}{name}")(self, *args, **kwargs)
        return self if result is None else result

    def to_surql(self) -> tuple[str, dict[str, Any]]:
        return self.builder.to_surql()

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or name in ("model", "builder"):
            raise AttributeError(name)

        from .model_base import SCOPE_PREFIX

        if callable(getattr(self.model, f"{SCOPE_PREFIX}{name}", None)):
            return functools.partial(self.apply_scope, name)

        try:
            target = getattr(self.builder, name)
        except AttributeError:
            raise AttributeError(f"'{type(self).__name__}' object has no attribute {name!r}") from None

        if not callable(target):
            return target

        @functools.wraps(target)
        def forward(*args: Any, **kwargs: Any) -> Any:
            result = target(*args, **kwargs)
            return self if result is self.builder else result

        return forward


__all__ = ["QueryBuilder", "ModelQuerySet", "WhereClause", "OPERATORS", "bind_variable"]

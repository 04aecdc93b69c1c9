"""Unit tests for QueryBuilder and ModelQuerySet SurrealQL rendering."""

import pytest

from surreal_testsuite.exceptions import QueryBuildError
from surreal_testsuite.model_base import BaseSurrealModel
from surreal_testsuite.query_set import ModelQuerySet, QueryBuilder
from surreal_testsuite.types import OrderBy

# ==================== Test Models ====================


class Author(BaseSurrealModel):
    id: str | None = None
    name: str = ""
    status: str = "active"

    def books(self):
        return self.has_many(Book, "author")

    def scope_active(self, query):
        return query.where("status", "active")

    def scope_named(self, query, name):
        query.where("name", name)


class Book(BaseSurrealModel):
    id: str | None = None
    title: str = ""
    author: str | None = None
    published: bool = False


# ==================== QueryBuilder ====================


class TestQueryBuilder:
    def test_select_all(self) -> None:
        assert QueryBuilder("post").to_surql() == ("SELECT * FROM post;", {})

    def test_select_columns(self) -> None:
        query, _ = QueryBuilder("post").select("id", "title").to_surql()
        assert query == "SELECT id, title FROM post;"

    def test_where_defaults_to_equals(self) -> None:
        query, variables = QueryBuilder("post").where("status", "published").where("views", ">=", 10).to_surql()
        assert query == "SELECT * FROM post WHERE status = $_f0 AND views >= $_f1;"
        assert variables == {"_f0": "published", "_f1": 10}

    def test_where_none_is_null(self) -> None:
        query, variables = QueryBuilder("post").where("deleted_at", None).to_surql()
        assert query == "SELECT * FROM post WHERE deleted_at IS NULL;"
        assert variables == {}

    def test_where_not_equal_none_is_not_null(self) -> None:
        query, _ = QueryBuilder("post").where("deleted_at", "!=", None).to_surql()
        assert query == "SELECT * FROM post WHERE deleted_at IS NOT NULL;"

    def test_nested_group(self) -> None:
        query, variables = (
            QueryBuilder("user")
            .where("active", True)
            .where(lambda q: q.where("role", "admin").or_where("role", "owner"))
            .to_surql()
        )
        assert query == "SELECT * FROM user WHERE active = $_f0 AND (role = $_f1 OR role = $_f2);"
        assert variables == {"_f0": True, "_f1": "admin", "_f2": "owner"}

    def test_empty_nested_group_ignored(self) -> None:
        query, _ = QueryBuilder("user").where(lambda q: None).to_surql()
        assert query == "SELECT * FROM user;"

    def test_null_conditions(self) -> None:
        query, _ = (
            QueryBuilder("user")
            .where_null("deleted_at")
            .where_not_null("verified_at")
            .or_where_null("banned_at")
            .or_where_not_null("admin_at")
            .to_surql()
        )
        assert query == (
            "SELECT * FROM user WHERE deleted_at IS NULL AND verified_at IS NOT NULL "
            "OR banned_at IS NULL OR admin_at IS NOT NULL;"
        )

    def test_in_conditions(self) -> None:
        query, variables = QueryBuilder("user").where_in("id", [1, 2]).where_not_in("status", ("banned",)).to_surql()
        assert query == "SELECT * FROM user WHERE id IN $_f0 AND status NOT IN $_f1;"
        assert variables == {"_f0": [1, 2], "_f1": ["banned"]}

    def test_or_in_conditions(self) -> None:
        query, _ = QueryBuilder("user").or_where_in("id", [1]).or_where_not_in("id", [2]).to_surql()
        assert query == "SELECT * FROM user WHERE id IN $_f0 OR id NOT IN $_f1;"

    @pytest.mark.parametrize("values", ["abc", 5, None])
    def test_where_in_requires_collection(self, values: object) -> None:
        with pytest.raises(QueryBuildError, match="must be a list, tuple, or set"):
            QueryBuilder("user").where_in("id", values)

    def test_where_between(self) -> None:
        query, variables = QueryBuilder("user").where_between("age", (18, 65)).to_surql()
        assert query == "SELECT * FROM user WHERE (age >= $_f0 AND age <= $_f1);"
        assert variables == {"_f0": 18, "_f1": 65}

    def test_where_between_needs_two_values(self) -> None:
        with pytest.raises(QueryBuildError, match="exactly two values"):
            QueryBuilder("user").where_between("age", [1, 2, 3])

    def test_where_column(self) -> None:
        query, variables = QueryBuilder("post").where_column("updated_at", ">", "created_at").to_surql()
        assert query == "SELECT * FROM post WHERE updated_at > created_at;"
        assert variables == {}

    def test_where_column_defaults_to_equals(self) -> None:
        query, _ = QueryBuilder("post").where_column("author", "editor").to_surql()
        assert query == "SELECT * FROM post WHERE author = editor;"

    def test_where_raw_merges_bindings(self) -> None:
        query, variables = (
            QueryBuilder("post").where("status", "published").where_raw("tags CONTAINS $tag", {"tag": "orm"}).to_surql()
        )
        assert query == "SELECT * FROM post WHERE status = $_f0 AND tags CONTAINS $tag;"
        assert variables == {"_f0": "published", "tag": "orm"}

    def test_invalid_operator(self) -> None:
        with pytest.raises(QueryBuildError, match="Invalid operator"):
            QueryBuilder("post").where("views", "<>", 1)

    def test_invalid_column(self) -> None:
        with pytest.raises(QueryBuildError, match="Invalid column"):
            QueryBuilder("post").where("views; DELETE post", 1)

    def test_invalid_table(self) -> None:
        with pytest.raises(QueryBuildError, match="Invalid table name"):
            QueryBuilder("post; DELETE post")

    def test_ordering_and_paging(self) -> None:
        query, _ = (
            QueryBuilder("post")
            .order_by("-created_at")
            .order_by("title")
            .limit(10)
            .offset(20)
            .fetch("author")
            .to_surql()
        )
        assert query == "SELECT * FROM post ORDER BY created_at DESC, title ASC LIMIT 10 START 20 FETCH author;"

    def test_order_by_direction_string(self) -> None:
        builder = QueryBuilder("post").order_by("title", "desc")
        assert builder.orders == [("title", OrderBy.DESC)]

    def test_order_by_invalid_direction(self) -> None:
        with pytest.raises(QueryBuildError, match="Invalid order direction"):
            QueryBuilder("post").order_by("title", "sideways")

    def test_latest_and_oldest(self) -> None:
        query, _ = QueryBuilder("post").latest().oldest("published_at").to_surql()
        assert query == "SELECT * FROM post ORDER BY created_at DESC, published_at ASC;"

    def test_fetch_deduplicates(self) -> None:
        assert QueryBuilder("post").fetch("author", "author", "tags").fetch_fields == ["author", "tags"]

    def test_from_sets_table(self) -> None:
        assert QueryBuilder().from_("post").to_surql() == ("SELECT * FROM post;", {})

    def test_compile_without_table(self) -> None:
        with pytest.raises(QueryBuildError, match="without a table"):
            QueryBuilder().to_surql()

    def test_traverse(self) -> None:
        query, _ = QueryBuilder("user").traverse("user:alice", "->follows->user").to_surql()
        assert query == "SELECT * FROM user:alice->follows->user;"


# ==================== ModelQuerySet ====================


class TestModelQuerySet:
    def test_objects_and_query(self) -> None:
        assert isinstance(Author.objects(), ModelQuerySet)
        assert isinstance(Author.query(), ModelQuerySet)
        assert Author.objects().get_model() is Author
        assert Author.objects().get_query().table == "Author"

    def test_builder_calls_return_query_set(self) -> None:
        query_set = Author.objects()
        assert query_set.where("name", "Ann") is query_set
        assert query_set.to_surql() == ("SELECT * FROM Author WHERE name = $_f0;", {"_f0": "Ann"})

    def test_builder_attributes_forwarded(self) -> None:
        assert Author.objects().limit(5).limit_value == 5

    def test_scope_forwarding(self) -> None:
        query, variables = Author.objects().active().latest().to_surql()
        assert query == "SELECT * FROM Author WHERE status = $_f0 ORDER BY created_at DESC;"
        assert variables == {"_f0": "active"}

    def test_scope_returning_none_keeps_query_set(self) -> None:
        query_set = Author.objects()
        assert query_set.named("Ann") is query_set
        assert query_set.to_surql() == ("SELECT * FROM Author WHERE name = $_f0;", {"_f0": "Ann"})

    def test_apply_scope(self) -> None:
        query_set = Author.objects().apply_scope("active")
        assert isinstance(query_set, ModelQuerySet)

    def test_apply_unknown_scope(self) -> None:
        with pytest.raises(AttributeError, match="has no scope"):
            Author.objects().apply_scope("retired")

    def test_unknown_attribute(self) -> None:
        with pytest.raises(AttributeError):
            Author.objects().retired  # noqa: B018

    def test_private_attribute_not_forwarded(self) -> None:
        with pytest.raises(AttributeError):
            Author.objects()._render_where  # noqa: B018

    def test_with_fetches_relations(self) -> None:
        query, _ = Author.objects().with_("books", "publisher").to_surql()
        assert query == "SELECT * FROM Author FETCH books, publisher;"

    def test_where_has_with_callback(self) -> None:
        query, variables = Author.objects().where_has("books", lambda q: q.where("published", True)).to_surql()
        assert query == (
            "SELECT * FROM Author WHERE count((SELECT id FROM Book WHERE author = $parent.id "
            "AND (published = $_f0))) >= 1;"
        )
        assert variables == {"_f0": True}

    def test_where_has_count(self) -> None:
        query, _ = Author.objects().where("status", "active").or_where_has("books", None, ">", 3).to_surql()
        assert query == (
            "SELECT * FROM Author WHERE status = $_f0 OR count((SELECT id FROM Book WHERE author = $parent.id)) > 3;"
        )

    def test_where_doesnt_have(self) -> None:
        query, _ = Author.objects().where_doesnt_have("books").to_surql()
        assert query == "SELECT * FROM Author WHERE count((SELECT id FROM Book WHERE author = $parent.id)) = 0;"

    def test_where_has_unknown_relation(self) -> None:
        with pytest.raises(QueryBuildError, match="has no relation"):
            Author.objects().where_has("reviews")

    def test_where_has_non_relation_method(self) -> None:
        with pytest.raises(QueryBuildError, match="did not return a relation"):
            Author.objects().where_has("get_table_name")

    def test_where_has_invalid_operator(self) -> None:
        with pytest.raises(QueryBuildError, match="Invalid operator"):
            Author.objects().where_has("books", None, "<>")

import importlib
import re
from typing import Any

from .exceptions import QueryBuildError

# Plain identifiers plus dotted record-link paths (``author.name``)
SAFE_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*(\.[a-zA-Z_][a-zA-Z0-9_]*)*$")

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def validate_identifier(name: str, context: str = "identifier") -> None:
    """Validate that a string is a safe SurrealQL identifier.

    Raises:
        QueryBuildError: If the name contains characters outside ``[a-zA-Z0-9_.]``
            or does not start with a letter/underscore.
    """
    if not isinstance(name, str) or not SAFE_IDENTIFIER_RE.match(name):
        raise QueryBuildError(
            f"Invalid {context}: {name!r}. "
            "Only letters, digits, underscores and dotted paths are allowed "
            "(must start with a letter or underscore)."
        )


def snake_case(name: str) -> str:
    """
    Convert a class or method name to snake_case.

    Examples:
        snake_case("BlogPost")   # "blog_post"
        snake_case("HTTPClient") # "http_client"
        snake_case("author")     # "author"
    """
    return _CAMEL_BOUNDARY_RE.sub("_", name).lower()


def needs_id_escaping(record_id: str) -> bool:
    """
    Check if a record ID needs to be escaped in SurrealQL.

    Record IDs that start with a digit or contain special characters
    need to be wrapped in backticks.

    Examples:
        needs_id_escaping("abc123")  # False - starts with letter
        needs_id_escaping("7abc")    # True - starts with digit
        needs_id_escaping("test-id") # True - contains hyphen
    """
    if not record_id:
        return False

    if record_id[0].isdigit():
        return True

    return not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", record_id)


def escape_record_id(record_id: str) -> str:
    """
    Escape a record ID for use in SurrealQL if needed.

    Examples:
        escape_record_id("abc123")   # "abc123"
        escape_record_id("7abc")     # "`7abc`"
        escape_record_id("test-id")  # "`test-id`"
    """
    if needs_id_escaping(record_id):
        escaped = record_id.replace("`", "``")
        return f"`{escaped}`"
    return record_id


def format_thing(table: str, record_id: str) -> str:
    """
    Format a full SurrealDB thing reference (table:id).

    Examples:
        format_thing("users", "abc123")  # "users:abc123"
        format_thing("users", "7abc")    # "users:`7abc`"
    """
    return f"{table}:{escape_record_id(record_id)}"


def parse_record_id(full_id: str) -> tuple[str | None, str]:
    """
    Parse a full record ID (table:id) into table and id parts.

    Examples:
        parse_record_id("users:abc123")  # ("users", "abc123")
        parse_record_id("users:`7abc`")  # ("users", "7abc")
        parse_record_id("abc123")        # (None, "abc123")
    """
    if ":" not in full_id:
        return None, full_id

    table, id_part = full_id.split(":", 1)

    if id_part.startswith("`") and id_part.endswith("`"):
        id_part = id_part[1:-1].replace("``", "`")

    return table, id_part


def import_object(target: str) -> Any:
    """
    Import an object from a ``module:attribute`` (or ``module.attribute``) path.

    Raises:
        ImportError: If the module cannot be imported or has no such attribute.
    """
    if ":" in target:
        module_path, _, attribute = target.partition(":")
    else:
        module_path, _, attribute = target.rpartition(".")

    if not module_path or not attribute:
        raise ImportError(f"Invalid import path {target!r}, expected 'module:Class'")

    module = importlib.import_module(module_path)
    obj: Any = module
    for part in attribute.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ImportError(f"{module_path!r} has no attribute {attribute!r}") from e
    return obj

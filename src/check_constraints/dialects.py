"""SQL fragments whose spelling depends on the target database."""

import functools
from typing import Any

from sqlalchemy.dialects import registry as dialect_registry
from sqlalchemy.engine import Dialect

from check_constraints.config import settings

# Dialects without a POSIX `~` operator.
_REGEXP_KEYWORD_DIALECTS = frozenset({"mysql", "mariadb", "sqlite"})


@functools.cache
def _load_dialect(name: str) -> Dialect:
    return dialect_registry.load(name)()


def resolve_dialect(dialect: Dialect | str | None = None) -> Dialect:
    """Return a dialect instance, loading it by name if needed.

    `None` falls back to the configured default dialect.
    """
    if isinstance(dialect, Dialect):
        return dialect
    return _load_dialect(dialect or settings.default_dialect)


def quote_identifier(dialect: Dialect, name: str) -> str:
    return dialect.identifier_preparer.quote_identifier(name)


def string_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def value_literal(value: Any) -> str:
    if isinstance(value, str):
        return string_literal(value)
    return str(value)


def regex_match(dialect: Dialect, column_sql: str, pattern: str) -> str:
    if dialect.name in _REGEXP_KEYWORD_DIALECTS:
        return f"{column_sql} REGEXP {string_literal(pattern)}"
    return f"{column_sql} ~ {string_literal(pattern)}"

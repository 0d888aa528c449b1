"""
schema_core/type_maps.py
------------------------
Lookup tables between the canonical :class:`ColumnType` enumeration and the
textual type spellings of each SQL dialect and of DBML.

Design Decisions:
    * SQL → canonical is a *prioritised* list of pattern rules, not a flat
      dict: some dialect spellings are prefixes of others (``BIGSERIAL`` must
      be tested before ``SERIAL``, ``TINYINT(1)`` before the integer rule).
      First match wins; an unmatched SQL type falls back to ``TEXT``.
    * DBML ↔ canonical is a flat dict in both directions; an unmatched DBML
      type returns ``None`` and the DBML parser treats that as a hard error.
"""
from __future__ import annotations

import re

from schema_models import ColumnType, SqlDialect

# ---------------------------------------------------------------------------
# SQL → canonical (ordered, first match wins)
# ---------------------------------------------------------------------------
_SQL_TYPE_RULES: tuple[tuple[re.Pattern[str], ColumnType], ...] = (
    (re.compile(r"^BIGSERIAL$", re.IGNORECASE), ColumnType.BIGINT),
    (re.compile(r"^SERIAL$", re.IGNORECASE), ColumnType.SERIAL),
    (re.compile(r"^BIGINT", re.IGNORECASE), ColumnType.BIGINT),
    (re.compile(r"^TINYINT\s*\(\s*1\s*\)", re.IGNORECASE), ColumnType.BOOLEAN),
    (re.compile(r"^(INT|INTEGER)", re.IGNORECASE), ColumnType.INT),
    (re.compile(r"^(BOOLEAN|BOOL)$", re.IGNORECASE), ColumnType.BOOLEAN),
    (re.compile(r"^UUID$", re.IGNORECASE), ColumnType.UUID),
    (re.compile(r"^CHAR\s*\(\s*36\s*\)$", re.IGNORECASE), ColumnType.UUID),
    (re.compile(r"^(VARCHAR|CHAR)\s*(\([^()]*\))?$", re.IGNORECASE), ColumnType.VARCHAR),
    (re.compile(r"^(TINYTEXT|MEDIUMTEXT|LONGTEXT|TEXT)", re.IGNORECASE), ColumnType.TEXT),
    (re.compile(r"^DATE$", re.IGNORECASE), ColumnType.DATE),
    (re.compile(r"^(TIMESTAMP|DATETIME)", re.IGNORECASE), ColumnType.TIMESTAMP),
    (re.compile(r"^(FLOAT|REAL|DOUBLE)", re.IGNORECASE), ColumnType.FLOAT),
    (re.compile(r"^(DECIMAL|NUMERIC)", re.IGNORECASE), ColumnType.DECIMAL),
    (re.compile(r"^JSONB?$", re.IGNORECASE), ColumnType.JSON),
    (re.compile(r"^(BLOB|BYTEA|BINARY|VARBINARY)", re.IGNORECASE), ColumnType.BLOB),
)


_SQL_TYPE_KEYWORDS = frozenset({
    "BIGINT", "BIGSERIAL", "BINARY", "BLOB", "BOOL", "BOOLEAN", "BYTEA",
    "CHAR", "DATE", "DATETIME", "DECIMAL", "DOUBLE", "FLOAT", "INT",
    "INTEGER", "JSON", "JSONB", "LONGTEXT", "MEDIUMINT", "MEDIUMTEXT",
    "NUMERIC", "REAL", "SERIAL", "SMALLINT", "TEXT", "TIME", "TIMESTAMP",
    "TINYINT", "TINYTEXT", "UUID", "VARBINARY", "VARCHAR",
})


def is_sql_type_keyword(word: str) -> bool:
    """True if *word* is exactly a type name, e.g. ``INT`` but not ``int_idx``."""
    return word.strip().upper() in _SQL_TYPE_KEYWORDS


def map_sql_type(raw_type: str) -> ColumnType:
    """
    Map a dialect type spelling to its canonical type.

    Examples::

        map_sql_type("BIGSERIAL")      →  ColumnType.BIGINT
        map_sql_type("tinyint(1)")     →  ColumnType.BOOLEAN
        map_sql_type("DECIMAL(10,2)")  →  ColumnType.DECIMAL
        map_sql_type("GEOMETRY")       →  ColumnType.TEXT
    """
    trimmed = raw_type.strip()
    for pattern, column_type in _SQL_TYPE_RULES:
        if pattern.search(trimmed):
            return column_type
    return ColumnType.TEXT


# ---------------------------------------------------------------------------
# canonical → SQL, per dialect
# ---------------------------------------------------------------------------
_DIALECT_TYPES: dict[ColumnType, dict[SqlDialect, str]] = {
    ColumnType.BIGINT: {SqlDialect.POSTGRESQL: "BIGINT", SqlDialect.MYSQL: "BIGINT", SqlDialect.SQLITE: "INTEGER"},
    ColumnType.BLOB: {SqlDialect.POSTGRESQL: "BYTEA", SqlDialect.MYSQL: "BLOB", SqlDialect.SQLITE: "BLOB"},
    ColumnType.BOOLEAN: {SqlDialect.POSTGRESQL: "BOOLEAN", SqlDialect.MYSQL: "TINYINT(1)", SqlDialect.SQLITE: "INTEGER"},
    ColumnType.DATE: {SqlDialect.POSTGRESQL: "DATE", SqlDialect.MYSQL: "DATE", SqlDialect.SQLITE: "TEXT"},
    ColumnType.DECIMAL: {SqlDialect.POSTGRESQL: "DECIMAL(10,2)", SqlDialect.MYSQL: "DECIMAL(10,2)", SqlDialect.SQLITE: "REAL"},
    ColumnType.FLOAT: {SqlDialect.POSTGRESQL: "REAL", SqlDialect.MYSQL: "FLOAT", SqlDialect.SQLITE: "REAL"},
    ColumnType.INT: {SqlDialect.POSTGRESQL: "INTEGER", SqlDialect.MYSQL: "INT", SqlDialect.SQLITE: "INTEGER"},
    ColumnType.JSON: {SqlDialect.POSTGRESQL: "JSONB", SqlDialect.MYSQL: "JSON", SqlDialect.SQLITE: "TEXT"},
    ColumnType.SERIAL: {SqlDialect.POSTGRESQL: "SERIAL", SqlDialect.MYSQL: "INT", SqlDialect.SQLITE: "INTEGER"},
    ColumnType.TEXT: {SqlDialect.POSTGRESQL: "TEXT", SqlDialect.MYSQL: "TEXT", SqlDialect.SQLITE: "TEXT"},
    ColumnType.TIMESTAMP: {SqlDialect.POSTGRESQL: "TIMESTAMP", SqlDialect.MYSQL: "TIMESTAMP", SqlDialect.SQLITE: "TEXT"},
    ColumnType.UUID: {SqlDialect.POSTGRESQL: "UUID", SqlDialect.MYSQL: "CHAR(36)", SqlDialect.SQLITE: "TEXT"},
    ColumnType.VARCHAR: {SqlDialect.POSTGRESQL: "VARCHAR(255)", SqlDialect.MYSQL: "VARCHAR(255)", SqlDialect.SQLITE: "TEXT"},
}


def map_column_type(column_type: ColumnType, dialect: SqlDialect | str) -> str:
    """Return the spelling of *column_type* in *dialect*."""
    return _DIALECT_TYPES[ColumnType(column_type)][SqlDialect.parse(dialect)]


# ---------------------------------------------------------------------------
# DBML ↔ canonical
# ---------------------------------------------------------------------------
DBML_TYPE_NAMES: dict[ColumnType, str] = {t: t.value.lower() for t in ColumnType}

_DBML_TYPE_REVERSE: dict[str, ColumnType] = {
    **{name: t for t, name in DBML_TYPE_NAMES.items()},
    "bool": ColumnType.BOOLEAN,
    "integer": ColumnType.INT,
    "jsonb": ColumnType.JSON,
}

_TYPE_PARAMS_RE = re.compile(r"\(.*\)$")


def dbml_type_name(column_type: ColumnType) -> str:
    return DBML_TYPE_NAMES[ColumnType(column_type)]


def lookup_dbml_type(token: str) -> ColumnType | None:
    """
    Resolve a DBML type token, or return ``None`` if it is not recognised.

    A parameter list attached to the token (``varchar(255)``) is ignored.
    """
    base = _TYPE_PARAMS_RE.sub("", token.strip()).lower()
    return _DBML_TYPE_REVERSE.get(base)

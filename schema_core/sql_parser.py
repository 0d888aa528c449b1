"""
schema_core/sql_parser.py
-------------------------
Parses a batch of ``CREATE TABLE`` statements (PostgreSQL, MySQL or SQLite
flavoured) into the canonical diagram graph.

Supported input::

    CREATE TABLE IF NOT EXISTS "users" (
      id          SERIAL PRIMARY KEY,
      email       VARCHAR(255) NOT NULL UNIQUE,
      price       DECIMAL(10,2),
      team_id     INT REFERENCES teams(id),
      CONSTRAINT fk_org FOREIGN KEY (org_id) REFERENCES orgs(id),
      UNIQUE (email)
    );

Design Decisions:
    * The parser never raises. Anything it cannot use becomes a
      line-numbered :class:`ParseError` and parsing continues with the next
      statement, so callers always get a best-effort partial graph.
    * Regex is kept minimal and anchored; full SQL parsing is out of scope.
      Column definitions are split on commas at parenthesis depth zero so
      ``DECIMAL(10,2)`` stays intact.
    * Foreign keys pointing at an unknown table or column are dropped
      silently (logged at DEBUG only).
    * Duplicate table names: the last definition wins when resolving
      references.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field

from logger import get_logger
from schema_core.layout import grid_position
from schema_core.type_maps import is_sql_type_keyword, map_sql_type
from schema_models import (
    Column,
    ColumnConstraints,
    ParseError,
    ParseResult,
    Relationship,
    RelationType,
    SqlDialect,
    Table,
    generate_id,
)

log = get_logger(__name__)

_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT_RE = re.compile(r"--[^\n]*")

_CREATE_TABLE_START_RE = re.compile(r"CREATE\s+TABLE\b", re.IGNORECASE)
_CREATE_TABLE_RE = re.compile(
    r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?"
    r"(?:[\"'`]?\w+[\"'`]?\.)?"          # optional schema qualifier
    r"[\"'`]?(\w+)[\"'`]?\s*\(",
    re.IGNORECASE,
)

_PK_CONSTRAINT_RE = re.compile(r"^PRIMARY\s+KEY\s*\(([^)]+)\)", re.IGNORECASE)
_FK_CONSTRAINT_RE = re.compile(
    r"^FOREIGN\s+KEY\s*\(\s*([^)]+?)\s*\)\s*REFERENCES\s+([^\s(]+)\s*\(\s*([^)]+?)\s*\)",
    re.IGNORECASE,
)
_UNIQUE_CONSTRAINT_RE = re.compile(
    r"^UNIQUE(?:\s+(?:KEY|INDEX)(?:\s+[^\s(]+)?)?\s*\(([^)]+)\)", re.IGNORECASE
)
_CONSTRAINT_PREFIX_RE = re.compile(r"^CONSTRAINT\s+\S+\s+", re.IGNORECASE)
_INDEX_DEF_RE = re.compile(
    r"^(?:(?:FULLTEXT|SPATIAL)(?:\s+(?:KEY|INDEX))?|KEY|INDEX)"
    r"(?:\s+([^\s(]+))?\s*"                       # optional index name
    r"\((?:[^()]|\([^()]*\))*\)\s*"               # column list
    r"(?:USING\s+\w+\s*)?$",
    re.IGNORECASE,
)
_CHECK_DEF_RE = re.compile(r"^CHECK\s*\(", re.IGNORECASE)

_COLUMN_RE = re.compile(
    r"^(\"[^\"]+\"|`[^`]+`|'[^']+'|[^\s\"'`]+)\s+"   # name
    r"([A-Za-z_]\w*(?:\s*\([^)]*\))?)"              # type
    r"(.*)$",                                       # rest
    re.DOTALL,
)
_TABLE_OPTION_NAMES = frozenset({"ENGINE", "DEFAULT"})

_INLINE_PK_RE = re.compile(r"\bPRIMARY\s+KEY\b", re.IGNORECASE)
_INLINE_UNIQUE_RE = re.compile(r"\bUNIQUE\b", re.IGNORECASE)
_INLINE_NOT_NULL_RE = re.compile(r"\bNOT\s+NULL\b", re.IGNORECASE)
_AUTO_INCREMENT_RE = re.compile(r"\bAUTO_?INCREMENT\b", re.IGNORECASE)
_INLINE_REFERENCES_RE = re.compile(
    r"\bREFERENCES\s+([^\s(]+)\s*\(\s*([^)]+?)\s*\)", re.IGNORECASE
)


@dataclass
class _ForeignKeyRef:
    source_column: str
    referenced_table: str
    referenced_column: str


@dataclass
class _ParsedTable:
    name: str
    columns: list[Column] = field(default_factory=list)
    fk_refs: list[_ForeignKeyRef] = field(default_factory=list)


@dataclass
class _Definition:
    """Classification of one comma-separated item of a CREATE TABLE body."""
    column: Column | None = None
    fk_ref: _ForeignKeyRef | None = None
    pk_columns: list[str] = field(default_factory=list)
    unique_column: str | None = None


def parse_sql_ddl(sql: str, dialect: SqlDialect | str = SqlDialect.POSTGRESQL) -> ParseResult:
    """
    Parse SQL DDL text into tables, inferred relationships and diagnostics.

    Args:
        sql:     One or more ``;``-separated statements.
        dialect: Dialect label used in diagnostics (the grammar accepted is
                 the union of all three dialects).

    Returns:
        A :class:`ParseResult`. Empty or whitespace-only input yields an
        empty result with no errors.

    Raises:
        UnsupportedDialectError: If *dialect* is not a known dialect name.

    Example::

        result = parse_sql_ddl(
            "CREATE TABLE users(id INT PRIMARY KEY);"
            "CREATE TABLE posts(id INT PRIMARY KEY, user_id INT REFERENCES users(id));",
            "postgresql",
        )
        # result.relationships[0].relation_type == RelationType.ONE_TO_MANY
    """
    dialect = SqlDialect.parse(dialect)
    if not sql.strip():
        return ParseResult()

    cleaned = strip_comments(sql)
    parsed_tables: list[_ParsedTable] = []
    errors: list[ParseError] = []

    offset = 0
    for chunk in cleaned.split(";"):
        chunk_offset = offset
        offset += len(chunk) + 1
        stmt = chunk.strip()
        if not stmt:
            continue
        start = chunk_offset + (len(chunk) - len(chunk.lstrip()))
        line = cleaned.count("\n", 0, start) + 1

        if _CREATE_TABLE_START_RE.match(stmt):
            parsed = _parse_create_table(stmt)
            if parsed is None:
                errors.append(ParseError(
                    line, f"[{dialect.value}] Failed to parse CREATE TABLE statement near line {line}"
                ))
                continue
            parsed_tables.append(parsed)
            log.debug("Parsed table '%s' (%d column(s)) at line %d",
                      parsed.name, len(parsed.columns), line)
        else:
            errors.append(ParseError(
                line, f"[{dialect.value}] Unsupported statement near line {line}"
            ))

    tables = [
        Table(id=generate_id(), name=p.name, position=grid_position(i), columns=p.columns)
        for i, p in enumerate(parsed_tables)
    ]
    relationships = _build_relationships(parsed_tables, tables)

    log.info(
        "Parsed SQL DDL (%s): %d table(s), %d relationship(s), %d error(s).",
        dialect.value, len(tables), len(relationships), len(errors),
    )
    return ParseResult(tables=tables, relationships=relationships, errors=errors)


def strip_comments(sql: str) -> str:
    """Remove ``/* */`` and ``--`` comments; block comments keep their newlines."""
    without_blocks = _BLOCK_COMMENT_RE.sub(lambda m: "\n" * m.group(0).count("\n"), sql)
    return _LINE_COMMENT_RE.sub("", without_blocks)


def unquote_name(name: str) -> str:
    """Strip one pair of matching double, back or single quotes."""
    trimmed = name.strip()
    if len(trimmed) >= 2 and trimmed[0] == trimmed[-1] and trimmed[0] in "\"`'":
        return trimmed[1:-1]
    return trimmed


def _table_name(reference: str) -> str:
    """``public.users`` or ``"public"."users"`` → ``users``."""
    return unquote_name(reference.split(".")[-1])


def _is_index_definition(text: str) -> bool:
    """
    ``KEY idx (col)``, ``INDEX (col)``, ``FULLTEXT KEY ft (body)``.

    ``key INT(11)`` has the same shape, so a "name" that is a type keyword
    makes the line a column called ``key``.
    """
    match = _INDEX_DEF_RE.match(text)
    if not match:
        return False
    name = match.group(1)
    return name is None or not is_sql_type_keyword(name)


def split_definitions(body: str) -> list[str]:
    """Split a CREATE TABLE body on commas at parenthesis depth zero."""
    parts: list[str] = []
    depth = 0
    quote: str | None = None
    current: list[str] = []

    for char in body:
        if quote:
            if char == quote:
                quote = None
        elif char == "'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)

    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return [p for p in parts if p]


def _extract_body(stmt: str, open_idx: int) -> str | None:
    """Return the text between the '(' at *open_idx* and its matching ')'."""
    depth = 0
    for i in range(open_idx, len(stmt)):
        char = stmt[i]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return stmt[open_idx + 1:i]
    return None


def _parse_create_table(stmt: str) -> _ParsedTable | None:
    match = _CREATE_TABLE_RE.match(stmt)
    if not match:
        return None
    body = _extract_body(stmt, match.end() - 1)
    if body is None:
        return None

    table = _ParsedTable(name=match.group(1))
    pk_columns: list[str] = []
    unique_columns: list[str] = []

    for definition in split_definitions(body):
        parsed = _classify_definition(definition)
        if parsed.column:
            table.columns.append(parsed.column)
        if parsed.fk_ref:
            table.fk_refs.append(parsed.fk_ref)
        pk_columns.extend(parsed.pk_columns)
        if parsed.unique_column:
            unique_columns.append(parsed.unique_column)

    for pk_name in pk_columns:
        col = _find_column(table.columns, pk_name)
        if col:
            col.constraints.is_primary_key = True
            col.constraints.is_nullable = False
            col.constraints.is_unique = True

    for unique_name in unique_columns:
        col = _find_column(table.columns, unique_name)
        if col:
            col.constraints.is_unique = True

    return table


def _classify_definition(definition: str) -> _Definition:
    text = definition.strip()

    pk_match = _PK_CONSTRAINT_RE.match(text)
    if pk_match:
        return _Definition(pk_columns=[unquote_name(c) for c in pk_match.group(1).split(",")])

    fk_match = _FK_CONSTRAINT_RE.match(text)
    if fk_match:
        return _Definition(fk_ref=_ForeignKeyRef(
            source_column=unquote_name(fk_match.group(1)),
            referenced_table=_table_name(fk_match.group(2)),
            referenced_column=unquote_name(fk_match.group(3)),
        ))

    unique_match = _UNIQUE_CONSTRAINT_RE.match(text)
    if unique_match:
        names = [unquote_name(c) for c in unique_match.group(1).split(",")]
        # A composite UNIQUE does not make any single column unique.
        return _Definition(unique_column=names[0] if len(names) == 1 else None)

    constraint_match = _CONSTRAINT_PREFIX_RE.match(text)
    if constraint_match:
        return _classify_definition(text[constraint_match.end():])

    if _CHECK_DEF_RE.match(text) or _is_index_definition(text):
        return _Definition()

    return _Definition(*_parse_column(text))


def _parse_column(text: str) -> tuple[Column | None, _ForeignKeyRef | None]:
    match = _COLUMN_RE.match(text)
    if not match:
        return None, None

    name = unquote_name(match.group(1))
    if name.upper() in _TABLE_OPTION_NAMES:
        return None, None

    raw_type, rest = match.group(2), match.group(3)
    is_pk = bool(_INLINE_PK_RE.search(rest))
    is_unique = is_pk or bool(_INLINE_UNIQUE_RE.search(rest))
    is_not_null = is_pk or bool(_INLINE_NOT_NULL_RE.search(rest))
    if _AUTO_INCREMENT_RE.search(rest):
        log.debug("Column '%s' is auto-incrementing (%s)", name, raw_type)

    fk_ref = None
    ref_match = _INLINE_REFERENCES_RE.search(rest)
    if ref_match:
        fk_ref = _ForeignKeyRef(
            source_column=name,
            referenced_table=_table_name(ref_match.group(1)),
            referenced_column=unquote_name(ref_match.group(2)),
        )

    column = Column(
        id=generate_id(),
        name=name,
        type=map_sql_type(raw_type),
        constraints=ColumnConstraints(
            is_primary_key=is_pk,
            is_nullable=not is_not_null,
            is_unique=is_unique,
            is_foreign_key=fk_ref is not None,
        ),
    )
    return column, fk_ref


def _find_column(columns: list[Column], name: str) -> Column | None:
    for col in columns:
        if col.name.lower() == name.lower():
            return col
    return None


def _build_relationships(
    parsed_tables: list[_ParsedTable], tables: list[Table]
) -> list[Relationship]:
    """
    Turn collected foreign-key references into relationships.

    The referenced (parent) column becomes the source endpoint and the
    referencing column the target; a unique referencing column yields 1:1.
    """
    table_by_name = {t.name.lower(): t for t in tables}
    relationships: list[Relationship] = []

    for parsed, owner in zip(parsed_tables, tables):
        for ref in parsed.fk_refs:
            referenced_table = table_by_name.get(ref.referenced_table.lower())
            if referenced_table is None:
                log.debug("Dropping FK %s.%s → unknown table '%s'",
                          owner.name, ref.source_column, ref.referenced_table)
                continue
            referenced_col = referenced_table.find_column_by_name(ref.referenced_column)
            source_col = owner.find_column_by_name(ref.source_column)
            if referenced_col is None or source_col is None:
                log.debug("Dropping FK %s.%s → %s.%s: unknown column",
                          owner.name, ref.source_column,
                          ref.referenced_table, ref.referenced_column)
                continue

            source_col.constraints.is_foreign_key = True
            relation_type = (
                RelationType.ONE_TO_ONE if source_col.constraints.is_unique
                else RelationType.ONE_TO_MANY
            )
            relationships.append(Relationship(
                id=generate_id(),
                relation_type=relation_type,
                source_table_id=referenced_table.id,
                source_column_id=referenced_col.id,
                target_table_id=owner.id,
                target_column_id=source_col.id,
            ))

    return relationships

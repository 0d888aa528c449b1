"""
schema_core/sql_generator.py
----------------------------
Renders a :class:`DiagramSchema` as dialect-specific SQL DDL.

Output layout::

    CREATE TABLE <parents first> (...);     -- topological order
    CREATE TABLE <children> (...);
    CREATE TABLE <src>_<tgt> (...);         -- one junction table per N:M
    ALTER TABLE ... ADD CONSTRAINT ...;     -- PostgreSQL / MySQL only

Design Decisions:
    * Every dialect-dependent decision (type spelling, primary-key
      placement, foreign-key placement, table suffix) is made in one place
      per decision against the closed :class:`SqlDialect` enum.
    * SQLite cannot add constraints after the fact, so its 1:1 / 1:N foreign
      keys are inlined in the owning table's body instead of ALTER TABLE.
    * Junction tables always carry their foreign keys inline, whatever the
      dialect.
    * Relationships whose endpoints do not resolve are skipped, never an
      error.
"""
from __future__ import annotations

from collections import deque

from config import CONFIG
from logger import get_logger
from schema_core.type_maps import map_column_type
from schema_models import (
    Column,
    ColumnType,
    DiagramSchema,
    RelationType,
    Relationship,
    ResolvedRelationship,
    SqlDialect,
    Table,
)

log = get_logger(__name__)

_INDENT = "  "


def generate_sql(schema: DiagramSchema, dialect: SqlDialect | str = SqlDialect.POSTGRESQL) -> str:
    """
    Generate the full DDL script for *schema*.

    Args:
        schema:  The diagram to render.
        dialect: Target SQL dialect.

    Returns:
        The DDL text, statements separated by blank lines. An empty schema
        yields an empty string.

    Raises:
        UnsupportedDialectError: If *dialect* is not a known dialect name.
    """
    dialect = SqlDialect.parse(dialect)
    if not schema.tables:
        return ""

    parts: list[str] = []
    for table in topological_sort(schema.tables, schema.relationships):
        inline_fks = (
            _inline_foreign_keys(table, schema) if dialect == SqlDialect.SQLITE else []
        )
        parts.append(generate_create_table(table, dialect, inline_fks))

    for rel in schema.relationships:
        if rel.relation_type != RelationType.MANY_TO_MANY:
            continue
        resolved = schema.resolve(rel)
        if resolved is None:
            log.debug("Skipping N:M relationship '%s': unresolved endpoint", rel.id)
            continue
        parts.append(generate_junction_table(resolved, dialect))

    if dialect != SqlDialect.SQLITE:
        fk_sql = generate_foreign_keys(schema, dialect)
        if fk_sql:
            parts.append(fk_sql)

    log.info("Generated %s DDL for %d table(s).", dialect.value, len(schema.tables))
    return "\n\n".join(parts)


def generate_create_table(
    table: Table,
    dialect: SqlDialect | str,
    inline_fks: list[str] | None = None,
) -> str:
    """
    Render one ``CREATE TABLE`` statement.

    Args:
        table:      Table to render.
        dialect:    Target dialect.
        inline_fks: Extra ``FOREIGN KEY (...) REFERENCES ...`` clauses to
                    append to the body (SQLite).
    """
    dialect = SqlDialect.parse(dialect)
    lines: list[str] = []
    pk_columns: list[str] = []

    for col in table.columns:
        line, in_trailing_pk = _render_column(col, dialect)
        lines.append(line)
        if in_trailing_pk:
            pk_columns.append(col.name)

    if pk_columns:
        lines.append(f"{_INDENT}PRIMARY KEY ({', '.join(pk_columns)})")
    lines.extend(f"{_INDENT}{fk}" for fk in inline_fks or [])

    return _wrap_create_table(table.name, lines, dialect)


def _render_column(col: Column, dialect: SqlDialect) -> tuple[str, bool]:
    """Return the column line and whether it joins the trailing PRIMARY KEY list."""
    c = col.constraints
    is_serial_pk = col.type == ColumnType.SERIAL and c.is_primary_key
    sql_type = map_column_type(col.type, dialect)

    if dialect == SqlDialect.SQLITE and is_serial_pk:
        return f"{_INDENT}{col.name} INTEGER PRIMARY KEY AUTOINCREMENT", False
    if dialect == SqlDialect.MYSQL and is_serial_pk:
        return f"{_INDENT}{col.name} {sql_type} NOT NULL AUTO_INCREMENT", True

    parts = [f"{_INDENT}{col.name} {sql_type}"]
    in_trailing_pk = False
    if c.is_primary_key:
        if dialect == SqlDialect.POSTGRESQL:
            parts.append("PRIMARY KEY")
        else:
            in_trailing_pk = True
    if not c.is_nullable and not c.is_primary_key:
        parts.append("NOT NULL")
    if c.is_unique and not c.is_primary_key:
        parts.append("UNIQUE")
    return " ".join(parts), in_trailing_pk


def _wrap_create_table(name: str, lines: list[str], dialect: SqlDialect) -> str:
    body = ",\n".join(lines)
    if dialect == SqlDialect.MYSQL:
        suffix = (
            f") ENGINE={CONFIG.output.mysql_engine} "
            f"DEFAULT CHARSET={CONFIG.output.mysql_charset};"
        )
    else:
        suffix = ");"
    if not body:
        return f"CREATE TABLE {name} (\n{suffix}"
    return f"CREATE TABLE {name} (\n{body}\n{suffix}"


def _inline_foreign_keys(table: Table, schema: DiagramSchema) -> list[str]:
    """FOREIGN KEY clauses for the 1:1 / 1:N relationships *table* owns."""
    clauses: list[str] = []
    for rel in schema.relationships:
        if rel.relation_type == RelationType.MANY_TO_MANY or rel.target_table_id != table.id:
            continue
        resolved = schema.resolve(rel)
        if resolved is None:
            continue
        clauses.append(
            f"FOREIGN KEY ({resolved.target_column.name}) "
            f"REFERENCES {resolved.source_table.name}({resolved.source_column.name})"
        )
    return clauses


def generate_foreign_keys(schema: DiagramSchema, dialect: SqlDialect | str) -> str:
    """
    ``ALTER TABLE ... ADD CONSTRAINT`` statements for 1:1 / 1:N relationships.

    Returns an empty string for SQLite, whose keys are inlined instead.
    """
    dialect = SqlDialect.parse(dialect)
    if dialect == SqlDialect.SQLITE:
        return ""

    statements: list[str] = []
    for rel in schema.relationships:
        if rel.relation_type == RelationType.MANY_TO_MANY:
            continue
        resolved = schema.resolve(rel)
        if resolved is None:
            log.debug("Skipping relationship '%s': unresolved endpoint", rel.id)
            continue
        child, child_col = resolved.target_table, resolved.target_column
        statements.append(
            f"ALTER TABLE {child.name} ADD CONSTRAINT fk_{child.name}_{child_col.name}\n"
            f"{_INDENT}FOREIGN KEY ({child_col.name}) "
            f"REFERENCES {resolved.source_table.name}({resolved.source_column.name});"
        )
    return "\n\n".join(statements)


def generate_junction_table(resolved: ResolvedRelationship, dialect: SqlDialect | str) -> str:
    """
    Synthesize the link table for an N:M relationship.

    ``<source>_<target>`` with two NOT NULL id columns, a composite primary
    key, and both foreign keys inline.
    """
    dialect = SqlDialect.parse(dialect)
    source, target = resolved.source_table, resolved.target_table
    source_fk = f"{source.name}_id"
    target_fk = f"{target.name}_id"

    lines = [
        f"{_INDENT}{source_fk} {_key_type(resolved.source_column, dialect)} NOT NULL",
        f"{_INDENT}{target_fk} {_key_type(resolved.target_column, dialect)} NOT NULL",
        f"{_INDENT}PRIMARY KEY ({source_fk}, {target_fk})",
        f"{_INDENT}FOREIGN KEY ({source_fk}) REFERENCES {source.name}({resolved.source_column.name})",
        f"{_INDENT}FOREIGN KEY ({target_fk}) REFERENCES {target.name}({resolved.target_column.name})",
    ]
    return _wrap_create_table(f"{source.name}_{target.name}", lines, dialect)


def _key_type(col: Column, dialect: SqlDialect) -> str:
    # A referencing column is a plain integer, never another sequence.
    column_type = ColumnType.INT if col.type == ColumnType.SERIAL else col.type
    return map_column_type(column_type, dialect)


def topological_sort(tables: list[Table], relationships: list[Relationship]) -> list[Table]:
    """
    Order tables so each 1:1 / 1:N source precedes its target.

    Kahn's algorithm with a FIFO queue seeded in original order, so ties keep
    the input order. Tables left over because of cycles are appended in
    original order.
    """
    table_by_id = {t.id: t for t in tables}
    in_degree = {t.id: 0 for t in tables}
    adjacency: dict[str, list[str]] = {t.id: [] for t in tables}

    for rel in relationships:
        if rel.relation_type == RelationType.MANY_TO_MANY:
            continue
        if rel.source_table_id not in table_by_id or rel.target_table_id not in table_by_id:
            continue
        adjacency[rel.source_table_id].append(rel.target_table_id)
        in_degree[rel.target_table_id] += 1

    queue = deque(t.id for t in tables if in_degree[t.id] == 0)
    ordered: list[Table] = []
    seen: set[str] = set()

    while queue:
        current = queue.popleft()
        ordered.append(table_by_id[current])
        seen.add(current)
        for neighbour in adjacency[current]:
            in_degree[neighbour] -= 1
            if in_degree[neighbour] == 0:
                queue.append(neighbour)

    leftovers = [t for t in tables if t.id not in seen]
    if leftovers:
        log.debug("Dependency cycle among %s; keeping original order",
                  ", ".join(t.name for t in leftovers))
    return ordered + leftovers

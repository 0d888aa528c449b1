"""
schema_core/dbml_generator.py
-----------------------------
Renders a :class:`DiagramSchema` as DBML text that :func:`parse_dbml` reads
back with the same table names, column names, types, nullability and
relationship cardinalities.

Names that are not plain identifiers (``first name``) are double-quoted.
"""
from __future__ import annotations

import re

from schema_core.type_maps import dbml_type_name
from schema_models import Column, DiagramSchema, RelationType

_RELATION_SYMBOL: dict[RelationType, str] = {
    RelationType.ONE_TO_ONE: "-",
    RelationType.ONE_TO_MANY: "<",
    RelationType.MANY_TO_MANY: "<>",
}

_PLAIN_NAME_RE = re.compile(r"\w+")


def quote_name(name: str) -> str:
    """``first name`` → ``"first name"``; ``user_id`` is left bare."""
    return name if _PLAIN_NAME_RE.fullmatch(name) else f'"{name}"'


def _format_settings(col: Column) -> str:
    c = col.constraints
    tags: list[str] = []
    if c.is_primary_key:
        tags.append("pk")
    if c.is_unique and not c.is_primary_key:
        tags.append("unique")
    if c.is_nullable:
        tags.append("null")
    elif not c.is_primary_key:
        tags.append("not null")
    return f" [{', '.join(tags)}]" if tags else ""


def _endpoint(table_name: str, column_name: str) -> str:
    return f"{quote_name(table_name)}.{quote_name(column_name)}"


def generate_dbml(schema: DiagramSchema) -> str:
    """
    Render *schema* as DBML: one ``Table`` block per table, then one
    ``Ref:`` line per resolvable relationship. Empty schema → ``""``.
    """
    if not schema.tables:
        return ""

    blocks: list[str] = []
    for table in schema.tables:
        lines = [f"Table {quote_name(table.name)} {{"]
        lines.extend(
            f"  {quote_name(col.name)} {dbml_type_name(col.type)}{_format_settings(col)}"
            for col in table.columns
        )
        lines.append("}")
        blocks.append("\n".join(lines))

    for rel in schema.relationships:
        resolved = schema.resolve(rel)
        if resolved is None:
            continue
        blocks.append(
            f"Ref: {_endpoint(resolved.source_table.name, resolved.source_column.name)} "
            f"{_RELATION_SYMBOL[rel.relation_type]} "
            f"{_endpoint(resolved.target_table.name, resolved.target_column.name)}"
        )

    return "\n\n".join(blocks)

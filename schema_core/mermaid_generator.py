"""
schema_core/mermaid_generator.py
--------------------------------
Renders a :class:`DiagramSchema` as a Mermaid ``erDiagram``.
"""
from __future__ import annotations

import re

from schema_models import Column, DiagramSchema, RelationType

_RELATION_NOTATION: dict[RelationType, str] = {
    RelationType.ONE_TO_ONE: "||--||",
    RelationType.ONE_TO_MANY: "||--o{",
    RelationType.MANY_TO_MANY: "}o--o{",
}

_WHITESPACE_RE = re.compile(r"\s+")


def _entity_name(name: str) -> str:
    return _WHITESPACE_RE.sub("_", name).upper()


def _column_marker(col: Column) -> str:
    if col.constraints.is_primary_key:
        return " PK"
    if col.constraints.is_foreign_key:
        return " FK"
    return ""


def generate_mermaid_er(schema: DiagramSchema) -> str:
    """
    Example output::

        erDiagram
          USERS {
            serial id PK
          }
          USERS ||--o{ POSTS : "has"
    """
    if not schema.tables:
        return ""

    lines = ["erDiagram"]
    for table in schema.tables:
        lines.append(f"  {_entity_name(table.name)} {{")
        for col in table.columns:
            lines.append(f"    {col.type.value.lower()} {col.name}{_column_marker(col)}")
        lines.append("  }")

    name_by_id = {t.id: _entity_name(t.name) for t in schema.tables}
    for rel in schema.relationships:
        source = name_by_id.get(rel.source_table_id)
        target = name_by_id.get(rel.target_table_id)
        if source is None or target is None:
            continue
        lines.append(f'  {source} {_RELATION_NOTATION[rel.relation_type]} {target} : "has"')

    return "\n".join(lines)

"""
schema_core/typescript_generator.py
-----------------------------------
Renders one TypeScript ``type`` alias per table.
"""
from __future__ import annotations

import re

from schema_models import ColumnType, DiagramSchema

_TS_TYPES: dict[ColumnType, str] = {
    ColumnType.BIGINT: "number",
    ColumnType.BLOB: "Uint8Array",
    ColumnType.BOOLEAN: "boolean",
    ColumnType.DATE: "Date",
    ColumnType.DECIMAL: "number",
    ColumnType.FLOAT: "number",
    ColumnType.INT: "number",
    ColumnType.JSON: "Record<string, unknown>",
    ColumnType.SERIAL: "number",
    ColumnType.TEXT: "string",
    ColumnType.TIMESTAMP: "Date",
    ColumnType.UUID: "string",
    ColumnType.VARCHAR: "string",
}

_SNAKE_RE = re.compile(r"_([a-z])")
_WORD_SPLIT_RE = re.compile(r"[_\s-]+")


def snake_to_camel(name: str) -> str:
    """``created_at`` → ``createdAt``"""
    return _SNAKE_RE.sub(lambda m: m.group(1).upper(), name)


def to_pascal_case(name: str) -> str:
    """``user_profiles`` → ``UserProfiles``"""
    return "".join(part[:1].upper() + part[1:].lower() for part in _WORD_SPLIT_RE.split(name))


def generate_typescript(schema: DiagramSchema) -> str:
    if not schema.tables:
        return ""

    blocks: list[str] = []
    for table in schema.tables:
        lines = [f"export type {to_pascal_case(table.name)} = {{"]
        for col in table.columns:
            nullable = " | null" if col.constraints.is_nullable else ""
            lines.append(f"  {snake_to_camel(col.name)}: {_TS_TYPES[col.type]}{nullable}")
        lines.append("}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)

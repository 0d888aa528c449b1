"""
schema_core/json_schema_parser.py
---------------------------------
Imports the ``definitions`` (or ``$defs``) of a JSON Schema document as
diagram tables.

Mapping rules:
    * each definition → one table, each property → one column;
    * a property named ``id`` is the primary key;
    * a property with ``$ref: "#/definitions/<Name>"`` becomes an ``INT``
      foreign key and a 1:N relationship from ``<Name>``'s primary key
      (or first column);
    * properties are nullable unless listed in ``required``.
"""
from __future__ import annotations

import json
import re
from typing import Any

from logger import get_logger
from schema_core.layout import grid_position
from schema_models import (
    Column,
    ColumnConstraints,
    ColumnType,
    ParseError,
    ParseResult,
    Relationship,
    RelationType,
    Table,
    generate_id,
)

log = get_logger(__name__)

_JSON_TYPES: dict[str, ColumnType] = {
    "array": ColumnType.JSON,
    "boolean": ColumnType.BOOLEAN,
    "integer": ColumnType.INT,
    "number": ColumnType.FLOAT,
    "object": ColumnType.JSON,
    "string": ColumnType.VARCHAR,
}

_REF_RE = re.compile(r"#/(?:definitions|\$defs)/(.+)")


def resolve_ref_name(ref: str) -> str | None:
    """``"#/$defs/User"`` → ``"User"``; None for any other pointer."""
    match = _REF_RE.match(ref)
    return match.group(1) if match else None


def _map_property_type(prop: dict[str, Any]) -> ColumnType:
    if "$ref" in prop:
        return ColumnType.INT
    json_type = prop.get("type")
    if not isinstance(json_type, str):
        return ColumnType.TEXT
    return _JSON_TYPES.get(json_type, ColumnType.TEXT)


def parse_json_schema(document: dict[str, Any] | str) -> ParseResult:
    """
    Parse a JSON Schema document (dict or JSON text).

    Invalid JSON text yields a single diagnostic carrying the decoder's line
    number; a document without ``definitions``/``$defs`` yields an empty
    result.
    """
    if isinstance(document, str):
        if not document.strip():
            return ParseResult()
        try:
            document = json.loads(document)
        except json.JSONDecodeError as exc:
            return ParseResult(errors=[ParseError(exc.lineno, f"Invalid JSON: {exc.msg}")])

    if not isinstance(document, dict):
        return ParseResult()
    definitions = document.get("definitions", document.get("$defs"))
    if not isinstance(definitions, dict):
        return ParseResult()

    tables: list[Table] = []
    table_by_def: dict[str, Table] = {}
    errors: list[ParseError] = []

    for def_name, definition in definitions.items():
        if not isinstance(definition, dict):
            errors.append(ParseError(0, f'Skipped definition "{def_name}": not a valid object'))
            continue

        properties = definition.get("properties") or {}
        required_names = definition.get("required") or []
        if not isinstance(properties, dict):
            errors.append(ParseError(0, f'Skipped definition "{def_name}": "properties" must be an object'))
            continue
        if not isinstance(required_names, list) or not all(isinstance(r, str) for r in required_names):
            errors.append(ParseError(0, f'Skipped definition "{def_name}": "required" must be a list of names'))
            continue

        required = set(required_names)
        columns: list[Column] = []
        for prop_name, prop in properties.items():
            if not isinstance(prop, dict):
                continue
            is_pk = prop_name == "id"
            columns.append(Column(
                id=generate_id(),
                name=prop_name,
                type=_map_property_type(prop),
                constraints=ColumnConstraints(
                    is_primary_key=is_pk,
                    is_nullable=not is_pk and prop_name not in required,
                    is_unique=is_pk,
                    is_foreign_key="$ref" in prop,
                ),
            ))

        table = Table(
            id=generate_id(),
            name=def_name,
            position=grid_position(len(tables)),
            columns=columns,
        )
        tables.append(table)
        table_by_def[def_name] = table

    relationships: list[Relationship] = []
    for def_name, table in table_by_def.items():
        properties = definitions[def_name].get("properties") or {}
        for prop_name, prop in properties.items():
            if not isinstance(prop, dict) or not isinstance(prop.get("$ref"), str):
                continue
            ref_name = resolve_ref_name(prop["$ref"])
            referenced = table_by_def.get(ref_name) if ref_name else None
            if referenced is None or not referenced.columns:
                log.debug("Dropping $ref %s.%s → %s", def_name, prop_name, prop["$ref"])
                continue
            source_col = table.find_column_by_name(prop_name)
            target_col = next(
                (c for c in referenced.columns if c.constraints.is_primary_key),
                referenced.columns[0],
            )
            if source_col is None:
                continue
            relationships.append(Relationship(
                id=generate_id(),
                relation_type=RelationType.ONE_TO_MANY,
                source_table_id=referenced.id,
                source_column_id=target_col.id,
                target_table_id=table.id,
                target_column_id=source_col.id,
            ))

    log.info(
        "Parsed JSON Schema: %d table(s), %d relationship(s), %d error(s).",
        len(tables), len(relationships), len(errors),
    )
    return ParseResult(tables=tables, relationships=relationships, errors=errors)

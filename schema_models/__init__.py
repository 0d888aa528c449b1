"""schema_models/__init__.py"""
from schema_models.diagram import (
    COLUMN_TYPES,
    Column,
    ColumnConstraints,
    ColumnType,
    DiagramSchema,
    ParseError,
    ParseResult,
    Position,
    RelationType,
    Relationship,
    ResolvedRelationship,
    SchemaInterchangeError,
    SqlDialect,
    Table,
    UnsupportedDialectError,
    create_default_column,
    create_default_table,
    generate_id,
)

__all__ = [
    "COLUMN_TYPES",
    "Column",
    "ColumnConstraints",
    "ColumnType",
    "DiagramSchema",
    "ParseError",
    "ParseResult",
    "Position",
    "RelationType",
    "Relationship",
    "ResolvedRelationship",
    "SchemaInterchangeError",
    "SqlDialect",
    "Table",
    "UnsupportedDialectError",
    "create_default_column",
    "create_default_table",
    "generate_id",
]

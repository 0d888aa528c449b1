"""schema_core/__init__.py"""
from schema_core.dbml_generator import generate_dbml
from schema_core.dbml_parser import parse_dbml
from schema_core.json_schema_parser import parse_json_schema
from schema_core.layout import grid_layout_positions, grid_position
from schema_core.mermaid_generator import generate_mermaid_er
from schema_core.persistence import (
    CanvasEdge,
    CanvasNode,
    SchemaValidationError,
    ValidationResult,
    check_diagram_schema,
    deserialize_diagram,
    load_diagram_schema,
    serialize_diagram,
    validate_diagram_schema,
)
from schema_core.sql_generator import generate_sql, topological_sort
from schema_core.sql_parser import parse_sql_ddl
from schema_core.type_maps import lookup_dbml_type, map_column_type, map_sql_type
from schema_core.typescript_generator import generate_typescript

__all__ = [
    "generate_dbml",
    "parse_dbml",
    "parse_json_schema",
    "grid_layout_positions",
    "grid_position",
    "generate_mermaid_er",
    "CanvasEdge",
    "CanvasNode",
    "SchemaValidationError",
    "ValidationResult",
    "check_diagram_schema",
    "deserialize_diagram",
    "load_diagram_schema",
    "serialize_diagram",
    "validate_diagram_schema",
    "generate_sql",
    "topological_sort",
    "parse_sql_ddl",
    "lookup_dbml_type",
    "map_column_type",
    "map_sql_type",
    "generate_typescript",
]

"""
schema_core/persistence.py
--------------------------
Boundary between the canonical :class:`DiagramSchema` and the canvas
editor's node/edge graph, plus validation of untrusted diagram JSON.

Canvas handles:
    The canvas only accepts strings as edge endpoints, so a column endpoint
    is flattened to ``"<tableId>-<columnId>-source"`` (or ``-target``).
    Ids may themselves contain ``-``, so a handle is never split; instead
    the expected handle is rebuilt for each column of the owning node and
    compared exactly.

Validation:
    :func:`check_diagram_schema` validates structure with pydantic models,
    then checks referential integrity as a second pass, and reports the
    first violation. :func:`validate_diagram_schema` is the boolean form;
    neither raises.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Literal, NamedTuple, Union

from pydantic import BaseModel, StrictFloat, StrictInt, StrictStr, ValidationError

from logger import get_logger
from schema_models import (
    Column,
    DiagramSchema,
    Position,
    RelationType,
    Relationship,
    SchemaInterchangeError,
    Table,
)

log = get_logger(__name__)

TABLE_NODE_TYPE = "tableNode"
RELATIONSHIP_EDGE_TYPE = "relationship"

HandleSide = Literal["source", "target"]

# Behaviour hooks the canvas attaches to each table node.
NODE_HOOK_NAMES: tuple[str, ...] = (
    "on_add_column",
    "on_column_change",
    "on_delete_column",
    "on_delete_table",
    "on_table_name_change",
)


class SchemaValidationError(SchemaInterchangeError):
    """Raised by :func:`load_diagram_schema` for data that fails validation."""


# ---------------------------------------------------------------------------
# Canvas graph
# ---------------------------------------------------------------------------

def _noop(*_args: Any, **_kwargs: Any) -> None:
    return None


@dataclass
class CanvasNode:
    """A table as the canvas holds it: table data plus behaviour hooks."""
    id: str
    table_name: str
    position: Position = field(default_factory=Position)
    columns: list[Column] = field(default_factory=list)
    hooks: dict[str, Callable[..., Any]] = field(default_factory=dict)
    type: str = TABLE_NODE_TYPE

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "CanvasNode":
        """Build a node from the canvas's JSON shape (``{id, position, data: {...}}``)."""
        node_data = data.get("data", {})
        pos = data.get("position", {})
        return CanvasNode(
            id=data["id"],
            table_name=node_data.get("tableName", ""),
            position=Position(x=pos.get("x", 0), y=pos.get("y", 0)),
            columns=[Column.from_dict(c) for c in node_data.get("columns", [])],
            hooks={k: v for k, v in node_data.items() if callable(v)},
            type=data.get("type", TABLE_NODE_TYPE),
        )


@dataclass
class CanvasEdge:
    """A relationship as the canvas holds it; endpoints are handle strings."""
    id: str
    source: str
    target: str
    source_handle: str | None = None
    target_handle: str | None = None
    relation_type: RelationType | None = None
    type: str = RELATIONSHIP_EDGE_TYPE

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "CanvasEdge":
        edge_data = data.get("data") or {}
        raw_type = edge_data.get("relationType")
        return CanvasEdge(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            source_handle=data.get("sourceHandle"),
            target_handle=data.get("targetHandle"),
            relation_type=RelationType(raw_type) if raw_type else None,
            type=data.get("type", RELATIONSHIP_EDGE_TYPE),
        )


def build_handle(table_id: str, column_id: str, side: HandleSide) -> str:
    """Flatten a (table, column) endpoint into the canvas's handle string."""
    return f"{table_id}-{column_id}-{side}"


def resolve_handle(node: CanvasNode | None, handle: str | None, side: HandleSide) -> str:
    """
    Return the id of the column of *node* whose handle equals *handle*.

    Returns an empty string when nothing matches.
    """
    if node is None or not handle:
        return ""
    for col in node.columns:
        if build_handle(node.id, col.id, side) == handle:
            return col.id
    return ""


def serialize_diagram(
    nodes: list[CanvasNode | dict[str, Any]],
    edges: list[CanvasEdge | dict[str, Any]],
) -> DiagramSchema:
    """
    Convert the canvas graph to a :class:`DiagramSchema`.

    Behaviour hooks are dropped; only id, name, position and columns are
    kept. Edges without a relationship type are not relationships and are
    skipped.
    """
    canvas_nodes = [n if isinstance(n, CanvasNode) else CanvasNode.from_dict(n) for n in nodes]
    canvas_edges = [e if isinstance(e, CanvasEdge) else CanvasEdge.from_dict(e) for e in edges]
    node_by_id = {n.id: n for n in canvas_nodes}

    tables = [
        Table(
            id=node.id,
            name=node.table_name,
            position=Position(x=node.position.x, y=node.position.y),
            columns=[Column.from_dict(c.to_dict()) for c in node.columns],
        )
        for node in canvas_nodes
    ]

    relationships: list[Relationship] = []
    for edge in canvas_edges:
        if edge.relation_type is None:
            continue
        source_col = resolve_handle(node_by_id.get(edge.source), edge.source_handle, "source")
        target_col = resolve_handle(node_by_id.get(edge.target), edge.target_handle, "target")
        if not source_col or not target_col:
            log.warning("Edge '%s' has an unresolvable handle (%s → %s)",
                        edge.id, edge.source_handle, edge.target_handle)
        relationships.append(Relationship(
            id=edge.id,
            relation_type=edge.relation_type,
            source_table_id=edge.source,
            source_column_id=source_col,
            target_table_id=edge.target,
            target_column_id=target_col,
        ))

    return DiagramSchema(tables=tables, relationships=relationships)


def deserialize_diagram(schema: DiagramSchema) -> tuple[list[CanvasNode], list[CanvasEdge]]:
    """
    Convert a :class:`DiagramSchema` to canvas nodes and edges.

    Nodes receive inert placeholder hooks for the editor to rewire.
    """
    nodes = [
        CanvasNode(
            id=table.id,
            table_name=table.name,
            position=Position(x=table.position.x, y=table.position.y),
            columns=[Column.from_dict(c.to_dict()) for c in table.columns],
            hooks={name: _noop for name in NODE_HOOK_NAMES},
        )
        for table in schema.tables
    ]
    edges = [
        CanvasEdge(
            id=rel.id,
            source=rel.source_table_id,
            target=rel.target_table_id,
            source_handle=build_handle(rel.source_table_id, rel.source_column_id, "source"),
            target_handle=build_handle(rel.target_table_id, rel.target_column_id, "target"),
            relation_type=rel.relation_type,
        )
        for rel in schema.relationships
    ]
    return nodes, edges


# ---------------------------------------------------------------------------
# Untrusted input validation
# ---------------------------------------------------------------------------
_Number = Union[StrictInt, StrictFloat]
_ColumnTypeName = Literal[
    "INT", "BIGINT", "SERIAL", "VARCHAR", "TEXT", "BOOLEAN", "DATE",
    "TIMESTAMP", "FLOAT", "DECIMAL", "UUID", "JSON", "BLOB",
]
_RelationTypeName = Literal["1:1", "1:N", "N:M"]


class _PositionPayload(BaseModel):
    x: _Number
    y: _Number


class _ColumnPayload(BaseModel):
    id: StrictStr
    name: StrictStr
    type: _ColumnTypeName
    constraints: dict[str, Any]


class _TablePayload(BaseModel):
    id: StrictStr
    name: StrictStr
    position: _PositionPayload
    columns: list[_ColumnPayload]


class _RelationshipPayload(BaseModel):
    id: StrictStr
    relationType: _RelationTypeName
    sourceTableId: StrictStr
    sourceColumnId: StrictStr
    targetTableId: StrictStr
    targetColumnId: StrictStr


class _DiagramPayload(BaseModel):
    tables: list[_TablePayload]
    relationships: list[_RelationshipPayload]


class ValidationResult(NamedTuple):
    """Outcome of :func:`check_diagram_schema`; ``error`` is the first violation."""
    ok: bool
    error: str | None = None


def check_diagram_schema(data: Any) -> ValidationResult:
    """
    Validate untrusted diagram JSON (already decoded).

    Structure first (shape and field types), then referential integrity:
    every relationship endpoint must name an existing table and a column
    of that table.
    """
    if not isinstance(data, dict):
        return ValidationResult(False, "Diagram must be a JSON object")
    try:
        payload = _DiagramPayload.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        return ValidationResult(False, f"{location}: {first['msg']}")

    columns_by_table = {t.id: {c.id for c in t.columns} for t in payload.tables}
    for rel in payload.relationships:
        for side, table_id, column_id in (
            ("source", rel.sourceTableId, rel.sourceColumnId),
            ("target", rel.targetTableId, rel.targetColumnId),
        ):
            if table_id not in columns_by_table:
                return ValidationResult(
                    False, f"Relationship '{rel.id}': unknown {side} table '{table_id}'"
                )
            if column_id not in columns_by_table[table_id]:
                return ValidationResult(
                    False, f"Relationship '{rel.id}': unknown {side} column '{column_id}'"
                )

    return ValidationResult(True)


def validate_diagram_schema(data: Any) -> bool:
    """True if *data* is a structurally valid, referentially intact diagram."""
    result = check_diagram_schema(data)
    if not result.ok:
        log.debug("Diagram rejected: %s", result.error)
    return result.ok


def load_diagram_schema(data: Any) -> DiagramSchema:
    """
    Validate untrusted *data* and build a :class:`DiagramSchema` from it.

    Raises:
        SchemaValidationError: With the first violation found.
    """
    result = check_diagram_schema(data)
    if not result.ok:
        raise SchemaValidationError(result.error)
    return DiagramSchema.from_dict(data)

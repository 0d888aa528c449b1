"""
tests/test_persistence.py
-------------------------
Unit tests for schema_core/persistence.py: canvas conversion and diagram
JSON validation.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import copy
from typing import Any

import pytest

from schema_core.persistence import (
    NODE_HOOK_NAMES,
    CanvasEdge,
    CanvasNode,
    SchemaValidationError,
    build_handle,
    check_diagram_schema,
    deserialize_diagram,
    load_diagram_schema,
    resolve_handle,
    serialize_diagram,
    validate_diagram_schema,
)
from schema_models import (
    Column,
    ColumnConstraints,
    ColumnType,
    DiagramSchema,
    Position,
    RelationType,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def diagram_json() -> dict[str, Any]:
    return {
        "tables": [
            {
                "id": "1700000000000-1-abc123",
                "name": "users",
                "position": {"x": 0, "y": 0},
                "columns": [
                    {
                        "id": "1700000000000-2-def456",
                        "name": "id",
                        "type": "SERIAL",
                        "constraints": {
                            "isPrimaryKey": True, "isNullable": False,
                            "isUnique": True, "isForeignKey": False,
                        },
                    },
                ],
            },
            {
                "id": "1700000000000-3-ghi789",
                "name": "posts",
                "position": {"x": 300.5, "y": 0},
                "columns": [
                    {
                        "id": "1700000000000-4-jkl012",
                        "name": "user_id",
                        "type": "INT",
                        "constraints": {
                            "isPrimaryKey": False, "isNullable": False,
                            "isUnique": False, "isForeignKey": True,
                        },
                    },
                ],
            },
        ],
        "relationships": [
            {
                "id": "rel-1",
                "relationType": "1:N",
                "sourceTableId": "1700000000000-1-abc123",
                "sourceColumnId": "1700000000000-2-def456",
                "targetTableId": "1700000000000-3-ghi789",
                "targetColumnId": "1700000000000-4-jkl012",
            },
        ],
    }


@pytest.fixture
def schema(diagram_json: dict[str, Any]) -> DiagramSchema:
    return DiagramSchema.from_dict(diagram_json)


# ---------------------------------------------------------------------------
# Handles
# ---------------------------------------------------------------------------

class TestHandles:
    def test_build_handle(self) -> None:
        assert build_handle("t-1", "c-2", "source") == "t-1-c-2-source"

    def test_resolve_handle_with_dashed_ids(self) -> None:
        node = CanvasNode(id="1700-1-aa", table_name="t", columns=[
            Column("1700-2-bb", "a", ColumnType.INT),
            Column("1700-3-cc", "b", ColumnType.INT),
        ])
        handle = build_handle(node.id, "1700-3-cc", "target")
        assert resolve_handle(node, handle, "target") == "1700-3-cc"

    def test_resolve_handle_side_must_match(self) -> None:
        node = CanvasNode(id="t", table_name="t", columns=[Column("c", "a", ColumnType.INT)])
        assert resolve_handle(node, build_handle("t", "c", "source"), "target") == ""

    @pytest.mark.parametrize("handle", [None, "", "t-missing-source"])
    def test_resolve_handle_no_match(self, handle: str | None) -> None:
        node = CanvasNode(id="t", table_name="t", columns=[Column("c", "a", ColumnType.INT)])
        assert resolve_handle(node, handle, "source") == ""

    def test_resolve_handle_without_node(self) -> None:
        assert resolve_handle(None, "t-c-source", "source") == ""


# ---------------------------------------------------------------------------
# Canvas conversion
# ---------------------------------------------------------------------------

class TestCanvasConversion:
    def test_deserialize_builds_nodes_and_edges(self, schema: DiagramSchema) -> None:
        nodes, edges = deserialize_diagram(schema)
        assert [n.table_name for n in nodes] == ["users", "posts"]
        assert nodes[1].position == Position(300.5, 0)
        assert set(nodes[0].hooks) == set(NODE_HOOK_NAMES)
        assert all(callable(h) for h in nodes[0].hooks.values())

        edge = edges[0]
        assert edge.source == "1700000000000-1-abc123"
        assert edge.source_handle == "1700000000000-1-abc123-1700000000000-2-def456-source"
        assert edge.target_handle == "1700000000000-3-ghi789-1700000000000-4-jkl012-target"
        assert edge.relation_type == RelationType.ONE_TO_MANY

    def test_round_trip(self, schema: DiagramSchema) -> None:
        nodes, edges = deserialize_diagram(schema)
        assert serialize_diagram(nodes, edges) == schema

    def test_round_trip_does_not_share_columns(self, schema: DiagramSchema) -> None:
        nodes, edges = deserialize_diagram(schema)
        nodes[0].columns[0].name = "renamed"
        assert schema.tables[0].columns[0].name == "id"

    def test_serialize_strips_hooks_from_dicts(self, diagram_json: dict[str, Any]) -> None:
        table = diagram_json["tables"][0]
        node = {
            "id": table["id"],
            "type": "tableNode",
            "position": table["position"],
            "data": {
                "tableName": table["name"],
                "columns": table["columns"],
                "onAddColumn": lambda: None,
                "onDeleteTable": lambda: None,
            },
        }
        result = serialize_diagram([node], [])
        assert result.to_dict() == {"relationships": [], "tables": [table]}

    def test_serialize_edge_dicts(self, diagram_json: dict[str, Any]) -> None:
        schema = DiagramSchema.from_dict(diagram_json)
        nodes, _ = deserialize_diagram(schema)
        rel = diagram_json["relationships"][0]
        edge = {
            "id": rel["id"],
            "source": rel["sourceTableId"],
            "target": rel["targetTableId"],
            "sourceHandle": build_handle(rel["sourceTableId"], rel["sourceColumnId"], "source"),
            "targetHandle": build_handle(rel["targetTableId"], rel["targetColumnId"], "target"),
            "data": {"relationType": "1:N"},
        }
        result = serialize_diagram(nodes, [edge])
        assert result.relationships == schema.relationships

    def test_edges_without_relation_type_skipped(self, schema: DiagramSchema) -> None:
        nodes, edges = deserialize_diagram(schema)
        stray = CanvasEdge(id="e", source=nodes[0].id, target=nodes[1].id)
        result = serialize_diagram(nodes, edges + [stray])
        assert [r.id for r in result.relationships] == ["rel-1"]

    def test_unresolvable_handle_gives_empty_column_id(self, schema: DiagramSchema) -> None:
        nodes, edges = deserialize_diagram(schema)
        edges[0].target_handle = "nope"
        result = serialize_diagram(nodes, edges)
        assert result.relationships[0].target_column_id == ""
        assert result.relationships[0].source_column_id == "1700000000000-2-def456"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidation:
    def test_valid(self, diagram_json: dict[str, Any]) -> None:
        assert validate_diagram_schema(diagram_json)
        assert check_diagram_schema(diagram_json).ok

    def test_empty_diagram_is_valid(self) -> None:
        assert validate_diagram_schema({"tables": [], "relationships": []})

    @pytest.mark.parametrize("data", [None, "diagram", 42, [], {"tables": []}, {"relationships": []}])
    def test_rejects_wrong_top_level(self, data: Any) -> None:
        assert not validate_diagram_schema(data)

    def test_non_object_message(self) -> None:
        assert check_diagram_schema("x").error == "Diagram must be a JSON object"

    @pytest.mark.parametrize("mutate", [
        lambda d: d["tables"][0].pop("position"),
        lambda d: d["tables"][0]["position"].update(x="10"),
        lambda d: d["tables"][0].update(name=None),
        lambda d: d["tables"][0]["columns"][0].update(type="MONEY"),
        lambda d: d["tables"][0]["columns"][0].update(constraints=[]),
        lambda d: d["relationships"][0].update(relationType="M:N"),
        lambda d: d["relationships"][0].pop("targetColumnId"),
    ])
    def test_rejects_bad_structure(self, diagram_json: dict[str, Any], mutate) -> None:
        data = copy.deepcopy(diagram_json)
        mutate(data)
        assert not validate_diagram_schema(data)

    def test_rejects_unknown_table(self, diagram_json: dict[str, Any]) -> None:
        diagram_json["relationships"][0]["targetTableId"] = "ghost"
        result = check_diagram_schema(diagram_json)
        assert not result.ok
        assert "unknown target table" in result.error

    def test_rejects_column_of_other_table(self, diagram_json: dict[str, Any]) -> None:
        # column exists, but in the source table, not the target table
        diagram_json["relationships"][0]["targetColumnId"] = "1700000000000-2-def456"
        result = check_diagram_schema(diagram_json)
        assert not result.ok
        assert "unknown target column" in result.error

    def test_load_returns_schema(self, diagram_json: dict[str, Any]) -> None:
        schema = load_diagram_schema(diagram_json)
        assert schema.tables[0].columns[0].type == ColumnType.SERIAL
        assert schema.tables[0].columns[0].constraints == ColumnConstraints(
            is_primary_key=True, is_nullable=False, is_unique=True, is_foreign_key=False,
        )

    def test_load_raises(self) -> None:
        with pytest.raises(SchemaValidationError):
            load_diagram_schema({"tables": "nope", "relationships": []})

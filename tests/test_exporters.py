"""
tests/test_exporters.py
-----------------------
Unit tests for the JSON Schema importer and the Mermaid / TypeScript
exporters.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import json

import pytest

from schema_core.json_schema_parser import parse_json_schema, resolve_ref_name
from schema_core.mermaid_generator import generate_mermaid_er
from schema_core.typescript_generator import (
    generate_typescript,
    snake_to_camel,
    to_pascal_case,
)
from schema_models import (
    Column,
    ColumnConstraints,
    ColumnType,
    DiagramSchema,
    Relationship,
    RelationType,
    Table,
)


@pytest.fixture
def shop_schema() -> DiagramSchema:
    customers = Table(id="t1", name="customers", columns=[
        Column("c1", "id", ColumnType.SERIAL,
               ColumnConstraints(is_primary_key=True, is_nullable=False, is_unique=True)),
        Column("c2", "full_name", ColumnType.VARCHAR, ColumnConstraints(is_nullable=False)),
        Column("c3", "created_at", ColumnType.TIMESTAMP),
    ])
    orders = Table(id="t2", name="order items", columns=[
        Column("o1", "id", ColumnType.INT,
               ColumnConstraints(is_primary_key=True, is_nullable=False, is_unique=True)),
        Column("o2", "customer_id", ColumnType.INT,
               ColumnConstraints(is_nullable=False, is_foreign_key=True)),
        Column("o3", "meta", ColumnType.JSON),
    ])
    return DiagramSchema(
        tables=[customers, orders],
        relationships=[
            Relationship("r1", RelationType.ONE_TO_MANY, "t1", "c1", "t2", "o2"),
        ],
    )


# ---------------------------------------------------------------------------
# JSON Schema import
# ---------------------------------------------------------------------------

class TestParseJsonSchema:
    DOCUMENT = {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "definitions": {
            "User": {
                "type": "object",
                "required": ["email"],
                "properties": {
                    "id": {"type": "integer"},
                    "email": {"type": "string"},
                    "score": {"type": "number"},
                    "active": {"type": "boolean"},
                    "tags": {"type": "array"},
                    "nickname": {"type": ["string", "null"]},
                },
            },
            "Post": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer"},
                    "author": {"$ref": "#/definitions/User"},
                    "editor": {"$ref": "#/definitions/Ghost"},
                },
            },
        },
    }

    def test_tables_and_types(self) -> None:
        result = parse_json_schema(self.DOCUMENT)
        assert result.errors == []
        user, post = result.tables
        assert user.name == "User"
        types = {c.name: c.type for c in user.columns}
        assert types == {
            "id": ColumnType.INT,
            "email": ColumnType.VARCHAR,
            "score": ColumnType.FLOAT,
            "active": ColumnType.BOOLEAN,
            "tags": ColumnType.JSON,
            "nickname": ColumnType.TEXT,
        }
        assert user.columns[0].constraints.is_primary_key
        assert not user.find_column_by_name("email").constraints.is_nullable
        assert user.find_column_by_name("score").constraints.is_nullable
        assert post.find_column_by_name("author").type == ColumnType.INT

    def test_refs_become_relationships(self) -> None:
        result = parse_json_schema(self.DOCUMENT)
        user, post = result.tables
        assert len(result.relationships) == 1
        rel = result.relationships[0]
        assert rel.relation_type == RelationType.ONE_TO_MANY
        assert rel.source_table_id == user.id
        assert rel.source_column_id == user.columns[0].id
        assert rel.target_column_id == post.find_column_by_name("author").id

    def test_accepts_json_text_and_defs(self) -> None:
        text = json.dumps({"$defs": {"Tag": {"properties": {"label": {"type": "string"}}}}})
        result = parse_json_schema(text)
        assert [t.name for t in result.tables] == ["Tag"]

    def test_invalid_json_reports_line(self) -> None:
        result = parse_json_schema('{\n  "definitions": {,\n}')
        assert result.tables == []
        assert len(result.errors) == 1
        assert result.errors[0].line == 2
        assert "Invalid JSON" in result.errors[0].message

    def test_non_object_definition_is_skipped(self) -> None:
        result = parse_json_schema({"definitions": {"Bad": 42, "Good": {"properties": {}}}})
        assert [t.name for t in result.tables] == ["Good"]
        assert "Bad" in result.errors[0].message

    @pytest.mark.parametrize("definition, field_name", [
        ({"properties": [{"name": "id"}]}, "properties"),
        ({"properties": "id"}, "properties"),
        ({"properties": {"id": {"type": "integer"}}, "required": 5}, "required"),
        ({"properties": {"id": {"type": "integer"}}, "required": "id"}, "required"),
        ({"properties": {"id": {"type": "integer"}}, "required": [["id"]]}, "required"),
    ])
    def test_malformed_definition_is_skipped(self, definition: dict, field_name: str) -> None:
        result = parse_json_schema({
            "definitions": {
                "User": {"properties": {"id": {"type": "integer"}}},
                "Broken": definition,
            },
        })
        assert [t.name for t in result.tables] == ["User"]
        assert len(result.errors) == 1
        assert result.errors[0].line == 0
        assert "Broken" in result.errors[0].message
        assert f'"{field_name}"' in result.errors[0].message

    def test_ref_to_malformed_definition_is_dropped(self) -> None:
        result = parse_json_schema({
            "definitions": {
                "Broken": {"properties": {"id": {"type": "integer"}}, "required": 5},
                "Post": {"properties": {"owner": {"$ref": "#/definitions/Broken"}}},
            },
        })
        assert [t.name for t in result.tables] == ["Post"]
        assert result.relationships == []

    @pytest.mark.parametrize("document", ["", {}, {"definitions": []}, []])
    def test_nothing_to_import(self, document: object) -> None:
        result = parse_json_schema(document)
        assert result.tables == []
        assert result.errors == []

    @pytest.mark.parametrize("ref, expected", [
        ("#/definitions/User", "User"),
        ("#/$defs/Post", "Post"),
        ("https://example.com/schema.json", None),
    ])
    def test_resolve_ref_name(self, ref: str, expected: str | None) -> None:
        assert resolve_ref_name(ref) == expected


# ---------------------------------------------------------------------------
# Mermaid
# ---------------------------------------------------------------------------

class TestMermaid:
    def test_empty(self) -> None:
        assert generate_mermaid_er(DiagramSchema()) == ""

    def test_entities_and_relationship(self, shop_schema: DiagramSchema) -> None:
        mermaid = generate_mermaid_er(shop_schema)
        lines = mermaid.splitlines()
        assert lines[0] == "erDiagram"
        assert "  CUSTOMERS {" in lines
        assert "    serial id PK" in lines
        assert "    varchar full_name" in lines
        assert "  ORDER_ITEMS {" in lines
        assert "    int customer_id FK" in lines
        assert lines[-1] == '  CUSTOMERS ||--o{ ORDER_ITEMS : "has"'

    @pytest.mark.parametrize("relation_type, notation", [
        (RelationType.ONE_TO_ONE, "||--||"),
        (RelationType.MANY_TO_MANY, "}o--o{"),
    ])
    def test_notation(self, shop_schema: DiagramSchema, relation_type: RelationType, notation: str) -> None:
        shop_schema.relationships[0].relation_type = relation_type
        assert f"CUSTOMERS {notation} ORDER_ITEMS" in generate_mermaid_er(shop_schema)


# ---------------------------------------------------------------------------
# TypeScript
# ---------------------------------------------------------------------------

class TestTypeScript:
    def test_empty(self) -> None:
        assert generate_typescript(DiagramSchema()) == ""

    def test_types(self, shop_schema: DiagramSchema) -> None:
        ts = generate_typescript(shop_schema)
        assert (
            "export type Customers = {\n"
            "  id: number\n"
            "  fullName: string\n"
            "  createdAt: Date | null\n"
            "}"
        ) in ts
        assert "export type OrderItems = {" in ts
        assert "  meta: Record<string, unknown> | null" in ts

    @pytest.mark.parametrize("name, expected", [
        ("created_at", "createdAt"),
        ("id", "id"),
        ("user_profile_id", "userProfileId"),
    ])
    def test_snake_to_camel(self, name: str, expected: str) -> None:
        assert snake_to_camel(name) == expected

    @pytest.mark.parametrize("name, expected", [
        ("users", "Users"),
        ("user_profiles", "UserProfiles"),
        ("order items", "OrderItems"),
    ])
    def test_to_pascal_case(self, name: str, expected: str) -> None:
        assert to_pascal_case(name) == expected

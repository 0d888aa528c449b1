"""
tests/test_models.py
--------------------
Unit tests for schema_models/diagram.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import pytest

from schema_models import (
    COLUMN_TYPES,
    Column,
    ColumnType,
    DiagramSchema,
    ParseError,
    ParseResult,
    Relationship,
    RelationType,
    SqlDialect,
    Table,
    UnsupportedDialectError,
    create_default_column,
    create_default_table,
    generate_id,
)


class TestEnums:
    def test_column_types(self) -> None:
        assert [t.value for t in COLUMN_TYPES] == [
            "INT", "BIGINT", "SERIAL", "VARCHAR", "TEXT", "BOOLEAN", "DATE",
            "TIMESTAMP", "FLOAT", "DECIMAL", "UUID", "JSON", "BLOB",
        ]

    def test_relation_type_values(self) -> None:
        assert RelationType("1:N") is RelationType.ONE_TO_MANY
        assert RelationType.MANY_TO_MANY.value == "N:M"

    @pytest.mark.parametrize("value, expected", [
        ("postgresql", SqlDialect.POSTGRESQL),
        (" MySQL ", SqlDialect.MYSQL),
        (SqlDialect.SQLITE, SqlDialect.SQLITE),
    ])
    def test_dialect_parse(self, value: str, expected: SqlDialect) -> None:
        assert SqlDialect.parse(value) is expected

    def test_dialect_parse_rejects_unknown(self) -> None:
        with pytest.raises(UnsupportedDialectError, match="oracle"):
            SqlDialect.parse("oracle")


class TestIds:
    def test_unique(self) -> None:
        ids = {generate_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_shape(self) -> None:
        millis, counter, suffix = generate_id().split("-")
        assert millis.isdigit() and counter.isdigit()
        assert len(suffix) == 6


class TestDefaults:
    def test_default_primary_key_column(self) -> None:
        col = create_default_column("id", is_primary_key=True)
        assert col.type == ColumnType.INT
        assert col.constraints.is_primary_key
        assert col.constraints.is_unique
        assert not col.constraints.is_nullable

    def test_default_column(self) -> None:
        col = create_default_column()
        assert col.name == "column"
        assert col.type == ColumnType.VARCHAR
        assert col.constraints.is_nullable
        assert not col.constraints.is_primary_key

    def test_default_table(self) -> None:
        table = create_default_table(2)
        assert table.name == "table_3"
        assert [c.name for c in table.columns] == ["id"]
        assert table.primary_key_columns == table.columns


class TestDiagramSchema:
    @pytest.fixture
    def schema(self) -> DiagramSchema:
        return DiagramSchema(
            tables=[
                Table(id="a", name="A", columns=[Column("a1", "id", ColumnType.INT)]),
                Table(id="b", name="B", columns=[Column("b1", "a_id", ColumnType.INT)]),
            ],
            relationships=[
                Relationship("r", RelationType.ONE_TO_MANY, "a", "a1", "b", "b1"),
                Relationship("x", RelationType.ONE_TO_MANY, "a", "a1", "b", "zz"),
            ],
        )

    def test_resolve(self, schema: DiagramSchema) -> None:
        resolved = schema.resolve(schema.relationships[0])
        assert resolved.source_table.name == "A"
        assert resolved.target_column.name == "a_id"

    def test_resolve_dangling(self, schema: DiagramSchema) -> None:
        assert schema.resolve(schema.relationships[1]) is None

    def test_find_column(self, schema: DiagramSchema) -> None:
        assert schema.find_column("b", "b1").name == "a_id"
        assert schema.find_column("missing", "b1") is None

    def test_find_column_by_name_is_case_insensitive(self, schema: DiagramSchema) -> None:
        assert schema.tables[1].find_column_by_name("A_ID").id == "b1"

    def test_dict_round_trip(self, schema: DiagramSchema) -> None:
        data = schema.to_dict()
        assert data["relationships"][0]["relationType"] == "1:N"
        assert data["tables"][0]["columns"][0]["constraints"]["isNullable"] is True
        assert DiagramSchema.from_dict(data) == schema


class TestParseResult:
    def test_ok(self) -> None:
        assert ParseResult().ok
        assert not ParseResult(errors=[ParseError(1, "boom")]).ok

    def test_to_schema(self) -> None:
        table = Table(id="t", name="t")
        assert ParseResult(tables=[table]).to_schema() == DiagramSchema(tables=[table])

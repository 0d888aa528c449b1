"""
schema_models/diagram.py
------------------------
The canonical diagram graph: tables, columns, constraints and relationships.

Every parser produces a :class:`DiagramSchema` (wrapped in a
:class:`ParseResult`) and every generator consumes one.

Design Decision:
    Using ``@dataclass`` and ``str``-valued ``Enum`` instead of plain dicts
    gives a single source of truth for valid column types, cardinalities
    and dialects, while ``to_dict`` / ``from_dict`` keep the persisted JSON
    blob's camelCase key names stable.

    Referential integrity (every relationship endpoint resolves) is *not*
    enforced here: parsers always build consistent graphs and untrusted
    input is checked in :mod:`schema_core.persistence`.
"""
from __future__ import annotations

import itertools
import random
import string
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple


class SchemaInterchangeError(Exception):
    """Base class for errors raised by the schema interchange engine."""


class UnsupportedDialectError(SchemaInterchangeError, ValueError):
    """Raised when a dialect name is not one of the supported SQL dialects."""


class ColumnType(str, Enum):
    """Canonical, dialect-independent column types."""
    INT = "INT"
    BIGINT = "BIGINT"
    SERIAL = "SERIAL"
    VARCHAR = "VARCHAR"
    TEXT = "TEXT"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    TIMESTAMP = "TIMESTAMP"
    FLOAT = "FLOAT"
    DECIMAL = "DECIMAL"
    UUID = "UUID"
    JSON = "JSON"
    BLOB = "BLOB"


COLUMN_TYPES: list[ColumnType] = list(ColumnType)


class RelationType(str, Enum):
    """Cardinality tag on a relationship. Descriptive only."""
    ONE_TO_ONE = "1:1"
    ONE_TO_MANY = "1:N"
    MANY_TO_MANY = "N:M"


class SqlDialect(str, Enum):
    """Supported SQL dialects for parsing and generation."""
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"

    @classmethod
    def parse(cls, value: "SqlDialect | str") -> "SqlDialect":
        """
        Coerce *value* into a :class:`SqlDialect`.

        Raises:
            UnsupportedDialectError: If *value* names no known dialect.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnsupportedDialectError(
                f"Unsupported SQL dialect '{value}'; expected one of "
                f"{', '.join(d.value for d in cls)}"
            ) from None


# ---------------------------------------------------------------------------
# Ids
# ---------------------------------------------------------------------------
_id_counter = itertools.count(1)
_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id() -> str:
    """Return a new id of the form ``<millis>-<counter>-<random6>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=6))
    return f"{int(time.time() * 1000)}-{next(_id_counter)}-{suffix}"


# ---------------------------------------------------------------------------
# Graph nodes
# ---------------------------------------------------------------------------

@dataclass
class ColumnConstraints:
    """Independent per-column flags."""
    is_primary_key: bool = False
    is_nullable: bool = True
    is_unique: bool = False
    is_foreign_key: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {
            "isForeignKey": self.is_foreign_key,
            "isNullable": self.is_nullable,
            "isPrimaryKey": self.is_primary_key,
            "isUnique": self.is_unique,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ColumnConstraints":
        return ColumnConstraints(
            is_primary_key=bool(data.get("isPrimaryKey", False)),
            is_nullable=bool(data.get("isNullable", True)),
            is_unique=bool(data.get("isUnique", False)),
            is_foreign_key=bool(data.get("isForeignKey", False)),
        )


@dataclass
class Column:
    """A column; ``id`` is unique within its owning table only."""
    id: str
    name: str
    type: ColumnType
    constraints: ColumnConstraints = field(default_factory=ColumnConstraints)

    def to_dict(self) -> dict[str, Any]:
        return {
            "constraints": self.constraints.to_dict(),
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Column":
        return Column(
            id=data["id"],
            name=data["name"],
            type=ColumnType(data["type"]),
            constraints=ColumnConstraints.from_dict(data.get("constraints", {})),
        )


@dataclass
class Position:
    """Layout hint on the canvas."""
    x: float = 0
    y: float = 0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass
class Table:
    """A table; ``id`` is unique across the schema."""
    id: str
    name: str
    position: Position = field(default_factory=Position)
    columns: list[Column] = field(default_factory=list)

    def get_column(self, column_id: str) -> Column | None:
        """Get column by id."""
        for col in self.columns:
            if col.id == column_id:
                return col
        return None

    def find_column_by_name(self, name: str) -> Column | None:
        """Get column by name (case-insensitive)."""
        for col in self.columns:
            if col.name.lower() == name.lower():
                return col
        return None

    @property
    def primary_key_columns(self) -> list[Column]:
        return [c for c in self.columns if c.constraints.is_primary_key]

    def to_dict(self) -> dict[str, Any]:
        return {
            "columns": [c.to_dict() for c in self.columns],
            "id": self.id,
            "name": self.name,
            "position": self.position.to_dict(),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Table":
        pos = data.get("position", {})
        return Table(
            id=data["id"],
            name=data["name"],
            position=Position(x=pos.get("x", 0), y=pos.get("y", 0)),
            columns=[Column.from_dict(c) for c in data.get("columns", [])],
        )


@dataclass
class Relationship:
    """
    A directed edge between two (table, column) endpoints.

    For foreign keys the *source* endpoint is the referenced (parent) column
    and the *target* endpoint is the referencing (child) column.
    """
    id: str
    relation_type: RelationType
    source_table_id: str
    source_column_id: str
    target_table_id: str
    target_column_id: str

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "relationType": self.relation_type.value,
            "sourceColumnId": self.source_column_id,
            "sourceTableId": self.source_table_id,
            "targetColumnId": self.target_column_id,
            "targetTableId": self.target_table_id,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Relationship":
        return Relationship(
            id=data["id"],
            relation_type=RelationType(data["relationType"]),
            source_table_id=data["sourceTableId"],
            source_column_id=data["sourceColumnId"],
            target_table_id=data["targetTableId"],
            target_column_id=data["targetColumnId"],
        )


class ResolvedRelationship(NamedTuple):
    """A relationship whose four endpoint ids all resolved."""
    relationship: Relationship
    source_table: Table
    source_column: Column
    target_table: Table
    target_column: Column


@dataclass
class DiagramSchema:
    """The aggregate graph: ``{tables, relationships}``."""
    tables: list[Table] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)

    def table_by_id(self, table_id: str) -> Table | None:
        for table in self.tables:
            if table.id == table_id:
                return table
        return None

    def find_column(self, table_id: str, column_id: str) -> Column | None:
        table = self.table_by_id(table_id)
        return table.get_column(column_id) if table else None

    def resolve(self, rel: Relationship) -> ResolvedRelationship | None:
        """Return the endpoints of *rel*, or None if any of them is missing."""
        source_table = self.table_by_id(rel.source_table_id)
        target_table = self.table_by_id(rel.target_table_id)
        if source_table is None or target_table is None:
            return None
        source_col = source_table.get_column(rel.source_column_id)
        target_col = target_table.get_column(rel.target_column_id)
        if source_col is None or target_col is None:
            return None
        return ResolvedRelationship(rel, source_table, source_col, target_table, target_col)

    def to_dict(self) -> dict[str, Any]:
        return {
            "relationships": [r.to_dict() for r in self.relationships],
            "tables": [t.to_dict() for t in self.tables],
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "DiagramSchema":
        """
        Build a schema from its JSON dict form.

        Performs no validation; use
        :func:`schema_core.persistence.load_diagram_schema` for untrusted data.
        """
        return DiagramSchema(
            tables=[Table.from_dict(t) for t in data.get("tables", [])],
            relationships=[Relationship.from_dict(r) for r in data.get("relationships", [])],
        )


# ---------------------------------------------------------------------------
# Parse results
# ---------------------------------------------------------------------------

class ParseError(NamedTuple):
    """One line-numbered parser diagnostic."""
    line: int
    message: str


@dataclass
class ParseResult:
    """Best-effort output of a parser: partial graph plus diagnostics."""
    tables: list[Table] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_schema(self) -> DiagramSchema:
        return DiagramSchema(tables=self.tables, relationships=self.relationships)


# ---------------------------------------------------------------------------
# Editor defaults
# ---------------------------------------------------------------------------

def create_default_column(name: str = "column", is_primary_key: bool = False) -> Column:
    """A new column as the editor adds it: ``INT`` primary key or nullable ``VARCHAR``."""
    return Column(
        id=generate_id(),
        name=name,
        type=ColumnType.INT if is_primary_key else ColumnType.VARCHAR,
        constraints=ColumnConstraints(
            is_primary_key=is_primary_key,
            is_nullable=not is_primary_key,
            is_unique=is_primary_key,
            is_foreign_key=False,
        ),
    )


def create_default_table(table_count: int) -> Table:
    """A new ``table_<n>`` table holding only an ``id`` primary key."""
    return Table(
        id=generate_id(),
        name=f"table_{table_count + 1}",
        columns=[create_default_column("id", is_primary_key=True)],
    )

"""
schema_core/dbml_parser.py
--------------------------
Parses DBML text (``Table`` blocks and ``Ref:`` lines) into the canonical
diagram graph.

Supported input::

    // comments start with // or --
    Table users {
      id serial [pk]
      email varchar [unique, not null]
      team_id int [ref: > teams.id]
    }

    Table posts
    {
      id int [pk]
      user_id int
    }

    Ref: posts.user_id > users.id
    Ref: "order items"."post id" > posts.id

Design Decisions:
    * A per-line state machine with two states (outside / inside a Table
      block). The opening brace may sit on the ``Table`` line or alone on
      the following line.
    * Unknown column types are a hard per-column error: the column is
      dropped. The SQL parser falls back to ``TEXT`` instead.
    * ``a.x > b.y`` means *b* is the "one" side: source and target are
      swapped so ``b`` becomes the relationship source.
    * Unresolvable standalone ``Ref:`` lines are reported; unresolvable
      inline ``[ref: ...]`` settings are dropped silently.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field

from logger import get_logger
from schema_core.layout import grid_position
from schema_core.type_maps import lookup_dbml_type
from schema_models import (
    Column,
    ColumnConstraints,
    ParseError,
    ParseResult,
    Relationship,
    RelationType,
    Table,
    generate_id,
)

log = get_logger(__name__)

_NAME = r'(\w+|"[^"]+")'
_TABLE_RE = re.compile(rf"^Table\s+{_NAME}\s*(\{{)?\s*$", re.IGNORECASE)
_REF_PREFIX_RE = re.compile(r"^Ref\s*:", re.IGNORECASE)
_REF_RE = re.compile(
    rf"^Ref\s*:\s*{_NAME}\.{_NAME}\s*(<>|[<>\-])\s*{_NAME}\.{_NAME}\s*$", re.IGNORECASE
)
_BRACKET_RE = re.compile(r"^(.+?)\s*\[([^\]]*)\]\s*$")
_INLINE_REF_RE = re.compile(rf"^([<>\-]+)\s*{_NAME}\.{_NAME}$")
_COLUMN_HEAD_RE = re.compile(r'^("[^"]+"|\S+)\s+(\S+)')

_COMMENT_PREFIXES = ("//", "--")

_SYMBOL_TO_RELATION: dict[str, RelationType] = {
    "-": RelationType.ONE_TO_ONE,
    "<": RelationType.ONE_TO_MANY,
    ">": RelationType.ONE_TO_MANY,
    "<>": RelationType.MANY_TO_MANY,
}


@dataclass
class _InlineRef:
    table: str
    column: str


@dataclass
class _ParsedColumn:
    column: Column
    inline_ref: _InlineRef | None = None


@dataclass
class _ParsedTable:
    name: str
    line_number: int
    columns: list[_ParsedColumn] = field(default_factory=list)


@dataclass
class _ParsedRef:
    line_number: int
    relation_type: RelationType
    source_table: str
    source_column: str
    target_table: str
    target_column: str


def parse_dbml(text: str) -> ParseResult:
    """
    Parse DBML text into tables, relationships and diagnostics.

    Never raises; malformed lines become :class:`ParseError` entries and the
    rest of the document is still parsed.

    Example::

        result = parse_dbml("Table users {\\n  id int [pk]\\n}")
        # result.tables[0].name == "users"
    """
    if not text.strip():
        return ParseResult()

    parsed_tables: list[_ParsedTable] = []
    parsed_refs: list[_ParsedRef] = []
    errors: list[ParseError] = []

    current: _ParsedTable | None = None
    brace_depth = 0

    for line_number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith(_COMMENT_PREFIXES):
            continue

        table_match = _TABLE_RE.match(stripped)
        if table_match:
            if current is not None:
                errors.append(_unclosed(current))
                parsed_tables.append(current)
            current = _ParsedTable(name=_unquote(table_match.group(1)), line_number=line_number)
            brace_depth = 1 if table_match.group(2) else 0
            continue

        if current is not None:
            if brace_depth == 0:
                if stripped == "{":
                    brace_depth = 1
                else:
                    errors.append(ParseError(
                        line_number, f"Expected '{{' after Table \"{current.name}\""
                    ))
                continue
            if stripped == "}":
                parsed_tables.append(current)
                current = None
                brace_depth = 0
                continue
            parsed_col = _parse_column_line(stripped, line_number, errors)
            if parsed_col:
                current.columns.append(parsed_col)
            continue

        if _REF_PREFIX_RE.match(stripped):
            ref = _parse_ref_line(stripped, line_number)
            if ref:
                parsed_refs.append(ref)
            else:
                errors.append(ParseError(line_number, f'Invalid Ref syntax: "{stripped}"'))
            continue

        errors.append(ParseError(line_number, f'Unexpected: "{stripped}"'))

    if current is not None:
        errors.append(_unclosed(current))
        parsed_tables.append(current)

    tables = [
        Table(
            id=generate_id(),
            name=p.name,
            position=grid_position(i),
            columns=[pc.column for pc in p.columns],
        )
        for i, p in enumerate(parsed_tables)
    ]
    table_by_name = {t.name.lower(): t for t in tables}
    relationships: list[Relationship] = []

    for ref in parsed_refs:
        source_table = table_by_name.get(ref.source_table.lower())
        target_table = table_by_name.get(ref.target_table.lower())
        if source_table is None or target_table is None:
            errors.append(ParseError(ref.line_number, "Ref references unknown table"))
            continue
        source_col = source_table.find_column_by_name(ref.source_column)
        target_col = target_table.find_column_by_name(ref.target_column)
        if source_col is None or target_col is None:
            errors.append(ParseError(ref.line_number, "Ref references unknown column"))
            continue
        relationships.append(Relationship(
            id=generate_id(),
            relation_type=ref.relation_type,
            source_table_id=source_table.id,
            source_column_id=source_col.id,
            target_table_id=target_table.id,
            target_column_id=target_col.id,
        ))

    for parsed, owner in zip(parsed_tables, tables):
        for parsed_col in parsed.columns:
            inline = parsed_col.inline_ref
            if inline is None:
                continue
            ref_table = table_by_name.get(inline.table.lower())
            ref_col = ref_table.find_column_by_name(inline.column) if ref_table else None
            if ref_table is None or ref_col is None:
                log.debug("Dropping inline ref %s.%s → %s.%s",
                          owner.name, parsed_col.column.name, inline.table, inline.column)
                continue
            relationships.append(Relationship(
                id=generate_id(),
                relation_type=RelationType.ONE_TO_MANY,
                source_table_id=ref_table.id,
                source_column_id=ref_col.id,
                target_table_id=owner.id,
                target_column_id=parsed_col.column.id,
            ))

    log.info(
        "Parsed DBML: %d table(s), %d relationship(s), %d error(s).",
        len(tables), len(relationships), len(errors),
    )
    return ParseResult(tables=tables, relationships=relationships, errors=errors)


def _unquote(name: str) -> str:
    if len(name) >= 2 and name[0] == name[-1] == '"':
        return name[1:-1]
    return name


def _unclosed(table: _ParsedTable) -> ParseError:
    return ParseError(table.line_number, f'Unclosed Table block: "{table.name}"')


def _parse_column_line(
    line: str, line_number: int, errors: list[ParseError]
) -> _ParsedColumn | None:
    main_part, bracket_content = line, None
    bracket_match = _BRACKET_RE.match(line)
    if bracket_match:
        main_part = bracket_match.group(1).strip()
        bracket_content = bracket_match.group(2).strip()

    head = _COLUMN_HEAD_RE.match(main_part)
    if not head:
        errors.append(ParseError(line_number, f'Invalid column definition: "{line}"'))
        return None

    name, raw_type = _unquote(head.group(1)), head.group(2)
    column_type = lookup_dbml_type(raw_type)
    if column_type is None:
        errors.append(ParseError(
            line_number, f'Unknown type "{raw_type}" for column "{name}"'
        ))
        return None

    if not bracket_content:
        constraints, inline_ref = ColumnConstraints(is_nullable=True), None
    else:
        constraints, inline_ref = _parse_settings(bracket_content)

    return _ParsedColumn(
        column=Column(id=generate_id(), name=name, type=column_type, constraints=constraints),
        inline_ref=inline_ref,
    )


def _parse_settings(content: str) -> tuple[ColumnConstraints, _InlineRef | None]:
    """Interpret a ``[pk, not null, ref: > t.c]`` column settings list."""
    constraints = ColumnConstraints(is_nullable=False)
    inline_ref: _InlineRef | None = None

    for part in (p.strip().lower() for p in content.split(",")):
        if part in ("pk", "primary key"):
            constraints.is_primary_key = True
            constraints.is_nullable = False
        elif part == "unique":
            constraints.is_unique = True
        elif part == "null":
            constraints.is_nullable = True
        elif part == "not null":
            constraints.is_nullable = False
        elif part == "increment":
            pass  # implied by the serial type
        elif part.startswith("ref:"):
            ref_match = _INLINE_REF_RE.match(part[4:].strip())
            if ref_match:
                inline_ref = _InlineRef(
                    table=_unquote(ref_match.group(2)), column=_unquote(ref_match.group(3))
                )
                constraints.is_foreign_key = True

    return constraints, inline_ref


def _parse_ref_line(line: str, line_number: int) -> _ParsedRef | None:
    match = _REF_RE.match(line)
    if not match:
        return None

    left_table, left_col, symbol, right_table, right_col = (
        g if g in _SYMBOL_TO_RELATION else _unquote(g) for g in match.groups()
    )
    relation_type = _SYMBOL_TO_RELATION[symbol]
    if symbol == ">":
        return _ParsedRef(line_number, relation_type, right_table, right_col, left_table, left_col)
    return _ParsedRef(line_number, relation_type, left_table, left_col, right_table, right_col)

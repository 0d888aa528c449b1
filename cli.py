"""
cli.py
------
Command-line front end for the schema interchange engine.

Usage::

    schema-interchange convert schema.sql --from sql --to dbml
    schema-interchange convert diagram.dbml --from dbml --to sql --dialect mysql -o out.sql
    schema-interchange convert diagram.json --from json --to mermaid
    schema-interchange validate diagram.json

Exit codes: 0 success, 1 invalid input (or diagnostics with ``--strict``),
2 file I/O failure.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Callable

from config import CONFIG
from logger import get_logger
from schema_core.dbml_generator import generate_dbml
from schema_core.dbml_parser import parse_dbml
from schema_core.json_schema_parser import parse_json_schema
from schema_core.mermaid_generator import generate_mermaid_er
from schema_core.persistence import (
    SchemaValidationError,
    check_diagram_schema,
    load_diagram_schema,
)
from schema_core.sql_generator import generate_sql
from schema_core.sql_parser import parse_sql_ddl
from schema_core.typescript_generator import generate_typescript
from schema_models import DiagramSchema, ParseResult, SqlDialect, UnsupportedDialectError

log = get_logger(__name__)

INPUT_FORMATS = ("sql", "dbml", "jsonschema", "json")
OUTPUT_FORMATS = ("sql", "dbml", "mermaid", "typescript", "json")

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_IO_ERROR = 2


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _write_output(text: str, output: str | None) -> None:
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
        log.info("Wrote %s", output)
    else:
        sys.stdout.write(text + "\n")


def _parse(text: str, source_format: str, dialect: SqlDialect) -> ParseResult:
    if source_format == "sql":
        return parse_sql_ddl(text, dialect)
    if source_format == "dbml":
        return parse_dbml(text)
    if source_format == "jsonschema":
        return parse_json_schema(text)
    schema = load_diagram_schema(json.loads(text))
    return ParseResult(tables=schema.tables, relationships=schema.relationships)


def _render(schema: DiagramSchema, target_format: str, dialect: SqlDialect) -> str:
    renderers: dict[str, Callable[[DiagramSchema], str]] = {
        "sql": lambda s: generate_sql(s, dialect),
        "dbml": generate_dbml,
        "mermaid": generate_mermaid_er,
        "typescript": generate_typescript,
        "json": lambda s: json.dumps(s.to_dict(), indent=2),
    }
    return renderers[target_format](schema)


def cmd_convert(args: argparse.Namespace) -> int:
    try:
        dialect = SqlDialect.parse(args.dialect)
    except UnsupportedDialectError as exc:
        # --dialect is checked by argparse; DEFAULT_SQL_DIALECT is not.
        print(f"✗ {exc}", file=sys.stderr)
        return EXIT_INVALID
    try:
        text = _read_input(args.input)
    except OSError as exc:
        print(f"✗ Cannot read '{args.input}': {exc}", file=sys.stderr)
        return EXIT_IO_ERROR

    try:
        result = _parse(text, args.source_format, dialect)
    except json.JSONDecodeError as exc:
        print(f"✗ Invalid JSON in '{args.input}': {exc}", file=sys.stderr)
        return EXIT_INVALID
    except SchemaValidationError as exc:
        print(f"✗ Invalid diagram '{args.input}': {exc}", file=sys.stderr)
        return EXIT_INVALID

    for error in result.errors:
        log.warning("%s:%d: %s", args.input, error.line, error.message)
    if result.errors and args.strict:
        print(f"✗ {len(result.errors)} diagnostic(s); aborting (--strict)", file=sys.stderr)
        return EXIT_INVALID

    output = _render(result.to_schema(), args.target_format, dialect)
    try:
        _write_output(output, args.output)
    except OSError as exc:
        print(f"✗ Cannot write '{args.output}': {exc}", file=sys.stderr)
        return EXIT_IO_ERROR
    return EXIT_OK


def cmd_validate(args: argparse.Namespace) -> int:
    try:
        data = json.loads(_read_input(args.input))
    except OSError as exc:
        print(f"✗ Cannot read '{args.input}': {exc}", file=sys.stderr)
        return EXIT_IO_ERROR
    except json.JSONDecodeError as exc:
        print(f"✗ Invalid JSON: {exc}", file=sys.stderr)
        return EXIT_INVALID

    result = check_diagram_schema(data)
    if not result.ok:
        print(f"✗ {result.error}", file=sys.stderr)
        return EXIT_INVALID
    print(f"✓ {args.input} is a valid diagram")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schema-interchange",
        description="Convert database schemas between SQL DDL, DBML and diagram JSON.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {CONFIG.app_version}"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    convert = sub.add_parser("convert", help="Convert a schema between formats")
    convert.add_argument("input", help="Input file path, or - for stdin")
    convert.add_argument(
        "--from", dest="source_format", choices=INPUT_FORMATS, required=True,
        help="Input format",
    )
    convert.add_argument(
        "--to", dest="target_format", choices=OUTPUT_FORMATS, required=True,
        help="Output format",
    )
    convert.add_argument(
        "--dialect",
        choices=[d.value for d in SqlDialect],
        default=CONFIG.output.default_dialect,
        help=f"SQL dialect (default: {CONFIG.output.default_dialect})",
    )
    convert.add_argument("-o", "--output", help="Output file (default: stdout)")
    convert.add_argument(
        "--strict", action="store_true",
        help="Fail if the input produced any parse diagnostics",
    )
    convert.set_defaults(func=cmd_convert)

    validate = sub.add_parser("validate", help="Validate a diagram JSON file")
    validate.add_argument("input", help="Diagram JSON file, or - for stdin")
    validate.set_defaults(func=cmd_validate)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

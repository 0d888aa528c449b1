"""
logger.py
---------
Logging for the schema interchange engine.

The parsers, the SQL generator and persistence each hold ``log = get_logger(__name__)``:

    * parsers log one INFO summary per call (tables, relationships and
      diagnostics counted);
    * dropped references (an inline ``REFERENCES`` or ``[ref: ...]`` whose
      target does not exist, a dangling JSON Schema ``$ref``) go to DEBUG;
    * the SQL generator logs skipped relationships and dependency cycles at
      DEBUG;
    * persistence warns about canvas edges whose handles it cannot map and
      logs rejected diagrams at DEBUG.

Parse diagnostics themselves travel in :class:`ParseResult.errors`, never
through the log. The level comes from ``LOG_LEVEL`` and stderr output is
kept apart from the CLI's stdout so converted text can be piped. Setting
``LOG_FILE`` adds a DEBUG-level file sink.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from config import CONFIG, get_log_level

_ROOT_LOGGER_NAME = "schema_interchange"
_STDERR_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _stderr_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=_STDERR_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def _file_handler(path: Path) -> logging.Handler:
    """Append-mode sink; raises OSError when *path* cannot be opened."""
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(fmt=_FILE_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def _install_handlers(root: logging.Logger) -> None:
    # Re-imports (pytest module reloads) must not stack handlers.
    if root.handlers:
        return

    level = get_log_level()
    root.setLevel(level)
    root.addHandler(_stderr_handler(level))

    if not CONFIG.logging.log_file:
        return
    log_path = Path(CONFIG.logging.log_file)
    try:
        root.addHandler(_file_handler(log_path))
    except OSError as exc:
        root.warning("LOG_FILE '%s' is not writable, logging to stderr only: %s", log_path, exc)


_install_handlers(logging.getLogger(_ROOT_LOGGER_NAME))


def get_logger(name: str) -> logging.Logger:
    """
    ``get_logger("schema_core.sql_parser")`` → the
    ``schema_interchange.schema_core.sql_parser`` logger.

    Example::

        log = get_logger(__name__)
        log.debug("Dropping inline ref %s.%s", table, column)
    """
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")

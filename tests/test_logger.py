"""
tests/test_logger.py
--------------------
Unit tests for logger.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import importlib
import logging

import logger


class TestGetLogger:
    def test_child_of_root(self) -> None:
        log = logger.get_logger("schema_core.sql_parser")
        assert log.name == "schema_interchange.schema_core.sql_parser"
        assert log.parent is logging.getLogger("schema_interchange")

    def test_reload_does_not_stack_handlers(self) -> None:
        root = logging.getLogger("schema_interchange")
        before = len(root.handlers)
        importlib.reload(logger)
        assert len(root.handlers) == before >= 1

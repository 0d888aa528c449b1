"""
config.py
---------
Centralised configuration management for the schema interchange engine.

Loads settings from environment variables (with .env file support via
python-dotenv). Provides typed settings as frozen dataclasses so
configuration is immutable at runtime.

Design Decision:
    Class-level defaults mean the library behaves identically "out of the
    box" without any .env file; environment overrides exist for the CLI
    and for embedding applications that want a different grid or dialect.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).parent / ".env"
if _env_path.exists():
    load_dotenv(dotenv_path=_env_path)


@dataclass(frozen=True)
class LayoutConfig:
    """Grid placement for freshly parsed tables."""
    grid_columns: int = field(
        default_factory=lambda: int(os.getenv("LAYOUT_GRID_COLUMNS", "3"))
    )
    h_spacing: int = field(
        default_factory=lambda: int(os.getenv("LAYOUT_H_SPACING", "300"))
    )
    v_spacing: int = field(
        default_factory=lambda: int(os.getenv("LAYOUT_V_SPACING", "250"))
    )


@dataclass(frozen=True)
class OutputConfig:
    """SQL generation defaults."""
    default_dialect: str = field(
        default_factory=lambda: os.getenv("DEFAULT_SQL_DIALECT", "postgresql").lower()
    )
    mysql_engine: str = field(
        default_factory=lambda: os.getenv("MYSQL_ENGINE", "InnoDB")
    )
    mysql_charset: str = field(
        default_factory=lambda: os.getenv("MYSQL_CHARSET", "utf8mb4")
    )


@dataclass(frozen=True)
class LoggingConfig:
    """Log destination and verbosity."""
    log_level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper()
    )
    log_file: str | None = field(
        default_factory=lambda: os.getenv("LOG_FILE")  # None → log to stderr only
    )


@dataclass(frozen=True)
class AppConfig:
    """Root application configuration."""
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    app_name: str = "Schema Interchange"
    app_version: str = "1.0.0"


def load_config() -> AppConfig:
    """
    Build and return the application configuration.

    Returns:
        AppConfig: Fully populated (and frozen) configuration object.

    Example::

        cfg = load_config()
        print(cfg.layout.grid_columns)      # 3
        print(cfg.output.default_dialect)   # "postgresql"
    """
    return AppConfig()


# Module-level singleton used throughout the application
CONFIG: AppConfig = load_config()


def get_log_level() -> int:
    """Convert string log level from config to logging module constant."""
    level = getattr(logging, CONFIG.logging.log_level, None)
    if not isinstance(level, int):
        return logging.INFO
    return level

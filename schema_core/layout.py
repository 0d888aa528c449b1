"""
schema_core/layout.py
---------------------
Deterministic grid placement for freshly parsed tables, so an imported graph
has non-overlapping canvas positions without manual layout.
"""
from __future__ import annotations

from config import CONFIG
from schema_models import Position


def grid_position(index: int) -> Position:
    """
    Position of the *index*-th (0-based) table in parse order.

    With the default grid: ``((index % 3) * 300, (index // 3) * 250)``.
    """
    cfg = CONFIG.layout
    return Position(
        x=(index % cfg.grid_columns) * cfg.h_spacing,
        y=(index // cfg.grid_columns) * cfg.v_spacing,
    )


def grid_layout_positions(count: int) -> list[Position]:
    """Positions for *count* tables, in order."""
    return [grid_position(i) for i in range(count)]

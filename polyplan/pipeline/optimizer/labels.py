"""Result labelling: sequential names and display colours."""

from __future__ import annotations

from typing import Sequence

from .models import PlacedModule

MODULE_COLORS = (
    "#4CAF50",  # green
    "#2196F3",  # blue
    "#FF9800",  # orange
    "#9C27B0",  # purple
    "#F44336",  # red
    "#00BCD4",  # cyan
    "#FFEB3B",  # yellow
    "#795548",  # brown
    "#E91E63",  # pink
    "#607D8B",  # blue grey
)


def module_label(index: int) -> str:
    """``P1``, ``P2``, ... for zero-based *index*."""
    return f"P{index + 1}"


def module_color(index: int) -> str:
    return MODULE_COLORS[index % len(MODULE_COLORS)]


def assign_labels(modules: Sequence[PlacedModule]) -> list[PlacedModule]:
    """Label modules in placement order.  Positions are untouched."""
    return [
        m.labelled(module_label(i), module_color(i))
        for i, m in enumerate(modules)
    ]

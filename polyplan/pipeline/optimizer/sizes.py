"""Candidate module sizes: every legal (width, depth) pair."""

from __future__ import annotations

from typing import Iterable

from polyplan.pipeline.config import OptimizerConfig

from .models import ModuleSize, NoFeasibleSize


def generate_candidate_sizes(config: OptimizerConfig) -> list[ModuleSize]:
    """Enumerate legal sizes, largest area first.

    Width steps by ``unit_width``, depth by ``unit_depth``, both up to
    ``max_dimension``; only sizes with area ≤ ``max_module_area`` are
    kept.  Equal areas keep enumeration order (width, then depth,
    ascending), so the list is fully deterministic.

    Raises NoFeasibleSize if nothing qualifies.
    """
    n_cols = int(config.max_dimension // config.unit_width)
    n_rows = int(config.max_dimension // config.unit_depth)

    sizes: list[ModuleSize] = []
    for i in range(1, n_cols + 1):
        width = i * config.unit_width
        for j in range(1, n_rows + 1):
            depth = j * config.unit_depth
            if width * depth <= config.max_module_area + 1e-9:
                sizes.append(ModuleSize(width, depth))

    if not sizes:
        raise NoFeasibleSize(
            f"no {config.unit_width:g}×{config.unit_depth:g} multiple up to "
            f"{config.max_dimension:g} fits within area "
            f"{config.max_module_area:g}")

    # sort() is stable, so ties stay in enumeration order.
    sizes.sort(key=lambda s: s.area, reverse=True)
    return sizes


def filter_by_area(
    sizes: Iterable[ModuleSize],
    minimum: float = 0.0,
    maximum: float | None = None,
) -> list[ModuleSize]:
    """Sizes whose area lies in [minimum, maximum], order preserved."""
    return [
        s for s in sizes
        if s.area >= minimum and (maximum is None or s.area <= maximum)
    ]

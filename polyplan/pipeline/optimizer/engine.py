"""Main optimisation engine: multi-pass greedy module placement.

Pipeline (linear, no backward transitions):

    IDLE → BUILD_GEOMETRY → GENERATE_CANDIDATES → SELECT_ORIENTATION
         → PASS_PRIMARY → [PASS_MEDIUM] → [PASS_SMALL] → LABEL → DONE

All passes thread one append-only OptimizationState, so later passes
only fill gaps the earlier ones left open.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Sequence

from polyplan.geometry.ops import GeometryOps, DEFAULT_OPS
from polyplan.pipeline.config import OptimizerConfig, DEFAULT_CONFIG
from polyplan.pipeline.land.models import LandAreaSpec, RestrictedZone

from .buildable import build_buildable_area
from .cancel import CancelToken
from .grid import PassPlan, StopPolicy, run_grid_pass
from .labels import assign_labels
from .models import (
    ModuleSize, OptimizationState, PassReport, PlacementResult, StopReason,
)
from .orientation import (
    PRIMARY, GAP_FILL_MEDIUM, GAP_FILL_SMALL,
    select_rotations, gap_fill_rotations,
)
from .sizes import generate_candidate_sizes, filter_by_area
from .validator import PlacementContext

log = logging.getLogger(__name__)

# Primary pass falls back to this many of the largest sizes when none
# reach the area floor.
PRIMARY_FALLBACK_SIZES = 5

_INTERRUPTED = (StopReason.CANCELLED, StopReason.TIMEOUT)


class Phase(Enum):
    IDLE = "idle"
    BUILD_GEOMETRY = "build_geometry"
    GENERATE_CANDIDATES = "generate_candidates"
    SELECT_ORIENTATION = "select_orientation"
    PASS_PRIMARY = "pass_primary"
    PASS_MEDIUM = "pass_medium"
    PASS_SMALL = "pass_small"
    LABEL = "label"
    DONE = "done"


# ── Pass parameters ────────────────────────────────────────────────


def primary_sizes(
    sizes: Sequence[ModuleSize], config: OptimizerConfig,
) -> list[ModuleSize]:
    """Sizes for the primary pass: those reaching the area floor, or the
    few largest when none do."""
    large = filter_by_area(sizes, config.primary_area_floor)
    return large or list(sizes[:PRIMARY_FALLBACK_SIZES])


def primary_step(sizes: Sequence[ModuleSize], config: OptimizerConfig) -> float:
    """Fine raster step: a fraction of the largest size's mean side."""
    largest = sizes[0]
    mean_side = (largest.width + largest.depth) / 2
    sched = config.schedule
    return min(mean_side * sched.primary_step_fraction, sched.primary_step_cap)


# ── Main entry point ───────────────────────────────────────────────


def optimize(
    land: LandAreaSpec,
    config: OptimizerConfig = DEFAULT_CONFIG,
    restricted_zones: Sequence[RestrictedZone] = (),
    *,
    cancel: CancelToken | None = None,
    ops: GeometryOps = DEFAULT_OPS,
) -> PlacementResult:
    """Place modules inside the parcel.

    Parameters
    ----------
    land : LandAreaSpec
        Parcel boundary, user zones and land area.
    config : OptimizerConfig
        Sizing rules and strategy; validated on entry.
    restricted_zones : sequence of RestrictedZone
        Terrain hazards.  Only ``prohibited`` ones constrain placement.
    cancel : CancelToken, optional
        Polled between raster cells.  When ``config.timeout_s`` is set
        it becomes a deadline on this token (a new token when omitted);
        whichever of the two fires first stops the run.
    ops : GeometryOps
        Geometry backend.

    Returns
    -------
    PlacementResult
        Labelled modules in placement order.  A cancelled or timed-out
        run returns the modules committed so far with ``cancelled`` set.

    Raises
    ------
    InvalidGeometry, InsufficientBuildableArea
        If no usable buildable polygon can be derived.
    NoFeasibleSize
        If the sizing rules admit no module at all.
    ConfigError
        If *config* is inconsistent.
    """
    t0 = time.perf_counter()
    config = config.validate()
    if config.timeout_s is not None:
        if cancel is None:
            cancel = CancelToken(config.timeout_s)
        else:
            cancel.limit(config.timeout_s)
    sched = config.schedule
    phase = Phase.IDLE

    def enter(nxt: Phase) -> None:
        nonlocal phase
        log.debug("Phase %s → %s", phase.value, nxt.value)
        phase = nxt

    # ── 1. Geometry ────────────────────────────────────────────────
    enter(Phase.BUILD_GEOMETRY)
    buildable = build_buildable_area(
        land, restricted_zones,
        safety_buffer=config.safety_buffer, ops=ops,
    )
    land_area = land.land_area or buildable.boundary_area
    log.info("Land area %.0f, buildable %.0f (%.1f%%)",
             land_area, buildable.area, 100.0 * buildable.area / land_area)

    # ── 2. Candidate sizes ─────────────────────────────────────────
    enter(Phase.GENERATE_CANDIDATES)
    all_sizes = generate_candidate_sizes(config)
    large = primary_sizes(all_sizes, config)
    log.info("%d legal sizes; primary pass uses %d (%g×%g = %.0f to %g×%g = %.0f)",
             len(all_sizes), len(large),
             large[0].width, large[0].depth, large[0].area,
             large[-1].width, large[-1].depth, large[-1].area)

    # ── 3. Orientation ─────────────────────────────────────────────
    enter(Phase.SELECT_ORIENTATION)
    context = PlacementContext.build(buildable, restricted_zones, config, ops)
    rotations = select_rotations(buildable, large, context, config.multi_orientation)

    # ── 4. Primary pass ────────────────────────────────────────────
    enter(Phase.PASS_PRIMARY)
    state = OptimizationState(land_area=land_area)
    step = primary_step(large, config)
    state, report = run_grid_pass(state, PassPlan(
        name=PRIMARY,
        sizes=tuple(large),
        rotations=rotations,
        step=step,
        stop=StopPolicy(
            coverage_ceiling=config.target_coverage,
            max_added=config.max_modules,
        ),
    ), context, cancel)
    reports = [report]

    # ── 5. Gap filling ─────────────────────────────────────────────
    if not config.fill_gaps:
        log.info("Gap filling disabled: keeping %d primary module(s)",
                 len(state.modules))
    else:
        if not _interrupted(report) and state.coverage < sched.medium_trigger_coverage:
            enter(Phase.PASS_MEDIUM)
            sizes = filter_by_area(
                all_sizes, config.primary_area_floor * sched.medium_floor_fraction)
            state, report = _gap_pass(state, PassPlan(
                name=GAP_FILL_MEDIUM,
                sizes=tuple(sizes),
                rotations=gap_fill_rotations(rotations, GAP_FILL_MEDIUM),
                step=min(step * sched.medium_step_factor, sched.medium_step_cap),
                stop=StopPolicy(
                    coverage_ceiling=sched.medium_stop_coverage,
                    max_added=sched.medium_max_added,
                    max_positions=sched.medium_max_positions,
                ),
            ), context, cancel)
            reports.append(report)

        if not _interrupted(report) and state.coverage < sched.small_trigger_coverage:
            enter(Phase.PASS_SMALL)
            sizes = filter_by_area(
                all_sizes, sched.small_min_area, sched.small_max_area)
            state, report = _gap_pass(state, PassPlan(
                name=GAP_FILL_SMALL,
                sizes=tuple(sizes),
                rotations=gap_fill_rotations(rotations, GAP_FILL_SMALL),
                step=min(step * sched.small_step_factor, sched.small_step_cap),
                stop=StopPolicy(
                    coverage_ceiling=sched.small_stop_coverage,
                    max_added=sched.small_max_added,
                    max_positions=sched.small_max_positions,
                ),
            ), context, cancel)
            reports.append(report)

    # ── 6. Label ───────────────────────────────────────────────────
    enter(Phase.LABEL)
    modules = assign_labels(state.modules)

    for r in reports:
        if not r.skipped and r.added == 0:
            r.warnings.append(f"Pass '{r.name}' placed no modules")
    warnings = [w for r in reports for w in r.warnings]
    for w in warnings:
        log.warning(w)

    stop_reason = reports[-1].stop_reason
    elapsed = time.perf_counter() - t0
    enter(Phase.DONE)
    log.info("Optimisation complete in %.2fs: %d module(s), %.1f%% coverage",
             elapsed, len(modules), state.coverage)

    return PlacementResult(
        modules=modules,
        coverage=state.coverage,
        land_area=land_area,
        elapsed_s=elapsed,
        rotations=rotations,
        passes=reports,
        warnings=warnings,
        buildable=buildable,
        cancelled=stop_reason in _INTERRUPTED,
        stop_reason=stop_reason,
    )


async def optimize_async(
    land: LandAreaSpec,
    config: OptimizerConfig = DEFAULT_CONFIG,
    restricted_zones: Sequence[RestrictedZone] = (),
    *,
    cancel: CancelToken | None = None,
) -> PlacementResult:
    """Run :func:`optimize` in a worker thread so an event loop stays
    responsive.  Cancelling the awaiting task also cancels the run."""
    token = cancel or CancelToken()
    try:
        return await asyncio.to_thread(
            optimize, land, config, restricted_zones, cancel=token)
    except asyncio.CancelledError:
        token.cancel()
        raise


# ── Helpers ────────────────────────────────────────────────────────


def _interrupted(report: PassReport) -> bool:
    return report.stop_reason in _INTERRUPTED


def _gap_pass(
    state: OptimizationState,
    plan: PassPlan,
    context: PlacementContext,
    cancel: CancelToken | None,
) -> tuple[OptimizationState, PassReport]:
    """Run a gap-fill pass, or skip it when its size band is empty."""
    if not plan.sizes:
        report = PassReport(
            name=plan.name, skipped=True, coverage=state.coverage,
            stop_reason=StopReason.EXHAUSTED,
        )
        report.warnings.append(
            f"Pass '{plan.name}' skipped: no sizes in its area band")
        return state, report
    log.info("[%s] coverage %.1f%%, filling gaps with %d size(s), step %.1f",
             plan.name, state.coverage, len(plan.sizes), plan.step)
    return run_grid_pass(state, plan, context, cancel)

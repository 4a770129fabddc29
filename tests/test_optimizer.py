"""Tests for the multi-pass optimizer (end to end).

Uses the parcels in land_fixture:
  - 200×100 rectangle: one large module turned 90°, then gap filling
  - irregular pentagon: uniform and multi-orientation runs
  - rectangle with a pond in the north-east corner

Validates, for every layout:
  - Every module lies inside the buildable area
  - No module overlaps a prohibited zone
  - Footprints are pairwise disjoint, so modules keep two corridor
    widths apart
  - Dimensions are whole base units within the area cap
  - Sub-block grids meet the configured minimum
  - Labels are sequential in placement order
"""

from __future__ import annotations

import asyncio
import unittest
from dataclasses import replace

from polyplan.geometry import DEFAULT_OPS
from polyplan.pipeline.config import DEFAULT_CONFIG, MULTI_ORIENTATION, OptimizerConfig
from polyplan.pipeline.optimizer import (
    CANDIDATE_ANGLES, MODULE_COLORS, CancelToken, ConfigError,
    InsufficientBuildableArea, ModuleSize, PlacementResult, StopReason,
    assign_labels, optimize, optimize_async,
)
from polyplan.pipeline.land.models import RestrictedZone

from tests.land_fixture import (
    box_ring, make_irregular_land, make_pond, make_rectangle_land,
)

_CORRIDOR_TOL = 0.05    # round buffers are polygonal approximations


def assert_valid_layout(
    test: unittest.TestCase,
    result: PlacementResult,
    restricted_zones=(),
    config: OptimizerConfig = DEFAULT_CONFIG,
):
    ops = DEFAULT_OPS
    buildable = result.buildable.polygon
    prohibited = [
        ops.polygon(z.vertices) for z in restricted_zones if z.is_prohibited
    ]
    mods = result.modules

    for i, m in enumerate(mods):
        test.assertTrue(ops.contains(buildable, m.polygon),
                        f"{m.label} leaves the buildable area")
        for zone in prohibited:
            test.assertFalse(ops.interiors_intersect(zone, m.polygon),
                             f"{m.label} overlaps a prohibited zone")

        test.assertAlmostEqual(m.width % config.unit_width, 0.0)
        test.assertAlmostEqual(m.depth % config.unit_depth, 0.0)
        test.assertLessEqual(m.area, config.max_module_area)
        test.assertLessEqual(max(m.width, m.depth), config.max_dimension)

        cols = m.size.columns(config.unit_width)
        rows = m.size.rows(config.unit_depth)
        test.assertEqual(len(m.sub_blocks), cols * rows)
        test.assertGreaterEqual(len(m.sub_blocks), config.min_sub_blocks)

        test.assertEqual(m.label, f"P{i + 1}")
        test.assertEqual(m.color, MODULE_COLORS[i % len(MODULE_COLORS)])

        for other in mods[i + 1:]:
            test.assertFalse(ops.interiors_intersect(m.footprint, other.footprint),
                             f"{m.label} and {other.label} footprints overlap")
            test.assertGreaterEqual(
                m.polygon.distance(other.polygon),
                2 * config.corridor_width - _CORRIDOR_TOL,
                f"{m.label} and {other.label} too close")

    test.assertAlmostEqual(
        result.coverage, 100.0 * result.total_area / result.land_area)


def overlapping_footprints(result: PlacementResult):
    """Label pairs whose corridor footprints overlap or nest."""
    mods = result.modules
    return [
        (a.label, b.label)
        for i, a in enumerate(mods) for b in mods[i + 1:]
        if DEFAULT_OPS.interiors_intersect(a.footprint, b.footprint)
    ]


def _layout(result: PlacementResult):
    return [(m.cx, m.cy, m.rotation, m.width, m.depth) for m in result.modules]


class _CancelAfter(CancelToken):
    """Token that trips after a fixed number of polls."""

    def __init__(self, polls: int) -> None:
        super().__init__()
        self._remaining = polls

    @property
    def reason(self):
        self._remaining -= 1
        if self._remaining < 0:
            self.cancel()
        return super().reason


# ── Reference rectangle ────────────────────────────────────────────


class TestRectangleParcel(unittest.TestCase):
    """200×100 open rectangle with default settings."""

    @classmethod
    def setUpClass(cls):
        cls.land = make_rectangle_land()
        cls.result = optimize(cls.land)

    def test_layout_is_valid(self):
        assert_valid_layout(self, self.result)

    def test_large_module_and_coverage(self):
        self.assertTrue(self.result.modules)
        self.assertGreaterEqual(max(m.area for m in self.result.modules), 7000)
        self.assertGreaterEqual(self.result.coverage, 50.0)

    def test_first_module(self):
        """The 98-unit-deep strip takes the largest size turned 90°."""
        self.assertEqual(self.result.rotations, (90.0,))
        first = self.result.modules[0]
        self.assertEqual(first.size, ModuleSize(88, 112))
        self.assertEqual(first.center, (61.0, 46.0))
        self.assertEqual(first.rotation, 90.0)
        self.assertEqual(first.pass_name, "primary")

    def test_footprints_pairwise_disjoint(self):
        self.assertGreater(self.result.module_count, 1)
        self.assertEqual(overlapping_footprints(self.result), [])

    def test_uniform_rotation_shared(self):
        self.assertEqual({m.rotation for m in self.result.modules}, {90.0})

    def test_passes_only_add(self):
        coverages = [r.coverage for r in self.result.passes]
        self.assertEqual(coverages, sorted(coverages))
        self.assertEqual(sum(r.added for r in self.result.passes),
                         self.result.module_count)

    def test_gap_fill_ran(self):
        names = [r.name for r in self.result.passes]
        self.assertEqual(names[:2], ["primary", "gap_fill_medium"])
        self.assertFalse(self.result.cancelled)

    def test_land_area_defaults_to_boundary(self):
        self.assertEqual(self.result.land_area, 20000.0)

    def test_deterministic(self):
        again = optimize(self.land)
        self.assertEqual(_layout(again), _layout(self.result))
        self.assertEqual(again.coverage, self.result.coverage)


# ── Irregular parcel ───────────────────────────────────────────────


class TestIrregularParcel(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.land = make_irregular_land()
        cls.primary_only = optimize(cls.land, OptimizerConfig(fill_gaps=False))
        cls.with_gaps = optimize(cls.land)

    def test_layouts_are_valid(self):
        assert_valid_layout(self, self.primary_only)
        assert_valid_layout(self, self.with_gaps)

    def test_gap_filling_never_loses_ground(self):
        self.assertGreaterEqual(self.with_gaps.module_count,
                                self.primary_only.module_count)
        self.assertGreaterEqual(self.with_gaps.coverage, self.primary_only.coverage)

    def test_primary_modules_unchanged_by_gap_fill(self):
        n = self.primary_only.module_count
        self.assertEqual(_layout(self.with_gaps)[:n], _layout(self.primary_only))

    def test_primary_only_runs_one_pass(self):
        self.assertEqual([r.name for r in self.primary_only.passes], ["primary"])


class TestMultiOrientation(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.config = OptimizerConfig(orientation_strategy=MULTI_ORIENTATION)
        cls.result = optimize(make_irregular_land(), cls.config)

    def test_layout_is_valid(self):
        assert_valid_layout(self, self.result, config=self.config)

    def test_all_angles_active(self):
        self.assertEqual(self.result.rotations, CANDIDATE_ANGLES)
        for m in self.result.modules:
            self.assertIn(m.rotation, CANDIDATE_ANGLES)

    def test_gap_passes_use_reduced_angles(self):
        by_name = {r.name: r for r in self.result.passes}
        if "gap_fill_medium" in by_name and not by_name["gap_fill_medium"].skipped:
            self.assertEqual(by_name["gap_fill_medium"].rotations, (0.0, 90.0))
        if "gap_fill_small" in by_name and not by_name["gap_fill_small"].skipped:
            self.assertEqual(by_name["gap_fill_small"].rotations, (0.0,))


# ── Restrictions and limits ────────────────────────────────────────


class TestRestrictedZones(unittest.TestCase):

    def test_modules_avoid_prohibited_pond(self):
        zones = [make_pond()]
        result = optimize(make_rectangle_land(), DEFAULT_CONFIG, zones)
        assert_valid_layout(self, result, zones)

    def test_warning_zone_changes_nothing(self):
        plain = optimize(make_rectangle_land())
        warned = optimize(make_rectangle_land(), DEFAULT_CONFIG, [make_pond("warning")])
        self.assertEqual(_layout(warned), _layout(plain))

    def test_mostly_prohibited_parcel(self):
        flood = RestrictedZone(box_ring(0, 0, 100, 95), "water")
        with self.assertRaises(InsufficientBuildableArea):
            optimize(make_rectangle_land(100, 100), DEFAULT_CONFIG, [flood])


class TestEdgeCases(unittest.TestCase):

    def test_parcel_smaller_than_any_module(self):
        """No legal module fits an 18×18 buildable square; no error either."""
        result = optimize(make_rectangle_land(20, 20))
        self.assertEqual(result.modules, [])
        self.assertEqual(result.coverage, 0.0)
        self.assertTrue(result.warnings)
        self.assertFalse(result.cancelled)

    def test_sub_block_minimum_enforced(self):
        config = OptimizerConfig(min_sub_blocks=200)
        result = optimize(make_rectangle_land(), config)
        assert_valid_layout(self, result, config=config)
        self.assertTrue(all(len(m.sub_blocks) >= 200 for m in result.modules))

    def test_unreachable_sub_block_minimum(self):
        """400 cells would need 12,800 area units: nothing qualifies."""
        result = optimize(make_rectangle_land(), OptimizerConfig(min_sub_blocks=400))
        self.assertEqual(result.modules, [])

    def test_module_cap(self):
        config = OptimizerConfig(max_modules=1, fill_gaps=False)
        result = optimize(make_irregular_land(), config)
        self.assertEqual(result.module_count, 1)
        self.assertEqual(result.stop_reason, StopReason.MODULE_CAP)

    def test_stated_land_area_used_for_coverage(self):
        land = replace(make_rectangle_land(), land_area=40000.0)
        result = optimize(land, OptimizerConfig(fill_gaps=False))
        self.assertAlmostEqual(result.coverage, 100.0 * result.total_area / 40000.0)

    def test_bad_config(self):
        with self.assertRaises(ConfigError):
            optimize(make_rectangle_land(), OptimizerConfig(unit_depth=-4))


class TestCancellation(unittest.TestCase):

    def test_cancelled_before_start(self):
        token = CancelToken()
        token.cancel()
        result = optimize(make_rectangle_land(), cancel=token)
        self.assertEqual(result.modules, [])
        self.assertTrue(result.cancelled)
        self.assertEqual(result.stop_reason, StopReason.CANCELLED)
        self.assertEqual(len(result.passes), 1)

    def test_cancel_mid_pass_keeps_partial_layout(self):
        """Tripping after 60 raster cells keeps the one module placed so far."""
        result = optimize(make_rectangle_land(), cancel=_CancelAfter(60))
        self.assertEqual(result.module_count, 1)
        self.assertTrue(result.cancelled)
        self.assertEqual(result.modules[0].label, "P1")
        assert_valid_layout(self, result)

    def test_timeout(self):
        result = optimize(make_rectangle_land(), OptimizerConfig(timeout_s=1e-9))
        self.assertTrue(result.cancelled)
        self.assertEqual(result.stop_reason, StopReason.TIMEOUT)

    def test_timeout_applies_alongside_token(self):
        result = optimize(make_rectangle_land(), OptimizerConfig(timeout_s=1e-9),
                          cancel=CancelToken())
        self.assertTrue(result.cancelled)
        self.assertEqual(result.stop_reason, StopReason.TIMEOUT)

    def test_limit_keeps_earlier_deadline(self):
        token = CancelToken(timeout_s=1e-9)
        token.limit(3600.0)
        self.assertEqual(token.reason, StopReason.TIMEOUT)

        token = CancelToken(timeout_s=3600.0)
        token.limit(1e-9)
        self.assertEqual(token.reason, StopReason.TIMEOUT)

    def test_token_reason(self):
        token = CancelToken()
        self.assertIsNone(token.reason)
        self.assertFalse(token.cancelled)
        token.cancel()
        self.assertEqual(token.reason, StopReason.CANCELLED)


class TestAsync(unittest.TestCase):

    def test_matches_sync_run(self):
        land = make_rectangle_land()
        result = asyncio.run(optimize_async(land))
        self.assertEqual(_layout(result), _layout(optimize(land)))


# ── Labels ─────────────────────────────────────────────────────────


class TestLabels(unittest.TestCase):

    def test_palette_wraps(self):
        result = optimize(make_rectangle_land(), OptimizerConfig(fill_gaps=False))
        module = result.modules[0]
        labelled = assign_labels([module] * 12)
        self.assertEqual([m.label for m in labelled][-3:], ["P10", "P11", "P12"])
        self.assertEqual(labelled[10].color, MODULE_COLORS[0])
        self.assertEqual(labelled[11].center, module.center)


if __name__ == "__main__":
    unittest.main()

"""Tests for OptimizerConfig parsing and validation."""

from __future__ import annotations

import dataclasses
import unittest

from polyplan.pipeline.config import (
    DEFAULT_CONFIG, MULTI_ORIENTATION, UNIFORM,
    OptimizerConfig, PassSchedule, normalise_strategy,
)
from polyplan.pipeline.errors import ConfigError


class TestDefaults(unittest.TestCase):

    def test_structural_defaults(self):
        c = DEFAULT_CONFIG
        self.assertEqual((c.unit_width, c.unit_depth), (8.0, 4.0))
        self.assertEqual(c.max_module_area, 10_000.0)
        self.assertEqual(c.max_dimension, 120.0)
        self.assertEqual(c.corridor_width, 3.0)
        self.assertEqual(c.min_sub_blocks, 10)
        self.assertEqual(c.orientation_strategy, UNIFORM)
        self.assertTrue(c.fill_gaps)

    def test_derived_values(self):
        self.assertEqual(DEFAULT_CONFIG.sub_block_area, 32.0)
        self.assertEqual(DEFAULT_CONFIG.primary_area_floor, 8000.0)
        self.assertFalse(DEFAULT_CONFIG.multi_orientation)

    def test_config_is_immutable(self):
        with self.assertRaises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.corridor_width = 5.0

    def test_schedule_thresholds(self):
        s = PassSchedule()
        self.assertEqual(s.medium_stop_coverage, 85.0)
        self.assertEqual((s.small_min_area, s.small_max_area), (500.0, 2500.0))
        self.assertEqual((s.medium_max_positions, s.small_max_positions), (500, 400))


class TestFromDict(unittest.TestCase):

    def test_empty_gives_defaults(self):
        self.assertEqual(OptimizerConfig.from_dict(None), DEFAULT_CONFIG)
        self.assertEqual(OptimizerConfig.from_dict({}), DEFAULT_CONFIG)

    def test_camel_case_and_ui_block(self):
        """The planning UI nests strategy settings under 'optimization'."""
        c = OptimizerConfig.from_dict({
            "corridorWidth": 2,
            "minimumBlocksPerPolyhouse": 12,
            "optimization": {
                "orientationStrategy": "varied",
                "fillGapsWithSmallerPolyhouses": False,
            },
        })
        self.assertEqual(c.corridor_width, 2)
        self.assertEqual(c.min_sub_blocks, 12)
        self.assertEqual(c.orientation_strategy, MULTI_ORIENTATION)
        self.assertTrue(c.multi_orientation)
        self.assertFalse(c.fill_gaps)

    def test_schedule_override(self):
        c = OptimizerConfig.from_dict({"schedule": {"smallMaxAdded": 5}})
        self.assertEqual(c.schedule.small_max_added, 5)
        self.assertEqual(c.schedule.medium_max_added, 20)

    def test_unknown_key_rejected(self):
        with self.assertRaises(ConfigError) as ctx:
            OptimizerConfig.from_dict({"solarOrientation": True})
        self.assertIn("solar_orientation", str(ctx.exception))

    def test_unknown_schedule_key_rejected(self):
        with self.assertRaises(ConfigError):
            OptimizerConfig.from_dict({"schedule": {"bogus": 1}})

    def test_to_dict_round_trip(self):
        c = OptimizerConfig(corridor_width=4.0, orientation_strategy=MULTI_ORIENTATION)
        self.assertEqual(OptimizerConfig.from_dict(c.to_dict()), c)


class TestValidate(unittest.TestCase):

    def test_strategy_aliases(self):
        for alias in ("optimized", "multiOrientation", "Multi-Orientation"):
            self.assertEqual(normalise_strategy(alias), MULTI_ORIENTATION, alias)
        self.assertEqual(normalise_strategy("UNIFORM"), UNIFORM)

    def test_unknown_strategy(self):
        with self.assertRaises(ConfigError):
            OptimizerConfig(orientation_strategy="spiral").validate()

    def test_inconsistent_values(self):
        bad = [
            dict(unit_width=0),
            dict(max_dimension=6),
            dict(max_module_area=20),
            dict(corridor_width=-1),
            dict(min_sub_blocks=0),
            dict(target_coverage=0),
            dict(max_modules=0),
            dict(primary_area_fraction=1.5),
            dict(timeout_s=0),
        ]
        for kwargs in bad:
            with self.subTest(**kwargs):
                with self.assertRaises(ConfigError):
                    OptimizerConfig(**kwargs).validate()

    def test_config_error_is_value_error(self):
        with self.assertRaises(ValueError):
            OptimizerConfig(safety_buffer=-2).validate()

    def test_valid_config_returned_unchanged(self):
        c = OptimizerConfig(corridor_width=5.0)
        self.assertIs(c.validate(), c)


if __name__ == "__main__":
    unittest.main()

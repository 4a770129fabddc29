"""Optimizer configuration: structural sizing rules and pass schedule.

Every run receives one immutable :class:`OptimizerConfig`.  Inconsistent
values are rejected up front by :meth:`OptimizerConfig.validate`; the
optimizer never mutates the config it was handed.

Distances are in the parcel's planar units (metres for geographic input),
areas in square units.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any

from .errors import ConfigError


UNIFORM = "uniform"
MULTI_ORIENTATION = "multi_orientation"

# Older / UI spellings accepted for the orientation strategy.
_STRATEGY_ALIASES = {
    "uniform": UNIFORM,
    "multi_orientation": MULTI_ORIENTATION,
    "multiorientation": MULTI_ORIENTATION,
    "multi-orientation": MULTI_ORIENTATION,
    "varied": MULTI_ORIENTATION,
    "optimized": MULTI_ORIENTATION,
}


@dataclass(frozen=True)
class PassSchedule:
    """Thresholds for the three placement passes.

    Coverage values are percentages of the land area.
    """

    # ── Pass 1: primary ────────────────────────────────────────────
    primary_step_fraction: float = 0.2
    """Raster step as a fraction of the largest candidate's mean side."""

    primary_step_cap: float = 15.0
    """Upper bound on the primary raster step."""

    # ── Pass 2: gap-fill, medium modules ───────────────────────────
    medium_trigger_coverage: float = 85.0
    """Pass 2 runs only while coverage is below this."""

    medium_floor_fraction: float = 0.4
    """Pass 2 sizes must reach this fraction of the Pass-1 area floor."""

    medium_step_factor: float = 3.0
    medium_step_cap: float = 30.0
    medium_max_added: int = 20
    medium_max_positions: int = 500

    # ── Pass 3: gap-fill, small modules ────────────────────────────
    small_trigger_coverage: float = 70.0
    """Pass 3 runs only while coverage is below this."""

    small_stop_coverage: float = 75.0
    small_min_area: float = 500.0
    small_max_area: float = 2500.0
    small_step_factor: float = 2.0
    small_step_cap: float = 20.0
    small_max_added: int = 30
    small_max_positions: int = 400

    @property
    def medium_stop_coverage(self) -> float:
        return self.medium_trigger_coverage


@dataclass(frozen=True)
class OptimizerConfig:
    """Sizing, spacing and strategy rules for one optimisation run."""

    unit_width: float = 8.0
    """Base unit along the module width (gable bay)."""

    unit_depth: float = 4.0
    """Base unit along the module depth (gutter bay)."""

    max_module_area: float = 10_000.0
    max_dimension: float = 120.0
    """Longest allowed width or depth."""

    corridor_width: float = 3.0
    """Clearance grown around each placed module."""

    safety_buffer: float = 1.0
    """Inward offset of the buildable area from its edges."""

    min_sub_blocks: int = 10
    orientation_strategy: str = UNIFORM
    target_coverage: float = 65.0
    """Coverage ceiling (percent) for the primary pass."""

    fill_gaps: bool = True
    """Run the medium/small gap-fill passes after the primary pass."""

    max_modules: int = 10
    """Cap on modules committed by the primary pass."""

    primary_area_fraction: float = 0.8
    """Primary-pass sizes must reach this fraction of max_module_area."""

    timeout_s: float | None = None
    schedule: PassSchedule = field(default_factory=PassSchedule)

    # ── Derived helpers ────────────────────────────────────────────

    @property
    def multi_orientation(self) -> bool:
        return self.orientation_strategy == MULTI_ORIENTATION

    @property
    def primary_area_floor(self) -> float:
        return self.max_module_area * self.primary_area_fraction

    @property
    def sub_block_area(self) -> float:
        return self.unit_width * self.unit_depth

    # ── Validation ─────────────────────────────────────────────────

    def validate(self) -> "OptimizerConfig":
        """Return a normalised copy, or raise ConfigError."""
        strategy = normalise_strategy(self.orientation_strategy)

        if self.unit_width <= 0 or self.unit_depth <= 0:
            raise ConfigError("Base module units must be positive")
        if self.max_dimension < max(self.unit_width, self.unit_depth):
            raise ConfigError(
                f"max_dimension {self.max_dimension:g} is smaller than a "
                f"base unit ({self.unit_width:g}×{self.unit_depth:g})")
        if self.max_module_area < self.sub_block_area:
            raise ConfigError(
                f"max_module_area {self.max_module_area:g} is smaller than "
                f"one sub-block ({self.sub_block_area:g})")
        if self.corridor_width < 0:
            raise ConfigError("corridor_width must not be negative")
        if self.safety_buffer < 0:
            raise ConfigError("safety_buffer must not be negative")
        if self.min_sub_blocks < 1:
            raise ConfigError("min_sub_blocks must be at least 1")
        if not 0 < self.target_coverage <= 100:
            raise ConfigError("target_coverage must be in (0, 100]")
        if self.max_modules < 1:
            raise ConfigError("max_modules must be at least 1")
        if not 0 < self.primary_area_fraction <= 1:
            raise ConfigError("primary_area_fraction must be in (0, 1]")
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise ConfigError("timeout_s must be positive when given")

        if strategy == self.orientation_strategy:
            return self
        return replace(self, orientation_strategy=strategy)

    # ── Parsing ────────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "OptimizerConfig":
        """Build a validated config from a JSON-style dict.

        Accepts snake_case or camelCase keys, and the nested
        ``optimization`` block used by the planning UI
        (``orientationStrategy``, ``fillGapsWithSmallerPolyhouses``).
        Unknown keys raise ConfigError.
        """
        if not data:
            return cls().validate()

        flat: dict[str, Any] = {}
        for key, value in data.items():
            if key == "optimization" and isinstance(value, dict):
                for k, v in value.items():
                    flat[_snake(k)] = v
            else:
                flat[_snake(key)] = value

        renames = {
            "fill_gaps_with_smaller_polyhouses": "fill_gaps",
            "minimum_blocks_per_polyhouse": "min_sub_blocks",
            "gable_module": "unit_width",
            "gutter_module": "unit_depth",
            "max_area": "max_module_area",
        }
        for old, new in renames.items():
            if old in flat:
                flat[new] = flat.pop(old)

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(flat) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

        schedule = flat.pop("schedule", None)
        if isinstance(schedule, dict):
            sched_known = {f.name for f in fields(PassSchedule)}
            sched = {_snake(k): v for k, v in schedule.items()}
            bad = sorted(set(sched) - sched_known)
            if bad:
                raise ConfigError(f"Unknown schedule keys: {', '.join(bad)}")
            flat["schedule"] = PassSchedule(**sched)
        elif isinstance(schedule, PassSchedule):
            flat["schedule"] = schedule

        try:
            return cls(**flat).validate()
        except TypeError as exc:
            raise ConfigError(str(exc)) from exc

    def to_dict(self) -> dict[str, Any]:
        out = {f.name: getattr(self, f.name) for f in fields(self)}
        out["schedule"] = {
            f.name: getattr(self.schedule, f.name)
            for f in fields(self.schedule)
        }
        return out


def normalise_strategy(value: str) -> str:
    key = str(value or UNIFORM).strip().lower()
    try:
        return _STRATEGY_ALIASES[key]
    except KeyError:
        raise ConfigError(
            f"Unknown orientation strategy '{value}' "
            f"(expected '{UNIFORM}' or '{MULTI_ORIENTATION}')") from None


def _snake(name: str) -> str:
    out = []
    for ch in name:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out).lstrip("_")


# Module-level default, validated once.
DEFAULT_CONFIG = OptimizerConfig().validate()

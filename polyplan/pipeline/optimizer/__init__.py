"""Optimizer: packs rectangular modules into the buildable area.

Submodules:
  models         Dataclasses, run state and errors.
  buildable      Buildable polygon from boundary, zones and safety buffer.
  sizes          Legal module sizes, largest first.
  orientation    Uniform / multi-orientation rotation selection.
  validator      Pure placement predicates.
  grid           Raster iterator, stop policy and the greedy grid pass.
  engine         Multi-pass controller (optimize).
  labels         Sequential labels and palette colours.
  cancel         Cooperative cancellation / timeout token.
  serialization  JSON conversion (result_to_dict, parse_result).
"""

from .models import (
    ModuleSize, PlacementCandidate, SubBlock, PlacedModule, BuildableArea,
    OptimizationState, PassReport, PlacementResult, StopReason,
    OptimizerError, ConfigError, InvalidGeometry,
    InsufficientBuildableArea, NoFeasibleSize,
)
from .buildable import build_buildable_area
from .sizes import generate_candidate_sizes, filter_by_area
from .orientation import select_rotations, select_uniform_rotation, CANDIDATE_ANGLES
from .validator import PlacementContext, Rejection, check_placement, validate_placement
from .grid import StopPolicy, PassPlan, raster_points, run_grid_pass
from .engine import optimize, optimize_async, Phase
from .labels import assign_labels, MODULE_COLORS
from .cancel import CancelToken
from .serialization import result_to_dict, parse_result

__all__ = [
    # Models
    "ModuleSize", "PlacementCandidate", "SubBlock", "PlacedModule",
    "BuildableArea", "OptimizationState", "PassReport", "PlacementResult",
    "StopReason",
    # Errors
    "OptimizerError", "ConfigError", "InvalidGeometry",
    "InsufficientBuildableArea", "NoFeasibleSize",
    # Stages
    "build_buildable_area", "generate_candidate_sizes", "filter_by_area",
    "select_rotations", "select_uniform_rotation", "CANDIDATE_ANGLES",
    "PlacementContext", "Rejection", "check_placement", "validate_placement",
    "StopPolicy", "PassPlan", "raster_points", "run_grid_pass",
    "optimize", "optimize_async", "Phase",
    "assign_labels", "MODULE_COLORS",
    "CancelToken",
    # Serialization
    "result_to_dict", "parse_result",
]

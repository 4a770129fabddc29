from .ops import (
    GeometryOps,
    GeometryError,
    DEFAULT_OPS,
    rectangle_corners,
    rotation_terms,
    rotate_offset,
)

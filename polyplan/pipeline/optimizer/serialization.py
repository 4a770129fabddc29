"""Placement result serialization: JSON conversion."""

from __future__ import annotations

from polyplan.geometry.ops import GeometryOps, DEFAULT_OPS
from polyplan.pipeline.land.projection import LocalProjection

from .models import (
    ModuleSize, SubBlock, PlacedModule, PassReport, PlacementResult, StopReason,
)


def _point(x: float, y: float, projection: LocalProjection | None) -> dict:
    if projection is None:
        return {"x": round(x, 3), "y": round(y, 3)}
    lng, lat = projection.to_geo(x, y)
    return {"lng": round(lng, 8), "lat": round(lat, 8)}


def _unpoint(p: dict, projection: LocalProjection | None) -> tuple[float, float]:
    if "x" in p:
        return (float(p["x"]), float(p["y"]))
    if projection is None:
        raise ValueError("Geographic result needs a projection to parse")
    return projection.to_local(float(p["lng"]), float(p["lat"]))


def module_to_dict(
    m: PlacedModule,
    projection: LocalProjection | None = None,
    *,
    include_sub_blocks: bool = True,
) -> dict:
    out = {
        "label": m.label,
        "color": m.color,
        "center": _point(m.cx, m.cy, projection),
        "rotation_deg": m.rotation,
        "width": m.width,
        "depth": m.depth,
        "area": m.area,
        "sub_block_count": len(m.sub_blocks),
        "pass": m.pass_name,
        "corners": [_point(x, y, projection) for x, y in m.corners],
    }
    if include_sub_blocks:
        out["sub_blocks"] = [
            {
                "id": f"block-{b.column}-{b.row}",
                "column": b.column,
                "row": b.row,
                "corners": [_point(x, y, projection) for x, y in b.corners],
            }
            for b in m.sub_blocks
        ]
    return out


def pass_to_dict(r: PassReport) -> dict:
    return {
        "name": r.name,
        "added": r.added,
        "visited": r.visited,
        "stop_reason": r.stop_reason.value if r.stop_reason else None,
        "coverage_pct": round(r.coverage, 3),
        "step": r.step,
        "size_count": r.size_count,
        "rotations": list(r.rotations),
        "skipped": r.skipped,
        "warnings": list(r.warnings),
    }


def result_to_dict(
    result: PlacementResult,
    projection: LocalProjection | None = None,
    *,
    include_sub_blocks: bool = True,
) -> dict:
    """Serialize a PlacementResult to a JSON-safe dict.

    With a *projection*, every coordinate is emitted as ``{lng, lat}``.
    """
    return {
        "modules": [
            module_to_dict(m, projection, include_sub_blocks=include_sub_blocks)
            for m in result.modules
        ],
        "module_count": result.module_count,
        "total_area": result.total_area,
        "land_area": result.land_area,
        "coverage_pct": round(result.coverage, 3),
        "elapsed_s": round(result.elapsed_s, 4),
        "rotations": list(result.rotations),
        "passes": [pass_to_dict(r) for r in result.passes],
        "warnings": list(result.warnings),
        "cancelled": result.cancelled,
        "stop_reason": result.stop_reason.value if result.stop_reason else None,
        "buildable_area": result.buildable.area if result.buildable else None,
    }


def parse_result(
    data: dict,
    projection: LocalProjection | None = None,
    *,
    corridor_width: float = 0.0,
    unit_width: float = 8.0,
    unit_depth: float = 4.0,
    ops: GeometryOps = DEFAULT_OPS,
) -> PlacementResult:
    """Parse a serialized result back into a PlacementResult.

    Module polygons and footprints are rebuilt from the stored corners;
    pass *corridor_width* to recover the same footprints the run used.
    Sub-blocks are rebuilt from the module grid when they were not
    serialized.
    """
    from .grid import make_sub_blocks

    modules = []
    for d in data["modules"]:
        cx, cy = _unpoint(d["center"], projection)
        size = ModuleSize(float(d["width"]), float(d["depth"]))
        rotation = float(d["rotation_deg"])
        corners = tuple(_unpoint(p, projection) for p in d["corners"])
        if "sub_blocks" in d:
            sub_blocks = tuple(
                SubBlock(
                    column=int(b["column"]),
                    row=int(b["row"]),
                    local_x=-size.width / 2 + int(b["column"]) * unit_width,
                    local_y=-size.depth / 2 + int(b["row"]) * unit_depth,
                    corners=tuple(_unpoint(p, projection) for p in b["corners"]),
                )
                for b in d["sub_blocks"]
            )
        else:
            sub_blocks = make_sub_blocks(size, cx, cy, rotation, unit_width, unit_depth)
        polygon = ops.polygon(corners)
        modules.append(PlacedModule(
            size=size,
            cx=cx, cy=cy,
            rotation=rotation,
            corners=corners,
            sub_blocks=sub_blocks,
            polygon=polygon,
            footprint=ops.grow(polygon, corridor_width),
            pass_name=d.get("pass", ""),
            label=d.get("label", ""),
            color=d.get("color", ""),
        ))

    passes = [
        PassReport(
            name=p["name"],
            added=p.get("added", 0),
            visited=p.get("visited", 0),
            stop_reason=StopReason(p["stop_reason"]) if p.get("stop_reason") else None,
            coverage=p.get("coverage_pct", 0.0),
            step=p.get("step", 0.0),
            size_count=p.get("size_count", 0),
            rotations=tuple(p.get("rotations", ())),
            skipped=p.get("skipped", False),
            warnings=list(p.get("warnings", [])),
        )
        for p in data.get("passes", [])
    ]

    stop = data.get("stop_reason")
    return PlacementResult(
        modules=modules,
        coverage=float(data["coverage_pct"]),
        land_area=float(data["land_area"]),
        elapsed_s=float(data.get("elapsed_s", 0.0)),
        rotations=tuple(data.get("rotations", ())),
        passes=passes,
        warnings=list(data.get("warnings", [])),
        cancelled=bool(data.get("cancelled", False)),
        stop_reason=StopReason(stop) if stop else None,
    )

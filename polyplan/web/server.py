"""
FastAPI web server: layout optimisation endpoints for the planning UI.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from polyplan import __version__
from polyplan.pipeline.config import DEFAULT_CONFIG, OptimizerConfig
from polyplan.pipeline.errors import OptimizerError
from polyplan.pipeline.land import (
    LandParseError, parse_kml, parse_land_spec, parse_restricted_zones,
    validate_land_spec,
)
from polyplan.pipeline.optimizer import optimize_async, result_to_dict

log = logging.getLogger(__name__)

# ── App ────────────────────────────────────────────────────────────

app = FastAPI(title="Polyhouse Planner", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Models ─────────────────────────────────────────────────────────

class OptimizeRequest(BaseModel):
    land: dict[str, Any]
    config: dict[str, Any] | None = None
    restricted_zones: list[dict[str, Any]] = Field(default_factory=list)
    include_sub_blocks: bool = True


class KmlRequest(BaseModel):
    content: str
    file_name: str | None = None


# ── Error mapping ──────────────────────────────────────────────────

@app.exception_handler(OptimizerError)
async def _optimizer_error(request, exc: OptimizerError):
    log.info("Optimisation rejected: %s", exc)
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


# ── Routes ─────────────────────────────────────────────────────────

@app.get("/api/health")
def health():
    return {"status": "ok", "version": __version__}


@app.get("/api/config/defaults")
def config_defaults():
    """Default optimizer settings, so the UI can pre-fill its form."""
    return DEFAULT_CONFIG.to_dict()


@app.post("/api/optimize")
async def run_optimize(req: OptimizeRequest):
    """Plan a parcel and return the labelled module layout.

    The search runs in a worker thread; a timed-out run returns its
    partial layout with ``cancelled: true``.
    """
    try:
        land = parse_land_spec(req.land)
        zones = parse_restricted_zones(req.restricted_zones, land.projection)
    except LandParseError as exc:
        raise HTTPException(400, str(exc))

    errors = validate_land_spec(land, zones)
    if errors:
        raise HTTPException(400, {"errors": errors})

    config = OptimizerConfig.from_dict(req.config)
    result = await optimize_async(land, config, zones)
    return result_to_dict(
        result, land.projection, include_sub_blocks=req.include_sub_blocks)


@app.post("/api/zones/kml")
def import_kml(req: KmlRequest):
    """Extract zone rings from an uploaded KML document."""
    parsed = parse_kml(req.content)
    if not parsed.zones:
        raise HTTPException(400, {
            "error": "No valid zones found in KML file",
            "details": parsed.errors,
        })
    return {
        "zones": [
            {"name": z.name, "coordinates": z.coordinates, "area": z.area}
            for z in parsed.zones
        ],
        "warnings": parsed.errors,
        "file_name": req.file_name,
    }


# ── Entry point ────────────────────────────────────────────────────

def main(host: str = "127.0.0.1", port: int = 8000):
    import uvicorn
    uvicorn.run("polyplan.web.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()

"""
Polyhouse planner: entry point.

Usage:
    python -m polyplan optimize land.json [--zones zones.json]
                                [--config config.json] [--out result.json] [-v]
    python -m polyplan serve [--host HOST] [--port PORT]
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

USAGE = (
    "Usage: python -m polyplan optimize LAND.json [--zones Z.json] "
    "[--config C.json] [--out OUT.json] [-v]\n"
    "       python -m polyplan serve [--port PORT] [--host HOST]"
)


def _option(args: list[str], name: str) -> str | None:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return None


def _read_json(path: str):
    return json.loads(Path(path).read_text(encoding="utf-8"))


def run_optimize(args: list[str]) -> int:
    from polyplan.pipeline.config import OptimizerConfig
    from polyplan.pipeline.errors import OptimizerError
    from polyplan.pipeline.land import (
        LandParseError, parse_land_spec, parse_restricted_zones,
        validate_land_spec,
    )
    from polyplan.pipeline.optimizer import optimize, result_to_dict

    positional = [a for i, a in enumerate(args)
                  if not a.startswith("-") and (i == 0 or args[i - 1] not in
                                                ("--zones", "--config", "--out"))]
    if not positional:
        print(USAGE)
        return 1

    zones_path = _option(args, "--zones")
    try:
        land = parse_land_spec(_read_json(positional[0]))
        zones = parse_restricted_zones(
            _read_json(zones_path) if zones_path else None, land.projection)
    except (LandParseError, OSError, json.JSONDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    errors = validate_land_spec(land, zones)
    if errors:
        for e in errors:
            print(f"error: {e}", file=sys.stderr)
        return 1

    config_path = _option(args, "--config")
    try:
        config = OptimizerConfig.from_dict(
            _read_json(config_path) if config_path else None)
        result = optimize(land, config, zones)
    except OptimizerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    payload = json.dumps(result_to_dict(result, land.projection), indent=2)
    out = _option(args, "--out")
    if out:
        Path(out).write_text(payload, encoding="utf-8")
        print(f"{result.module_count} module(s), {result.coverage:.1f}% "
              f"coverage → {out}")
    else:
        print(payload)
    return 2 if result.cancelled else 0


def main():
    args = sys.argv[1:]
    cmd = args[0] if args else "serve"

    logging.basicConfig(
        level=logging.DEBUG if ("-v" in args or "--verbose" in args) else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if cmd == "serve":
        port = 8000
        host = "127.0.0.1"
        for i, a in enumerate(args):
            if a == "--port" and i + 1 < len(args):
                port = int(args[i + 1])
            elif a == "--host" and i + 1 < len(args):
                host = args[i + 1]

        from polyplan.web.server import main as serve
        serve(host=host, port=port)
    elif cmd == "optimize":
        sys.exit(run_optimize(args[1:]))
    else:
        print(f"Unknown command: {cmd}")
        print(USAGE)
        sys.exit(1)


if __name__ == "__main__":
    main()

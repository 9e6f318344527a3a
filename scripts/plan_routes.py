#!/usr/bin/env python3
"""Plan routes between two points and print the ranked candidates.

Talks to the live directions service configured through ``RIDENAV_*``
environment variables and prints each candidate with its distance, time,
traffic rating and fuel estimate.

Usage
-----
Set environment variables and run::

    export RIDENAV_DIRECTIONS_API_KEY="..."
    python scripts/plan_routes.py 14.5995,120.9842 14.6760,121.0437

Options::

    --efficiency KM_L    Fuel efficiency used for estimates (default: 35)
    --tank LITERS        Tank capacity (default: 12)
    --level PERCENT      Current fuel level (default: 100)
    --motor-id ID        Fetch the motor profile from the backend instead
    --sort KEY           fuel | time | distance | traffic (default: service order)
    --steps              Also print turn instructions
    --json               Output machine-readable JSON
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

import aiohttp  # noqa: E402

from ridenav import Coordinate, MotorProfile, RideNavConfig, RideNavError, RouteCandidate, RoutePlanner  # noqa: E402
from ridenav._api.motors import fetch_motor_profile  # noqa: E402
from ridenav._transport import HttpTransport  # noqa: E402
from ridenav.fuel import can_reach_destination  # noqa: E402

_SORT_KEYS: dict[str, Any] = {
    "fuel": lambda r: r.fuel_estimate_liters,
    "time": lambda r: r.duration_in_traffic_seconds or r.duration_seconds,
    "distance": lambda r: r.distance_meters,
    "traffic": lambda r: r.traffic_rating,
}


def _coordinate(value: str) -> Coordinate:
    try:
        lat, lng = (float(part) for part in value.split(","))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected LAT,LNG, got {value!r}") from exc
    return Coordinate(lat=lat, lng=lng)


def _describe(route: RouteCandidate, motor: MotorProfile, *, steps: bool) -> list[str]:
    minutes = (route.duration_in_traffic_seconds or route.duration_seconds) / 60.0
    reachable = "yes" if can_reach_destination(motor, route.distance_km) else "NO"
    lines = [
        f"  [{route.id}] {route.summary or '(unnamed)'}",
        f"      distance : {route.distance_km:.2f} km",
        f"      time     : {minutes:.0f} min (traffic {route.traffic_rating}/5)",
        f"      fuel     : {route.fuel_estimate_liters:.2f} L  reachable on current tank: {reachable}",
    ]
    if steps:
        lines.extend(f"        {i:>2}. {text}" for i, text in enumerate(route.turn_instructions, start=1))
    return lines


async def run(args: argparse.Namespace) -> int:
    config = RideNavConfig.from_env()
    async with aiohttp.ClientSession() as session:
        transport = HttpTransport(config, session)
        if args.motor_id:
            motor = await fetch_motor_profile(config, transport, args.motor_id)
        else:
            motor = MotorProfile(
                motor_id="cli",
                fuel_efficiency_km_per_liter=args.efficiency,
                fuel_tank_liters=args.tank,
                current_fuel_level_percent=args.level,
            )
        planner = RoutePlanner(config, transport)
        plan = await planner.plan_routes(args.origin, args.destination, motor)

    if plan is None:
        print("Route request was not admitted", file=sys.stderr)
        return 1

    routes = plan.sorted_by(_SORT_KEYS[args.sort]) if args.sort else list(plan.candidates)
    if args.json_mode:
        print(json.dumps([route.to_payload() for route in routes], indent=2, ensure_ascii=False))
        return 0

    out = [f"{len(routes)} route(s) for motor {motor.motor_id} ({motor.current_fuel_level_percent:.0f}% fuel)"]
    for route in routes:
        out.extend(_describe(route, motor, steps=args.steps))
    print("\n".join(out))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Plan routes with ridenav and print the candidates.")
    parser.add_argument("origin", type=_coordinate, help="Origin as LAT,LNG")
    parser.add_argument("destination", type=_coordinate, help="Destination as LAT,LNG")
    parser.add_argument("--efficiency", type=float, default=35.0, help="Fuel efficiency in km/L")
    parser.add_argument("--tank", type=float, default=12.0, help="Tank capacity in liters")
    parser.add_argument("--level", type=float, default=100.0, help="Current fuel level in percent")
    parser.add_argument("--motor-id", help="Fetch this motor profile from the backend")
    parser.add_argument("--sort", choices=sorted(_SORT_KEYS), help="Re-rank candidates for display")
    parser.add_argument("--steps", action="store_true", help="Print turn instructions")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        sys.exit(asyncio.run(run(args)))
    except RideNavError as exc:
        print(f"Planning failed: {exc}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()

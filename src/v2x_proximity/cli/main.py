"""Command line interface for road-network proximity detection."""
from __future__ import annotations

import argparse
import datetime
from pathlib import Path
from typing import List, Optional

from ..detection.observers import RecentAlertFeed
from ..domain.models import Coordinate, DetectionOptions, PositionSample, SessionOptions
from ..parser.network_loader import load_network
from ..pipeline import DetectionSession
from ..routing.astar import find_route
from ..utils.constants import DEFAULT_ALERT_THRESHOLD_M, DEFAULT_NETWORK_PATH, SCHEMA_JSON_PATH
from ..utils.errors import ProximityError, TraceValidationError
from ..utils.logging import configure_logger


def _coordinate(value: str) -> Coordinate:
    lat_token, sep, lon_token = value.partition(",")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected LAT,LON (got {value!r})")
    try:
        return Coordinate(float(lat_token), float(lon_token))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"coordinates must be numeric (got {value!r})") from exc


def _timestamp(value: str) -> datetime.datetime:
    try:
        return datetime.datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an ISO 8601 timestamp (got {value!r})") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Detect pedestrians within driving distance of a vehicle")
    parser.add_argument(
        "network",
        type=Path,
        nargs="?",
        default=DEFAULT_NETWORK_PATH,
        help="Path to the road network JSON (default: bundled Ahmedabad network)",
    )
    parser.add_argument(
        "--schema",
        "-sc",
        type=Path,
        default=SCHEMA_JSON_PATH,
        help="Path to the JSON schema (default: schema.json)",
    )
    parser.add_argument("--trace", "-tr", type=Path, help="CSV of latitude,longitude,timestamp samples to replay")
    parser.add_argument(
        "--position",
        "-p",
        type=_coordinate,
        action="append",
        metavar="LAT,LON",
        help="Vehicle position to evaluate (repeatable, applied before --trace)",
    )
    parser.add_argument("--spawn", "-sp", type=int, default=5, help="Pedestrians to spawn on random nodes (default: 5)")
    parser.add_argument("--spawn-near", "-sn", type=_coordinate, metavar="LAT,LON", help="Anchor for nearby spawns")
    parser.add_argument(
        "--spawn-near-count",
        "-snc",
        type=int,
        default=1,
        help="Pedestrians to spawn next to --spawn-near (default: 1)",
    )
    parser.add_argument(
        "--threshold",
        "-th",
        type=float,
        default=DEFAULT_ALERT_THRESHOLD_M,
        help="Alert distance threshold in metres (default: 2000)",
    )
    parser.add_argument("--traffic-time", "-tt", type=_timestamp, help="Time used for the traffic rule table (default: now)")
    parser.add_argument("--seed", "-sd", type=int, help="Random seed for pedestrian placement")
    parser.add_argument("--coalesce", "-co", action="store_true", help="Drop intermediate samples while a pass runs")
    parser.add_argument("--route", "-r", nargs=2, metavar=("FROM", "TO"), help="Print the route between two node ids and exit")
    parser.add_argument("--snap-url", "-su", help="OSRM nearest endpoint used to snap vehicle positions")
    parser.add_argument("--backend-url", "-bu", help="Backend base URL receiving vehicle and alert reports")
    parser.add_argument("--log-file", "-lf", type=Path, help="Write logs to this file")
    parser.add_argument("--no-console-log", "-nl", action="store_true", help="Disable console logging")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _build_options(args: argparse.Namespace) -> SessionOptions:
    if args.threshold <= 0:
        raise SystemExit("--threshold must be positive")
    if args.spawn < 0 or args.spawn_near_count < 0:
        raise SystemExit("spawn counts must not be negative")
    return SessionOptions(
        network_path=args.network,
        schema_path=args.schema,
        detection=DetectionOptions(threshold_m=args.threshold),
        snap_url=args.snap_url,
        backend_url=args.backend_url,
        traffic_time=args.traffic_time,
        seed=args.seed,
        console_log=not args.no_console_log,
        log_path=args.log_file,
    )


def _check_input_paths(args: argparse.Namespace) -> None:
    for flag, path in (("network", args.network), ("--schema", args.schema), ("--trace", args.trace)):
        if path is None:
            continue
        if not path.exists():
            raise SystemExit(f"{flag} path not found: {path}")
        if not path.is_file():
            raise SystemExit(f"{flag} must point to a file: {path}")


def _run_route(args: argparse.Namespace, options: SessionOptions) -> int:
    try:
        network = load_network(options.network_path, options.schema_path)
    except ProximityError as exc:
        raise SystemExit(f"invalid network {options.network_path}: {exc}") from exc
    network.graph.update_traffic_by_time(options.traffic_time or datetime.datetime.now())
    start, goal = args.route
    route = find_route(network.graph, start, goal)
    print(route)
    if not route.found:
        return 1
    print(" -> ".join(route.node_sequence))
    return 0


def _run_with_args(args: argparse.Namespace) -> int:
    options = _build_options(args)
    _check_input_paths(args)
    configure_logger(options.log_path, console=options.console_log)

    if args.route:
        return _run_route(args, options)

    try:
        session = DetectionSession.from_options(options)
    except ProximityError as exc:
        raise SystemExit(f"invalid network {options.network_path}: {exc}") from exc

    feed = RecentAlertFeed()
    with session:
        session.engine.subscribe(feed)
        session.engine.spawn_pedestrians(args.spawn)
        if args.spawn_near is not None:
            session.engine.spawn_near(args.spawn_near, args.spawn_near_count)

        now = datetime.datetime.now()
        samples = [
            PositionSample(latitude=coord.latitude, longitude=coord.longitude, timestamp=now)
            for coord in args.position or []
        ]
        session.replay(samples, coalesce=args.coalesce)
        if args.trace is not None:
            try:
                session.replay_trace(args.trace, coalesce=args.coalesce)
            except TraceValidationError as exc:
                raise SystemExit(str(exc)) from exc
        detected = session.engine.detected_pedestrians()

    for alert in reversed(feed.alerts):
        kind = "NEW" if alert.is_first_detection else "UPDATE"
        print(f"{kind} {alert.pedestrian_id} {alert.distance_m:.1f}m {alert.pedestrian_location}")
    print(f"detected: {len(detected)}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    return _run_with_args(args)


if __name__ == "__main__":
    raise SystemExit(main())

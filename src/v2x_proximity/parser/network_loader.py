"""Load road networks from JSON documents."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from jsonschema import Draft7Validator

from ..checks.connectivity import inspect_connectivity
from ..domain.models import (
    Coordinate,
    MapBounds,
    RoadNode,
    RoadSegment,
    TrafficAssignment,
    TrafficCondition,
    TrafficPeriod,
    TrafficRules,
)
from ..network.graph import RoadGraph
from ..utils.constants import SCHEMA_JSON_PATH
from ..utils.errors import (
    InvalidConfigurationError,
    NetworkFileNotFound,
    SchemaFileNotFound,
    SchemaValidationError,
)
from ..utils.logging import get_logger

LOG = get_logger()


@dataclass(frozen=True)
class LoadedNetwork:
    name: str
    graph: RoadGraph
    map_bounds: Optional[MapBounds]


def read_network_document(json_path: Path) -> Dict:
    if not json_path.exists():
        raise NetworkFileNotFound(f"network file not found: {json_path}")
    with json_path.open("r", encoding="utf-8") as f:
        network_json = json.load(f)
    LOG.info("read network file %s", json_path)
    return network_json


def read_schema_document(schema_path: Path) -> Dict:
    if not schema_path.exists():
        raise SchemaFileNotFound(f"schema file not found: {schema_path}")
    with schema_path.open("r", encoding="utf-8") as f:
        schema_json = json.load(f)
    LOG.debug("read schema %s", schema_path)
    return schema_json


def _json_location(path) -> str:
    location = "root"
    for part in path:
        location += f"[{part}]" if isinstance(part, int) else f".{part}"
    return location


def validate_json_schema(network_json: Dict, schema_json: Dict) -> None:
    """Report every schema violation of a network document, then fail once."""

    violations = sorted(
        Draft7Validator(schema_json).iter_errors(network_json),
        key=lambda err: [str(part) for part in err.path],
    )
    if not violations:
        LOG.info("[SCH] network document matches schema")
        return
    for err in violations:
        LOG.error("[SCH] %s: %s", _json_location(err.path), err.message)
    raise SchemaValidationError(f"network document has {len(violations)} schema violation(s)")


def parse_map_bounds(network_json: Dict) -> Optional[MapBounds]:
    raw = network_json.get("map_bounds")
    if raw is None:
        return None
    bounds = MapBounds(
        lat_min=float(raw["lat_min"]),
        lat_max=float(raw["lat_max"]),
        lon_min=float(raw["lon_min"]),
        lon_max=float(raw["lon_max"]),
    )
    if bounds.lat_min > bounds.lat_max or bounds.lon_min > bounds.lon_max:
        raise InvalidConfigurationError(f"map_bounds minimum exceeds maximum: {raw}")
    return bounds


def _hour_window(raw, default, label: str):
    if raw is None:
        return default
    start, end = int(raw[0]), int(raw[1])
    if start > end:
        raise InvalidConfigurationError(f"traffic_rules.{label} start hour {start} is after end hour {end}")
    return (start, end)


def parse_traffic_rules(network_json: Dict) -> TrafficRules:
    raw = network_json.get("traffic_rules") or {}
    defaults = TrafficRules()
    assignments = dict(defaults.assignments)
    for entry in raw.get("assignments", []):
        key = (TrafficPeriod(entry["period"]), bool(entry["major"]))
        assignments[key] = TrafficAssignment(
            condition=TrafficCondition(entry["condition"]),
            vehicle_count=int(entry["vehicle_count"]),
        )
    keywords = raw.get("major_road_keywords")
    rules = TrafficRules(
        morning_rush=_hour_window(raw.get("morning_rush"), defaults.morning_rush, "morning_rush"),
        evening_rush=_hour_window(raw.get("evening_rush"), defaults.evening_rush, "evening_rush"),
        major_road_keywords=tuple(k.lower() for k in keywords) if keywords is not None else defaults.major_road_keywords,
        assignments=assignments,
    )
    LOG.info(
        "traffic rules: morning=%s evening=%s major=%s",
        rules.morning_rush,
        rules.evening_rush,
        ",".join(rules.major_road_keywords),
    )
    return rules


def build_road_graph(network_json: Dict, *, traffic_rules: Optional[TrafficRules] = None) -> RoadGraph:
    """Materialise nodes then segments; endpoint or id errors abort the build."""

    graph = RoadGraph(traffic_rules=traffic_rules)
    for raw in network_json["nodes"]:
        graph.add_node(
            RoadNode(
                id=raw["id"],
                name=raw["name"],
                location=Coordinate(float(raw["latitude"]), float(raw["longitude"])),
                is_intersection=bool(raw.get("is_intersection", False)),
                has_traffic_signal=bool(raw.get("has_traffic_signal", False)),
            )
        )
    for raw in network_json["segments"]:
        graph.add_segment(
            RoadSegment(
                id=raw["id"],
                from_node_id=raw["from"],
                to_node_id=raw["to"],
                distance_m=float(raw["distance_m"]),
                road_name=raw["road_name"],
                speed_limit_kmh=float(raw["speed_limit_kmh"]),
                is_bidirectional=bool(raw.get("bidirectional", True)),
                is_one_way=bool(raw.get("one_way", False)),
                traffic_condition=TrafficCondition(raw.get("traffic", TrafficCondition.FREE.value)),
            )
        )
    LOG.info("road network built: %d nodes, %d segments", len(graph.nodes), len(graph.segments))
    return graph


def load_network(network_path: Path, schema_path: Path = SCHEMA_JSON_PATH) -> LoadedNetwork:
    network_json = read_network_document(network_path)
    validate_json_schema(network_json, read_schema_document(schema_path))
    graph = build_road_graph(network_json, traffic_rules=parse_traffic_rules(network_json))

    report = inspect_connectivity(graph)
    if len(report.components) > 1:
        LOG.warning(
            "road network has %d disconnected components: %s",
            len(report.components),
            " | ".join(",".join(component) for component in report.components),
        )
    if report.dead_ends:
        LOG.warning("nodes without outgoing segments: %s", ",".join(report.dead_ends))
    if report.short_segments:
        LOG.warning(
            "segments shorter than the straight line between their nodes: %s",
            ",".join(report.short_segments),
        )

    return LoadedNetwork(
        name=str(network_json.get("name") or network_path.stem),
        graph=graph,
        map_bounds=parse_map_bounds(network_json),
    )


__all__ = [
    "LoadedNetwork",
    "build_road_graph",
    "load_network",
    "parse_map_bounds",
    "parse_traffic_rules",
    "read_network_document",
    "read_schema_document",
    "validate_json_schema",
]

"""Domain models for the road network, routing results and detection state."""
from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..utils.constants import (
    DEFAULT_ALERT_THRESHOLD_M,
    DEFAULT_MAP_LAT_MAX,
    DEFAULT_MAP_LAT_MIN,
    DEFAULT_MAP_LON_MAX,
    DEFAULT_MAP_LON_MIN,
    DEFAULT_MAX_SEARCH_ITERATIONS,
    DEFAULT_NETWORK_PATH,
    EVENING_RUSH_HOURS,
    MAJOR_ROAD_KEYWORDS,
    MORNING_RUSH_HOURS,
    SCHEMA_JSON_PATH,
)


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def __str__(self) -> str:
        return f"({self.latitude:.5f}, {self.longitude:.5f})"


class TrafficCondition(str, Enum):
    FREE = "free"
    LIGHT = "light"
    MODERATE = "moderate"
    HEAVY = "heavy"
    BLOCKED = "blocked"


class TrafficPeriod(str, Enum):
    MORNING_RUSH = "morning_rush"
    EVENING_RUSH = "evening_rush"
    OFF_PEAK = "off_peak"


@dataclass
class RoadNode:
    """Intersection or point of interest; owned by a :class:`RoadGraph`."""

    id: str
    name: str
    location: Coordinate
    connected_segment_ids: List[str] = field(default_factory=list)
    is_intersection: bool = False
    has_traffic_signal: bool = False
    pedestrian_count: int = 0

    def __str__(self) -> str:
        return f"{self.name} ({self.id}) at {self.location}"


@dataclass
class RoadSegment:
    """Directed road stretch between two nodes."""

    id: str
    from_node_id: str
    to_node_id: str
    distance_m: float
    road_name: str
    speed_limit_kmh: float
    is_bidirectional: bool = True
    is_one_way: bool = False
    traffic_condition: TrafficCondition = TrafficCondition.FREE
    vehicle_count: int = 0

    @property
    def synthesizes_reverse(self) -> bool:
        return self.is_bidirectional and not self.is_one_way

    def same_definition(self, other: "RoadSegment") -> bool:
        return (
            self.id == other.id
            and self.from_node_id == other.from_node_id
            and self.to_node_id == other.to_node_id
            and self.distance_m == other.distance_m
            and self.road_name == other.road_name
            and self.speed_limit_kmh == other.speed_limit_kmh
            and self.is_bidirectional == other.is_bidirectional
            and self.is_one_way == other.is_one_way
        )

    def __str__(self) -> str:
        return (
            f"{self.road_name} ({self.from_node_id}->{self.to_node_id}): "
            f"{self.distance_m:.0f}m, {self.speed_limit_kmh:g}km/h, traffic={self.traffic_condition.value}"
        )


@dataclass(frozen=True)
class SegmentCost:
    """Traffic-adjusted metrics of one segment captured at a point in time."""

    search_cost: float
    distance_m: float
    travel_time_s: float


@dataclass(frozen=True)
class TrafficAssignment:
    condition: TrafficCondition
    vehicle_count: int


def _default_assignments() -> Dict[Tuple[TrafficPeriod, bool], TrafficAssignment]:
    return {
        (TrafficPeriod.MORNING_RUSH, True): TrafficAssignment(TrafficCondition.HEAVY, 200),
        (TrafficPeriod.MORNING_RUSH, False): TrafficAssignment(TrafficCondition.MODERATE, 50),
        (TrafficPeriod.EVENING_RUSH, True): TrafficAssignment(TrafficCondition.HEAVY, 250),
        (TrafficPeriod.EVENING_RUSH, False): TrafficAssignment(TrafficCondition.LIGHT, 30),
        (TrafficPeriod.OFF_PEAK, True): TrafficAssignment(TrafficCondition.FREE, 10),
        (TrafficPeriod.OFF_PEAK, False): TrafficAssignment(TrafficCondition.FREE, 10),
    }


@dataclass(frozen=True)
class TrafficRules:
    """Time-of-day rule table; rush windows are inclusive hour ranges."""

    morning_rush: Tuple[int, int] = MORNING_RUSH_HOURS
    evening_rush: Tuple[int, int] = EVENING_RUSH_HOURS
    major_road_keywords: Tuple[str, ...] = MAJOR_ROAD_KEYWORDS
    assignments: Dict[Tuple[TrafficPeriod, bool], TrafficAssignment] = field(
        default_factory=_default_assignments
    )


@dataclass(frozen=True)
class MapBounds:
    lat_min: float = DEFAULT_MAP_LAT_MIN
    lat_max: float = DEFAULT_MAP_LAT_MAX
    lon_min: float = DEFAULT_MAP_LON_MIN
    lon_max: float = DEFAULT_MAP_LON_MAX

    def contains(self, coordinate: Coordinate) -> bool:
        return (
            self.lat_min <= coordinate.latitude <= self.lat_max
            and self.lon_min <= coordinate.longitude <= self.lon_max
        )


class RouteFailure(str, Enum):
    UNKNOWN_ENDPOINT = "unknown_endpoint"
    NO_PATH = "no_path"
    ITERATION_LIMIT = "iteration_limit"
    RECONSTRUCTION_INCONSISTENCY = "reconstruction_inconsistency"


@dataclass(frozen=True)
class RouteResult:
    found: bool
    node_sequence: Tuple[str, ...] = ()
    segment_sequence: Tuple[str, ...] = ()
    segments: Tuple[RoadSegment, ...] = ()
    total_distance_m: float = 0.0
    total_time_s: float = 0.0
    failure: Optional[RouteFailure] = None

    @classmethod
    def not_found(cls, failure: RouteFailure) -> "RouteResult":
        return cls(found=False, failure=failure)

    def time_estimate(self) -> str:
        minutes = int(self.total_time_s // 60)
        seconds = int(self.total_time_s % 60)
        if minutes > 0:
            return f"{minutes} min {seconds} sec"
        return f"{seconds} sec"

    def __str__(self) -> str:
        return (
            f"Route(distance={self.total_distance_m:.0f}m, time={self.time_estimate()}, "
            f"nodes={len(self.node_sequence)}, found={self.found})"
        )


@dataclass(frozen=True)
class PedestrianSnapshot:
    id: str
    location: Coordinate
    detected: bool
    last_distance_m: Optional[float]


@dataclass
class StaticPedestrian:
    """Stationary detection target anchored on the road network."""

    id: str
    location: Coordinate
    detected: bool = False
    last_distance_m: Optional[float] = None

    def snapshot(self) -> PedestrianSnapshot:
        return PedestrianSnapshot(
            id=self.id,
            location=self.location,
            detected=self.detected,
            last_distance_m=self.last_distance_m,
        )


@dataclass(frozen=True)
class PedestrianAlert:
    pedestrian_id: str
    pedestrian_location: Coordinate
    distance_m: float
    detected_at: datetime.datetime
    is_first_detection: bool


@dataclass(frozen=True)
class PositionSample:
    latitude: float
    longitude: float
    timestamp: datetime.datetime

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)


@dataclass(frozen=True)
class DetectionPassResult:
    vehicle_node_id: Optional[str]
    alerts: Tuple[PedestrianAlert, ...]
    snapshot: Tuple[PedestrianSnapshot, ...]


@dataclass(frozen=True)
class DetectionOptions:
    threshold_m: float = DEFAULT_ALERT_THRESHOLD_M
    # None lets the network file decide; no bounds means every node may host a spawn.
    map_bounds: Optional[MapBounds] = None
    max_search_iterations: int = DEFAULT_MAX_SEARCH_ITERATIONS
    # Also emit non-first alerts while a pedestrian stays in range.
    emit_updates: bool = False


@dataclass(frozen=True)
class SessionOptions:
    """Options controlling how a detection session is assembled."""

    network_path: Path = DEFAULT_NETWORK_PATH
    schema_path: Path = SCHEMA_JSON_PATH
    detection: DetectionOptions = field(default_factory=DetectionOptions)
    snap_url: Optional[str] = None
    backend_url: Optional[str] = None
    traffic_time: Optional[datetime.datetime] = None
    seed: Optional[int] = None
    console_log: bool = True
    log_path: Optional[Path] = None

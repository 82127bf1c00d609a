"""Traffic-aware cost model and time-of-day congestion rules."""
from __future__ import annotations

import datetime
import math
from typing import Dict

from ..domain.models import (
    RoadSegment,
    SegmentCost,
    TrafficAssignment,
    TrafficCondition,
    TrafficPeriod,
    TrafficRules,
)
from ..utils.constants import DISTANCE_PENALTY_DIVISOR_M, KMH_TO_MS

SPEED_FACTORS: Dict[TrafficCondition, float] = {
    TrafficCondition.FREE: 1.0,
    TrafficCondition.LIGHT: 0.8,
    TrafficCondition.MODERATE: 0.6,
    TrafficCondition.HEAVY: 0.3,
    TrafficCondition.BLOCKED: 0.05,
}


def effective_speed_kmh(segment: RoadSegment) -> float:
    return segment.speed_limit_kmh * SPEED_FACTORS[segment.traffic_condition]


def travel_time_s(segment: RoadSegment) -> float:
    speed_ms = effective_speed_kmh(segment) * KMH_TO_MS
    if speed_ms <= 0:
        return math.inf
    return segment.distance_m / speed_ms


def search_cost(segment: RoadSegment) -> float:
    """Travel time plus a small distance penalty favouring shorter roads."""

    return travel_time_s(segment) + segment.distance_m / DISTANCE_PENALTY_DIVISOR_M


def segment_cost(segment: RoadSegment) -> SegmentCost:
    return SegmentCost(
        search_cost=search_cost(segment),
        distance_m=segment.distance_m,
        travel_time_s=travel_time_s(segment),
    )


def classify_period(timestamp: datetime.datetime, rules: TrafficRules) -> TrafficPeriod:
    hour = timestamp.hour
    morning_start, morning_end = rules.morning_rush
    evening_start, evening_end = rules.evening_rush
    if morning_start <= hour <= morning_end:
        return TrafficPeriod.MORNING_RUSH
    if evening_start <= hour <= evening_end:
        return TrafficPeriod.EVENING_RUSH
    return TrafficPeriod.OFF_PEAK


def is_major_road(road_name: str, rules: TrafficRules) -> bool:
    name = road_name.lower()
    return any(keyword.lower() in name for keyword in rules.major_road_keywords)


def assignment_for(segment: RoadSegment, period: TrafficPeriod, rules: TrafficRules) -> TrafficAssignment:
    return rules.assignments[(period, is_major_road(segment.road_name, rules))]


__all__ = [
    "SPEED_FACTORS",
    "assignment_for",
    "classify_period",
    "effective_speed_kmh",
    "is_major_road",
    "search_cost",
    "segment_cost",
    "travel_time_s",
]

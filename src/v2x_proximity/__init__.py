"""Pedestrian proximity detection over a traffic-aware road network."""
from __future__ import annotations

from .detection import PositionDispatcher, ProximityEngine
from .domain.models import (
    Coordinate,
    DetectionOptions,
    PedestrianAlert,
    RoadNode,
    RoadSegment,
    RouteResult,
    SessionOptions,
    StaticPedestrian,
    TrafficCondition,
)
from .network.graph import RoadGraph
from .parser.network_loader import load_network
from .pipeline import DetectionSession
from .routing.astar import find_route, nearest_node

__all__ = [
    "Coordinate",
    "DetectionOptions",
    "DetectionSession",
    "PedestrianAlert",
    "PositionDispatcher",
    "ProximityEngine",
    "RoadGraph",
    "RoadNode",
    "RoadSegment",
    "RouteResult",
    "SessionOptions",
    "StaticPedestrian",
    "TrafficCondition",
    "find_route",
    "load_network",
    "nearest_node",
]

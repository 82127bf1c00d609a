"""Proximity detection: engine, pedestrian state, observers and dispatch."""
from .dispatcher import PositionDispatcher
from .engine import ProximityEngine
from .observers import DetectionEvent, DetectionObserver, EventKind, ObserverHub, QueueObserver, RecentAlertFeed
from .store import PedestrianStore

__all__ = [
    "DetectionEvent",
    "DetectionObserver",
    "EventKind",
    "ObserverHub",
    "PedestrianStore",
    "PositionDispatcher",
    "ProximityEngine",
    "QueueObserver",
    "RecentAlertFeed",
]

"""Observer interface and publishers for detection events."""
from __future__ import annotations

import queue
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, List, Protocol, Sequence, Tuple, Union

from ..domain.models import PedestrianAlert, PedestrianSnapshot
from ..utils.constants import MAX_RECENT_ALERTS
from ..utils.logging import get_logger

LOG = get_logger()


class DetectionObserver(Protocol):
    def on_alert(self, alert: PedestrianAlert) -> None:
        ...

    def on_pedestrians_updated(self, snapshot: Sequence[PedestrianSnapshot]) -> None:
        ...


class ObserverHub:
    """Fan events out to subscribers; a failing subscriber never stops the others."""

    def __init__(self) -> None:
        self._observers: List[DetectionObserver] = []
        self._lock = threading.Lock()

    def subscribe(self, observer: DetectionObserver) -> None:
        with self._lock:
            if observer not in self._observers:
                self._observers.append(observer)

    def unsubscribe(self, observer: DetectionObserver) -> None:
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def _current(self) -> List[DetectionObserver]:
        with self._lock:
            return list(self._observers)

    def publish_alert(self, alert: PedestrianAlert) -> None:
        for observer in self._current():
            try:
                observer.on_alert(alert)
            except Exception:
                LOG.exception("[DET] observer %r failed on alert for %s", observer, alert.pedestrian_id)

    def publish_snapshot(self, snapshot: Sequence[PedestrianSnapshot]) -> None:
        for observer in self._current():
            try:
                observer.on_pedestrians_updated(snapshot)
            except Exception:
                LOG.exception("[DET] observer %r failed on pedestrian update", observer)


class EventKind(str, Enum):
    ALERT = "alert"
    SNAPSHOT = "snapshot"


@dataclass(frozen=True)
class DetectionEvent:
    kind: EventKind
    payload: Union[PedestrianAlert, Tuple[PedestrianSnapshot, ...]]


class QueueObserver:
    """Channel adapter: every event lands on a :class:`queue.Queue`."""

    def __init__(self, maxsize: int = 0) -> None:
        self.events: "queue.Queue[DetectionEvent]" = queue.Queue(maxsize=maxsize)

    def on_alert(self, alert: PedestrianAlert) -> None:
        self.events.put(DetectionEvent(EventKind.ALERT, alert))

    def on_pedestrians_updated(self, snapshot: Sequence[PedestrianSnapshot]) -> None:
        self.events.put(DetectionEvent(EventKind.SNAPSHOT, tuple(snapshot)))

    def drain(self) -> List[DetectionEvent]:
        drained: List[DetectionEvent] = []
        while True:
            try:
                drained.append(self.events.get_nowait())
            except queue.Empty:
                return drained


class RecentAlertFeed:
    """Newest-first list of the last few alerts, as shown on an alert panel."""

    def __init__(self, limit: int = MAX_RECENT_ALERTS) -> None:
        self._alerts: Deque[PedestrianAlert] = deque(maxlen=limit)
        self._lock = threading.Lock()
        self.latest_snapshot: Tuple[PedestrianSnapshot, ...] = ()

    @property
    def alerts(self) -> List[PedestrianAlert]:
        with self._lock:
            return list(self._alerts)

    def on_alert(self, alert: PedestrianAlert) -> None:
        with self._lock:
            self._alerts.appendleft(alert)

    def on_pedestrians_updated(self, snapshot: Sequence[PedestrianSnapshot]) -> None:
        self.latest_snapshot = tuple(snapshot)


__all__ = [
    "DetectionEvent",
    "DetectionObserver",
    "EventKind",
    "ObserverHub",
    "QueueObserver",
    "RecentAlertFeed",
]

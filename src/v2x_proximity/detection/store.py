"""Explicitly owned collection of pedestrian detection state."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Tuple

from ..domain.models import PedestrianSnapshot, StaticPedestrian
from ..utils.errors import DuplicateEntity


class PedestrianStore:
    """Pedestrians tracked by one engine.

    Only the engine mutates ``detected``/``last_distance_m``; it does so while
    holding :meth:`locked`, so readers always observe whole passes.
    """

    def __init__(self, pedestrians: Iterable[StaticPedestrian] = ()) -> None:
        self._pedestrians: List[StaticPedestrian] = []
        self._lock = threading.RLock()
        self.extend(pedestrians)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pedestrians)

    @contextmanager
    def locked(self) -> Iterator[List[StaticPedestrian]]:
        with self._lock:
            yield list(self._pedestrians)

    def add(self, pedestrian: StaticPedestrian) -> None:
        with self._lock:
            if any(ped.id == pedestrian.id for ped in self._pedestrians):
                raise DuplicateEntity(f"pedestrian already tracked: {pedestrian.id}")
            self._pedestrians.append(pedestrian)

    def extend(self, pedestrians: Iterable[StaticPedestrian]) -> None:
        with self._lock:
            for pedestrian in pedestrians:
                self.add(pedestrian)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._pedestrians)
            self._pedestrians.clear()
            return removed

    def snapshot(self) -> Tuple[PedestrianSnapshot, ...]:
        with self._lock:
            return tuple(ped.snapshot() for ped in self._pedestrians)

    def detected(self) -> Tuple[PedestrianSnapshot, ...]:
        with self._lock:
            return tuple(ped.snapshot() for ped in self._pedestrians if ped.detected)


__all__ = ["PedestrianStore"]

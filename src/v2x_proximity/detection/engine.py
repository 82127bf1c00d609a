"""Detection passes that turn vehicle positions into pedestrian alerts."""
from __future__ import annotations

import datetime
import itertools
import random
import threading
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..domain.models import (
    Coordinate,
    DetectionOptions,
    DetectionPassResult,
    PedestrianAlert,
    PedestrianSnapshot,
    SegmentCost,
    StaticPedestrian,
)
from ..network.graph import RoadGraph
from ..routing.astar import find_route, nearest_node
from ..utils.logging import get_logger
from .observers import DetectionObserver, ObserverHub
from .spawner import anchored_spawn_candidates, place_pedestrians, random_spawn_candidates
from .store import PedestrianStore

LOG = get_logger()

Clock = Callable[[], datetime.datetime]


class ProximityEngine:
    """Measure driving distance from a vehicle to every tracked pedestrian.

    Alerts are edge-triggered: a pedestrian yields one ``is_first_detection``
    alert when its route distance first drops to or below the threshold, and
    re-arms once the distance exceeds it again (or no route exists).  Passes
    are serialized; a second caller blocks until the running pass finishes.
    """

    def __init__(
        self,
        graph: RoadGraph,
        *,
        store: Optional[PedestrianStore] = None,
        options: Optional[DetectionOptions] = None,
        hub: Optional[ObserverHub] = None,
        rng: Optional[random.Random] = None,
        clock: Clock = datetime.datetime.now,
    ) -> None:
        self.graph = graph
        self.store = store if store is not None else PedestrianStore()
        self.options = options or DetectionOptions()
        self.hub = hub if hub is not None else ObserverHub()
        self._rng = rng or random.Random()
        self._clock = clock
        self._ordinals = itertools.count()
        self._pass_lock = threading.Lock()

    @property
    def threshold_m(self) -> float:
        return self.options.threshold_m

    def subscribe(self, observer: DetectionObserver) -> None:
        self.hub.subscribe(observer)

    def on_vehicle_position(self, vehicle: Coordinate) -> DetectionPassResult:
        with self._pass_lock:
            return self._run_pass(vehicle)

    def _run_pass(self, vehicle: Coordinate) -> DetectionPassResult:
        vehicle_node = nearest_node(self.graph, vehicle)
        costs = self.graph.cost_snapshot()
        alerts: List[PedestrianAlert] = []
        node_cache: Dict[Coordinate, Optional[str]] = {}

        with self.store.locked() as pedestrians:
            if not pedestrians:
                LOG.debug("[DET] no pedestrians to detect")
            elif vehicle_node is None:
                LOG.warning("[DET] road network is empty; treating all pedestrians as out of range")
            else:
                LOG.debug("[DET] vehicle at %s", self.graph.nodes[vehicle_node])
            for ped in pedestrians:
                try:
                    alert = self._evaluate(ped, vehicle_node, costs, node_cache)
                except Exception:
                    LOG.exception("[DET] evaluation failed for %s", ped.id)
                    self._mark_out_of_range(ped, distance=None)
                    continue
                if alert is not None:
                    alerts.append(alert)
            snapshot = tuple(ped.snapshot() for ped in pedestrians)

        for alert in alerts:
            self.hub.publish_alert(alert)
        self.hub.publish_snapshot(snapshot)
        LOG.info(
            "[DET] pass at %s: pedestrians=%d detected=%d alerts=%d",
            vehicle,
            len(snapshot),
            sum(1 for ped in snapshot if ped.detected),
            len(alerts),
        )
        return DetectionPassResult(vehicle_node_id=vehicle_node, alerts=tuple(alerts), snapshot=snapshot)

    def _evaluate(
        self,
        ped: StaticPedestrian,
        vehicle_node: Optional[str],
        costs: Mapping[str, SegmentCost],
        node_cache: Dict[Coordinate, Optional[str]],
    ) -> Optional[PedestrianAlert]:
        if ped.location not in node_cache:
            node_cache[ped.location] = nearest_node(self.graph, ped.location)
        ped_node = node_cache[ped.location]
        if vehicle_node is None or ped_node is None:
            self._mark_out_of_range(ped, distance=None)
            return None

        route = find_route(
            self.graph,
            vehicle_node,
            ped_node,
            max_iterations=self.options.max_search_iterations,
            costs=costs,
        )
        if not route.found:
            LOG.info("[DET] %s: no route (%s)", ped.id, route.failure.value if route.failure else "unknown")
            self._mark_out_of_range(ped, distance=None)
            return None

        distance = route.total_distance_m
        LOG.debug("[DET] %s: %.0fm via %d nodes", ped.id, distance, len(route.node_sequence))
        if distance > self.threshold_m:
            self._mark_out_of_range(ped, distance=distance)
            return None

        ped.last_distance_m = distance
        first = not ped.detected
        ped.detected = True
        if not first and not self.options.emit_updates:
            return None
        if first:
            LOG.warning("[DET] ALERT: %s at %.0fm", ped.id, distance)
        return PedestrianAlert(
            pedestrian_id=ped.id,
            pedestrian_location=ped.location,
            distance_m=distance,
            detected_at=self._clock(),
            is_first_detection=first,
        )

    @staticmethod
    def _mark_out_of_range(ped: StaticPedestrian, *, distance: Optional[float]) -> None:
        ped.last_distance_m = distance
        if ped.detected:
            ped.detected = False
            LOG.info("[DET] %s out of range", ped.id)

    def spawn_pedestrians(self, count: int) -> Tuple[PedestrianSnapshot, ...]:
        """Place ``count`` pedestrians on random nodes inside the map bounds."""

        candidates = random_spawn_candidates(self.graph, self.options.map_bounds)
        return self._spawn(candidates, count)

    def spawn_near(self, anchor: Coordinate, count: int) -> Tuple[PedestrianSnapshot, ...]:
        """Place ``count`` pedestrians one hop away from the node nearest ``anchor``."""

        candidates = anchored_spawn_candidates(self.graph, anchor)
        return self._spawn(candidates, count)

    def _spawn(self, candidates: Sequence[str], count: int) -> Tuple[PedestrianSnapshot, ...]:
        epoch_ms = int(self._clock().timestamp() * 1000)
        spawned = place_pedestrians(
            self.graph,
            candidates,
            count,
            rng=self._rng,
            epoch_ms=epoch_ms,
            next_ordinal=lambda: next(self._ordinals),
        )
        self.store.extend(spawned)
        LOG.info("[SPAWN] total pedestrians: %d", len(self.store))
        self.hub.publish_snapshot(self.store.snapshot())
        return tuple(ped.snapshot() for ped in spawned)

    def add_pedestrian(self, pedestrian: StaticPedestrian) -> None:
        self.store.add(pedestrian)
        self.hub.publish_snapshot(self.store.snapshot())

    def clear_all(self) -> int:
        removed = self.store.clear()
        for node in self.graph.nodes.values():
            node.pedestrian_count = 0
        LOG.info("[DET] cleared %d pedestrians", removed)
        self.hub.publish_snapshot(())
        return removed

    def detected_pedestrians(self) -> Tuple[PedestrianSnapshot, ...]:
        return self.store.detected()

    def snapshot(self) -> Tuple[PedestrianSnapshot, ...]:
        return self.store.snapshot()


__all__ = ["ProximityEngine"]

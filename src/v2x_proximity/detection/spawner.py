"""Placement of stationary pedestrians onto road network nodes."""
from __future__ import annotations

import random
from typing import Callable, List, Optional, Sequence

from ..builder.ids import pedestrian_id
from ..domain.models import Coordinate, MapBounds, StaticPedestrian
from ..network.graph import RoadGraph
from ..routing.astar import nearest_node
from ..utils.logging import get_logger

LOG = get_logger()

OrdinalSource = Callable[[], int]


def random_spawn_candidates(graph: RoadGraph, bounds: Optional[MapBounds]) -> List[str]:
    node_ids = sorted(graph.nodes)
    if bounds is None:
        return node_ids
    return [nid for nid in node_ids if bounds.contains(graph.nodes[nid].location)]


def anchored_spawn_candidates(graph: RoadGraph, anchor: Coordinate) -> List[str]:
    anchor_node = nearest_node(graph, anchor)
    if anchor_node is None:
        return []
    destinations = list(dict.fromkeys(seg.to_node_id for seg in graph.outgoing_segments(anchor_node)))
    return destinations or [anchor_node]


def place_pedestrians(
    graph: RoadGraph,
    candidates: Sequence[str],
    count: int,
    *,
    rng: random.Random,
    epoch_ms: int,
    next_ordinal: OrdinalSource,
) -> List[StaticPedestrian]:
    if count <= 0:
        return []
    if not candidates:
        LOG.warning("[SPAWN] no candidate nodes available; nothing spawned")
        return []
    spawned: List[StaticPedestrian] = []
    for _ in range(count):
        node = graph.nodes[rng.choice(candidates)]
        ped = StaticPedestrian(id=pedestrian_id(epoch_ms, next_ordinal()), location=node.location)
        node.pedestrian_count += 1
        spawned.append(ped)
        LOG.info("[SPAWN] %s at %s", ped.id, node.name)
    return spawned


__all__ = ["anchored_spawn_candidates", "place_pedestrians", "random_spawn_candidates"]

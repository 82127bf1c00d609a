"""Traffic-aware A* routing over a :class:`RoadGraph`.

The heuristic is the straight-line (haversine) distance to the goal in metres
while edge weights are travel seconds plus a distance penalty.  The estimate
therefore does not bound the time-dominated remaining cost, which makes this a
best-effort informed search: under heavily skewed traffic the returned route
is near-optimal rather than guaranteed optimal.
"""
from __future__ import annotations

import heapq
import math
from typing import Dict, List, Mapping, Optional, Set, Tuple

from ..domain.models import Coordinate, RoadSegment, RouteFailure, RouteResult, SegmentCost
from ..network.geometry import haversine_m
from ..network.graph import RoadGraph
from ..network.traffic import segment_cost
from ..utils.constants import DEFAULT_MAX_SEARCH_ITERATIONS
from ..utils.errors import ReconstructionInconsistency
from ..utils.logging import get_logger

LOG = get_logger()


def find_route(
    graph: RoadGraph,
    start_node_id: str,
    goal_node_id: str,
    *,
    max_iterations: int = DEFAULT_MAX_SEARCH_ITERATIONS,
    costs: Optional[Mapping[str, SegmentCost]] = None,
    strict: bool = False,
) -> RouteResult:
    """Search the cheapest route between two nodes.

    ``costs`` defaults to a fresh :meth:`RoadGraph.cost_snapshot` so that a
    concurrent traffic update cannot change edge weights mid-search.  With
    ``strict`` a broken predecessor chain raises
    :class:`ReconstructionInconsistency` instead of being reported as a
    ``reconstruction_inconsistency`` failure.
    """

    if start_node_id not in graph.nodes or goal_node_id not in graph.nodes:
        LOG.warning("[A*] invalid endpoints: %s -> %s", start_node_id, goal_node_id)
        return RouteResult.not_found(RouteFailure.UNKNOWN_ENDPOINT)

    weights = costs if costs is not None else graph.cost_snapshot()
    goal_location = graph.nodes[goal_node_id].location

    def heuristic(node_id: str) -> float:
        return haversine_m(graph.nodes[node_id].location, goal_location)

    came_from: Dict[str, str] = {}
    g_score: Dict[str, float] = {start_node_id: 0.0}
    f_score: Dict[str, float] = {start_node_id: heuristic(start_node_id)}
    open_set: Set[str] = {start_node_id}
    open_heap: List[Tuple[float, str]] = [(f_score[start_node_id], start_node_id)]
    iterations = 0

    while open_set:
        if iterations >= max_iterations:
            LOG.warning(
                "[A*] iteration limit (%d) reached: %s -> %s", max_iterations, start_node_id, goal_node_id
            )
            return RouteResult.not_found(RouteFailure.ITERATION_LIMIT)

        current_f, current = heapq.heappop(open_heap)
        if current not in open_set or current_f != f_score[current]:
            continue
        iterations += 1

        if current == goal_node_id:
            LOG.debug("[A*] path %s -> %s found after %d iterations", start_node_id, goal_node_id, iterations)
            try:
                return _reconstruct_path(graph, came_from, current, weights)
            except ReconstructionInconsistency as exc:
                if strict:
                    raise
                LOG.error("[A*] graph inconsistency while rebuilding %s -> %s: %s", start_node_id, goal_node_id, exc)
                return RouteResult.not_found(RouteFailure.RECONSTRUCTION_INCONSISTENCY)

        open_set.discard(current)
        for segment in graph.outgoing_segments(current):
            neighbor = segment.to_node_id
            tentative = g_score[current] + _weight(segment, weights).search_cost
            if tentative < g_score.get(neighbor, math.inf):
                came_from[neighbor] = current
                g_score[neighbor] = tentative
                f_score[neighbor] = tentative + heuristic(neighbor)
                open_set.add(neighbor)
                heapq.heappush(open_heap, (f_score[neighbor], neighbor))

    LOG.debug("[A*] no path %s -> %s after %d iterations", start_node_id, goal_node_id, iterations)
    return RouteResult.not_found(RouteFailure.NO_PATH)


def _weight(segment: RoadSegment, weights: Mapping[str, SegmentCost]) -> SegmentCost:
    cost = weights.get(segment.id)
    return cost if cost is not None else segment_cost(segment)


def _reconstruct_path(
    graph: RoadGraph,
    came_from: Mapping[str, str],
    goal_node_id: str,
    weights: Mapping[str, SegmentCost],
) -> RouteResult:
    nodes: List[str] = [goal_node_id]
    segments: List[RoadSegment] = []
    total_distance = 0.0
    total_time = 0.0

    current = goal_node_id
    while current in came_from:
        previous = came_from[current]
        connecting = next(
            (seg for seg in graph.outgoing_segments(previous) if seg.to_node_id == current),
            None,
        )
        if connecting is None:
            raise ReconstructionInconsistency(f"no segment connects {previous} -> {current}")
        segments.append(connecting)
        total_distance += connecting.distance_m
        total_time += _weight(connecting, weights).travel_time_s
        nodes.append(previous)
        current = previous

    nodes.reverse()
    segments.reverse()
    return RouteResult(
        found=True,
        node_sequence=tuple(nodes),
        segment_sequence=tuple(seg.id for seg in segments),
        segments=tuple(segments),
        total_distance_m=total_distance,
        total_time_s=total_time,
    )


def nearest_node(graph: RoadGraph, coordinate: Coordinate) -> Optional[str]:
    """Closest node by great-circle distance; ties keep the smallest id."""

    nearest: Optional[str] = None
    min_dist = math.inf
    for node_id in sorted(graph.nodes):
        dist = haversine_m(coordinate, graph.nodes[node_id].location)
        if dist < min_dist:
            min_dist = dist
            nearest = node_id
    if nearest is not None:
        LOG.debug("[A*] nearest node to %s: %s (%.0fm away)", coordinate, nearest, min_dist)
    return nearest


def road_distance(
    graph: RoadGraph,
    from_coord: Coordinate,
    to_coord: Coordinate,
    from_node_id: str,
    to_node_id: str,
    *,
    max_iterations: int = DEFAULT_MAX_SEARCH_ITERATIONS,
) -> float:
    """Driving distance between two coordinates stitched onto their nodes."""

    route = find_route(graph, from_node_id, to_node_id, max_iterations=max_iterations)
    if not route.found:
        return math.inf
    to_start = haversine_m(from_coord, graph.nodes[from_node_id].location)
    from_end = haversine_m(graph.nodes[to_node_id].location, to_coord)
    return to_start + route.total_distance_m + from_end


__all__ = ["find_route", "nearest_node", "road_distance"]

"""Structural checks over a built road graph."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import networkx as nx

from ..builder.ids import is_reverse_segment_id
from ..network.geometry import haversine_m
from ..network.graph import RoadGraph


@dataclass(frozen=True)
class ConnectivityReport:
    components: Tuple[Tuple[str, ...], ...]
    dead_ends: Tuple[str, ...]
    adjacency_issues: Tuple[str, ...]
    short_segments: Tuple[str, ...] = ()

    @property
    def is_connected(self) -> bool:
        return len(self.components) <= 1

    @property
    def well_formed(self) -> bool:
        return not self.adjacency_issues


def _sort_key(component: Tuple[str, ...]) -> Tuple[int, Tuple[str, ...]]:
    return (-len(component), component)


def adjacency_issues(graph: RoadGraph) -> List[str]:
    """Report adjacency entries that break the origin/endpoint invariants."""

    issues: List[str] = []
    for node_id, segment_ids in graph.adjacency.items():
        if node_id not in graph.nodes:
            issues.append(f"adjacency lists unknown node {node_id}")
        for sid in segment_ids:
            segment = graph.segments.get(sid)
            if segment is None:
                issues.append(f"node {node_id} lists missing segment {sid}")
            elif segment.from_node_id != node_id:
                issues.append(f"segment {sid} listed under {node_id} but starts at {segment.from_node_id}")
    for sid, segment in graph.segments.items():
        for endpoint in (segment.from_node_id, segment.to_node_id):
            if endpoint not in graph.nodes:
                issues.append(f"segment {sid} references unknown node {endpoint}")
    return issues


def short_segments(graph: RoadGraph) -> List[str]:
    """Declared segments shorter than the straight line between their endpoints.

    Route lengths over such segments can undercut the great-circle distance.
    Synthesized reverse segments mirror their forward segment and are skipped.
    """

    found: List[str] = []
    for sid in sorted(graph.segments):
        if is_reverse_segment_id(sid):
            continue
        segment = graph.segments[sid]
        start = graph.nodes.get(segment.from_node_id)
        end = graph.nodes.get(segment.to_node_id)
        if start is None or end is None:
            continue
        if segment.distance_m < haversine_m(start.location, end.location):
            found.append(sid)
    return found


def inspect_connectivity(graph: RoadGraph) -> ConnectivityReport:
    nx_graph = graph.to_networkx()
    components = sorted(
        (tuple(sorted(component)) for component in nx.weakly_connected_components(nx_graph)),
        key=_sort_key,
    )
    dead_ends = tuple(sorted(node for node, degree in nx_graph.out_degree() if degree == 0))
    return ConnectivityReport(
        components=tuple(components),
        dead_ends=dead_ends,
        adjacency_issues=tuple(adjacency_issues(graph)),
        short_segments=tuple(short_segments(graph)),
    )


__all__ = ["ConnectivityReport", "adjacency_issues", "inspect_connectivity", "short_segments"]

"""Directed road graph with ordered adjacency and time-of-day traffic."""
from __future__ import annotations

import datetime
import threading
from typing import Dict, List, Optional

import networkx as nx

from ..builder.ids import reverse_segment_id
from ..domain.models import RoadNode, RoadSegment, SegmentCost, TrafficRules
from ..utils.errors import DuplicateEntity, UnknownNode
from ..utils.logging import get_logger
from .traffic import assignment_for, classify_period, segment_cost

LOG = get_logger()


class RoadGraph:
    """Owns every node and segment of a road network.

    ``adjacency`` maps a node id to the ids of segments leaving that node, in
    insertion order.  Structural mutation only happens while the network is
    built; afterwards the only writes are traffic overwrites, which run under
    the graph lock so searches can take a consistent :meth:`cost_snapshot`.
    """

    def __init__(self, traffic_rules: Optional[TrafficRules] = None) -> None:
        self.nodes: Dict[str, RoadNode] = {}
        self.segments: Dict[str, RoadSegment] = {}
        self.adjacency: Dict[str, List[str]] = {}
        self.traffic_rules = traffic_rules or TrafficRules()
        self.last_traffic_update: Optional[datetime.datetime] = None
        self._lock = threading.RLock()

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def add_node(self, node: RoadNode) -> None:
        with self._lock:
            if node.id in self.nodes:
                raise DuplicateEntity(f"node already exists: {node.id}")
            node.connected_segment_ids = []
            self.nodes[node.id] = node
            self.adjacency[node.id] = node.connected_segment_ids
        LOG.debug("added node: %s", node)

    def add_segment(self, segment: RoadSegment) -> None:
        with self._lock:
            missing = [nid for nid in (segment.from_node_id, segment.to_node_id) if nid not in self.nodes]
            if missing:
                raise UnknownNode(f"segment {segment.id} references unknown node(s): {', '.join(missing)}")

            existing = self.segments.get(segment.id)
            if existing is None:
                self.segments[segment.id] = segment
                existing = segment
            elif existing is not segment and not existing.same_definition(segment):
                raise DuplicateEntity(f"segment already exists with a different definition: {segment.id}")

            outgoing = self.adjacency[existing.from_node_id]
            if existing.id not in outgoing:
                outgoing.append(existing.id)

            if existing.synthesizes_reverse:
                self._add_reverse(existing)
        LOG.debug("added segment: %s", segment)

    def _add_reverse(self, forward: RoadSegment) -> None:
        reverse_id = reverse_segment_id(forward.id)
        if reverse_id in self.segments:
            return
        reverse = RoadSegment(
            id=reverse_id,
            from_node_id=forward.to_node_id,
            to_node_id=forward.from_node_id,
            distance_m=forward.distance_m,
            road_name=forward.road_name,
            speed_limit_kmh=forward.speed_limit_kmh,
            is_bidirectional=False,
            is_one_way=False,
            traffic_condition=forward.traffic_condition,
        )
        self.segments[reverse_id] = reverse
        self.adjacency[reverse.from_node_id].append(reverse_id)

    def outgoing_segments(self, node_id: str) -> List[RoadSegment]:
        segment_ids = self.adjacency.get(node_id, ())
        return [self.segments[sid] for sid in segment_ids if sid in self.segments]

    def update_traffic_by_time(
        self,
        timestamp: datetime.datetime,
        rules: Optional[TrafficRules] = None,
    ) -> None:
        """Overwrite every segment's condition from the time-of-day rule table."""

        active_rules = rules or self.traffic_rules
        period = classify_period(timestamp, active_rules)
        with self._lock:
            for segment in self.segments.values():
                assignment = assignment_for(segment, period, active_rules)
                segment.traffic_condition = assignment.condition
                segment.vehicle_count = assignment.vehicle_count
            self.last_traffic_update = timestamp
        LOG.info("traffic updated for %02d:%02d (%s)", timestamp.hour, timestamp.minute, period.value)

    def cost_snapshot(self) -> Dict[str, SegmentCost]:
        with self._lock:
            return {sid: segment_cost(segment) for sid, segment in self.segments.items()}

    def to_networkx(self) -> nx.MultiDiGraph:
        """Export the graph as a MultiDiGraph keyed by segment id."""

        graph = nx.MultiDiGraph()
        with self._lock:
            for node_id, node in self.nodes.items():
                graph.add_node(node_id, node=node, coord=(node.location.longitude, node.location.latitude))
            for segment_ids in self.adjacency.values():
                for sid in segment_ids:
                    segment = self.segments.get(sid)
                    if segment is None:
                        continue
                    graph.add_edge(
                        segment.from_node_id,
                        segment.to_node_id,
                        key=sid,
                        segment=segment,
                        length=segment.distance_m,
                    )
        return graph


__all__ = ["RoadGraph"]

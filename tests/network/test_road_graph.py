from __future__ import annotations

import datetime

import pytest

from v2x_proximity.domain.models import Coordinate, RoadNode, RoadSegment, TrafficCondition
from v2x_proximity.builder.ids import is_reverse_segment_id, reverse_segment_id
from v2x_proximity.network.graph import RoadGraph
from v2x_proximity.utils.errors import DuplicateEntity, UnknownNode


def _node(node_id: str, lat: float = 23.0, lon: float = 72.5) -> RoadNode:
    return RoadNode(id=node_id, name=node_id.upper(), location=Coordinate(lat, lon))


def _segment(seg_id: str, src: str, dst: str, **kwargs) -> RoadSegment:
    params = dict(distance_m=500.0, road_name="Local Street", speed_limit_kmh=36.0)
    params.update(kwargs)
    return RoadSegment(id=seg_id, from_node_id=src, to_node_id=dst, **params)


def _graph(*node_ids: str) -> RoadGraph:
    graph = RoadGraph()
    for index, node_id in enumerate(node_ids):
        graph.add_node(_node(node_id, lat=23.0 + index * 0.01))
    return graph


def test_bidirectional_segment_synthesizes_reverse() -> None:
    graph = _graph("a", "b")
    graph.add_segment(_segment("s1", "a", "b", traffic_condition=TrafficCondition.HEAVY))

    reverse = graph.segments["s1_rev"]
    assert (reverse.from_node_id, reverse.to_node_id) == ("b", "a")
    assert reverse.distance_m == 500.0
    assert reverse.traffic_condition is TrafficCondition.HEAVY
    assert reverse.is_bidirectional is False
    assert graph.adjacency["a"] == ["s1"]
    assert graph.adjacency["b"] == ["s1_rev"]
    assert graph.nodes["b"].connected_segment_ids is graph.adjacency["b"]


def test_one_way_segment_has_no_reverse() -> None:
    graph = _graph("a", "b")
    graph.add_segment(_segment("s1", "a", "b", is_one_way=True))
    graph.add_segment(_segment("s2", "b", "a", is_bidirectional=False))

    assert "s1_rev" not in graph.segments
    assert "s2_rev" not in graph.segments
    assert [seg.id for seg in graph.outgoing_segments("a")] == ["s1"]
    assert [seg.id for seg in graph.outgoing_segments("b")] == ["s2"]


def test_adjacency_keeps_insertion_order() -> None:
    graph = _graph("a", "b", "c")
    graph.add_segment(_segment("s2", "a", "c", is_one_way=True))
    graph.add_segment(_segment("s1", "a", "b", is_one_way=True))

    assert graph.adjacency["a"] == ["s2", "s1"]
    assert graph.outgoing_segments("missing") == []


def test_unknown_endpoint_is_rejected_without_side_effects() -> None:
    graph = _graph("a")

    with pytest.raises(UnknownNode) as excinfo:
        graph.add_segment(_segment("s1", "a", "ghost"))

    assert "ghost" in str(excinfo.value)
    assert graph.segments == {}
    assert graph.adjacency["a"] == []


def test_duplicate_node_is_rejected() -> None:
    graph = _graph("a")

    with pytest.raises(DuplicateEntity):
        graph.add_node(_node("a", lat=24.0))

    assert graph.nodes["a"].location.latitude == 23.0


def test_readding_identical_segment_is_idempotent() -> None:
    graph = _graph("a", "b")
    graph.add_segment(_segment("s1", "a", "b"))
    graph.add_segment(_segment("s1", "a", "b"))

    assert sorted(graph.segments) == ["s1", "s1_rev"]
    assert graph.adjacency["a"] == ["s1"]
    assert graph.adjacency["b"] == ["s1_rev"]


def test_conflicting_segment_definition_is_rejected() -> None:
    graph = _graph("a", "b")
    graph.add_segment(_segment("s1", "a", "b"))

    with pytest.raises(DuplicateEntity):
        graph.add_segment(_segment("s1", "a", "b", distance_m=900.0))

    assert graph.segments["s1"].distance_m == 500.0


def test_contains_checks_node_ids() -> None:
    graph = _graph("a")

    assert "a" in graph
    assert "b" not in graph


def test_update_traffic_by_time_applies_rule_table() -> None:
    graph = _graph("a", "b", "c")
    graph.add_segment(_segment("ring", "a", "b", road_name="Ring Road - East to North"))
    graph.add_segment(_segment("local", "b", "c", road_name="Paldi to Law Garden"))

    graph.update_traffic_by_time(datetime.datetime(2024, 5, 6, 8, 30))
    assert graph.segments["ring"].traffic_condition is TrafficCondition.HEAVY
    assert graph.segments["ring"].vehicle_count == 200
    assert graph.segments["ring_rev"].traffic_condition is TrafficCondition.HEAVY
    assert graph.segments["local"].traffic_condition is TrafficCondition.MODERATE
    assert graph.segments["local"].vehicle_count == 50

    graph.update_traffic_by_time(datetime.datetime(2024, 5, 6, 18, 0))
    assert graph.segments["ring"].vehicle_count == 250
    assert graph.segments["local"].traffic_condition is TrafficCondition.LIGHT

    noon = datetime.datetime(2024, 5, 6, 14, 0)
    graph.update_traffic_by_time(noon)
    assert all(seg.traffic_condition is TrafficCondition.FREE for seg in graph.segments.values())
    assert all(seg.vehicle_count == 10 for seg in graph.segments.values())
    assert graph.last_traffic_update == noon


def test_cost_snapshot_is_detached_from_later_updates() -> None:
    graph = _graph("a", "b")
    graph.add_segment(_segment("s1", "a", "b", distance_m=1000.0, speed_limit_kmh=36.0))

    before = graph.cost_snapshot()
    graph.segments["s1"].traffic_condition = TrafficCondition.BLOCKED

    assert before["s1"].travel_time_s == pytest.approx(100.0)
    assert graph.cost_snapshot()["s1"].travel_time_s == pytest.approx(2000.0)


def test_to_networkx_exports_every_directed_segment() -> None:
    graph = _graph("a", "b", "c")
    graph.add_segment(_segment("s1", "a", "b"))
    graph.add_segment(_segment("s2", "b", "c", is_one_way=True))

    exported = graph.to_networkx()

    assert set(exported.nodes) == {"a", "b", "c"}
    assert sorted(key for _, _, key in exported.edges(keys=True)) == ["s1", "s1_rev", "s2"]
    assert exported.edges["a", "b", "s1"]["length"] == 500.0


def test_reverse_segment_ids_are_recognisable() -> None:
    graph = _graph("a", "b")
    graph.add_segment(_segment("s1", "a", "b"))

    assert reverse_segment_id("s1") == "s1_rev"
    assert [sid for sid in graph.segments if is_reverse_segment_id(sid)] == ["s1_rev"]
    assert not is_reverse_segment_id("reverse_lane")

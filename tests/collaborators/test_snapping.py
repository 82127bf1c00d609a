from __future__ import annotations

import requests

from v2x_proximity.collaborators.snapping import RoadSnapper
from v2x_proximity.domain.models import Coordinate

RAW = Coordinate(23.0225, 72.5714)


class _Response:
    def __init__(self, payload=None, status: int = 200, body_error: bool = False) -> None:
        self._payload = payload
        self.status_code = status
        self._body_error = body_error

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._body_error:
            raise ValueError("not json")
        return self._payload


class _Session:
    def __init__(self, response=None, error: Exception = None) -> None:
        self.response = response
        self.error = error
        self.calls = []
        self.closed = False

    def get(self, url, timeout):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response

    def close(self) -> None:
        self.closed = True


def test_snap_uses_first_waypoint() -> None:
    session = _Session(
        _Response({"code": "Ok", "waypoints": [{"location": [72.5716, 23.0227], "distance": 12.5}]})
    )
    snapper = RoadSnapper("https://osrm.example/nearest/v1/driving/", session=session)

    snapped = snapper.snap(RAW)

    assert snapped == Coordinate(23.0227, 72.5716)
    assert session.calls == [("https://osrm.example/nearest/v1/driving/72.5714,23.0225", 8.0)]


def test_snap_failures_fall_back_to_raw_coordinate() -> None:
    cases = [
        _Session(error=requests.ConnectionError("offline")),
        _Session(_Response(status=503)),
        _Session(_Response(body_error=True)),
        _Session(_Response({"code": "NoSegment", "message": "too far"})),
        _Session(_Response({"code": "Ok", "waypoints": []})),
        _Session(_Response({"code": "Ok", "waypoints": [{"name": "no location"}]})),
        _Session(_Response(["unexpected"])),
    ]
    for session in cases:
        snapper = RoadSnapper(session=session)
        assert snapper.snap(RAW) is None
        assert snapper.snap_or_raw(RAW) == RAW


def test_close_releases_session() -> None:
    session = _Session()
    RoadSnapper(session=session).close()

    assert session.closed

from __future__ import annotations

import datetime

import requests

from v2x_proximity.collaborators.reporter import AlertReportingObserver, BackendReporter
from v2x_proximity.domain.models import Coordinate, PedestrianAlert


class _Response:
    def __init__(self, status: int) -> None:
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class _Session:
    def __init__(self, status: int = 200, error: Exception = None) -> None:
        self.status = status
        self.error = error
        self.posts = []
        self.closed = False

    def post(self, url, json, timeout):
        self.posts.append((url, json, timeout))
        if self.error is not None:
            raise self.error
        return _Response(self.status)

    def close(self) -> None:
        self.closed = True


def test_vehicle_and_alert_reports_are_posted() -> None:
    session = _Session()
    reporter = BackendReporter("http://backend.local/", session=session)

    assert reporter.report_vehicle(Coordinate(23.02, 72.57)).result(timeout=5) is True
    assert reporter.report_alert(Coordinate(23.03, 72.58), "ped_abc").result(timeout=5) is True
    reporter.close()

    assert session.posts == [
        ("http://backend.local/vehicle/location", {"latitude": 23.02, "longitude": 72.57}, 5.0),
        (
            "http://backend.local/pedestrian",
            {"latitude": 23.03, "longitude": 72.58, "pedestrian_id": "ped_abc"},
            5.0,
        ),
    ]
    assert session.closed


def test_report_failures_are_swallowed() -> None:
    for session in (_Session(status=500), _Session(error=requests.Timeout("slow"))):
        reporter = BackendReporter("http://backend.local", session=session)
        assert reporter.report_vehicle(Coordinate(23.0, 72.5)).result(timeout=5) is False
        reporter.close()


def test_alert_observer_forwards_alerts() -> None:
    session = _Session()
    reporter = BackendReporter("http://backend.local", session=session)
    observer = AlertReportingObserver(reporter)

    observer.on_alert(
        PedestrianAlert(
            pedestrian_id="ped_x",
            pedestrian_location=Coordinate(23.04, 72.56),
            distance_m=120.0,
            detected_at=datetime.datetime(2024, 3, 1, 8, 0),
            is_first_detection=True,
        )
    )
    observer.on_pedestrians_updated(())
    reporter.close()

    assert [post[1]["pedestrian_id"] for post in session.posts] == ["ped_x"]

"""Fire-and-forget reporting of vehicle positions and alerts to a backend."""
from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Dict, Optional, Sequence

import requests

from ..domain.models import Coordinate, PedestrianAlert, PedestrianSnapshot
from ..utils.constants import PEDESTRIAN_ALERT_PATH, REPORT_TIMEOUT_S, VEHICLE_LOCATION_PATH
from ..utils.logging import get_logger

LOG = get_logger()


class BackendReporter:
    """POST updates on a background worker; failures are logged, never raised."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = REPORT_TIMEOUT_S,
        session: Optional[requests.Session] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="v2x-report")

    def report_vehicle(self, coordinate: Coordinate) -> "Future[bool]":
        payload = {"latitude": coordinate.latitude, "longitude": coordinate.longitude}
        return self._executor.submit(self._post, VEHICLE_LOCATION_PATH, payload)

    def report_alert(self, coordinate: Coordinate, pedestrian_id: str) -> "Future[bool]":
        payload = {
            "latitude": coordinate.latitude,
            "longitude": coordinate.longitude,
            "pedestrian_id": pedestrian_id,
        }
        return self._executor.submit(self._post, PEDESTRIAN_ALERT_PATH, payload)

    def _post(self, path: str, payload: Dict[str, Any]) -> bool:
        try:
            response = self._session.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            LOG.warning("[REPORT] %s failed: %s", path, exc)
            return False
        return True

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        self._session.close()


class AlertReportingObserver:
    """Forward alerts from the detection hub to a :class:`BackendReporter`."""

    def __init__(self, reporter: BackendReporter) -> None:
        self._reporter = reporter

    def on_alert(self, alert: PedestrianAlert) -> None:
        self._reporter.report_alert(alert.pedestrian_location, alert.pedestrian_id)

    def on_pedestrians_updated(self, snapshot: Sequence[PedestrianSnapshot]) -> None:
        return None


__all__ = ["AlertReportingObserver", "BackendReporter"]

"""Road snapping through an OSRM ``nearest`` service."""
from __future__ import annotations

from typing import Optional

import requests

from ..domain.models import Coordinate
from ..utils.constants import OSRM_NEAREST_URL, SNAP_TIMEOUT_S
from ..utils.logging import get_logger

LOG = get_logger()


class RoadSnapper:
    """Correct raw coordinates onto the nearest drivable road.

    Any failure (network, HTTP status, unexpected payload) yields ``None`` from
    :meth:`snap`; :meth:`snap_or_raw` falls back to the input coordinate.
    """

    def __init__(
        self,
        base_url: str = OSRM_NEAREST_URL,
        *,
        timeout: float = SNAP_TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def snap(self, coordinate: Coordinate) -> Optional[Coordinate]:
        url = f"{self.base_url}/{coordinate.longitude},{coordinate.latitude}"
        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            LOG.warning("[SNAP] road snapping failed for %s: %s", coordinate, exc)
            return None

        if not isinstance(data, dict):
            LOG.warning("[SNAP] unexpected snap response for %s", coordinate)
            return None
        waypoints = data.get("waypoints") or []
        if data.get("code") != "Ok" or not waypoints:
            LOG.warning("[SNAP] snap rejected: code=%s message=%s", data.get("code"), data.get("message"))
            return None
        try:
            lon, lat = waypoints[0]["location"][:2]
            snapped = Coordinate(float(lat), float(lon))
        except (KeyError, TypeError, ValueError) as exc:
            LOG.warning("[SNAP] malformed waypoint in snap response: %s", exc)
            return None
        LOG.debug(
            "[SNAP] %s -> %s (%.1fm from original)",
            coordinate,
            snapped,
            float(waypoints[0].get("distance") or 0.0),
        )
        return snapped

    def snap_or_raw(self, coordinate: Coordinate) -> Coordinate:
        snapped = self.snap(coordinate)
        return snapped if snapped is not None else coordinate

    def close(self) -> None:
        self._session.close()


__all__ = ["RoadSnapper"]

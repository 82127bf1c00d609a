"""Shared constants for the road network and detection defaults."""
from __future__ import annotations

from pathlib import Path

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
SCHEMA_JSON_PATH = DATA_DIR / "schema.json"
DEFAULT_NETWORK_PATH = DATA_DIR / "ahmedabad_network.json"

EARTH_RADIUS_M = 6371000.0

DEFAULT_ALERT_THRESHOLD_M = 2000.0
DEFAULT_MAX_SEARCH_ITERATIONS = 1000
DISTANCE_PENALTY_DIVISOR_M = 100.0
KMH_TO_MS = 1000.0 / 3600.0

REVERSE_SEGMENT_SUFFIX = "_rev"
PEDESTRIAN_ID_PREFIX = "ped"

MAX_RECENT_ALERTS = 10

# Bounding box of the bundled network (lat/lon degrees).
DEFAULT_MAP_LAT_MIN = 22.95
DEFAULT_MAP_LAT_MAX = 23.15
DEFAULT_MAP_LON_MIN = 72.45
DEFAULT_MAP_LON_MAX = 72.65

MORNING_RUSH_HOURS = (7, 10)
EVENING_RUSH_HOURS = (17, 20)
MAJOR_ROAD_KEYWORDS = ("sg highway", "satellite road", "ring road")

OSRM_NEAREST_URL = "https://router.project-osrm.org/nearest/v1/driving"
SNAP_TIMEOUT_S = 8.0
REPORT_TIMEOUT_S = 5.0
VEHICLE_LOCATION_PATH = "/vehicle/location"
PEDESTRIAN_ALERT_PATH = "/pedestrian"

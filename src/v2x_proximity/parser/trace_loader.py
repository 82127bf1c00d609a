"""Recorded vehicle position traces (CSV)."""
from __future__ import annotations

import csv
import datetime
from pathlib import Path
from typing import List, Optional, TextIO, Tuple, Union

from ..domain.models import PositionSample
from ..utils.errors import TraceValidationError

TraceSource = Union[TextIO, Path]

_LAT_COLUMN = "latitude"
_LON_COLUMN = "longitude"
_TIME_COLUMN = "timestamp"


class _ErrorCollector:
    def __init__(self, context: str) -> None:
        self._context = context
        self._messages: List[str] = []

    def add(self, message: str) -> None:
        self._messages.append(message)

    def raise_if_any(self) -> None:
        if self._messages:
            raise TraceValidationError(f"{self._context}: {'; '.join(self._messages)}")


def _open_source(source: TraceSource) -> Tuple[TextIO, bool]:
    if hasattr(source, "read"):
        return source, False  # type: ignore[return-value]
    path = Path(source)
    if not path.exists():
        raise TraceValidationError(f"trace not found: {path}")
    return path.open("r", encoding="utf-8-sig", newline=""), True


def load_position_trace(source: TraceSource) -> List[PositionSample]:
    """Parse ``latitude,longitude,timestamp`` rows; timestamps must not go backwards."""

    stream, should_close = _open_source(source)
    errors = _ErrorCollector("invalid position trace rows")
    samples: List[PositionSample] = []
    try:
        reader = csv.DictReader(stream)
        header = [name.strip() for name in (reader.fieldnames or [])]
        missing = [col for col in (_LAT_COLUMN, _LON_COLUMN, _TIME_COLUMN) if col not in header]
        if missing:
            errors.add(f"header must contain {', '.join(missing)}")
            errors.raise_if_any()
        reader.fieldnames = header

        previous: Optional[datetime.datetime] = None
        for index, row in enumerate(reader, start=2):
            lat_token = (row.get(_LAT_COLUMN) or "").strip()
            lon_token = (row.get(_LON_COLUMN) or "").strip()
            time_token = (row.get(_TIME_COLUMN) or "").strip()
            if not lat_token and not lon_token and not time_token:
                continue
            try:
                latitude = float(lat_token)
                longitude = float(lon_token)
            except ValueError:
                errors.add(f"row {index}: latitude/longitude must be numeric")
                continue
            try:
                timestamp = datetime.datetime.fromisoformat(time_token)
            except ValueError:
                errors.add(f"row {index}: timestamp must be ISO 8601 (got {time_token!r})")
                continue
            if previous is not None and timestamp < previous:
                errors.add(f"row {index}: timestamp goes backwards ({timestamp.isoformat()})")
                continue
            previous = timestamp
            samples.append(PositionSample(latitude=latitude, longitude=longitude, timestamp=timestamp))
    finally:
        if should_close:
            stream.close()

    errors.raise_if_any()
    return samples


__all__ = ["load_position_trace"]

from __future__ import annotations

import datetime
import io

import pytest

from v2x_proximity.parser.trace_loader import load_position_trace
from v2x_proximity.utils.errors import TraceValidationError


def test_trace_rows_become_samples() -> None:
    source = io.StringIO(
        "latitude,longitude,timestamp\n"
        "23.0225,72.5714,2024-03-01T08:00:00\n"
        "\n"
        "23.0291,72.5761,2024-03-01T08:00:05\n"
    )

    samples = load_position_trace(source)

    assert [(s.latitude, s.longitude) for s in samples] == [(23.0225, 72.5714), (23.0291, 72.5761)]
    assert samples[1].timestamp == datetime.datetime(2024, 3, 1, 8, 0, 5)


def test_trace_file_with_bom_and_padded_header(tmp_path) -> None:
    path = tmp_path / "trace.csv"
    path.write_text(
        "latitude , longitude , timestamp\n23.03,72.58,2024-03-01T08:00:00\n",
        encoding="utf-8-sig",
    )

    samples = load_position_trace(path)

    assert len(samples) == 1
    assert samples[0].coordinate.latitude == 23.03


def test_trace_errors_are_collected() -> None:
    source = io.StringIO(
        "latitude,longitude,timestamp\n"
        "abc,72.5,2024-03-01T08:00:00\n"
        "23.0,72.5,yesterday\n"
        "23.0,72.5,2024-03-01T08:00:10\n"
        "23.0,72.5,2024-03-01T08:00:05\n"
    )

    with pytest.raises(TraceValidationError) as excinfo:
        load_position_trace(source)

    message = str(excinfo.value)
    assert "row 2" in message
    assert "row 3" in message
    assert "row 5: timestamp goes backwards" in message


def test_trace_requires_columns(tmp_path) -> None:
    with pytest.raises(TraceValidationError, match="header must contain timestamp"):
        load_position_trace(io.StringIO("latitude,longitude\n23.0,72.5\n"))
    with pytest.raises(TraceValidationError, match="trace not found"):
        load_position_trace(tmp_path / "missing.csv")

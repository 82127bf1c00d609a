from __future__ import annotations

import pytest

from v2x_proximity.cli.main import _build_options, main, parse_args
from v2x_proximity.utils.constants import DEFAULT_ALERT_THRESHOLD_M, DEFAULT_NETWORK_PATH
from v2x_proximity.utils.logging import get_logger

NOON = "2024-03-01T12:00:00"


@pytest.fixture(autouse=True)
def _restore_logger():
    logger = get_logger()
    handlers = list(logger.handlers)
    propagate = logger.propagate
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            handler.close()
            logger.removeHandler(handler)
    logger.propagate = propagate
    logger.setLevel(level)


def test_cli_defaults() -> None:
    args = parse_args([])
    options = _build_options(args)

    assert args.network == DEFAULT_NETWORK_PATH
    assert args.spawn == 5
    assert args.spawn_near is None
    assert options.detection.threshold_m == DEFAULT_ALERT_THRESHOLD_M
    assert options.snap_url is None
    assert options.console_log is True


def test_cli_short_aliases_parse_correctly(tmp_path) -> None:
    args = parse_args(
        [
            "-th", "750",
            "-sp", "2",
            "-sn", "23.03,72.58",
            "-snc", "3",
            "-sd", "9",
            "-tt", NOON,
            "-lf", str(tmp_path / "run.log"),
            "-nl",
        ]
    )
    options = _build_options(args)

    assert options.detection.threshold_m == 750.0
    assert args.spawn == 2
    assert args.spawn_near.latitude == 23.03
    assert args.spawn_near_count == 3
    assert options.seed == 9
    assert options.traffic_time.hour == 12
    assert options.log_path == tmp_path / "run.log"
    assert options.console_log is False


def test_cli_rejects_bad_arguments() -> None:
    with pytest.raises(SystemExit):
        parse_args(["--spawn-near", "north"])
    with pytest.raises(SystemExit):
        parse_args(["--traffic-time", "noonish"])
    with pytest.raises(SystemExit, match="--threshold must be positive"):
        _build_options(parse_args(["--threshold", "0"]))
    with pytest.raises(SystemExit, match="spawn counts"):
        _build_options(parse_args(["--spawn", "-1"]))


def test_cli_prints_route(capsys) -> None:
    code = main(["--route", "n1", "n4", "--traffic-time", NOON, "--no-console-log"])

    out = capsys.readouterr().out
    assert code == 0
    assert "distance=2300m" in out
    assert "n1 -> n2 -> n3 -> n4" in out


def test_cli_route_failure_exit_code(capsys) -> None:
    code = main(["--route", "n5", "n1", "--traffic-time", NOON, "--no-console-log"])

    assert code == 1
    assert "found=False" in capsys.readouterr().out


def test_cli_detects_pedestrians_next_to_vehicle(tmp_path, capsys) -> None:
    log_path = tmp_path / "logs" / "run.log"
    code = main(
        [
            "--spawn", "0",
            "--spawn-near", "23.0291,72.5761",
            "--spawn-near-count", "2",
            "--position", "23.0225,72.5714",
            "--traffic-time", NOON,
            "--seed", "1",
            "--log-file", str(log_path),
            "--no-console-log",
        ]
    )

    out = capsys.readouterr().out
    assert code == 0
    assert out.count("NEW ped_") == 2
    assert "detected: 2" in out
    log_text = log_path.read_text(encoding="utf-8")
    assert "[SPAWN]" in log_text
    assert "[DET] pass at" in log_text


def test_cli_reports_missing_input_paths(tmp_path) -> None:
    with pytest.raises(SystemExit, match="network path not found"):
        main([str(tmp_path / "absent.json"), "--no-console-log"])
    with pytest.raises(SystemExit, match="--trace path not found"):
        main(["--trace", str(tmp_path / "absent.csv"), "--no-console-log"])
    with pytest.raises(SystemExit, match="--schema must point to a file"):
        main(["--schema", str(tmp_path), "--no-console-log"])


def test_cli_reports_invalid_network(tmp_path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text('{"version": "1.0", "nodes": []}', encoding="utf-8")

    with pytest.raises(SystemExit, match="invalid network .*schema violation"):
        main([str(broken), "--no-console-log"])
    with pytest.raises(SystemExit, match="invalid network"):
        main([str(broken), "--route", "n1", "n2", "--no-console-log"])

"""High-level orchestration of a live or replayed detection session."""
from __future__ import annotations

import datetime
import random
from dataclasses import replace
from typing import Callable, List, Optional

from .collaborators.reporter import AlertReportingObserver, BackendReporter
from .collaborators.snapping import RoadSnapper
from .detection.dispatcher import PositionDispatcher
from .detection.engine import ProximityEngine
from .domain.models import DetectionPassResult, PositionSample, SessionOptions
from .parser.network_loader import load_network
from .parser.trace_loader import TraceSource, load_position_trace
from .utils.logging import get_logger

LOG = get_logger()


class DetectionSession:
    """Route position samples through snapping, reporting and detection.

    Snapping and vehicle reporting happen on the caller's thread before the
    sample reaches the dispatcher, so neither can hold up a detection pass.
    """

    def __init__(
        self,
        engine: ProximityEngine,
        *,
        snapper: Optional[RoadSnapper] = None,
        reporter: Optional[BackendReporter] = None,
        dispatcher: Optional[PositionDispatcher] = None,
    ) -> None:
        self.engine = engine
        self.snapper = snapper
        self.reporter = reporter
        self.dispatcher = dispatcher or PositionDispatcher(engine)
        if reporter is not None:
            engine.subscribe(AlertReportingObserver(reporter))

    @classmethod
    def from_options(
        cls,
        options: SessionOptions,
        *,
        clock: Callable[[], datetime.datetime] = datetime.datetime.now,
    ) -> "DetectionSession":
        network = load_network(options.network_path, options.schema_path)
        network.graph.update_traffic_by_time(options.traffic_time or clock())

        detection = options.detection
        if detection.map_bounds is None:
            detection = replace(detection, map_bounds=network.map_bounds)
        engine = ProximityEngine(
            network.graph,
            options=detection,
            rng=random.Random(options.seed),
            clock=clock,
        )
        snapper = RoadSnapper(options.snap_url) if options.snap_url else None
        reporter = BackendReporter(options.backend_url) if options.backend_url else None
        LOG.info(
            "session ready: network=%s threshold=%.0fm snapping=%s reporting=%s",
            network.name,
            detection.threshold_m,
            "on" if snapper else "off",
            "on" if reporter else "off",
        )
        return cls(engine, snapper=snapper, reporter=reporter)

    def __enter__(self) -> "DetectionSession":
        self.dispatcher.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def handle_sample(self, sample: PositionSample) -> None:
        coordinate = sample.coordinate
        if self.snapper is not None:
            coordinate = self.snapper.snap_or_raw(coordinate)
        if self.reporter is not None:
            self.reporter.report_vehicle(coordinate)
        self.dispatcher.submit(
            PositionSample(latitude=coordinate.latitude, longitude=coordinate.longitude, timestamp=sample.timestamp)
        )

    def replay(self, samples: List[PositionSample], *, coalesce: bool = False) -> List[DetectionPassResult]:
        """Feed samples in order; without ``coalesce`` every sample gets its own pass."""

        results: List[DetectionPassResult] = []
        for sample in samples:
            self.handle_sample(sample)
            if not coalesce:
                self.dispatcher.wait_idle()
                if self.dispatcher.last_result is not None:
                    results.append(self.dispatcher.last_result)
        if coalesce:
            self.dispatcher.wait_idle()
            if self.dispatcher.last_result is not None:
                results.append(self.dispatcher.last_result)
        return results

    def replay_trace(self, source: TraceSource, *, coalesce: bool = False) -> List[DetectionPassResult]:
        samples = load_position_trace(source)
        LOG.info("replaying %d position samples", len(samples))
        return self.replay(samples, coalesce=coalesce)

    def close(self) -> None:
        self.dispatcher.close()
        if self.reporter is not None:
            self.reporter.close()
        if self.snapper is not None:
            self.snapper.close()


__all__ = ["DetectionSession"]

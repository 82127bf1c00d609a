"""Single-worker dispatch of position samples with newest-only coalescing."""
from __future__ import annotations

import threading
from typing import Optional

from ..domain.models import DetectionPassResult, PositionSample
from ..utils.logging import get_logger
from .engine import ProximityEngine

LOG = get_logger()


class PositionDispatcher:
    """Feed an engine from an uncontrolled position stream.

    At most one sample waits while a pass is running; a newer sample replaces
    it and the superseded one is dropped without being applied.
    """

    def __init__(self, engine: ProximityEngine, *, name: str = "v2x-detection") -> None:
        self._engine = engine
        self._name = name
        self._cond = threading.Condition()
        self._pending: Optional[PositionSample] = None
        self._busy = False
        self._closed = False
        self._thread: Optional[threading.Thread] = None
        self.processed = 0
        self.dropped = 0
        self.last_result: Optional[DetectionPassResult] = None

    def __enter__(self) -> "PositionDispatcher":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def start(self) -> None:
        with self._cond:
            if self._closed:
                raise RuntimeError("dispatcher is closed")
            if self._thread is not None:
                return
            self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._thread.start()

    def submit(self, sample: PositionSample) -> None:
        self.start()
        with self._cond:
            if self._pending is not None:
                self.dropped += 1
                LOG.debug("[DET] superseded pending sample at %s", self._pending.timestamp)
            self._pending = sample
            self._cond.notify_all()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._pending is None and not self._busy, timeout)

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop accepting samples; a pending sample is still processed."""

        with self._cond:
            self._closed = True
            self._cond.notify_all()
            thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def _run(self) -> None:
        while True:
            with self._cond:
                while self._pending is None and not self._closed:
                    self._cond.wait()
                if self._pending is None:
                    return
                sample = self._pending
                self._pending = None
                self._busy = True
            try:
                self.last_result = self._engine.on_vehicle_position(sample.coordinate)
            except Exception:
                self.last_result = None
                LOG.exception("[DET] detection pass failed for sample at %s", sample.timestamp)
            finally:
                with self._cond:
                    self._busy = False
                    self.processed += 1
                    self._cond.notify_all()


__all__ = ["PositionDispatcher"]

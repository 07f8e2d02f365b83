"""
Timed driver loop: capture -> inference -> decode/NMS/render -> publish.

Cycles run strictly one after another on the calling thread. Each cycle owns
its inference job and releases it on every exit path. A failed cycle is
logged and skipped; the previously published result stays on display.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Optional

import numpy as np

from .backends.base import InferenceEngine
from .config import OverlaySettings
from .errors import InferenceUnavailableError, OverlayError
from .runtime import CycleResult, OverlayPipeline


logger = logging.getLogger(__name__)


class DriverState(Enum):
    IDLE = "idle"
    AWAITING_OUTPUT = "awaiting_output"


class PipelineDriver:
    """
    Collaborators are duck-typed:

    - source: `read() -> np.ndarray` (BGR frame)
    - engine: `InferenceEngine`, `submit(blob) -> InferenceJob`
    - sink: `publish(CycleResult)`
    """

    def __init__(
        self,
        source: Any,
        engine: InferenceEngine,
        pipeline: OverlayPipeline,
        sink: Any,
        settings: Optional[OverlaySettings] = None,
    ):
        self.source = source
        self.engine = engine
        self.pipeline = pipeline
        self.sink = sink
        self.settings = settings or pipeline.settings
        self._state = DriverState.IDLE
        self._stop = threading.Event()
        self._cycle_index = 0

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Request the loop to end; safe to call from another thread."""
        self._stop.set()

    def _fetch_output(self, blob: np.ndarray) -> np.ndarray:
        self._state = DriverState.AWAITING_OUTPUT
        job = None
        try:
            job = self.engine.submit(blob)
            return np.asarray(job.output(timeout=self.settings.inference_timeout_s))
        except OverlayError:
            raise
        except Exception as e:
            raise InferenceUnavailableError(f"Inference engine error: {e}") from e
        finally:
            if job is not None:
                job.release()
            self._state = DriverState.IDLE

    def run_cycle(self) -> CycleResult:
        self._cycle_index += 1
        frame = self.source.read()
        prep = self.pipeline.preprocess(frame)
        preds = self._fetch_output(prep.blob)

        result = self.pipeline.process_output(preds, cycle_index=self._cycle_index, image=prep.image)
        logger.info("cycle %d: %d detection(s)\n%s", result.cycle_index, len(result.detections), result.report)
        self.sink.publish(result)
        return result

    def run(self, max_cycles: Optional[int] = None) -> int:
        """
        Run cycles until `stop()` is called (or `max_cycles` were attempted).

        Returns the number of cycles that published a result.
        """

        published = 0
        attempted = 0
        while not self._stop.is_set():
            if max_cycles is not None and attempted >= max_cycles:
                break
            attempted += 1

            try:
                self.run_cycle()
                published += 1
            except OverlayError as e:
                if e.recoverable:
                    logger.warning("cycle %d skipped: %s", self._cycle_index, e)
                else:
                    logger.error("cycle %d failed: %s", self._cycle_index, e, exc_info=True)
            except Exception:
                logger.exception("cycle %d failed unexpectedly", self._cycle_index)

            if max_cycles is not None and attempted >= max_cycles:
                break
            if self._stop.wait(self.settings.cycle_interval_s):
                break

        logger.info("driver stopped after %d cycle(s), %d published", attempted, published)
        return published

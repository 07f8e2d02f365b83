from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Union

import numpy as np

from .raster import composite_overlay
from .runtime import CycleResult


logger = logging.getLogger(__name__)


class LatestResultSink:
    """
    Single-writer/single-reader handoff: each publish replaces the whole result.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: Optional[CycleResult] = None

    def publish(self, result: CycleResult) -> None:
        with self._lock:
            self._latest = result

    @property
    def latest(self) -> Optional[CycleResult]:
        with self._lock:
            return self._latest


def _visualize(result: CycleResult) -> np.ndarray:
    if result.image is not None:
        return composite_overlay(result.image, result.overlay)
    # No frame: show the overlay on black.
    black = np.zeros(result.overlay.shape[:2] + (3,), dtype=np.uint8)
    return composite_overlay(black, result.overlay)


class OpenCVWindowSink:
    def __init__(self, window_name: str = "overlay"):
        self.window_name = window_name

    def publish(self, result: CycleResult) -> None:
        import cv2

        cv2.imshow(self.window_name, _visualize(result))
        cv2.waitKey(1)

    def close(self) -> None:
        import cv2

        cv2.destroyWindow(self.window_name)


class FileSink:
    """
    Writes `overlay.png` (RGBA), `preview.jpg` and `report.txt` into `out_dir`,
    overwriting the previous cycle's files.
    """

    def __init__(self, out_dir: Union[str, Path]):
        self.out_dir = Path(out_dir)
        self.out_dir.mkdir(parents=True, exist_ok=True)

    def publish(self, result: CycleResult) -> None:
        import cv2

        overlay_bgra = result.overlay[:, :, [2, 1, 0, 3]]
        if not cv2.imwrite(str(self.out_dir / "overlay.png"), overlay_bgra):
            raise RuntimeError(f"Failed to write overlay image to {self.out_dir}")
        if not cv2.imwrite(str(self.out_dir / "preview.jpg"), _visualize(result)):
            raise RuntimeError(f"Failed to write preview image to {self.out_dir}")
        (self.out_dir / "report.txt").write_text(result.report, encoding="utf-8")
        logger.debug("wrote cycle %d to %s", result.cycle_index, self.out_dir)


class FanoutSink:
    def __init__(self, sinks: Iterable[object]):
        self.sinks: List[object] = list(sinks)

    def publish(self, result: CycleResult) -> None:
        for sink in self.sinks:
            sink.publish(result)  # type: ignore[attr-defined]

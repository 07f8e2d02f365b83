from __future__ import annotations

from typing import Optional, Tuple

import cv2
import numpy as np

from .errors import CaptureUnavailableError


def open_capture(*, video: Optional[str] = None, webcam: Optional[int] = None, rtsp: Optional[str] = None) -> cv2.VideoCapture:
    sources = [video is not None, webcam is not None, rtsp is not None]
    if sum(bool(s) for s in sources) != 1:
        raise ValueError("Exactly one of video/webcam/rtsp must be provided.")

    if video is not None:
        cap = cv2.VideoCapture(video)
    elif rtsp is not None:
        cap = cv2.VideoCapture(rtsp)
    else:
        cap = cv2.VideoCapture(int(webcam))

    if not cap.isOpened():
        raise RuntimeError("Failed to open video source.")
    return cap


def resize_frame(image_bgr: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
    """
    Stretch a frame to `size` = (width, height). No letterboxing, so box
    coordinates stay in the resized image's space.
    """

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    new_w, new_h = int(size[0]), int(size[1])
    h, w = image_bgr.shape[:2]
    if (w, h) == (new_w, new_h):
        return image_bgr
    return cv2.resize(image_bgr, (new_w, new_h), interpolation=cv2.INTER_LINEAR)


class OpenCVFrameSource:
    """
    Frame source over a `cv2.VideoCapture` (webcam index, video file or RTSP URL).
    """

    def __init__(self, cap: cv2.VideoCapture):
        self._cap = cap

    @classmethod
    def open(cls, *, video: Optional[str] = None, webcam: Optional[int] = None, rtsp: Optional[str] = None) -> "OpenCVFrameSource":
        return cls(open_capture(video=video, webcam=webcam, rtsp=rtsp))

    def read(self) -> np.ndarray:
        ok, frame = self._cap.read()
        if not ok or frame is None:
            raise CaptureUnavailableError("Frame source returned no frame.")
        return frame

    def close(self) -> None:
        self._cap.release()

    def __enter__(self) -> "OpenCVFrameSource":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

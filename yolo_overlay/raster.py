"""
Pure-NumPy rasterizer for box outlines on an RGBA overlay.

Lines use integer Bresenham stepping; every stepped point is stamped with a
filled disk of radius `thickness / 2` to give the stroke its width. The stamp
costs O(thickness^2) per point. A scanline fill of the four edge bands, with
rounded outer corners, gives the same pixels and is faster on large canvases.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence, Tuple

import numpy as np

from .types import Detection


ColorLike = Sequence[int]

RED: Tuple[int, int, int, int] = (255, 0, 0, 255)


def _as_rgba(color: ColorLike) -> np.ndarray:
    values = [int(c) for c in color]
    if len(values) == 3:
        values.append(255)
    if len(values) != 4:
        raise ValueError(f"Expected an RGB or RGBA color, got {tuple(color)!r}")
    if any(c < 0 or c > 255 for c in values):
        raise ValueError(f"Color channels must be in [0, 255], got {tuple(values)!r}")
    return np.array(values, dtype=np.uint8)


def _check_canvas(canvas: np.ndarray) -> Tuple[int, int]:
    if canvas.ndim != 3 or canvas.shape[2] != 4:
        raise ValueError(f"Expected RGBA canvas shape (H, W, 4), got {getattr(canvas, 'shape', None)}")
    h, w = canvas.shape[:2]
    return w, h


def _disk_offsets(thickness: int) -> Tuple[np.ndarray, np.ndarray]:
    if thickness < 1:
        raise ValueError(f"thickness must be >= 1, got {thickness}")
    radius = thickness / 2.0
    k = int(np.ceil(radius))
    dy, dx = np.mgrid[-k : k + 1, -k : k + 1]
    inside = (dx * dx + dy * dy) <= radius * radius
    return dx[inside], dy[inside]


def bresenham(x0: int, y0: int, x1: int, y1: int) -> np.ndarray:
    """
    Integer points on the segment (x0, y0) -> (x1, y1), endpoints included.

    Returns an (N, 2) array of (x, y).
    """

    dx = abs(x1 - x0)
    dy = abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx - dy

    points = []
    while True:
        points.append((x0, y0))
        if x0 == x1 and y0 == y1:
            break
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x0 += sx
        if e2 < dx:
            err += dx
            y0 += sy
    return np.array(points, dtype=np.int64)


def new_transparent_canvas(width: int, height: int) -> np.ndarray:
    if width <= 0 or height <= 0:
        raise ValueError(f"Canvas size must be positive, got {width}x{height}")
    return np.zeros((int(height), int(width), 4), dtype=np.uint8)


def draw_line(
    canvas: np.ndarray,
    x0: int,
    y0: int,
    x1: int,
    y1: int,
    color: ColorLike = RED,
    thickness: int = 1,
) -> None:
    """
    Draw a thick line in place. Pixels that would fall outside the canvas are
    clamped onto its border.
    """

    w, h = _check_canvas(canvas)
    rgba = _as_rgba(color)
    off_x, off_y = _disk_offsets(int(thickness))

    pts = bresenham(int(x0), int(y0), int(x1), int(y1))
    xs = np.clip(pts[:, 0:1] + off_x[None, :], 0, w - 1).ravel()
    ys = np.clip(pts[:, 1:2] + off_y[None, :], 0, h - 1).ravel()
    canvas[ys, xs] = rgba


def draw_box_outline(canvas: np.ndarray, detection: Detection, color: ColorLike = RED, thickness: int = 1) -> None:
    w, h = _check_canvas(canvas)
    x1, y1, x2, y2 = detection.as_xyxy()
    # inf/NaN geometry has no place on the canvas; such boxes are skipped.
    if not np.all(np.isfinite((x1, y1, x2, y2))):
        return

    # int() truncates toward zero before clamping.
    x_min = int(np.clip(int(x1), 0, w - 1))
    y_min = int(np.clip(int(y1), 0, h - 1))
    x_max = int(np.clip(int(x2), 0, w - 1))
    y_max = int(np.clip(int(y2), 0, h - 1))

    draw_line(canvas, x_min, y_min, x_max, y_min, color, thickness)
    draw_line(canvas, x_min, y_max, x_max, y_max, color, thickness)
    draw_line(canvas, x_min, y_min, x_min, y_max, color, thickness)
    draw_line(canvas, x_max, y_min, x_max, y_max, color, thickness)


def render_overlay(
    width: int,
    height: int,
    detections: Iterable[Detection],
    *,
    color: ColorLike = RED,
    thickness: int = 1,
    predicate: Optional[Callable[[Detection], bool]] = None,
    max_count: Optional[int] = None,
) -> np.ndarray:
    """
    Render box outlines onto a fresh transparent canvas.

    Only the first `max_count` detections are considered (caller order); of
    those, the ones rejected by `predicate` are skipped.
    """

    canvas = new_transparent_canvas(width, height)
    for idx, det in enumerate(detections):
        if max_count is not None and idx >= max_count:
            break
        if predicate is not None and not predicate(det):
            continue
        draw_box_outline(canvas, det, color, thickness)
    return canvas


def composite_overlay(image_bgr: np.ndarray, overlay_rgba: np.ndarray) -> np.ndarray:
    """
    Alpha-blend an RGBA overlay onto a BGR image of the same size and return a copy.
    """

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")
    if overlay_rgba.shape[:2] != image_bgr.shape[:2]:
        raise ValueError(f"Overlay shape {overlay_rgba.shape[:2]} does not match image shape {image_bgr.shape[:2]}")

    alpha = overlay_rgba[:, :, 3:4].astype(np.float32) / 255.0
    overlay_bgr = overlay_rgba[:, :, 2::-1].astype(np.float32)
    out = image_bgr.astype(np.float32) * (1.0 - alpha) + overlay_bgr * alpha
    return np.clip(np.round(out), 0, 255).astype(np.uint8)

from __future__ import annotations

from typing import Tuple

import numpy as np

from .types import Detection


def center_to_corners(x: float, y: float, w: float, h: float) -> Tuple[float, float, float, float]:
    return x - w / 2, y - h / 2, x + w / 2, y + h / 2


def intersection_over_union(a: Detection, b: Detection) -> float:
    """
    IoU of two center-form boxes.

    Negative extents count as zero area. Two zero-area boxes give a zero union,
    which is reported as IoU 0.0 rather than raising.
    """

    ax1, ay1, ax2, ay2 = a.as_xyxy()
    bx1, by1, bx2, by2 = b.as_xyxy()

    inter_w = max(0.0, min(ax2, bx2) - max(ax1, bx1))
    inter_h = max(0.0, min(ay2, by2) - max(ay1, by1))
    inter = inter_w * inter_h

    union = a.area + b.area - inter
    if union <= 0.0:
        return 0.0
    return inter / union


def iou_one_to_many(box: np.ndarray, boxes: np.ndarray) -> np.ndarray:
    """
    Vectorized IoU between one xyxy box (4,) and many xyxy boxes (N, 4).

    Same semantics as `intersection_over_union`: negative extents clamp to
    zero and a non-positive union yields 0.0.
    """

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    box = np.asarray(box, dtype=np.float64).reshape(4)
    if boxes.shape[0] == 0:
        return np.empty((0,), dtype=np.float64)

    xx1 = np.maximum(box[0], boxes[:, 0])
    yy1 = np.maximum(box[1], boxes[:, 1])
    xx2 = np.minimum(box[2], boxes[:, 2])
    yy2 = np.minimum(box[3], boxes[:, 3])
    inter = np.maximum(0.0, xx2 - xx1) * np.maximum(0.0, yy2 - yy1)

    area = max(0.0, box[2] - box[0]) * max(0.0, box[3] - box[1])
    areas = np.maximum(0.0, boxes[:, 2] - boxes[:, 0]) * np.maximum(0.0, boxes[:, 3] - boxes[:, 1])
    union = area + areas - inter

    out = np.zeros_like(inter)
    np.divide(inter, union, out=out, where=union > 0.0)
    return out

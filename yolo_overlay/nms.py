from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .geometry import iou_one_to_many
from .types import Detection


@dataclass
class NMSConfig:
    iou_threshold: float = 0.5
    # True suppresses across classes; False runs NMS per class_id then merges.
    class_agnostic: bool = True
    max_detections: Optional[int] = None


def _greedy_keep(boxes: np.ndarray, scores: np.ndarray, iou_threshold: float, max_detections: Optional[int]) -> np.ndarray:
    """
    Greedy NMS over xyxy boxes (N,4). Returns kept indices, highest score first.

    Ties in score keep the earlier index first (stable sort). A box is dropped
    only when its IoU with a kept box is strictly greater than the threshold.
    """

    if boxes.shape[0] == 0:
        return np.empty((0,), dtype=np.int64)

    order = np.argsort(-scores, kind="stable")
    keep = []

    while order.size > 0:
        if max_detections is not None and len(keep) >= max_detections:
            break
        i = order[0]
        keep.append(i)

        rest = order[1:]
        iou = iou_one_to_many(boxes[i], boxes[rest])
        order = rest[iou <= iou_threshold]

    return np.array(keep, dtype=np.int64)


def nms(detections: Sequence[Detection], cfg: NMSConfig) -> List[Detection]:
    """
    Greedy Non-Maximum Suppression over `Detection` objects.

    The result is ordered by descending confidence. With the default
    class-agnostic mode a box of one class can suppress an overlapping box of
    another class.
    """

    if not detections:
        return []

    boxes = np.array([det.as_xyxy() for det in detections], dtype=np.float64)
    scores = np.array([det.confidence for det in detections], dtype=np.float64)

    if cfg.class_agnostic:
        keep_idx = _greedy_keep(boxes, scores, cfg.iou_threshold, cfg.max_detections)
        return [detections[i] for i in keep_idx]

    class_ids = np.array([det.class_id for det in detections], dtype=np.int64)
    kept: List[int] = []
    for cls in np.unique(class_ids):
        idx = np.where(class_ids == cls)[0]
        keep_local = _greedy_keep(boxes[idx], scores[idx], cfg.iou_threshold, cfg.max_detections)
        kept.extend(idx[keep_local].tolist())

    if not kept:
        return []

    kept_arr = np.array(sorted(kept), dtype=np.int64)
    order = np.argsort(-scores[kept_arr], kind="stable")
    kept_arr = kept_arr[order]
    if cfg.max_detections is not None:
        kept_arr = kept_arr[: cfg.max_detections]
    return [detections[i] for i in kept_arr]

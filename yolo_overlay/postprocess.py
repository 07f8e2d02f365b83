from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np

from .errors import InvalidModelOutputError, ShapeMismatchError
from .nms import NMSConfig, nms
from .types import Detection


# Rows 0..3 hold cx, cy, w, h; class scores start at this row.
BOX_ROWS = 4


@dataclass
class PostprocessConfig:
    """
    Configuration for YOLO output post processing.
    """

    conf_threshold: float = 0.5
    iou_threshold: float = 0.5
    # If False, skip NMS and only keep the top `max_detections` by score.
    apply_nms: bool = True
    # If True, NMS suppresses across classes (default behavior).
    # If False, runs per-class NMS then merges results by score.
    class_agnostic_nms: bool = True
    max_detections: Optional[int] = None
    # Needed only when the raw output arrives as a flat 1-D buffer.
    num_attributes: Optional[int] = None
    num_candidates: Optional[int] = None


def _as_attribute_major(
    preds: Union[np.ndarray, Sequence[float]],
    num_attributes: Optional[int],
    num_candidates: Optional[int],
) -> np.ndarray:
    p = np.asarray(preds)
    # Float outputs keep their precision; anything else is read as float64.
    if p.dtype.kind != "f":
        p = p.astype(np.float64)

    if p.ndim == 1:
        if num_attributes is None or num_candidates is None:
            raise ShapeMismatchError(
                "Flat output buffer needs num_attributes and num_candidates to be interpreted."
            )
        expected = int(num_attributes) * int(num_candidates)
        if p.size != expected:
            raise ShapeMismatchError(
                f"Output buffer has {p.size} values, expected {num_attributes} x {num_candidates} = {expected}."
            )
        return p.reshape(int(num_attributes), int(num_candidates))

    if p.ndim == 3:
        if p.shape[0] != 1:
            raise ShapeMismatchError(f"Batch > 1 is not supported (got shape {p.shape}). Pass one image at a time.")
        p = p[0]

    if p.ndim != 2:
        raise ShapeMismatchError(f"Unsupported YOLO output shape: {p.shape}")

    if num_attributes is not None and p.shape[0] != num_attributes:
        raise ShapeMismatchError(f"Expected {num_attributes} attribute rows, got shape {p.shape}.")
    if num_candidates is not None and p.shape[1] != num_candidates:
        raise ShapeMismatchError(f"Expected {num_candidates} candidates, got shape {p.shape}.")
    return p


def decode_output(
    preds: Union[np.ndarray, Sequence[float]],
    conf_threshold: float,
    num_attributes: Optional[int] = None,
    num_candidates: Optional[int] = None,
) -> List[Detection]:
    """
    Decode an attribute-major (C + 4, A) YOLO output into detections.

    For every candidate the best class is the first row holding the maximum
    positive score; a candidate is emitted only when that score is strictly
    greater than `conf_threshold`. Output keeps candidate order.

    Args:
        preds: (C + 4, A), (1, C + 4, A), or a flat buffer of length (C + 4) * A
        conf_threshold: confidence floor, exclusive
        num_attributes/num_candidates: declared layout, required for flat buffers
    """

    p = _as_attribute_major(preds, num_attributes, num_candidates)
    if p.shape[0] < BOX_ROWS + 1:
        raise InvalidModelOutputError(
            f"Expected at least {BOX_ROWS + 1} attribute rows (box + class scores), got shape {p.shape}."
        )

    class_scores = p[BOX_ROWS:, :]
    class_ids = np.argmax(class_scores, axis=0)
    scores = class_scores[class_ids, np.arange(class_scores.shape[1])]

    # A class is only assigned when its score is positive.
    no_class = scores <= 0.0
    class_ids = np.where(no_class, -1, class_ids)
    scores = np.where(no_class, 0.0, scores)

    keep = np.nonzero(scores > conf_threshold)[0]
    cx, cy, w_box, h_box = p[0:BOX_ROWS, :]

    return [
        Detection(
            class_id=int(class_ids[i]),
            confidence=float(scores[i]),
            x=float(cx[i]),
            y=float(cy[i]),
            width=float(w_box[i]),
            height=float(h_box[i]),
        )
        for i in keep
    ]


class YoloPostprocessor:
    """
    Decode + suppress for YOLOv8-style exports.

    Supported layout (per image): (C + 4, anchors), e.g. 84 x 8400 for the
    80-class COCO models, with or without a leading batch axis of 1, or the same
    data as a flat buffer when `num_attributes`/`num_candidates` are configured.
    """

    def __init__(self, cfg: PostprocessConfig):
        self.cfg = cfg

    def process(self, preds: Union[np.ndarray, Sequence[float]]) -> List[Detection]:
        detections = decode_output(
            preds,
            self.cfg.conf_threshold,
            num_attributes=self.cfg.num_attributes,
            num_candidates=self.cfg.num_candidates,
        )
        if not detections:
            return []

        if self.cfg.apply_nms:
            return nms(
                detections,
                NMSConfig(
                    iou_threshold=self.cfg.iou_threshold,
                    class_agnostic=self.cfg.class_agnostic_nms,
                    max_detections=self.cfg.max_detections,
                ),
            )
        return self._select_topk(detections)

    def _select_topk(self, detections: List[Detection]) -> List[Detection]:
        ordered = sorted(detections, key=lambda det: det.confidence, reverse=True)
        if self.cfg.max_detections is None:
            return ordered
        return ordered[: self.cfg.max_detections]

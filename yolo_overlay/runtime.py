from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .backends.base import InferenceEngine
from .capture import resize_frame
from .config import OverlaySettings
from .metadata import COCO_LABELS, load_labels
from .postprocess import PostprocessConfig, YoloPostprocessor
from .raster import render_overlay
from .report import format_report, label_for
from .types import Detection


PathLike = Union[str, Path]


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", "setup.py", ".git", "requirements.txt"),
) -> Path:
    """
    Best-effort project root discovery.

    Lets a run config say `models/yolov8n.onnx` and have it resolve the same way
    no matter which directory the script is launched from.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    # If a file is provided, start from its directory.
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Resolve `path` to an absolute Path.

    - Absolute paths are returned as-is.
    - Relative paths are resolved against:
      - `root` if provided
      - project root (auto) otherwise
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    image: np.ndarray


@dataclass(frozen=True)
class CycleResult:
    """
    Everything one cycle publishes. The report and the overlay always come from
    the same detection set.
    """

    detections: Tuple[Detection, ...]
    overlay: np.ndarray
    report: str
    cycle_index: int
    timestamp: float
    # Resized frame the detections refer to, when the caller had one.
    image: Optional[np.ndarray] = None


class OverlayPipeline:
    """
    Per-frame stages around the inference engine: preprocess (resize) before
    it, decode -> NMS -> rasterize -> report after it.

    Expects BGR frames (OpenCV-style). Detections, the overlay and the report
    are all in the resized model-input coordinate space.
    """

    def __init__(self, settings: OverlaySettings, labels: Optional[Sequence[str]] = None):
        self.settings = settings
        self.labels: List[str] = list(labels) if labels is not None else list(COCO_LABELS)
        self.post = YoloPostprocessor(
            PostprocessConfig(
                conf_threshold=settings.confidence_threshold,
                iou_threshold=settings.iou_threshold,
                class_agnostic_nms=settings.class_agnostic_nms,
            )
        )

    def preprocess(self, image_bgr: np.ndarray) -> PreprocessResult:
        img = resize_frame(image_bgr, self.settings.input_size)

        # BGR -> RGB, normalize, HWC -> CHW, add batch
        blob = img[:, :, ::-1].astype(np.float32) / 255.0
        blob = np.ascontiguousarray(np.transpose(blob, (2, 0, 1))[None, ...])

        return PreprocessResult(blob=blob, image=img)

    def postprocess(self, preds: np.ndarray) -> List[Detection]:
        return self.post.process(preds)

    def highlight_predicate(self) -> Optional[Callable[[Detection], bool]]:
        target = self.settings.target_label
        if target is None:
            return None
        labels = self.labels
        return lambda det: label_for(det.class_id, labels) == target

    def render(self, detections: Sequence[Detection]) -> Tuple[np.ndarray, str]:
        overlay = render_overlay(
            self.settings.input_width,
            self.settings.input_height,
            detections,
            color=self.settings.box_color,
            thickness=self.settings.line_thickness,
            predicate=self.highlight_predicate(),
            max_count=self.settings.max_report,
        )
        report = format_report(detections, self.labels, max_count=self.settings.max_report)
        return overlay, report

    def process_output(
        self, preds: np.ndarray, cycle_index: int = 0, image: Optional[np.ndarray] = None
    ) -> CycleResult:
        detections = self.postprocess(preds)
        overlay, report = self.render(detections)
        return CycleResult(
            detections=tuple(detections),
            overlay=overlay,
            report=report,
            cycle_index=cycle_index,
            timestamp=time.time(),
            image=image,
        )


def load_pipeline(
    settings: OverlaySettings,
    *,
    root: Optional[PathLike] = "auto",
    onnx_providers: Optional[Sequence[str]] = None,
) -> Tuple[OverlayPipeline, InferenceEngine]:
    """
    Build the per-frame pipeline and an ONNX Runtime engine from settings.

    Relative `model_path`/`labels_path` resolve against the project root by
    default. Without `labels_path` the COCO labels are used.
    """

    if not settings.model_path:
        raise ValueError("settings.model_path is required to load an inference engine")

    labels: Optional[List[str]] = None
    if settings.labels_path:
        labels = load_labels(str(resolve_path(settings.labels_path, root=root)))

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    model_path = resolve_path(settings.model_path, root=root)
    suffix = model_path.suffix.lower()
    if suffix != ".onnx":
        raise ValueError(f"Unsupported model format '{suffix}'. Export the model to ONNX.")

    engine = OnnxRuntimeBackend(model_path, OnnxRuntimeBackendConfig(providers=onnx_providers))
    return OverlayPipeline(settings, labels=labels), engine

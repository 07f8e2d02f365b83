"""
YOLO output -> transparent box overlay.

Decodes attribute-major YOLOv8-style output, applies greedy NMS, rasterizes
box outlines onto an RGBA canvas and formats a text report. A small timed
driver ties capture, inference and display collaborators together.
NumPy does the math; OpenCV handles capture, resizing and display.
"""

from .types import Detection
from .errors import (
    CaptureUnavailableError,
    InferenceUnavailableError,
    InvalidModelOutputError,
    OverlayError,
    ShapeMismatchError,
)
from .geometry import intersection_over_union
from .nms import NMSConfig, nms
from .postprocess import PostprocessConfig, YoloPostprocessor, decode_output
from .raster import composite_overlay, draw_box_outline, draw_line, new_transparent_canvas, render_overlay
from .report import format_report, label_for
from .metadata import COCO_LABELS, load_labels
from .config import OverlaySettings, load_overlay_settings
from .runtime import CycleResult, OverlayPipeline, find_project_root, load_pipeline, resolve_path
from .driver import DriverState, PipelineDriver

__all__ = [
    "Detection",
    "CaptureUnavailableError",
    "InferenceUnavailableError",
    "InvalidModelOutputError",
    "OverlayError",
    "ShapeMismatchError",
    "intersection_over_union",
    "NMSConfig",
    "nms",
    "PostprocessConfig",
    "YoloPostprocessor",
    "decode_output",
    "composite_overlay",
    "draw_box_outline",
    "draw_line",
    "new_transparent_canvas",
    "render_overlay",
    "format_report",
    "label_for",
    "COCO_LABELS",
    "load_labels",
    "OverlaySettings",
    "load_overlay_settings",
    "CycleResult",
    "OverlayPipeline",
    "find_project_root",
    "load_pipeline",
    "resolve_path",
    "DriverState",
    "PipelineDriver",
]

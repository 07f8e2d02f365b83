from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class OverlaySettings:
    """
    Everything the host adjusts for one overlay run.

    Thresholds are independent of each other; only their [0, 1] range is checked.
    """

    model_path: Optional[str] = None
    labels_path: Optional[str] = None
    input_width: int = 640
    input_height: int = 640
    confidence_threshold: float = 0.5
    iou_threshold: float = 0.5
    class_agnostic_nms: bool = True
    target_label: Optional[str] = "person"
    box_color: Tuple[int, int, int, int] = (255, 0, 0, 255)
    line_thickness: int = 5
    max_report: int = 10
    inference_timeout_s: float = 5.0
    cycle_interval_s: float = 3.0

    def __post_init__(self) -> None:
        if self.input_width < 1 or self.input_height < 1:
            raise ValueError("input_width and input_height must be >= 1")
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be in [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.line_thickness < 1:
            raise ValueError("line_thickness must be >= 1")
        if self.max_report < 0:
            raise ValueError("max_report must be >= 0")
        if self.inference_timeout_s <= 0:
            raise ValueError("inference_timeout_s must be > 0")
        if self.cycle_interval_s < 0:
            raise ValueError("cycle_interval_s must be >= 0")
        if len(self.box_color) not in (3, 4) or any(not 0 <= int(c) <= 255 for c in self.box_color):
            raise ValueError("box_color must be 3 or 4 integers in [0, 255]")

    @property
    def input_size(self) -> Tuple[int, int]:
        return self.input_width, self.input_height

    def with_overrides(self, **changes: Any) -> "OverlaySettings":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["box_color"] = list(self.box_color)
        return payload


_STR_KEYS = {"model_path", "labels_path", "target_label"}
_INT_KEYS = {"input_width", "input_height", "line_thickness", "max_report"}
_FLOAT_KEYS = {"confidence_threshold", "iou_threshold", "inference_timeout_s", "cycle_interval_s"}
_BOOL_KEYS = {"class_agnostic_nms"}


def _coerce(key: str, value: Any) -> Any:
    if key in _STR_KEYS:
        if value is not None and not isinstance(value, str):
            raise ValueError(f"{key} must be a string or null")
        return value
    if key in _INT_KEYS:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{key} must be an integer")
        return int(value)
    if key in _FLOAT_KEYS:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{key} must be a number")
        return float(value)
    if key in _BOOL_KEYS:
        if not isinstance(value, bool):
            raise ValueError(f"{key} must be a boolean")
        return value
    if key == "box_color":
        if not isinstance(value, list) or any(isinstance(c, bool) or not isinstance(c, int) for c in value):
            raise ValueError("box_color must be a list of integers")
        return tuple(value)
    raise ValueError(f"Unknown overlay settings key: {key}")


def settings_from_dict(payload: Dict[str, Any], base: Optional[OverlaySettings] = None) -> OverlaySettings:
    allowed = {f.name for f in fields(OverlaySettings)}
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown overlay settings keys: {unknown}")
    changes = {key: _coerce(key, value) for key, value in payload.items()}
    return replace(base or OverlaySettings(), **changes)


def load_overlay_settings(path: Path) -> OverlaySettings:
    if not path.exists():
        raise FileNotFoundError(f"Overlay settings not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid overlay settings JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Overlay settings must be a JSON object")
    return settings_from_dict(payload)

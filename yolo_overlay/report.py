from __future__ import annotations

from typing import Iterable, Optional, Sequence

from .types import Detection


REPORT_HEADER = "Detected Objects:"


def label_for(class_id: int, labels: Sequence[str]) -> str:
    if 0 <= class_id < len(labels):
        return labels[class_id]
    return f"Unknown ({class_id})"


def format_detection(det: Detection, labels: Sequence[str]) -> str:
    label = label_for(det.class_id, labels)
    return (
        f"{label}: {det.confidence:.2f} - Pos: ({det.x:.2f}, {det.y:.2f}), "
        f"Size: {det.width:.2f}x{det.height:.2f}"
    )


def format_report(detections: Iterable[Detection], labels: Sequence[str], max_count: Optional[int] = 10) -> str:
    """
    Header line followed by one line per detection, capped at `max_count`.
    """

    lines = [REPORT_HEADER]
    for idx, det in enumerate(detections):
        if max_count is not None and idx >= max_count:
            break
        lines.append(format_detection(det, labels))
    return "\n".join(lines) + "\n"

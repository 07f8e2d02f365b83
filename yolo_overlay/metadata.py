from __future__ import annotations

from typing import Dict, List


COCO_LABELS: List[str] = [
    "person", "bicycle", "car", "motorcycle", "airplane", "bus", "train", "truck", "boat", "traffic light",
    "fire hydrant", "stop sign", "parking meter", "bench", "bird", "cat", "dog", "horse", "sheep", "cow",
    "elephant", "bear", "zebra", "giraffe", "backpack", "umbrella", "handbag", "tie", "suitcase", "frisbee",
    "skis", "snowboard", "sports ball", "kite", "baseball bat", "baseball glove", "skateboard", "surfboard",
    "tennis racket", "bottle", "wine glass", "cup", "fork", "knife", "spoon", "bowl", "banana", "apple",
    "sandwich", "orange", "broccoli", "carrot", "hot dog", "pizza", "donut", "cake", "chair", "couch",
    "potted plant", "bed", "dining table", "toilet", "tv", "laptop", "mouse", "remote", "keyboard", "cell phone",
    "microwave", "oven", "toaster", "sink", "refrigerator", "book", "clock", "vase", "scissors", "teddy bear",
    "hair drier", "toothbrush",
]


def _names_mapping_to_list(names: Dict[int, str]) -> List[str]:
    if not names:
        return []
    size = max(names) + 1
    missing = sorted(set(range(size)) - set(names))
    if missing:
        raise ValueError(f"Label ids must be contiguous from 0, missing: {missing}")
    return [names[i] for i in range(size)]


def load_labels(path: str) -> List[str]:
    """
    Load an ordered label list.

    Two formats are understood. The lightweight metadata.yaml mapping:

        names:
          0: person
          1: bicycle
          ...

    or a plain text file with one label per line (line order = class id).
    This function intentionally avoids adding a PyYAML dependency.
    """

    with open(path, "r", encoding="utf-8") as f:
        raw_lines = f.read().splitlines()

    lines = [raw.strip() for raw in raw_lines]
    if "names:" not in lines:
        return [line for line in lines if line and not line.startswith("#")]

    names: Dict[int, str] = {}
    in_names = False
    for line in lines:
        if not line or line.startswith("#"):
            continue
        if line == "names:":
            in_names = True
            continue
        if not in_names:
            continue

        # Parse "id: label"
        if ":" not in line:
            continue
        left, right = line.split(":", 1)
        left = left.strip()
        right = right.strip().strip("'").strip('"')
        if not left.isdigit():
            # A non-indexed key ends the names block.
            in_names = False
            continue
        names[int(left)] = right

    return _names_mapping_to_list(names)

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Detection:
    """
    Single decoded detection in center-form, in model input coordinates.

    `class_id` indexes an external label list and is not guaranteed to be in
    range. `width`/`height` come straight from the model and may be negative.
    """

    class_id: int
    confidence: float
    x: float
    y: float
    width: float
    height: float

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        half_w = self.width / 2
        half_h = self.height / 2
        return self.x - half_w, self.y - half_h, self.x + half_w, self.y + half_h

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

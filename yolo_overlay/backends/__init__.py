"""
Inference backends for yolo_overlay.

Backends are kept in a separate module so core functionality (decode, NMS,
rasterizing) stays lightweight and can be used without installing inference
runtimes.
"""

from __future__ import annotations

from .base import InferenceEngine, InferenceJob

__all__ = ["InferenceEngine", "InferenceJob"]

"""
Error taxonomy for a single overlay cycle.

`recoverable` tells the driver whether the failure is transient (log and move
on to the next cycle) or points at a broken model/configuration that should be
surfaced loudly. Neither kind stops the driver loop.
"""

from __future__ import annotations


class OverlayError(Exception):
    recoverable: bool = True


class ShapeMismatchError(OverlayError, ValueError):
    """Raw output length does not match the declared attribute/candidate counts."""

    recoverable = True


class InvalidModelOutputError(OverlayError, ValueError):
    """Model output has fewer than 5 attribute rows, so no class scores exist."""

    recoverable = False


class InferenceUnavailableError(OverlayError):
    """The inference engine failed or did not produce output in time."""

    recoverable = True


class CaptureUnavailableError(OverlayError):
    """The frame source could not provide a frame."""

    recoverable = True

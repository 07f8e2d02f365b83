from __future__ import annotations

from typing import Optional

import numpy as np


class InferenceJob:
    """
    One in-flight inference, owned by a single pipeline cycle.

    `output()` waits for the raw model output and raises
    `InferenceUnavailableError` when it cannot be produced. `release()` frees
    whatever the job holds and must be safe to call more than once.
    """

    def output(self, timeout: Optional[float] = None) -> np.ndarray:
        raise NotImplementedError

    def release(self) -> None:
        pass

    def __enter__(self) -> "InferenceJob":
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()


class InferenceEngine:
    """
    Anything that turns a preprocessed NCHW blob into an `InferenceJob`.
    """

    def submit(self, blob: np.ndarray) -> InferenceJob:
        raise NotImplementedError

    def close(self) -> None:
        pass

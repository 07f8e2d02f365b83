from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

from ..errors import InferenceUnavailableError
from .base import InferenceEngine, InferenceJob


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CUDAExecutionProvider", "CPUExecutionProvider"])
    - input_name/output_name: override auto-selected I/O names if needed
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None


class OnnxInferenceJob(InferenceJob):
    def __init__(self, future: "Future[np.ndarray]"):
        self._future = future

    def output(self, timeout: Optional[float] = None) -> np.ndarray:
        try:
            return self._future.result(timeout=timeout)
        except FutureTimeoutError as e:
            raise InferenceUnavailableError(f"Inference did not finish within {timeout}s") from e
        except Exception as e:
            raise InferenceUnavailableError(f"Inference failed: {e}") from e

    def release(self) -> None:
        # Drops a job that never started; a running one finishes and is discarded.
        self._future.cancel()


class OnnxRuntimeBackend(InferenceEngine):
    """
    Minimal ONNX Runtime backend.

    Expects an NCHW float32 blob, typically shaped (1, 3, H, W).
    Returns the primary output as a NumPy array, e.g. (1, 84, 8400).
    Jobs run on a private single worker so callers can bound their wait.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        sess_opts = ort.SessionOptions()
        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)

        self.input_name = cfg.input_name or self.session.get_inputs()[0].name
        # If output_name not provided, pick first output.
        self.output_name = cfg.output_name or self.session.get_outputs()[0].name
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="onnx-infer")
        logger.info("Loaded %s with providers %s", self.model_path, self.providers_in_use)

    @property
    def providers_in_use(self) -> Sequence[str]:
        # ORT returns providers in priority order for this session.
        return tuple(self.session.get_providers())

    def infer(self, blob: np.ndarray) -> np.ndarray:
        outputs = self.session.run([self.output_name], {self.input_name: blob})
        return outputs[0]

    def submit(self, blob: np.ndarray) -> OnnxInferenceJob:
        return OnnxInferenceJob(self._executor.submit(self.infer, blob))

    def close(self) -> None:
        self._executor.shutdown(wait=True, cancel_futures=True)

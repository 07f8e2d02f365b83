import unittest
from concurrent.futures import Future

import numpy as np

from yolo_overlay.backends.onnxruntime_backend import OnnxInferenceJob, OnnxRuntimeBackend
from yolo_overlay.errors import InferenceUnavailableError


class TestOnnxInferenceJob(unittest.TestCase):
    def test_output_returns_result(self) -> None:
        future = Future()
        future.set_result(np.ones((1, 84, 10), dtype=np.float32))
        with OnnxInferenceJob(future) as job:
            self.assertEqual(job.output(timeout=0.1).shape, (1, 84, 10))

    def test_runtime_error_is_wrapped(self) -> None:
        future = Future()
        future.set_exception(RuntimeError("CUDA failure"))
        job = OnnxInferenceJob(future)
        with self.assertRaises(InferenceUnavailableError) as ctx:
            job.output(timeout=0.1)
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)

    def test_timeout(self) -> None:
        job = OnnxInferenceJob(Future())
        with self.assertRaises(InferenceUnavailableError):
            job.output(timeout=0.01)

    def test_release_cancels_pending_job(self) -> None:
        future = Future()
        job = OnnxInferenceJob(future)
        job.release()
        job.release()
        self.assertTrue(future.cancelled())

    def test_missing_model_file(self) -> None:
        try:
            import onnxruntime  # noqa: F401
        except ImportError:
            self.skipTest("onnxruntime not installed")
        with self.assertRaises(FileNotFoundError):
            OnnxRuntimeBackend("does/not/exist.onnx")


if __name__ == "__main__":
    unittest.main()

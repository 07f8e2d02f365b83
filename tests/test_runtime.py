import tempfile
import unittest
from pathlib import Path

import numpy as np

from yolo_overlay.config import OverlaySettings
from yolo_overlay.runtime import OverlayPipeline, find_project_root, load_pipeline, resolve_path


class TestPaths(unittest.TestCase):
    def test_find_project_root_uses_markers(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        root = Path(tmpdir.name).resolve()
        (root / "pyproject.toml").write_text("", encoding="utf-8")
        nested = root / "a" / "b"
        nested.mkdir(parents=True)
        self.assertEqual(find_project_root(nested), root)

    def test_resolve_path(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        root = Path(tmpdir.name).resolve()
        self.assertEqual(resolve_path("models/x.onnx", root=root), root / "models" / "x.onnx")
        absolute = root / "y.onnx"
        self.assertEqual(resolve_path(absolute, root="/elsewhere"), absolute)


class TestLoadPipeline(unittest.TestCase):
    def test_requires_model_path(self) -> None:
        with self.assertRaises(ValueError):
            load_pipeline(OverlaySettings())

    def test_rejects_non_onnx_models(self) -> None:
        with self.assertRaises(ValueError):
            load_pipeline(OverlaySettings(model_path="weights.pt"), root=tempfile.gettempdir())


class TestPreprocess(unittest.TestCase):
    def test_blob_layout(self) -> None:
        settings = OverlaySettings(input_width=32, input_height=16)
        frame = np.zeros((48, 64, 3), dtype=np.uint8)
        frame[:, :, 0] = 255  # blue in BGR
        prep = OverlayPipeline(settings).preprocess(frame)

        self.assertEqual(prep.blob.shape, (1, 3, 16, 32))
        self.assertEqual(prep.blob.dtype, np.float32)
        self.assertEqual(prep.image.shape, (16, 32, 3))
        # Channels are RGB after preprocessing, so blue lands last.
        self.assertTrue(np.allclose(prep.blob[0, 2], 1.0))
        self.assertTrue(np.allclose(prep.blob[0, 0], 0.0))

    def test_default_labels_are_coco(self) -> None:
        pipeline = OverlayPipeline(OverlaySettings())
        self.assertEqual(len(pipeline.labels), 80)


if __name__ == "__main__":
    unittest.main()

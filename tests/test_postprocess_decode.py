import unittest

import numpy as np

from yolo_overlay.errors import InvalidModelOutputError, ShapeMismatchError
from yolo_overlay.postprocess import PostprocessConfig, YoloPostprocessor, decode_output


def _two_class_three_candidates() -> np.ndarray:
    # (C + 4, A) with C = 2 classes and A = 3 candidates.
    return np.array(
        [
            [10, 20, 30],  # cx
            [11, 21, 31],  # cy
            [4, 5, 6],  # w
            [7, 8, 9],  # h
            [0.9, 0.5, 0.2],  # class 0
            [0.1, 0.3, 0.7],  # class 1
        ],
        dtype=np.float32,
    )


class TestDecodeOutput(unittest.TestCase):
    def test_decode_known_scores(self) -> None:
        dets = decode_output(_two_class_three_candidates(), conf_threshold=0.5)
        self.assertEqual([(d.class_id, round(d.confidence, 6)) for d in dets], [(0, 0.9), (1, 0.7)])
        first, second = dets
        self.assertEqual((first.x, first.y, first.width, first.height), (10.0, 11.0, 4.0, 7.0))
        self.assertEqual((second.x, second.y, second.width, second.height), (30.0, 31.0, 6.0, 9.0))

    def test_score_equal_to_threshold_is_excluded(self) -> None:
        # Candidate 1 peaks at exactly 0.5.
        dets = decode_output(_two_class_three_candidates(), conf_threshold=0.5)
        self.assertNotIn(20.0, [d.x for d in dets])
        dets = decode_output(_two_class_three_candidates(), conf_threshold=0.49)
        self.assertIn(20.0, [d.x for d in dets])

    def test_flat_buffer(self) -> None:
        p = _two_class_three_candidates()
        dets = decode_output(p.ravel(), 0.5, num_attributes=6, num_candidates=3)
        self.assertEqual([d.class_id for d in dets], [0, 1])

    def test_flat_python_list(self) -> None:
        p = _two_class_three_candidates().ravel().tolist()
        dets = decode_output(p, 0.5, num_attributes=6, num_candidates=3)
        self.assertEqual(len(dets), 2)

    def test_batch_axis(self) -> None:
        dets = decode_output(_two_class_three_candidates()[None, ...], 0.5)
        self.assertEqual(len(dets), 2)

    def test_flat_length_mismatch(self) -> None:
        p = _two_class_three_candidates().ravel()[:-1]
        with self.assertRaises(ShapeMismatchError):
            decode_output(p, 0.5, num_attributes=6, num_candidates=3)

    def test_flat_without_counts(self) -> None:
        with self.assertRaises(ShapeMismatchError):
            decode_output(_two_class_three_candidates().ravel(), 0.5)

    def test_declared_counts_must_match_shape(self) -> None:
        with self.assertRaises(ShapeMismatchError):
            decode_output(_two_class_three_candidates(), 0.5, num_attributes=84)
        with self.assertRaises(ShapeMismatchError):
            decode_output(_two_class_three_candidates(), 0.5, num_candidates=8400)

    def test_batch_greater_than_one(self) -> None:
        p = np.stack([_two_class_three_candidates()] * 2)
        with self.assertRaises(ShapeMismatchError):
            decode_output(p, 0.5)

    def test_too_few_attribute_rows(self) -> None:
        with self.assertRaises(InvalidModelOutputError):
            decode_output(np.zeros((4, 3), dtype=np.float32), 0.5)
        with self.assertRaises(InvalidModelOutputError):
            decode_output(np.zeros(12, dtype=np.float32), 0.5, num_attributes=4, num_candidates=3)

    def test_error_recoverability(self) -> None:
        self.assertTrue(ShapeMismatchError.recoverable)
        self.assertFalse(InvalidModelOutputError.recoverable)

    def test_tie_picks_lowest_class(self) -> None:
        p = _two_class_three_candidates()
        p[4, 0] = 0.8
        p[5, 0] = 0.8
        dets = decode_output(p, 0.5)
        self.assertEqual(dets[0].class_id, 0)

    def test_non_positive_scores_never_emitted(self) -> None:
        p = _two_class_three_candidates()
        p[4:, :] = -0.1
        self.assertEqual(decode_output(p, 0.0), [])
        p[4:, :] = 0.0
        self.assertEqual(decode_output(p, 0.0), [])

    def test_float64_scores_are_kept_exactly(self) -> None:
        dets = decode_output([10, 10, 4, 4, 0.95, 0.0], 0.5, num_attributes=6, num_candidates=1)
        self.assertEqual(dets[0].confidence, 0.95)
        self.assertEqual(dets[0].class_id, 0)

    def test_float32_scores_keep_float32_value(self) -> None:
        p = np.array([10, 10, 4, 4, 0.95, 0.0], dtype=np.float32)
        dets = decode_output(p, 0.5, num_attributes=6, num_candidates=1)
        self.assertEqual(dets[0].confidence, float(np.float32(0.95)))

    def test_threshold_boundary_for_both_precisions(self) -> None:
        for dtype in (np.float32, np.float64):
            p = np.array([10, 10, 4, 4, 0.3, 0.0], dtype=dtype)
            self.assertEqual(decode_output(p, 0.3, num_attributes=6, num_candidates=1), [])

    def test_integer_buffer(self) -> None:
        dets = decode_output([10, 10, 4, 4, 0, 1], 0.5, num_attributes=6, num_candidates=1)
        self.assertEqual((dets[0].class_id, dets[0].confidence), (1, 1.0))

    def test_keeps_candidate_order(self) -> None:
        p = _two_class_three_candidates()
        p[4, :] = [0.6, 0.95, 0.7]
        dets = decode_output(p, 0.5)
        self.assertEqual([d.x for d in dets], [10.0, 20.0, 30.0])


class TestYoloPostprocessor(unittest.TestCase):
    def test_process_orders_by_confidence(self) -> None:
        p = _two_class_three_candidates()
        dets = YoloPostprocessor(PostprocessConfig(conf_threshold=0.1)).process(p)
        self.assertEqual([round(d.confidence, 6) for d in dets], [0.9, 0.7, 0.5])

    def test_topk_without_nms(self) -> None:
        p = _two_class_three_candidates()
        # Make all three boxes identical so NMS would keep only one.
        p[0:4, :] = [[10], [10], [5], [5]]
        cfg = PostprocessConfig(conf_threshold=0.1, apply_nms=False, max_detections=2)
        dets = YoloPostprocessor(cfg).process(p)
        self.assertEqual([round(d.confidence, 6) for d in dets], [0.9, 0.7])

        cfg = PostprocessConfig(conf_threshold=0.1)
        self.assertEqual(len(YoloPostprocessor(cfg).process(p)), 1)

    def test_flat_buffer_from_config(self) -> None:
        cfg = PostprocessConfig(conf_threshold=0.5, num_attributes=6, num_candidates=3)
        dets = YoloPostprocessor(cfg).process(_two_class_three_candidates().ravel())
        self.assertEqual(len(dets), 2)

    def test_nothing_above_threshold(self) -> None:
        dets = YoloPostprocessor(PostprocessConfig(conf_threshold=0.95)).process(_two_class_three_candidates())
        self.assertEqual(dets, [])


if __name__ == "__main__":
    unittest.main()

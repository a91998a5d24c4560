import numpy as np
import pytest

from fracseries import AnalysisConfig, count_occupied, threshold_frame


class TestThreshold:
    """Tests for intensity thresholding"""

    def test_cutoff_is_inclusive(self):
        """Intensity 2 is occupied, intensity 1 is empty"""
        frame = np.array([[[0, 1, 2, 3]]])
        mask = threshold_frame(frame)
        assert mask.tolist() == [[[0, 0, 255, 255]]]

    def test_shape_and_dtype(self, random_frame):
        mask = threshold_frame(random_frame)
        assert mask.shape == random_frame.shape
        assert mask.dtype == np.uint8
        assert set(np.unique(mask)) <= {0, 255}

    def test_negative_intensities_are_empty(self):
        mask = threshold_frame(np.array([[[-5, 100]]]))
        assert mask.tolist() == [[[0, 255]]]

    def test_custom_config(self):
        cfg = AnalysisConfig(threshold=5, occupied_value=200)
        mask = threshold_frame(np.array([[[4, 5]]]), cfg)
        assert mask.tolist() == [[[0, 200]]]

    def test_input_not_modified(self, random_frame):
        before = random_frame.copy()
        threshold_frame(random_frame)
        np.testing.assert_array_equal(random_frame, before)

    def test_rejects_non_3d(self):
        with pytest.raises(ValueError):
            threshold_frame(np.zeros((4, 4)))

    def test_count_occupied(self, line_frame):
        assert count_occupied(threshold_frame(line_frame)) == 16

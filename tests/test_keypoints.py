"""Tests for arg-max keypoint detection."""

import numpy as np
import pytest

from hand_gesture.components.keypoints import KeypointDetector
from hand_gesture.exceptions import InvalidInputError
from hand_gesture.types import CoordinateSpace


class TestKeypointDetector:
    """Tests for KeypointDetector.detect."""

    def test_unique_maximum_per_channel(self):
        heatmaps = np.zeros((21, 64, 64), dtype=np.float32)
        expected = []
        for joint in range(21):
            x, y = joint * 3, 60 - joint * 2
            heatmaps[joint, y, x] = 1.0
            expected.append((float(x), float(y)))

        keypoints = KeypointDetector().detect(heatmaps)

        assert keypoints.space is CoordinateSpace.CROP
        assert len(keypoints) == 21
        assert keypoints.to_list() == expected

    def test_all_equal_channel_returns_first_pixel(self):
        heatmaps = np.full((21, 16, 16), 0.3, dtype=np.float32)
        keypoints = KeypointDetector().detect(heatmaps)
        assert keypoints.to_list() == [(0.0, 0.0)] * 21

    def test_tie_prefers_earlier_row(self):
        heatmaps = np.zeros((21, 16, 16), dtype=np.float32)
        heatmaps[0, 10, 5] = 2.0
        heatmaps[0, 3, 7] = 2.0
        assert KeypointDetector().detect(heatmaps)[0] == (7.0, 3.0)

    def test_tie_prefers_leftmost_in_row(self):
        heatmaps = np.zeros((21, 16, 16), dtype=np.float32)
        heatmaps[0, 4, 9] = 2.0
        heatmaps[0, 4, 2] = 2.0
        assert KeypointDetector().detect(heatmaps)[0] == (2.0, 4.0)

    def test_negative_activations(self):
        heatmaps = np.full((21, 8, 8), -5.0, dtype=np.float32)
        heatmaps[3, 6, 1] = -1.0
        assert KeypointDetector().detect(heatmaps)[3] == (1.0, 6.0)

    def test_nan_never_wins(self):
        heatmaps = np.zeros((21, 8, 8), dtype=np.float32)
        heatmaps[0, 0, 0] = np.nan
        heatmaps[0, 5, 5] = 1.0
        assert KeypointDetector().detect(heatmaps)[0] == (5.0, 5.0)

    def test_channels_last(self):
        heatmaps = np.zeros((32, 32, 21), dtype=np.float32)
        heatmaps[12, 30, 4] = 1.0
        keypoints = KeypointDetector(channels_last=True).detect(heatmaps)
        assert keypoints[4] == (30.0, 12.0)

    def test_batch_axis_is_dropped(self):
        heatmaps = np.zeros((1, 21, 8, 8), dtype=np.float32)
        heatmaps[0, 20, 7, 6] = 1.0
        assert KeypointDetector().detect(heatmaps)[20] == (6.0, 7.0)

    @pytest.mark.parametrize("heatmaps", [
        np.zeros((20, 8, 8)),
        np.zeros((21, 0, 8)),
        np.zeros((8, 8)),
        "not an array",
    ])
    def test_invalid_heatmaps(self, heatmaps):
        with pytest.raises(InvalidInputError):
            KeypointDetector().detect(heatmaps)

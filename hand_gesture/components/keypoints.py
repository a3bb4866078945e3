import numpy as np

from ..exceptions import InvalidInputError
from ..types import CoordinateSpace, KeypointSet


class KeypointDetector:
    """
    Extracts one keypoint per joint heatmap: the pixel of maximum activation.
    Ties go to the first pixel in row-major scan order; no sub-pixel refinement.
    """

    def __init__(self, num_keypoints: int = 21, channels_last: bool = False):
        """
        Args:
            num_keypoints: Expected number of joint channels
            channels_last: True if heatmaps arrive as (H, W, C) instead of (C, H, W)
        """
        self.num_keypoints = num_keypoints
        self.channels_last = channels_last

    def _prepare(self, heatmaps: np.ndarray) -> np.ndarray:
        if not isinstance(heatmaps, np.ndarray):
            raise InvalidInputError("Heatmaps must be a numpy array")
        if heatmaps.ndim == 4 and heatmaps.shape[0] == 1:
            heatmaps = heatmaps[0]
        if heatmaps.ndim != 3:
            raise InvalidInputError(f"Heatmaps must be 3-D, got shape {heatmaps.shape}")
        if self.channels_last:
            heatmaps = np.moveaxis(heatmaps, -1, 0)
        if heatmaps.shape[0] != self.num_keypoints or heatmaps.shape[1] == 0 or heatmaps.shape[2] == 0:
            raise InvalidInputError(
                f"Expected {self.num_keypoints} non-empty heatmaps, got shape {heatmaps.shape}"
            )
        return heatmaps

    def detect(self, heatmaps: np.ndarray) -> KeypointSet:
        """
        Find the peak of every joint channel.

        Args:
            heatmaps: Joint heatmaps (C, H, W), or (H, W, C) with channels_last

        Returns:
            KeypointSet of C (x, y) pixel positions in crop space
        """
        heatmaps = self._prepare(heatmaps)
        channels, _, width = heatmaps.shape

        flat = heatmaps.reshape(channels, -1).astype(np.float64)
        # NaN never wins a strict comparison
        flat = np.where(np.isnan(flat), -np.inf, flat)
        peaks = np.argmax(flat, axis=1)

        ys, xs = np.divmod(peaks, width)
        return KeypointSet(np.stack([xs, ys], axis=1), CoordinateSpace.CROP)

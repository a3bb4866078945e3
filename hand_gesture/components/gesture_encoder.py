import numpy as np

from ..types import CoordinateSpace, KeypointSet


class GestureFeatureEncoder:
    """
    Encodes crop-space keypoints into the gesture network input.

    The layout is fixed by how the gesture network was trained: per point,
    y first then x, each divided by the crop edge:
        [y0/S, x0/S, y1/S, x1/S, ...]
    """

    def __init__(self, crop_size: int = 256):
        self.crop_size = crop_size

    def encode(self, keypoints: KeypointSet) -> np.ndarray:
        """
        Args:
            keypoints: Keypoints in crop space

        Returns:
            float32 vector of length 2 * len(keypoints)
        """
        keypoints.expect(CoordinateSpace.CROP)
        swapped = keypoints.xy[:, ::-1] / float(self.crop_size)
        return swapped.reshape(-1).astype(np.float32)

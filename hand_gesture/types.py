"""Hand pipeline domain types."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Tuple

import numpy as np

from .exceptions import CoordinateSpaceError


class CoordinateSpace(Enum):
    """Image spaces a keypoint can live in during one invocation.

    CROP: pixels of the pose network crop / heatmap.
    CANVAS: pixels of the letterboxed working canvas.
    ORIGINAL: pixels of the caller's source image.
    VIEWPORT: integer pixels of the display viewport.
    """

    CROP = "crop"
    CANVAS = "canvas"
    ORIGINAL = "original"
    VIEWPORT = "viewport"


class HandJoint:
    """Hand joint indices as emitted by the pose network.

    Index 0 is the palm root, followed by four joints per finger
    listed from fingertip to finger base.

    Example:
        >>> tip = keypoints[HandJoint.INDEX_TIP]
    """

    PALM = 0
    THUMB_TIP = 1
    THUMB_DIP = 2
    THUMB_PIP = 3
    THUMB_MCP = 4
    INDEX_TIP = 5
    INDEX_DIP = 6
    INDEX_PIP = 7
    INDEX_MCP = 8
    MIDDLE_TIP = 9
    MIDDLE_DIP = 10
    MIDDLE_PIP = 11
    MIDDLE_MCP = 12
    RING_TIP = 13
    RING_DIP = 14
    RING_PIP = 15
    RING_MCP = 16
    LITTLE_TIP = 17
    LITTLE_DIP = 18
    LITTLE_PIP = 19
    LITTLE_MCP = 20

    COUNT = 21
    POINTS_PER_FINGER = 4
    FINGERS = ("thumb", "index", "middle", "ring", "little")

    @classmethod
    def finger(cls, finger_id: int) -> List[int]:
        """Joint indices of one finger (0 = thumb), tip first."""
        start = finger_id * cls.POINTS_PER_FINGER + 1
        return list(range(start, start + cls.POINTS_PER_FINGER))


class KeypointSet:
    """
    Immutable ordered sequence of 2-D points tagged with their coordinate space.

    Usage:
        points = KeypointSet([(10, 20), (30, 40)], CoordinateSpace.CROP)
        points.expect(CoordinateSpace.CROP)
        x, y = points[0]
    """

    __slots__ = ("_xy", "_space")

    def __init__(self, xy, space: CoordinateSpace):
        array = np.array(xy, dtype=np.float64)
        if array.ndim == 1 and array.size == 0:
            array = array.reshape(0, 2)
        if array.ndim != 2 or array.shape[1] != 2:
            raise ValueError(f"Keypoints must have shape (N, 2), got {array.shape}")
        array.setflags(write=False)
        self._xy = array
        self._space = CoordinateSpace(space)

    @property
    def xy(self) -> np.ndarray:
        """Read-only (N, 2) array of x, y coordinates."""
        return self._xy

    @property
    def space(self) -> CoordinateSpace:
        return self._space

    def expect(self, space: CoordinateSpace) -> "KeypointSet":
        """Return self if it lives in ``space``, otherwise raise."""
        if self._space is not space:
            raise CoordinateSpaceError(
                f"Expected keypoints in {space.value} space, got {self._space.value}"
            )
        return self

    def to_list(self) -> List[Tuple[float, float]]:
        return [(float(x), float(y)) for x, y in self._xy]

    def __len__(self) -> int:
        return len(self._xy)

    def __getitem__(self, index: int) -> Tuple[float, float]:
        x, y = self._xy[index]
        return float(x), float(y)

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        return iter(self.to_list())

    def __eq__(self, other) -> bool:
        if not isinstance(other, KeypointSet):
            return NotImplemented
        return self._space is other._space and np.array_equal(self._xy, other._xy)

    def __repr__(self) -> str:
        return f"KeypointSet(space={self._space.value}, n={len(self)})"


@dataclass(frozen=True)
class CropDescriptor:
    """
    Where and how the hand crop was cut out of the canvas.

    Attributes:
        bbox: Occupied mask box (min_x, min_y, max_x, max_y) in canvas pixels.
        center: Box center in canvas pixels (unscaled).
        scale: Canvas-to-crop magnification, clamped to the configured range.
        scaled_center: Upright box center in scaled canvas pixels, rounded.
        flipped_center: Same center with the row order inverted.
        crop_rect: (x, y, size) of the crop square in scaled canvas pixels.
    """

    bbox: Tuple[int, int, int, int]
    center: Tuple[float, float]
    scale: float
    scaled_center: Tuple[float, float]
    flipped_center: Tuple[float, float]
    crop_rect: Tuple[float, float, int]

    @property
    def crop_size(self) -> int:
        return self.crop_rect[2]


__all__ = ["CoordinateSpace", "HandJoint", "KeypointSet", "CropDescriptor"]

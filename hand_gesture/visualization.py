"""
Preview images and keypoint overlays.
"""

from typing import List, Sequence, Tuple

import cv2
import numpy as np

from .components.transforms import letterbox_params
from .types import HandJoint, KeypointSet
from .utils import validate_image, image_size

Point = Tuple[float, float]
FingerLine = Tuple[Point, Point]

# One colour per finger, BGR: red, green, blue, yellow, brown
FINGER_COLORS = [
    (0, 0, 255),
    (0, 255, 0),
    (255, 0, 0),
    (0, 255, 255),
    (42, 42, 165),
]
DARKENING_PER_SEGMENT = 0.15


def scoremap_to_image(score_map: np.ndarray) -> np.ndarray:
    """
    Min/max-normalize a raw score map into an 8-bit grayscale image.

    Args:
        score_map: (H, W) float map (any range)

    Returns:
        uint8 (H, W) image; a flat map renders black
    """
    validate_image(score_map, "score map")
    values = np.squeeze(score_map).astype(np.float64)
    lo, hi = float(values.min()), float(values.max())
    if hi <= lo:
        return np.zeros(values.shape, dtype=np.uint8)
    scaled = (values - lo) / (hi - lo) * 255.0
    return np.clip(np.round(scaled), 0, 255).astype(np.uint8)


def mask_to_image(mask: np.ndarray) -> np.ndarray:
    """Render a {0, 1} mask as a black/white uint8 image."""
    validate_image(mask, "mask")
    return (np.clip(mask, 0.0, 1.0) * 255.0).round().astype(np.uint8)


def restore_aspect_ratio(image: np.ndarray, original_size: Tuple[int, int]) -> np.ndarray:
    """
    Cut the letterbox padding off a canvas-sized preview so it has the
    aspect ratio of the original image again.

    Args:
        image: Canvas-sized image (score map / mask preview)
        original_size: (width, height) of the source image

    Returns:
        View of the image without padding
    """
    validate_image(image, "preview")
    params = letterbox_params(original_size, image_size(image))
    orig_w, orig_h = original_size

    x0 = int(round(params.pad_x))
    y0 = int(round(params.pad_y))
    w = max(1, int(round(orig_w * params.scale)))
    h = max(1, int(round(orig_h * params.scale)))
    return image[y0:y0 + h, x0:x0 + w]


def finger_lines(keypoints: KeypointSet) -> List[List[FingerLine]]:
    """
    Skeleton segments per finger.

    Each finger runs palm root -> finger base -> ... -> fingertip, giving
    four segments per finger (the network lists finger joints tip first).

    Returns:
        Five lists (thumb to little finger) of four (from, to) point pairs
    """
    if len(keypoints) != HandJoint.COUNT:
        raise ValueError(f"Expected {HandJoint.COUNT} keypoints, got {len(keypoints)}")

    palm = keypoints[HandJoint.PALM]
    lines = []
    for finger_id in range(len(HandJoint.FINGERS)):
        joints = [keypoints[idx] for idx in reversed(HandJoint.finger(finger_id))]
        path = [palm] + joints
        lines.append([(path[i], path[i + 1]) for i in range(HandJoint.POINTS_PER_FINGER)])
    return lines


def _darker(color: Sequence[int], percent: float) -> Tuple[int, int, int]:
    factor = max(0.0, 1.0 - percent)
    return tuple(int(round(c * factor)) for c in color)


def draw_skeleton(
    image: np.ndarray,
    keypoints: KeypointSet,
    thickness: int = 4
) -> np.ndarray:
    """
    Draw the hand skeleton over an image.

    Keypoints must be in the pixel space of ``image`` (usually viewport
    space for a display-sized frame).

    Returns:
        Annotated copy of the image
    """
    annotated = image.copy()
    for lines, color in zip(finger_lines(keypoints), FINGER_COLORS):
        for idx, (start, end) in enumerate(lines):
            cv2.line(
                annotated,
                (int(round(start[0])), int(round(start[1]))),
                (int(round(end[0])), int(round(end[1]))),
                _darker(color, DARKENING_PER_SEGMENT * idx),
                thickness,
                cv2.LINE_AA,
            )
    return annotated


def draw_label(image: np.ndarray, label: str) -> np.ndarray:
    """Write the gesture label in a banner at the top of the frame."""
    annotated = image.copy()
    cv2.rectangle(annotated, (0, 0), (annotated.shape[1], 40), (255, 255, 255), -1)
    cv2.putText(
        annotated,
        label.capitalize(),
        (10, 28),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.8,
        (64, 64, 64),
        2,
        cv2.LINE_AA,
    )
    return annotated

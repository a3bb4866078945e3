"""
Utility functions for the hand gesture pipeline.
"""

import math
from typing import Optional, Tuple

import numpy as np

from .exceptions import InvalidInputError


def validate_image(image: Optional[np.ndarray], name: str = "image") -> np.ndarray:
    """
    Validate that an image buffer is usable.

    Args:
        image: Image as numpy array (H, W) or (H, W, C)
        name: Name used in error messages

    Returns:
        The same image

    Raises:
        InvalidInputError: If the image is missing, not an array or has a zero dimension
    """
    if image is None:
        raise InvalidInputError(f"{name} is missing")
    if not isinstance(image, np.ndarray):
        raise InvalidInputError(f"{name} must be a numpy array, got {type(image).__name__}")
    if image.ndim not in (2, 3):
        raise InvalidInputError(f"{name} must be 2-D or 3-D, got shape {image.shape}")
    if image.size == 0 or image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidInputError(f"{name} has a zero dimension: {image.shape}")
    return image


def image_size(image: np.ndarray) -> Tuple[int, int]:
    """Return (width, height) of an image array."""
    return int(image.shape[1]), int(image.shape[0])


def round_half_up(value: float) -> float:
    """Round to the nearest integer, halves away from zero."""
    return float(math.copysign(math.floor(abs(value) + 0.5), value))

"""
Configuration for the hand gesture pipeline.
"""

from dataclasses import dataclass, asdict
from typing import Tuple

import cv2


NO_HAND_POLICIES = ("raise", "center")


@dataclass
class PipelineConfig:
    """Configuration for the inference-and-geometry pipeline."""

    # Working canvas fed to the segmentation network (width, height)
    canvas_size: Tuple[int, int] = (320, 240)

    # Hand crop fed to the pose network (square edge)
    crop_size: int = 256
    crop_padding: float = 1.25  # Box size multiplier around the mask bbox
    min_crop_scale: float = 0.25
    max_crop_scale: float = 5.0

    # Mask hole filling (empirically tuned)
    dilation_iterations: int = 32
    dilation_kernel_size: int = 21

    num_keypoints: int = 21

    # True if the source buffer stores rows bottom-up relative to the mask
    mask_rows_inverted: bool = False

    # "raise" -> NoHandDetectedError, "center" -> whole-canvas default crop
    no_hand_policy: str = "raise"

    interpolation: int = cv2.INTER_LINEAR

    # General settings
    num_workers: int = 1
    verbose: bool = False

    def __post_init__(self):
        """Validate configuration."""
        if len(self.canvas_size) != 2 or min(self.canvas_size) <= 0:
            raise ValueError("canvas_size must be two positive integers")
        if self.crop_size <= 0:
            raise ValueError("crop_size must be positive")
        if self.crop_padding <= 0:
            raise ValueError("crop_padding must be positive")
        if not 0 < self.min_crop_scale <= self.max_crop_scale:
            raise ValueError("crop scale bounds must satisfy 0 < min <= max")
        if self.dilation_iterations < 0:
            raise ValueError("dilation_iterations must be >= 0")
        if self.dilation_kernel_size < 1 or self.dilation_kernel_size % 2 == 0:
            raise ValueError("dilation_kernel_size must be a positive odd number")
        if self.num_keypoints <= 0:
            raise ValueError("num_keypoints must be positive")
        if self.no_hand_policy not in NO_HAND_POLICIES:
            raise ValueError(f"no_hand_policy must be one of {NO_HAND_POLICIES}")
        if self.num_workers < 1:
            raise ValueError("num_workers must be >= 1")

    @property
    def canvas_shape(self) -> Tuple[int, int]:
        """Canvas as a numpy (rows, cols) shape."""
        width, height = self.canvas_size
        return height, width

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

import cv2
import numpy as np
from typing import Tuple, Optional

from ..exceptions import InvalidInputError, NoHandDetectedError
from ..types import CropDescriptor
from ..utils import validate_image, round_half_up


class HandCropExtractor:
    """
    Finds the hand in a binary mask and resamples a fixed-size square crop
    around it from the canvas image.
    The crop is an affine resample (scale then translate), so it can magnify
    a small hand up to max_scale times.
    """

    def __init__(
            self,
            crop_size: int = 256,
            padding: float = 1.25,  # Crop box = largest bbox side * padding
            min_scale: float = 0.25,
            max_scale: float = 5.0,
            mask_rows_inverted: bool = False,
            no_hand_policy: str = "raise",  # "raise" or "center"
            interpolation: int = cv2.INTER_LINEAR,
            debug_mode: bool = False
    ):
        """
        Initialize the crop extractor.

        Args:
            crop_size: Edge of the square output crop in pixels
            padding: Multiplier applied to the largest bounding box side
            min_scale: Lower clamp for the crop scale
            max_scale: Upper clamp for the crop scale
            mask_rows_inverted: True if the canvas stores rows in the opposite
                order to the mask; the flipped center then locates the crop
            no_hand_policy: "raise" for NoHandDetectedError on an empty mask,
                "center" to fall back to a crop of the whole canvas
            interpolation: CV2 interpolation method for the resample
            debug_mode: If True, print the crop geometry
        """
        if no_hand_policy not in ("raise", "center"):
            raise ValueError(f"Unknown no_hand_policy: {no_hand_policy}")

        self.crop_size = crop_size
        self.padding = padding
        self.min_scale = min_scale
        self.max_scale = max_scale
        self.mask_rows_inverted = mask_rows_inverted
        self.no_hand_policy = no_hand_policy
        self.interpolation = interpolation
        self.debug_mode = debug_mode

    def get_hand_bounding_box(self, mask: np.ndarray) -> Optional[Tuple[int, int, int, int]]:
        """
        Tight bounding box of all mask pixels with a value > 0.

        Returns:
            (min_x, min_y, max_x, max_y) inclusive, or None if the mask is empty
        """
        if not isinstance(mask, np.ndarray) or mask.ndim != 2 or mask.size == 0:
            raise InvalidInputError("Mask must be a non-empty 2-D array")

        ys, xs = np.nonzero(mask > 0)
        if xs.size == 0:
            return None

        return int(xs.min()), int(ys.min()), int(xs.max()), int(ys.max())

    def calculate_crop_scale(self, bbox: Tuple[int, int, int, int]) -> float:
        """Crop size over padded box size, clamped to [min_scale, max_scale]."""
        min_x, min_y, max_x, max_y = bbox
        box_size = max(max_x - min_x, max_y - min_y) * self.padding

        if box_size <= 0:
            # Single-pixel hand: magnify as far as allowed
            return float(self.max_scale)

        return float(min(max(self.crop_size / box_size, self.min_scale), self.max_scale))

    def describe(self, bbox: Tuple[int, int, int, int], mask_height: int) -> CropDescriptor:
        """
        Build the crop descriptor for a bounding box.

        Args:
            bbox: (min_x, min_y, max_x, max_y) in canvas pixels
            mask_height: Rows of the mask, used for the flipped center

        Returns:
            CropDescriptor
        """
        min_x, min_y, max_x, max_y = bbox
        scale = self.calculate_crop_scale(bbox)

        center_x = min_x + (max_x - min_x) / 2.0
        center_y = min_y + (max_y - min_y) / 2.0

        scaled_center = (
            round_half_up(scale * center_x),
            round_half_up(scale * center_y)
        )
        flipped_center = (
            scaled_center[0],
            round_half_up(scale * ((mask_height - min_y) + (min_y - max_y) / 2.0))
        )

        locate = flipped_center if self.mask_rows_inverted else scaled_center
        half = self.crop_size / 2.0
        crop_rect = (locate[0] - half, locate[1] - half, self.crop_size)

        return CropDescriptor(
            bbox=(min_x, min_y, max_x, max_y),
            center=(center_x, center_y),
            scale=scale,
            scaled_center=scaled_center,
            flipped_center=flipped_center,
            crop_rect=crop_rect
        )

    def crop_and_resize(self, image: np.ndarray, crop: CropDescriptor) -> np.ndarray:
        """
        Scale the whole image by crop.scale, shift by the crop origin and keep
        the crop square. Areas outside the image come out black.
        """
        validate_image(image, "canvas")
        x0, y0, size = crop.crop_rect
        transform = np.float32([
            [crop.scale, 0.0, -x0],
            [0.0, crop.scale, -y0]
        ])

        try:
            resampled = cv2.warpAffine(
                image, transform, (size, size),
                flags=self.interpolation,
                borderMode=cv2.BORDER_CONSTANT,
                borderValue=0
            )
        except cv2.error as e:
            raise InvalidInputError(f"Could not resample crop from {image.shape}: {e}") from e

        if resampled.ndim == 2 and image.ndim == 3:
            resampled = resampled[:, :, np.newaxis]

        return resampled

    def process(self, mask: np.ndarray, canvas: np.ndarray) -> Tuple[np.ndarray, CropDescriptor]:
        """
        Locate the hand and cut out the crop.

        Args:
            mask: Binary hand mask (H, W) in canvas space
            canvas: Letterboxed canvas image the mask was computed from

        Returns:
            Tuple of (crop_image, crop_descriptor)

        Raises:
            NoHandDetectedError: If the mask is empty and the policy is "raise"
            InvalidInputError: If the mask and canvas do not match
        """
        validate_image(canvas, "canvas")
        bbox = self.get_hand_bounding_box(mask)

        if mask.shape != canvas.shape[:2]:
            raise InvalidInputError(
                f"Mask shape {mask.shape} does not match canvas shape {canvas.shape[:2]}"
            )

        if bbox is None:
            if self.no_hand_policy == "raise":
                raise NoHandDetectedError("Hand mask is empty")
            h, w = mask.shape
            bbox = (0, 0, w - 1, h - 1)
            if self.debug_mode:
                print("  ⚠️ Empty mask, using whole-canvas crop")

        crop = self.describe(bbox, mask.shape[0])
        image = self.crop_and_resize(canvas, crop)

        if self.debug_mode:
            print(f"  → bbox {crop.bbox}, scale {crop.scale:.3f}, "
                  f"center {crop.scaled_center}, rect {crop.crop_rect}")

        return image, crop

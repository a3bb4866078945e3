import cv2
import numpy as np
from typing import Tuple

from ..exceptions import InvalidInputError
from ..utils import validate_image, image_size
from .transforms import letterbox_params, LetterboxParams


class LetterboxResizer:
    """
    Fits an arbitrary image into the fixed working canvas.
    Aspect ratio is preserved and the remaining area is padded black.
    The scale and offsets are not stored: they are recomputed from the two
    sizes by letterbox_params() whenever a transform needs them.
    """

    def __init__(
            self,
            canvas_size: Tuple[int, int] = (320, 240),
            interpolation: int = cv2.INTER_LINEAR,
            debug_mode: bool = False
    ):
        """
        Initialize the resizer.

        Args:
            canvas_size: Target canvas (width, height)
            interpolation: CV2 interpolation method
            debug_mode: If True, print the chosen fit
        """
        self.canvas_size = canvas_size
        self.interpolation = interpolation
        self.debug_mode = debug_mode

    def fit(self, image: np.ndarray) -> LetterboxParams:
        """Letterbox parameters for an image of this shape."""
        return letterbox_params(image_size(image), self.canvas_size)

    def resize(self, image: np.ndarray) -> np.ndarray:
        """
        Letterbox an image into the canvas.

        Args:
            image: Input image (H, W) or (H, W, C)

        Returns:
            New canvas array with the canvas dimensions and the input dtype

        Raises:
            InvalidInputError: If the image is empty or malformed
        """
        validate_image(image)
        canvas_w, canvas_h = self.canvas_size
        params = self.fit(image)

        # Same affine the coordinate transforms invert: canvas = scale * src + pad
        transform = np.float32([
            [params.scale, 0.0, params.pad_x],
            [0.0, params.scale, params.pad_y]
        ])

        try:
            canvas = cv2.warpAffine(
                image, transform, (canvas_w, canvas_h),
                flags=self.interpolation,
                borderMode=cv2.BORDER_CONSTANT,
                borderValue=0
            )
        except cv2.error as e:
            raise InvalidInputError(f"Could not resize image of shape {image.shape}: {e}") from e

        if canvas.ndim == 2 and image.ndim == 3:
            canvas = canvas[:, :, np.newaxis]

        if self.debug_mode:
            img_w, img_h = image_size(image)
            print(f"  → Letterbox {img_w}x{img_h} at scale {params.scale:.4f}, "
                  f"offset ({params.pad_x:.2f}, {params.pad_y:.2f})")

        return canvas

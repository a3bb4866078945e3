"""Coordinate transforms between crop, canvas, original and viewport space.

Every transform is an affine scale + translate derived from recorded
parameters only (crop descriptor and image sizes). Each one checks the
space its input lives in and tags its output, so keypoints cannot be
mixed up between spaces. Only the viewport transform rounds.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..exceptions import InvalidInputError
from ..types import CoordinateSpace, CropDescriptor, KeypointSet

Size = Tuple[int, int]


@dataclass(frozen=True)
class LetterboxParams:
    """Scale and padding that fit ``src`` into ``dst`` without cropping."""

    scale: float
    pad_x: float
    pad_y: float

    @property
    def offset(self) -> Tuple[float, float]:
        return self.pad_x, self.pad_y


def letterbox_params(src_size: Size, dst_size: Size) -> LetterboxParams:
    """
    Compute the letterbox fit of one size into another.

    The constraining dimension is picked by comparing aspect ratios: a
    source wider than the destination is fitted by width, otherwise by
    height. The scaled source is centered.

    Args:
        src_size: (width, height) of the image being fitted
        dst_size: (width, height) of the target

    Returns:
        LetterboxParams with the scale and the (possibly fractional) padding
    """
    src_w, src_h = (float(v) for v in src_size)
    dst_w, dst_h = (float(v) for v in dst_size)
    if src_w <= 0 or src_h <= 0 or dst_w <= 0 or dst_h <= 0:
        raise InvalidInputError(f"Cannot letterbox {src_size} into {dst_size}")

    if src_w / src_h > dst_w / dst_h:
        scale = dst_w / src_w
    else:
        scale = dst_h / src_h

    pad_x = (dst_w - src_w * scale) / 2.0
    pad_y = (dst_h - src_h * scale) / 2.0
    return LetterboxParams(scale=scale, pad_x=pad_x, pad_y=pad_y)


def _round_half_away(values: np.ndarray) -> np.ndarray:
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


def crop_to_canvas(points: KeypointSet, crop: CropDescriptor) -> KeypointSet:
    """Map crop pixels back onto the letterboxed canvas."""
    points.expect(CoordinateSpace.CROP)
    half = crop.crop_size / 2.0
    center = np.asarray(crop.scaled_center, dtype=np.float64)
    xy = (points.xy - half + center) / crop.scale
    return KeypointSet(xy, CoordinateSpace.CANVAS)


def canvas_to_crop(points: KeypointSet, crop: CropDescriptor) -> KeypointSet:
    """Map canvas pixels into the crop (inverse of crop_to_canvas)."""
    points.expect(CoordinateSpace.CANVAS)
    half = crop.crop_size / 2.0
    center = np.asarray(crop.scaled_center, dtype=np.float64)
    xy = points.xy * crop.scale + half - center
    return KeypointSet(xy, CoordinateSpace.CROP)


def canvas_to_original(points: KeypointSet, canvas_size: Size, original_size: Size) -> KeypointSet:
    """Undo the letterbox resize: canvas pixels -> source image pixels."""
    points.expect(CoordinateSpace.CANVAS)
    params = letterbox_params(original_size, canvas_size)
    xy = (points.xy - np.asarray(params.offset)) / params.scale
    return KeypointSet(xy, CoordinateSpace.ORIGINAL)


def original_to_canvas(points: KeypointSet, original_size: Size, canvas_size: Size) -> KeypointSet:
    """Apply the letterbox resize: source image pixels -> canvas pixels."""
    points.expect(CoordinateSpace.ORIGINAL)
    params = letterbox_params(original_size, canvas_size)
    xy = points.xy * params.scale + np.asarray(params.offset)
    return KeypointSet(xy, CoordinateSpace.CANVAS)


def original_to_viewport(points: KeypointSet, original_size: Size, viewport_size: Size) -> KeypointSet:
    """
    Fit source image pixels into a display viewport.

    The image is scaled to fit and centered like an aspect-fit view; the
    result is rounded to whole pixels.
    """
    points.expect(CoordinateSpace.ORIGINAL)
    params = letterbox_params(original_size, viewport_size)
    xy = points.xy * params.scale + np.asarray(params.offset)
    return KeypointSet(_round_half_away(xy), CoordinateSpace.VIEWPORT)


def viewport_to_original(points: KeypointSet, viewport_size: Size, original_size: Size) -> KeypointSet:
    """Map viewport pixels (e.g. a tap) back onto the source image."""
    points.expect(CoordinateSpace.VIEWPORT)
    params = letterbox_params(original_size, viewport_size)
    xy = (points.xy - np.asarray(params.offset)) / params.scale
    return KeypointSet(xy, CoordinateSpace.ORIGINAL)


__all__ = [
    "LetterboxParams",
    "letterbox_params",
    "crop_to_canvas",
    "canvas_to_crop",
    "canvas_to_original",
    "original_to_canvas",
    "original_to_viewport",
    "viewport_to_original",
]

"""
Pipeline stages.
"""

from .resizer import LetterboxResizer
from .segmentation import SegmentationPostProcessor
from .cropper import HandCropExtractor
from .keypoints import KeypointDetector
from .gesture_encoder import GestureFeatureEncoder
from .transforms import (
    LetterboxParams,
    letterbox_params,
    crop_to_canvas,
    canvas_to_crop,
    canvas_to_original,
    original_to_canvas,
    original_to_viewport,
    viewport_to_original,
)

__all__ = [
    "LetterboxResizer",
    "SegmentationPostProcessor",
    "HandCropExtractor",
    "KeypointDetector",
    "GestureFeatureEncoder",
    "LetterboxParams",
    "letterbox_params",
    "crop_to_canvas",
    "canvas_to_crop",
    "canvas_to_original",
    "original_to_canvas",
    "original_to_viewport",
    "viewport_to_original",
]

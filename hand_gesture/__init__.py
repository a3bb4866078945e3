"""
Hand Gesture Package
Single-shot hand gesture recognition: hand mask, crop, joint keypoints and
gesture label from one photo, with keypoints mapped back to the photo.
"""

from .compute import ComputeContext
from .config import PipelineConfig
from .exceptions import (
    HandGestureError,
    InvalidInputError,
    ComputeUnavailableError,
    NoHandDetectedError,
    NetworkInferenceError,
    CoordinateSpaceError,
)
from .pipeline import HandGesturePipeline, PredictionResult
from .types import CoordinateSpace, CropDescriptor, HandJoint, KeypointSet

__version__ = "1.0.0"
__all__ = [
    "HandGesturePipeline",
    "PredictionResult",
    "PipelineConfig",
    "ComputeContext",
    "CoordinateSpace",
    "CropDescriptor",
    "HandJoint",
    "KeypointSet",
    "HandGestureError",
    "InvalidInputError",
    "ComputeUnavailableError",
    "NoHandDetectedError",
    "NetworkInferenceError",
    "CoordinateSpaceError",
]

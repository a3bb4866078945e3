"""
Custom exceptions for the hand gesture pipeline.
"""


class HandGestureError(Exception):
    """Base exception for hand gesture pipeline errors."""
    pass


class InvalidInputError(HandGestureError):
    """Raised when a source image or score map is malformed or empty."""
    pass


class ComputeUnavailableError(HandGestureError):
    """Raised when the compute context cannot be used or a kernel dispatch fails."""
    pass


class NoHandDetectedError(HandGestureError):
    """Raised when the hand mask is empty after post-processing."""
    pass


class NetworkInferenceError(HandGestureError):
    """Raised when one of the external networks fails or returns a bad shape."""
    pass


class CoordinateSpaceError(HandGestureError, ValueError):
    """Raised when keypoints from one coordinate space are fed to a transform for another."""
    pass

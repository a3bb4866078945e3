"""
Single-shot hand gesture pipeline.

Resize -> Segment -> mask & crop box -> crop -> pose -> keypoints ->
gesture -> keypoints back to original / viewport space.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from .compute import ComputeContext
from .config import PipelineConfig
from .exceptions import (
    ComputeUnavailableError,
    HandGestureError,
    InvalidInputError,
    NetworkInferenceError,
)
from .types import CropDescriptor, KeypointSet
from .utils import validate_image, image_size
from .components.resizer import LetterboxResizer
from .components.segmentation import SegmentationPostProcessor
from .components.cropper import HandCropExtractor
from .components.keypoints import KeypointDetector
from .components.gesture_encoder import GestureFeatureEncoder
from .components.transforms import crop_to_canvas, canvas_to_original, original_to_viewport
from .visualization import scoremap_to_image, mask_to_image, restore_aspect_ratio


@dataclass
class PredictionResult:
    """Everything one invocation produces."""

    gesture_label: str
    keypoints: KeypointSet                       # original image space
    crop_keypoints: KeypointSet
    canvas_keypoints: KeypointSet
    viewport_keypoints: Optional[KeypointSet]
    crop: CropDescriptor
    hand_mask: np.ndarray                        # float32 {0, 1}, canvas space
    hand_mask_image: np.ndarray                  # uint8, original aspect
    fg_scoremap_image: np.ndarray                # uint8, original aspect
    timings: Dict[str, float] = field(default_factory=dict)


class HandGesturePipeline:
    """
    Hand gesture recognition from a single image.

    The three networks are plain callables (see hand_gesture.networks for
    the contracts). The compute context is an explicit resource: pass one in
    to share it, or let the pipeline create and own its own.

    Usage:
        with HandGesturePipeline(segnet, posenet, gesturenet) as pipeline:
            result = pipeline.prediction(image, viewport_size=(640, 480))
            print(result.gesture_label)
    """

    def __init__(
        self,
        segmentation_network: Callable[[np.ndarray], Tuple[np.ndarray, np.ndarray]],
        pose_network: Callable[[np.ndarray], np.ndarray],
        gesture_network: Callable[[np.ndarray], str],
        config: Optional[PipelineConfig] = None,
        context: Optional[ComputeContext] = None
    ):
        """
        Initialize pipeline.

        Args:
            segmentation_network: canvas -> (background, foreground) score maps
            pose_network: crop -> joint heatmaps (C, H, W)
            gesture_network: feature vector -> label
            config: PipelineConfig object (uses defaults if None)
            context: Compute context sized for the canvas (created if None)

        Raises:
            ComputeUnavailableError: If the context cannot be created or does not fit the canvas
        """
        self.config = config or PipelineConfig()
        self.segmentation_network = segmentation_network
        self.pose_network = pose_network
        self.gesture_network = gesture_network

        self._owns_context = context is None
        self.context = context or ComputeContext.from_config(self.config)
        if self.context.shape != self.config.canvas_shape:
            raise ComputeUnavailableError(
                f"Compute context shape {self.context.shape} does not match "
                f"canvas shape {self.config.canvas_shape}"
            )

        self._init_components()

    def _init_components(self):
        """Initialize the pipeline stages from the config."""
        cfg = self.config

        self.resizer = LetterboxResizer(
            canvas_size=cfg.canvas_size,
            interpolation=cfg.interpolation,
            debug_mode=cfg.verbose
        )

        self.segmentation = SegmentationPostProcessor(
            context=self.context,
            dilation_iterations=cfg.dilation_iterations,
            dilation_kernel_size=cfg.dilation_kernel_size,
            debug_mode=cfg.verbose
        )

        self.cropper = HandCropExtractor(
            crop_size=cfg.crop_size,
            padding=cfg.crop_padding,
            min_scale=cfg.min_crop_scale,
            max_scale=cfg.max_crop_scale,
            mask_rows_inverted=cfg.mask_rows_inverted,
            no_hand_policy=cfg.no_hand_policy,
            interpolation=cfg.interpolation,
            debug_mode=cfg.verbose
        )

        self.keypoint_detector = KeypointDetector(num_keypoints=cfg.num_keypoints)
        self.feature_encoder = GestureFeatureEncoder(crop_size=cfg.crop_size)

    def _timed(self, timings: Dict[str, float], name: str, start: float) -> None:
        elapsed = time.perf_counter() - start
        timings[name] = elapsed
        if self.config.verbose:
            print(f"{name} - {elapsed:.4f}s")

    @staticmethod
    def _call_network(name: str, network: Callable, *args):
        """Run a collaborator network; any failure aborts the invocation."""
        try:
            return network(*args)
        except HandGestureError:
            raise
        except Exception as e:
            raise NetworkInferenceError(f"{name} failed: {e}") from e

    def _segment(self, canvas: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        output = self._call_network("Segmentation network", self.segmentation_network, canvas)
        try:
            background, foreground = output
        except (TypeError, ValueError) as e:
            raise NetworkInferenceError(
                "Segmentation network must return a (background, foreground) pair"
            ) from e
        for name, score_map in (("background", background), ("foreground", foreground)):
            if not isinstance(score_map, np.ndarray) or np.squeeze(score_map).shape != self.config.canvas_shape:
                shape = getattr(score_map, "shape", None)
                raise NetworkInferenceError(
                    f"Segmentation {name} map has shape {shape}, expected {self.config.canvas_shape}"
                )
        return background, foreground

    def _detect_keypoints(self, crop_image: np.ndarray) -> KeypointSet:
        heatmaps = self._call_network("Pose network", self.pose_network, crop_image)
        try:
            return self.keypoint_detector.detect(np.asarray(heatmaps))
        except InvalidInputError as e:
            raise NetworkInferenceError(f"Pose network output rejected: {e}") from e

    def _classify(self, crop_keypoints: KeypointSet) -> str:
        features = self.feature_encoder.encode(crop_keypoints)
        label = self._call_network("Gesture network", self.gesture_network, features)
        if label is None:
            raise NetworkInferenceError("Gesture network returned no label")
        return str(label)

    def prediction(
        self,
        image: np.ndarray,
        viewport_size: Optional[Tuple[int, int]] = None
    ) -> PredictionResult:
        """
        Run one full invocation.

        The compute context session is held for the whole invocation, so
        concurrent callers sharing a context run one after another.

        Args:
            image: Source image (H, W, 3) in the colour order the networks expect
            viewport_size: Optional display (width, height) for viewport keypoints

        Returns:
            PredictionResult

        Raises:
            InvalidInputError: Malformed or zero-size source image
            ComputeUnavailableError: Compute context unusable or a kernel failed
            NoHandDetectedError: Empty hand mask (with no_hand_policy="raise")
            NetworkInferenceError: A network call failed or returned a bad shape
        """
        timings: Dict[str, float] = {}
        total_start = time.perf_counter()

        validate_image(image)
        original_size = image_size(image)

        with self.context.session():
            start = time.perf_counter()
            canvas = self.resizer.resize(image)
            self._timed(timings, "Resize", start)

            start = time.perf_counter()
            background, foreground = self._segment(canvas)
            self._timed(timings, "HandSegNet", start)

            start = time.perf_counter()
            hand_mask = self.segmentation.process(background, foreground)
            self._timed(timings, "Compute pass", start)

            start = time.perf_counter()
            crop_image, crop = self.cropper.process(hand_mask, canvas)
            self._timed(timings, "Cropping", start)

            start = time.perf_counter()
            crop_keypoints = self._detect_keypoints(crop_image)
            self._timed(timings, "PoseNet", start)

            start = time.perf_counter()
            gesture_label = self._classify(crop_keypoints)
            self._timed(timings, "GestureNet", start)

            canvas_keypoints = crop_to_canvas(crop_keypoints, crop)
            keypoints = canvas_to_original(canvas_keypoints, self.config.canvas_size, original_size)
            viewport_keypoints = None
            if viewport_size is not None:
                viewport_keypoints = original_to_viewport(keypoints, original_size, viewport_size)

            fg_scoremap_image = restore_aspect_ratio(scoremap_to_image(foreground), original_size)
            hand_mask_image = restore_aspect_ratio(mask_to_image(hand_mask), original_size)

            self._timed(timings, "Total", total_start)

        return PredictionResult(
            gesture_label=gesture_label,
            keypoints=keypoints,
            crop_keypoints=crop_keypoints,
            canvas_keypoints=canvas_keypoints,
            viewport_keypoints=viewport_keypoints,
            crop=crop,
            hand_mask=hand_mask,
            hand_mask_image=hand_mask_image,
            fg_scoremap_image=fg_scoremap_image,
            timings=timings
        )

    def close(self) -> None:
        """Release the compute context if this pipeline created it."""
        if self._owns_context:
            self.context.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

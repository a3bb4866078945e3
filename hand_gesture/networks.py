"""
Adapters for the three external networks.

The pipeline only relies on the call contracts below; the Keras classes
load trained model files and satisfy them.

    SegmentationNetwork(canvas RGB (H, W, 3))  -> (background, foreground) (H, W) each
    PoseNetwork(crop RGB (S, S, 3))            -> heatmaps (21, S, S)
    GestureNetwork(features (42,))             -> class label
"""

import os
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import numpy as np

os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")
from tensorflow.keras.models import load_model


DEFAULT_CLASS_NAMES = ['five', 'four', 'one', 'three', 'two', 'zero']


class SegmentationNetwork(ABC):
    """Contract: canvas image -> (background, foreground) score maps."""

    @abstractmethod
    def __call__(self, image: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        ...


class PoseNetwork(ABC):
    """Contract: hand crop -> per-joint heatmaps (C, H, W)."""

    @abstractmethod
    def __call__(self, crop: np.ndarray) -> np.ndarray:
        ...


class GestureNetwork(ABC):
    """Contract: keypoint feature vector -> class label."""

    @abstractmethod
    def __call__(self, features: np.ndarray) -> str:
        ...


class _KerasImageModel:
    """Shared loading and input normalization for the image networks."""

    def __init__(self, model_path: str, input_scale: float = 1.0 / 255.0, input_offset: float = -0.5):
        """
        Args:
            model_path: Path to a saved Keras model
            input_scale: Multiplier applied to uint8 pixels
            input_offset: Added after scaling (-0.5 centres pixels around zero)
        """
        self.model = load_model(model_path)
        self.input_scale = input_scale
        self.input_offset = input_offset

    def _predict(self, image: np.ndarray) -> np.ndarray:
        x = image[:, :, :3].astype(np.float32) * self.input_scale + self.input_offset
        x = np.expand_dims(x, axis=0)
        return np.asarray(self.model.predict(x, verbose=0)[0])

    def get_model_info(self) -> dict:
        return {
            "input_shape": self.model.input_shape,
            "output_shape": self.model.output_shape,
        }


class KerasSegmentationNetwork(_KerasImageModel, SegmentationNetwork):
    """
    Hand segmentation model with a 2-channel (background, foreground) output.

    Usage:
        segnet = KerasSegmentationNetwork("handsegnet.keras")
        background, foreground = segnet(canvas)
    """

    def __call__(self, image: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        scores = self._predict(image)
        return scores[:, :, 0], scores[:, :, 1]


class KerasPoseNetwork(_KerasImageModel, PoseNetwork):
    """Pose model with a channels-last (S, S, 21) heatmap output."""

    def __call__(self, crop: np.ndarray) -> np.ndarray:
        heatmaps = self._predict(crop)
        return np.moveaxis(heatmaps, -1, 0)


class KerasGestureNetwork(GestureNetwork):
    """
    Gesture classifier over the 42-value keypoint encoding.

    Usage:
        gesturenet = KerasGestureNetwork("gesturenet.keras")
        label = gesturenet(features)
    """

    def __init__(self, model_path: str, class_names: Optional[List[str]] = None):
        """
        Args:
            model_path: Path to trained Keras model
            class_names: Labels in model output order
                (default: ['five', 'four', 'one', 'three', 'two', 'zero'])
        """
        self.model = load_model(model_path)
        self.class_names = class_names or list(DEFAULT_CLASS_NAMES)

    def predict_confidences(self, features: np.ndarray) -> dict:
        """Confidence for every class."""
        predictions = self.model.predict(np.expand_dims(features, axis=0), verbose=0)[0]
        return {name: float(conf) for name, conf in zip(self.class_names, predictions)}

    def __call__(self, features: np.ndarray) -> str:
        predictions = self.model.predict(np.expand_dims(features, axis=0), verbose=0)[0]
        class_idx = int(np.argmax(predictions))
        return self.class_names[class_idx]

    def get_model_info(self) -> dict:
        return {
            "input_shape": self.model.input_shape,
            "output_shape": self.model.output_shape,
            "num_classes": len(self.class_names),
            "class_names": self.class_names
        }

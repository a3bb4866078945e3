"""Shared fixtures: synthetic score maps and fake networks."""

import numpy as np
import pytest

from hand_gesture.compute import ComputeContext

CANVAS_SHAPE = (240, 320)
BLOB = (slice(90, 150), slice(130, 190))  # rows, cols -> bbox (130, 90, 189, 149)


def blob_score_maps(rows=BLOB[0], cols=BLOB[1], inside=1.0, outside=0.0):
    """Background all zero, foreground ``inside`` on the blob and ``outside`` elsewhere."""
    background = np.zeros(CANVAS_SHAPE, dtype=np.float32)
    foreground = np.full(CANVAS_SHAPE, outside, dtype=np.float32)
    foreground[rows, cols] = inside
    return background, foreground


class FakeSegmentationNetwork:
    def __init__(self, background, foreground):
        self.background = background
        self.foreground = foreground
        self.inputs = []

    def __call__(self, image):
        self.inputs.append(image)
        return self.background, self.foreground


class FakePoseNetwork:
    """Emits one peak per joint at the given crop positions."""

    def __init__(self, peaks=None, size=256, channels=21):
        self.peaks = peaks or [(128, 128)] * channels
        self.size = size
        self.channels = channels
        self.inputs = []

    def __call__(self, crop):
        self.inputs.append(crop)
        heatmaps = np.zeros((self.channels, self.size, self.size), dtype=np.float32)
        for joint, (x, y) in enumerate(self.peaks):
            heatmaps[joint, y, x] = 1.0
        return heatmaps


class FakeGestureNetwork:
    def __init__(self, label="five"):
        self.label = label
        self.inputs = []

    def __call__(self, features):
        self.inputs.append(features)
        return self.label


@pytest.fixture
def context():
    ctx = ComputeContext(shape=CANVAS_SHAPE)
    yield ctx
    ctx.close()


@pytest.fixture
def blob_maps():
    return blob_score_maps()

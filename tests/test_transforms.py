"""Tests for coordinate transforms between the four image spaces."""

import numpy as np
import pytest

from hand_gesture.components.cropper import HandCropExtractor
from hand_gesture.components.transforms import (
    letterbox_params,
    crop_to_canvas,
    canvas_to_crop,
    canvas_to_original,
    original_to_canvas,
    original_to_viewport,
    viewport_to_original,
)
from hand_gesture.exceptions import CoordinateSpaceError, InvalidInputError
from hand_gesture.types import CoordinateSpace, CropDescriptor, KeypointSet

CANVAS = (320, 240)


def _crop(scaled_center=(200.0, 150.0), scale=2.0, size=256):
    return CropDescriptor(
        bbox=(0, 0, 0, 0),
        center=(scaled_center[0] / scale, scaled_center[1] / scale),
        scale=scale,
        scaled_center=scaled_center,
        flipped_center=scaled_center,
        crop_rect=(scaled_center[0] - size / 2, scaled_center[1] - size / 2, size),
    )


class TestLetterboxParams:
    """Tests for letterbox_params."""

    def test_same_aspect(self):
        params = letterbox_params((640, 480), CANVAS)
        assert params.scale == pytest.approx(0.5)
        assert params.offset == (0.0, 0.0)

    def test_tall_source_is_height_constrained(self):
        params = letterbox_params((100, 400), CANVAS)
        assert params.scale == pytest.approx(0.6)
        assert params.pad_x == pytest.approx(130.0)
        assert params.pad_y == 0.0

    def test_wide_source_is_width_constrained(self):
        params = letterbox_params((800, 100), CANVAS)
        assert params.scale == pytest.approx(0.4)
        assert params.pad_x == 0.0
        assert params.pad_y == pytest.approx(100.0)

    def test_zero_size(self):
        with pytest.raises(InvalidInputError):
            letterbox_params((0, 10), CANVAS)


class TestCropCanvas:
    """Tests for crop <-> canvas."""

    def test_crop_center_maps_to_scaled_center(self):
        points = KeypointSet([(128, 128)], CoordinateSpace.CROP)
        canvas = crop_to_canvas(points, _crop())
        assert canvas.space is CoordinateSpace.CANVAS
        assert canvas[0] == pytest.approx((100.0, 75.0))

    def test_formula(self):
        points = KeypointSet([(0, 256), (10, 20)], CoordinateSpace.CROP)
        canvas = crop_to_canvas(points, _crop())
        assert canvas[0] == pytest.approx(((0 - 128 + 200) / 2, (256 - 128 + 150) / 2))
        assert canvas[1] == pytest.approx(((10 - 128 + 200) / 2, (20 - 128 + 150) / 2))

    def test_inverse(self):
        points = KeypointSet([(3.5, 250.25), (128, 0)], CoordinateSpace.CROP)
        crop = _crop(scaled_center=(417.0, 301.0), scale=3.47)
        back = canvas_to_crop(crop_to_canvas(points, crop), crop)
        assert np.allclose(back.xy, points.xy)


class TestCanvasOriginalViewport:
    """Tests for canvas <-> original and original -> viewport."""

    @pytest.mark.parametrize("original_size", [(640, 480), (100, 400), (1920, 1080), (333, 777)])
    def test_canvas_original_inverse(self, original_size):
        points = KeypointSet([(0, 0), (12.5, 99.25), (319, 239)], CoordinateSpace.CANVAS)
        original = canvas_to_original(points, CANVAS, original_size)
        assert original.space is CoordinateSpace.ORIGINAL
        back = original_to_canvas(original, original_size, CANVAS)
        assert np.allclose(back.xy, points.xy)

    def test_canvas_to_original_removes_padding(self):
        # 100 x 400 source: scale 0.6, pad_x 130
        points = KeypointSet([(130, 0), (190, 240)], CoordinateSpace.CANVAS)
        original = canvas_to_original(points, CANVAS, (100, 400))
        assert np.allclose(original.xy, [(0, 0), (100, 400)])

    def test_viewport_rounds_to_whole_pixels(self):
        points = KeypointSet([(2.5, 3.5), (0.25, 0.75), (10.49, 10.51)], CoordinateSpace.ORIGINAL)
        viewport = original_to_viewport(points, (100, 100), (100, 100))
        assert viewport.space is CoordinateSpace.VIEWPORT
        assert viewport.to_list() == [(3.0, 4.0), (0.0, 1.0), (10.0, 11.0)]

    def test_viewport_fit_and_center(self):
        # 200 x 100 image into 400 x 400 viewport: scale 2, pad_y 100
        points = KeypointSet([(0, 0), (200, 100)], CoordinateSpace.ORIGINAL)
        viewport = original_to_viewport(points, (200, 100), (400, 400))
        assert viewport.to_list() == [(0.0, 100.0), (400.0, 300.0)]

    def test_viewport_inverse(self):
        points = KeypointSet([(0.0, 100.0), (400.0, 300.0)], CoordinateSpace.VIEWPORT)
        original = viewport_to_original(points, (400, 400), (200, 100))
        assert np.allclose(original.xy, [(0, 0), (200, 100)])


class TestRoundTrip:
    """Forward resize/crop then the inverse chain returns to the source point."""

    @pytest.mark.parametrize("original_size", [(640, 480), (1000, 500), (300, 900)])
    def test_full_chain(self, original_size):
        cropper = HandCropExtractor()
        crop = cropper.describe((100, 80, 180, 150), 240)
        source = KeypointSet([(123.4, 56.7), (0.0, 0.0), (original_size[0] / 2, original_size[1] / 3)],
                             CoordinateSpace.ORIGINAL)

        in_crop = canvas_to_crop(original_to_canvas(source, original_size, CANVAS), crop)
        back = canvas_to_original(crop_to_canvas(in_crop, crop), CANVAS, original_size)
        assert np.allclose(back.xy, source.xy)

        viewport_size = (750, 1334)
        viewport = original_to_viewport(back, original_size, viewport_size)
        expected = original_to_viewport(source, original_size, viewport_size)
        assert np.array_equal(viewport.xy, np.round(viewport.xy))
        # Only the final rounding step may differ
        assert np.abs(viewport.xy - expected.xy).max() <= 1.0
        assert np.allclose(viewport_to_original(viewport, viewport_size, original_size).xy,
                           source.xy, atol=1.0)


class TestCoordinateSpaceChecks:
    """Transforms refuse keypoints from the wrong space."""

    @pytest.mark.parametrize("transform, args, space", [
        (crop_to_canvas, (_crop(),), CoordinateSpace.CANVAS),
        (canvas_to_crop, (_crop(),), CoordinateSpace.CROP),
        (canvas_to_original, (CANVAS, (640, 480)), CoordinateSpace.ORIGINAL),
        (original_to_viewport, ((640, 480), (100, 100)), CoordinateSpace.CROP),
        (viewport_to_original, ((100, 100), (640, 480)), CoordinateSpace.ORIGINAL),
    ])
    def test_wrong_space(self, transform, args, space):
        points = KeypointSet([(1, 2)], space)
        with pytest.raises(CoordinateSpaceError):
            transform(points, *args)

    def test_error_is_value_error(self):
        points = KeypointSet([(1, 2)], CoordinateSpace.VIEWPORT)
        with pytest.raises(ValueError):
            crop_to_canvas(points, _crop())


class TestKeypointSet:
    """Tests for the tagged keypoint container."""

    def test_is_read_only(self):
        points = KeypointSet([(1, 2)], CoordinateSpace.CROP)
        with pytest.raises(ValueError):
            points.xy[0, 0] = 5

    def test_copies_input(self):
        raw = np.array([[1.0, 2.0]])
        points = KeypointSet(raw, CoordinateSpace.CROP)
        raw[0, 0] = 99
        assert points[0] == (1.0, 2.0)

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            KeypointSet([1, 2, 3], CoordinateSpace.CROP)

    def test_equality_includes_space(self):
        a = KeypointSet([(1, 2)], CoordinateSpace.CROP)
        b = KeypointSet([(1, 2)], CoordinateSpace.CANVAS)
        assert a != b
        assert a == KeypointSet([(1, 2)], CoordinateSpace.CROP)

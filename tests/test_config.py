"""Tests for PipelineConfig validation."""

import pytest

from hand_gesture.config import PipelineConfig


class TestPipelineConfig:
    """Tests for defaults and __post_init__ validation."""

    def test_defaults(self):
        config = PipelineConfig()
        assert config.canvas_size == (320, 240)
        assert config.canvas_shape == (240, 320)
        assert config.crop_size == 256
        assert config.dilation_iterations == 32
        assert config.dilation_kernel_size == 21
        assert config.no_hand_policy == "raise"

    def test_to_dict(self):
        data = PipelineConfig(verbose=True).to_dict()
        assert data["verbose"] is True
        assert data["crop_padding"] == 1.25

    @pytest.mark.parametrize("kwargs", [
        {"canvas_size": (0, 240)},
        {"canvas_size": (320,)},
        {"crop_size": 0},
        {"crop_padding": 0.0},
        {"min_crop_scale": 0.0},
        {"min_crop_scale": 6.0, "max_crop_scale": 5.0},
        {"dilation_iterations": -1},
        {"dilation_kernel_size": 20},
        {"dilation_kernel_size": 0},
        {"num_keypoints": 0},
        {"no_hand_policy": "ignore"},
        {"num_workers": 0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            PipelineConfig(**kwargs)

    def test_zero_iterations_allowed(self):
        assert PipelineConfig(dilation_iterations=0).dilation_iterations == 0

"""Tests del preprocesado de frames."""

import numpy as np
import pytest

from avatar_emotion.emotion.preprocessing import (
    NormalizationParams,
    frame_to_tensor,
    preprocess,
    resize_frame,
    to_unit_rgb,
)
from avatar_emotion.exceptions import InvalidInputError


def test_output_shape_and_dtype(rgb_frame):
    tensor = preprocess(rgb_frame)
    assert tensor.shape == (1, 224, 224, 3)
    assert tensor.dtype == np.float32


def test_custom_target_size_is_width_height(rgb_frame):
    tensor = preprocess(rgb_frame, target_size=(320, 160))
    assert tensor.shape == (1, 160, 320, 3)


def test_uniform_frame_equal_to_mean_gives_zeros():
    color = (0.25, 0.5, 0.75)
    frame = np.empty((100, 120, 3), dtype=np.float32)
    frame[:] = color
    tensor = preprocess(frame, normalization=NormalizationParams(mean=color, std=(0.4, 0.4, 0.4)))
    assert np.allclose(tensor, 0.0, atol=1e-5)


def test_standardization_per_channel():
    frame = np.full((224, 224, 3), 255, dtype=np.uint8)
    tensor = preprocess(frame)
    expected = (1.0 - np.array([0.285, 0.256, 0.206])) / 0.4
    assert np.allclose(tensor[0, 0, 0], expected, atol=1e-5)


def test_tensor_is_read_only(rgb_frame):
    tensor = preprocess(rgb_frame)
    with pytest.raises(ValueError):
        tensor[0, 0, 0, 0] = 1.0


def test_input_frame_is_not_modified(rgb_frame):
    original = rgb_frame.copy()
    preprocess(rgb_frame)
    assert np.array_equal(rgb_frame, original)


def test_resize_is_noop_at_target_size():
    frame = np.random.default_rng(0).random((224, 224, 3)).astype(np.float32)
    resized = resize_frame(frame, (224, 224))
    assert np.array_equal(resized, frame)
    assert resized is not frame


@pytest.mark.parametrize("frame", [
    None,
    np.zeros((0, 0, 3), dtype=np.uint8),
    np.zeros((10, 10, 2), dtype=np.uint8),
    np.zeros((10, 10, 3), dtype=bool),
    [[1, 2, 3]],
])
def test_invalid_frames_raise(frame):
    with pytest.raises(InvalidInputError):
        preprocess(frame)


def test_non_finite_values_raise():
    frame = np.zeros((10, 10, 3), dtype=np.float32)
    frame[0, 0, 0] = np.nan
    with pytest.raises(InvalidInputError):
        to_unit_rgb(frame)


def test_grayscale_and_rgba_are_converted():
    gray = np.full((20, 20), 255, dtype=np.uint8)
    rgba = np.full((20, 20, 4), 255, dtype=np.uint8)
    assert to_unit_rgb(gray).shape == (20, 20, 3)
    assert to_unit_rgb(rgba).shape == (20, 20, 3)
    assert np.allclose(to_unit_rgb(gray), 1.0)


def test_uint16_is_scaled_by_dtype_max():
    frame = np.full((4, 4, 3), 65535, dtype=np.uint16)
    assert np.allclose(to_unit_rgb(frame), 1.0)


def test_zero_std_is_rejected():
    with pytest.raises(ValueError):
        NormalizationParams(std=(0.4, 0.0, 0.4))


def test_normalization_requires_three_channels():
    with pytest.raises(ValueError):
        NormalizationParams(mean=(0.1, 0.2))


def test_frame_to_tensor_pixel_ranges():
    frame = np.full((64, 64, 3), 255, dtype=np.uint8)
    unit = frame_to_tensor(frame, (256, 256))
    raw = frame_to_tensor(frame, (256, 256), normalize_pixels=False)
    assert unit.shape == (1, 256, 256, 3)
    assert np.allclose(unit, 1.0)
    assert np.allclose(raw, 255.0)


def test_uniform_frame_at_target_size_with_unit_std_gives_zeros():
    color = (0.2, 0.4, 0.6)
    frame = np.empty((224, 224, 3), dtype=np.float32)
    frame[:] = color
    tensor = preprocess(frame, (224, 224), NormalizationParams(mean=color, std=(1.0, 1.0, 1.0)))
    assert tensor.shape == (1, 224, 224, 3)
    assert np.allclose(tensor, 0.0, atol=1e-6)

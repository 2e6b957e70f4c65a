"""Tests del buffer de frames recientes."""

import numpy as np
import pytest

from avatar_emotion.pipeline import FrameBuffer


def _frames(n):
    return [np.full((2, 2, 3), i, dtype=np.uint8) for i in range(n)]


def test_keeps_frames_in_order():
    buffer = FrameBuffer(capacity=10, evict_batch=5)
    frames = _frames(3)
    for frame in frames:
        buffer.append(frame)
    assert len(buffer) == 3
    assert all(a is b for a, b in zip(buffer.snapshot(), frames))
    assert buffer.latest() is frames[-1]


def test_batch_eviction_when_full():
    buffer = FrameBuffer(capacity=10, evict_batch=5)
    frames = _frames(11)
    for frame in frames:
        buffer.append(frame)

    assert len(buffer) == 6
    assert [int(f[0, 0, 0]) for f in buffer.snapshot()] == [5, 6, 7, 8, 9, 10]


def test_never_exceeds_capacity():
    buffer = FrameBuffer(capacity=10, evict_batch=5)
    for frame in _frames(50):
        buffer.append(frame)
        assert len(buffer) <= 10


def test_clear_and_empty_latest():
    buffer = FrameBuffer()
    assert buffer.latest() is None
    buffer.append(_frames(1)[0])
    buffer.clear()
    assert len(buffer) == 0


@pytest.mark.parametrize("capacity,evict_batch", [(0, 1), (5, 0), (5, 6)])
def test_invalid_parameters(capacity, evict_batch):
    with pytest.raises(ValueError):
        FrameBuffer(capacity, evict_batch)

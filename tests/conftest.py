"""
Test Configuration
==================

Pytest fixtures and test configuration for VideoUpscaler.
"""

import cv2
import numpy as np
import pytest


def uniform_buffer(width, height, rgba):
    """Flat RGBA buffer where every pixel equals rgba."""
    return np.tile(np.array(rgba, dtype=np.uint8), width * height)


def write_test_video(path, width=16, height=8, frames=3, fps=10.0, fourcc="MJPG"):
    """Encode a short video of uniform grey frames with OpenCV."""
    writer = cv2.VideoWriter(
        str(path),
        cv2.VideoWriter_fourcc(*fourcc),
        fps,
        (width, height),
    )
    assert writer.isOpened(), "test video writer failed to open"
    for i in range(frames):
        writer.write(np.full((height, width, 3), 40 + 60 * i, dtype=np.uint8))
    writer.release()
    return path


@pytest.fixture
def red_2x2():
    """2x2 buffer of pure opaque red."""
    return uniform_buffer(2, 2, [255, 0, 0, 255])


@pytest.fixture
def random_buffer():
    """Factory for reproducible random RGBA buffers."""
    rng = np.random.default_rng(seed=1234)

    def _make(width, height):
        return rng.integers(0, 256, size=width * height * 4, dtype=np.uint8)

    return _make


@pytest.fixture
def three_frames():
    """Three distinct uniform 2x2 frames (red, green, blue)."""
    return [
        uniform_buffer(2, 2, [200, 10, 10, 255]),
        uniform_buffer(2, 2, [10, 200, 10, 255]),
        uniform_buffer(2, 2, [10, 10, 200, 255]),
    ]


@pytest.fixture
def sample_video(tmp_path):
    """Path of a 3-frame 16x8 MJPG video at 10 fps."""
    return write_test_video(tmp_path / "sample.avi")

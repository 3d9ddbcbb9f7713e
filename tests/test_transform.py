"""
Transform Tests
===============

Bilinear resampler and sharpening filter.
"""

import numpy as np
import pytest

from conftest import uniform_buffer
from video_upscaler.errors import FrameFormatError, InvalidDimensions
from video_upscaler.transform import resample_bilinear, sharpen, upscale


def red_channel(buffer):
    return buffer.reshape(-1, 4)[:, 0].tolist()


class TestResampler:
    """Tests for resample_bilinear."""

    @pytest.mark.parametrize(
        "src_size, dst_size",
        [
            ((2, 2), (4, 4)),
            ((3, 5), (9, 15)),
            ((7, 4), (28, 16)),
            ((5, 4), (2, 3)),
            ((1, 1), (3, 2)),
        ],
    )
    def test_output_length_and_range(self, random_buffer, src_size, dst_size):
        """Output has dst_w * dst_h * 4 uint8 samples."""
        src = random_buffer(*src_size)
        out = resample_bilinear(src, *src_size, *dst_size)

        assert out.dtype == np.uint8
        assert out.ndim == 1
        assert out.size == dst_size[0] * dst_size[1] * 4
        assert out.min() >= 0 and out.max() <= 255

    def test_identity(self, random_buffer):
        """Same-size resampling reproduces the input."""
        src = random_buffer(6, 5)
        out = resample_bilinear(src, 6, 5, 6, 5)

        diff = np.abs(out.astype(int) - src.astype(int))
        assert diff.max() <= 1

    def test_does_not_modify_source(self, random_buffer):
        src = random_buffer(3, 3)
        before = src.copy()
        resample_bilinear(src, 3, 3, 6, 6)
        np.testing.assert_array_equal(src, before)

    def test_uniform_red_stays_red(self, red_2x2):
        """2x2 pure red at x2 is a 4x4 pure red buffer."""
        out = upscale(red_2x2, 2, 2, 2)

        assert out.size == 4 * 4 * 4
        np.testing.assert_array_equal(out, uniform_buffer(4, 4, [255, 0, 0, 255]))

    def test_interpolates_between_columns(self):
        """x = j * sw / dw with the last column clamped."""
        src = np.array([0, 0, 0, 255, 100, 0, 0, 255], dtype=np.uint8)
        out = resample_bilinear(src, 2, 1, 4, 1)

        assert red_channel(out) == [0, 50, 100, 100]

    def test_interpolates_between_rows(self):
        src = np.array([0, 0, 0, 255, 200, 0, 0, 255], dtype=np.uint8)
        out = resample_bilinear(src, 1, 2, 1, 4)

        assert red_channel(out) == [0, 100, 200, 200]

    def test_rounds_half_up(self):
        src = np.array([0, 0, 0, 0, 1, 0, 0, 0], dtype=np.uint8)
        out = resample_bilinear(src, 2, 1, 4, 1)

        assert red_channel(out) == [0, 1, 1, 1]

    def test_alpha_is_interpolated(self):
        src = np.array([0, 0, 0, 0, 0, 0, 0, 200], dtype=np.uint8)
        out = resample_bilinear(src, 2, 1, 4, 1)

        assert out.reshape(-1, 4)[:, 3].tolist() == [0, 100, 200, 200]

    @pytest.mark.parametrize(
        "dims",
        [
            (0, 2, 4, 4),
            (2, -1, 4, 4),
            (2, 2, 0, 4),
            (2, 2, 4, -3),
        ],
    )
    def test_non_positive_dimensions(self, red_2x2, dims):
        with pytest.raises(InvalidDimensions):
            resample_bilinear(red_2x2, *dims)

    def test_non_integer_dimensions(self, red_2x2):
        with pytest.raises(InvalidDimensions):
            resample_bilinear(red_2x2, 2, 2, 4.5, 4)

    @pytest.mark.parametrize("factor", [0, -1, -3])
    def test_invalid_scale_factor(self, red_2x2, factor):
        with pytest.raises(InvalidDimensions):
            upscale(red_2x2, 2, 2, factor)

    def test_buffer_length_mismatch(self):
        with pytest.raises(FrameFormatError):
            resample_bilinear(np.zeros(15, dtype=np.uint8), 2, 2, 4, 4)

    def test_wrong_dtype(self):
        with pytest.raises(FrameFormatError):
            resample_bilinear(np.zeros(16, dtype=np.float32), 2, 2, 4, 4)


class TestSharpener:
    """Tests for sharpen."""

    def test_preserves_length_and_alpha(self, random_buffer):
        src = random_buffer(9, 7)
        out = sharpen(src, 9, 7)

        assert out.size == src.size
        assert out.dtype == np.uint8
        np.testing.assert_array_equal(out.reshape(-1, 4)[:, 3], src.reshape(-1, 4)[:, 3])

    def test_flat_region_unchanged(self):
        """The kernel sums to 1, so uniform input is invariant."""
        src = uniform_buffer(4, 4, [255, 0, 0, 255])
        np.testing.assert_array_equal(sharpen(src, 4, 4), src)

    def test_upscaled_red_unchanged(self, red_2x2):
        upscaled = upscale(red_2x2, 2, 2, 2)
        np.testing.assert_array_equal(sharpen(upscaled, 4, 4), upscaled)

    def test_bright_centre_pixel(self):
        """Centre clamps high, edge neighbours drop, corners keep their value."""
        src = uniform_buffer(3, 3, [100, 100, 100, 255])
        src[(1 * 3 + 1) * 4:(1 * 3 + 1) * 4 + 3] = 200

        out = red_channel(sharpen(src, 3, 3))

        # centre: 5*200 - 4*100 = 600 -> 255
        assert out[4] == 255
        # top middle: 5*100 - (100 + 100 + 100 + 200) = 0
        assert out[1] == 0
        # corner with clamped border: 5*100 - 4*100 = 100
        assert out[0] == 100

    def test_edges_are_clamped_not_zero_padded(self):
        """A zero-padded border would brighten edges of a flat image."""
        src = uniform_buffer(5, 1, [80, 80, 80, 255])
        np.testing.assert_array_equal(sharpen(src, 5, 1), src)

    def test_only_rgb_modified(self):
        src = uniform_buffer(3, 3, [50, 50, 50, 10])
        src[(1 * 3 + 1) * 4 + 3] = 250

        out = sharpen(src, 3, 3).reshape(-1, 4)

        assert out[:, :3].tolist() == [[50, 50, 50]] * 9
        assert out[:, 3].tolist() == [10, 10, 10, 10, 250, 10, 10, 10, 10]

    def test_does_not_modify_input(self, random_buffer):
        src = random_buffer(4, 4)
        before = src.copy()
        sharpen(src, 4, 4)
        np.testing.assert_array_equal(src, before)

    def test_buffer_length_mismatch(self):
        with pytest.raises(FrameFormatError):
            sharpen(np.zeros(17, dtype=np.uint8), 2, 2)

    def test_non_positive_dimensions(self):
        with pytest.raises(InvalidDimensions):
            sharpen(np.zeros(0, dtype=np.uint8), 0, 2)

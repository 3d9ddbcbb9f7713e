"""
Bilinear Resampling
===================

Enlarges (or shrinks) a flat RGBA PixelBuffer with bilinear interpolation.

For destination pixel (j, i):
    x = j * (sw / dw),  y = i * (sh / dh)
    x1 = floor(x),      y1 = floor(y)
    x2 = min(x1 + 1, sw - 1)
    y2 = min(y1 + 1, sh - 1)
    dx = x - x1,        dy = y - y1

    value = p1 (1-dx)(1-dy) + p2 dx (1-dy) + p3 (1-dx) dy + p4 dx dy

    p1 = (y1, x1)  p2 = (y1, x2)
    p3 = (y2, x1)  p4 = (y2, x2)

All four channels (including alpha) are blended independently, rounded
half-up and clamped to [0, 255].

The whole frame is computed at once with numpy fancy indexing; there is
no per-pixel Python loop.
"""

import numpy as np

from video_upscaler.errors import InvalidDimensions
from video_upscaler.models.frame import CHANNELS, check_buffer, validate_dimensions


def resample_bilinear(
    src: np.ndarray,
    src_width: int,
    src_height: int,
    dst_width: int,
    dst_height: int,
) -> np.ndarray:
    """
    Resample a PixelBuffer to new dimensions.

    Pure function: the source buffer is not modified.

    Args:
        src: Flat RGBA uint8 buffer of length src_width * src_height * 4
        src_width: Source width in pixels
        src_height: Source height in pixels
        dst_width: Destination width in pixels
        dst_height: Destination height in pixels

    Returns:
        New flat RGBA uint8 buffer of length dst_width * dst_height * 4

    Raises:
        InvalidDimensions: If any dimension is not a positive integer
        FrameFormatError: If src length does not match its dimensions
    """
    validate_dimensions(src_width, src_height)
    validate_dimensions(dst_width, dst_height)
    check_buffer(src, src_width, src_height)

    pixels = src.reshape(src_height, src_width, CHANNELS).astype(np.float64)

    xs = np.arange(dst_width, dtype=np.float64) * (src_width / dst_width)
    ys = np.arange(dst_height, dtype=np.float64) * (src_height / dst_height)

    x1 = np.minimum(np.floor(xs).astype(np.intp), src_width - 1)
    y1 = np.minimum(np.floor(ys).astype(np.intp), src_height - 1)
    x2 = np.minimum(x1 + 1, src_width - 1)
    y2 = np.minimum(y1 + 1, src_height - 1)

    # Broadcast offsets over (rows, cols, channels)
    dx = (xs - x1)[np.newaxis, :, np.newaxis]
    dy = (ys - y1)[:, np.newaxis, np.newaxis]

    p1 = pixels[y1[:, np.newaxis], x1[np.newaxis, :]]
    p2 = pixels[y1[:, np.newaxis], x2[np.newaxis, :]]
    p3 = pixels[y2[:, np.newaxis], x1[np.newaxis, :]]
    p4 = pixels[y2[:, np.newaxis], x2[np.newaxis, :]]

    value = (
        p1 * (1.0 - dx) * (1.0 - dy)
        + p2 * dx * (1.0 - dy)
        + p3 * (1.0 - dx) * dy
        + p4 * dx * dy
    )

    # Round half-up, then clamp against floating point overshoot
    out = np.clip(np.floor(value + 0.5), 0, 255).astype(np.uint8)

    return out.reshape(-1)


def upscale(
    src: np.ndarray,
    src_width: int,
    src_height: int,
    scale_factor: int,
) -> np.ndarray:
    """
    Enlarge a PixelBuffer by an integer factor.

    Convenience wrapper around resample_bilinear with
    dst = src * scale_factor componentwise.

    Raises:
        InvalidDimensions: If scale_factor is not a positive integer
    """
    if isinstance(scale_factor, bool) or not isinstance(scale_factor, (int, np.integer)):
        raise InvalidDimensions(f"scale_factor must be an integer, got {scale_factor!r}")
    if scale_factor <= 0:
        raise InvalidDimensions(f"scale_factor must be positive, got {scale_factor}")

    return resample_bilinear(
        src,
        src_width,
        src_height,
        src_width * scale_factor,
        src_height * scale_factor,
    )

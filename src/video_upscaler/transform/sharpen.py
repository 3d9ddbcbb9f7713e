"""
Sharpening Filter
=================

Detail enhancement with a fixed 3x3 kernel.

Kernel:
     0 -1  0
    -1  5 -1
     0 -1  0

Rules:
    - Applied to R, G, B only; alpha is copied through unchanged
    - Borders are edge-clamped (replicated), never zero-padded
    - Sums are clamped to [0, 255]
    - The kernel sums to 1, so flat regions are left untouched

Uses OpenCV's filter2D with BORDER_REPLICATE on a float32 copy of the
colour planes so negative intermediate sums are not saturated early.
"""

import cv2
import numpy as np

from video_upscaler.models.frame import CHANNELS, check_buffer, validate_dimensions


SHARPEN_KERNEL = np.array(
    [
        [0, -1, 0],
        [-1, 5, -1],
        [0, -1, 0],
    ],
    dtype=np.float32,
)


def sharpen(data: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Sharpen a PixelBuffer.

    Args:
        data: Flat RGBA uint8 buffer of length width * height * 4
        width: Frame width in pixels
        height: Frame height in pixels

    Returns:
        New flat RGBA uint8 buffer of the same length

    Raises:
        InvalidDimensions: If width or height is not positive
        FrameFormatError: If data length does not match width * height * 4
    """
    validate_dimensions(width, height)
    check_buffer(data, width, height)

    pixels = data.reshape(height, width, CHANNELS)
    rgb = np.ascontiguousarray(pixels[..., :3], dtype=np.float32)

    # filter2D computes correlation; the kernel is symmetric so it is
    # identical to convolution here
    filtered = cv2.filter2D(
        rgb,
        ddepth=-1,
        kernel=SHARPEN_KERNEL,
        borderType=cv2.BORDER_REPLICATE,
    )

    out = pixels.copy()
    out[..., :3] = np.clip(np.rint(filtered), 0, 255).astype(np.uint8)

    return out.reshape(-1)

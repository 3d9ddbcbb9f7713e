"""
Transform Module
================

Pure per-frame pixel transforms.

This module provides:
    - resample_bilinear: Bilinear resize of an RGBA PixelBuffer
    - upscale: Integer-factor enlargement built on resample_bilinear
    - sharpen: 3x3 edge-clamped sharpening of the RGB channels

Both transforms are synchronous, side-effect free and reentrant.
The driver always applies them in the order resample → sharpen.
"""

from video_upscaler.transform.resample import resample_bilinear, upscale
from video_upscaler.transform.sharpen import SHARPEN_KERNEL, sharpen

__all__ = [
    "resample_bilinear",
    "upscale",
    "sharpen",
    "SHARPEN_KERNEL",
]

"""
Frame Data Models
=================

Internal frame representation for the upscaling pipeline.

A frame's pixels are a flat RGBA PixelBuffer:
    - numpy array, dtype uint8, ndim 1
    - row-major, 4 channels per pixel (R, G, B, A)
    - length == width * height * 4

Design Rules:
    - Dimensions reject non-positive sizes on construction
    - Frame is the ONLY format passed from a source to the driver
    - Buffers are handed on, never shared between stages
"""

import math
from dataclasses import dataclass

import numpy as np
from pydantic import BaseModel, Field, field_validator

from video_upscaler.errors import FrameFormatError, InvalidDimensions


CHANNELS = 4


@dataclass(frozen=True, slots=True)
class Dimensions:
    """
    Frame size in pixels.

    Attributes:
        width: Number of columns (> 0)
        height: Number of rows (> 0)

    Raises:
        InvalidDimensions: If either component is not a positive integer
    """

    width: int
    height: int

    def __post_init__(self) -> None:
        validate_dimensions(self.width, self.height)

    @property
    def buffer_length(self) -> int:
        """Length of an RGBA PixelBuffer of this size."""
        return self.width * self.height * CHANNELS

    def scaled(self, factor: int) -> "Dimensions":
        """Return these dimensions multiplied componentwise by factor."""
        return Dimensions(self.width * factor, self.height * factor)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


def validate_dimensions(width: int, height: int) -> None:
    """
    Check that width and height are positive integers.

    Raises:
        InvalidDimensions: On zero, negative or non-integer values
    """
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise InvalidDimensions(f"{name} must be an integer, got {value!r}")
        if value <= 0:
            raise InvalidDimensions(f"{name} must be positive, got {value}")


def check_buffer(data: np.ndarray, width: int, height: int) -> None:
    """
    Verify a PixelBuffer matches its declared dimensions.

    Raises:
        FrameFormatError: If shape, dtype or length do not match
    """
    if not isinstance(data, np.ndarray):
        raise FrameFormatError(f"Pixel buffer must be a numpy array, got {type(data).__name__}")
    if data.dtype != np.uint8:
        raise FrameFormatError(f"Pixel buffer must be uint8, got {data.dtype}")
    if data.ndim != 1:
        raise FrameFormatError(f"Pixel buffer must be flat, got shape {data.shape}")

    expected = width * height * CHANNELS
    if data.size != expected:
        raise FrameFormatError(
            f"Pixel buffer length {data.size} does not match "
            f"{width}x{height}x{CHANNELS}={expected}"
        )


@dataclass(frozen=True, slots=True)
class Frame:
    """
    Raw frame pulled from a frame source.

    Attributes:
        index: Zero-based position of the frame in the source
        dimensions: Declared frame size
        data: Flat RGBA PixelBuffer
    """

    index: int
    dimensions: Dimensions
    data: np.ndarray

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixels."""
        return (
            f"Frame(index={self.index}, "
            f"dimensions={self.dimensions}, "
            f"length={self.data.size})"
        )


class SourceMetadata(BaseModel):
    """
    Metadata a frame source reports once, before frames are pulled.

    Attributes:
        width: Source frame width in pixels
        height: Source frame height in pixels
        duration_seconds: Nominal duration of the video (inf if unknown)
        frame_rate: Nominal frame rate declared by the container
    """

    width: int = Field(..., description="Source frame width in pixels")
    height: int = Field(..., description="Source frame height in pixels")
    duration_seconds: float = Field(
        ...,
        ge=0.0,
        description="Nominal duration of the source in seconds",
    )
    frame_rate: float = Field(
        default=0.0,
        ge=0.0,
        description="Nominal frame rate of the source (0 if unknown)",
    )

    @field_validator("duration_seconds", mode="before")
    @classmethod
    def _unknown_duration(cls, value):
        # Streamed containers report NaN or Infinity when the length is unknown
        if isinstance(value, float) and math.isnan(value):
            return math.inf
        return value

    @property
    def dimensions(self) -> Dimensions:
        """Source size as Dimensions (validates positivity)."""
        return Dimensions(self.width, self.height)

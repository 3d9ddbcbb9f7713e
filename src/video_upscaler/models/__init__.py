"""
Data Models
===========

Frame and job models for the VideoUpscaler.

Models:
    Frame:
        - Dimensions: Positive (width, height) pair
        - Frame: Raw RGBA frame pulled from a source
        - SourceMetadata: Size, duration and frame rate of a source

    Job:
        - JobState: Driver lifecycle (IDLE ... COMPLETED | CANCELLED)
        - FrameJob: Per-run state owned by the driver
        - ProgressReport: Percentage emitted per frame
"""

from video_upscaler.models.frame import (
    CHANNELS,
    Dimensions,
    Frame,
    SourceMetadata,
    check_buffer,
    validate_dimensions,
)
from video_upscaler.models.job import FrameJob, JobState, ProgressReport

__all__ = [
    # Frame
    "CHANNELS",
    "Dimensions",
    "Frame",
    "SourceMetadata",
    "check_buffer",
    "validate_dimensions",
    # Job
    "JobState",
    "FrameJob",
    "ProgressReport",
]

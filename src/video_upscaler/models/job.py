"""
Job State Models
================

Per-job state owned by the frame pipeline driver.

Core Concepts:
    - JobState: Lifecycle of a single upscaling job
    - FrameJob: Transient per-run state (sizes, counters, cancellation flag)
    - ProgressReport: Percentage emitted after every processed frame

Lifecycle:
    IDLE → INITIALIZING → RUNNING → COMPLETED
                                  → CANCELLED

Progress:
    percent = min(99, floor(frames_processed / estimated_total_frames * 100))
    Only a confirmed end-of-stream raises it to exactly 100.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field

from video_upscaler.models.frame import Dimensions


class JobState(str, Enum):
    """
    Lifecycle states of the frame pipeline driver.

    Attributes:
        IDLE: No job has been started
        INITIALIZING: Reading source metadata and arming the sink
        RUNNING: Pulling, transforming and pushing frames
        COMPLETED: Sink finalized, artifact available
        CANCELLED: Job aborted or cancelled, sink discarded
    """

    IDLE = "IDLE"
    INITIALIZING = "INITIALIZING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.CANCELLED)


@dataclass
class FrameJob:
    """
    Transient state of one upscaling run.

    Created on start, advanced once per frame, dropped when the job ends.

    Attributes:
        source: Source frame size
        destination: Output frame size (source * scale_factor)
        scale_factor: Integer enlargement factor
        estimated_total_frames: floor(duration * target frame rate)
        frames_processed: Frames pushed to the sink so far
        cancel_requested: Set by cancel(), honoured at the next frame boundary
    """

    source: Dimensions
    destination: Dimensions
    scale_factor: int
    estimated_total_frames: int
    frames_processed: int = 0
    cancel_requested: bool = False


class ProgressReport(BaseModel):
    """
    Progress of the current job, emitted after every processed frame.

    Attributes:
        percent: Completion percentage, capped at 99 until completion
        frames_processed: Frames pushed to the sink so far
        estimated_total_frames: Frame count estimated from nominal metadata
        state: Driver state when the report was produced
    """

    percent: int = Field(
        ...,
        ge=0,
        le=100,
        description="Completion percentage (100 only once the job completed)",
    )

    frames_processed: int = Field(
        default=0,
        ge=0,
        description="Frames pushed to the sink so far",
    )

    estimated_total_frames: int = Field(
        default=0,
        ge=0,
        description="Estimated total frame count for the job",
    )

    state: JobState = Field(
        default=JobState.RUNNING,
        description="Driver state when the report was produced",
    )

"""
Job Metrics
===========

Counters exposed by the frame pipeline driver for observability.
"""

import time
from typing import Optional


class JobMetrics:
    """Metrics for FramePipelineDriver observability."""

    __slots__ = (
        "frames_processed",
        "total_frames_processed",
        "jobs_started",
        "jobs_completed",
        "jobs_cancelled",
        "jobs_failed",
        "last_error",
        "job_started_at",
        "job_finished_at",
    )

    def __init__(self) -> None:
        self.frames_processed: int = 0
        self.total_frames_processed: int = 0
        self.jobs_started: int = 0
        self.jobs_completed: int = 0
        self.jobs_cancelled: int = 0
        self.jobs_failed: int = 0
        self.last_error: Optional[str] = None
        self.job_started_at: Optional[float] = None
        self.job_finished_at: Optional[float] = None

    def start_job(self) -> None:
        self.jobs_started += 1
        self.frames_processed = 0
        self.last_error = None
        self.job_started_at = time.time()
        self.job_finished_at = None

    def record_frame(self) -> None:
        self.frames_processed += 1
        self.total_frames_processed += 1

    def finish_job(self) -> None:
        self.job_finished_at = time.time()

    @property
    def elapsed_seconds(self) -> float:
        """Wall time of the current (or last) job."""
        if self.job_started_at is None:
            return 0.0
        end = self.job_finished_at if self.job_finished_at is not None else time.time()
        return max(0.0, end - self.job_started_at)

    @property
    def processing_fps(self) -> float:
        elapsed = self.elapsed_seconds
        if elapsed <= 0:
            return 0.0
        return self.frames_processed / elapsed

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "frames_processed": self.frames_processed,
            "total_frames_processed": self.total_frames_processed,
            "jobs_started": self.jobs_started,
            "jobs_completed": self.jobs_completed,
            "jobs_cancelled": self.jobs_cancelled,
            "jobs_failed": self.jobs_failed,
            "last_error": self.last_error,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "processing_fps": round(self.processing_fps, 2),
        }

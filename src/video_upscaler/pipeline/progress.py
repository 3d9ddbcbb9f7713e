"""
Progress Tracking
=================

Computes and distributes ProgressReports for the current job.

Rules:
    - percent = min(99, floor(frames_processed / estimated_total * 100))
    - Reports never decrease within one job
    - Only complete() may report 100
    - reset() clears the last value so nothing leaks into the next job

The estimate comes from nominal duration x target frame rate, so the
real frame count may overshoot or undershoot it. The 99 cap absorbs an
overshoot; an undershoot simply jumps to 100 on completion.

Observers are plain callables. They are called synchronously after every
frame and must return quickly. An observer that raises is logged and
skipped; it never aborts the job.
"""

import logging
from typing import Callable, List, Optional

from video_upscaler.models.job import JobState, ProgressReport


logger = logging.getLogger(__name__)


ProgressObserver = Callable[[ProgressReport], None]

RUNNING_CAP = 99


def compute_percent(frames_processed: int, estimated_total_frames: int) -> int:
    """
    Percentage of the estimated frame count processed, capped at 99.

    Integer arithmetic keeps the floor exact.
    An estimate of zero frames reports 99 as soon as any frame is processed.
    """
    if frames_processed <= 0:
        return 0
    if estimated_total_frames <= 0:
        return RUNNING_CAP
    return min(RUNNING_CAP, (frames_processed * 100) // estimated_total_frames)


class ProgressTracker:
    """
    Monotonic progress state plus observer fan-out for one job at a time.

    Example:
        tracker = ProgressTracker()
        tracker.add_observer(lambda r: print(r.percent))

        tracker.report(frames_processed=15, estimated_total_frames=30)  # 50
        tracker.complete(frames_processed=30, estimated_total_frames=30)  # 100
    """

    def __init__(self) -> None:
        self._observers: List[ProgressObserver] = []
        self._last: Optional[ProgressReport] = None

    @property
    def last(self) -> Optional[ProgressReport]:
        """Most recent report of the current job, None before the first one."""
        return self._last

    @property
    def percent(self) -> int:
        return self._last.percent if self._last else 0

    def add_observer(self, observer: ProgressObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_observer(self, observer: ProgressObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def clear(self) -> None:
        """Forget the last report without notifying observers."""
        self._last = None

    def reset(self, estimated_total_frames: int = 0) -> ProgressReport:
        """Start a new job at 0%."""
        self._last = None
        return self._emit(
            ProgressReport(
                percent=0,
                frames_processed=0,
                estimated_total_frames=max(0, estimated_total_frames),
                state=JobState.RUNNING,
            )
        )

    def report(self, frames_processed: int, estimated_total_frames: int) -> ProgressReport:
        """Emit the running percentage after a processed frame."""
        percent = compute_percent(frames_processed, estimated_total_frames)
        if self._last is not None:
            percent = max(percent, self._last.percent)

        return self._emit(
            ProgressReport(
                percent=percent,
                frames_processed=frames_processed,
                estimated_total_frames=max(0, estimated_total_frames),
                state=JobState.RUNNING,
            )
        )

    def complete(self, frames_processed: int, estimated_total_frames: int) -> ProgressReport:
        """Emit the terminal 100% report."""
        return self._emit(
            ProgressReport(
                percent=100,
                frames_processed=frames_processed,
                estimated_total_frames=max(0, estimated_total_frames),
                state=JobState.COMPLETED,
            )
        )

    def cancelled(self, frames_processed: int, estimated_total_frames: int) -> ProgressReport:
        """Emit a terminal report that keeps the last running percentage."""
        return self._emit(
            ProgressReport(
                percent=self.percent,
                frames_processed=frames_processed,
                estimated_total_frames=max(0, estimated_total_frames),
                state=JobState.CANCELLED,
            )
        )

    def _emit(self, report: ProgressReport) -> ProgressReport:
        self._last = report
        for observer in list(self._observers):
            try:
                observer(report)
            except Exception as e:
                logger.error(f"Progress observer {observer!r} failed: {e}")
        return report

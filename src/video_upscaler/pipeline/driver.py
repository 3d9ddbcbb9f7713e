"""
Frame Pipeline Driver
=====================

Sequences capture → transform → encode over a whole video.

The driver is an explicit state machine advanced one frame per step():

    IDLE → INITIALIZING → RUNNING → COMPLETED
                                  → CANCELLED

Each step runs a small LangGraph workflow:

    START → pull_frame ─┬─ transform → emit → END
                        └─ finalize → END

LangGraph is used for CONTROL FLOW only. The per-frame graph is
invoked synchronously, so frame N is pushed to the sink before
frame N+1 is pulled.

Rules:
    - The sink is armed before the first frame is pulled
    - Resample always runs before sharpen
    - Only end-of-stream authorizes the 100% report
    - Cancellation is honoured at the next frame boundary and
      discards the sink instead of finalizing it
    - Any error aborts the job: sink discarded, state CANCELLED,
      job dropped, error re-raised
"""

import logging
import math
import os
from typing import Any, Dict, Optional, TypedDict

import numpy as np
from langgraph.graph import StateGraph, END

from video_upscaler.errors import FrameFormatError, InvalidDimensions, JobStateError
from video_upscaler.models.frame import Frame, check_buffer
from video_upscaler.models.job import FrameJob, JobState, ProgressReport
from video_upscaler.pipeline.metrics import JobMetrics
from video_upscaler.pipeline.progress import ProgressObserver, ProgressTracker
from video_upscaler.stream.sink import FrameSink
from video_upscaler.stream.source import FrameSource
from video_upscaler.transform import resample_bilinear, sharpen


logger = logging.getLogger(__name__)


class FrameStepState(TypedDict):
    """
    State passed through the per-frame graph.

    Attributes:
        job: The running FrameJob (owned by the driver)
        frame: Frame pulled from the source, cleared once transformed
        output: Processed PixelBuffer, cleared once pushed
        end_of_stream: True when the source returned no frame
        progress: Report emitted for this step
        artifact: Value returned by sink.finalize()
    """
    job: FrameJob
    frame: Optional[Frame]
    output: Optional[np.ndarray]
    end_of_stream: bool
    progress: Optional[ProgressReport]
    artifact: Any


class FramePipelineDriver:
    """
    Frame-by-frame upscaling driver.

    Owns the FrameJob for its lifetime and decides when the job is
    complete. Scheduling is external: call step() once per tick, or
    run() to step until the job ends.

    Attributes:
        min_scale_factor: Smallest accepted scale factor
        max_scale_factor: Largest accepted scale factor
        target_frame_rate: Frame rate used to estimate total frames
        metrics: Operational counters

    Example:
        driver = FramePipelineDriver(scale_factor=2)
        driver.add_observer(lambda report: print(report.percent))

        driver.start(source, sink)
        while driver.step():
            pass

        print(driver.state, driver.artifact)
    """

    def __init__(
        self,
        scale_factor: int = 2,
        min_scale_factor: int = 2,
        max_scale_factor: int = 4,
        target_frame_rate: float = 30.0,
        log_every_n_frames: int = 30,
    ) -> None:
        """
        Initialize the driver.

        Args:
            scale_factor: Initial scale factor
            min_scale_factor: Smallest accepted scale factor (>= 1)
            max_scale_factor: Largest accepted scale factor
            target_frame_rate: Frames per second used for the total estimate
            log_every_n_frames: Log progress every N frames
        """
        if min_scale_factor < 1 or max_scale_factor < min_scale_factor:
            raise ValueError(
                f"Invalid scale factor range [{min_scale_factor}, {max_scale_factor}]"
            )
        if target_frame_rate <= 0:
            raise ValueError("target_frame_rate must be positive")

        self.min_scale_factor = min_scale_factor
        self.max_scale_factor = max_scale_factor
        self.target_frame_rate = target_frame_rate
        self.log_every_n_frames = max(1, log_every_n_frames)

        self._scale_factor = self.validate_scale_factor(scale_factor)
        self._state: JobState = JobState.IDLE
        self._job: Optional[FrameJob] = None
        self._source: Optional[FrameSource] = None
        self._sink: Optional[FrameSink] = None
        self._artifact: Any = None

        self._progress = ProgressTracker()
        self.metrics = JobMetrics()

        self._graph = self._build_graph()

        logger.info(
            f"FramePipelineDriver initialized: scale={scale_factor}, "
            f"range=[{min_scale_factor}, {max_scale_factor}], "
            f"target_fps={target_frame_rate}"
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> JobState:
        return self._state

    @property
    def scale_factor(self) -> int:
        return self._scale_factor

    @property
    def job(self) -> Optional[FrameJob]:
        """The running job, None when idle or finished."""
        return self._job

    @property
    def artifact(self) -> Any:
        """Output of sink.finalize() for the last completed job."""
        return self._artifact

    @property
    def last_progress(self) -> Optional[ProgressReport]:
        return self._progress.last

    @property
    def is_running(self) -> bool:
        return self._state in (JobState.INITIALIZING, JobState.RUNNING)

    # =========================================================================
    # Job Control
    # =========================================================================

    def validate_scale_factor(self, factor: int) -> int:
        """
        Check a scale factor against the supported range.

        Raises:
            InvalidDimensions: If factor is not an integer in range
        """
        if isinstance(factor, bool) or not isinstance(factor, (int, np.integer)):
            raise InvalidDimensions(f"Scale factor must be an integer, got {factor!r}")
        if not self.min_scale_factor <= factor <= self.max_scale_factor:
            raise InvalidDimensions(
                f"Scale factor {factor} outside supported range "
                f"[{self.min_scale_factor}, {self.max_scale_factor}]"
            )
        return int(factor)

    def estimate_total_frames(self, duration_seconds: float) -> int:
        """
        Expected frame count for a source of the given nominal duration.

        Streamed containers (e.g. recorded webm) may report an infinite
        or unknown duration; those estimate 0 frames, so progress holds
        at 99 until end-of-stream.
        """
        estimate = duration_seconds * self.target_frame_rate
        if not math.isfinite(estimate) or estimate <= 0:
            return 0
        return math.floor(estimate)

    def set_scale_factor(self, factor: int) -> None:
        """
        Set the scale factor for the next job.

        Raises:
            InvalidDimensions: If factor is out of range
            JobStateError: If a job is running
        """
        if self.is_running:
            raise JobStateError("Cannot change scale factor while a job is running")
        self._scale_factor = self.validate_scale_factor(factor)

    def add_observer(self, observer: ProgressObserver) -> None:
        self._progress.add_observer(observer)

    def remove_observer(self, observer: ProgressObserver) -> None:
        self._progress.remove_observer(observer)

    def start(self, source: FrameSource, sink: FrameSink) -> FrameJob:
        """
        Initialize a job and arm the sink.

        Reads source metadata, computes destination size and the
        estimated frame count, arms the sink, then enters RUNNING.
        No frame is pulled here.

        Args:
            source: Frame source for the new job
            sink: Frame sink for the new job

        Returns:
            The new FrameJob

        Raises:
            JobStateError: If a job is already running
            InvalidDimensions: If the source reports a non-positive size
            SinkError: If the sink cannot be armed
        """
        if self.is_running:
            raise JobStateError(f"A job is already {self._state.value}")

        self._clear_job()
        self._state = JobState.INITIALIZING
        self._source = source
        self._sink = sink
        self.metrics.start_job()

        try:
            metadata = source.metadata()
            source_dims = metadata.dimensions
            destination_dims = source_dims.scaled(self._scale_factor)
            estimated_total = self.estimate_total_frames(metadata.duration_seconds)

            job = FrameJob(
                source=source_dims,
                destination=destination_dims,
                scale_factor=self._scale_factor,
                estimated_total_frames=estimated_total,
            )

            sink.arm(destination_dims)
        except Exception as e:
            self._abort(e)
            raise

        self._job = job
        self._state = JobState.RUNNING
        self._progress.reset(estimated_total)

        logger.info(
            f"Job started: {source_dims} → {destination_dims} "
            f"(x{self._scale_factor}), estimated_frames={estimated_total}"
        )

        return job

    def cancel(self) -> bool:
        """
        Request cancellation of the running job.

        Takes effect at the next frame boundary (next step()).

        Returns:
            True if a running job will be cancelled, False otherwise
        """
        if self._state != JobState.RUNNING or self._job is None:
            logger.debug(f"cancel() ignored in state {self._state.value}")
            return False

        if not self._job.cancel_requested:
            self._job.cancel_requested = True
            logger.warning(
                f"Cancellation requested after {self._job.frames_processed} frames"
            )
        return True

    def step(self) -> bool:
        """
        Advance the job by one frame.

        Returns:
            True while the job is still running, False once it ended
            (or if no job is running)

        Raises:
            FrameFormatError: If a pulled frame does not match the job
            SinkError: If the sink rejects a frame or cannot finalize
        """
        if self._state != JobState.RUNNING or self._job is None:
            return False

        job = self._job

        if job.cancel_requested:
            self._cancel_job()
            return False

        try:
            result = self._graph.invoke({
                "job": job,
                "frame": None,
                "output": None,
                "end_of_stream": False,
                "progress": None,
                "artifact": None,
            })
        except Exception as e:
            self._abort(e)
            raise

        if result["end_of_stream"]:
            self._complete(result["artifact"])
            return False

        if job.frames_processed % self.log_every_n_frames == 0:
            logger.info(
                f"Job progress [frame {job.frames_processed}/"
                f"{job.estimated_total_frames}]: {self._progress.percent}%"
            )

        return True

    def run(self) -> JobState:
        """Step until the job leaves RUNNING and return the final state."""
        while self.step():
            pass
        return self._state

    # =========================================================================
    # Graph
    # =========================================================================

    def _build_graph(self) -> StateGraph:
        """Build the per-frame LangGraph workflow."""
        workflow = StateGraph(FrameStepState)

        workflow.add_node("pull_frame", self._pull_frame_node)
        workflow.add_node("transform", self._transform_node)
        workflow.add_node("emit", self._emit_node)
        workflow.add_node("finalize", self._finalize_node)

        workflow.set_entry_point("pull_frame")
        workflow.add_conditional_edges(
            "pull_frame",
            self._route_after_pull,
            {"transform": "transform", "finalize": "finalize"},
        )
        workflow.add_edge("transform", "emit")
        workflow.add_edge("emit", END)
        workflow.add_edge("finalize", END)

        return workflow.compile()

    def _pull_frame_node(self, state: FrameStepState) -> Dict[str, Any]:
        """Pull one frame and check it against the job's source size."""
        job = state["job"]
        frame = self._source.pull()

        if frame is None:
            return {"frame": None, "end_of_stream": True}

        if frame.dimensions != job.source:
            raise FrameFormatError(
                f"Frame {frame.index} is {frame.dimensions}, expected {job.source}"
            )
        check_buffer(frame.data, job.source.width, job.source.height)

        return {"frame": frame, "end_of_stream": False}

    def _route_after_pull(self, state: FrameStepState) -> str:
        return "finalize" if state["end_of_stream"] else "transform"

    def _transform_node(self, state: FrameStepState) -> Dict[str, Any]:
        """Resample to destination size, then sharpen."""
        job = state["job"]
        frame = state["frame"]

        upscaled = resample_bilinear(
            frame.data,
            job.source.width,
            job.source.height,
            job.destination.width,
            job.destination.height,
        )
        sharpened = sharpen(upscaled, job.destination.width, job.destination.height)

        return {"frame": None, "output": sharpened}

    def _emit_node(self, state: FrameStepState) -> Dict[str, Any]:
        """Push the processed frame and report progress."""
        job = state["job"]

        self._sink.push(state["output"])
        job.frames_processed += 1
        self.metrics.record_frame()

        report = self._progress.report(job.frames_processed, job.estimated_total_frames)

        return {"output": None, "progress": report}

    def _finalize_node(self, state: FrameStepState) -> Dict[str, Any]:
        """Materialize the output artifact."""
        return {"artifact": self._sink.finalize()}

    # =========================================================================
    # Terminal Transitions
    # =========================================================================

    def _complete(self, artifact: Any) -> None:
        job = self._job
        self._artifact = artifact
        self._state = JobState.COMPLETED
        self._progress.complete(job.frames_processed, job.estimated_total_frames)

        self.metrics.jobs_completed += 1
        self.metrics.finish_job()

        logger.info(
            f"Job completed: {job.frames_processed} frames "
            f"(estimated {job.estimated_total_frames}) in "
            f"{self.metrics.elapsed_seconds:.2f}s"
        )
        self._release()

    def _cancel_job(self) -> None:
        job = self._job
        self._state = JobState.CANCELLED
        self._discard_sink()
        self._progress.cancelled(job.frames_processed, job.estimated_total_frames)

        self.metrics.jobs_cancelled += 1
        self.metrics.finish_job()

        logger.warning(f"Job cancelled after {job.frames_processed} frames")
        self._release()

    def _abort(self, error: Exception) -> None:
        """Abort the current job after an error; the caller re-raises."""
        job = self._job
        self._state = JobState.CANCELLED
        self._discard_sink()

        if job is not None:
            self._progress.cancelled(job.frames_processed, job.estimated_total_frames)

        self.metrics.jobs_failed += 1
        self.metrics.last_error = f"{type(error).__name__}: {error}"
        self.metrics.finish_job()

        logger.error(f"Job aborted: {type(error).__name__}: {error}")
        self._release()

    def _discard_sink(self) -> None:
        if self._sink is None:
            return
        try:
            self._sink.discard()
        except Exception as e:
            logger.error(f"Sink discard failed: {e}")

    def _release(self) -> None:
        """Drop per-job state and close the source."""
        if self._source is not None:
            try:
                self._source.close()
            except Exception as e:
                logger.error(f"Source close failed: {e}")

        self._job = None
        self._source = None
        self._sink = None

    def _clear_job(self) -> None:
        self._job = None
        self._artifact = None
        self._progress.clear()

    # =========================================================================
    # Observability
    # =========================================================================

    def get_status(self) -> Dict[str, Any]:
        """Snapshot of driver state for the service layer."""
        progress = self._progress.last
        job = self._job
        status: Dict[str, Any] = {
            "state": self._state.value,
            "scale_factor": self._scale_factor,
            "progress": progress.percent if progress else 0,
            "frames_processed": progress.frames_processed if progress else 0,
            "estimated_total_frames": progress.estimated_total_frames if progress else 0,
        }
        if job is not None:
            status["source"] = {"width": job.source.width, "height": job.source.height}
            status["destination"] = {
                "width": job.destination.width,
                "height": job.destination.height,
            }
            status["cancel_requested"] = job.cancel_requested
        if isinstance(self._artifact, (str, os.PathLike)):
            status["artifact"] = str(self._artifact)
        return status

    def get_metrics(self) -> Dict[str, Any]:
        """Get driver metrics for observability."""
        return {
            "state": self._state.value,
            "scale_factor": self._scale_factor,
            "progress": self._progress.percent,
            **self.metrics.to_dict(),
        }

"""
Pipeline Module
===============

Frame-by-frame upscaling driver and its progress reporting.

This module provides:
    - FramePipelineDriver: State machine sequencing pull → resample →
      sharpen → push, one frame per step()
    - ProgressTracker: Monotonic, 99-capped progress with observers
    - JobMetrics: Counters for observability

Example:
    from video_upscaler.pipeline import FramePipelineDriver
    from video_upscaler.stream import MemoryFrameSource, MemoryFrameSink

    driver = FramePipelineDriver(scale_factor=2)
    driver.start(MemoryFrameSource(buffers, width=2, height=2), MemoryFrameSink())
    driver.run()
"""

from video_upscaler.pipeline.driver import FramePipelineDriver
from video_upscaler.pipeline.metrics import JobMetrics
from video_upscaler.pipeline.progress import ProgressObserver, ProgressTracker, compute_percent

__all__ = [
    "FramePipelineDriver",
    "JobMetrics",
    "ProgressObserver",
    "ProgressTracker",
    "compute_percent",
]

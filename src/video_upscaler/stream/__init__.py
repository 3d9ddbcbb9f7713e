"""
Stream Module
=============

Frame sources and sinks: the I/O boundary of the upscaling core.

This module provides:
    - FrameSource / FrameSink: Collaboration protocols used by the driver
    - MemoryFrameSource / MemoryFrameSink: In-memory implementations
    - VideoFileSource / VideoFileSink: OpenCV video file implementations

Example:
    from video_upscaler.stream import VideoFileSource, VideoFileSink

    source = VideoFileSource("input.mp4")
    sink = VideoFileSink("output/upscaled_2x_input.mp4", frame_rate=30.0)
"""

from video_upscaler.stream.source import FrameSource, MemoryFrameSource
from video_upscaler.stream.sink import FrameSink, MemoryFrameSink
from video_upscaler.stream.video_file import VideoFileSink, VideoFileSource


__all__ = [
    "FrameSource",
    "FrameSink",
    "MemoryFrameSource",
    "MemoryFrameSink",
    "VideoFileSource",
    "VideoFileSink",
]

"""
Frame Sources
=============

Collaboration contract for anything that supplies raw frames.

A FrameSource must:
    - Report SourceMetadata once, before any frame is pulled
    - Yield frames strictly in order, one per pull()
    - Return None from pull() on end-of-stream or while paused

Implementations:
    - MemoryFrameSource: Serves pre-built PixelBuffers (synthetic input, tests)
    - VideoFileSource: Decodes a video file with OpenCV (see video_file.py)
"""

import logging
from collections import deque
from typing import Iterable, Optional, Protocol, Union

import numpy as np

from video_upscaler.models.frame import Dimensions, Frame, SourceMetadata


logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """
    Protocol for frame sources.

    The driver calls metadata() once during initialization,
    then pull() once per tick until it returns None.
    """

    def metadata(self) -> SourceMetadata:
        """Return source size, nominal duration and frame rate."""
        ...

    def pull(self) -> Optional[Frame]:
        """
        Return the next frame in source order.

        Returns:
            Next Frame, or None on end-of-stream or when paused
        """
        ...

    def close(self) -> None:
        """Release any resources held by the source."""
        ...


class MemoryFrameSource:
    """
    Frame source backed by an in-memory sequence of PixelBuffers.

    Frames are handed over on pull() and not retained afterwards.
    Items may be raw buffers (wrapped with the declared dimensions)
    or ready-made Frame objects, which are passed through untouched.

    Attributes:
        dimensions: Declared frame size
        frame_rate: Nominal frame rate
        duration_seconds: Nominal duration (defaults to len / frame_rate)

    Example:
        source = MemoryFrameSource(buffers, width=2, height=2, frame_rate=30.0)
        while (frame := source.pull()) is not None:
            process(frame)
    """

    def __init__(
        self,
        frames: Iterable[Union[np.ndarray, Frame]],
        width: int,
        height: int,
        frame_rate: float = 30.0,
        duration_seconds: Optional[float] = None,
    ) -> None:
        self.dimensions = Dimensions(width, height)
        self.frame_rate = frame_rate

        self._pending: deque = deque(frames)
        self._next_index: int = 0
        self._paused: bool = False
        self._closed: bool = False

        if duration_seconds is None:
            duration_seconds = len(self._pending) / frame_rate if frame_rate > 0 else 0.0
        self.duration_seconds = duration_seconds

    @property
    def remaining(self) -> int:
        """Number of frames not yet pulled."""
        return len(self._pending)

    @property
    def paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        """Stop delivering frames; pull() returns None until resume()."""
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            width=self.dimensions.width,
            height=self.dimensions.height,
            duration_seconds=self.duration_seconds,
            frame_rate=self.frame_rate,
        )

    def pull(self) -> Optional[Frame]:
        if self._paused or self._closed or not self._pending:
            return None

        item = self._pending.popleft()
        index = self._next_index
        self._next_index += 1

        if isinstance(item, Frame):
            return item

        return Frame(index=index, dimensions=self.dimensions, data=item)

    def close(self) -> None:
        dropped = len(self._pending)
        self._pending.clear()
        self._closed = True
        if dropped:
            logger.debug(f"MemoryFrameSource closed with {dropped} unread frames")

"""
Frame Sinks
===========

Collaboration contract for anything that consumes processed frames.

Protocol (in call order):
    1. arm(dimensions)   - once, before any frame is pushed
    2. push(data)        - once per processed frame, in source order
    3. finalize()        - materializes the output artifact
       or discard()      - tears down without exposing an artifact

Any failure to accept or materialize output is raised as SinkError.

Implementations:
    - MemoryFrameSink: Collects frames in a list (tests, embedding)
    - VideoFileSink: Encodes to a video file with OpenCV (see video_file.py)
"""

import logging
from typing import Any, List, Optional, Protocol

import numpy as np

from video_upscaler.errors import SinkError
from video_upscaler.models.frame import Dimensions


logger = logging.getLogger(__name__)


class FrameSink(Protocol):
    """Protocol for frame sinks."""

    def arm(self, dimensions: Dimensions) -> None:
        """Prepare to receive frames of the given size."""
        ...

    def push(self, data: np.ndarray) -> None:
        """Accept one processed PixelBuffer."""
        ...

    def finalize(self) -> Any:
        """Materialize the output and return the artifact."""
        ...

    def discard(self) -> None:
        """Tear down without producing an artifact."""
        ...


class MemoryFrameSink:
    """
    Frame sink that keeps processed buffers in memory.

    Records every protocol call so callers can verify ordering
    and the finalize/discard outcome of a job.

    Attributes:
        dimensions: Size given to arm(), None until armed
        frames: Buffers pushed so far
        arm_calls: Number of arm() calls
        finalize_calls: Number of finalize() calls
        discard_calls: Number of discard() calls
    """

    def __init__(self) -> None:
        self.dimensions: Optional[Dimensions] = None
        self.frames: List[np.ndarray] = []
        self.arm_calls: int = 0
        self.finalize_calls: int = 0
        self.discard_calls: int = 0
        self._armed: bool = False

    @property
    def armed(self) -> bool:
        return self._armed

    def arm(self, dimensions: Dimensions) -> None:
        self.arm_calls += 1
        self.dimensions = dimensions
        self.frames = []
        self._armed = True

    def push(self, data: np.ndarray) -> None:
        if not self._armed or self.dimensions is None:
            raise SinkError("push() called before arm()")
        if data.size != self.dimensions.buffer_length:
            raise SinkError(
                f"Pushed buffer length {data.size} does not match "
                f"armed size {self.dimensions}"
            )
        self.frames.append(data)

    def finalize(self) -> List[np.ndarray]:
        self.finalize_calls += 1
        if not self._armed:
            raise SinkError("finalize() called before arm()")
        self._armed = False
        logger.debug(f"MemoryFrameSink finalized with {len(self.frames)} frames")
        return self.frames

    def discard(self) -> None:
        self.discard_calls += 1
        self._armed = False
        self.frames = []

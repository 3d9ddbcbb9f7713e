"""
Video File I/O
==============

OpenCV-backed frame source and sink for video files.

Design Rules:
    - This is the ONLY place in the codebase that touches video containers
    - Frames leave the source as flat RGBA PixelBuffers
    - The sink writes to a partial file and only renames it on finalize(),
      so a cancelled job never leaves an output that looks complete
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

from video_upscaler.errors import SinkError, SourceError
from video_upscaler.models.frame import CHANNELS, Dimensions, Frame, SourceMetadata


logger = logging.getLogger(__name__)


PathLike = Union[str, os.PathLike]


class VideoFileSource:
    """
    Frame source decoding a video file with cv2.VideoCapture.

    Duration is derived from the container's frame count and FPS,
    which are nominal values and may not match the decoded frame count.

    Attributes:
        path: Input video path

    Raises:
        SourceError: If the file cannot be opened or reports no frame size
    """

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path)

        if not self.path.exists():
            raise SourceError(f"Input video not found: {self.path}")

        self._capture = cv2.VideoCapture(str(self.path))
        if not self._capture.isOpened():
            raise SourceError(f"Could not open input video: {self.path}")

        self._width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        self._height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self._fps = float(self._capture.get(cv2.CAP_PROP_FPS) or 0.0)
        self._frame_count = max(0, int(self._capture.get(cv2.CAP_PROP_FRAME_COUNT)))

        if self._width <= 0 or self._height <= 0:
            self._capture.release()
            raise SourceError(
                f"Input video reports invalid size {self._width}x{self._height}: {self.path}"
            )

        self._next_index: int = 0
        self._paused: bool = False
        self._closed: bool = False

        logger.info(
            f"Opened {self.path.name}: {self._width}x{self._height}, "
            f"fps={self._fps:.2f}, frames={self._frame_count}"
        )

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def metadata(self) -> SourceMetadata:
        duration = self._frame_count / self._fps if self._fps > 0 else 0.0
        return SourceMetadata(
            width=self._width,
            height=self._height,
            duration_seconds=duration,
            frame_rate=self._fps,
        )

    def pull(self) -> Optional[Frame]:
        if self._paused or self._closed:
            return None

        ok, image = self._capture.read()
        if not ok or image is None:
            return None

        if image.ndim == 2:
            rgba = cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
        else:
            rgba = cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)

        height, width = rgba.shape[:2]
        index = self._next_index
        self._next_index += 1

        return Frame(
            index=index,
            dimensions=Dimensions(width, height),
            data=rgba.reshape(-1),
        )

    def close(self) -> None:
        if not self._closed:
            self._capture.release()
            self._closed = True


class VideoFileSink:
    """
    Frame sink encoding a video file with cv2.VideoWriter.

    Frames are written to "<stem>.partial<suffix>" next to the
    destination. finalize() renames it into place; discard() deletes it.

    Attributes:
        output_path: Final destination of the encoded video
        frame_rate: Output frame rate
        fourcc: Four character codec code (e.g. "mp4v", "MJPG")
    """

    def __init__(
        self,
        output_path: PathLike,
        frame_rate: float = 30.0,
        fourcc: str = "mp4v",
    ) -> None:
        if frame_rate <= 0:
            raise ValueError("frame_rate must be positive")
        if len(fourcc) != 4:
            raise ValueError(f"fourcc must be 4 characters, got {fourcc!r}")

        self.output_path = Path(output_path)
        self.frame_rate = frame_rate
        self.fourcc = fourcc

        self._writer: Optional[cv2.VideoWriter] = None
        self._dimensions: Optional[Dimensions] = None
        self._frames_written: int = 0

    @property
    def partial_path(self) -> Path:
        """Path frames are written to until finalize()."""
        return self.output_path.with_name(
            f"{self.output_path.stem}.partial{self.output_path.suffix}"
        )

    @property
    def frames_written(self) -> int:
        return self._frames_written

    def arm(self, dimensions: Dimensions) -> None:
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            writer = cv2.VideoWriter(
                str(self.partial_path),
                cv2.VideoWriter_fourcc(*self.fourcc),
                self.frame_rate,
                (dimensions.width, dimensions.height),
            )
        except cv2.error as e:
            raise SinkError(f"Failed to create video writer: {e}") from e

        if not writer.isOpened():
            raise SinkError(
                f"Video writer could not open {self.partial_path} "
                f"(fourcc={self.fourcc}, size={dimensions})"
            )

        self._writer = writer
        self._dimensions = dimensions
        self._frames_written = 0

        logger.info(
            f"Encoding to {self.output_path.name}: {dimensions}, "
            f"fps={self.frame_rate}, fourcc={self.fourcc}"
        )

    def push(self, data: np.ndarray) -> None:
        if self._writer is None or self._dimensions is None:
            raise SinkError("push() called before arm()")

        dims = self._dimensions
        if data.size != dims.buffer_length:
            raise SinkError(
                f"Pushed buffer length {data.size} does not match armed size {dims}"
            )

        try:
            bgr = cv2.cvtColor(
                data.reshape(dims.height, dims.width, CHANNELS),
                cv2.COLOR_RGBA2BGR,
            )
            self._writer.write(bgr)
        except cv2.error as e:
            raise SinkError(f"Failed to encode frame {self._frames_written}: {e}") from e

        self._frames_written += 1

    def finalize(self) -> Path:
        if self._writer is None:
            raise SinkError("finalize() called before arm()")

        self._writer.release()
        self._writer = None

        if not self.partial_path.exists():
            raise SinkError(f"Encoder produced no output at {self.partial_path}")

        try:
            os.replace(self.partial_path, self.output_path)
        except OSError as e:
            raise SinkError(f"Failed to move output into place: {e}") from e

        logger.info(f"Wrote {self._frames_written} frames to {self.output_path}")
        return self.output_path

    def discard(self) -> None:
        if self._writer is not None:
            self._writer.release()
            self._writer = None

        try:
            self.partial_path.unlink(missing_ok=True)
        except OSError as e:
            raise SinkError(f"Failed to remove partial output: {e}") from e

        logger.info(f"Discarded partial output for {self.output_path.name}")

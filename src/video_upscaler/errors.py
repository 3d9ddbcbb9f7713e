"""
Error Taxonomy
==============

Exceptions raised by the upscaling core.

Every error aborts the current job. None of them are retried:
they signal a contract violation by a caller or a collaborator.

Hierarchy:
    UpscalerError
        InvalidDimensions  - non-positive size or unsupported scale factor
        FrameFormatError   - buffer length or frame size mismatch
        SourceError        - frame source cannot be opened
        SinkError          - output sink cannot accept or finalize output
        JobStateError      - job control used in the wrong state
"""


class UpscalerError(Exception):
    """Base class for all upscaler errors."""
    pass


class InvalidDimensions(UpscalerError):
    """Raised when a width, height or scale factor is out of range."""
    pass


class FrameFormatError(UpscalerError):
    """Raised when a pixel buffer does not match its declared dimensions."""
    pass


class SourceError(UpscalerError):
    """Raised when a frame source cannot be opened or read."""
    pass


class SinkError(UpscalerError):
    """Raised when the frame sink cannot accept or materialize output."""
    pass


class JobStateError(UpscalerError):
    """Raised when a job control operation is not valid in the current state."""
    pass

"""
VideoUpscaler
=============

Frame-by-frame video upscaling with bilinear resampling and sharpening.

Every frame of a source video is enlarged by an integer scale factor,
sharpened with a 3x3 kernel and handed to an encoder, while progress is
reported after each frame.

Components:
    - transform: Bilinear resampler and sharpening filter
    - pipeline: Stateful frame driver, progress and metrics
    - stream: Frame source / sink contracts and implementations
    - models: Frame and job data models

Example:
    from video_upscaler.pipeline import FramePipelineDriver
    from video_upscaler.stream import VideoFileSource, VideoFileSink

    driver = FramePipelineDriver(scale_factor=2)
    driver.start(VideoFileSource("in.mp4"), VideoFileSink("out.mp4"))
    driver.run()
"""

__version__ = "0.1.0"
__author__ = "VideoUpscaler Project"

__all__ = [
    "__version__",
]

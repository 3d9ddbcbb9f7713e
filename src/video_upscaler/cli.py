"""
Command Line Entry Point
========================

Upscale a single video file without running the HTTP service.

Usage:
    video-upscaler input.mp4
    video-upscaler input.mp4 -s 3 -o output/big.mp4
    video-upscaler input.avi --fourcc MJPG --fps 25

Exit codes:
    0   - job completed
    1   - job failed (source, sink or frame format error)
    2   - invalid scale factor, dimensions or frame rate
    130 - interrupted (job cancelled, partial output discarded)
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from video_upscaler.config import output_filename, settings
from video_upscaler.errors import InvalidDimensions, UpscalerError
from video_upscaler.models.job import JobState, ProgressReport
from video_upscaler.pipeline import FramePipelineDriver
from video_upscaler.stream import VideoFileSink, VideoFileSource


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="video-upscaler",
        description="Upscale a video with bilinear interpolation and sharpening",
    )
    parser.add_argument(
        "input",
        type=str,
        help="Path of the video to upscale",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output path (default: output directory + upscaled_<N>x_<name>)",
    )
    parser.add_argument(
        "-s", "--scale",
        type=int,
        default=settings.pipeline.default_scale_factor,
        help=(
            f"Integer scale factor "
            f"({settings.pipeline.min_scale_factor}-{settings.pipeline.max_scale_factor}, "
            f"default: {settings.pipeline.default_scale_factor})"
        ),
    )
    parser.add_argument(
        "--fps",
        type=float,
        default=settings.pipeline.target_frame_rate,
        help=f"Target frame rate (default: {settings.pipeline.target_frame_rate})",
    )
    parser.add_argument(
        "--fourcc",
        type=str,
        default=settings.output.fourcc,
        help=f"OpenCV codec code (default: {settings.output.fourcc})",
    )
    return parser


def _log_progress(report: ProgressReport) -> None:
    if report.state is JobState.RUNNING and report.frames_processed % 10 != 0:
        return
    logger.info(
        f"{report.percent:3d}% ({report.frames_processed}/"
        f"{report.estimated_total_frames} frames) {report.state.value}"
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    input_path = Path(args.input)
    if args.output:
        output_path = Path(args.output)
    else:
        output_path = Path(settings.output.directory) / output_filename(
            settings, input_path, args.scale
        )

    try:
        driver = FramePipelineDriver(
            scale_factor=args.scale,
            min_scale_factor=settings.pipeline.min_scale_factor,
            max_scale_factor=settings.pipeline.max_scale_factor,
            target_frame_rate=args.fps,
            log_every_n_frames=settings.pipeline.log_every_n_frames,
        )
    except (InvalidDimensions, ValueError) as e:
        logger.error(str(e))
        return 2

    driver.add_observer(_log_progress)

    sink: Optional[VideoFileSink] = None
    source: Optional[VideoFileSource] = None
    try:
        sink = VideoFileSink(output_path, frame_rate=args.fps, fourcc=args.fourcc)
        source = VideoFileSource(input_path)
        driver.start(source, sink)
        state = driver.run()
    except KeyboardInterrupt:
        logger.warning("Interrupted, discarding partial output")
        if driver.cancel():
            driver.step()
        else:
            # Interrupted before the job reached RUNNING
            if source is not None:
                source.close()
            if sink is not None:
                sink.discard()
        return 130
    except InvalidDimensions as e:
        logger.error(str(e))
        return 2
    except (UpscalerError, ValueError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1

    if state is not JobState.COMPLETED:
        return 1

    logger.info(f"Upscaled video written to {driver.artifact}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
CLI Tests
=========
"""

import cv2
import pytest

from conftest import write_test_video
from video_upscaler.cli import build_parser, main
from video_upscaler.models import Dimensions
from video_upscaler.pipeline import FramePipelineDriver


class TestParser:

    def test_defaults(self):
        args = build_parser().parse_args(["clip.mp4"])
        assert args.input == "clip.mp4"
        assert args.output is None
        assert args.scale == 2

    def test_requires_input(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    """Exit codes of the CLI entry point."""

    def test_missing_input(self, tmp_path):
        code = main([str(tmp_path / "missing.avi"), "-o", str(tmp_path / "out.avi")])
        assert code == 1

    @pytest.mark.parametrize("scale", ["0", "1", "9"])
    def test_invalid_scale(self, tmp_path, scale):
        video = write_test_video(tmp_path / "in.avi")
        assert main([str(video), "-s", scale, "-o", str(tmp_path / "out.avi")]) == 2

    @pytest.mark.parametrize("fps", ["0", "-5"])
    def test_invalid_frame_rate(self, tmp_path, fps):
        video = write_test_video(tmp_path / "in.avi")
        assert main([str(video), "--fps", fps, "-o", str(tmp_path / "out.avi")]) == 2

    def test_interrupt_during_start_removes_partial(self, tmp_path, monkeypatch):
        video = write_test_video(tmp_path / "in.avi")
        output = tmp_path / "out.avi"

        def interrupted_start(self, source, sink):
            sink.arm(Dimensions(32, 16))
            raise KeyboardInterrupt

        monkeypatch.setattr(FramePipelineDriver, "start", interrupted_start)

        code = main([str(video), "--fourcc", "MJPG", "-o", str(output)])

        assert code == 130
        assert not (tmp_path / "out.partial.avi").exists()
        assert not output.exists()

    def test_invalid_fourcc(self, tmp_path):
        video = write_test_video(tmp_path / "in.avi")
        code = main([str(video), "--fourcc", "XY", "-o", str(tmp_path / "out.avi")])
        assert code == 1

    def test_upscales_file(self, tmp_path):
        video = write_test_video(tmp_path / "in.avi", width=10, height=6)
        output = tmp_path / "out" / "big.avi"

        code = main([
            str(video),
            "-s", "3",
            "-o", str(output),
            "--fourcc", "MJPG",
            "--fps", "10",
        ])

        assert code == 0
        assert output.exists()
        assert not (tmp_path / "out" / "big.partial.avi").exists()

        capture = cv2.VideoCapture(str(output))
        assert int(capture.get(cv2.CAP_PROP_FRAME_WIDTH)) == 30
        assert int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT)) == 18
        capture.release()

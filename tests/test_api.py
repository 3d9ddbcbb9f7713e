"""
HTTP Service Tests
==================

Endpoint behaviour of the FastAPI job service.
"""

import asyncio
import logging
import time

import pytest
from fastapi.testclient import TestClient

from conftest import write_test_video
from video_upscaler.config import settings
from video_upscaler.main import app, run_job
from video_upscaler.models import JobState
from video_upscaler.pipeline import FramePipelineDriver
from video_upscaler.stream import MemoryFrameSink, MemoryFrameSource


def wait_for_state(client, states, timeout=15.0):
    """Poll /jobs/current until the job reaches one of the given states."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        body = client.get("/jobs/current").json()
        if body["state"] in states:
            return body
        time.sleep(0.05)
    pytest.fail(f"job did not reach {states} within {timeout}s")


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(settings.output, "fourcc", "MJPG")
    with TestClient(app) as test_client:
        yield test_client


class TestServiceEndpoints:
    """Tests for info and probe endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        body = response.json()
        assert body["service"] == "VideoUpscaler"
        assert body["scale_factor_range"] == [
            settings.pipeline.min_scale_factor,
            settings.pipeline.max_scale_factor,
        ]

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ready_when_idle(self, client):
        response = client.get("/ready")
        assert response.status_code == 200
        assert response.json()["state"] == "IDLE"

    def test_current_job_idle(self, client):
        body = client.get("/jobs/current").json()
        assert body["state"] == "IDLE"
        assert body["progress"] == 0
        assert body["input_path"] is None

    def test_metrics(self, client):
        body = client.get("/metrics").json()
        assert body["jobs_started"] == 0
        assert "uptime_seconds" in body


class TestJobEndpoints:
    """Tests for job creation and cancellation."""

    def test_invalid_scale_factor(self, client, tmp_path):
        video = write_test_video(tmp_path / "in.avi")
        response = client.post("/jobs", json={"input_path": str(video), "scale_factor": 7})
        assert response.status_code == 422
        assert "Scale factor" in response.json()["error"]

    def test_missing_input(self, client, tmp_path):
        response = client.post("/jobs", json={"input_path": str(tmp_path / "missing.avi")})
        assert response.status_code == 400

    def test_missing_body_field(self, client):
        response = client.post("/jobs", json={})
        assert response.status_code == 422

    def test_cancel_without_job(self, client):
        response = client.post("/jobs/current/cancel")
        assert response.status_code == 409
        assert response.json()["state"] == "IDLE"

    def test_job_runs_to_completion(self, client, tmp_path):
        video = write_test_video(tmp_path / "in.avi", frames=4)
        output = tmp_path / "out" / "big.avi"

        response = client.post(
            "/jobs",
            json={"input_path": str(video), "scale_factor": 2, "output_path": str(output)},
        )
        assert response.status_code == 202
        created = response.json()
        assert created["output_path"] == str(output)
        assert created["destination"] == {"width": 32, "height": 16}

        body = wait_for_state(client, {"COMPLETED", "CANCELLED"})

        assert body["state"] == "COMPLETED"
        assert body["progress"] == 100
        assert body["frames_processed"] == 4
        assert body["artifact"] == str(output)
        assert output.exists()

        metrics = client.get("/metrics").json()
        assert metrics["jobs_completed"] == 1
        assert client.get("/ready").status_code == 200

    def test_default_output_name(self, client, tmp_path, monkeypatch):
        monkeypatch.setattr(settings.output, "directory", str(tmp_path / "generated"))
        monkeypatch.setattr(settings.output, "container", "avi")
        video = write_test_video(tmp_path / "holiday.avi")

        response = client.post("/jobs", json={"input_path": str(video), "scale_factor": 3})
        assert response.status_code == 202

        wait_for_state(client, {"COMPLETED", "CANCELLED"})
        assert (tmp_path / "generated" / "upscaled_3x_holiday.avi").exists()

    def test_cancel_running_job(self, client, tmp_path, monkeypatch):
        monkeypatch.setattr(settings.pipeline, "tick_interval_seconds", 0.2)
        video = write_test_video(tmp_path / "long.avi", frames=20)
        output = tmp_path / "cancelled.avi"

        response = client.post(
            "/jobs",
            json={"input_path": str(video), "output_path": str(output)},
        )
        assert response.status_code == 202

        response = client.post("/jobs/current/cancel")
        assert response.status_code == 202
        assert response.json()["status"] == "cancelling"

        body = wait_for_state(client, {"COMPLETED", "CANCELLED"})

        assert body["state"] == "CANCELLED"
        assert body["progress"] < 100
        assert "artifact" not in body
        assert not output.exists()
        assert not (tmp_path / "cancelled.partial.avi").exists()
        assert client.get("/metrics").json()["jobs_cancelled"] == 1


class TestProgressStream:
    """Tests for the /ws/progress WebSocket."""

    def test_streams_final_report_and_handles_disconnect(self, client, tmp_path):
        video = write_test_video(tmp_path / "in.avi")
        response = client.post(
            "/jobs",
            json={"input_path": str(video), "output_path": str(tmp_path / "out.avi")},
        )
        assert response.status_code == 202
        wait_for_state(client, {"COMPLETED", "CANCELLED"})

        # Leaving the block only returns once the handler has exited
        with client.websocket_connect("/ws/progress") as websocket:
            report = websocket.receive_json()

        assert report["percent"] == 100
        assert report["state"] == "COMPLETED"
        assert client.get("/health").status_code == 200


class TestJobLoop:
    """Tests for the background job loop."""

    def test_unexpected_error_is_logged(self, red_2x2, caplog):
        class BrokenSource(MemoryFrameSource):
            def pull(self):
                raise RuntimeError("decoder crashed")

        driver = FramePipelineDriver()
        sink = MemoryFrameSink()
        driver.start(BrokenSource([red_2x2], width=2, height=2), sink)

        with caplog.at_level(logging.ERROR, logger="video_upscaler.main"):
            asyncio.run(run_job(driver))

        assert driver.state is JobState.CANCELLED
        assert sink.discard_calls == 1
        assert "decoder crashed" in caplog.text

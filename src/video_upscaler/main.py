"""
VideoUpscaler Main Application
==============================

FastAPI entry point for the upscaling job service.

One FramePipelineDriver serves one job at a time. A background asyncio
task advances the driver one frame per tick and yields to the event loop
between frames, so HTTP requests (status, cancel) are served while a job
is running.

Endpoints:
    GET  /                      - Service information
    GET  /health                - Liveness probe
    GET  /ready                 - Readiness probe (503 while a job is running)
    POST /jobs                  - Start an upscaling job
    GET  /jobs/current          - State and progress of the current job
    POST /jobs/current/cancel   - Request cancellation at the next frame
    GET  /metrics               - Driver metrics
    WS   /ws/progress           - Real-time progress stream
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI, WebSocket
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from video_upscaler.config import output_filename, settings
from video_upscaler.errors import (
    InvalidDimensions,
    JobStateError,
    SinkError,
    SourceError,
    UpscalerError,
)
from video_upscaler.pipeline import FramePipelineDriver
from video_upscaler.stream import VideoFileSink, VideoFileSource


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_shutdown_flag: bool = False
_driver: Optional[FramePipelineDriver] = None
_job_task: Optional[asyncio.Task] = None
_input_path: Optional[str] = None
_output_path: Optional[str] = None
_startup_time: float = 0.0


def get_driver() -> Optional[FramePipelineDriver]:
    return _driver


# =============================================================================
# Request Models
# =============================================================================

class JobRequest(BaseModel):
    """Body of POST /jobs."""

    input_path: str = Field(..., description="Path of the video to upscale")
    scale_factor: Optional[int] = Field(
        default=None,
        description="Integer scale factor (defaults to pipeline.default_scale_factor)",
    )
    output_path: Optional[str] = Field(
        default=None,
        description="Destination path (defaults to output.directory + template)",
    )


# =============================================================================
# Job Loop
# =============================================================================

async def run_job(driver: FramePipelineDriver) -> None:
    """Advance the driver one frame per tick until the job ends."""
    tick = settings.pipeline.tick_interval_seconds

    try:
        while not _shutdown_flag and driver.step():
            await asyncio.sleep(tick)
    except asyncio.CancelledError:
        # Honour cancellation at the frame boundary so the sink is discarded
        if driver.cancel():
            driver.step()
        raise
    except UpscalerError as e:
        logger.error(f"Job failed: {type(e).__name__}: {e}")
        return
    except Exception as e:
        # step() has already aborted the job and discarded the sink
        logger.exception(f"Job loop crashed: {type(e).__name__}: {e}")
        return

    if _shutdown_flag and driver.cancel():
        driver.step()

    logger.info(f"Job loop finished in state {driver.state.value}")


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _driver, _job_task, _input_path, _output_path, _startup_time, _shutdown_flag

    _startup_time = time.time()
    _shutdown_flag = False
    _job_task = None
    _input_path = None
    _output_path = None
    logger.info(f"Starting {settings.service.name} {settings.service.version}")

    _driver = FramePipelineDriver(
        scale_factor=settings.pipeline.default_scale_factor,
        min_scale_factor=settings.pipeline.min_scale_factor,
        max_scale_factor=settings.pipeline.max_scale_factor,
        target_frame_rate=settings.pipeline.target_frame_rate,
        log_every_n_frames=settings.pipeline.log_every_n_frames,
    )

    yield

    # Shutdown
    logger.info("Shutting down gracefully...")
    _shutdown_flag = True

    if _job_task and not _job_task.done():
        _job_task.cancel()
        try:
            await _job_task
        except asyncio.CancelledError:
            pass

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="VideoUpscaler",
    description="Frame-by-frame bilinear video upscaling with sharpening",
    version=settings.service.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "VideoUpscaler",
        "version": settings.service.version,
        "name": settings.service.name,
        "status": "running",
        "scale_factor_range": [
            settings.pipeline.min_scale_factor,
            settings.pipeline.max_scale_factor,
        ],
        "target_frame_rate": settings.pipeline.target_frame_rate,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe - always 200 while the process is up."""
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness probe - can the service accept a new job?

    Returns 503 while a job is running.
    """
    driver = get_driver()

    if driver is not None and not driver.is_running:
        return JSONResponse({"status": "ready", "state": driver.state.value})

    return JSONResponse(
        {
            "status": "busy" if driver is not None else "not_ready",
            "state": driver.state.value if driver is not None else None,
        },
        status_code=503,
    )


@app.post("/jobs")
async def create_job(request: JobRequest) -> JSONResponse:
    """Validate the request, open source and sink, and start the job loop."""
    global _job_task, _input_path, _output_path

    driver = get_driver()
    if driver is None:
        return JSONResponse({"error": "Service not initialized"}, status_code=503)

    if driver.is_running:
        return JSONResponse(
            {"error": "A job is already running", **driver.get_status()},
            status_code=409,
        )

    scale_factor = (
        request.scale_factor
        if request.scale_factor is not None
        else settings.pipeline.default_scale_factor
    )

    try:
        driver.set_scale_factor(scale_factor)
    except InvalidDimensions as e:
        return JSONResponse({"error": str(e)}, status_code=422)

    input_path = Path(request.input_path)
    if request.output_path:
        output_path = Path(request.output_path)
    else:
        output_path = Path(settings.output.directory) / output_filename(
            settings, input_path, scale_factor
        )

    try:
        source = VideoFileSource(input_path)
    except SourceError as e:
        return JSONResponse({"error": str(e)}, status_code=400)

    try:
        sink = VideoFileSink(
            output_path,
            frame_rate=settings.pipeline.target_frame_rate,
            fourcc=settings.output.fourcc,
        )
        driver.start(source, sink)
    except InvalidDimensions as e:
        source.close()
        return JSONResponse({"error": str(e)}, status_code=422)
    except JobStateError as e:
        source.close()
        return JSONResponse({"error": str(e)}, status_code=409)
    except (SinkError, ValueError) as e:
        source.close()
        return JSONResponse({"error": str(e)}, status_code=500)

    _input_path = str(input_path)
    _output_path = str(output_path)
    _job_task = asyncio.create_task(run_job(driver), name="upscale_job")

    return JSONResponse(
        {
            "input_path": _input_path,
            "output_path": _output_path,
            **driver.get_status(),
        },
        status_code=202,
    )


@app.get("/jobs/current")
async def current_job() -> JSONResponse:
    """State and progress of the current (or last) job."""
    driver = get_driver()
    if driver is None:
        return JSONResponse({"error": "Service not initialized"}, status_code=503)

    return JSONResponse({
        "input_path": _input_path,
        "output_path": _output_path,
        **driver.get_status(),
    })


@app.post("/jobs/current/cancel")
async def cancel_job() -> JSONResponse:
    """Request cancellation; it takes effect at the next frame boundary."""
    driver = get_driver()
    if driver is None:
        return JSONResponse({"error": "Service not initialized"}, status_code=503)

    if not driver.cancel():
        return JSONResponse(
            {"error": "No running job to cancel", "state": driver.state.value},
            status_code=409,
        )

    return JSONResponse({"status": "cancelling", **driver.get_status()}, status_code=202)


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    driver = get_driver()

    driver_metrics = driver.get_metrics() if driver else {}

    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        **driver_metrics,
    })


# =============================================================================
# WebSocket Endpoints
# =============================================================================

async def _watch_disconnect(websocket: WebSocket, disconnected: asyncio.Event) -> None:
    """Read (and ignore) client messages until the client goes away."""
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    except Exception as e:
        logger.debug(f"WebSocket receive ended: {e}")
    finally:
        disconnected.set()


@app.websocket("/ws/progress")
async def progress_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint pushing each new progress report."""
    await websocket.accept()
    logger.info("Client connected to /ws/progress")

    disconnected = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(websocket, disconnected))

    last_sent = None
    try:
        while not _shutdown_flag and not disconnected.is_set():
            driver = get_driver()
            report = driver.last_progress if driver else None
            if report is not None and report != last_sent:
                await websocket.send_json(report.model_dump(mode="json"))
                last_sent = report
            try:
                await asyncio.wait_for(disconnected.wait(), timeout=0.25)
            except asyncio.TimeoutError:
                pass

    except Exception as e:
        logger.warning(f"WebSocket error: {e}")
    finally:
        watcher.cancel()
        logger.info("Client disconnected from /ws/progress")


# =============================================================================
# Main Entry Point
# =============================================================================

def serve() -> None:
    """Run the service with uvicorn."""
    import uvicorn

    uvicorn.run(
        "video_upscaler.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=False,
    )


if __name__ == "__main__":
    serve()

"""
VideoUpscaler Configuration
===========================

This module handles configuration loading for the upscaling service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    UPSCALER_SCALE_FACTOR  -> pipeline.default_scale_factor
    UPSCALER_TARGET_FPS    -> pipeline.target_frame_rate
    UPSCALER_TICK_INTERVAL -> pipeline.tick_interval_seconds
    UPSCALER_OUTPUT_DIR    -> output.directory
    UPSCALER_FOURCC        -> output.fourcc
    UPSCALER_PORT          -> server.port
    UPSCALER_LOG_LEVEL     -> logging.level
    UPSCALER_LOG_FORMAT    -> logging.format
    PORT                   -> server.port (container platforms)

Example:
    from video_upscaler.config import settings

    print(settings.pipeline.default_scale_factor)
    print(settings.output.directory)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, model_validator


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="video-upscaler", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class PipelineConfig(BaseModel):
    """Frame pipeline configuration."""

    default_scale_factor: int = Field(
        default=2,
        ge=1,
        description="Scale factor used when a job does not specify one",
    )
    min_scale_factor: int = Field(
        default=2,
        ge=1,
        description="Smallest accepted scale factor",
    )
    max_scale_factor: int = Field(
        default=4,
        ge=1,
        description="Largest accepted scale factor",
    )
    target_frame_rate: float = Field(
        default=30.0,
        gt=0,
        description="Frame rate used to estimate total frames and to encode output",
    )
    tick_interval_seconds: float = Field(
        default=0.0,
        ge=0,
        description="Pause between frame steps in the service loop",
    )
    log_every_n_frames: int = Field(
        default=30,
        ge=1,
        description="Log progress every N frames",
    )

    @model_validator(mode="after")
    def _check_scale_range(self) -> "PipelineConfig":
        if self.max_scale_factor < self.min_scale_factor:
            raise ValueError("max_scale_factor must be >= min_scale_factor")
        if not self.min_scale_factor <= self.default_scale_factor <= self.max_scale_factor:
            raise ValueError("default_scale_factor must lie within the scale factor range")
        return self


class OutputConfig(BaseModel):
    """Encoded output configuration."""

    directory: str = Field(
        default="./output",
        description="Directory for encoded videos when no output path is given",
    )
    fourcc: str = Field(
        default="mp4v",
        min_length=4,
        max_length=4,
        description="OpenCV four character codec code",
    )
    container: str = Field(
        default="mp4",
        description="Container extension for generated output names",
    )
    filename_template: str = Field(
        default="upscaled_{scale}x_{stem}.{container}",
        description="Output name template (fields: scale, stem, container)",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for VideoUpscaler.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    # Find config file
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path("/app/config.yaml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    # Apply environment variable overrides
    _apply_env_overrides(config_data)

    # Build settings object
    settings = Settings.model_validate(config_data)

    return settings


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Pipeline settings
    if env_scale := os.environ.get("UPSCALER_SCALE_FACTOR"):
        config_data.setdefault("pipeline", {})["default_scale_factor"] = int(env_scale)
    if env_fps := os.environ.get("UPSCALER_TARGET_FPS"):
        config_data.setdefault("pipeline", {})["target_frame_rate"] = float(env_fps)
    if env_tick := os.environ.get("UPSCALER_TICK_INTERVAL"):
        config_data.setdefault("pipeline", {})["tick_interval_seconds"] = float(env_tick)

    # Output settings
    if env_dir := os.environ.get("UPSCALER_OUTPUT_DIR"):
        config_data.setdefault("output", {})["directory"] = env_dir
    if env_fourcc := os.environ.get("UPSCALER_FOURCC"):
        config_data.setdefault("output", {})["fourcc"] = env_fourcc

    # Server settings (container platforms use PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("UPSCALER_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("UPSCALER_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log
    if env_format := os.environ.get("UPSCALER_LOG_FORMAT"):
        config_data.setdefault("logging", {})["format"] = env_format


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


def output_filename(settings: Settings, input_path: Path, scale_factor: int) -> str:
    """Build the default output file name for an input video."""
    return settings.output.filename_template.format(
        scale=scale_factor,
        stem=input_path.stem,
        container=settings.output.container,
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)

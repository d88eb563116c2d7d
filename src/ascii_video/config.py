"""
ascii-video Configuration
=========================

This module handles configuration loading for the ASCII video service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    ASCII_VIDEO_STORAGE_DIR      -> storage.directory
    ASCII_VIDEO_STORAGE_CAPACITY -> storage.capacity
    ASCII_VIDEO_MAX_SAMPLES      -> sampler.max_samples
    ASCII_VIDEO_CHARS            -> converter.chars
    ASCII_VIDEO_LOG_LEVEL        -> logging.level
    ASCII_VIDEO_LOG_FORMAT       -> logging.format
    PORT / ASCII_VIDEO_PORT      -> server.port

Example:
    from ascii_video.config import settings

    print(settings.storage.directory)
    print(settings.export.default_fps)
"""

import os
import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field

from ascii_video.converter.protocol import ConverterSettings


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class AppConfig(BaseModel):
    """Service identification."""

    name: str = Field(default="ascii-video", description="Service name")
    version: str = Field(default="0.1.0", description="Service version")


class SamplerConfig(BaseModel):
    """Preview frame sampling."""

    max_samples: int = Field(default=100, ge=1, description="Maximum cached preview frames")
    samples_per_second: int = Field(default=10, ge=1, description="Sampling density")
    upload_dir: Optional[str] = Field(
        default=None,
        description="Directory for uploaded videos (None = system temp dir)",
    )


class ExportConfig(BaseModel):
    """Export defaults."""

    default_fps: int = Field(default=10, ge=1, le=30, description="Default output FPS")
    default_width: int = Field(default=300, ge=40, le=720, description="Default ASCII width")


class ContainerConfig(BaseModel):
    """Text container encoding."""

    chunk_size: int = Field(default=8192, ge=3, description="Payload base64 chunk size")
    compress_level: int = Field(default=9, ge=0, le=9, description="gzip compression level")
    default_base_name: str = Field(
        default="ascii-video",
        min_length=1,
        description="Base filename when the source has none",
    )


class StorageConfig(BaseModel):
    """Output history storage."""

    directory: str = Field(default="./data", description="Directory of the history file")
    key: str = Field(default="ascii_video_outputs", description="Storage key")
    capacity: int = Field(default=20, ge=1, description="Maximum records kept")


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: Literal["json", "text"] = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for ascii-video.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    app: AppConfig = Field(default_factory=AppConfig)
    sampler: SamplerConfig = Field(default_factory=SamplerConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    converter: ConverterSettings = Field(default_factory=ConverterSettings)
    container: ContainerConfig = Field(default_factory=ContainerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
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
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Storage
    if env_dir := os.environ.get("ASCII_VIDEO_STORAGE_DIR"):
        config_data.setdefault("storage", {})["directory"] = env_dir
    if env_capacity := os.environ.get("ASCII_VIDEO_STORAGE_CAPACITY"):
        config_data.setdefault("storage", {})["capacity"] = int(env_capacity)

    # Sampling and rendering
    if env_samples := os.environ.get("ASCII_VIDEO_MAX_SAMPLES"):
        config_data.setdefault("sampler", {})["max_samples"] = int(env_samples)
    if env_chars := os.environ.get("ASCII_VIDEO_CHARS"):
        config_data.setdefault("converter", {})["chars"] = env_chars

    # Server (PORT wins for container platforms)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("ASCII_VIDEO_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging
    if env_log := os.environ.get("ASCII_VIDEO_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log
    if env_format := os.environ.get("ASCII_VIDEO_LOG_FORMAT"):
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


# =============================================================================
# Global Settings Instance
# =============================================================================

settings = load_config()
setup_logging(settings)

"""Application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings, read from SHADESTAG_* environment variables."""

    # Paths
    ROOT_DIR: Path = Path.cwd()  # Workspace root, sources and cache are relative to it
    CACHE_DIR: str = ".dark-image-cache"

    # Logging
    DEBUG: bool = False  # Verbose logging only, no behavioral effect

    # Remote sources
    HTTP_TIMEOUT: float = 30.0  # Seconds

    model_config = {"env_prefix": "SHADESTAG_"}

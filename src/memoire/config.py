"""Configuration management for memoire application.

This module provides centralized configuration management using environment variables
and Streamlit secrets as fallback.
"""

import os
from typing import Any

import streamlit as st

from .logging_config import get_logger

logger = get_logger(__name__)

MIB = 1024 * 1024


class Config:
    """Centralized configuration management using environment variables."""

    def __init__(self):
        """Initialize configuration."""
        self._cache = {}

    def get(self, key: str, default: Any = None, cast_type: type = str) -> Any:
        """Get configuration value from environment variables or Streamlit secrets.

        Args:
            key: Configuration key
            default: Default value if not found
            cast_type: Type to cast the value to (str, int, bool, float)

        Returns:
            Configuration value cast to the specified type
        """
        cache_key = f"{key}:{cast_type.__name__}"
        if cache_key in self._cache:
            return self._cache[cache_key]

        value = os.getenv(key)

        if value is None:
            value = self._get_secret(key)

        if value is None:
            value = default

        if value is not None:
            try:
                if cast_type is bool:
                    if isinstance(value, str):
                        value = value.lower() in ("true", "1", "yes", "on")
                    else:
                        value = bool(value)
                elif cast_type is not str or not isinstance(value, str):
                    value = cast_type(value)
            except (ValueError, TypeError) as e:
                logger.warning("config_cast_failed", key=key, cast_type=cast_type.__name__, error=str(e))
                value = default

        self._cache[cache_key] = value
        return value

    @staticmethod
    def _get_secret(key: str) -> Any:
        """Read a key from st.secrets, which raises when no secrets file exists."""
        try:
            return st.secrets.get(key)
        except Exception:  # nosec B110
            # No secrets file or no Streamlit context
            return None

    def get_required(self, key: str, cast_type: type = str) -> Any:
        """Get required configuration value.

        Raises:
            ValueError: If the required configuration is not found
        """
        value = self.get(key, cast_type=cast_type)
        if value is None:
            raise ValueError(f"Required configuration '{key}' not found")
        return value

    def is_development(self) -> bool:
        """Check if running in development mode."""
        environment = self.get("ENVIRONMENT", "development").lower()
        return environment in ["development", "dev", "local", "test"]

    def is_production(self) -> bool:
        """Check if running in production mode."""
        environment = self.get("ENVIRONMENT", "development").lower()
        return environment in ["production", "prod"]

    def clear_cache(self):
        """Clear configuration cache."""
        self._cache.clear()


_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def get_env(key: str, default: Any = None, cast_type: type = str) -> Any:
    """Get environment variable with type casting."""
    return get_config().get(key, default, cast_type)


def get_required_env(key: str, cast_type: type = str) -> Any:
    """Get required environment variable.

    Raises:
        ValueError: If the required environment variable is not found
    """
    return get_config().get_required(key, cast_type)


def is_development() -> bool:
    """Check if running in development mode."""
    return get_config().is_development()


def is_production() -> bool:
    """Check if running in production mode."""
    return get_config().is_production()


# Common configuration getters
def get_project_id() -> str:
    """Get Google Cloud project ID."""
    return str(get_required_env("GOOGLE_CLOUD_PROJECT"))


def get_media_bucket() -> str:
    """Get the GCS bucket holding uploaded media."""
    return str(get_required_env("GCS_MEDIA_BUCKET"))


def get_database_bucket() -> str | None:
    """Get the GCS bucket used to back up the DuckDB file, if any."""
    return get_env("GCS_DATABASE_BUCKET")


def get_public_base_url() -> str:
    """Get the base URL that public object URLs are built from."""
    return str(get_env("GCS_PUBLIC_BASE_URL", "https://storage.googleapis.com")).rstrip("/")


def get_iap_audience() -> str | None:
    """Get the expected audience of Cloud IAP assertions (/projects/NUMBER/global/backendServices/ID)."""
    return get_env("IAP_AUDIENCE")


def get_database_path() -> str:
    """Get local DuckDB file path."""
    return str(get_env("DATABASE_PATH", "/tmp/memoire/memories.db"))  # nosec B108


def get_max_batch_bytes() -> int:
    """Aggregate upload size limit per batch, in bytes."""
    return int(get_env("MAX_BATCH_SIZE_MB", 15, int)) * MIB


def get_thumbnail_settings() -> tuple[int, int, int]:
    """Get (max_width, max_height, jpeg_quality) for video thumbnails."""
    return (
        get_env("THUMBNAIL_MAX_WIDTH", 800, int),
        get_env("THUMBNAIL_MAX_HEIGHT", 600, int),
        get_env("THUMBNAIL_QUALITY", 70, int),
    )


def get_carousel_interval() -> float:
    """Seconds between hero carousel slides."""
    return float(get_env("CAROUSEL_INTERVAL_SECONDS", 3.0, float))


def get_environment() -> str:
    """Get current environment."""
    return str(get_env("ENVIRONMENT", "development"))


def get_log_level() -> str:
    """Get log level."""
    return str(get_env("LOG_LEVEL", "INFO"))

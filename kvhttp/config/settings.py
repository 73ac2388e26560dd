"""
KV-HTTP Configuration Settings

This module contains all configuration constants for the KV-HTTP server.
Values that operators commonly change can be overridden from the environment.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Server configuration settings."""

    # Network settings
    HOST: str = os.environ.get("KV_HTTP_HOST", "0.0.0.0")
    PORT: int = int(os.environ.get("KV_HTTP_PORT", "8080"))

    # Worker threads running the request handler
    MAX_WORKERS: int = int(os.environ.get("KV_HTTP_WORKERS", "32"))

    # Request framing limits
    MAX_HEADER_SIZE: int = 16 * 1024
    MAX_BODY_SIZE: int = int(os.environ.get("KV_HTTP_MAX_BODY_SIZE", str(1024 * 1024)))

    # Connection settings
    CONNECTION_TIMEOUT: int = 300  # Seconds before idle connection is closed

    # Every response is labelled with this media type
    CONTENT_TYPE: str = "application/json"

    # Logging settings
    DEBUG: bool = os.environ.get("KV_HTTP_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("KV_HTTP_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()

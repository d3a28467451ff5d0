"""
RESP-KV Configuration Settings

This module contains all configuration constants for the RESP-KV server.
Values can be overridden through environment variables.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Server configuration settings."""

    # Network settings
    HOST: str = os.environ.get("RESPKV_HOST", "127.0.0.1")
    PORT: int = int(os.environ.get("RESPKV_PORT", "6379"))

    # Connection settings
    READ_BUFFER_SIZE: int = 1024  # Bytes per read; requests may span several reads

    # Protocol settings
    MAX_BULK_LENGTH: int = 512 * 1024 * 1024  # Declared bulk lengths at or above this are rejected
    MAX_NESTING_DEPTH: int = 64

    # Persistence settings
    SNAPSHOT_PATH: str = os.environ.get("RESPKV_SNAPSHOT_PATH", "respkv.snapshot")

    # Logging settings
    DEBUG: bool = os.environ.get("RESPKV_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("RESPKV_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()

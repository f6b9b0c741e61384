"""Core module initialization."""

from .config_manager import BlobSasConfig, ConfigManager
from .logging_config import log_with_context, setup_logging

__all__ = [
    "BlobSasConfig",
    "ConfigManager",
    "log_with_context",
    "setup_logging",
]

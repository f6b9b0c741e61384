"""
Configuration management for blobsas.

Handles loading, validation, and access to configuration settings.
Account credentials are never part of the configuration.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator, ValidationError, ConfigDict

from blobsas.sas.builder import DEFAULT_API_VERSION, VALID_PROTOCOLS
from blobsas.sas.canonicalizer import API_VERSION_PATTERN
from blobsas.storage.endpoint import DEFAULT_ENDPOINT_SUFFIX

logger = logging.getLogger(__name__)

ENV_PREFIX = "BLOBSAS_"


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class SasConfig(BaseModel):
    """SAS issuance defaults."""
    api_version: str = DEFAULT_API_VERSION
    default_validity_minutes: int = Field(default=15, gt=0)
    clock_skew_minutes: int = Field(
        default=1,
        ge=0,
        description="How far the start time is backdated to absorb clock skew"
    )
    protocol: Optional[str] = None
    max_concurrency: int = Field(
        default=16,
        gt=0,
        description="Maximum concurrent existence checks in a checked batch"
    )

    @field_validator("api_version")
    @classmethod
    def validate_api_version(cls, v: str) -> str:
        """Validate API version format (YYYY-MM-DD)."""
        if not API_VERSION_PATTERN.fullmatch(v):
            raise ValueError("API version must be in format YYYY-MM-DD")
        return v

    @field_validator("protocol")
    @classmethod
    def validate_protocol(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in VALID_PROTOCOLS:
            raise ValueError(f"Protocol must be one of: {', '.join(VALID_PROTOCOLS)}")
        return v


class EndpointConfig(BaseModel):
    """Blob endpoint configuration."""
    scheme: str = "https"
    service: str = "blob"
    endpoint_suffix: str = DEFAULT_ENDPOINT_SUFFIX
    base_url: Optional[str] = Field(
        default=None,
        description="Custom account endpoint, e.g. an emulator at http://127.0.0.1:10000/devstoreaccount1"
    )

    @field_validator("scheme")
    @classmethod
    def validate_scheme(cls, v: str) -> str:
        if v not in ("http", "https"):
            raise ValueError("Scheme must be http or https")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: str = "text"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'blobsas.sas.builder': 'DEBUG'}"
    )


class BlobSasConfig(BaseModel):
    """Main blobsas configuration schema."""

    sas: SasConfig = Field(default_factory=SasConfig)

    endpoint: EndpointConfig = Field(default_factory=EndpointConfig)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(use_enum_values=True)


class ConfigManager:
    """
    Manages blobsas configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. Explicit overrides (e.g. CLI arguments)
    2. Environment variables (BLOBSAS_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def __init__(self):
        self._config: Optional[BlobSasConfig] = None
        self._config_file: Optional[Path] = None

    def load(
        self,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> BlobSasConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            overrides: Dictionary of explicit overrides

        Returns:
            Validated BlobSasConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.debug("Loading blobsas configuration")

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            self._config_file = Path(config_file)
            logger.info(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.debug(f"Applied {len(env_config)} environment variable overrides")

        if overrides:
            config_dict = self._merge_configs(config_dict, overrides)
            logger.debug(f"Applied {len(overrides)} explicit overrides")

        try:
            self._config = BlobSasConfig(**config_dict)
            logger.debug(f"Active configuration: {json.dumps(self._config.model_dump())}")
            return self._config
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        if api_version := os.getenv(f"{ENV_PREFIX}API_VERSION"):
            config.setdefault("sas", {})["api_version"] = api_version
        if validity := os.getenv(f"{ENV_PREFIX}VALIDITY_MINUTES"):
            config.setdefault("sas", {})["default_validity_minutes"] = int(validity)
        if skew := os.getenv(f"{ENV_PREFIX}CLOCK_SKEW_MINUTES"):
            config.setdefault("sas", {})["clock_skew_minutes"] = int(skew)
        if protocol := os.getenv(f"{ENV_PREFIX}PROTOCOL"):
            config.setdefault("sas", {})["protocol"] = protocol
        if concurrency := os.getenv(f"{ENV_PREFIX}MAX_CONCURRENCY"):
            config.setdefault("sas", {})["max_concurrency"] = int(concurrency)

        if suffix := os.getenv(f"{ENV_PREFIX}ENDPOINT_SUFFIX"):
            config.setdefault("endpoint", {})["endpoint_suffix"] = suffix
        if base_url := os.getenv(f"{ENV_PREFIX}BASE_URL"):
            config.setdefault("endpoint", {})["base_url"] = base_url

        if log_level := os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_file := os.getenv(f"{ENV_PREFIX}LOG_FILE"):
            config.setdefault("logging", {})["file"] = log_file

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def get_config(self) -> BlobSasConfig:
        """
        Get the loaded configuration.

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def reload(self) -> BlobSasConfig:
        """Reload configuration from the same file."""
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file)

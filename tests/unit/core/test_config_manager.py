"""
Tests for ConfigManager.
"""

import json

import pytest
import yaml
from pydantic import ValidationError

from blobsas.core.config_manager import (
    BlobSasConfig,
    ConfigManager,
    LogLevel,
    SasConfig,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove BLOBSAS_* variables that would leak into tests."""
    for name in [
        "BLOBSAS_API_VERSION",
        "BLOBSAS_VALIDITY_MINUTES",
        "BLOBSAS_CLOCK_SKEW_MINUTES",
        "BLOBSAS_PROTOCOL",
        "BLOBSAS_MAX_CONCURRENCY",
        "BLOBSAS_ENDPOINT_SUFFIX",
        "BLOBSAS_BASE_URL",
        "BLOBSAS_LOG_LEVEL",
        "BLOBSAS_LOG_FILE",
    ]:
        monkeypatch.delenv(name, raising=False)


class TestConfigManager:
    """Test suite for ConfigManager."""

    def test_load_defaults(self):
        """Test loading default configuration."""
        config = ConfigManager().load()

        assert config.sas.api_version == "2020-08-04"
        assert config.sas.default_validity_minutes == 15
        assert config.sas.clock_skew_minutes == 1
        assert config.sas.protocol is None
        assert config.endpoint.endpoint_suffix == "core.windows.net"
        assert config.logging.level == LogLevel.INFO

    def test_load_from_yaml_file(self, tmp_path):
        """Test loading configuration from YAML file."""
        config_file = tmp_path / "blobsas.yaml"
        config_file.write_text(yaml.dump({
            "sas": {"api_version": "2021-06-08", "default_validity_minutes": 60},
            "logging": {"level": "DEBUG"},
        }))

        config = ConfigManager().load(config_file=str(config_file))

        assert config.sas.api_version == "2021-06-08"
        assert config.sas.default_validity_minutes == 60
        assert config.logging.level == LogLevel.DEBUG

    def test_load_from_json_file(self, tmp_path):
        """Test loading configuration from JSON file."""
        config_file = tmp_path / "blobsas.json"
        config_file.write_text(json.dumps({"endpoint": {"endpoint_suffix": "core.chinacloudapi.cn"}}))

        config = ConfigManager().load(config_file=str(config_file))

        assert config.endpoint.endpoint_suffix == "core.chinacloudapi.cn"

    def test_empty_yaml_file(self, tmp_path):
        config_file = tmp_path / "empty.yml"
        config_file.write_text("")

        config = ConfigManager().load(config_file=str(config_file))

        assert config.sas.default_validity_minutes == 15

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            ConfigManager().load(config_file="/nonexistent/blobsas.yaml")

    def test_unsupported_format(self, tmp_path):
        config_file = tmp_path / "blobsas.toml"
        config_file.write_text("")

        with pytest.raises(ValueError, match="Unsupported config file format"):
            ConfigManager().load(config_file=str(config_file))

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        config_file = tmp_path / "blobsas.yaml"
        config_file.write_text(yaml.dump({"sas": {"default_validity_minutes": 60, "max_concurrency": 4}}))
        monkeypatch.setenv("BLOBSAS_VALIDITY_MINUTES", "5")
        monkeypatch.setenv("BLOBSAS_PROTOCOL", "https")
        monkeypatch.setenv("BLOBSAS_LOG_LEVEL", "warning")

        config = ConfigManager().load(config_file=str(config_file))

        assert config.sas.default_validity_minutes == 5
        assert config.sas.max_concurrency == 4
        assert config.sas.protocol == "https"
        assert config.logging.level == LogLevel.WARNING

    def test_explicit_overrides_win(self, monkeypatch):
        monkeypatch.setenv("BLOBSAS_API_VERSION", "2019-12-12")

        config = ConfigManager().load(overrides={"sas": {"api_version": "2021-08-06"}})

        assert config.sas.api_version == "2021-08-06"

    def test_invalid_api_version(self):
        with pytest.raises(ValidationError):
            ConfigManager().load(overrides={"sas": {"api_version": "latest"}})

    @pytest.mark.parametrize("version", ["2020-8-4", "2020-12-6", "2020-12-06x"])
    def test_api_version_requires_zero_padded_date(self, version):
        with pytest.raises(ValidationError):
            SasConfig(api_version=version)

    def test_invalid_protocol(self):
        with pytest.raises(ValidationError):
            SasConfig(protocol="ftp")

    @pytest.mark.parametrize("field", ["default_validity_minutes", "max_concurrency"])
    def test_non_positive_values(self, field):
        with pytest.raises(ValidationError):
            SasConfig(**{field: 0})

    def test_invalid_scheme(self):
        with pytest.raises(ValidationError):
            BlobSasConfig(endpoint={"scheme": "ftp"})

    def test_get_config_before_load(self):
        with pytest.raises(RuntimeError):
            ConfigManager().get_config()

    def test_reload(self, tmp_path):
        config_file = tmp_path / "blobsas.yaml"
        config_file.write_text(yaml.dump({"sas": {"clock_skew_minutes": 5}}))
        manager = ConfigManager()
        manager.load(config_file=str(config_file))

        config_file.write_text(yaml.dump({"sas": {"clock_skew_minutes": 2}}))
        config = manager.reload()

        assert config.sas.clock_skew_minutes == 2
        assert manager.get_config() is config

    def test_merge_is_deep(self):
        manager = ConfigManager()

        merged = manager._merge_configs(
            {"sas": {"api_version": "2020-08-04", "protocol": "https"}},
            {"sas": {"protocol": "https,http"}},
        )

        assert merged == {"sas": {"api_version": "2020-08-04", "protocol": "https,http"}}

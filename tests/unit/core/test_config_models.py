"""Tests for AutostartConfig, SystemConfig, PlatformConfig Pydantic models."""

import pytest
from pydantic import ValidationError

from autostart.core.models.config import AutostartConfig, PlatformConfig, SystemConfig


class TestPlatformConfig:
    def test_defaults(self):
        cfg = PlatformConfig()
        assert cfg.autostart_dir is None
        assert cfg.strict_command_validation is True
        assert cfg.command_timeout_seconds == 30
        assert cfg.elevated_command_timeout_seconds == 300
        assert cfg.use_pkexec is True

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            PlatformConfig(command_timeout_seconds=0)

    def test_extra_field_rejected(self):
        with pytest.raises(ValidationError, match="extra_field"):
            PlatformConfig(extra_field="boom")


class TestSystemConfig:
    def test_defaults(self):
        cfg = SystemConfig()
        assert cfg.log_level == "INFO"
        assert cfg.log_dir == "logs"
        assert cfg.webui_port == 8080
        assert cfg.dev_mode is False
        assert cfg.worker_threads == 4

    def test_worker_threads_lower_bound(self):
        with pytest.raises(ValidationError):
            SystemConfig(worker_threads=0)

    def test_extra_field_rejected(self):
        with pytest.raises(ValidationError):
            SystemConfig(nonexistent=True)


class TestAutostartConfig:
    def test_defaults(self):
        cfg = AutostartConfig()
        assert isinstance(cfg.system, SystemConfig)
        assert isinstance(cfg.platform, PlatformConfig)

    def test_round_trip_json(self):
        cfg = AutostartConfig(platform=PlatformConfig(autostart_dir="/tmp/a"))
        cfg2 = AutostartConfig(**cfg.model_dump())
        assert cfg == cfg2

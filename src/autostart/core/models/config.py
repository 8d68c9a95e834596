"""Configuration Pydantic models: AutostartConfig, SystemConfig, PlatformConfig."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PlatformConfig(BaseModel):
    """Settings consumed by the platform adapters."""

    model_config = ConfigDict(extra="forbid")

    autostart_dir: str | None = Field(
        default=None,
        description="Override for the startup folder / autostart directory (platform default when null)",
    )
    strict_command_validation: bool = Field(
        default=True,
        description="Reject create requests whose program cannot be resolved",
    )
    command_timeout_seconds: int = Field(
        default=30, ge=1, description="Timeout for service-manager subprocess calls"
    )
    elevated_command_timeout_seconds: int = Field(
        default=300,
        ge=1,
        description="Timeout for calls that wait on an authentication prompt (pkexec)",
    )
    use_pkexec: bool = Field(
        default=True, description="Ask for elevation through pkexec on service toggles (Linux)"
    )
    systemctl_path: str = Field(default="/usr/bin/systemctl")


class SystemConfig(BaseModel):
    """Runtime settings that are not platform specific."""

    model_config = ConfigDict(extra="forbid")

    log_level: str = Field(default="INFO", description="Root log level")
    log_dir: str = Field(default="logs", description="Directory for rotating log files")
    webui_port: int = Field(default=8080, description="NiceGUI listen port")
    dev_mode: bool = Field(default=False, description="Use the in-memory adapter instead of the OS")
    worker_threads: int = Field(default=4, ge=1, description="Worker pool size for blocking OS calls")
    query_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Upper bound on a single enumeration"
    )


class AutostartConfig(BaseModel):
    """Top-level configuration loaded from ``autostart_config.json``."""

    model_config = ConfigDict(extra="forbid")

    system: SystemConfig = Field(default_factory=SystemConfig)
    platform: PlatformConfig = Field(default_factory=PlatformConfig)

"""Pydantic models for configuration and registry entities."""
from autostart.core.models.config import AutostartConfig, PlatformConfig, SystemConfig
from autostart.core.models.entry import ServiceEntry, ServiceState, StartupEntry

__all__ = [
    "AutostartConfig",
    "PlatformConfig",
    "SystemConfig",
    "ServiceEntry",
    "ServiceState",
    "StartupEntry",
]

"""Platform abstraction: factory + per-OS backends (linux, windows, macos, memory)."""

from autostart.platforms.factory import create_platform_adapter

__all__ = ["create_platform_adapter"]

"""Windows backend: Startup folder, Run registry keys, and services."""

from autostart.platforms.windows.windows_adapter import WindowsAdapter

__all__ = ["WindowsAdapter"]

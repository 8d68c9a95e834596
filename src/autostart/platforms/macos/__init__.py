"""macOS backend: LaunchAgents and launchd services."""

from autostart.platforms.macos.macos_adapter import MacOSAdapter

__all__ = ["MacOSAdapter"]

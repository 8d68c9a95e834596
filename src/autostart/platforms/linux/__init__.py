"""Linux backend: XDG autostart entries and systemd services."""

from autostart.platforms.linux.linux_adapter import LinuxAdapter
from autostart.platforms.linux.systemd import SystemdServices

__all__ = ["LinuxAdapter", "SystemdServices"]

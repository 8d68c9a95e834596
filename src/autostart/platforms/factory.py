"""Platform factory — platform detection and adapter creation.

Selects the adapter for the running OS once at process start.  ``dev_mode``
(or an unsupported OS) yields the in-memory adapter so the UI can be
exercised without touching the machine.
"""

from __future__ import annotations

import logging
import sys

from autostart.core.interfaces.platform import PlatformAdapter
from autostart.core.models.config import AutostartConfig

_log = logging.getLogger(__name__)


def _platform_family() -> str:
    """Return ``"linux"``, ``"windows"``, ``"macos"`` or ``"other"``."""
    if sys.platform.startswith("linux"):
        return "linux"
    if sys.platform == "win32":
        return "windows"
    if sys.platform == "darwin":
        return "macos"
    return "other"


def create_platform_adapter(config: AutostartConfig) -> PlatformAdapter:
    """Return the appropriate :class:`PlatformAdapter` for this machine.

    * ``dev_mode`` or an unsupported OS → ``InMemoryAdapter``
    * Linux → ``LinuxAdapter`` (XDG autostart + systemd)
    * Windows → ``WindowsAdapter`` (Startup folder + Run keys + SCM)
    * macOS → ``MacOSAdapter`` (LaunchAgents + launchd)
    """
    family = _platform_family()
    if config.system.dev_mode or family == "other":
        from autostart.platforms.memory.memory_adapter import InMemoryAdapter

        _log.info("Using InMemoryAdapter (dev_mode=%s, platform=%s)", config.system.dev_mode, family)
        return InMemoryAdapter()

    if family == "linux":
        from autostart.platforms.linux.linux_adapter import LinuxAdapter

        adapter: PlatformAdapter = LinuxAdapter(config.platform)
    elif family == "windows":
        from autostart.platforms.windows.windows_adapter import WindowsAdapter

        adapter = WindowsAdapter(config.platform)
    else:
        from autostart.platforms.macos.macos_adapter import MacOSAdapter

        adapter = MacOSAdapter(config.platform)

    _log.info("Using %s", type(adapter).__name__)
    return adapter

"""Platform abstraction interfaces."""

from autostart.core.interfaces.platform import PlatformAdapter

__all__ = ["PlatformAdapter"]

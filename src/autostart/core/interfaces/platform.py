"""Platform adapter interface (ABC).

One concrete adapter exists per platform family (Linux, Windows, macOS) plus
an in-memory variant for dev mode and tests.  The adapter is chosen once at
process start by :func:`autostart.platforms.create_platform_adapter` and then
passed explicitly to the registry components.

All methods are synchronous and may block on OS I/O; callers dispatch them to
a worker pool.  Every OS-level failure is translated at this seam into the
error taxonomy in :mod:`autostart.core.errors`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from autostart.core.models.entry import ServiceEntry, StartupEntry


class PlatformAdapter(ABC):
    """Enumerates and mutates autostart mechanisms and the service manager."""

    #: Short identifier used in logs and the UI header.
    platform_name: str = "unknown"

    # ------------------------------------------------------------------
    # Startup entries
    # ------------------------------------------------------------------

    @abstractmethod
    def list_startup_entries(self) -> list[StartupEntry]:
        """Return the union of entries across every readable mechanism.

        Raises ``EnumerationError`` only when no mechanism could be read.
        """

    @abstractmethod
    def set_enabled(self, path: str, enabled: bool) -> None:
        """Enable or disable the entry at *path*.

        Redundant toggles succeed.  Raises ``NotFoundError`` or
        ``PermissionDeniedError``.
        """

    @abstractmethod
    def create_entry(self, name: str, command: str, description: str) -> StartupEntry:
        """Write a new enabled entry and return it as re-read from storage."""

    @abstractmethod
    def delete_entry(self, path: str) -> None:
        """Remove the backing artifact.  Raises ``NotFoundError`` if absent."""

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    @abstractmethod
    def list_services(self) -> list[ServiceEntry]:
        """Return toggleable services using one bulk query."""

    @abstractmethod
    def set_service_enabled(self, name: str, enabled: bool) -> None:
        """Change persisted enablement of *name* without touching run state."""

    def cleanup(self) -> None:
        """Release adapter resources.  No-op by default."""

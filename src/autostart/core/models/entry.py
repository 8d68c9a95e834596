"""Canonical entity models: StartupEntry and ServiceEntry."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

UNKNOWN = "Unknown"

# Publisher labels that carry no attribution.
GENERIC_PUBLISHERS: frozenset[str] = frozenset(
    {"", "unknown", "system", "linux desktop entry"}
)


class ServiceState(str, Enum):
    """Persisted enablement of an OS service (not its running status)."""

    ENABLED = "enabled"
    DISABLED = "disabled"


class StartupEntry(BaseModel):
    """A program that launches automatically at login.

    ``path`` is the sole identity key.  ``name`` is display-only and may
    collide across entries.
    """

    path: str = Field(description="Filesystem path or REGISTRY::<HIVE>::<value> key")
    name: str = Field(description="Display name")
    command: str = Field(default="", description="Program only, arguments stripped")
    full_command: str = Field(default="", description="Program plus arguments")
    location: str = Field(default="", description="Owning autostart mechanism")
    size: str = Field(default=UNKNOWN, description="Size of the backing executable")
    publisher: str | None = Field(default=None)
    description: str = Field(default="")
    enabled: bool = Field(default=True)

    @property
    def has_publisher(self) -> bool:
        """Return ``True`` when *publisher* carries a real attribution."""
        return self.publisher is not None and self.publisher.strip().lower() not in GENERIC_PUBLISHERS


class ServiceEntry(BaseModel):
    """An OS service unit and its boot-time enablement."""

    name: str = Field(description="Unique within the service manager namespace")
    state: ServiceState

    @property
    def enabled(self) -> bool:
        return self.state is ServiceState.ENABLED

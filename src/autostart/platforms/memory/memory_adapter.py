"""InMemoryAdapter — dict-backed platform adapter for dev mode and tests.

Mirrors the semantics of the OS adapters (redundant toggles succeed, absent
paths raise ``NotFoundError``) without touching the machine.  The
``simulate_*`` helpers let tests inject failures that a real OS would
produce: unreadable stores, locked entries, and writes that another process
silently overrides.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Iterable

from autostart.core.errors import (
    EnumerationError,
    InvalidCommandError,
    NotFoundError,
    PermissionDeniedError,
)
from autostart.core.interfaces.platform import PlatformAdapter
from autostart.core.models.entry import ServiceEntry, ServiceState, StartupEntry
from autostart.platforms._common import safe_file_stem, split_program

LOCATION = "In-Memory"
CALL_LOG_SIZE = 256


class InMemoryAdapter(PlatformAdapter):
    """Thread-safe in-memory store of startup entries and services."""

    platform_name = "memory"

    def __init__(
        self,
        entries: Iterable[StartupEntry] = (),
        services: Iterable[ServiceEntry] = (),
    ) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, StartupEntry] = {e.path: e for e in entries}
        self._services: dict[str, ServiceState] = {s.name: s.state for s in services}
        self._locked_keys: set[str] = set()
        self._ignored_writes: set[str] = set()
        self._unreadable = False
        #: Most recent adapter calls, oldest first.
        self.calls: deque[tuple[str, str]] = deque(maxlen=CALL_LOG_SIZE)

    # -- simulation helpers --

    def simulate_unreadable(self, unreadable: bool = True) -> None:
        """Make enumeration raise ``EnumerationError``."""
        self._unreadable = unreadable

    def simulate_permission_denied(self, key: str) -> None:
        """Make mutations of *key* (path or service name) raise ``PermissionDeniedError``."""
        self._locked_keys.add(key)

    def simulate_ignored_write(self, key: str) -> None:
        """Accept writes to *key* but leave storage unchanged (foreign override)."""
        self._ignored_writes.add(key)

    # -- startup entries --

    def list_startup_entries(self) -> list[StartupEntry]:
        self.calls.append(("list_startup_entries", ""))
        if self._unreadable:
            raise EnumerationError("In-memory store is unreadable")
        with self._lock:
            return [e.model_copy() for e in self._entries.values()]

    def set_enabled(self, path: str, enabled: bool) -> None:
        self.calls.append(("set_enabled", path))
        with self._lock:
            entry = self._require_entry(path)
            self._check_writable(path)
            if path in self._ignored_writes:
                return
            self._entries[path] = entry.model_copy(update={"enabled": enabled})

    def create_entry(self, name: str, command: str, description: str) -> StartupEntry:
        self.calls.append(("create_entry", name))
        if not command.strip():
            raise InvalidCommandError("Command must not be empty")
        path = f"memory://{safe_file_stem(name)}"
        with self._lock:
            if path in self._entries:
                raise InvalidCommandError(f"An entry named '{name}' already exists", key=path)
            entry = StartupEntry(
                path=path,
                name=name,
                command=split_program(command),
                full_command=command,
                location=LOCATION,
                description=description,
            )
            if path not in self._ignored_writes:
                self._entries[path] = entry
            return entry.model_copy()

    def delete_entry(self, path: str) -> None:
        self.calls.append(("delete_entry", path))
        with self._lock:
            self._require_entry(path)
            self._check_writable(path)
            if path in self._ignored_writes:
                return
            del self._entries[path]

    # -- services --

    def list_services(self) -> list[ServiceEntry]:
        self.calls.append(("list_services", ""))
        if self._unreadable:
            raise EnumerationError("In-memory service manager is unreadable")
        with self._lock:
            return [ServiceEntry(name=n, state=s) for n, s in self._services.items()]

    def set_service_enabled(self, name: str, enabled: bool) -> None:
        self.calls.append(("set_service_enabled", name))
        with self._lock:
            if name not in self._services:
                raise NotFoundError(f"Unit {name} does not exist", key=name)
            self._check_writable(name)
            if name in self._ignored_writes:
                return
            self._services[name] = ServiceState.ENABLED if enabled else ServiceState.DISABLED

    # -- internal --

    def _require_entry(self, path: str) -> StartupEntry:
        entry = self._entries.get(path)
        if entry is None:
            raise NotFoundError(f"'{path}' no longer exists", key=path)
        return entry

    def _check_writable(self, key: str) -> None:
        if key in self._locked_keys:
            raise PermissionDeniedError(f"Access denied for '{key}'", key=key)

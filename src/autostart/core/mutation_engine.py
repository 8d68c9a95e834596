"""Mutation engine — Validate → Apply → Confirm for every write.

Each request is handled on its own:

1. **Validate** against a fresh enumeration (never a cache): reject blank
   create input, unresolvable programs, and unknown paths / service names
   before the OS is touched.
2. **Apply** through the platform adapter.
3. **Confirm** by re-enumerating.  When the store disagrees with the intent
   the write "succeeded" but did not stick, and ``InconsistentStateError``
   is raised.  A create that fails confirmation is rolled back.

Writes to the same key are serialized through :class:`KeyedLock`.  Nothing
is retried: a repeated create could leave duplicate artifacts behind.

All methods block and are meant to run on a worker thread.
"""

from __future__ import annotations

import logging
import os
import shutil

from autostart.core.entry_registry import EntryRegistry
from autostart.core.errors import (
    InconsistentStateError,
    InvalidCommandError,
    NotFoundError,
    RegistryError,
)
from autostart.core.interfaces.platform import PlatformAdapter
from autostart.core.keyed_lock import KeyedLock
from autostart.core.models.config import PlatformConfig
from autostart.core.models.entry import ServiceEntry, ServiceState, StartupEntry
from autostart.log_config.logger import ContextualLogger
from autostart.platforms._common import safe_file_stem, split_program

_log = logging.getLogger(__name__)


def resolve_program(program: str) -> str | None:
    """Return the absolute location of *program*, or ``None``.

    Paths (anything containing a separator) must point at an existing file;
    bare names are looked up on ``PATH``.
    """
    expanded = os.path.expandvars(os.path.expanduser(program))
    separators = [os.sep] + ([os.altsep] if os.altsep else [])
    if os.path.isabs(expanded) or any(sep in expanded for sep in separators):
        return expanded if os.path.isfile(expanded) else None
    return shutil.which(expanded)


class MutationEngine:
    """Applies create / toggle / delete requests against one adapter.

    Args:
        adapter: The platform adapter selected at start-up.
        registry: Merge/normalize transform used for fresh reads.
        config: Platform settings (``strict_command_validation``).
    """

    def __init__(
        self,
        adapter: PlatformAdapter,
        registry: EntryRegistry,
        config: PlatformConfig,
    ) -> None:
        self._adapter = adapter
        self._registry = registry
        self._config = config
        self._locks = KeyedLock()

    @property
    def locks(self) -> KeyedLock:
        return self._locks

    # ------------------------------------------------------------------
    # Startup entries
    # ------------------------------------------------------------------

    def toggle_app(self, path: str, enable: bool) -> StartupEntry:
        log = ContextualLogger(_log, op="toggle_app", key=path)
        with self._locks.hold(f"entry:{path}"):
            self._require_entry(path)
            self._adapter.set_enabled(path, enable)
            entry = self._fresh_entry(path)
            if entry is None or entry.enabled != enable:
                log.warning("Confirm failed (wanted enabled=%s, got %s)", enable, entry and entry.enabled)
                raise InconsistentStateError(
                    f"'{path}' did not become {'enabled' if enable else 'disabled'}; "
                    "another program may have overridden the change",
                    key=path,
                )
            log.info("enabled=%s", enable)
            return entry

    def create_app(self, name: str, command: str, description: str = "") -> StartupEntry:
        name, command = name.strip(), command.strip()
        description = description.strip()
        if not name:
            raise InvalidCommandError("Name must not be empty")
        if not command:
            raise InvalidCommandError("Command must not be empty")

        program = split_program(command)
        if self._config.strict_command_validation and resolve_program(program) is None:
            raise InvalidCommandError(
                f"'{program}' was not found; enter an existing executable path or a program on PATH"
            )

        log = ContextualLogger(_log, op="create_app", key=name)
        with self._locks.hold(f"create:{safe_file_stem(name)}"):
            created = self._adapter.create_entry(name, command, description)
            log = log.bind(path=created.path)
            entry = self._fresh_entry(created.path)
            if entry is None or not entry.enabled:
                log.warning("Confirm failed, rolling back")
                self._rollback_create(created.path, log)
                raise InconsistentStateError(
                    f"Created '{created.path}' but it is not visible as an enabled entry",
                    key=created.path,
                )
            log.info("Created")
            return entry

    def delete_app(self, path: str) -> None:
        log = ContextualLogger(_log, op="delete_app", key=path)
        with self._locks.hold(f"entry:{path}"):
            self._require_entry(path)
            self._adapter.delete_entry(path)
            if self._fresh_entry(path) is not None:
                raise InconsistentStateError(f"'{path}' is still present after deletion", key=path)
            log.info("Deleted")

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def toggle_service(self, name: str, enable: bool) -> ServiceEntry:
        log = ContextualLogger(_log, op="toggle_service", key=name)
        wanted = ServiceState.ENABLED if enable else ServiceState.DISABLED
        with self._locks.hold(f"service:{name}"):
            if self._fresh_service(name) is None:
                raise NotFoundError(f"Service '{name}' does not exist", key=name)
            self._adapter.set_service_enabled(name, enable)
            service = self._fresh_service(name)
            if service is None or service.state is not wanted:
                raise InconsistentStateError(
                    f"Service '{name}' is not {wanted.value} after the change", key=name
                )
            log.info("state=%s", wanted.value)
            return service

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _fresh_entry(self, path: str) -> StartupEntry | None:
        entries = self._registry.merge_entries(self._adapter.list_startup_entries())
        return self._registry.find_entry(entries, path)

    def _fresh_service(self, name: str) -> ServiceEntry | None:
        services = self._registry.merge_services(self._adapter.list_services())
        return self._registry.find_service(services, name)

    def _require_entry(self, path: str) -> StartupEntry:
        entry = self._fresh_entry(path)
        if entry is None:
            raise NotFoundError(f"No startup entry at '{path}'", key=path)
        return entry

    def _rollback_create(self, path: str, log: ContextualLogger) -> None:
        try:
            self._adapter.delete_entry(path)
        except NotFoundError:
            log.debug("Rollback target already absent")
        except RegistryError:
            log.exception("Rollback failed; the artifact may remain")

"""WindowsAdapter — Startup folder, Run registry keys, and services.

Entry paths:

* Startup folder: the file path *without* the ``.disabled`` suffix.  A
  disabled file is renamed to ``<name>.disabled`` on disk but keeps its
  enabled-form path as identity, so toggling never changes the key.
* Run keys: ``REGISTRY::<HIVE>::<value name>``.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

import psutil

from autostart.core.errors import (
    EnumerationError,
    InvalidCommandError,
    NotFoundError,
    PermissionDeniedError,
    RegistryError,
)
from autostart.core.interfaces.platform import PlatformAdapter
from autostart.core.models.config import PlatformConfig
from autostart.core.models.entry import UNKNOWN, ServiceEntry, ServiceState, StartupEntry
from autostart.platforms import _common
from autostart.platforms._common import CommandRunner, run_command
from autostart.platforms.windows.run_keys import HIVES, RunKeyStore, WinRegRunKeys

_log = logging.getLogger(__name__)

REGISTRY_PREFIX = "REGISTRY::"
DISABLED_SUFFIX = ".disabled"
STARTUP_EXTENSIONS: tuple[str, ...] = (".lnk", ".bat", ".cmd", ".exe")

_HIVE_PUBLISHER = {"HKCU": "Unknown", "HKLM": "System"}

# ``sc`` reports Win32 error codes in its output.
_SC_NOT_FOUND = "1060"
_SC_ACCESS_DENIED = "FAILED 5:"


def default_startup_dir() -> Path:
    appdata = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
    return Path(appdata) / "Microsoft" / "Windows" / "Start Menu" / "Programs" / "Startup"


def registry_path(hive: str, name: str) -> str:
    return f"{REGISTRY_PREFIX}{hive}::{name}"


def parse_registry_path(path: str) -> tuple[str, str]:
    """Split ``REGISTRY::HKCU::Name`` into ``("HKCU", "Name")``."""
    parts = path[len(REGISTRY_PREFIX):].split("::", 1)
    if len(parts) != 2 or parts[0] not in HIVES or not parts[1]:
        raise NotFoundError(f"Invalid registry path format: '{path}'", key=path)
    return parts[0], parts[1]


class WindowsAdapter(PlatformAdapter):
    """Args:
        config: Platform settings.
        run_keys: Registry access; defaults to :class:`WinRegRunKeys`.
        runner: Subprocess runner used for ``sc config``.
    """

    platform_name = "windows"

    def __init__(
        self,
        config: PlatformConfig,
        run_keys: RunKeyStore | None = None,
        runner: CommandRunner = run_command,
    ) -> None:
        self._config = config
        self._startup_dir = (
            Path(config.autostart_dir).expanduser() if config.autostart_dir else default_startup_dir()
        )
        self._run_keys = run_keys if run_keys is not None else WinRegRunKeys()
        self._run = runner

    # ------------------------------------------------------------------
    # Startup entries
    # ------------------------------------------------------------------

    def list_startup_entries(self) -> list[StartupEntry]:
        entries: list[StartupEntry] = []
        failures: list[str] = []

        try:
            entries.extend(self._list_folder_entries())
        except OSError as exc:
            _log.warning("Startup folder %s unreadable: %s", self._startup_dir, exc)
            failures.append(f"Startup folder: {exc}")

        for hive in HIVES:
            try:
                entries.extend(self._list_registry_entries(hive))
            except OSError as exc:
                _log.warning("Run key in %s unreadable: %s", hive, exc)
                failures.append(f"{hive}: {exc}")

        if failures and len(failures) == 1 + len(HIVES):
            raise EnumerationError("No startup store could be read: " + "; ".join(failures))
        return entries

    def set_enabled(self, path: str, enabled: bool) -> None:
        if path.startswith(REGISTRY_PREFIX):
            hive, name = self._require_registry_value(path)
            try:
                self._run_keys.set_approved(hive, name, enabled)
            except OSError as exc:
                raise _common.translate_os_error(exc, path) from exc
            _log.info("%s registry entry %s", "Enabled" if enabled else "Disabled", path)
            return

        current = self._locate_file(path)
        target = Path(path) if enabled else Path(path + DISABLED_SUFFIX)
        if current == target:
            return
        try:
            current.rename(target)
        except OSError as exc:
            raise _common.translate_os_error(exc, path) from exc
        _log.info("Renamed %s -> %s", current.name, target.name)

    def create_entry(self, name: str, command: str, description: str) -> StartupEntry:
        if not command.strip():
            raise InvalidCommandError("Command must not be empty")
        file_path = self._startup_dir / f"{_common.safe_file_stem(name)}.bat"
        if file_path.exists() or Path(str(file_path) + DISABLED_SUFFIX).exists():
            raise InvalidCommandError(
                f"A startup entry named '{file_path.name}' already exists", key=str(file_path)
            )

        program, args = _common.split_command(command)
        lines = ["@echo off"]
        if description.strip():
            lines.append(f"REM {' '.join(description.splitlines())}")
        lines.append(f'start "" "{program}" {args}'.rstrip())
        try:
            _common.atomic_write_text(file_path, "\r\n".join(lines) + "\r\n")
            entry = self._read_file_entry(file_path)
        except OSError as exc:
            raise _common.translate_os_error(exc, str(file_path)) from exc
        _log.info("Created startup script %s", file_path)
        return entry

    def delete_entry(self, path: str) -> None:
        if path.startswith(REGISTRY_PREFIX):
            hive, name = self._require_registry_value(path)
            try:
                self._run_keys.delete_value(hive, name)
            except OSError as exc:
                raise _common.translate_os_error(exc, path) from exc
            _log.info("Deleted registry entry %s", path)
            return

        current = self._locate_file(path)
        try:
            current.unlink()
        except OSError as exc:
            raise _common.translate_os_error(exc, path) from exc
        _log.info("Deleted startup file %s", current)

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def list_services(self) -> list[ServiceEntry]:
        services: list[ServiceEntry] = []
        try:
            iterator = list(psutil.win_service_iter())
        except (OSError, psutil.Error) as exc:
            raise EnumerationError(f"Service Control Manager unavailable: {exc}") from exc

        for service in iterator:
            try:
                start_type = service.start_type()
            except psutil.Error:
                _log.debug("Skipping service %s (query refused)", service.name())
                continue
            state = ServiceState.ENABLED if start_type == "automatic" else ServiceState.DISABLED
            services.append(ServiceEntry(name=service.name(), state=state))
        return services

    def set_service_enabled(self, name: str, enabled: bool) -> None:
        start = "auto" if enabled else "disabled"
        argv = ["sc", "config", name, "start=", start]
        try:
            result = self._run(argv, self._config.command_timeout_seconds)
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise RegistryError(f"sc config {name} failed: {exc}", key=name) from exc

        if result.returncode == 0:
            _log.info("sc config %s start= %s succeeded", name, start)
            return
        output = f"{result.stdout}\n{result.stderr}"
        if _SC_NOT_FOUND in output:
            raise NotFoundError(f"Service '{name}' does not exist", key=name)
        if _SC_ACCESS_DENIED in output or "Access is denied" in output:
            raise PermissionDeniedError(
                f"Changing '{name}' requires running as Administrator", key=name
            )
        raise RegistryError(output.strip() or f"sc config {name} failed", key=name)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _list_folder_entries(self) -> list[StartupEntry]:
        if not self._startup_dir.is_dir():
            return []
        entries: list[StartupEntry] = []
        for file_path in sorted(self._startup_dir.rglob("*")):
            if not file_path.is_file():
                continue
            base = file_path.name.removesuffix(DISABLED_SUFFIX)
            if Path(base).suffix.lower() not in STARTUP_EXTENSIONS:
                continue
            entries.append(self._read_file_entry(file_path))
        return entries

    def _read_file_entry(self, file_path: Path) -> StartupEntry:
        enabled = not file_path.name.endswith(DISABLED_SUFFIX)
        identity = file_path if enabled else file_path.with_name(file_path.name.removesuffix(DISABLED_SUFFIX))
        is_shortcut = identity.suffix.lower() == ".lnk"

        full_command = str(identity)
        if identity.suffix.lower() in (".bat", ".cmd"):
            full_command = _batch_target(file_path) or full_command
        return StartupEntry(
            path=str(identity),
            name=identity.name.removesuffix(".lnk"),
            command=_common.split_program(full_command),
            full_command=full_command,
            location="Startup Folder",
            size="Shortcut" if is_shortcut else _common.format_size(file_path),
            publisher=UNKNOWN,
            description=_batch_comment(file_path) if not is_shortcut else "",
            enabled=enabled,
        )

    def _list_registry_entries(self, hive: str) -> list[StartupEntry]:
        entries: list[StartupEntry] = []
        for name, full_command in self._run_keys.list_values(hive):
            program = _common.split_program(full_command)
            entries.append(
                StartupEntry(
                    path=registry_path(hive, name),
                    name=name,
                    command=program,
                    full_command=full_command,
                    location=f"Registry ({hive})",
                    size=_common.format_size(program) if Path(program).exists() else UNKNOWN,
                    publisher=_HIVE_PUBLISHER[hive],
                    enabled=self._run_keys.is_approved(hive, name),
                )
            )
        return entries

    def _require_registry_value(self, path: str) -> tuple[str, str]:
        hive, name = parse_registry_path(path)
        try:
            names = {value_name for value_name, _ in self._run_keys.list_values(hive)}
        except OSError as exc:
            raise _common.translate_os_error(exc, path) from exc
        if name not in names:
            raise NotFoundError(f"'{path}' no longer exists", key=path)
        return hive, name

    def _locate_file(self, path: str) -> Path:
        enabled_form = Path(path)
        if enabled_form.is_file():
            return enabled_form
        disabled_form = Path(path + DISABLED_SUFFIX)
        if disabled_form.is_file():
            return disabled_form
        raise NotFoundError(f"'{path}' no longer exists", key=path)


def _batch_lines(file_path: Path) -> list[str]:
    try:
        return file_path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return []


def _batch_target(file_path: Path) -> str | None:
    """Return the command after ``start ""`` in a generated startup script."""
    for line in _batch_lines(file_path):
        stripped = line.strip()
        if stripped.lower().startswith('start ""'):
            return stripped[len('start ""'):].strip()
    return None


def _batch_comment(file_path: Path) -> str:
    for line in _batch_lines(file_path):
        stripped = line.strip()
        if stripped.upper().startswith("REM "):
            return stripped[4:].strip()
    return ""

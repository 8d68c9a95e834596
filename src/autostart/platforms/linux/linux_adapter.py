"""LinuxAdapter — XDG autostart desktop entries + systemd services."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from autostart.core.errors import EnumerationError, InvalidCommandError, NotFoundError
from autostart.core.interfaces.platform import PlatformAdapter
from autostart.core.models.config import PlatformConfig
from autostart.core.models.entry import UNKNOWN, ServiceEntry, StartupEntry
from autostart.platforms import _common
from autostart.platforms._common import CommandRunner, run_command
from autostart.platforms.linux import desktop_entry
from autostart.platforms.linux.systemd import SystemdServices

_log = logging.getLogger(__name__)

LOCATION = "Startup Folder"
PUBLISHER = "Linux Desktop Entry"


def default_autostart_dir() -> Path:
    """Return ``$XDG_CONFIG_HOME/autostart`` (``~/.config/autostart`` by default)."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / "autostart"


class LinuxAdapter(PlatformAdapter):
    """Startup entries live as ``*.desktop`` files in the autostart directory.

    Disabling rewrites ``Hidden=true`` and ``X-GNOME-Autostart-enabled=false``
    in place; the file stays where it is so re-enumeration sees it.

    Args:
        config: Platform settings.
        runner: Subprocess runner passed to :class:`SystemdServices`.
    """

    platform_name = "linux"

    def __init__(self, config: PlatformConfig, runner: CommandRunner = run_command) -> None:
        self._config = config
        self._autostart_dir = (
            Path(config.autostart_dir).expanduser() if config.autostart_dir else default_autostart_dir()
        )
        self._services = SystemdServices(config, runner)

    @property
    def autostart_dir(self) -> Path:
        return self._autostart_dir

    # ------------------------------------------------------------------
    # Startup entries
    # ------------------------------------------------------------------

    def list_startup_entries(self) -> list[StartupEntry]:
        if not self._autostart_dir.is_dir():
            _log.debug("Autostart directory %s does not exist", self._autostart_dir)
            return []
        try:
            files = sorted(p for p in self._autostart_dir.rglob("*.desktop") if p.is_file())
        except OSError as exc:
            raise EnumerationError(f"Cannot read {self._autostart_dir}: {exc}") from exc

        entries: list[StartupEntry] = []
        for file_path in files:
            try:
                entries.append(self._read_entry(file_path))
            except OSError:
                _log.warning("Skipping unreadable desktop entry %s", file_path, exc_info=True)
        return entries

    def set_enabled(self, path: str, enabled: bool) -> None:
        file_path = self._managed_path(path)
        content = self._read_text(file_path, path)
        updated = desktop_entry.set_enabled(content, enabled)
        if updated == content:
            return
        # os.replace swaps a symlinked entry for a regular file, so a link to a
        # root-owned system entry becomes a user-owned override.
        try:
            _common.atomic_write_text(file_path, updated)
        except OSError as exc:
            raise _common.translate_os_error(exc, path) from exc
        _log.info("%s %s", "Enabled" if enabled else "Disabled", file_path)

    def create_entry(self, name: str, command: str, description: str) -> StartupEntry:
        if not command.strip():
            raise InvalidCommandError("Command must not be empty")
        file_path = self._autostart_dir / f"{_common.safe_file_stem(name)}.desktop"
        if file_path.exists():
            raise InvalidCommandError(
                f"An autostart entry named '{file_path.name}' already exists", key=str(file_path)
            )
        try:
            _common.atomic_write_text(file_path, desktop_entry.render(name, command, description))
            entry = self._read_entry(file_path)
        except OSError as exc:
            raise _common.translate_os_error(exc, str(file_path)) from exc
        _log.info("Created autostart entry %s", file_path)
        return entry

    def delete_entry(self, path: str) -> None:
        file_path = self._managed_path(path)
        try:
            file_path.unlink()
        except OSError as exc:
            raise _common.translate_os_error(exc, path) from exc
        _log.info("Deleted autostart entry %s", file_path)

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def list_services(self) -> list[ServiceEntry]:
        return self._services.list_services()

    def set_service_enabled(self, name: str, enabled: bool) -> None:
        self._services.set_enabled(name, enabled)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _managed_path(self, path: str) -> Path:
        file_path = Path(path)
        if file_path.suffix != ".desktop":
            raise NotFoundError(f"'{path}' is not a desktop entry", key=path)
        if not file_path.is_file():
            raise NotFoundError(f"'{path}' no longer exists", key=path)
        return file_path

    @staticmethod
    def _read_text(file_path: Path, key: str) -> str:
        try:
            return file_path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise _common.translate_os_error(exc, key) from exc

    def _read_entry(self, file_path: Path) -> StartupEntry:
        content = file_path.read_text(encoding="utf-8", errors="replace")
        full_command = desktop_entry.clean_exec(desktop_entry.extract_value(content, "Exec") or "")
        program = _common.split_program(full_command)
        resolved = shutil.which(program) if program else None
        return StartupEntry(
            path=str(file_path),
            name=desktop_entry.extract_value(content, "Name") or file_path.name,
            command=program,
            full_command=full_command,
            location=LOCATION,
            size=_common.format_size(resolved or program) if program else UNKNOWN,
            publisher=PUBLISHER,
            description=desktop_entry.extract_value(content, "Comment") or "",
            enabled=desktop_entry.is_enabled(content),
        )

"""MacOSAdapter — user LaunchAgents and launchd system services.

Startup entries are ``~/Library/LaunchAgents/*.plist`` files.  Enablement is
the plist ``Disabled`` key, flipped in place.  Services are the system
LaunchDaemons: the plist ``Disabled`` key is the default state and an entry
in the launchd override database (``launchctl print-disabled system``) wins.
"""

from __future__ import annotations

import logging
import plistlib
import re
import subprocess
from pathlib import Path
from typing import Any

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

_log = logging.getLogger(__name__)

LOCATION = "LaunchAgents"
LABEL_PREFIX = "local.autostart."
DAEMONS_DIR = Path("/Library/LaunchDaemons")

# ``"com.openssh.sshd" => disabled`` (older releases print true/false).
_OVERRIDE_RE = re.compile(r'"([^"]+)"\s*=>\s*(\w+)')


def parse_print_disabled(output: str) -> dict[str, bool]:
    """Return ``{label: disabled}`` from ``launchctl print-disabled`` output."""
    overrides: dict[str, bool] = {}
    for label, value in _OVERRIDE_RE.findall(output):
        overrides[label] = value.lower() in ("disabled", "true")
    return overrides


class MacOSAdapter(PlatformAdapter):
    """Args:
        config: Platform settings.
        runner: Subprocess runner used for ``launchctl``.
        daemons_dir: Directory scanned for system services.
    """

    platform_name = "macos"

    def __init__(
        self,
        config: PlatformConfig,
        runner: CommandRunner = run_command,
        daemons_dir: Path = DAEMONS_DIR,
    ) -> None:
        self._config = config
        self._agents_dir = (
            Path(config.autostart_dir).expanduser()
            if config.autostart_dir
            else Path.home() / "Library" / "LaunchAgents"
        )
        self._daemons_dir = daemons_dir
        self._run = runner

    # ------------------------------------------------------------------
    # Startup entries
    # ------------------------------------------------------------------

    def list_startup_entries(self) -> list[StartupEntry]:
        if not self._agents_dir.is_dir():
            return []
        try:
            files = sorted(self._agents_dir.glob("*.plist"))
        except OSError as exc:
            raise EnumerationError(f"Cannot read {self._agents_dir}: {exc}") from exc

        entries: list[StartupEntry] = []
        for file_path in files:
            try:
                entries.append(self._read_entry(file_path))
            except (RegistryError, ValueError):
                _log.warning("Skipping unreadable launch agent %s", file_path, exc_info=True)
        return entries

    def set_enabled(self, path: str, enabled: bool) -> None:
        file_path = self._managed_path(path)
        data = self._load(file_path, path)
        if bool(data.get("Disabled", False)) != (not enabled):
            data["Disabled"] = not enabled
            self._dump(file_path, data, path)
            _log.info("%s %s", "Enabled" if enabled else "Disabled", file_path)

    def create_entry(self, name: str, command: str, description: str) -> StartupEntry:
        if not command.strip():
            raise InvalidCommandError("Command must not be empty")
        label = f"{LABEL_PREFIX}{_common.safe_file_stem(name)}"
        file_path = self._agents_dir / f"{label}.plist"
        if file_path.exists():
            raise InvalidCommandError(
                f"A launch agent named '{file_path.name}' already exists", key=str(file_path)
            )
        program, args = _common.split_command(command)
        data: dict[str, Any] = {
            "Label": label,
            "ProgramArguments": [program, *args.split()],
            "RunAtLoad": True,
            "Disabled": False,
            # Custom keys are ignored by launchd.
            "X-Autostart-Name": name,
            "X-Autostart-Comment": description,
        }
        self._dump(file_path, data, str(file_path))
        _log.info("Created launch agent %s", file_path)
        return self._read_entry(file_path)

    def delete_entry(self, path: str) -> None:
        file_path = self._managed_path(path)
        try:
            file_path.unlink()
        except OSError as exc:
            raise _common.translate_os_error(exc, path) from exc
        _log.info("Deleted launch agent %s", file_path)

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def list_services(self) -> list[ServiceEntry]:
        overrides = self._print_disabled()
        services: list[ServiceEntry] = []
        if not self._daemons_dir.is_dir():
            return services
        for file_path in sorted(self._daemons_dir.glob("*.plist")):
            label, disabled = file_path.stem, False
            try:
                data = self._load(file_path, str(file_path))
            except RegistryError:
                _log.warning("Unreadable launch daemon %s", file_path)
            else:
                if isinstance(data.get("Label"), str):
                    label = data["Label"]
                disabled = bool(data.get("Disabled", False))
            # An override in the launchd database beats the plist default.
            disabled = overrides.get(label, disabled)
            services.append(
                ServiceEntry(
                    name=label,
                    state=ServiceState.DISABLED if disabled else ServiceState.ENABLED,
                )
            )
        return services

    def set_service_enabled(self, name: str, enabled: bool) -> None:
        action = "enable" if enabled else "disable"
        argv = ["launchctl", action, f"system/{name}"]
        try:
            result = self._run(argv, self._config.command_timeout_seconds)
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise RegistryError(f"launchctl {action} {name} failed: {exc}", key=name) from exc
        if result.returncode == 0:
            _log.info("launchctl %s system/%s succeeded", action, name)
            return
        stderr = result.stderr.strip()
        if "not permitted" in stderr.lower() or "root" in stderr.lower():
            raise PermissionDeniedError(f"Changing '{name}' requires administrator rights", key=name)
        if "could not find" in stderr.lower():
            raise NotFoundError(f"Service '{name}' does not exist", key=name)
        raise RegistryError(stderr or f"launchctl {action} {name} failed", key=name)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _print_disabled(self) -> dict[str, bool]:
        try:
            result = self._run(
                ["launchctl", "print-disabled", "system"], self._config.command_timeout_seconds
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise EnumerationError(f"launchctl is not available: {exc}") from exc
        if result.returncode != 0:
            raise EnumerationError(result.stderr.strip() or "launchctl print-disabled failed")
        return parse_print_disabled(result.stdout)

    def _managed_path(self, path: str) -> Path:
        file_path = Path(path)
        if file_path.suffix != ".plist" or not file_path.is_file():
            raise NotFoundError(f"'{path}' no longer exists", key=path)
        return file_path

    @staticmethod
    def _load(file_path: Path, key: str) -> dict[str, Any]:
        try:
            with open(file_path, "rb") as handle:
                data = plistlib.load(handle)
        except OSError as exc:
            raise _common.translate_os_error(exc, key) from exc
        except (plistlib.InvalidFileException, ValueError) as exc:
            raise RegistryError(f"'{key}' is not a valid property list", key=key) from exc
        if not isinstance(data, dict):
            raise RegistryError(f"'{key}' is not a launchd job definition", key=key)
        return data

    @staticmethod
    def _dump(file_path: Path, data: dict[str, Any], key: str) -> None:
        try:
            _common.atomic_write_text(file_path, plistlib.dumps(data).decode("utf-8"))
        except OSError as exc:
            raise _common.translate_os_error(exc, key) from exc

    def _read_entry(self, file_path: Path) -> StartupEntry:
        data = self._load(file_path, str(file_path))
        arguments = data.get("ProgramArguments") or []
        program = data.get("Program") or ""
        if not (
            isinstance(program, str)
            and isinstance(arguments, list)
            and all(isinstance(arg, str) for arg in arguments)
        ):
            raise RegistryError(
                f"'{file_path}' has a malformed Program or ProgramArguments", key=str(file_path)
            )
        program = program or (arguments[0] if arguments else "")
        full_command = " ".join([program, *arguments[1:]]) if arguments else program
        return StartupEntry(
            path=str(file_path),
            name=data.get("X-Autostart-Name") or data.get("Label") or file_path.stem,
            command=program,
            full_command=full_command,
            location=LOCATION,
            size=_common.format_size(program) if program else UNKNOWN,
            publisher=None,
            description=data.get("X-Autostart-Comment", ""),
            enabled=not data.get("Disabled", False),
        )

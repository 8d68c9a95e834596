"""systemd service enumeration and enablement via ``systemctl``.

Enumeration uses a single ``systemctl list-unit-files`` call.  Only units
whose state is exactly ``enabled`` or ``disabled`` are reported; ``static``,
``masked``, ``alias`` and friends cannot be toggled by enable/disable.

Enable/disable goes through ``pkexec`` so the desktop session can prompt for
a password.  Inside a Flatpak sandbox every call is routed to the host via
``flatpak-spawn --host``.
"""

from __future__ import annotations

import logging
import subprocess

from autostart.core.errors import (
    EnumerationError,
    NotFoundError,
    PermissionDeniedError,
    RegistryError,
)
from autostart.core.models.config import PlatformConfig
from autostart.core.models.entry import ServiceEntry, ServiceState
from autostart.platforms._common import CommandRunner, host_argv, run_command

_log = logging.getLogger(__name__)

_TOGGLEABLE_STATES = {state.value: state for state in ServiceState}

# pkexec exit codes: 126 = dialog dismissed, 127 = not authorized.
_PKEXEC_DENIED_CODES = {126, 127}

_NOT_FOUND_MARKERS = ("does not exist", "not found", "no such file")
_DENIED_MARKERS = (
    "access denied",
    "permission denied",
    "not authorized",
    "interactive authentication required",
)


def parse_unit_files(output: str) -> list[ServiceEntry]:
    """Parse ``list-unit-files --no-legend`` output into service entries."""
    services: list[ServiceEntry] = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        state = _TOGGLEABLE_STATES.get(parts[1])
        if state is None:
            continue
        services.append(ServiceEntry(name=parts[0], state=state))
    return services


class SystemdServices:
    """Thin ``systemctl`` wrapper.

    Args:
        config: Platform settings (binary path, pkexec usage, timeout).
        runner: Subprocess runner; injectable for tests.
    """

    def __init__(self, config: PlatformConfig, runner: CommandRunner = run_command) -> None:
        self._config = config
        self._run = runner

    def list_services(self) -> list[ServiceEntry]:
        argv = host_argv([
            self._config.systemctl_path,
            "list-unit-files",
            "--type=service",
            "--no-pager",
            "--no-legend",
        ])
        try:
            result = self._run(argv, self._config.command_timeout_seconds)
        except FileNotFoundError as exc:
            raise EnumerationError(f"systemctl is not available: {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise EnumerationError("systemctl did not answer in time") from exc

        if result.returncode != 0:
            raise EnumerationError(result.stderr.strip() or "systemctl list-unit-files failed")

        services = parse_unit_files(result.stdout)
        _log.debug("systemctl reported %d toggleable services", len(services))
        return services

    def set_enabled(self, name: str, enabled: bool) -> None:
        action = "enable" if enabled else "disable"
        argv = [self._config.systemctl_path, action, name]
        timeout = self._config.command_timeout_seconds
        if self._config.use_pkexec:
            argv = ["pkexec", *argv]
            # pkexec blocks until the user answers the password dialog.
            timeout = self._config.elevated_command_timeout_seconds
        argv = host_argv(argv)

        try:
            result = self._run(argv, timeout)
        except FileNotFoundError as exc:
            raise RegistryError(f"Cannot run {argv[0]}: {exc}", key=name) from exc
        except subprocess.TimeoutExpired as exc:
            raise RegistryError(f"systemctl {action} {name} timed out", key=name) from exc

        if result.returncode == 0:
            _log.info("systemctl %s %s succeeded", action, name)
            return

        stderr = result.stderr.strip()
        lowered = stderr.lower()
        if any(marker in lowered for marker in _NOT_FOUND_MARKERS):
            raise NotFoundError(f"Service '{name}' does not exist", key=name)
        if (
            self._config.use_pkexec and result.returncode in _PKEXEC_DENIED_CODES
        ) or any(marker in lowered for marker in _DENIED_MARKERS):
            raise PermissionDeniedError(
                f"Authorization to {action} '{name}' was refused", key=name
            )
        raise RegistryError(stderr or f"systemctl {action} {name} failed", key=name)

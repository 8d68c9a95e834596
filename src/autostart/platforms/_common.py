"""Helpers shared by the platform adapters."""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Sequence

from autostart.core.errors import NotFoundError, PermissionDeniedError, RegistryError
from autostart.core.models.entry import UNKNOWN

_log = logging.getLogger(__name__)

#: ``runner(argv, timeout) -> CompletedProcess``; injectable for tests.
CommandRunner = Callable[[Sequence[str], float], "subprocess.CompletedProcess[str]"]


def run_command(argv: Sequence[str], timeout: float) -> subprocess.CompletedProcess[str]:
    """Run *argv* and capture text output.  Never raises on non-zero exit."""
    _log.debug("Running %s", " ".join(argv))
    return subprocess.run(  # noqa: S603
        list(argv),
        capture_output=True,
        text=True,
        timeout=timeout,
        check=False,
    )


def is_flatpak() -> bool:
    """Return ``True`` when running inside a Flatpak sandbox."""
    return Path("/.flatpak-info").exists()


def host_argv(argv: Sequence[str]) -> list[str]:
    """Prefix *argv* with ``flatpak-spawn --host`` when sandboxed."""
    if is_flatpak():
        return ["flatpak-spawn", "--host", *argv]
    return list(argv)


def format_size(path: str | os.PathLike[str]) -> str:
    """Return a short human-readable size for *path* or ``"Unknown"``."""
    try:
        size = os.stat(path).st_size
    except (OSError, ValueError):
        return UNKNOWN
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def split_command(full_command: str) -> tuple[str, str]:
    """Split *full_command* into ``(program, arguments)``.

    A leading double-quoted segment wins (``"C:\\Program Files\\x.exe" -a``);
    otherwise the first whitespace-separated token is the program.
    """
    text = full_command.strip()
    if text.startswith('"'):
        closing = text.find('"', 1)
        if closing > 0:
            return text[1:closing], text[closing + 1:].strip()
    parts = text.split(None, 1)
    if not parts:
        return "", ""
    return parts[0], parts[1].strip() if len(parts) > 1 else ""


def split_program(full_command: str) -> str:
    """Return the program part of *full_command*."""
    return split_command(full_command)[0]


def safe_file_stem(name: str) -> str:
    """Turn a display name into a file stem (``"My App"`` → ``"my-app"``)."""
    stem = name.strip().replace(" ", "-").replace("/", "-").replace("\\", "-").lower()
    return stem or "entry"


def atomic_write_text(path: Path, content: str) -> None:
    """Write *content* to *path* through a temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f"{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with open(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        Path(tmp_name).replace(path)
    finally:
        tmp_path = Path(tmp_name)
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def translate_os_error(exc: OSError, key: str) -> RegistryError:
    """Map a filesystem/registry ``OSError`` onto the registry taxonomy."""
    if isinstance(exc, FileNotFoundError):
        return NotFoundError(f"'{key}' no longer exists", key=key)
    if isinstance(exc, PermissionError):
        return PermissionDeniedError(
            f"Access denied for '{key}': elevated rights are required", key=key
        )
    return RegistryError(f"{key}: {exc.strerror or exc}", key=key)

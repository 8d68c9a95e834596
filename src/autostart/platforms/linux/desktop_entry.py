"""XDG ``.desktop`` file helpers: read keys, flip enablement, render new entries."""

from __future__ import annotations

HIDDEN_KEY = "Hidden"
GNOME_ENABLED_KEY = "X-GNOME-Autostart-enabled"

# Launcher prefixes stripped from ``Exec`` before extracting the program.
_EXEC_PREFIXES: tuple[str, ...] = ("env GDK_BACKEND=x11 ", "env ")


def extract_value(content: str, key: str) -> str | None:
    """Return the value of the first ``key=value`` line, or ``None``."""
    prefix = f"{key}="
    for line in content.splitlines():
        if line.startswith(prefix):
            return line[len(prefix):].strip()
    return None


def clean_exec(raw_exec: str) -> str:
    """Strip ``env`` launcher prefixes from an ``Exec`` value."""
    cleaned = raw_exec
    for prefix in _EXEC_PREFIXES:
        cleaned = cleaned.replace(prefix, "")
    return cleaned.strip()


def is_enabled(content: str) -> bool:
    """``Hidden`` defaults to false and the GNOME flag defaults to true."""
    hidden = (extract_value(content, HIDDEN_KEY) or "false").lower() == "true"
    gnome_enabled = (extract_value(content, GNOME_ENABLED_KEY) or "true").lower() == "true"
    return not hidden and gnome_enabled


def set_enabled(content: str, enabled: bool) -> str:
    """Return *content* with both enablement markers rewritten.

    Missing markers are appended.  Other lines are preserved verbatim.
    """
    hidden_line = f"{HIDDEN_KEY}={str(not enabled).lower()}"
    gnome_line = f"{GNOME_ENABLED_KEY}={str(enabled).lower()}"

    lines: list[str] = []
    hidden_found = gnome_found = False
    for line in content.splitlines():
        if line.startswith(f"{HIDDEN_KEY}="):
            lines.append(hidden_line)
            hidden_found = True
        elif line.startswith(f"{GNOME_ENABLED_KEY}="):
            lines.append(gnome_line)
            gnome_found = True
        else:
            lines.append(line)

    if not hidden_found:
        lines.append(hidden_line)
    if not gnome_found:
        lines.append(gnome_line)
    return "\n".join(lines) + "\n"


def render(name: str, command: str, description: str) -> str:
    """Render a new, enabled autostart entry."""
    return (
        "[Desktop Entry]\n"
        "Type=Application\n"
        f"Name={_single_line(name)}\n"
        f"Exec={_single_line(command)}\n"
        f"Comment={_single_line(description)}\n"
        f"{HIDDEN_KEY}=false\n"
        f"{GNOME_ENABLED_KEY}=true\n"
    )


def _single_line(value: str) -> str:
    # A newline would inject extra keys into the entry.
    return " ".join(value.splitlines()).strip()

#!/usr/bin/env python3
"""Print the startup-app and service inventory of this machine.

Usage:
    python scripts/list_startup.py [--apps-only | --services-only] [--dev]

Sections:
  - Startup apps: enabled marker, name, location, command
  - Services: enabled marker, unit name

``--dev`` (or ``AUTOSTART_DEV_MODE=1``) uses the in-memory adapter.

Exit code: 0 if every requested enumeration succeeded, 1 otherwise.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Resolve project root (script lives in scripts/, project root is parent)
PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"

# Ensure src/ is on sys.path so autostart.* imports work without installing
sys.path.insert(0, str(SRC_DIR))

from autostart.config.config_manager import load_config  # noqa: E402
from autostart.core.command_boundary import StartupCommands  # noqa: E402
from autostart.core.errors import RegistryError, error_payload  # noqa: E402
from autostart.platforms.factory import create_platform_adapter  # noqa: E402

# ---------------------------------------------------------------------------
# Colour helpers (ANSI)
# ---------------------------------------------------------------------------
_GREEN = "\033[92m"
_RED = "\033[91m"
_GREY = "\033[90m"
_BOLD = "\033[1m"
_RESET = "\033[0m"

# Use ASCII-safe symbols to avoid cp1252 encoding errors on Windows
_ON = "[ON] "
_OFF = "[OFF]"
_CROSS = "[FAIL]"


def _state(enabled: bool) -> str:
    return f"{_GREEN}{_ON}{_RESET}" if enabled else f"{_GREY}{_OFF}{_RESET}"


def _fail(msg: str) -> None:
    print(f"  {_RED}{_CROSS}{_RESET} {msg}")


def _describe(exc: RegistryError) -> str:
    payload = error_payload(exc)
    return f"{payload['label']}: {payload['message']}"


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

async def print_apps(commands: StartupCommands) -> bool:
    print(f"\n{_BOLD}Startup apps{_RESET}\n")
    try:
        entries = await commands.get_apps()
    except RegistryError as exc:
        _fail(_describe(exc))
        return False
    for entry in sorted(entries, key=lambda e: (e.name.lower(), e.path)):
        print(f"  {_state(entry.enabled)} {entry.name}  {_GREY}({entry.location}){_RESET}")
        print(f"        {entry.full_command or entry.command}")
    print(f"\n  Total: {len(entries)}")
    return True


async def print_services(commands: StartupCommands) -> bool:
    print(f"\n{_BOLD}Services{_RESET}\n")
    try:
        services = await commands.get_system_services()
    except RegistryError as exc:
        _fail(_describe(exc))
        return False
    for service in sorted(services, key=lambda s: s.name.lower()):
        print(f"  {_state(service.enabled)} {service.name}")
    enabled = sum(1 for s in services if s.enabled)
    print(f"\n  Total: {len(services)} ({enabled} enabled)")
    return True


async def run(commands: StartupCommands, apps: bool = True, services: bool = True) -> bool:
    """Print the requested sections.  Returns True if all of them succeeded."""
    ok = True
    if apps:
        ok = await print_apps(commands) and ok
    if services:
        ok = await print_services(commands) and ok
    return ok


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="List startup apps and services.")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--apps-only", action="store_true", help="skip the services section")
    group.add_argument("--services-only", action="store_true", help="skip the apps section")
    parser.add_argument("--dev", action="store_true", help="use the in-memory adapter")
    args = parser.parse_args(argv)

    config = load_config()
    if args.dev:
        config.system.dev_mode = True
    commands = StartupCommands(create_platform_adapter(config), config)
    try:
        ok = asyncio.run(
            run(commands, apps=not args.services_only, services=not args.apps_only)
        )
    finally:
        commands.shutdown()
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())

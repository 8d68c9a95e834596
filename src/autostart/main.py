"""Startup Manager — application entry point (NiceGUI composition root).

Wires together: Config → Logging → PlatformAdapter → StartupCommands → UI.
NiceGUI owns the event loop; ``app.on_startup`` / ``app.on_shutdown``
handle lifecycle.
"""

from __future__ import annotations

import logging as _logging

from nicegui import app, ui

from autostart.config.config_manager import load_config
from autostart.core.command_boundary import StartupCommands
from autostart.log_config.logger import setup_logging
from autostart.platforms.factory import create_platform_adapter
from autostart.ui.main_page import MainPage

_log = _logging.getLogger(__name__)


def main() -> None:
    """Synchronous entry point — bootstraps and starts NiceGUI."""

    # 1. Load configuration, then configure logging from it
    config = load_config()
    setup_logging(log_level=config.system.log_level, log_dir=config.system.log_dir)
    _log.info("Starting Startup Manager")

    # 2. Pick the platform adapter once for the whole process
    adapter = create_platform_adapter(config)

    # 3. Command boundary owns the worker pool
    commands = StartupCommands(adapter, config)

    # 4. UI
    page = MainPage(commands=commands, config=config)
    page.setup_page()

    # 5. Lifecycle hooks
    async def on_startup() -> None:
        _log.info(
            "Startup Manager running on http://localhost:%d (%s adapter)",
            config.system.webui_port,
            adapter.platform_name,
        )

    async def on_shutdown() -> None:
        _log.info("NiceGUI shutdown — releasing workers")
        commands.shutdown()
        _log.info("Startup Manager stopped")

    app.on_startup(on_startup)
    app.on_shutdown(on_shutdown)

    # 6. Launch NiceGUI (blocks forever)
    ui.run(
        port=config.system.webui_port,
        title="Startup Manager",
        reload=False,
        show=False,
    )


if __name__ in {"__main__", "__mp_main__"}:
    main()

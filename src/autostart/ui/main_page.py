"""Main page — NiceGUI ``/`` route for startup apps and system services.

Provides:
* Apps tab: table of startup entries with enable switches, delete button
  (with confirmation) and an "Add entry" dialog
* Services tab: service units with enable switches
* Refresh buttons; every mutation re-queries the list it touched

All work goes through :class:`~autostart.core.command_boundary.StartupCommands`.
The ``_*_values`` helpers return ``(ok, message)`` so they can be tested
without a browser.
"""

from __future__ import annotations

import logging
import platform
from typing import TYPE_CHECKING, Any

from nicegui import ui

from autostart.core.errors import RegistryError, error_payload

if TYPE_CHECKING:
    from autostart.core.command_boundary import StartupCommands
    from autostart.core.models.config import AutostartConfig
    from autostart.core.models.entry import ServiceEntry, StartupEntry

_log = logging.getLogger(__name__)

_CARD_STYLE = "background: #2a2a2a;"
_TITLE_STYLE = "font-size: 18px; font-weight: bold; color: #ffffff; margin-bottom: 8px;"


def _describe_failure(exc: BaseException) -> str:
    payload = error_payload(exc)
    return f"{payload['label']}: {payload['message']}"


class MainPage:
    """Constructs the ``/`` route.

    Args:
        commands: The command boundary bound to this process's adapter.
        config: System configuration.
    """

    def __init__(self, commands: "StartupCommands", config: "AutostartConfig") -> None:
        self._commands = commands
        self._config = config

    def setup_page(self) -> None:
        """Register the ``/`` route."""

        @ui.page("/")
        async def index():
            await self._build_page()

    # ------------------------------------------------------------------
    # Row helpers (pure, used by the table and by tests)
    # ------------------------------------------------------------------

    @staticmethod
    def app_rows(entries: list["StartupEntry"]) -> list[dict[str, Any]]:
        """Flatten entries into table rows, sorted by name then path."""
        rows = []
        for entry in sorted(entries, key=lambda e: (e.name.lower(), e.path)):
            rows.append({
                "path": entry.path,
                "name": entry.name,
                "command": entry.full_command or entry.command,
                "location": entry.location,
                "size": entry.size,
                "publisher": entry.publisher if entry.has_publisher else "—",
                "description": entry.description[:80],
                "enabled": entry.enabled,
            })
        return rows

    @staticmethod
    def service_rows(services: list["ServiceEntry"]) -> list[dict[str, Any]]:
        return [
            {"name": s.name, "state": s.state.value, "enabled": s.enabled}
            for s in sorted(services, key=lambda s: s.name.lower())
        ]

    # ------------------------------------------------------------------
    # Action helpers: return (ok, message)
    # ------------------------------------------------------------------

    async def _load_apps_values(self) -> tuple[list[dict[str, Any]], str]:
        """Return ``(rows, error_message)``; *error_message* is ``""`` on success."""
        try:
            entries = await self._commands.get_apps()
        except RegistryError as exc:
            return [], _describe_failure(exc)
        return self.app_rows(entries), ""

    async def _load_services_values(self) -> tuple[list[dict[str, Any]], str]:
        try:
            services = await self._commands.get_system_services()
        except RegistryError as exc:
            return [], _describe_failure(exc)
        return self.service_rows(services), ""

    async def _toggle_app_values(self, path: str, enable: bool) -> tuple[bool, str]:
        try:
            await self._commands.toggle_app(path, enable)
        except RegistryError as exc:
            return False, _describe_failure(exc)
        return True, f"{'Enabled' if enable else 'Disabled'} {path}"

    async def _create_app_values(
        self, name: str, command: str, description: str = ""
    ) -> tuple[bool, str]:
        if not (name or "").strip():
            return False, "Name is required"
        if not (command or "").strip():
            return False, "Command is required"
        try:
            await self._commands.create_app(name, command, description or "")
        except RegistryError as exc:
            return False, _describe_failure(exc)
        return True, f"Added '{name.strip()}'"

    async def _delete_app_values(self, path: str) -> tuple[bool, str]:
        try:
            await self._commands.delete_app(path)
        except RegistryError as exc:
            return False, _describe_failure(exc)
        return True, f"Deleted {path}"

    async def _toggle_service_values(self, name: str, enable: bool) -> tuple[bool, str]:
        try:
            await self._commands.toggle_service(name, enable)
        except RegistryError as exc:
            return False, _describe_failure(exc)
        return True, f"Service {name} {'enabled' if enable else 'disabled'}"

    # ------------------------------------------------------------------
    # Page construction
    # ------------------------------------------------------------------

    async def _build_page(self) -> None:
        ui.dark_mode().enable()
        ui.query("body").style("background: #1a1a1a; margin: 0; padding: 0;")

        with ui.column().classes("w-full items-center").style(
            "min-height: 100vh; padding: 16px; gap: 16px; max-width: 1200px; margin: auto;"
        ):
            with ui.row().classes("w-full items-center justify-between"):
                ui.label("Startup Manager").style(
                    "font-size: 24px; font-weight: bold; color: #ffffff;"
                )
                mode = "in-memory (dev mode)" if self._config.system.dev_mode else platform.system()
                ui.label(f"Backend: {self._commands.adapter.platform_name} · {mode}").style(
                    "color: #888888; font-size: 14px;"
                )

            with ui.tabs().classes("w-full") as tabs:
                apps_tab = ui.tab("Apps", icon="rocket_launch")
                services_tab = ui.tab("Services", icon="settings")

            with ui.tab_panels(tabs, value=apps_tab).classes("w-full").style("background: transparent;"):
                with ui.tab_panel(apps_tab):
                    await self._build_apps_card()
                with ui.tab_panel(services_tab):
                    await self._build_services_card()

    # ------------------------------------------------------------------
    # Apps card
    # ------------------------------------------------------------------

    async def _build_apps_card(self) -> None:
        with ui.card().classes("w-full").style(_CARD_STYLE):
            with ui.row().classes("w-full items-center justify-between"):
                ui.label("Startup Apps").style(_TITLE_STYLE)
                with ui.row().classes("gap-2"):
                    add_button = ui.button("Add entry", icon="add").props("color=positive")
                    refresh_button = ui.button("Refresh", icon="refresh").props("flat color=primary")

            columns = [
                {"name": "enabled", "label": "On", "field": "enabled", "align": "left"},
                {"name": "name", "label": "Name", "field": "name", "align": "left", "sortable": True},
                {"name": "command", "label": "Command", "field": "command", "align": "left"},
                {"name": "location", "label": "Location", "field": "location", "align": "left", "sortable": True},
                {"name": "size", "label": "Size", "field": "size", "align": "left"},
                {"name": "publisher", "label": "Publisher", "field": "publisher", "align": "left"},
                {"name": "actions", "label": "", "field": "path", "align": "right"},
            ]
            table = ui.table(columns=columns, rows=[], row_key="path").classes("w-full").style(
                "background: #333333; color: #ffffff;"
            )
            table.add_slot("body-cell-enabled", """
                <q-td :props="props">
                    <q-toggle :model-value="props.row.enabled"
                        @update:model-value="v => $parent.$emit('toggle', {path: props.row.path, enable: v})" />
                </q-td>
            """)
            table.add_slot("body-cell-actions", """
                <q-td :props="props">
                    <q-btn flat dense round icon="delete" color="negative"
                        @click="$parent.$emit('delete', props.row)" />
                </q-td>
            """)
            status_label = ui.label("").style("color: #ff4444; font-size: 14px;")

            async def _refresh() -> None:
                rows, error = await self._load_apps_values()
                table.rows = rows
                table.update()
                status_label.text = error

            async def _on_toggle(e) -> None:
                ok, message = await self._toggle_app_values(e.args["path"], bool(e.args["enable"]))
                ui.notify(message, type="positive" if ok else "negative")
                await _refresh()

            async def _on_delete(e) -> None:
                row = e.args
                with ui.dialog() as dialog, ui.card():
                    ui.label(f"Delete '{row['name']}'?").style("font-weight: bold;")
                    ui.label(row["path"]).style("color: #888888; font-size: 12px;")
                    with ui.row().classes("gap-2"):
                        ui.button("Cancel", on_click=lambda: dialog.submit(False)).props("flat")
                        ui.button("Delete", on_click=lambda: dialog.submit(True)).props("color=negative")
                if not await dialog:
                    return
                ok, message = await self._delete_app_values(row["path"])
                ui.notify(message, type="positive" if ok else "negative")
                await _refresh()

            table.on("toggle", _on_toggle)
            table.on("delete", _on_delete)
            refresh_button.on_click(_refresh)
            add_button.on_click(lambda: self._open_add_dialog(_refresh))

            await _refresh()

    def _open_add_dialog(self, on_added) -> None:
        with ui.dialog() as dialog, ui.card().style("min-width: 420px;"):
            ui.label("Add startup entry").style("font-size: 16px; font-weight: bold;")
            name_input = ui.input("Name", placeholder="Notes").classes("w-full")
            command_input = ui.input(
                "Command", placeholder="/usr/bin/notes-app --minimized"
            ).classes("w-full")
            description_input = ui.input("Description (optional)").classes("w-full")
            error_label = ui.label("").style("color: #ff4444; font-size: 13px;")

            async def _submit() -> None:
                ok, message = await self._create_app_values(
                    name_input.value, command_input.value, description_input.value
                )
                if not ok:
                    error_label.text = message
                    return
                dialog.close()
                ui.notify(message, type="positive")
                await on_added()

            with ui.row().classes("gap-2"):
                ui.button("Cancel", on_click=dialog.close).props("flat")
                ui.button("Add", on_click=_submit, icon="add").props("color=positive")
        dialog.open()

    # ------------------------------------------------------------------
    # Services card
    # ------------------------------------------------------------------

    async def _build_services_card(self) -> None:
        with ui.card().classes("w-full").style(_CARD_STYLE):
            with ui.row().classes("w-full items-center justify-between"):
                ui.label("System Services").style(_TITLE_STYLE)
                refresh_button = ui.button("Refresh", icon="refresh").props("flat color=primary")

            filter_input = ui.input("Filter", placeholder="ssh").classes("w-64")
            columns = [
                {"name": "enabled", "label": "Enabled", "field": "enabled", "align": "left"},
                {"name": "name", "label": "Service", "field": "name", "align": "left", "sortable": True},
                {"name": "state", "label": "State", "field": "state", "align": "left"},
            ]
            table = ui.table(columns=columns, rows=[], row_key="name").classes("w-full").style(
                "background: #333333; color: #ffffff;"
            )
            table.bind_filter_from(filter_input, "value")
            table.add_slot("body-cell-enabled", """
                <q-td :props="props">
                    <q-toggle :model-value="props.row.enabled"
                        @update:model-value="v => $parent.$emit('toggle', {name: props.row.name, enable: v})" />
                </q-td>
            """)
            status_label = ui.label("").style("color: #ff4444; font-size: 14px;")

            async def _refresh() -> None:
                rows, error = await self._load_services_values()
                table.rows = rows
                table.update()
                status_label.text = error

            async def _on_toggle(e) -> None:
                ok, message = await self._toggle_service_values(e.args["name"], bool(e.args["enable"]))
                ui.notify(message, type="positive" if ok else "negative")
                await _refresh()

            table.on("toggle", _on_toggle)
            refresh_button.on_click(_refresh)

            await _refresh()

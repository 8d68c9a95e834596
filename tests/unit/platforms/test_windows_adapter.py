"""Tests for WindowsAdapter with a fake Run-key store and a temp Startup folder.

Runs on any OS: ``winreg`` is never imported and ``psutil.win_service_iter``
is monkeypatched.
"""

from __future__ import annotations

import psutil
import pytest

from autostart.core.errors import (
    EnumerationError,
    InvalidCommandError,
    NotFoundError,
    PermissionDeniedError,
    RegistryError,
)
from autostart.core.models.config import PlatformConfig
from autostart.core.models.entry import ServiceState
from autostart.platforms.windows.windows_adapter import (
    WindowsAdapter,
    parse_registry_path,
    registry_path,
)
from tests.helpers.fakes import FakeRunKeys, FakeRunner

ONEDRIVE = '"C:\\Program Files\\Microsoft OneDrive\\OneDrive.exe" /background'


@pytest.fixture
def startup_dir(tmp_path):
    path = tmp_path / "Startup"
    path.mkdir()
    return path


@pytest.fixture
def run_keys() -> FakeRunKeys:
    return FakeRunKeys({"HKCU": {"OneDrive": ONEDRIVE}, "HKLM": {"SecurityHealth": "C:\\Windows\\sechealth.exe"}})


@pytest.fixture
def adapter(startup_dir, run_keys) -> WindowsAdapter:
    return WindowsAdapter(PlatformConfig(autostart_dir=str(startup_dir)), run_keys=run_keys, runner=FakeRunner())


def _by_path(adapter: WindowsAdapter) -> dict:
    return {e.path: e for e in adapter.list_startup_entries()}


class TestRegistryPaths:
    def test_round_trip(self) -> None:
        assert parse_registry_path(registry_path("HKCU", "OneDrive")) == ("HKCU", "OneDrive")

    def test_value_name_may_contain_separator(self) -> None:
        assert parse_registry_path("REGISTRY::HKLM::A::B") == ("HKLM", "A::B")

    @pytest.mark.parametrize("bad", ["REGISTRY::HKCR::x", "REGISTRY::HKCU", "REGISTRY::HKCU::"])
    def test_invalid(self, bad) -> None:
        with pytest.raises(NotFoundError):
            parse_registry_path(bad)


class TestRegistryEntries:
    def test_enumerates_both_hives(self, adapter) -> None:
        entries = _by_path(adapter)
        onedrive = entries["REGISTRY::HKCU::OneDrive"]
        assert onedrive.command == "C:\\Program Files\\Microsoft OneDrive\\OneDrive.exe"
        assert onedrive.full_command == ONEDRIVE
        assert onedrive.location == "Registry (HKCU)"
        assert onedrive.enabled is True
        assert entries["REGISTRY::HKLM::SecurityHealth"].location == "Registry (HKLM)"

    def test_toggle_uses_startup_approved(self, adapter, run_keys) -> None:
        adapter.set_enabled("REGISTRY::HKCU::OneDrive", False)
        assert ("HKCU", "OneDrive") in run_keys.disabled
        assert run_keys.values["HKCU"]["OneDrive"] == ONEDRIVE
        assert _by_path(adapter)["REGISTRY::HKCU::OneDrive"].enabled is False

    def test_toggle_hklm_denied(self, adapter, run_keys) -> None:
        run_keys.read_only.add("HKLM")
        with pytest.raises(PermissionDeniedError):
            adapter.set_enabled("REGISTRY::HKLM::SecurityHealth", False)

    def test_toggle_unknown_value(self, adapter) -> None:
        with pytest.raises(NotFoundError):
            adapter.set_enabled("REGISTRY::HKCU::Ghost", True)

    def test_delete(self, adapter, run_keys) -> None:
        adapter.delete_entry("REGISTRY::HKCU::OneDrive")
        assert "OneDrive" not in run_keys.values["HKCU"]
        with pytest.raises(NotFoundError):
            adapter.delete_entry("REGISTRY::HKCU::OneDrive")

    def test_one_unreadable_hive_is_tolerated(self, adapter, run_keys) -> None:
        run_keys.unreadable.add("HKLM")
        assert set(_by_path(adapter)) == {"REGISTRY::HKCU::OneDrive"}

    def test_all_stores_unreadable(self, adapter, run_keys, monkeypatch) -> None:
        run_keys.unreadable.update({"HKCU", "HKLM"})

        def broken_folder():
            raise PermissionError(13, "Access is denied")

        monkeypatch.setattr(adapter, "_list_folder_entries", broken_folder)
        with pytest.raises(EnumerationError):
            adapter.list_startup_entries()


class TestStartupFolder:
    def test_shortcut_entry(self, adapter, startup_dir) -> None:
        (startup_dir / "Slack.lnk").write_bytes(b"L\x00\x00\x00")
        entry = _by_path(adapter)[str(startup_dir / "Slack.lnk")]
        assert entry.name == "Slack"
        assert entry.size == "Shortcut"
        assert entry.enabled is True

    def test_unrelated_files_ignored(self, adapter, startup_dir) -> None:
        (startup_dir / "desktop.ini").write_text("[.ShellClassInfo]")
        assert all(not p.endswith("desktop.ini") for p in _by_path(adapter))

    def test_disable_renames_and_keeps_identity(self, adapter, startup_dir) -> None:
        shortcut = startup_dir / "Slack.lnk"
        shortcut.write_bytes(b"L")
        adapter.set_enabled(str(shortcut), False)

        assert not shortcut.exists()
        assert (startup_dir / "Slack.lnk.disabled").exists()
        entry = _by_path(adapter)[str(shortcut)]
        assert entry.enabled is False

        adapter.set_enabled(str(shortcut), False)
        adapter.set_enabled(str(shortcut), True)
        assert shortcut.exists()
        assert _by_path(adapter)[str(shortcut)].enabled is True

    def test_create_writes_batch_script(self, adapter, startup_dir) -> None:
        entry = adapter.create_entry("My Notes", '"C:\\Apps\\notes.exe" --tray', "Take notes")
        script = startup_dir / "my-notes.bat"
        assert entry.path == str(script)
        assert entry.command == "C:\\Apps\\notes.exe"
        assert entry.full_command == '"C:\\Apps\\notes.exe" --tray'
        assert entry.description == "Take notes"
        assert entry.enabled is True
        assert script.read_bytes().split(b"\r\n")[:3] == [
            b"@echo off",
            b"REM Take notes",
            b'start "" "C:\\Apps\\notes.exe" --tray',
        ]

    def test_create_rejects_disabled_twin(self, adapter, startup_dir) -> None:
        (startup_dir / "notes.bat.disabled").write_text("@echo off\r\n")
        with pytest.raises(InvalidCommandError):
            adapter.create_entry("Notes", "notes.exe", "")

    def test_delete_disabled_file(self, adapter, startup_dir) -> None:
        entry = adapter.create_entry("Notes", "notes.exe", "")
        adapter.set_enabled(entry.path, False)
        adapter.delete_entry(entry.path)
        assert list(startup_dir.iterdir()) == []
        with pytest.raises(NotFoundError):
            adapter.delete_entry(entry.path)


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


class _FakeService:
    def __init__(self, name: str, start_type: str | Exception) -> None:
        self._name = name
        self._start_type = start_type

    def name(self) -> str:
        return self._name

    def start_type(self) -> str:
        if isinstance(self._start_type, Exception):
            raise self._start_type
        return self._start_type


class TestServices:
    def test_list_services(self, adapter, monkeypatch) -> None:
        services = [
            _FakeService("Spooler", "automatic"),
            _FakeService("Fax", "manual"),
            _FakeService("RemoteRegistry", "disabled"),
            _FakeService("Secret", psutil.AccessDenied()),
        ]
        monkeypatch.setattr(psutil, "win_service_iter", lambda: iter(services), raising=False)
        states = {s.name: s.state for s in adapter.list_services()}
        assert states == {
            "Spooler": ServiceState.ENABLED,
            "Fax": ServiceState.DISABLED,
            "RemoteRegistry": ServiceState.DISABLED,
        }

    def test_scm_unavailable(self, adapter, monkeypatch) -> None:
        def broken():
            raise OSError("SCM unavailable")

        monkeypatch.setattr(psutil, "win_service_iter", broken, raising=False)
        with pytest.raises(EnumerationError):
            adapter.list_services()

    def test_toggle_runs_sc_config(self, startup_dir, run_keys) -> None:
        runner = FakeRunner(lambda argv: (0, "[SC] ChangeServiceConfig SUCCESS", ""))
        adapter = WindowsAdapter(PlatformConfig(autostart_dir=str(startup_dir)), run_keys=run_keys, runner=runner)
        adapter.set_service_enabled("Spooler", False)
        assert runner.calls == [["sc", "config", "Spooler", "start=", "disabled"]]

    @pytest.mark.parametrize(
        ("output", "error"),
        [
            ("[SC] OpenService FAILED 1060:\n\nThe specified service does not exist.", NotFoundError),
            ("[SC] OpenService FAILED 5:\n\nAccess is denied.", PermissionDeniedError),
            ("[SC] ChangeServiceConfig FAILED 1072:", RegistryError),
        ],
    )
    def test_toggle_errors(self, startup_dir, run_keys, output, error) -> None:
        runner = FakeRunner(lambda argv: (1, output, ""))
        adapter = WindowsAdapter(PlatformConfig(autostart_dir=str(startup_dir)), run_keys=run_keys, runner=runner)
        with pytest.raises(error):
            adapter.set_service_enabled("Spooler", True)

"""Tests for MutationEngine: validate → apply → confirm."""

from __future__ import annotations

import threading

import pytest

from autostart.core.entry_registry import EntryRegistry
from autostart.core.errors import (
    InconsistentStateError,
    InvalidCommandError,
    NotFoundError,
    PermissionDeniedError,
)
from autostart.core.models.config import PlatformConfig
from autostart.core.mutation_engine import MutationEngine, resolve_program


def _engine(adapter, strict: bool = False) -> MutationEngine:
    return MutationEngine(adapter, EntryRegistry(), PlatformConfig(strict_command_validation=strict))


def _paths(adapter) -> list[str]:
    return [e.path for e in adapter.list_startup_entries()]


# ---------------------------------------------------------------------------
# toggle_app
# ---------------------------------------------------------------------------


class TestToggleApp:
    def test_disable_then_confirmed(self, seeded_adapter) -> None:
        entry = _engine(seeded_adapter).toggle_app("memory://dropbox", False)
        assert entry.enabled is False

    def test_redundant_enable_succeeds(self, seeded_adapter) -> None:
        engine = _engine(seeded_adapter)
        engine.toggle_app("memory://dropbox", True)
        assert engine.toggle_app("memory://dropbox", True).enabled is True

    def test_unknown_path_not_found_and_adapter_untouched(self, seeded_adapter) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            _engine(seeded_adapter).toggle_app("memory://ghost", True)
        assert exc_info.value.key == "memory://ghost"
        assert ("set_enabled", "memory://ghost") not in seeded_adapter.calls

    def test_permission_denied_propagates(self, seeded_adapter) -> None:
        seeded_adapter.simulate_permission_denied("memory://dropbox")
        with pytest.raises(PermissionDeniedError):
            _engine(seeded_adapter).toggle_app("memory://dropbox", False)

    def test_ignored_write_is_inconsistent(self, seeded_adapter) -> None:
        seeded_adapter.simulate_ignored_write("memory://dropbox")
        with pytest.raises(InconsistentStateError):
            _engine(seeded_adapter).toggle_app("memory://dropbox", False)

    def test_racing_toggles_end_in_one_of_two_states(self, seeded_adapter) -> None:
        engine = _engine(seeded_adapter)
        barrier = threading.Barrier(8)
        errors: list[BaseException] = []

        def worker(enable: bool) -> None:
            barrier.wait(timeout=5)
            try:
                engine.toggle_app("memory://redshift", enable)
            except BaseException as exc:  # noqa: BLE001 - collected for the assert
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(i % 2 == 0,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert errors == []
        final = {e.path: e for e in seeded_adapter.list_startup_entries()}["memory://redshift"]
        assert final.enabled in (True, False)
        assert engine.locks.active_keys() == []


# ---------------------------------------------------------------------------
# create_app
# ---------------------------------------------------------------------------


class TestCreateApp:
    def test_creates_enabled_entry(self, seeded_adapter) -> None:
        entry = _engine(seeded_adapter).create_app("Notes", "/usr/bin/notes-app", "Take notes")
        assert entry.path == "memory://notes"
        assert entry.enabled is True
        assert entry.command == "/usr/bin/notes-app"
        assert entry.description == "Take notes"

    def test_input_is_trimmed(self, seeded_adapter) -> None:
        entry = _engine(seeded_adapter).create_app("  Notes  ", "  notes-app --tray ", " d ")
        assert entry.name == "Notes"
        assert entry.full_command == "notes-app --tray"
        assert entry.description == "d"

    @pytest.mark.parametrize(("name", "command"), [("", "x"), ("   ", "x"), ("App", ""), ("App", "  \t")])
    def test_blank_input_rejected_before_adapter(self, seeded_adapter, name, command) -> None:
        with pytest.raises(InvalidCommandError):
            _engine(seeded_adapter).create_app(name, command)
        assert not any(call[0] == "create_entry" for call in seeded_adapter.calls)

    def test_strict_rejects_unresolvable_program(self, seeded_adapter, monkeypatch) -> None:
        monkeypatch.setattr("autostart.core.mutation_engine.resolve_program", lambda p: None)
        with pytest.raises(InvalidCommandError, match="was not found"):
            _engine(seeded_adapter, strict=True).create_app("Notes", "/nope/notes-app")
        assert "memory://notes" not in _paths(seeded_adapter)

    def test_strict_accepts_resolvable_program(self, seeded_adapter, monkeypatch) -> None:
        monkeypatch.setattr("autostart.core.mutation_engine.resolve_program", lambda p: p)
        entry = _engine(seeded_adapter, strict=True).create_app("Notes", "/usr/bin/notes-app")
        assert entry.enabled is True

    def test_duplicate_name_rejected(self, seeded_adapter) -> None:
        engine = _engine(seeded_adapter)
        engine.create_app("Notes", "notes-app")
        with pytest.raises(InvalidCommandError):
            engine.create_app("notes", "notes-app")
        assert _paths(seeded_adapter).count("memory://notes") == 1

    def test_unconfirmed_create_is_rolled_back(self, seeded_adapter) -> None:
        seeded_adapter.simulate_ignored_write("memory://notes")
        with pytest.raises(InconsistentStateError):
            _engine(seeded_adapter).create_app("Notes", "notes-app")
        assert ("delete_entry", "memory://notes") in seeded_adapter.calls
        assert "memory://notes" not in _paths(seeded_adapter)


# ---------------------------------------------------------------------------
# delete_app
# ---------------------------------------------------------------------------


class TestDeleteApp:
    def test_delete_then_second_delete_not_found(self, seeded_adapter) -> None:
        engine = _engine(seeded_adapter)
        engine.delete_app("memory://dropbox")
        assert "memory://dropbox" not in _paths(seeded_adapter)
        with pytest.raises(NotFoundError):
            engine.delete_app("memory://dropbox")

    def test_delete_that_does_not_stick(self, seeded_adapter) -> None:
        seeded_adapter.simulate_ignored_write("memory://redshift")
        with pytest.raises(InconsistentStateError):
            _engine(seeded_adapter).delete_app("memory://redshift")


# ---------------------------------------------------------------------------
# toggle_service
# ---------------------------------------------------------------------------


class TestToggleService:
    def test_disable_service(self, seeded_adapter) -> None:
        service = _engine(seeded_adapter).toggle_service("cups.service", False)
        assert service.enabled is False

    def test_unknown_service_not_found_others_unchanged(self, seeded_adapter) -> None:
        before = seeded_adapter.list_services()
        with pytest.raises(NotFoundError):
            _engine(seeded_adapter).toggle_service("sshd", False)
        assert seeded_adapter.list_services() == before
        assert not any(call[0] == "set_service_enabled" for call in seeded_adapter.calls)

    def test_denied(self, seeded_adapter) -> None:
        seeded_adapter.simulate_permission_denied("ssh.service")
        with pytest.raises(PermissionDeniedError):
            _engine(seeded_adapter).toggle_service("ssh.service", False)

    def test_foreign_override_is_inconsistent(self, seeded_adapter) -> None:
        seeded_adapter.simulate_ignored_write("bluetooth.service")
        with pytest.raises(InconsistentStateError):
            _engine(seeded_adapter).toggle_service("bluetooth.service", True)


# ---------------------------------------------------------------------------
# resolve_program
# ---------------------------------------------------------------------------


class TestResolveProgram:
    def test_existing_file(self, tmp_path) -> None:
        program = tmp_path / "tool"
        program.write_text("#!/bin/sh\n")
        assert resolve_program(str(program)) == str(program)

    def test_missing_path(self, tmp_path) -> None:
        assert resolve_program(str(tmp_path / "missing")) is None

    def test_bare_name_uses_path_lookup(self, monkeypatch) -> None:
        monkeypatch.setattr("autostart.core.mutation_engine.shutil.which", lambda name: f"/bin/{name}")
        assert resolve_program("notes-app") == "/bin/notes-app"

"""Tests for the XDG desktop-entry helpers."""

from __future__ import annotations

from autostart.platforms.linux import desktop_entry

SAMPLE = """[Desktop Entry]
Type=Application
Name=Redshift
Exec=env GDK_BACKEND=x11 redshift-gtk -l 51:0
Comment=Colour temperature
X-GNOME-Autostart-enabled=false
"""


def test_extract_value_first_match() -> None:
    content = "Name=First\nName=Second\n"
    assert desktop_entry.extract_value(content, "Name") == "First"
    assert desktop_entry.extract_value(content, "Exec") is None


def test_clean_exec_strips_env_prefixes() -> None:
    assert desktop_entry.clean_exec("env GDK_BACKEND=x11 redshift-gtk") == "redshift-gtk"
    assert desktop_entry.clean_exec("env FOO=1 tool") == "FOO=1 tool"
    assert desktop_entry.clean_exec("  /usr/bin/app  ") == "/usr/bin/app"


class TestIsEnabled:
    def test_defaults_enabled(self) -> None:
        assert desktop_entry.is_enabled("[Desktop Entry]\nExec=x\n") is True

    def test_gnome_flag_off(self) -> None:
        assert desktop_entry.is_enabled(SAMPLE) is False

    def test_hidden(self) -> None:
        assert desktop_entry.is_enabled("Hidden=true\nX-GNOME-Autostart-enabled=true\n") is False

    def test_case_insensitive_values(self) -> None:
        assert desktop_entry.is_enabled("Hidden=False\nX-GNOME-Autostart-enabled=TRUE\n") is True


class TestSetEnabled:
    def test_rewrites_existing_marker_and_appends_missing(self) -> None:
        updated = desktop_entry.set_enabled(SAMPLE, True)
        assert "X-GNOME-Autostart-enabled=true" in updated
        assert "X-GNOME-Autostart-enabled=false" not in updated
        assert updated.rstrip().endswith("Hidden=false")
        assert desktop_entry.is_enabled(updated) is True

    def test_disable_sets_both_markers(self) -> None:
        updated = desktop_entry.set_enabled("[Desktop Entry]\nExec=x", False)
        assert "Hidden=true" in updated
        assert "X-GNOME-Autostart-enabled=false" in updated
        assert updated.endswith("\n")

    def test_other_lines_preserved(self) -> None:
        updated = desktop_entry.set_enabled(SAMPLE, False)
        assert "Exec=env GDK_BACKEND=x11 redshift-gtk -l 51:0" in updated
        assert "Comment=Colour temperature" in updated

    def test_idempotent(self) -> None:
        once = desktop_entry.set_enabled(SAMPLE, False)
        assert desktop_entry.set_enabled(once, False) == once


def test_render_is_single_line_per_key() -> None:
    content = desktop_entry.render("Notes", "notes-app", "line one\nHidden=true")
    assert desktop_entry.extract_value(content, "Comment") == "line one Hidden=true"
    assert desktop_entry.is_enabled(content) is True
    assert desktop_entry.extract_value(content, "Exec") == "notes-app"

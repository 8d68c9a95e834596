"""Registry access for the ``CurrentVersion\\Run`` keys.

Enablement of a Run value is not stored in the value itself.  Like Task
Manager, we keep a 12-byte marker under ``Explorer\\StartupApproved\\Run``:
first byte ``0x02`` means enabled, ``0x03`` disabled; no marker means enabled.

``winreg`` is imported lazily so this module can be imported (and the
adapter tested with a fake store) on any platform.
"""

from __future__ import annotations

from typing import Protocol

RUN_KEY = r"Software\Microsoft\Windows\CurrentVersion\Run"
APPROVED_KEY = r"Software\Microsoft\Windows\CurrentVersion\Explorer\StartupApproved\Run"

HIVES: tuple[str, ...] = ("HKCU", "HKLM")

_ENABLED_MARKER = b"\x02" + b"\x00" * 11
_DISABLED_MARKER = b"\x03" + b"\x00" * 11


class RunKeyStore(Protocol):
    """What :class:`WindowsAdapter` needs from the registry."""

    def list_values(self, hive: str) -> list[tuple[str, str]]: ...

    def is_approved(self, hive: str, name: str) -> bool: ...

    def set_approved(self, hive: str, name: str, enabled: bool) -> None: ...

    def delete_value(self, hive: str, name: str) -> None: ...


class WinRegRunKeys:
    """:class:`RunKeyStore` backed by ``winreg``.

    ``OSError`` subclasses (``FileNotFoundError``, ``PermissionError``)
    propagate to the adapter, which maps them onto registry errors.
    """

    def list_values(self, hive: str) -> list[tuple[str, str]]:
        import winreg

        values: list[tuple[str, str]] = []
        try:
            key = winreg.OpenKey(self._root(hive), RUN_KEY, 0, winreg.KEY_READ)
        except FileNotFoundError:
            return values
        with key:
            index = 0
            while True:
                try:
                    name, data, _type = winreg.EnumValue(key, index)
                except OSError:
                    break
                values.append((name, str(data)))
                index += 1
        return values

    def is_approved(self, hive: str, name: str) -> bool:
        import winreg

        try:
            with winreg.OpenKey(self._root(hive), APPROVED_KEY, 0, winreg.KEY_READ) as key:
                data, _type = winreg.QueryValueEx(key, name)
        except FileNotFoundError:
            return True
        if isinstance(data, bytes) and data:
            return data[0] != _DISABLED_MARKER[0]
        return True

    def set_approved(self, hive: str, name: str, enabled: bool) -> None:
        import winreg

        with winreg.CreateKeyEx(self._root(hive), APPROVED_KEY, 0, winreg.KEY_SET_VALUE) as key:
            marker = _ENABLED_MARKER if enabled else _DISABLED_MARKER
            winreg.SetValueEx(key, name, 0, winreg.REG_BINARY, marker)

    def delete_value(self, hive: str, name: str) -> None:
        import winreg

        root = self._root(hive)
        with winreg.OpenKey(root, RUN_KEY, 0, winreg.KEY_SET_VALUE | winreg.KEY_QUERY_VALUE) as key:
            winreg.DeleteValue(key, name)
        try:
            with winreg.OpenKey(root, APPROVED_KEY, 0, winreg.KEY_SET_VALUE) as key:
                winreg.DeleteValue(key, name)
        except FileNotFoundError:
            pass

    @staticmethod
    def _root(hive: str) -> int:
        import winreg

        return winreg.HKEY_CURRENT_USER if hive == "HKCU" else winreg.HKEY_LOCAL_MACHINE

"""Entry registry — merges adapter output into the canonical entity schema.

Stateless on purpose: every query re-runs the merge over a fresh
enumeration, so ``enabled`` always reflects on-disk truth.
"""

from __future__ import annotations

import logging as _logging
from typing import Iterable

from autostart.core.models.entry import UNKNOWN, ServiceEntry, StartupEntry

_log = _logging.getLogger(__name__)


class EntryRegistry:
    """Deduplicates and normalizes enumeration results.

    Merge policy: the first entry discovered for a key wins; later duplicates
    are dropped with a warning and never overwrite the earlier one.
    """

    def merge_entries(self, entries: Iterable[StartupEntry]) -> list[StartupEntry]:
        merged: dict[str, StartupEntry] = {}
        for entry in entries:
            existing = merged.get(entry.path)
            if existing is not None:
                _log.warning(
                    "Duplicate startup entry %s (%s, %s) — keeping first from %s",
                    entry.path,
                    entry.name,
                    entry.location,
                    existing.location,
                )
                continue
            merged[entry.path] = self._normalize(entry)
        return list(merged.values())

    def merge_services(self, services: Iterable[ServiceEntry]) -> list[ServiceEntry]:
        merged: dict[str, ServiceEntry] = {}
        for service in services:
            if service.name in merged:
                _log.warning("Duplicate service %s — keeping first", service.name)
                continue
            merged[service.name] = service
        return list(merged.values())

    def find_entry(self, entries: Iterable[StartupEntry], path: str) -> StartupEntry | None:
        """Return the entry with *path* from *entries*, or ``None``."""
        return next((e for e in entries if e.path == path), None)

    def find_service(self, services: Iterable[ServiceEntry], name: str) -> ServiceEntry | None:
        return next((s for s in services if s.name == name), None)

    @staticmethod
    def _normalize(entry: StartupEntry) -> StartupEntry:
        updates: dict[str, object] = {}
        if not entry.has_publisher and entry.publisher is not None:
            updates["publisher"] = None
        if not entry.size.strip():
            updates["size"] = UNKNOWN
        return entry.model_copy(update=updates) if updates else entry

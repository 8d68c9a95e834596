"""Query service — bulk enumeration kept off the event loop.

Adapter enumerations block (registry reads, directory scans, ``systemctl``).
They run on the shared worker pool; the awaiting coroutine is bounded by
``timeout`` and may be cancelled.  Cancellation only discards the result:
the OS call already in flight runs to completion on its worker thread.

No ordering is guaranteed; the presentation layer sorts as it likes.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor
from typing import Callable, TypeVar

from autostart.core.entry_registry import EntryRegistry
from autostart.core.errors import EnumerationError
from autostart.core.interfaces.platform import PlatformAdapter
from autostart.core.models.entry import ServiceEntry, StartupEntry

_log = logging.getLogger(__name__)

T = TypeVar("T")


class QueryService:
    """Args:
        adapter: The platform adapter selected at start-up.
        registry: Merge/normalize transform applied to every result.
        executor: Worker pool for blocking calls.
        timeout: Upper bound in seconds for one enumeration.
    """

    def __init__(
        self,
        adapter: PlatformAdapter,
        registry: EntryRegistry,
        executor: Executor,
        timeout: float = 30.0,
    ) -> None:
        self._adapter = adapter
        self._registry = registry
        self._executor = executor
        self._timeout = timeout

    async def list_apps(self) -> list[StartupEntry]:
        return await self._offload(
            "startup entries",
            lambda: self._registry.merge_entries(self._adapter.list_startup_entries()),
        )

    async def list_services(self) -> list[ServiceEntry]:
        return await self._offload(
            "services",
            lambda: self._registry.merge_services(self._adapter.list_services()),
        )

    async def _offload(self, what: str, func: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(self._executor, func)
        try:
            result = await asyncio.wait_for(future, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            _log.warning("Enumerating %s exceeded %.1fs — result discarded", what, self._timeout)
            raise EnumerationError(f"Enumerating {what} timed out after {self._timeout:g}s") from exc
        _log.debug("Enumerated %d %s", len(result), what)  # type: ignore[arg-type]
        return result

"""Command boundary — the operation set exposed to the presentation layer.

Every operation is a coroutine.  Blocking adapter work is dispatched to a
worker pool so the UI event loop never stalls.  Results are single values;
the caller re-queries after a mutation to refresh what it shows.

Failures are :class:`~autostart.core.errors.RegistryError` subclasses whose
``category`` tells "not found", "permission denied" and "invalid input"
apart without parsing text.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from autostart.core.entry_registry import EntryRegistry
from autostart.core.errors import InvalidCommandError, RegistryError
from autostart.core.interfaces.platform import PlatformAdapter
from autostart.core.models.config import AutostartConfig
from autostart.core.models.entry import ServiceEntry, StartupEntry
from autostart.core.mutation_engine import MutationEngine
from autostart.core.query_service import QueryService

_log = logging.getLogger(__name__)

OPERATIONS: tuple[str, ...] = (
    "get_apps",
    "toggle_app",
    "create_app",
    "delete_app",
    "get_system_services",
    "toggle_service",
)


class StartupCommands:
    """Explicit context for all six operations.

    Holds the adapter chosen at start-up plus the worker pool; nothing here
    is module-global, so tests build as many independent instances as they
    like.

    Args:
        adapter: Platform adapter selected once at process start.
        config: Validated configuration.
        executor: Optional worker pool.  When omitted one is created with
            ``config.system.worker_threads`` workers and shut down by
            :meth:`shutdown`.
    """

    def __init__(
        self,
        adapter: PlatformAdapter,
        config: AutostartConfig,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._adapter = adapter
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=config.system.worker_threads,
            thread_name_prefix="autostart-worker",
        )
        registry = EntryRegistry()
        self._queries = QueryService(
            adapter, registry, self._executor, timeout=config.system.query_timeout_seconds
        )
        self._mutations = MutationEngine(adapter, registry, config.platform)

    @property
    def adapter(self) -> PlatformAdapter:
        return self._adapter

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_apps(self) -> list[StartupEntry]:
        return await self._guard("get_apps", self._queries.list_apps())

    async def get_system_services(self) -> list[ServiceEntry]:
        return await self._guard("get_system_services", self._queries.list_services())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def toggle_app(self, path: str, enable: bool) -> None:
        await self._mutate("toggle_app", self._mutations.toggle_app, path, enable)

    async def create_app(self, name: str, command: str, description: str = "") -> None:
        await self._mutate("create_app", self._mutations.create_app, name, command, description)

    async def delete_app(self, path: str) -> None:
        await self._mutate("delete_app", self._mutations.delete_app, path)

    async def toggle_service(self, name: str, enable: bool) -> None:
        await self._mutate("toggle_service", self._mutations.toggle_service, name, enable)

    # ------------------------------------------------------------------
    # By-name dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, operation: str, **kwargs: Any) -> Any:
        """Invoke *operation* with keyword arguments (RPC-style entry point)."""
        if operation not in OPERATIONS:
            raise InvalidCommandError(f"Unknown operation '{operation}'")
        handler: Callable[..., Any] = getattr(self, operation)
        try:
            inspect.signature(handler).bind(**kwargs)
        except TypeError as exc:
            raise InvalidCommandError(f"Bad arguments for '{operation}': {exc}") from exc
        return await handler(**kwargs)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def shutdown(self) -> None:
        """Release the worker pool (if owned) and the adapter."""
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        self._adapter.cleanup()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _mutate(self, op: str, func: Callable[..., Any], *args: Any) -> None:
        loop = asyncio.get_running_loop()
        await self._guard(op, loop.run_in_executor(self._executor, functools.partial(func, *args)))

    @staticmethod
    async def _guard(op: str, awaitable: Any) -> Any:
        try:
            return await awaitable
        except RegistryError as exc:
            _log.warning("%s failed [%s]: %s", op, exc.category.value, exc)
            raise

"""Core services: entry registry, query service, mutation engine, command boundary."""

from autostart.core.command_boundary import StartupCommands
from autostart.core.entry_registry import EntryRegistry
from autostart.core.mutation_engine import MutationEngine
from autostart.core.query_service import QueryService

__all__ = [
    "EntryRegistry",
    "MutationEngine",
    "QueryService",
    "StartupCommands",
]

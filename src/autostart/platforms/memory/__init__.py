"""In-memory platform backend for development and testing."""

from autostart.platforms.memory.memory_adapter import InMemoryAdapter

__all__ = ["InMemoryAdapter"]

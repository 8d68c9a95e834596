"""Shared pytest fixtures for the startup registry tests."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from autostart.core.command_boundary import StartupCommands
from autostart.core.models.config import AutostartConfig, PlatformConfig
from autostart.core.models.entry import ServiceEntry, ServiceState, StartupEntry
from autostart.platforms.memory.memory_adapter import InMemoryAdapter


@pytest.fixture
def autostart_config() -> AutostartConfig:
    """Default config with command validation relaxed (no file I/O)."""
    return AutostartConfig(
        platform=PlatformConfig(strict_command_validation=False),
    )


@pytest.fixture
def seeded_adapter() -> InMemoryAdapter:
    """In-memory adapter pre-loaded with two apps and three services."""
    return InMemoryAdapter(
        entries=[
            StartupEntry(
                path="memory://dropbox",
                name="Dropbox",
                command="/opt/dropbox/dropbox",
                full_command="/opt/dropbox/dropbox --autostart",
                location="In-Memory",
                publisher="Dropbox, Inc.",
            ),
            StartupEntry(
                path="memory://redshift",
                name="Redshift",
                command="redshift-gtk",
                full_command="redshift-gtk",
                location="In-Memory",
                enabled=False,
            ),
        ],
        services=[
            ServiceEntry(name="cups.service", state=ServiceState.ENABLED),
            ServiceEntry(name="bluetooth.service", state=ServiceState.DISABLED),
            ServiceEntry(name="ssh.service", state=ServiceState.ENABLED),
        ],
    )


@pytest.fixture
async def commands(seeded_adapter, autostart_config):
    """StartupCommands over the seeded adapter; worker pool released after."""
    executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="test-worker")
    boundary = StartupCommands(seeded_adapter, autostart_config, executor=executor)
    yield boundary
    boundary.shutdown()
    executor.shutdown(wait=True)

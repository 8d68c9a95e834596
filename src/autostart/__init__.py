"""Startup & service registry: inventory and toggle autostart entries and OS services."""

__version__ = "0.3.0"

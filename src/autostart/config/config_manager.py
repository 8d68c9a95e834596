"""Config manager — load JSON → apply env overrides → validate → AutostartConfig."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from autostart.core.models.config import AutostartConfig

_log = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "autostart_config.json"

# Env-var name → (section, field, type).
_ENV_OVERRIDES: dict[str, tuple[str, str, type]] = {
    "AUTOSTART_LOG_LEVEL": ("system", "log_level", str),
    "AUTOSTART_DEV_MODE": ("system", "dev_mode", bool),
    "AUTOSTART_WEBUI_PORT": ("system", "webui_port", int),
    "AUTOSTART_AUTOSTART_DIR": ("platform", "autostart_dir", str),
    "AUTOSTART_STRICT_COMMANDS": ("platform", "strict_command_validation", bool),
}


def _coerce(value: str, target_type: type) -> object:
    """Coerce a string env-var value to the expected Python type."""
    if target_type is bool:
        return value.strip().lower() in ("1", "true", "yes")
    return target_type(value)


def load_config(config_path: Path | str | None = None) -> AutostartConfig:
    """Load, override, and validate the configuration.

    Args:
        config_path: Path to ``autostart_config.json``.  When *None*, falls
            back to the ``AUTOSTART_CONFIG_FILE`` env-var and then the file
            shipped next to this module.

    Returns:
        A fully-validated :class:`AutostartConfig` instance.

    Raises:
        FileNotFoundError: If the config file does not exist.
    """
    path = _resolve_config_path(config_path)
    _log.info("Loading config from %s", path)

    raw = json.loads(path.read_text(encoding="utf-8"))

    for env_key, (section, field, typ) in _ENV_OVERRIDES.items():
        env_val = os.environ.get(env_key)
        if env_val is not None:
            raw.setdefault(section, {})[field] = _coerce(env_val, typ)
            _log.debug("Env override: %s → %s.%s = %r", env_key, section, field, env_val)

    return AutostartConfig(**raw)


def _resolve_config_path(config_path: Path | str | None) -> Path:
    if config_path is not None:
        p = Path(config_path)
    else:
        env = os.environ.get("AUTOSTART_CONFIG_FILE")
        p = Path(env) if env else _DEFAULT_CONFIG_PATH
    if not p.is_file():
        raise FileNotFoundError(
            f"Config file not found: {p}\n"
            "Create autostart_config.json or set AUTOSTART_CONFIG_FILE to a valid path."
        )
    return p

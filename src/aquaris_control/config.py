"""Runtime configuration helpers.

All settings are read from ``AQUARIS_*`` environment variables. Helpers fall
back to the supplied default (with a warning) when a value cannot be parsed.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .const import DEFAULT_POLL_INTERVAL, DEFAULT_REPEAT_INTERVAL

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".aquaris-control"
LOG_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"


def get_env(name: str, default: str | None = None) -> str | None:
    """Return an environment variable, treating blank values as unset."""
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value


def get_env_bool(name: str, default: bool) -> bool:
    """Get boolean environment variable.

    Args:
        name: Environment variable name
        default: Default value if not found

    Returns:
        Boolean value from environment or default
    """
    raw = get_env(name)
    if raw is None:
        return default

    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False

    try:
        return bool(int(lowered))
    except ValueError:
        return default


def get_env_float(name: str, default: float) -> float:
    """Get float environment variable.

    Args:
        name: Environment variable name
        default: Default value if not found or invalid

    Returns:
        Float value from environment or default
    """
    raw = get_env(name)
    if raw is None:
        return default

    try:
        return float(raw)
    except ValueError:
        logger.warning(
            "Invalid float value for %s: '%s'. Using default: %s",
            name,
            raw,
            default,
        )
        return default


def get_env_int(name: str, default: int) -> int:
    """Get integer environment variable, falling back to ``default``."""
    raw = get_env(name)
    if raw is None:
        return default

    try:
        return int(raw)
    except ValueError:
        logger.warning(
            "Invalid integer value for %s: '%s'. Using default: %s",
            name,
            raw,
            default,
        )
        return default


def get_config_dir() -> Path:
    """Return the configuration directory, creating it when missing."""
    override = get_env("AQUARIS_CONFIG_DIR")
    config_dir = Path(override) if override else DEFAULT_CONFIG_DIR
    if not config_dir.exists():
        config_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Created configuration directory: %s", config_dir)
    return config_dir


def configure_logging(level: str | None = None) -> None:
    """Install the default log format and apply ``AQUARIS_LOG_LEVEL``."""
    level_name = (level or get_env("AQUARIS_LOG_LEVEL", "INFO") or "INFO").upper()
    resolved = getattr(logging, level_name, logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("aquaris_control").setLevel(resolved)


@dataclass(slots=True)
class Settings:
    """Snapshot of the environment-driven settings."""

    config_dir: Path
    poll_interval: float = DEFAULT_POLL_INTERVAL
    repeat_interval: float = DEFAULT_REPEAT_INTERVAL
    transport: str = "ble"
    ble_codec: str | None = None
    scan_timeout: float = 5.0
    state_timeout: float = 2.0
    discover_on_start: bool = True
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from the current environment."""
        return cls(
            config_dir=get_config_dir(),
            poll_interval=get_env_float(
                "AQUARIS_POLL_INTERVAL", DEFAULT_POLL_INTERVAL
            ),
            repeat_interval=get_env_float(
                "AQUARIS_REPEAT_INTERVAL", DEFAULT_REPEAT_INTERVAL
            ),
            transport=(get_env("AQUARIS_TRANSPORT", "ble") or "ble").lower(),
            ble_codec=get_env("AQUARIS_BLE_CODEC"),
            scan_timeout=get_env_float("AQUARIS_SCAN_TIMEOUT", 5.0),
            state_timeout=get_env_float("AQUARIS_STATE_TIMEOUT", 2.0),
            discover_on_start=get_env_bool("AQUARIS_DISCOVER_ON_START", True),
            host=get_env("AQUARIS_SERVICE_HOST", "0.0.0.0") or "0.0.0.0",
            port=get_env_int("AQUARIS_SERVICE_PORT", 8000),
        )

"""Enumerations and fixed values shared by the controller components."""

from enum import Enum, IntEnum


class ConnectionStatus(Enum):
    """Orchestrator-wide connection status."""

    DISCONNECTED = "disconnected"
    DISCOVERING = "discovering"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"


class LedMode(IntEnum):
    """Lighting behaviors understood by the accessory."""

    STATIC = 0
    BREATHE = 1
    COLORFUL = 2
    BREATHE_COLOR = 3


class LedTab(Enum):
    """Presentation tab an LED mode belongs to."""

    COLOR_PICKER = "color_picker"
    ANIMATION = "animation"


# Named fan duty levels: preset id -> (label, duty cycle)
FAN_PRESETS: dict[str, tuple[str, int]] = {
    "slow": ("Slow", 50),
    "medium": ("Medium", 65),
    "fast": ("Fast", 80),
}

DEFAULT_POLL_INTERVAL = 3.0
DEFAULT_REPEAT_INTERVAL = 0.2

DUTY_MIN = 0
DUTY_MAX = 100
CHANNEL_MIN = 0
CHANNEL_MAX = 255

PREFERENCES_FILENAME = "preferences.json"

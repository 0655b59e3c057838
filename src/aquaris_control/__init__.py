"""Connection-and-control orchestrator for the Aquaris liquid-cooling accessory."""

from .const import ConnectionStatus, LedMode
from .controller import AquarisController, ControllerSnapshot
from .models import DeviceIdentity, DeviceState
from .preferences import PreferenceStore

__all__ = [
    "AquarisController",
    "ConnectionStatus",
    "ControllerSnapshot",
    "DeviceIdentity",
    "DeviceState",
    "LedMode",
    "PreferenceStore",
]

__version__ = "0.1.0"

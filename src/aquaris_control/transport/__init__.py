"""Transport backends for the controller."""

from __future__ import annotations

from ..config import Settings
from ..exception import ConfigurationError
from .base import Transport, call_transport
from .codec import FrameCodec, load_codec
from .simulated import SimulatedTransport

__all__ = [
    "FrameCodec",
    "SimulatedTransport",
    "Transport",
    "build_transport",
    "call_transport",
    "load_codec",
]


def build_transport(settings: Settings) -> Transport:
    """Create the backend selected by ``AQUARIS_TRANSPORT``."""
    if settings.transport == "simulated":
        return SimulatedTransport()
    if settings.transport == "ble":
        from .bleak_transport import BleakTransport

        return BleakTransport(
            load_codec(settings.ble_codec),
            scan_timeout=settings.scan_timeout,
            state_timeout=settings.state_timeout,
        )
    raise ConfigurationError(
        f"Unknown transport '{settings.transport}', expected 'ble' or 'simulated'"
    )

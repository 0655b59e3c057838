"""Abstract request/response interface to the Transport Service."""

from __future__ import annotations

from typing import Awaitable, Protocol, TypeVar, runtime_checkable

from ..const import LedMode
from ..exception import DeviceCommandFailed, TransportUnavailable
from ..models import DeviceIdentity, DeviceState

T = TypeVar("T")

# Failures a transport request may end with once passed through call_transport
TRANSPORT_ERRORS = (DeviceCommandFailed, TransportUnavailable)


@runtime_checkable
class Transport(Protocol):
    """Operations the controller may request from the Bluetooth backend.

    Every call may raise; the controller wraps failures into
    ``DeviceCommandFailed``.
    """

    async def has_bluetooth_capability(self) -> bool:
        """Return whether a usable Bluetooth adapter is present."""
        ...

    async def is_connected(self) -> bool:
        """Return whether a device link is currently established."""
        ...

    async def list_devices(self) -> list[DeviceIdentity]:
        """Return the currently reachable devices."""
        ...

    async def start_discovery(self) -> None:
        """Begin scanning for devices."""
        ...

    async def connect(self, uuid: str) -> None:
        """Connect to the device with the given identifier."""
        ...

    async def disconnect(self) -> None:
        """Tear down the current link, if any."""
        ...

    async def get_state(self) -> DeviceState | None:
        """Read the full hardware state, or ``None`` when unavailable."""
        ...

    async def save_state(self) -> None:
        """Ask the device to persist its current settings."""
        ...

    async def set_led(self, red: int, green: int, blue: int, mode: LedMode) -> None:
        """Update LED color and mode (also switches the LED on)."""
        ...

    async def led_off(self) -> None:
        """Switch the LED off."""
        ...

    async def set_fan(self, duty_cycle: int) -> None:
        """Run the fan at the given duty cycle."""
        ...

    async def fan_off(self) -> None:
        """Switch the fan off."""
        ...

    async def set_pump(self, duty_cycle: int, voltage: int) -> None:
        """Run the pump at the given duty cycle and voltage."""
        ...

    async def pump_off(self) -> None:
        """Switch the pump off."""
        ...


async def call_transport(operation: str, awaitable: Awaitable[T]) -> T:
    """Await a transport request, wrapping any failure in ``DeviceCommandFailed``.

    ``TransportUnavailable`` and ``DeviceCommandFailed`` pass through unchanged.
    """
    try:
        return await awaitable
    except (DeviceCommandFailed, TransportUnavailable):
        raise
    except Exception as exc:
        raise DeviceCommandFailed(f"{operation} failed: {exc}") from exc

"""Device discovery and default-selection policy."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Mapping, Sequence

from .connection import ConnectionStateMachine
from .exception import DeviceCommandFailed, OperationRejected, TransportUnavailable
from .models import DeviceIdentity
from .preferences import PreferenceStore
from .transport.base import TRANSPORT_ERRORS, Transport, call_transport

logger = logging.getLogger(__name__)


class DiscoveryOutcome(Enum):
    """Result of a device list refresh."""

    REFRESHED = "refreshed"
    REJECTED = "rejected"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"


def select_default_device(
    devices: Sequence[DeviceIdentity],
    device_names: Mapping[str, str],
    last_connected_uuid: str | None,
) -> str | None:
    """Pick the device to pre-select.

    Priority: the first listed device that has a user-assigned name, then
    the last connected device if it is still listed, otherwise none.
    """
    for device in devices:
        if device.uuid in device_names:
            return device.uuid
    if last_connected_uuid is not None:
        for device in devices:
            if device.uuid == last_connected_uuid:
                return device.uuid
    return None


class DiscoveryManager:
    """Keeps the list of reachable devices and the current selection."""

    def __init__(
        self,
        transport: Transport,
        machine: ConnectionStateMachine,
        preferences: PreferenceStore,
    ) -> None:
        """Create a manager with an empty device list."""
        self._transport = transport
        self._machine = machine
        self._preferences = preferences
        self._devices: tuple[DeviceIdentity, ...] = ()
        self.selected_uuid: str | None = None
        self.device_names: dict[str, str] = {}
        self.bluetooth_available = True

    @property
    def devices(self) -> tuple[DeviceIdentity, ...]:
        """Return the most recently discovered devices."""
        return self._devices

    def reload_names(self) -> dict[str, str]:
        """Refresh the cached display-name mapping from the preference store."""
        self.device_names = self._preferences.get_device_names()
        return self.device_names

    def find_default_device(self) -> str | None:
        """Evaluate the default-selection policy against the current list."""
        return select_default_device(
            self._devices,
            self.device_names,
            self._preferences.get_last_connected(),
        )

    def reselect_default(self) -> str | None:
        """Replace the selection with the policy's choice."""
        self.selected_uuid = self.find_default_device()
        return self.selected_uuid

    def select(self, uuid: str | None) -> None:
        """Select a device explicitly."""
        self.selected_uuid = uuid

    async def check_capability(self) -> bool:
        """Poll the transport for Bluetooth capability."""
        try:
            self.bluetooth_available = bool(
                await call_transport(
                    "has_bluetooth_capability",
                    self._transport.has_bluetooth_capability(),
                )
            )
        except TRANSPORT_ERRORS as exc:
            logger.warning("Capability check failed: %s", exc)
            self.bluetooth_available = False
        return self.bluetooth_available

    async def start_discovery(self) -> bool:
        """Ask the transport to start scanning."""
        if not self._machine.is_disconnected:
            return False
        try:
            await call_transport(
                "start_discovery", self._transport.start_discovery()
            )
        except TransportUnavailable as exc:
            logger.info("Discovery unavailable: %s", exc)
            self.bluetooth_available = False
            return False
        except DeviceCommandFailed as exc:
            logger.warning("Start discovery failed: %s", exc)
            return False
        return True

    async def refresh_device_list(self) -> DiscoveryOutcome:
        """Replace the device list with the transport's current view.

        Runs only while disconnected and only when Bluetooth is available.
        """
        if not self.bluetooth_available:
            return DiscoveryOutcome.UNAVAILABLE
        try:
            self._machine.begin_discovery()
        except OperationRejected as exc:
            logger.debug("Refresh ignored: %s", exc)
            return DiscoveryOutcome.REJECTED

        try:
            devices = await call_transport(
                "list_devices", self._transport.list_devices()
            )
        except TransportUnavailable as exc:
            logger.info("Discovery unavailable: %s", exc)
            self.bluetooth_available = False
            return DiscoveryOutcome.UNAVAILABLE
        except DeviceCommandFailed as exc:
            logger.warning("Device list refresh failed: %s", exc)
            return DiscoveryOutcome.FAILED
        else:
            self._devices = tuple(devices)
            if self.selected_uuid is None:
                self.selected_uuid = self.find_default_device()
            logger.debug(
                "Discovered %d devices; selected=%s",
                len(self._devices),
                self.selected_uuid,
            )
            return DiscoveryOutcome.REFRESHED
        finally:
            self._machine.end_discovery()

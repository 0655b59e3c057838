"""In-memory accessory used for demos and tests."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Iterable

from ..const import LedMode
from ..exception import DeviceCommandFailed, TransportUnavailable
from ..models import DeviceIdentity, DeviceState

logger = logging.getLogger(__name__)


class SimulatedTransport:
    """Transport backed by simulated devices.

    Every request is appended to ``calls`` as ``(name, args)``. Names listed in
    ``failures`` raise ``DeviceCommandFailed``; ``delays`` maps a request name
    to a number of seconds to sleep before answering.
    """

    def __init__(
        self,
        devices: Iterable[DeviceIdentity] | None = None,
        *,
        bluetooth: bool = True,
    ) -> None:
        """Create a simulated backend with the given reachable devices."""
        self.devices: list[DeviceIdentity] = list(
            devices
            if devices is not None
            else [DeviceIdentity("LCT21001-SIM", "Aquaris (simulated)")]
        )
        self.bluetooth = bluetooth
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.failures: set[str] = set()
        self.delays: dict[str, float] = {}
        self.discovering = False
        self.connected_uuid: str | None = None
        self._states: dict[str, DeviceState] = {}

    def call_names(self) -> list[str]:
        """Return the names of the recorded requests in order."""
        return [name for name, _ in self.calls]

    def device_state(self, uuid: str) -> DeviceState:
        """Return (creating on demand) the simulated state of a device."""
        if uuid not in self._states:
            self._states[uuid] = DeviceState(
                device_uuid=uuid,
                led_on=True,
                red=0,
                green=128,
                blue=255,
                led_mode=LedMode.STATIC,
                fan_on=True,
                fan_duty_cycle=50,
                pump_on=True,
                pump_duty_cycle=60,
                pump_voltage=0,
            )
        return self._states[uuid]

    def set_device_state(self, state: DeviceState) -> None:
        """Replace the simulated state of a device."""
        self._states[state.device_uuid] = state

    async def _request(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        delay = self.delays.get(name)
        if delay:
            await asyncio.sleep(delay)
        if name in self.failures:
            raise DeviceCommandFailed(f"simulated failure in {name}")

    def _require_link(self) -> str:
        if self.connected_uuid is None:
            raise DeviceCommandFailed("not connected")
        return self.connected_uuid

    def _update(self, **changes: Any) -> None:
        uuid = self._require_link()
        self._states[uuid] = replace(self.device_state(uuid), **changes)

    async def has_bluetooth_capability(self) -> bool:
        await self._request("has_bluetooth_capability")
        return self.bluetooth

    async def is_connected(self) -> bool:
        await self._request("is_connected")
        return self.connected_uuid is not None

    async def list_devices(self) -> list[DeviceIdentity]:
        await self._request("list_devices")
        if not self.bluetooth:
            raise TransportUnavailable("Bluetooth not available")
        return list(self.devices)

    async def start_discovery(self) -> None:
        await self._request("start_discovery")
        self.discovering = True

    async def connect(self, uuid: str) -> None:
        await self._request("connect", uuid)
        if uuid not in {device.uuid for device in self.devices}:
            raise DeviceCommandFailed(f"device {uuid} not reachable")
        self.connected_uuid = uuid
        self.discovering = False
        logger.debug("Simulated link to %s established", uuid)

    async def disconnect(self) -> None:
        await self._request("disconnect")
        self.connected_uuid = None

    async def get_state(self) -> DeviceState | None:
        await self._request("get_state")
        if self.connected_uuid is None:
            return None
        return self.device_state(self.connected_uuid)

    async def save_state(self) -> None:
        await self._request("save_state")
        self._require_link()

    async def set_led(self, red: int, green: int, blue: int, mode: LedMode) -> None:
        await self._request("set_led", red, green, blue, mode)
        self._update(led_on=True, red=red, green=green, blue=blue, led_mode=mode)

    async def led_off(self) -> None:
        await self._request("led_off")
        self._update(led_on=False)

    async def set_fan(self, duty_cycle: int) -> None:
        await self._request("set_fan", duty_cycle)
        self._update(fan_on=True, fan_duty_cycle=duty_cycle)

    async def fan_off(self) -> None:
        await self._request("fan_off")
        self._update(fan_on=False)

    async def set_pump(self, duty_cycle: int, voltage: int) -> None:
        await self._request("set_pump", duty_cycle, voltage)
        self._update(pump_on=True, pump_duty_cycle=duty_cycle, pump_voltage=voltage)

    async def pump_off(self) -> None:
        await self._request("pump_off")
        self._update(pump_on=False)

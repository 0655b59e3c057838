"""Bluetooth Low Energy backend built on bleak."""

from __future__ import annotations

import asyncio
import logging

from bleak import BleakScanner
from bleak.backends.characteristic import BleakGATTCharacteristic
from bleak.backends.device import BLEDevice
from bleak.exc import BleakError
from bleak_retry_connector import (
    BleakClientWithServiceCache,
    BleakNotFoundError,
    establish_connection,
)

from ..const import LedMode
from ..exception import DeviceCommandFailed, TransportUnavailable
from ..models import DeviceIdentity, DeviceState
from .codec import FrameCodec

logger = logging.getLogger(__name__)

CAPABILITY_PROBE_SECONDS = 0.1


class BleakTransport:
    """Transport that talks to the accessory over BLE.

    Discovery runs a background ``BleakScanner`` filtered on the codec's
    service UUID. Commands are written without response to the codec's write
    characteristic; state reports arrive as notifications.
    """

    def __init__(
        self,
        codec: FrameCodec,
        *,
        scan_timeout: float = 5.0,
        state_timeout: float = 2.0,
    ) -> None:
        """Create a backend using ``codec`` for frame encoding."""
        self._codec = codec
        self._scan_timeout = scan_timeout
        self._state_timeout = state_timeout
        self._scanner: BleakScanner | None = None
        self._client: BleakClientWithServiceCache | None = None
        self._device: BLEDevice | None = None
        self._state_waiter: asyncio.Future[DeviceState] | None = None
        self._io_lock = asyncio.Lock()

    # Discovery

    def _new_scanner(self) -> BleakScanner:
        return BleakScanner(service_uuids=[self._codec.service_uuid])

    async def has_bluetooth_capability(self) -> bool:
        if self._scanner is not None or self._client is not None:
            return True
        try:
            async with self._new_scanner():
                await asyncio.sleep(CAPABILITY_PROBE_SECONDS)
        except (BleakError, OSError) as exc:
            logger.debug("Bluetooth capability probe failed: %s", exc)
            return False
        return True

    async def start_discovery(self) -> None:
        if self._scanner is not None:
            return
        scanner = self._new_scanner()
        try:
            await scanner.start()
        except (BleakError, OSError) as exc:
            raise TransportUnavailable(f"Cannot start scanning: {exc}") from exc
        self._scanner = scanner
        logger.debug("BLE scanner started")

    async def _stop_discovery(self) -> None:
        scanner, self._scanner = self._scanner, None
        if scanner is None:
            return
        try:
            await scanner.stop()
        except BleakError:
            logger.debug("Failed to stop scanner", exc_info=True)

    def _discovered(self) -> dict[str, BLEDevice]:
        if self._scanner is None:
            return {}
        return {
            address: device
            for address, (
                device,
                _adv,
            ) in self._scanner.discovered_devices_and_advertisement_data.items()
        }

    async def list_devices(self) -> list[DeviceIdentity]:
        if self._scanner is None and self._client is None:
            await self.start_discovery()
        return [
            DeviceIdentity(uuid=address, discovered_name=device.name)
            for address, device in self._discovered().items()
        ]

    # Connection

    async def is_connected(self) -> bool:
        return self._client is not None and self._client.is_connected

    async def _resolve_device(self, uuid: str) -> BLEDevice:
        device = self._discovered().get(uuid)
        if device is not None:
            return device
        device = await BleakScanner.find_device_by_address(
            uuid, timeout=self._scan_timeout
        )
        if device is None:
            raise DeviceCommandFailed(f"Device {uuid} not found")
        return device

    async def connect(self, uuid: str) -> None:
        try:
            device = await self._resolve_device(uuid)
            await self._stop_discovery()
            client = await establish_connection(
                BleakClientWithServiceCache,
                device,
                device.name or uuid,
                self._disconnected,
                use_services_cache=True,
                ble_device_callback=lambda: device,
            )
            self._client = client
            self._device = device
            await client.start_notify(
                self._codec.notify_char_uuid, self._notification_handler
            )
        except (BleakError, BleakNotFoundError, asyncio.TimeoutError) as exc:
            await self._drop_link()
            raise DeviceCommandFailed(f"Connect to {uuid} failed: {exc}") from exc
        logger.info("Connected to %s", uuid)

    async def _drop_link(self) -> None:
        """Close a half-established link after a failed connect."""
        try:
            await self.disconnect()
        except DeviceCommandFailed:
            logger.debug("Failed to close half-open link", exc_info=True)

    def _disconnected(self, client: BleakClientWithServiceCache) -> None:
        """Disconnected callback."""
        address = self._device.address if self._device else "?"
        logger.debug("Link to %s closed", address)

    async def disconnect(self) -> None:
        client, self._client = self._client, None
        self._device = None
        if client is None:
            return
        try:
            if client.is_connected:
                try:
                    await client.stop_notify(self._codec.notify_char_uuid)
                except BleakError:
                    logger.debug("Failed to stop notifications", exc_info=True)
                await client.disconnect()
        except BleakError as exc:
            raise DeviceCommandFailed(f"Disconnect failed: {exc}") from exc

    # I/O

    def _notification_handler(
        self, _sender: BleakGATTCharacteristic, data: bytearray
    ) -> None:
        """Resolve a pending state request from a notification."""
        if self._device is None:
            return
        state = self._codec.decode_state(self._device.address, bytes(data))
        if state is None:
            logger.debug("Notification ignored: %s", bytes(data).hex())
            return
        waiter = self._state_waiter
        if waiter is not None and not waiter.done():
            waiter.set_result(state)

    async def _write(self, frame: bytes) -> None:
        client = self._client
        if client is None or not client.is_connected:
            raise DeviceCommandFailed("Not connected")
        logger.debug("Writing frame %s", frame.hex())
        try:
            async with self._io_lock:
                await client.write_gatt_char(
                    self._codec.write_char_uuid, frame, response=False
                )
        except BleakError as exc:
            raise DeviceCommandFailed(f"Write failed: {exc}") from exc

    async def get_state(self) -> DeviceState | None:
        if self._client is None:
            return None
        waiter: asyncio.Future[DeviceState] = (
            asyncio.get_running_loop().create_future()
        )
        self._state_waiter = waiter
        try:
            await self._write(self._codec.encode_state_request())
            return await asyncio.wait_for(waiter, timeout=self._state_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "No state notification within %.2fs", self._state_timeout
            )
            return None
        finally:
            self._state_waiter = None

    async def save_state(self) -> None:
        await self._write(self._codec.encode_save())

    async def set_led(self, red: int, green: int, blue: int, mode: LedMode) -> None:
        await self._write(self._codec.encode_led(red, green, blue, mode))

    async def led_off(self) -> None:
        await self._write(self._codec.encode_led_off())

    async def set_fan(self, duty_cycle: int) -> None:
        await self._write(self._codec.encode_fan(duty_cycle))

    async def fan_off(self) -> None:
        await self._write(self._codec.encode_fan_off())

    async def set_pump(self, duty_cycle: int, voltage: int) -> None:
        await self._write(self._codec.encode_pump(duty_cycle, voltage))

    async def pump_off(self) -> None:
        await self._write(self._codec.encode_pump_off())

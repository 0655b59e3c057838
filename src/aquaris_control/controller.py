"""Connection-and-control orchestrator for the Aquaris cooling accessory.

``AquarisController`` wires the preference store, discovery, the connection
state machine, the state synchronizer and the command dispatcher together,
runs the periodic tick, and publishes an immutable ``ControllerSnapshot`` to
subscribers after every change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping

from .connection import ConnectionManager, ConnectionStateMachine
from .const import DEFAULT_POLL_INTERVAL, DEFAULT_REPEAT_INTERVAL, ConnectionStatus
from .discovery import DiscoveryManager, DiscoveryOutcome
from .dispatcher import CommandDispatcher
from .models import DeviceIdentity, DeviceState, LedView, decode_led_mode
from .preferences import PreferenceStore
from .synchronizer import StateSynchronizer
from .tasks import PeriodicTask
from .transport.base import TRANSPORT_ERRORS, Transport, call_transport

logger = logging.getLogger(__name__)

SnapshotListener = Callable[["ControllerSnapshot"], None]


@dataclass(frozen=True, slots=True)
class ControllerSnapshot:
    """Everything the presentation layer needs to render the controller."""

    status: ConnectionStatus
    bluetooth_available: bool
    devices: tuple[DeviceIdentity, ...]
    selected_uuid: str | None
    display_name: str | None
    status_text: str
    state: DeviceState | None
    led_view: LedView | None
    state_version: int
    state_initialized: bool
    device_names: Mapping[str, str] = field(default_factory=dict)


class AquarisController:
    """Single active orchestrator instance driving one accessory."""

    def __init__(
        self,
        transport: Transport,
        preferences: PreferenceStore,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        repeat_interval: float = DEFAULT_REPEAT_INTERVAL,
        discover_on_start: bool = True,
    ) -> None:
        """Create a stopped controller."""
        self._transport = transport
        self._preferences = preferences
        self._discover_on_start = discover_on_start
        self.machine = ConnectionStateMachine()
        self.synchronizer = StateSynchronizer(
            transport, self.machine, on_state=self._on_state
        )
        self.discovery = DiscoveryManager(transport, self.machine, preferences)
        self.connection = ConnectionManager(
            transport,
            self.machine,
            self.synchronizer,
            self.discovery,
            preferences,
        )
        self.dispatcher = CommandDispatcher(
            transport,
            self.machine,
            self.synchronizer,
            repeat_interval=repeat_interval,
        )
        self._timer = PeriodicTask(self.tick, poll_interval, name="aquaris-poll")
        self._listeners: list[SnapshotListener] = []
        self._started = False

    @property
    def status(self) -> ConnectionStatus:
        """Return the current connection status."""
        return self.machine.status

    @property
    def started(self) -> bool:
        """Return whether ``start()`` has run and ``stop()`` has not."""
        return self._started

    # Lifecycle

    async def start(self) -> None:
        """Load preferences, probe the transport and start the periodic tick."""
        if self._started:
            return
        self._started = True
        self.discovery.reload_names()
        if await self._link_up():
            await self.connection.adopt_existing_link()
        elif self._discover_on_start:
            await self.discovery.start_discovery()
        await self.tick()
        self._timer.start()
        logger.info(
            "Controller started (status=%s, bluetooth=%s)",
            self.machine.status.value,
            self.discovery.bluetooth_available,
        )

    async def stop(self) -> None:
        """Stop the periodic tick and any held-button repeat."""
        await self._timer.stop()
        await self.dispatcher.repeater.aclose()
        self._started = False
        logger.info("Controller stopped")

    async def tick(self) -> None:
        """One timer period: capability poll, link check, discovery or reconcile."""
        await self.discovery.check_capability()

        if self.machine.is_connected:
            epoch = self.machine.epoch
            link_up = await self._link_up()
            # A connect or disconnect that ran meanwhile makes the reading stale
            if link_up is False and self.machine.epoch == epoch:
                self.connection.mark_link_lost()

        if self.machine.is_disconnected:
            if not self.machine.discovery_in_flight:
                outcome = await self.discovery.refresh_device_list()
                if outcome is DiscoveryOutcome.UNAVAILABLE:
                    logger.debug("Bluetooth not available; discovery skipped")
        elif self.machine.is_connected:
            await self.synchronizer.reconcile()
        self._notify()

    # Connection

    async def connect(self, uuid: str | None = None) -> bool:
        """Connect to ``uuid`` (defaults to the selected device)."""
        result = await self.connection.connect(uuid or self.discovery.selected_uuid)
        self._notify()
        return result

    async def disconnect(self) -> bool:
        """Disconnect the current device."""
        result = await self.connection.disconnect()
        self._notify()
        return result

    async def toggle_connection(self) -> bool:
        """Connect or disconnect depending on the current status."""
        result = await self.connection.toggle()
        self._notify()
        return result

    def select_device(self, uuid: str | None) -> None:
        """Select the device the next connect will target."""
        self.discovery.select(uuid)
        self._notify()

    async def refresh_devices(self) -> DiscoveryOutcome:
        """Refresh the device list immediately."""
        outcome = await self.discovery.refresh_device_list()
        self._notify()
        return outcome

    # Preferences

    def rename_device(self, name: str | None) -> bool:
        """Name the connected device; a blank name removes its mapping.

        Only allowed while connected and idle.
        """
        uuid = self.discovery.selected_uuid
        if not self.machine.is_connected or uuid is None:
            logger.debug("Rename ignored: not connected")
            return False
        try:
            self.discovery.device_names = self._preferences.set_device_name(
                uuid, name
            )
        except OSError as exc:
            logger.warning("Could not save name for %s: %s", uuid, exc)
            return False
        self._notify()
        return True

    def display_name(self) -> str | None:
        """Return the user's name for the selected device, else its uuid."""
        uuid = self.discovery.selected_uuid
        if uuid is None:
            return None
        return self.discovery.device_names.get(uuid, uuid)

    def status_text(self) -> str:
        """Return a short human readable connection status."""
        status = self.machine.status
        if not self.discovery.bluetooth_available:
            return "Bluetooth not available"
        if status is ConnectionStatus.CONNECTING:
            return "Connecting..."
        if status is ConnectionStatus.DISCONNECTING:
            return "Disconnecting..."
        if status is ConnectionStatus.CONNECTED:
            return "Connected to"
        return "Looking for devices..."

    # Commands

    async def set_led(
        self,
        on: bool,
        red: float,
        green: float,
        blue: float,
        is_breathing: bool = False,
        is_rainbow: bool = False,
    ) -> bool:
        """Forward to ``CommandDispatcher.set_led``."""
        return self._after(
            await self.dispatcher.set_led(
                on, red, green, blue, is_breathing, is_rainbow
            )
        )

    async def set_led_hex(
        self,
        on: bool,
        color: str,
        is_breathing: bool = False,
        is_rainbow: bool = False,
    ) -> bool:
        """Forward to ``CommandDispatcher.set_led_hex``."""
        return self._after(
            await self.dispatcher.set_led_hex(on, color, is_breathing, is_rainbow)
        )

    async def led_off(self) -> bool:
        return self._after(await self.dispatcher.led_off())

    async def set_fan(self, on: bool, duty_cycle: float) -> bool:
        return self._after(await self.dispatcher.set_fan(on, duty_cycle))

    async def select_fan_preset(self, preset: str) -> bool:
        return self._after(await self.dispatcher.select_fan_preset(preset))

    async def fan_off(self) -> bool:
        return self._after(await self.dispatcher.fan_off())

    async def nudge_fan(self, offset: int) -> bool:
        return self._after(await self.dispatcher.nudge_fan(offset))

    def start_fan_nudge(self, offset: int) -> bool:
        """Press-and-hold: nudge the fan now and repeatedly until released.

        Returns False (and starts nothing) unless connected.
        """
        if not self.machine.is_connected:
            logger.debug("Fan nudge ignored: not connected")
            return False
        self.dispatcher.repeater.start(lambda: self.nudge_fan(offset))
        return True

    def stop_repeat(self) -> None:
        """Release a held button."""
        self.dispatcher.stop_repeat()

    async def set_pump(self, on: bool, duty_cycle: float, voltage: float) -> bool:
        return self._after(await self.dispatcher.set_pump(on, duty_cycle, voltage))

    async def pump_off(self) -> bool:
        return self._after(await self.dispatcher.pump_off())

    # Observation

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call ``listener`` with a fresh snapshot after every change."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def snapshot(self) -> ControllerSnapshot:
        """Return a consistent view of the controller."""
        state = self.synchronizer.view()
        return ControllerSnapshot(
            status=self.machine.status,
            bluetooth_available=self.discovery.bluetooth_available,
            devices=self.discovery.devices,
            selected_uuid=self.discovery.selected_uuid,
            display_name=self.display_name(),
            status_text=self.status_text(),
            state=state,
            led_view=decode_led_mode(state.led_mode) if state else None,
            state_version=self.synchronizer.snapshot.version,
            state_initialized=self.synchronizer.initialized,
            device_names=MappingProxyType(dict(self.discovery.device_names)),
        )

    async def _link_up(self) -> bool | None:
        """Ask the transport whether a link exists; None when it cannot tell."""
        try:
            return bool(
                await call_transport("is_connected", self._transport.is_connected())
            )
        except TRANSPORT_ERRORS as exc:
            logger.warning("Link check failed: %s", exc)
            return None

    def _on_state(self, state: DeviceState) -> None:
        if self.machine.is_connected:
            self.discovery.selected_uuid = state.device_uuid

    def _after(self, result: bool) -> bool:
        if result:
            self._notify()
        return result

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener failed")

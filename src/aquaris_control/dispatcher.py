"""Translate user intents into device commands."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from .connection import ConnectionStateMachine
from .const import DEFAULT_REPEAT_INTERVAL, FAN_PRESETS
from .exception import NotConnected
from .models import clamp_channel, clamp_duty, encode_led_mode, hex_to_rgb
from .synchronizer import StateSynchronizer
from .tasks import RepeatingAction
from .transport.base import TRANSPORT_ERRORS, Transport, call_transport

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Issues LED, fan and pump commands while a device is connected.

    Switching a component off always sends its dedicated "off" command; a
    zero color or zero duty cycle is never used as a substitute. Calls made
    while not connected are dropped, never queued.
    """

    def __init__(
        self,
        transport: Transport,
        machine: ConnectionStateMachine,
        synchronizer: StateSynchronizer,
        *,
        repeat_interval: float = DEFAULT_REPEAT_INTERVAL,
    ) -> None:
        """Create a dispatcher bound to the shared status and mirror."""
        self._transport = transport
        self._machine = machine
        self._synchronizer = synchronizer
        self.repeater = RepeatingAction(repeat_interval)

    def _require_connected(self) -> None:
        if not self._machine.is_connected:
            raise NotConnected(
                f"No active link (status={self._machine.status.value})"
            )

    async def _dispatch(
        self,
        operation: str,
        request: Callable[[], Awaitable[None]],
        **optimistic: Any,
    ) -> bool:
        try:
            self._require_connected()
        except NotConnected as exc:
            logger.debug("%s dropped: %s", operation, exc)
            return False
        try:
            await call_transport(operation, request())
        except TRANSPORT_ERRORS as exc:
            logger.error("Failed writing %s: %s", operation, exc)
            return False
        self._synchronizer.apply_optimistic(**optimistic)
        return True

    # LED

    async def set_led(
        self,
        on: bool,
        red: float,
        green: float,
        blue: float,
        is_breathing: bool = False,
        is_rainbow: bool = False,
    ) -> bool:
        """Switch the LED off, or update its color and mode."""
        if not on:
            return await self.led_off()
        red, green, blue = (clamp_channel(c) for c in (red, green, blue))
        mode = encode_led_mode(is_breathing, is_rainbow)
        return await self._dispatch(
            "set_led",
            lambda: self._transport.set_led(red, green, blue, mode),
            led_on=True,
            red=red,
            green=green,
            blue=blue,
            led_mode=mode,
        )

    async def set_led_hex(
        self,
        on: bool,
        color: str,
        is_breathing: bool = False,
        is_rainbow: bool = False,
    ) -> bool:
        """Like ``set_led`` with a ``#rrggbb`` color.

        Raises:
            ValueError: If ``color`` is not a valid hex color.
        """
        red, green, blue = hex_to_rgb(color)
        return await self.set_led(on, red, green, blue, is_breathing, is_rainbow)

    async def led_off(self) -> bool:
        """Send the explicit LED off command."""
        return await self._dispatch(
            "led_off", self._transport.led_off, led_on=False
        )

    # Fan

    async def set_fan(self, on: bool, duty_cycle: float) -> bool:
        """Switch the fan off, or run it at ``duty_cycle`` (clamped to 0-100)."""
        if not on:
            return await self.fan_off()
        duty = clamp_duty(duty_cycle)
        return await self._dispatch(
            "set_fan",
            lambda: self._transport.set_fan(duty),
            fan_on=True,
            fan_duty_cycle=duty,
        )

    async def select_fan_preset(self, preset: str) -> bool:
        """Run the fan at a named duty level.

        Raises:
            ValueError: If the preset is unknown.
        """
        try:
            _label, duty = FAN_PRESETS[preset.lower()]
        except KeyError as exc:
            choices = ", ".join(FAN_PRESETS)
            raise ValueError(
                f"Unknown fan preset '{preset}'. Use one of: {choices}"
            ) from exc
        return await self.set_fan(True, duty)

    async def fan_off(self) -> bool:
        """Send the explicit fan off command."""
        return await self._dispatch(
            "fan_off", self._transport.fan_off, fan_on=False
        )

    async def nudge_fan(self, offset: int) -> bool:
        """Shift the fan duty cycle by ``offset`` and send it."""
        state = self._synchronizer.view()
        if state is None:
            logger.debug("Fan nudge ignored: no device state yet")
            return False
        return await self.set_fan(
            state.fan_on, clamp_duty(state.fan_duty_cycle + offset)
        )

    def start_fan_nudge(self, offset: int) -> None:
        """Press-and-hold: nudge now, then repeatedly until ``stop_repeat``."""
        self.repeater.start(lambda: self.nudge_fan(offset))

    def stop_repeat(self) -> None:
        """Release a held button."""
        self.repeater.stop()

    # Pump

    async def set_pump(
        self, on: bool, duty_cycle: float, voltage: float
    ) -> bool:
        """Switch the pump off, or run it at ``duty_cycle`` and ``voltage``."""
        if not on:
            return await self.pump_off()
        duty = clamp_duty(duty_cycle)
        volts = int(voltage)
        return await self._dispatch(
            "set_pump",
            lambda: self._transport.set_pump(duty, volts),
            pump_on=True,
            pump_duty_cycle=duty,
            pump_voltage=volts,
        )

    async def pump_off(self) -> bool:
        """Send the explicit pump off command."""
        return await self._dispatch(
            "pump_off", self._transport.pump_off, pump_on=False
        )

"""Data models shared by the controller components."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .const import CHANNEL_MAX, CHANNEL_MIN, DUTY_MAX, DUTY_MIN, LedMode, LedTab

_HEX_COLOR = re.compile(r"^#([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")


@dataclass(frozen=True, slots=True)
class DeviceIdentity:
    """A reachable device as reported by discovery."""

    uuid: str
    discovered_name: str | None = None


@dataclass(frozen=True, slots=True)
class DeviceState:
    """Full hardware state as read from the accessory."""

    device_uuid: str
    led_on: bool = False
    red: int = 0
    green: int = 0
    blue: int = 0
    led_mode: LedMode = LedMode.STATIC
    fan_on: bool = False
    fan_duty_cycle: int = 0
    pump_on: bool = False
    pump_duty_cycle: int = 0
    pump_voltage: int = 0

    @property
    def color_hex(self) -> str:
        """Return the LED color as ``#rrggbb``."""
        return rgb_to_hex(self.red, self.green, self.blue)


@dataclass(frozen=True, slots=True)
class LedView:
    """Presentation view of an LED mode."""

    tab: LedTab
    is_breathing: bool
    is_rainbow: bool


@dataclass(frozen=True, slots=True)
class StateSnapshot:
    """Versioned hardware mirror; version 0 means nothing was read yet."""

    version: int = 0
    state: DeviceState | None = None


_MODE_BY_FLAGS: dict[tuple[bool, bool], LedMode] = {
    (False, False): LedMode.STATIC,
    (True, False): LedMode.BREATHE,
    (False, True): LedMode.COLORFUL,
    (True, True): LedMode.BREATHE_COLOR,
}


def encode_led_mode(is_breathing: bool, is_rainbow: bool) -> LedMode:
    """Map the breathing/rainbow toggles onto a device LED mode."""
    return _MODE_BY_FLAGS[(bool(is_breathing), bool(is_rainbow))]


def decode_led_mode(mode: LedMode | int) -> LedView:
    """Map a device LED mode onto its presentation view."""
    mode = LedMode(mode)
    is_rainbow = mode in (LedMode.COLORFUL, LedMode.BREATHE_COLOR)
    is_breathing = mode in (LedMode.BREATHE, LedMode.BREATHE_COLOR)
    tab = LedTab.ANIMATION if is_rainbow else LedTab.COLOR_PICKER
    return LedView(tab=tab, is_breathing=is_breathing, is_rainbow=is_rainbow)


def clamp(value: float, low: int, high: int) -> int:
    """Round ``value`` and clamp it into ``[low, high]``."""
    return max(low, min(high, int(round(value))))


def clamp_channel(value: float) -> int:
    """Clamp a color channel to 0-255."""
    return clamp(value, CHANNEL_MIN, CHANNEL_MAX)


def clamp_duty(value: float) -> int:
    """Clamp a duty cycle to 0-100."""
    return clamp(value, DUTY_MIN, DUTY_MAX)


def rgb_to_hex(red: int, green: int, blue: int) -> str:
    """Encode a color as ``#rrggbb``.

    Raises:
        ValueError: If a channel is outside 0-255.
    """
    for name, value in (("red", red), ("green", green), ("blue", blue)):
        if not CHANNEL_MIN <= value <= CHANNEL_MAX:
            raise ValueError(f"{name} channel must be 0-255, got {value}")
    return f"#{red:02x}{green:02x}{blue:02x}"


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    """Decode ``#rrggbb`` into a color triple.

    Exactly two hex digits per channel are accepted.

    Raises:
        ValueError: If the string is not a valid color.
    """
    match = _HEX_COLOR.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Invalid color '{value}', expected #rrggbb")
    red, green, blue = (int(part, 16) for part in match.groups())
    return red, green, blue

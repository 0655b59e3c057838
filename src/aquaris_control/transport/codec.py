"""Frame codec interface used by the BLE backend.

The byte layout of the accessory's commands is not part of this package; a
codec implementation is loaded from ``AQUARIS_BLE_CODEC``
(``"package.module:attribute"``). The attribute may be a codec instance or a
class that is instantiated without arguments.
"""

from __future__ import annotations

import importlib
from typing import Protocol, runtime_checkable

from ..const import LedMode
from ..exception import ConfigurationError
from ..models import DeviceState


@runtime_checkable
class FrameCodec(Protocol):
    """Turns controller requests into frames and notifications into state."""

    service_uuid: str
    write_char_uuid: str
    notify_char_uuid: str

    def encode_state_request(self) -> bytes: ...

    def encode_save(self) -> bytes: ...

    def encode_led(self, red: int, green: int, blue: int, mode: LedMode) -> bytes: ...

    def encode_led_off(self) -> bytes: ...

    def encode_fan(self, duty_cycle: int) -> bytes: ...

    def encode_fan_off(self) -> bytes: ...

    def encode_pump(self, duty_cycle: int, voltage: int) -> bytes: ...

    def encode_pump_off(self) -> bytes: ...

    def decode_state(self, device_uuid: str, payload: bytes) -> DeviceState | None:
        """Return the decoded state, or ``None`` if ``payload`` is not a state frame."""
        ...


def load_codec(path: str | None) -> FrameCodec:
    """Import and return the codec named by ``module:attribute``.

    Raises:
        ConfigurationError: If the path is missing, cannot be imported, or
            does not provide the codec interface.
    """
    if not path:
        raise ConfigurationError(
            "AQUARIS_BLE_CODEC must name a frame codec (module:attribute)"
        )
    module_name, sep, attribute = path.partition(":")
    if not sep or not module_name or not attribute:
        raise ConfigurationError(
            f"Invalid codec path '{path}', expected module:attribute"
        )
    try:
        module = importlib.import_module(module_name)
        target = getattr(module, attribute)
    except (ImportError, AttributeError) as exc:
        raise ConfigurationError(f"Cannot load codec '{path}': {exc}") from exc
    codec = target() if isinstance(target, type) else target
    if not isinstance(codec, FrameCodec):
        raise ConfigurationError(f"'{path}' does not implement FrameCodec")
    return codec

"""Serialization helpers for API responses.

These convert internal dataclasses into JSON-safe primitives.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from .controller import ControllerSnapshot
from .models import DeviceIdentity, DeviceState, LedView


def serialize_device(device: DeviceIdentity, names: dict[str, str]) -> Dict[str, Any]:
    """Describe a discovered device, including its user-assigned name."""
    return {
        "uuid": device.uuid,
        "discovered_name": device.discovered_name,
        "name": names.get(device.uuid),
    }


def serialize_state(state: DeviceState) -> Dict[str, Any]:
    """Convert a device state into JSON-safe primitives."""
    data = asdict(state)
    data["led_mode"] = state.led_mode.name.lower()
    data["color_hex"] = state.color_hex
    return data


def serialize_led_view(view: LedView) -> Dict[str, Any]:
    """Convert an LED presentation view into JSON-safe primitives."""
    return {
        "tab": view.tab.value,
        "is_breathing": view.is_breathing,
        "is_rainbow": view.is_rainbow,
    }


def snapshot_to_dict(snapshot: ControllerSnapshot) -> Dict[str, Any]:
    """Transform a controller snapshot into the API response structure."""
    names = dict(snapshot.device_names)
    return {
        "status": snapshot.status.value,
        "status_text": snapshot.status_text,
        "bluetooth_available": snapshot.bluetooth_available,
        "devices": [serialize_device(device, names) for device in snapshot.devices],
        "selected_uuid": snapshot.selected_uuid,
        "display_name": snapshot.display_name,
        "state": serialize_state(snapshot.state) if snapshot.state else None,
        "led_view": (
            serialize_led_view(snapshot.led_view) if snapshot.led_view else None
        ),
        "state_version": snapshot.state_version,
        "state_initialized": snapshot.state_initialized,
    }

"""Device routes: status, discovery, selection, naming, connection."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from ..discovery import DiscoveryOutcome
from ..schemas import ConnectRequest, RenameRequest
from ..serializers import snapshot_to_dict
from . import get_controller as _controller
from . import operation_result as _result

router = APIRouter(prefix="/api", tags=["devices"])


@router.get("/status")
async def get_status(request: Request) -> Dict[str, Any]:
    """Return the current controller snapshot."""
    return snapshot_to_dict(_controller(request).snapshot())


@router.post("/discovery/refresh")
async def refresh_devices(request: Request) -> Dict[str, Any]:
    """Refresh the list of reachable devices (only while disconnected)."""
    controller = _controller(request)
    outcome = await controller.refresh_devices()
    return _result(
        controller,
        outcome is DiscoveryOutcome.REFRESHED,
        outcome=outcome.value,
    )


@router.post("/devices/{uuid}/select")
async def select_device(request: Request, uuid: str) -> Dict[str, Any]:
    """Select the device the next connect will target."""
    controller = _controller(request)
    if not controller.machine.is_disconnected:
        return _result(controller, False)
    controller.select_device(uuid)
    return _result(controller, True)


@router.put("/name")
async def rename_device(request: Request, payload: RenameRequest) -> Dict[str, Any]:
    """Name the connected device; a blank name removes the mapping."""
    controller = _controller(request)
    return _result(controller, controller.rename_device(payload.name))


@router.post("/connect")
async def connect(
    request: Request, payload: ConnectRequest | None = None
) -> Dict[str, Any]:
    """Connect to the given or the selected device."""
    controller = _controller(request)
    uuid = payload.uuid if payload else None
    return _result(controller, await controller.connect(uuid))


@router.post("/disconnect")
async def disconnect(request: Request) -> Dict[str, Any]:
    """Save the device state and disconnect."""
    controller = _controller(request)
    return _result(controller, await controller.disconnect())


@router.post("/connection/toggle")
async def toggle_connection(request: Request) -> Dict[str, Any]:
    """Connect when disconnected, disconnect when connected."""
    controller = _controller(request)
    return _result(controller, await controller.toggle_connection())

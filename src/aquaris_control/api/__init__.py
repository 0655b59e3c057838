"""HTTP API routers and their shared helpers."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import Request

from ..controller import AquarisController
from ..serializers import snapshot_to_dict


def get_controller(request: Request) -> AquarisController:
    """Return the controller attached to the application."""
    return request.app.state.controller


def operation_result(
    controller: AquarisController, accepted: bool, **extra: Any
) -> Dict[str, Any]:
    """Wrap an operation result; rejected operations are not HTTP errors."""
    return {
        "accepted": accepted,
        **extra,
        "snapshot": snapshot_to_dict(controller.snapshot()),
    }

"""Command routes for the LED, fan and pump."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Request

from ..schemas import FanNudgeRequest, FanRequest, LedRequest, PumpRequest
from . import get_controller as _controller
from . import operation_result as _result

router = APIRouter(prefix="/api", tags=["commands"])


@router.post("/led")
async def set_led(request: Request, payload: LedRequest) -> Dict[str, Any]:
    """Switch the LED off, or set its color and animation."""
    controller = _controller(request)
    if not payload.on:
        accepted = await controller.led_off()
    elif payload.color is not None:
        accepted = await controller.set_led_hex(
            True, payload.color, payload.breathing, payload.rainbow
        )
    else:
        accepted = await controller.set_led(
            True,
            payload.red,
            payload.green,
            payload.blue,
            payload.breathing,
            payload.rainbow,
        )
    return _result(controller, accepted)


@router.post("/led/off")
async def led_off(request: Request) -> Dict[str, Any]:
    """Switch the LED off."""
    controller = _controller(request)
    return _result(controller, await controller.led_off())


@router.post("/fan")
async def set_fan(request: Request, payload: FanRequest) -> Dict[str, Any]:
    """Switch the fan off or set its duty cycle."""
    controller = _controller(request)
    return _result(
        controller, await controller.set_fan(payload.on, payload.duty_cycle)
    )


@router.post("/fan/presets/{preset}")
async def select_fan_preset(request: Request, preset: str) -> Dict[str, Any]:
    """Run the fan at a named duty level (slow, medium, fast)."""
    controller = _controller(request)
    try:
        accepted = await controller.select_fan_preset(preset)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _result(controller, accepted)


@router.post("/fan/hold")
async def hold_fan(request: Request, payload: FanNudgeRequest) -> Dict[str, Any]:
    """Start nudging the fan duty cycle repeatedly until released."""
    controller = _controller(request)
    return _result(controller, controller.start_fan_nudge(payload.offset))


@router.post("/fan/release")
async def release_fan(request: Request) -> Dict[str, Any]:
    """Stop a held fan button."""
    controller = _controller(request)
    controller.stop_repeat()
    return _result(controller, True)


@router.post("/fan/off")
async def fan_off(request: Request) -> Dict[str, Any]:
    """Switch the fan off."""
    controller = _controller(request)
    return _result(controller, await controller.fan_off())


@router.post("/pump")
async def set_pump(request: Request, payload: PumpRequest) -> Dict[str, Any]:
    """Switch the pump off or set its duty cycle and voltage."""
    controller = _controller(request)
    return _result(
        controller,
        await controller.set_pump(payload.on, payload.duty_cycle, payload.voltage),
    )


@router.post("/pump/off")
async def pump_off(request: Request) -> Dict[str, Any]:
    """Switch the pump off."""
    controller = _controller(request)
    return _result(controller, await controller.pump_off())

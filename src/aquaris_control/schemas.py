"""Define Pydantic models for request payloads."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import hex_to_rgb


class ConnectRequest(BaseModel):
    """Payload for connecting a device; defaults to the selected device."""

    uuid: str | None = None


class RenameRequest(BaseModel):
    """Payload for naming the connected device; blank removes the name."""

    name: str = ""


class LedRequest(BaseModel):
    """Payload for updating the LED.

    The color may be given as ``color`` (``#rrggbb``) or as separate
    channels; channel values outside 0-255 are clamped by the dispatcher.
    """

    on: bool = True
    color: str | None = None
    red: int | None = None
    green: int | None = None
    blue: int | None = None
    breathing: bool = False
    rainbow: bool = False

    @field_validator("color")
    @classmethod
    def validate_color(cls, value: str | None) -> str | None:
        """Ensure hex colors carry exactly two hex digits per channel."""
        if value is not None:
            hex_to_rgb(value)
        return value

    @model_validator(mode="after")
    def validate_color_source(self) -> "LedRequest":
        """Require a color when switching the LED on."""
        channels = (self.red, self.green, self.blue)
        has_channels = all(c is not None for c in channels)
        if any(c is not None for c in channels) and not has_channels:
            raise ValueError("red, green and blue must be given together")
        if self.color is not None and has_channels:
            raise ValueError("Cannot specify both 'color' and channels")
        if self.on and self.color is None and not has_channels:
            raise ValueError("Either 'color' or red/green/blue is required")
        return self


class FanRequest(BaseModel):
    """Payload for the fan; duty values outside 0-100 are clamped."""

    on: bool = True
    duty_cycle: int = Field(0, description="Fan duty cycle in percent")


class PumpRequest(BaseModel):
    """Payload for the pump; duty values outside 0-100 are clamped."""

    on: bool = True
    duty_cycle: int = Field(0, description="Pump duty cycle in percent")
    voltage: int = Field(0, ge=0, description="Pump voltage setting")


class FanNudgeRequest(BaseModel):
    """Payload for holding a fan speed button."""

    offset: int = Field(1, description="Duty cycle change per repeat")

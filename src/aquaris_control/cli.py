"""Aquaris control CLI entrypoint.

A thin HTTP client of the running service: every command calls the REST API
and prints the resulting controller snapshot. ``serve`` starts the service.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import typer
from rich import print
from rich.table import Table
from typing_extensions import Annotated

from .config import configure_logging, get_env

app = typer.Typer(help="Control an Aquaris cooling accessory via the service.")

DEFAULT_SERVICE_URL = "http://127.0.0.1:8000"
REQUEST_TIMEOUT = httpx.Timeout(connect=2.0, read=30.0, write=5.0, pool=2.0)

_state: dict[str, str] = {"url": DEFAULT_SERVICE_URL}


@app.callback()
def main(
    url: Annotated[
        Optional[str],
        typer.Option(help="Service base URL (default: AQUARIS_SERVICE_URL)"),
    ] = None,
) -> None:
    """Select the service to talk to."""
    _state["url"] = url or get_env("AQUARIS_SERVICE_URL", DEFAULT_SERVICE_URL)


def _request(method: str, path: str, payload: dict[str, Any] | None = None) -> dict:
    """Call the service and return the decoded JSON body."""
    try:
        with httpx.Client(base_url=_state["url"], timeout=REQUEST_TIMEOUT) as client:
            response = client.request(method, path, json=payload)
    except httpx.HTTPError as exc:
        print(f"[red]Service unreachable at {_state['url']}: {exc}[/red]")
        raise typer.Exit(code=2) from exc
    if response.status_code >= 400:
        try:
            detail = response.json().get("detail", response.text)
        except ValueError:
            detail = response.text
        print(f"[red]Request failed ({response.status_code}): {detail}[/red]")
        raise typer.Exit(code=1)
    return response.json()


def _render_snapshot(snapshot: dict) -> None:
    """Print a human friendly summary of a controller snapshot."""
    header = snapshot["status_text"]
    if snapshot.get("display_name"):
        header = f"{header} {snapshot['display_name']}"
    print(f"[bold]{header}[/bold]")
    state = snapshot.get("state")
    if not state:
        return
    table = Table("Component", "On", "Setting", box=None, pad_edge=False)
    led_view = snapshot.get("led_view") or {}
    animation = []
    if led_view.get("is_rainbow"):
        animation.append("rainbow")
    if led_view.get("is_breathing"):
        animation.append("breathing")
    table.add_row(
        "LED",
        "yes" if state["led_on"] else "no",
        f"{state['color_hex']} {'+'.join(animation) or 'static'}",
    )
    table.add_row(
        "Fan", "yes" if state["fan_on"] else "no", f"{state['fan_duty_cycle']}%"
    )
    table.add_row(
        "Pump",
        "yes" if state["pump_on"] else "no",
        f"{state['pump_duty_cycle']}% voltage={state['pump_voltage']}",
    )
    print(table)


def _report(result: dict) -> None:
    if not result.get("accepted", True):
        print("[yellow]Ignored: the controller is not in a state to do that.[/yellow]")
    _render_snapshot(result["snapshot"])


@app.command()
def status() -> None:
    """Show the connection status and device state."""
    _render_snapshot(_request("GET", "/api/status"))


@app.command()
def devices(
    refresh: Annotated[bool, typer.Option(help="Refresh the list first")] = False,
) -> None:
    """List reachable devices."""
    if refresh:
        snapshot = _request("POST", "/api/discovery/refresh")["snapshot"]
    else:
        snapshot = _request("GET", "/api/status")
    if not snapshot["bluetooth_available"]:
        print("Bluetooth not available.")
        return
    if not snapshot["devices"]:
        print("No devices found.")
        return
    table = Table("", "UUID", "Name", "Advertised name")
    for device in snapshot["devices"]:
        marker = "*" if device["uuid"] == snapshot["selected_uuid"] else ""
        table.add_row(
            marker,
            device["uuid"],
            device["name"] or "",
            device["discovered_name"] or "",
        )
    print(table)


@app.command()
def select(uuid: str) -> None:
    """Select the device the next connect will target."""
    _report(_request("POST", f"/api/devices/{uuid}/select"))


@app.command()
def name(
    new_name: Annotated[str, typer.Argument(help="Blank removes the name")] = "",
) -> None:
    """Name the connected device."""
    _report(_request("PUT", "/api/name", {"name": new_name}))


@app.command()
def connect(uuid: Annotated[Optional[str], typer.Argument()] = None) -> None:
    """Connect to a device (default: the selected one)."""
    _report(_request("POST", "/api/connect", {"uuid": uuid}))


@app.command()
def disconnect() -> None:
    """Save the device state and disconnect."""
    _report(_request("POST", "/api/disconnect"))


@app.command()
def led(
    color: Annotated[Optional[str], typer.Argument(help="#rrggbb")] = None,
    off: Annotated[bool, typer.Option("--off")] = False,
    breathing: Annotated[bool, typer.Option()] = False,
    rainbow: Annotated[bool, typer.Option()] = False,
) -> None:
    """Set the LED color and animation, or switch it off."""
    if off:
        _report(_request("POST", "/api/led/off"))
        return
    if color is None:
        raise typer.BadParameter("A color is required unless --off is given")
    _report(
        _request(
            "POST",
            "/api/led",
            {"color": color, "breathing": breathing, "rainbow": rainbow},
        )
    )


@app.command()
def fan(
    duty: Annotated[Optional[int], typer.Argument(min=0, max=100)] = None,
    preset: Annotated[Optional[str], typer.Option(help="slow, medium or fast")] = None,
    off: Annotated[bool, typer.Option("--off")] = False,
) -> None:
    """Set the fan duty cycle, pick a preset, or switch it off."""
    if off:
        _report(_request("POST", "/api/fan/off"))
    elif preset is not None:
        _report(_request("POST", f"/api/fan/presets/{preset}"))
    elif duty is not None:
        _report(_request("POST", "/api/fan", {"duty_cycle": duty}))
    else:
        raise typer.BadParameter("Give a duty cycle, --preset or --off")


@app.command()
def pump(
    duty: Annotated[Optional[int], typer.Argument(min=0, max=100)] = None,
    voltage: Annotated[int, typer.Option(min=0)] = 0,
    off: Annotated[bool, typer.Option("--off")] = False,
) -> None:
    """Set the pump duty cycle and voltage, or switch it off."""
    if off:
        _report(_request("POST", "/api/pump/off"))
    elif duty is not None:
        _report(
            _request("POST", "/api/pump", {"duty_cycle": duty, "voltage": voltage})
        )
    else:
        raise typer.BadParameter("Give a duty cycle or --off")


@app.command()
def serve() -> None:  # pragma: no cover - runs the server
    """Run the HTTP service."""
    from .service import main as service_main

    configure_logging()
    service_main()


if __name__ == "__main__":
    app()

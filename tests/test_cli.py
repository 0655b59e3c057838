"""Tests for the HTTP client CLI."""

from __future__ import annotations

import json

import httpx
import pytest
from typer.testing import CliRunner

from aquaris_control import cli

runner = CliRunner()

SNAPSHOT = {
    "status": "connected",
    "status_text": "Connected to",
    "bluetooth_available": True,
    "devices": [{"uuid": "AA-01", "discovered_name": "LCT21001", "name": "Tank"}],
    "selected_uuid": "AA-01",
    "display_name": "Tank",
    "state": {
        "device_uuid": "AA-01",
        "led_on": True,
        "red": 0,
        "green": 255,
        "blue": 0,
        "led_mode": "colorful",
        "color_hex": "#00ff00",
        "fan_on": True,
        "fan_duty_cycle": 65,
        "pump_on": False,
        "pump_duty_cycle": 60,
        "pump_voltage": 1,
    },
    "led_view": {"tab": "animation", "is_breathing": False, "is_rainbow": True},
    "state_version": 3,
    "state_initialized": True,
}


@pytest.fixture()
def requests(monkeypatch: pytest.MonkeyPatch) -> list[httpx.Request]:
    """Route CLI requests to an in-memory handler and record them."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/api/status":
            return httpx.Response(200, json=SNAPSHOT)
        if request.url.path.endswith("/presets/turbo"):
            return httpx.Response(404, json={"detail": "Unknown fan preset"})
        return httpx.Response(200, json={"accepted": True, "snapshot": SNAPSHOT})

    real_client = httpx.Client

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(cli.httpx, "Client", client_factory)
    return seen


def test_status_renders_snapshot(requests) -> None:
    result = runner.invoke(cli.app, ["status"])
    assert result.exit_code == 0
    assert "Connected to Tank" in result.output
    assert "#00ff00" in result.output
    assert "rainbow" in result.output
    assert requests[0].method == "GET"


def test_devices_lists_names(requests) -> None:
    result = runner.invoke(cli.app, ["devices", "--refresh"])
    assert result.exit_code == 0
    assert "AA-01" in result.output
    assert "Tank" in result.output
    assert requests[0].url.path == "/api/discovery/refresh"


def test_led_command_payload(requests) -> None:
    result = runner.invoke(cli.app, ["led", "#00ff00", "--rainbow"])
    assert result.exit_code == 0
    body = json.loads(requests[0].content)
    assert body == {"color": "#00ff00", "breathing": False, "rainbow": True}


def test_fan_and_pump_routes(requests) -> None:
    runner.invoke(cli.app, ["fan", "--preset", "medium"])
    runner.invoke(cli.app, ["fan", "--off"])
    runner.invoke(cli.app, ["pump", "55", "--voltage", "2"])
    assert [r.url.path for r in requests] == [
        "/api/fan/presets/medium",
        "/api/fan/off",
        "/api/pump",
    ]
    assert json.loads(requests[2].content) == {"duty_cycle": 55, "voltage": 2}


def test_connect_and_name(requests) -> None:
    runner.invoke(cli.app, ["connect", "AA-01"])
    runner.invoke(cli.app, ["name", "Tank"])
    assert json.loads(requests[0].content) == {"uuid": "AA-01"}
    assert requests[1].method == "PUT"
    assert json.loads(requests[1].content) == {"name": "Tank"}


def test_error_status_exits_non_zero(requests) -> None:
    result = runner.invoke(cli.app, ["fan", "--preset", "turbo"])
    assert result.exit_code == 1
    assert "Unknown fan preset" in result.output


def test_custom_url(requests) -> None:
    runner.invoke(cli.app, ["--url", "http://controller:9000", "status"])
    assert requests[0].url.host == "controller"
    assert requests[0].url.port == 9000

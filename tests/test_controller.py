"""Tests for the controller orchestration."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from aquaris_control.const import ConnectionStatus
from aquaris_control.controller import AquarisController

pytestmark = pytest.mark.asyncio


async def test_start_discovers_and_stop_tears_down(controller, transport) -> None:
    await controller.start()
    try:
        assert controller.started
        assert transport.discovering
        assert [d.uuid for d in controller.snapshot().devices] == ["AA-01", "BB-02"]
        assert controller.status is ConnectionStatus.DISCONNECTED
        assert controller._timer.running
    finally:
        await controller.stop()

    assert not controller.started
    assert not controller._timer.running
    assert not controller.dispatcher.repeater.active


async def test_start_selects_default_device(controller, preferences) -> None:
    preferences.set_device_name("BB-02", "Desk")

    await controller.start()
    await controller.stop()

    snapshot = controller.snapshot()
    assert snapshot.selected_uuid == "BB-02"
    assert snapshot.display_name == "Desk"


async def test_start_adopts_existing_link(controller, transport) -> None:
    await transport.connect("AA-01")
    transport.calls.clear()

    await controller.start()
    await controller.stop()

    assert controller.status is ConnectionStatus.CONNECTED
    assert "start_discovery" not in transport.call_names()
    assert controller.synchronizer.initialized
    assert controller.snapshot().selected_uuid == "AA-01"


async def test_start_without_discovery(transport, preferences) -> None:
    controller = AquarisController(
        transport, preferences, poll_interval=3600, discover_on_start=False
    )
    await controller.start()
    await controller.stop()
    assert "start_discovery" not in transport.call_names()


async def test_tick_detects_lost_link(controller, transport) -> None:
    await controller.connect("AA-01")
    assert controller.status is ConnectionStatus.CONNECTED

    transport.connected_uuid = None
    await controller.tick()

    assert controller.status is ConnectionStatus.DISCONNECTED


async def test_tick_reconciles_while_connected(controller, transport) -> None:
    await controller.connect("AA-01")
    version = controller.snapshot().state_version

    await controller.tick()

    assert controller.snapshot().state_version == version + 1
    assert "list_devices" not in transport.call_names()


async def test_tick_tracks_bluetooth_capability(controller, transport) -> None:
    transport.bluetooth = False
    await controller.tick()

    snapshot = controller.snapshot()
    assert not snapshot.bluetooth_available
    assert snapshot.status_text == "Bluetooth not available"
    assert "list_devices" not in transport.call_names()

    transport.bluetooth = True
    await controller.tick()
    assert controller.snapshot().bluetooth_available
    assert "list_devices" in transport.call_names()


async def test_status_text(controller) -> None:
    assert controller.status_text() == "Looking for devices..."
    controller.machine.transition(ConnectionStatus.CONNECTING)
    assert controller.status_text() == "Connecting..."
    controller.machine.transition(ConnectionStatus.CONNECTED)
    assert controller.status_text() == "Connected to"
    controller.machine.transition(ConnectionStatus.DISCONNECTING)
    assert controller.status_text() == "Disconnecting..."


async def test_rename_requires_connection(controller, preferences) -> None:
    controller.select_device("AA-01")
    assert controller.rename_device("Tank") is False
    assert preferences.get_device_names() == {}

    await controller.connect()
    assert controller.rename_device("Tank") is True
    assert controller.display_name() == "Tank"
    assert preferences.get_device_names() == {"AA-01": "Tank"}

    assert controller.rename_device("") is True
    assert controller.display_name() == "AA-01"
    assert preferences.get_device_names() == {}


async def test_connect_defaults_to_selected_device(controller, transport) -> None:
    assert await controller.connect() is False
    controller.select_device("BB-02")
    assert await controller.connect() is True
    assert ("connect", ("BB-02",)) in transport.calls


async def test_subscribers_receive_snapshots(controller) -> None:
    listener = MagicMock()
    unsubscribe = controller.subscribe(listener)

    await controller.connect("AA-01")
    await controller.set_fan(True, 70)
    snapshot = listener.call_args.args[0]
    assert snapshot.status is ConnectionStatus.CONNECTED
    assert snapshot.state.fan_duty_cycle == 70

    calls = listener.call_count
    unsubscribe()
    await controller.fan_off()
    assert listener.call_count == calls


async def test_failing_subscriber_does_not_break_others(controller) -> None:
    controller.subscribe(MagicMock(side_effect=RuntimeError("boom")))
    listener = MagicMock()
    controller.subscribe(listener)

    await controller.connect("AA-01")

    listener.assert_called()


async def test_commands_forwarded(controller, transport) -> None:
    await controller.connect("AA-01")
    transport.calls.clear()

    assert await controller.set_led_hex(True, "#102030")
    assert await controller.led_off()
    assert await controller.select_fan_preset("fast")
    assert await controller.set_pump(True, 55, 1)
    assert await controller.pump_off()

    assert transport.call_names() == [
        "set_led",
        "led_off",
        "set_fan",
        "set_pump",
        "pump_off",
    ]


async def test_disconnect_and_toggle(controller, transport) -> None:
    controller.select_device("AA-01")
    assert await controller.toggle_connection() is True
    assert controller.status is ConnectionStatus.CONNECTED
    assert await controller.disconnect() is True
    assert controller.status is ConnectionStatus.DISCONNECTED
    assert transport.connected_uuid is None


async def test_connect_during_tick_keeps_link(controller, transport) -> None:
    """A connect finishing while a tick is suspended is not undone by it."""
    transport.delays["has_bluetooth_capability"] = 0.05
    tick = asyncio.create_task(controller.tick())
    await asyncio.sleep(0)

    assert await controller.connect("AA-01") is True
    await tick

    assert controller.status is ConnectionStatus.CONNECTED
    transport.delays.clear()
    await controller.tick()
    assert controller.status is ConnectionStatus.CONNECTED
    assert await controller.set_fan(True, 70) is True


async def test_stale_link_check_is_ignored(
    controller, transport, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A link reading taken across a status change does not mark the link lost."""
    await controller.connect("AA-01")
    release = asyncio.Event()

    async def slow_link_check() -> bool:
        await release.wait()
        return False

    monkeypatch.setattr(transport, "is_connected", slow_link_check)
    tick = asyncio.create_task(controller.tick())
    await asyncio.sleep(0.01)

    machine = controller.machine
    machine.transition(ConnectionStatus.DISCONNECTING)
    machine.transition(ConnectionStatus.DISCONNECTED)
    machine.transition(ConnectionStatus.CONNECTING)
    machine.transition(ConnectionStatus.CONNECTED)
    release.set()
    await tick

    assert controller.status is ConnectionStatus.CONNECTED


async def test_disconnect_during_tick(controller, transport) -> None:
    await controller.connect("AA-01")
    transport.delays["has_bluetooth_capability"] = 0.05
    tick = asyncio.create_task(controller.tick())
    await asyncio.sleep(0)

    assert await controller.disconnect() is True
    transport.calls.clear()
    await tick

    assert controller.status is ConnectionStatus.DISCONNECTED
    assert transport.connected_uuid is None
    assert "get_state" not in transport.call_names()


async def test_fan_hold_and_release(controller, transport) -> None:
    assert controller.start_fan_nudge(1) is False
    assert not controller.dispatcher.repeater.active

    await controller.connect("AA-01")
    listener = MagicMock()
    controller.subscribe(listener)
    transport.calls.clear()

    assert controller.start_fan_nudge(1) is True
    await asyncio.sleep(0.035)
    controller.stop_repeat()
    await asyncio.sleep(0)
    sent = len(transport.calls)
    await asyncio.sleep(0.02)

    assert sent >= 2
    assert len(transport.calls) == sent
    assert transport.calls[0] == ("set_fan", (41,))
    assert listener.call_count >= 2
    assert not controller.dispatcher.repeater.active


async def test_rename_save_failure(
    controller, preferences, monkeypatch: pytest.MonkeyPatch
) -> None:
    await controller.connect("AA-01")

    def fail(*_args):
        raise OSError("read-only file system")

    monkeypatch.setattr(preferences, "set_device_name", fail)

    assert controller.rename_device("Tank") is False
    assert controller.display_name() == "AA-01"

"""Shared fixtures for the controller tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from aquaris_control.connection import ConnectionManager, ConnectionStateMachine
from aquaris_control.const import ConnectionStatus, LedMode
from aquaris_control.controller import AquarisController
from aquaris_control.discovery import DiscoveryManager
from aquaris_control.dispatcher import CommandDispatcher
from aquaris_control.models import DeviceIdentity, DeviceState
from aquaris_control.preferences import PreferenceStore
from aquaris_control.synchronizer import StateSynchronizer
from aquaris_control.transport import SimulatedTransport


@pytest.fixture
def transport() -> SimulatedTransport:
    """Simulated backend with two reachable devices."""
    sim = SimulatedTransport(
        [DeviceIdentity("AA-01", "LCT21001"), DeviceIdentity("BB-02", "LCT21001")]
    )
    sim.set_device_state(
        DeviceState(
            device_uuid="AA-01",
            led_on=True,
            red=10,
            green=20,
            blue=30,
            led_mode=LedMode.BREATHE,
            fan_on=True,
            fan_duty_cycle=40,
            pump_on=True,
            pump_duty_cycle=70,
            pump_voltage=1,
        )
    )
    return sim


@pytest.fixture
def preferences(tmp_path: Path) -> PreferenceStore:
    """Preference store in a temporary directory."""
    return PreferenceStore(tmp_path)


class Components:
    """The core components wired together without the controller."""

    def __init__(self, transport, preferences) -> None:
        self.transport = transport
        self.preferences = preferences
        self.machine = ConnectionStateMachine()
        self.synchronizer = StateSynchronizer(transport, self.machine)
        self.discovery = DiscoveryManager(transport, self.machine, preferences)
        self.connection = ConnectionManager(
            transport,
            self.machine,
            self.synchronizer,
            self.discovery,
            preferences,
        )
        self.dispatcher = CommandDispatcher(
            transport, self.machine, self.synchronizer, repeat_interval=0.01
        )

    async def connected(self, uuid: str = "AA-01") -> "Components":
        assert await self.connection.connect(uuid)
        assert self.machine.status is ConnectionStatus.CONNECTED
        self.transport.calls.clear()
        return self


@pytest.fixture
def components(transport, preferences) -> Components:
    """Core components sharing one simulated transport."""
    return Components(transport, preferences)


@pytest.fixture
def controller(transport, preferences) -> AquarisController:
    """Controller with a long poll interval so only explicit ticks run."""
    return AquarisController(
        transport,
        preferences,
        poll_interval=3600,
        repeat_interval=0.01,
    )

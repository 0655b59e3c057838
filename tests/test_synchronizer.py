"""Tests for the hardware mirror."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from aquaris_control.connection import ConnectionStateMachine
from aquaris_control.const import ConnectionStatus
from aquaris_control.exception import TransportUnavailable
from aquaris_control.synchronizer import StateSynchronizer

pytestmark = pytest.mark.asyncio


async def test_reconcile_is_noop_while_disconnected(components) -> None:
    assert await components.synchronizer.reconcile() is False
    assert components.transport.calls == []
    assert components.synchronizer.snapshot.state is None
    assert components.synchronizer.initialized is False


async def test_reconcile_replaces_snapshot(components) -> None:
    await components.connected()
    first = components.synchronizer.snapshot

    assert await components.synchronizer.reconcile() is True

    second = components.synchronizer.snapshot
    assert second.version == first.version + 1
    assert second is not first
    assert second.state.device_uuid == "AA-01"


async def test_failed_read_keeps_previous_snapshot(components) -> None:
    await components.connected()
    before = components.synchronizer.snapshot
    components.transport.failures.add("get_state")

    assert await components.synchronizer.reconcile() is False
    assert components.synchronizer.snapshot is before


async def test_optimistic_overlay_is_cleared_by_reconcile(components) -> None:
    """Commands show up immediately and the next reading wins."""
    await components.connected()
    components.synchronizer.apply_optimistic(fan_duty_cycle=99)
    assert components.synchronizer.view().fan_duty_cycle == 99
    # The mirror itself is untouched
    assert components.synchronizer.snapshot.state.fan_duty_cycle == 40

    await components.synchronizer.reconcile()

    assert components.synchronizer.view().fan_duty_cycle == 40


async def test_apply_optimistic_rejects_unknown_fields(components) -> None:
    with pytest.raises(ValueError):
        components.synchronizer.apply_optimistic(colour=1)
    with pytest.raises(ValueError):
        components.synchronizer.apply_optimistic(device_uuid="other")


async def test_none_state_is_not_stored() -> None:
    transport = MagicMock()
    transport.get_state = AsyncMock(return_value=None)
    machine = ConnectionStateMachine()
    machine._status = ConnectionStatus.CONNECTED
    callback = MagicMock()
    synchronizer = StateSynchronizer(transport, machine, on_state=callback)

    assert await synchronizer.reconcile() is False
    assert synchronizer.snapshot.version == 0
    callback.assert_not_called()


async def test_on_state_callback(components) -> None:
    await components.connected()
    seen = []
    components.synchronizer._on_state = seen.append

    await components.synchronizer.reconcile()

    assert [state.device_uuid for state in seen] == ["AA-01"]


async def test_adapter_loss_during_read(
    components, monkeypatch: pytest.MonkeyPatch
) -> None:
    await components.connected()
    before = components.synchronizer.snapshot
    monkeypatch.setattr(
        components.transport,
        "get_state",
        AsyncMock(side_effect=TransportUnavailable("adapter removed")),
    )

    assert await components.synchronizer.reconcile() is False
    assert components.synchronizer.snapshot is before

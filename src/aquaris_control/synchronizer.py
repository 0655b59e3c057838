"""Hardware state mirror and its reconciliation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import fields, replace
from typing import Any, Callable

from .connection import ConnectionStateMachine
from .models import DeviceState, StateSnapshot
from .transport.base import TRANSPORT_ERRORS, Transport, call_transport

logger = logging.getLogger(__name__)

_STATE_FIELDS = frozenset(field.name for field in fields(DeviceState)) - {
    "device_uuid"
}


class StateSynchronizer:
    """Owns the hardware mirror.

    The mirror is an immutable ``StateSnapshot`` replaced whole on each
    successful read; readers never observe a partial update. Commands record
    the values they sent in a separate optimistic overlay that the next
    reconciliation discards.
    """

    def __init__(
        self,
        transport: Transport,
        machine: ConnectionStateMachine,
        on_state: Callable[[DeviceState], None] | None = None,
    ) -> None:
        """Create an empty mirror."""
        self._transport = transport
        self._machine = machine
        self._on_state = on_state
        self._snapshot = StateSnapshot()
        self._overlay: dict[str, Any] = {}
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> StateSnapshot:
        """Return the last hardware reading."""
        return self._snapshot

    @property
    def initialized(self) -> bool:
        """Return whether the device state has been read at least once."""
        return self._snapshot.version > 0

    def view(self) -> DeviceState | None:
        """Return the mirrored state with pending optimistic values applied."""
        state = self._snapshot.state
        if state is None or not self._overlay:
            return state
        return replace(state, **self._overlay)

    def apply_optimistic(self, **changes: Any) -> None:
        """Record values just sent to the device until the next reading."""
        unknown = set(changes) - _STATE_FIELDS
        if unknown:
            raise ValueError(f"Unknown state fields: {sorted(unknown)}")
        self._overlay.update(changes)

    async def reconcile(self) -> bool:
        """Read the full device state and replace the mirror.

        Returns:
            True when a new snapshot was stored.
        """
        if not self._machine.is_connected:
            return False
        async with self._lock:
            # Status may have changed while waiting for the lock
            if not self._machine.is_connected:
                return False
            try:
                state = await call_transport(
                    "get_state", self._transport.get_state()
                )
            except TRANSPORT_ERRORS as exc:
                logger.warning("State read failed: %s", exc)
                return False
            if state is None:
                logger.debug("Device returned no state")
                return False
            self._snapshot = StateSnapshot(
                version=self._snapshot.version + 1, state=state
            )
            self._overlay = {}
        logger.debug(
            "Reconciled state v%d for %s", self._snapshot.version, state.device_uuid
        )
        if self._on_state is not None:
            self._on_state(state)
        return True

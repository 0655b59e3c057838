"""Connection state machine and the connect/disconnect lifecycle.

The orchestrator-wide ``ConnectionStatus`` is a single enum guarded by a
transition table. Operations that would race an in-flight transition fail
the guard and become no-ops instead of blocking or queueing.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable

from .const import ConnectionStatus
from .exception import DeviceCommandFailed, OperationRejected
from .transport.base import TRANSPORT_ERRORS, Transport, call_transport

if TYPE_CHECKING:
    from .discovery import DiscoveryManager
    from .preferences import PreferenceStore
    from .synchronizer import StateSynchronizer

logger = logging.getLogger(__name__)

StatusListener = Callable[[ConnectionStatus, ConnectionStatus], None]

TRANSITIONS: dict[ConnectionStatus, frozenset[ConnectionStatus]] = {
    ConnectionStatus.DISCONNECTED: frozenset(
        {ConnectionStatus.DISCOVERING, ConnectionStatus.CONNECTING}
    ),
    ConnectionStatus.DISCOVERING: frozenset(
        {ConnectionStatus.DISCONNECTED, ConnectionStatus.CONNECTING}
    ),
    ConnectionStatus.CONNECTING: frozenset(
        {ConnectionStatus.CONNECTED, ConnectionStatus.DISCONNECTED}
    ),
    # DISCONNECTED directly from CONNECTED is a lost link
    ConnectionStatus.CONNECTED: frozenset(
        {ConnectionStatus.DISCONNECTING, ConnectionStatus.DISCONNECTED}
    ),
    ConnectionStatus.DISCONNECTING: frozenset({ConnectionStatus.DISCONNECTED}),
}

TRANSITIONAL = frozenset(
    {ConnectionStatus.CONNECTING, ConnectionStatus.DISCONNECTING}
)


class ConnectionStateMachine:
    """Single source of truth for the connection status."""

    def __init__(self) -> None:
        """Start in ``DISCONNECTED`` with no discovery in flight."""
        self._status = ConnectionStatus.DISCONNECTED
        self._epoch = 0
        self._listeners: list[StatusListener] = []
        self._discovery_idle = asyncio.Event()
        self._discovery_idle.set()

    @property
    def status(self) -> ConnectionStatus:
        """Return the current status."""
        return self._status

    @property
    def epoch(self) -> int:
        """Return a counter bumped on every transition."""
        return self._epoch

    @property
    def in_transition(self) -> bool:
        """Return whether a connect or disconnect is in flight."""
        return self._status in TRANSITIONAL

    @property
    def is_connected(self) -> bool:
        """Return whether a link is established and idle."""
        return self._status is ConnectionStatus.CONNECTED

    @property
    def is_disconnected(self) -> bool:
        """Return whether no link exists and none is being set up."""
        return self._status in (
            ConnectionStatus.DISCONNECTED,
            ConnectionStatus.DISCOVERING,
        )

    def can_transition(self, target: ConnectionStatus) -> bool:
        """Return whether ``target`` is reachable from the current status."""
        return target in TRANSITIONS[self._status]

    def transition(self, target: ConnectionStatus) -> None:
        """Move to ``target``.

        Raises:
            OperationRejected: If the transition is not in the table.
        """
        current = self._status
        if not self.can_transition(target):
            raise OperationRejected(
                f"Cannot go from {current.value} to {target.value}"
            )
        self._status = target
        self._epoch += 1
        logger.debug("Connection status %s -> %s", current.value, target.value)
        for listener in list(self._listeners):
            try:
                listener(current, target)
            except Exception:
                logger.exception("Status listener failed")

    def add_listener(self, listener: StatusListener) -> Callable[[], None]:
        """Register a status listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # Discovery sub-state

    def begin_discovery(self) -> None:
        """Enter ``DISCOVERING``.

        Raises:
            OperationRejected: Unless the status is ``DISCONNECTED``.
        """
        if self._status is not ConnectionStatus.DISCONNECTED:
            raise OperationRejected(
                f"Discovery not allowed while {self._status.value}"
            )
        self.transition(ConnectionStatus.DISCOVERING)
        self._discovery_idle.clear()

    def end_discovery(self) -> None:
        """Leave ``DISCOVERING`` (if a connect has not taken over) and wake waiters."""
        if self._status is ConnectionStatus.DISCOVERING:
            self.transition(ConnectionStatus.DISCONNECTED)
        self._discovery_idle.set()

    @property
    def discovery_in_flight(self) -> bool:
        """Return whether a discovery refresh has not finished yet."""
        return not self._discovery_idle.is_set()

    async def wait_discovery_idle(self) -> None:
        """Suspend until no discovery refresh is in flight."""
        await self._discovery_idle.wait()


class ConnectionManager:
    """Drives connect/disconnect against the transport."""

    def __init__(
        self,
        transport: Transport,
        machine: ConnectionStateMachine,
        synchronizer: StateSynchronizer,
        discovery: DiscoveryManager,
        preferences: PreferenceStore,
    ) -> None:
        """Wire the lifecycle to its collaborators."""
        self._transport = transport
        self._machine = machine
        self._synchronizer = synchronizer
        self._discovery = discovery
        self._preferences = preferences

    async def connect(self, uuid: str | None) -> bool:
        """Connect to ``uuid``.

        Returns:
            True when the link was established; False for rejected calls and
            failures (which leave the status ``DISCONNECTED``).
        """
        if not uuid:
            logger.debug("Connect ignored: no device selected")
            return False
        try:
            self._machine.transition(ConnectionStatus.CONNECTING)
        except OperationRejected as exc:
            logger.debug("Connect to %s ignored: %s", uuid, exc)
            return False

        linked = False
        try:
            await self._machine.wait_discovery_idle()
            logger.info("Connecting to %s", uuid)
            try:
                await call_transport("connect", self._transport.connect(uuid))
                if not await call_transport(
                    "is_connected", self._transport.is_connected()
                ):
                    raise DeviceCommandFailed("link not established")
            except TRANSPORT_ERRORS as exc:
                logger.warning("Connect to %s failed: %s", uuid, exc)
                await self._cleanup_after_failed_connect()
                return False
            linked = True
        finally:
            # Always leave CONNECTING, cancellation included
            self._machine.transition(
                ConnectionStatus.CONNECTED if linked else ConnectionStatus.DISCONNECTED
            )

        self._discovery.selected_uuid = uuid
        await self._synchronizer.reconcile()
        try:
            self._preferences.set_last_connected(uuid)
        except OSError as exc:
            logger.warning("Could not record last connected device: %s", exc)
        logger.info("Connected to %s", uuid)
        return True

    async def _cleanup_after_failed_connect(self) -> None:
        try:
            await call_transport("disconnect", self._transport.disconnect())
        except TRANSPORT_ERRORS as exc:
            logger.debug("Cleanup disconnect failed: %s", exc)

    async def disconnect(self) -> bool:
        """Save the device state and tear down the link.

        Always ends ``DISCONNECTED`` once started; the save and teardown
        failures are logged only.

        Returns:
            False when the call was rejected (not connected or busy).
        """
        try:
            self._machine.transition(ConnectionStatus.DISCONNECTING)
        except OperationRejected as exc:
            logger.debug("Disconnect ignored: %s", exc)
            return False

        logger.info("Disconnecting")
        try:
            try:
                await call_transport("save_state", self._transport.save_state())
            except TRANSPORT_ERRORS as exc:
                logger.warning("Saving device state failed: %s", exc)
            try:
                await call_transport("disconnect", self._transport.disconnect())
            except TRANSPORT_ERRORS as exc:
                logger.warning("Disconnect failed: %s", exc)
        finally:
            self._machine.transition(ConnectionStatus.DISCONNECTED)
        self._discovery.reselect_default()
        return True

    async def toggle(self) -> bool:
        """Connect the selected device, or disconnect the connected one."""
        if self._machine.in_transition:
            logger.debug("Toggle ignored: transition in flight")
            return False
        if self._machine.is_connected:
            return await self.disconnect()
        return await self.connect(self._discovery.selected_uuid)

    async def adopt_existing_link(self) -> bool:
        """Take over a link the transport already holds (e.g. after a restart)."""
        try:
            self._machine.transition(ConnectionStatus.CONNECTING)
        except OperationRejected:
            return False
        self._machine.transition(ConnectionStatus.CONNECTED)
        logger.info("Transport already connected; adopting link")
        await self._synchronizer.reconcile()
        return True

    def mark_link_lost(self) -> None:
        """Record that the transport dropped an established link."""
        if not self._machine.is_connected:
            return
        logger.warning("Device link lost")
        self._machine.transition(ConnectionStatus.DISCONNECTED)
        self._discovery.reselect_default()

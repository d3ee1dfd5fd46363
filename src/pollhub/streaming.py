"""
Script: streaming.py
Created: 2026-10-14
Purpose: Held long-poll connections and the per-device subscriber registry
Keywords: streaming, long-poll, subscribers, registry, pollhub
Status: active
Prerequisites:
  - asyncio
Changelog:
  - 2026-10-14: Initial version, registry is an owned object instead of module state
  - 2026-10-16: Timer and close-listener are disarmed on every resolution path
See-Also: delivery.py, lifecycle.py
"""

import asyncio
import time
from typing import Awaitable, Callable, Dict, List, Optional, Tuple


# =============================================================================
# Held Connection
# =============================================================================

class HeldConnection:
    """
    An open response waiting for exactly one outcome.

    The outcome is either a body to send (``str``) or ``None`` for an empty
    terminal response. Whichever path resolves the connection first (delivery,
    timeout, peer close, shutdown) wins; later attempts are no-ops and the
    armed timer and close-listener are cancelled.
    """

    def __init__(
        self,
        identifier: str,
        wait_disconnect: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.identifier = identifier
        self.created_at = time.time()
        self.closed_by_peer = False
        self._wait_disconnect = wait_disconnect
        self._outcome: asyncio.Future = asyncio.get_running_loop().create_future()
        self._timer: Optional[asyncio.TimerHandle] = None
        self._listener: Optional[asyncio.Task] = None

    @property
    def resolved(self) -> bool:
        return self._outcome.done()

    def resolve(self, body: Optional[str] = None) -> bool:
        """Complete the response with ``body``. Returns False if already resolved."""
        if self._outcome.done():
            return False
        self._outcome.set_result(body)
        self._disarm()
        return True

    def abandon(self) -> bool:
        """Mark the peer as gone; nothing will be sent."""
        if self._outcome.done():
            return False
        self.closed_by_peer = True
        self._outcome.set_result(None)
        self._disarm()
        return True

    def arm_timeout(self, seconds: float, callback: Callable[["HeldConnection"], None]):
        if self.resolved or self._timer is not None:
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(seconds, callback, self)

    def listen_for_close(self, callback: Callable[["HeldConnection"], None]):
        if self.resolved or self._listener is not None or self._wait_disconnect is None:
            return
        self._listener = asyncio.create_task(self._watch_close(callback))

    async def wait(self) -> Optional[str]:
        return await self._outcome

    async def _watch_close(self, callback):
        await self._wait_disconnect()
        if not self.resolved:
            callback(self)

    def _disarm(self):
        if self._timer is not None:
            self._timer.cancel()
        listener = self._listener
        if listener is not None and listener is not asyncio.current_task():
            listener.cancel()


# =============================================================================
# Subscriber Registry
# =============================================================================

class SubscriberRegistry:
    """
    Device identifier -> held connections.

    Every method is synchronous and runs on the event loop, so register,
    drain_and_clear and remove never interleave. An identifier that is absent
    and one that maps to an empty list are treated the same.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[HeldConnection]] = {}

    def register(self, identifier: str, connection: HeldConnection):
        """Add a held connection for an identifier."""
        self._subscribers.setdefault(identifier, []).append(connection)

    def drain_and_clear(self, identifier: str) -> List[HeldConnection]:
        """Take every held connection for an identifier, leaving an empty slot."""
        drained = self._subscribers.get(identifier, [])
        self._subscribers[identifier] = []
        return drained

    def remove(self, identifier: str, connection: HeldConnection) -> bool:
        """Remove one connection. Returns False if it was not registered."""
        connections = self._subscribers.get(identifier)
        if not connections:
            return False
        try:
            connections.remove(connection)
        except ValueError:
            return False
        return True

    def count(self, identifier: str) -> int:
        return len(self._subscribers.get(identifier, ()))

    def all_connections(self) -> List[Tuple[str, HeldConnection]]:
        return [
            (identifier, connection)
            for identifier, connections in self._subscribers.items()
            for connection in connections
        ]

    def prune_empty(self) -> int:
        """Drop identifiers with no held connections. Returns how many were dropped."""
        empty = [cid for cid, connections in self._subscribers.items() if not connections]
        for cid in empty:
            del self._subscribers[cid]
        return len(empty)

    def stats(self) -> Dict[str, object]:
        devices = {
            cid: len(connections)
            for cid, connections in self._subscribers.items()
            if connections
        }
        return {
            "active_devices": len(devices),
            "held_connections": sum(devices.values()),
            "devices": devices,
        }

"""
Script: delivery.py
Created: 2026-10-14
Purpose: Park subscribers on empty data, broadcast and close them on real data
Keywords: delivery, broadcast, long-poll, timeout, pollhub
Status: active
Prerequisites:
  - asyncio
Changelog:
  - 2026-10-14: Initial version
  - 2026-10-16: Originating connection is answered even if it missed the drain
See-Also: streaming.py, freshness.py
"""

import logging
from typing import Dict, Optional

from .freshness import Freshness, classify
from .streaming import HeldConnection, SubscriberRegistry

logger = logging.getLogger(__name__)

DEFAULT_SUBSCRIBER_TIMEOUT = 600.0  # seconds


class DeliveryEngine:
    """
    Applies a freshly fetched payload to the subscribers of one device.

    Empty payloads park the originating connection (if any) until new data,
    its timeout, or the peer closing. Real payloads are sent to every held
    connection and each connection is closed afterwards.
    """

    def __init__(
        self,
        registry: SubscriberRegistry,
        subscriber_timeout: float = DEFAULT_SUBSCRIBER_TIMEOUT,
    ):
        self.registry = registry
        self.subscriber_timeout = subscriber_timeout
        self.counters: Dict[str, int] = {
            "parked": 0,
            "delivered": 0,
            "timeouts": 0,
            "peer_closed": 0,
        }

    def handle_fetched_payload(
        self,
        identifier: str,
        payload: str,
        connection: Optional[HeldConnection] = None,
    ) -> Freshness:
        freshness = classify(payload)
        if freshness is Freshness.EMPTY:
            if connection is not None:
                logger.info("Data for %s is empty, keeping connection open until new data signal", identifier)
                self.park(identifier, connection)
            else:
                logger.info("Data for %s is empty, nothing to publish", identifier)
            return freshness

        drained = self.registry.drain_and_clear(identifier)
        self._deliver(identifier, payload, drained)
        if connection is not None and connection not in drained:
            if connection.resolve(payload):
                self.counters["delivered"] += 1
        return freshness

    def park(self, identifier: str, connection: HeldConnection):
        """Register a connection and arm its timeout and close-listener."""
        logger.info("Subscribing %s", identifier)
        self.registry.register(identifier, connection)
        connection.arm_timeout(self.subscriber_timeout, self._on_timeout)
        connection.listen_for_close(self._on_peer_close)
        self.counters["parked"] += 1

    def broadcast(self, identifier: str, payload: str) -> int:
        """Send payload to every held connection for an identifier and close them."""
        return self._deliver(identifier, payload, self.registry.drain_and_clear(identifier))

    def discard(self, identifier: str, connection: HeldConnection):
        """Forget a connection whose request is finishing for any reason."""
        self.registry.remove(identifier, connection)
        connection.abandon()

    def _deliver(self, identifier, payload, connections) -> int:
        logger.info("Publishing %s data to %d listener(s): %s", identifier, len(connections), payload)
        delivered = 0
        for connection in connections:
            if connection.resolve(payload):
                delivered += 1
        self.counters["delivered"] += delivered
        return delivered

    def _on_timeout(self, connection: HeldConnection):
        if connection.resolve(None):
            logger.info("Subscriber %s connection timeout", connection.identifier)
            self.counters["timeouts"] += 1
        self.registry.remove(connection.identifier, connection)

    def _on_peer_close(self, connection: HeldConnection):
        logger.info("Subscriber %s closed connection, removing from listeners", connection.identifier)
        self.registry.remove(connection.identifier, connection)
        if connection.abandon():
            self.counters["peer_closed"] += 1

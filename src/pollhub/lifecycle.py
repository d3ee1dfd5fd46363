"""
Script: lifecycle.py
Created: 2026-10-14
Purpose: Close every held connection when the process shuts down
Keywords: lifecycle, shutdown, signals, pollhub
Status: active
Prerequisites:
  - asyncio, signal
Changelog:
  - 2026-10-14: Initial version
See-Also: app.py, cli.py
"""

import asyncio
import logging
import signal
from typing import Dict

from .streaming import SubscriberRegistry

logger = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD = 1.0  # seconds
HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class LifecycleController:
    """
    Ends held connections on shutdown.

    ``shutdown()`` may run more than once (signal, then lifespan exit); every
    connection is answered at most once.
    """

    def __init__(self, registry: SubscriberRegistry, grace_period: float = DEFAULT_GRACE_PERIOD):
        self.registry = registry
        self.grace_period = grace_period
        self.shutting_down = False
        self._previous_handlers: Dict[int, object] = {}

    def shutdown(self) -> int:
        """Answer every held connection with an empty response. Returns how many."""
        self.shutting_down = True
        held = self.registry.all_connections()
        if held:
            logger.info("Server is shutting down, closing %d held connection(s)", len(held))
        closed = 0
        for identifier, connection in held:
            self.registry.remove(identifier, connection)
            if connection.resolve(None):
                closed += 1
        return closed

    def install_signal_handlers(self):
        """
        Run ``shutdown()`` on SIGINT/SIGTERM, then hand over to whatever
        handler was installed before (uvicorn's, when served by it).
        """
        loop = asyncio.get_running_loop()
        for sig in HANDLED_SIGNALS:
            try:
                previous = signal.getsignal(sig)
                signal.signal(sig, self._make_handler(loop, previous))
            except ValueError:
                # Not the main thread, e.g. under a test client.
                logger.debug("Cannot install handler for %s outside the main thread", sig)
                continue
            self._previous_handlers[sig] = previous

    def restore_signal_handlers(self):
        for sig, previous in self._previous_handlers.items():
            signal.signal(sig, previous)
        self._previous_handlers.clear()

    def _make_handler(self, loop, previous):
        def handler(signum, frame):
            logger.info("Received signal %s", signal.Signals(signum).name)
            loop.call_soon_threadsafe(self.shutdown)
            if callable(previous):
                previous(signum, frame)
            elif previous == signal.SIG_DFL:
                loop.call_later(self.grace_period, _reraise_default, signum)
        return handler


def _reraise_default(signum: int):
    signal.signal(signum, signal.SIG_DFL)
    signal.raise_signal(signum)

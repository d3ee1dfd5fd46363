"""
Script: broker.py
Created: 2026-10-14
Purpose: Wires registry, delivery engine, lifecycle and upstream client together
Keywords: broker, state, wiring, pollhub
Status: active
Prerequisites:
  - fastapi
Changelog:
  - 2026-10-14: Initial version, replaces module-level subscriber state
See-Also: app.py, endpoints.py
"""

import time
from typing import Optional

from fastapi import Request

from .client import DataFetcher, PLCDataClient
from .config import Settings
from .delivery import DeliveryEngine
from .lifecycle import LifecycleController
from .streaming import SubscriberRegistry


class Broker:
    """Per-app state. One instance lives on ``app.state.broker``."""

    def __init__(self, settings: Settings, fetcher: Optional[DataFetcher] = None):
        self.settings = settings
        self.registry = SubscriberRegistry()
        self.engine = DeliveryEngine(self.registry, settings.subscriber_timeout)
        self.lifecycle = LifecycleController(self.registry, settings.shutdown_grace)
        self.owns_fetcher = fetcher is None
        if fetcher is None:
            fetcher = PLCDataClient(
                settings.plc_base_url,
                get_data_key=settings.plc_get_data_key,
                get_set_data_key=settings.plc_get_set_data_key,
                timeout=settings.upstream_timeout,
            )
        self.fetcher = fetcher
        self.started_at = time.time()
        self.counters = {
            "subscribe_total": 0,
            "publish_total": 0,
            "publish_skipped": 0,
            "upstream_errors": 0,
        }

    async def aclose(self):
        if self.owns_fetcher:
            await self.fetcher.aclose()


def get_broker(request: Request) -> Broker:
    return request.app.state.broker

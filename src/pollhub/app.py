"""
Script: app.py
Created: 2026-10-14
Purpose: FastAPI application factory and lifespan management for PollHub
Keywords: fastapi, app, lifespan, cors, shutdown, pollhub
Status: active
Prerequisites:
  - fastapi
Changelog:
  - 2026-10-14: Initial version
See-Also: broker.py, lifecycle.py
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .broker import Broker
from .client import DataFetcher
from .config import Settings
from .endpoints import router
from .errors import register_exception_handlers
from .probes import ProbeMiddleware

logger = logging.getLogger(__name__)

PRUNE_INTERVAL = 60  # seconds


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Hook shutdown signals; close held connections and the upstream client on exit."""
    broker: Broker = app.state.broker
    broker.lifecycle.install_signal_handlers()

    async def prune_loop():
        while True:
            await asyncio.sleep(PRUNE_INTERVAL)
            broker.registry.prune_empty()

    prune_task = asyncio.create_task(prune_loop())

    try:
        yield
    finally:
        prune_task.cancel()
        closed = broker.lifecycle.shutdown()
        if closed:
            logger.info("Closed %d held connection(s) on exit", closed)
        broker.lifecycle.restore_signal_handlers()
        await broker.aclose()


def create_app(settings: Optional[Settings] = None, fetcher: Optional[DataFetcher] = None) -> FastAPI:
    """
    Build the PollHub app.

    ``fetcher`` replaces the PLC data client, e.g. in tests.
    """
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="PollHub",
        description="Long-poll notification broker between devices and the PLC data store",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.broker = Broker(settings, fetcher)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ProbeMiddleware)

    register_exception_handlers(app)
    app.include_router(router)
    return app

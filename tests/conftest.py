import asyncio
from typing import Dict

import httpx
import pytest
import pytest_asyncio

from pollhub.app import create_app
from pollhub.config import Settings
from pollhub.errors import UpstreamFetchError

SUBSCRIPTION_KEY = "sub-key"
PUBLISH_KEY = "pub-key"


class FakeFetcher:
    """Stands in for the PLC data functions."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.stored: Dict[str, str] = {}
        self.calls = []
        self.error = None

    async def fetch_data(self, device_id):
        self.calls.append(("get", device_id))
        if self.error is not None:
            raise self.error
        return self.data.get(device_id, "{}")

    async def fetch_and_set_data(self, device_id, body):
        self.calls.append(("set", device_id, body))
        if self.error is not None:
            raise self.error
        self.stored[device_id] = body
        return self.data.get(device_id, "{}")

    def fail_with_upstream_error(self):
        self.error = UpstreamFetchError("PLC_GetData returned 503", status_code=503)


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def settings():
    return Settings(
        subscription_key=SUBSCRIPTION_KEY,
        publish_key=PUBLISH_KEY,
        subscriber_timeout=30.0,
    )


@pytest.fixture
def app(settings, fetcher):
    return create_app(settings, fetcher=fetcher)


@pytest.fixture
def broker(app):
    return app.state.broker


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    # Release anything a failing test left held.
    app.state.broker.lifecycle.shutdown()


def subscribe_params(device="dev-1", code=SUBSCRIPTION_KEY):
    return {"device": device, "code": code}


def publish_params(device="dev-1", code=PUBLISH_KEY):
    return {"device": device, "code": code}


async def wait_for_listeners(broker, device, count=1, timeout=2.0):
    """Wait until ``count`` connections are held for ``device``."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while broker.registry.count(device) < count:
        if loop.time() > deadline:
            raise AssertionError(f"expected {count} listener(s) for {device}")
        await asyncio.sleep(0.01)

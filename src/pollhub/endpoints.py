"""
Script: endpoints.py
Created: 2026-10-14
Purpose: HTTP route handlers for subscribe, publish, health and stats
Keywords: endpoints, routes, long-poll, fastapi, pollhub
Status: active
Prerequisites:
  - fastapi
Changelog:
  - 2026-10-14: Initial version
  - 2026-10-16: Publish fetches in a background task, the publisher is never held
See-Also: delivery.py, client.py, models.py
"""

import logging
import time
from functools import partial

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import Response

from .broker import Broker, get_broker
from .errors import UpstreamFetchError
from .freshness import is_empty
from .models import (
    HealthResponse, StatsResponse, SubscriberStats,
    verify_publish_key, verify_subscription_key,
)
from .streaming import HeldConnection

logger = logging.getLogger(__name__)

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}

router = APIRouter()


async def wait_for_disconnect(request: Request):
    """Return once the client has gone away."""
    while True:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            return


@router.api_route("/subscribe", methods=["GET", "POST"], tags=["subscribe"])
async def subscribe(
    request: Request,
    device: str = Depends(verify_subscription_key),
    broker: Broker = Depends(get_broker),
):
    """
    Long-poll for the latest data of a device.

    POST bodies are written through PLC_GetSetData first, unless they are
    empty ("", "{}", "[]"). If the store has real data it is returned right
    away; otherwise the request is held until a publish brings new data,
    the subscriber timeout elapses, or the server shuts down (empty body).
    """
    broker.counters["subscribe_total"] += 1
    message = ""
    if request.method == "POST":
        message = (await request.body()).decode("utf-8", errors="replace")
        logger.info("POST /subscribe end of data %s", message)
    else:
        logger.info("GET /subscribe %s", device)

    try:
        if is_empty(message):
            payload = await broker.fetcher.fetch_data(device)
        else:
            payload = await broker.fetcher.fetch_and_set_data(device, message)
    except UpstreamFetchError:
        broker.counters["upstream_errors"] += 1
        raise
    logger.info("Upstream had following data for %s: %s", device, payload)

    connection = HeldConnection(device, wait_disconnect=partial(wait_for_disconnect, request))
    try:
        broker.engine.handle_fetched_payload(device, payload, connection)
        if broker.lifecycle.shutting_down:
            connection.resolve(None)
        body = await connection.wait()
    finally:
        broker.engine.discard(device, connection)

    return Response(content=body or "")


async def publish_latest(broker: Broker, device: str):
    """Fetch the device's latest data and push it to its held subscribers."""
    try:
        payload = await broker.fetcher.fetch_data(device)
    except UpstreamFetchError as e:
        broker.counters["upstream_errors"] += 1
        logger.warning("GetDeviceData for %s failed, subscribers stay held: %s", device, e)
        return
    except Exception:
        logger.exception("Unexpected error fetching data for %s", device)
        return
    broker.engine.handle_fetched_payload(device, payload)


@router.post("/publish", status_code=204, tags=["publish"])
async def publish(
    background_tasks: BackgroundTasks,
    device: str = Depends(verify_publish_key),
    broker: Broker = Depends(get_broker),
):
    """
    Signal that new data may exist for a device.

    Data is only fetched when somebody is listening. The signal is
    acknowledged immediately; delivery happens after the response.
    """
    broker.counters["publish_total"] += 1
    logger.info("Got signal for new data for %s", device)
    listeners = broker.registry.count(device)
    if not listeners:
        broker.counters["publish_skipped"] += 1
        logger.info("There are 0 listeners for %s, don't fetch data as there is nobody to send it to", device)
    else:
        logger.info("There are %d listeners for %s, fetching new data", listeners, device)
        background_tasks.add_task(publish_latest, broker, device)
    return Response(status_code=204, headers=CORS_HEADERS)


@router.get("/health", tags=["health"], response_model=HealthResponse)
async def health(broker: Broker = Depends(get_broker)):
    """Health check endpoint."""
    return HealthResponse(shutting_down=broker.lifecycle.shutting_down)


@router.get("/stats", tags=["admin"], response_model=StatsResponse)
async def stats(broker: Broker = Depends(get_broker)):
    """Held connections per device and request counters."""
    return StatsResponse(
        uptime_seconds=int(time.time() - broker.started_at),
        subscribers=SubscriberStats(**broker.registry.stats()),
        requests=dict(broker.counters),
        delivery=dict(broker.engine.counters),
        subscriber_timeout_seconds=broker.settings.subscriber_timeout,
    )

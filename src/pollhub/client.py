"""
Script: client.py
Created: 2026-10-14
Purpose: Async client for the PLC data functions (get, get-and-set)
Keywords: client, httpx, async, upstream, plc
Status: active
Prerequisites:
  - httpx (async HTTP client)
See-Also: endpoints.py, errors.py
Changelog:
  - 2026-10-14: Initial version, no retries (devices reconnect on their own)
"""

import logging
from typing import Optional, Protocol
from urllib.parse import quote

import httpx

from .errors import UpstreamFetchError

logger = logging.getLogger(__name__)


class DataFetcher(Protocol):
    """What the router needs from the upstream data store."""

    async def fetch_data(self, device_id: str) -> str:
        ...

    async def fetch_and_set_data(self, device_id: str, body: str) -> str:
        ...


class PLCDataClient:
    """
    Calls the PLC_GetData and PLC_GetSetData functions.

    Both are POSTs that return the device's latest data as text. An empty
    body, "{}" or "[]" means there is nothing new.

    Usage:
        client = PLCDataClient("https://plc.example.net", "get-key", "set-key")
        data = await client.fetch_data("gen2-hansa")
        data = await client.fetch_and_set_data("gen2-hansa", '{"t": 21.5}')
        await client.aclose()
    """

    def __init__(
        self,
        base_url: str,
        get_data_key: str = "",
        get_set_data_key: str = "",
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.get_data_key = get_data_key
        self.get_set_data_key = get_set_data_key
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    def get_data_url(self, device_id: str) -> str:
        return f"{self.base_url}/api/PLC_GetData/{quote(device_id, safe='')}"

    def get_set_data_url(self, device_id: str) -> str:
        return f"{self.base_url}/api/PLC_GetSetData/{quote(device_id, safe='')}"

    async def fetch_data(self, device_id: str) -> str:
        """Latest data for a device."""
        logger.info("GetDeviceData %s", device_id)
        return await self._post(self.get_data_url(device_id), self.get_data_key)

    async def fetch_and_set_data(self, device_id: str, body: str) -> str:
        """Store data sent by a device and return its latest data."""
        logger.info("GetSetDeviceData %s", device_id)
        return await self._post(self.get_set_data_url(device_id), self.get_set_data_key, body)

    async def aclose(self):
        await self._client.aclose()

    async def _post(self, url: str, code: str, body: Optional[str] = None) -> str:
        try:
            response = await self._client.post(
                url,
                params={"code": code},
                content=body.encode("utf-8") if body is not None else None,
            )
        except httpx.HTTPError as e:
            raise UpstreamFetchError(f"{type(e).__name__}: {e}") from e

        if response.status_code >= 400:
            raise UpstreamFetchError(
                f"{url} returned {response.status_code}",
                status_code=response.status_code,
            )
        return response.text

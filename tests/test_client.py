import httpx
import pytest

from pollhub.client import PLCDataClient
from pollhub.errors import UpstreamFetchError


def make_client(handler):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PLCDataClient("https://plc.example.net/", "get-key", "set-key", http_client=http_client)


async def test_fetch_data_posts_to_get_data_function():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, text="42.5")

    client = make_client(handler)
    assert await client.fetch_data("gen2-hansa") == "42.5"
    await client.aclose()

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/api/PLC_GetData/gen2-hansa"
    assert request.url.params["code"] == "get-key"


async def test_fetch_and_set_data_sends_body():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, text="{}")

    client = make_client(handler)
    assert await client.fetch_and_set_data("gen2-ikea", '{"t": 20.5}') == "{}"
    await client.aclose()

    request = seen[0]
    assert request.url.path == "/api/PLC_GetSetData/gen2-ikea"
    assert request.url.params["code"] == "set-key"
    assert request.content == b'{"t": 20.5}'


async def test_device_id_is_quoted_in_path():
    client = make_client(lambda request: httpx.Response(200, text=""))
    assert client.get_data_url("a/b c") == "https://plc.example.net/api/PLC_GetData/a%2Fb%20c"
    await client.aclose()


async def test_error_status_raises_upstream_error():
    client = make_client(lambda request: httpx.Response(503, text="busy"))
    with pytest.raises(UpstreamFetchError) as exc_info:
        await client.fetch_data("dev-1")
    await client.aclose()
    assert exc_info.value.status_code == 503


async def test_transport_error_raises_upstream_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    with pytest.raises(UpstreamFetchError):
        await client.fetch_and_set_data("dev-1", "data")
    await client.aclose()

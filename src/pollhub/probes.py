"""
Script: probes.py
Created: 2026-10-14
Purpose: ASGI middleware answering ping probes and CORS preflight before routing
Keywords: middleware, asgi, ping, cors, pollhub
Status: active
Prerequisites:
  - starlette
Changelog:
  - 2026-10-14: Initial version
See-Also: app.py
"""

import json
from urllib.parse import parse_qs

from starlette.types import ASGIApp, Receive, Scope, Send

PING_BODY = json.dumps({"ping": "success"}).encode("utf-8")


def _has_ping(query_string: bytes) -> bool:
    query = parse_qs(query_string.decode("latin-1"))
    return any(query.get("ping", []))


class ProbeMiddleware:
    """
    Short-circuits two kinds of request on any path:

    - ``?ping=<anything>`` answers ``{"ping": "success"}``;
    - ``OPTIONS`` answers an empty body with an open CORS origin.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        if _has_ping(scope.get("query_string", b"")):
            await self._respond(send, 200, PING_BODY, [(b"content-type", b"application/json")])
            return
        if scope.get("method") == "OPTIONS":
            await self._respond(send, 200, b"", [(b"access-control-allow-origin", b"*")])
            return
        await self.app(scope, receive, send)

    @staticmethod
    async def _respond(send: Send, status: int, body: bytes, headers):
        headers = headers + [(b"content-length", str(len(body)).encode())]
        await send({"type": "http.response.start", "status": status, "headers": headers})
        await send({"type": "http.response.body", "body": body, "more_body": False})

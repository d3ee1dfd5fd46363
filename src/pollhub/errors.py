"""
Script: errors.py
Created: 2026-10-14
Purpose: Error taxonomy and FastAPI exception handlers for PollHub
Keywords: errors, exceptions, handlers, fastapi, pollhub
Status: active
Prerequisites:
  - fastapi
Changelog:
  - 2026-10-14: Initial version
See-Also: endpoints.py
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Bad request from the caller (missing device, wrong key)."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class UpstreamFetchError(Exception):
    """The PLC data store could not be reached or rejected the call."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def error_body(message: str) -> dict:
    return {"error": message}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(UpstreamFetchError)
    async def upstream_error_handler(request: Request, exc: UpstreamFetchError):
        logger.warning("Upstream fetch failed for %s: %s", request.url.path, exc)
        return JSONResponse(status_code=502, content=error_body("Upstream fetch failed"))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error in %s %s", request.method, request.url.path)
        return Response(status_code=500)

"""
Script: models.py
Created: 2026-10-14
Purpose: Response models and access-key checks for PollHub
Keywords: models, pydantic, auth, pollhub
Status: active
Prerequisites:
  - fastapi, pydantic
Changelog:
  - 2026-10-14: Initial version
See-Also: endpoints.py, errors.py
"""

from typing import Dict, Optional

from fastapi import Depends, Query, Request
from pydantic import BaseModel, Field

from .errors import ValidationError


# =============================================================================
# Authentication
# =============================================================================

async def require_device(
    device: Optional[str] = Query(None, description="Device identifier"),
) -> str:
    """Every subscribe/publish call names a device."""
    if not device:
        raise ValidationError(400, "Missing 'device' query parameter")
    return device


async def verify_subscription_key(
    request: Request,
    device: str = Depends(require_device),
    code: Optional[str] = Query(None, description="Subscription key"),
) -> str:
    """Devices subscribe with SUBSCRIPTION_KEY. Returns the device id."""
    if code != request.app.state.broker.settings.subscription_key:
        raise ValidationError(403, "Invalid subscription key")
    return device


async def verify_publish_key(
    request: Request,
    device: str = Depends(require_device),
    code: Optional[str] = Query(None, description="Publish key"),
) -> str:
    """Publishers signal with PUBLISH_KEY. Returns the device id."""
    if code != request.app.state.broker.settings.publish_key:
        raise ValidationError(400, "Invalid code")
    return device


# =============================================================================
# Models
# =============================================================================

class PingResponse(BaseModel):
    ping: str = "success"


class HealthResponse(BaseModel):
    status: str = "healthy"
    service: str = "pollhub"
    shutting_down: bool = False


class SubscriberStats(BaseModel):
    active_devices: int = Field(..., description="Devices with at least one held connection")
    held_connections: int = Field(..., description="Open long-poll connections")
    devices: Dict[str, int] = Field(default_factory=dict, description="Held connections per device")


class StatsResponse(BaseModel):
    """Server stats for monitoring."""
    uptime_seconds: int
    subscribers: SubscriberStats
    requests: Dict[str, int]
    delivery: Dict[str, int]
    subscriber_timeout_seconds: float

"""
PollHub - Long-poll notification broker for IoT devices

Devices subscribe for a device id and are held open until new data is
published for it.
"""

__version__ = "1.0.0"

from pollhub.config import Settings
from pollhub.freshness import Freshness, classify, is_empty
from pollhub.streaming import HeldConnection, SubscriberRegistry
from pollhub.delivery import DeliveryEngine
from pollhub.lifecycle import LifecycleController

__all__ = [
    # Version
    "__version__",
    # Configuration
    "Settings",
    # Core
    "Freshness",
    "classify",
    "is_empty",
    "HeldConnection",
    "SubscriberRegistry",
    "DeliveryEngine",
    "LifecycleController",
]


def get_app():
    """
    Get a FastAPI app configured from the environment.

    Install with: pip install pollhub
    """
    from .app import create_app
    return create_app()

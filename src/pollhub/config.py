"""
Script: config.py
Created: 2026-10-14
Purpose: PollHub server configuration resolved from the environment
Keywords: config, environment, settings, pollhub
Status: active
Prerequisites:
  - None
Changelog:
  - 2026-10-14: Initial version, env names kept from the node deployment
See-Also: cli.py, app.py
"""

import os
from dataclasses import dataclass
from typing import List, Mapping, Optional


# =============================================================================
# Defaults
# =============================================================================

DEFAULT_PORT = 4000
DEFAULT_SUBSCRIPTION_KEY = "test-subscription-key"
DEFAULT_PUBLISH_KEY = "test-publish-key"
DEFAULT_SUBSCRIBER_TIMEOUT_MS = 600000  # 10 minutes
DEFAULT_UPSTREAM_TIMEOUT = 30.0
DEFAULT_SHUTDOWN_GRACE = 1.0
DEFAULT_LOG_LEVEL = "INFO"


class ConfigError(ValueError):
    """Raised when an environment value cannot be parsed."""


def _number(environ: Mapping[str, str], name: str, default, cast):
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


# =============================================================================
# Settings
# =============================================================================

@dataclass(frozen=True)
class Settings:
    """Resolved settings handed to the app factory."""
    port: int = DEFAULT_PORT
    subscription_key: str = DEFAULT_SUBSCRIPTION_KEY
    publish_key: str = DEFAULT_PUBLISH_KEY
    plc_base_url: str = ""
    plc_get_data_key: str = ""
    plc_get_set_data_key: str = ""
    subscriber_timeout: float = DEFAULT_SUBSCRIBER_TIMEOUT_MS / 1000  # seconds
    upstream_timeout: float = DEFAULT_UPSTREAM_TIMEOUT
    shutdown_grace: float = DEFAULT_SHUTDOWN_GRACE
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        timeout_ms = _number(env, "SUBSCRIBER_TIMEOUT", DEFAULT_SUBSCRIBER_TIMEOUT_MS, float)
        if timeout_ms <= 0:
            raise ConfigError("SUBSCRIBER_TIMEOUT must be positive")
        return cls(
            port=_number(env, "PORT", DEFAULT_PORT, int),
            subscription_key=env.get("SUBSCRIPTION_KEY", DEFAULT_SUBSCRIPTION_KEY),
            publish_key=env.get("PUBLISH_KEY", DEFAULT_PUBLISH_KEY),
            plc_base_url=env.get("PLC_BASE_URL", ""),
            plc_get_data_key=env.get("PLC_GET_DATA_KEY", ""),
            plc_get_set_data_key=env.get("PLC_GET_SET_DATA_KEY", ""),
            subscriber_timeout=timeout_ms / 1000,
            upstream_timeout=_number(env, "UPSTREAM_TIMEOUT", DEFAULT_UPSTREAM_TIMEOUT, float),
            shutdown_grace=_number(env, "SHUTDOWN_GRACE", DEFAULT_SHUTDOWN_GRACE, float),
            log_level=env.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )

    def missing_warnings(self) -> List[str]:
        """Warnings for keys left at their insecure or empty defaults."""
        warnings = []
        if self.subscription_key == DEFAULT_SUBSCRIPTION_KEY:
            warnings.append("SUBSCRIPTION_KEY environment variable is not set!")
        if self.publish_key == DEFAULT_PUBLISH_KEY:
            warnings.append("PUBLISH_KEY environment variable is not set!")
        if not self.plc_base_url:
            warnings.append("PLC_BASE_URL environment variable is not set!")
        if not self.plc_get_data_key:
            warnings.append("PLC_GET_DATA_KEY environment variable is not set!")
        if not self.plc_get_set_data_key:
            warnings.append("PLC_GET_SET_DATA_KEY environment variable is not set!")
        return warnings

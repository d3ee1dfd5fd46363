import logging

import pytest

from pollhub import cli
from pollhub.config import ConfigError, Settings


def test_defaults_from_empty_environment():
    settings = Settings.from_env({})
    assert settings.port == 4000
    assert settings.subscription_key == "test-subscription-key"
    assert settings.publish_key == "test-publish-key"
    assert settings.subscriber_timeout == 600.0
    assert settings.shutdown_grace == 1.0


def test_values_from_environment():
    settings = Settings.from_env({
        "PORT": "8080",
        "SUBSCRIPTION_KEY": "s",
        "PUBLISH_KEY": "p",
        "PLC_BASE_URL": "https://plc.example.net",
        "PLC_GET_DATA_KEY": "g",
        "PLC_GET_SET_DATA_KEY": "gs",
        "SUBSCRIBER_TIMEOUT": "1500",
        "LOG_LEVEL": "debug",
    })
    assert settings.port == 8080
    assert settings.plc_base_url == "https://plc.example.net"
    assert settings.subscriber_timeout == 1.5
    assert settings.log_level == "DEBUG"
    assert settings.missing_warnings() == []


def test_invalid_numbers_are_rejected():
    with pytest.raises(ConfigError):
        Settings.from_env({"PORT": "eighty"})
    with pytest.raises(ConfigError):
        Settings.from_env({"SUBSCRIBER_TIMEOUT": "0"})


def test_missing_warnings_name_unset_keys():
    warnings = Settings.from_env({}).missing_warnings()
    assert "SUBSCRIPTION_KEY environment variable is not set!" in warnings
    assert "PUBLISH_KEY environment variable is not set!" in warnings
    assert "PLC_GET_DATA_KEY environment variable is not set!" in warnings
    assert "PLC_GET_SET_DATA_KEY environment variable is not set!" in warnings


def test_cli_runs_uvicorn_with_graceful_bound(monkeypatch, caplog):
    import uvicorn

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setenv("PORT", "4100")
    monkeypatch.delenv("SUBSCRIPTION_KEY", raising=False)
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)

    with caplog.at_level(logging.WARNING, logger="pollhub"):
        cli.main(["--host", "127.0.0.1"])

    app, kwargs = calls[0]
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 4100
    assert kwargs["timeout_graceful_shutdown"] == 1
    assert app.state.broker.settings.port == 4100
    assert any("SUBSCRIPTION_KEY" in r.getMessage() for r in caplog.records)

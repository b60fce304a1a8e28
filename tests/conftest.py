"""Shared fixtures for bandwidth-guard tests."""

import logging

import pytest
import structlog

CONFIG_ENV_VARS = [
    "HETZNER_API_TOKEN",
    "HETZNER_API_URL",
    "SLACK_WEBHOOK_URL",
    "THRESHOLD_PERCENT_NOTIF",
    "THRESHOLD_PERCENT_KILL",
    "SEND_USAGE_NOTIF_ALWAYS",
    "REQUEST_TIMEOUT_SECONDS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's shell config out of the tests."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by configure_logging (CLI tests bind them to CliRunner streams)."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)

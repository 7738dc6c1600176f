"""
Unit tests for invoicing/logging_config.py
"""

import pytest
import structlog

from invoicing.config import settings
from invoicing.logging_config import _add_service, setup_logging


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.mark.parametrize(
    "environment, renderer",
    [
        ("production", structlog.processors.JSONRenderer),
        ("development", structlog.dev.ConsoleRenderer),
        ("staging", structlog.dev.ConsoleRenderer),
    ],
)
def test_renderer_follows_environment(monkeypatch, environment, renderer):
    monkeypatch.setattr(settings, "ENVIRONMENT", environment)

    setup_logging()

    assert isinstance(structlog.get_config()["processors"][-1], renderer)


def test_events_carry_service_name():
    event = _add_service(None, "info", {"event": "invoice_created"})
    assert event["service"] == settings.APP_NAME


def test_explicit_service_is_kept():
    event = _add_service(None, "info", {"event": "x", "service": "seed"})
    assert event["service"] == "seed"

"""Tests for log level selection and structured log context."""

import pytest
import structlog
from ordering.utils import logging as ledger_logging


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch):
    for name in ("ENV", "ENVIRONMENT", "PROTEAN_ENV", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield
    ledger_logging.clear_context()


class TestLogLevel:
    def test_development_by_default(self):
        assert ledger_logging.current_environment() == "development"
        assert ledger_logging.get_log_level() == "DEBUG"

    @pytest.mark.parametrize(
        "variable, value, level",
        [
            ("ENV", "production", "INFO"),
            ("ENVIRONMENT", "Staging", "INFO"),
            ("PROTEAN_ENV", "test", "WARNING"),
            ("ENV", "qa", "INFO"),
        ],
    )
    def test_level_follows_environment(self, monkeypatch, variable, value, level):
        monkeypatch.setenv(variable, value)

        assert ledger_logging.get_log_level() == level

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("ENV", "production")
        monkeypatch.setenv("LOG_LEVEL", "error")

        assert ledger_logging.get_log_level() == "ERROR"


class TestLogContext:
    def test_service_is_stamped(self):
        event = ledger_logging.stamp_service(None, "info", {"event": "Order placed"})

        assert event == {"event": "Order placed", "service": "marketledger"}

    def test_bound_service_is_kept(self):
        event = ledger_logging.stamp_service(None, "info", {"event": "x", "service": "worker"})

        assert event["service"] == "worker"

    def test_add_and_clear_context(self):
        ledger_logging.add_context(method="POST", path="/orders/checkout")

        assert structlog.contextvars.get_contextvars() == {"method": "POST", "path": "/orders/checkout"}

        ledger_logging.clear_context()

        assert structlog.contextvars.get_contextvars() == {}

    def test_configuration_runs_once(self):
        # The domain module configures logging on import
        assert ledger_logging.configure_logging() is False

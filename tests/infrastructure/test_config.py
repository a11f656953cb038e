"""Tests for settings loading and logging setup."""

import json
import logging
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from storefront.infrastructure import bootstrap
from storefront.infrastructure.config import StoreSettings, get_settings
from storefront.infrastructure.logging_config import JsonFormatter, configure_logging


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestStoreSettings:

    def test_defaults(self, monkeypatch):
        for name in ("DATA_DIR", "SHIPPING_COST", "FREE_SHIPPING_THRESHOLD", "RETURN_WINDOW_DAYS"):
            monkeypatch.delenv(f"STOREFRONT_{name}", raising=False)
        settings = StoreSettings(_env_file=None)
        assert settings.DATA_DIR == Path("data")
        assert settings.SHIPPING_COST == Decimal("99")
        assert settings.FREE_SHIPPING_THRESHOLD == Decimal("2999")
        assert settings.RETURN_WINDOW_DAYS == 7

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STOREFRONT_SHIPPING_COST", "49")
        monkeypatch.setenv("STOREFRONT_FREE_SHIPPING_THRESHOLD", "500")
        monkeypatch.setenv("STOREFRONT_DATA_DIR", str(tmp_path))

        policy = bootstrap.shipping_policy()
        assert str(policy.flat_fee) == "₹49.00"
        assert policy.cost_for(policy.free_shipping_threshold).is_zero
        assert get_settings().DATA_DIR == tmp_path

    def test_negative_fee_rejected(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_SHIPPING_COST", "-1")
        with pytest.raises(ValidationError):
            StoreSettings(_env_file=None)


class TestConfigureLogging:

    @pytest.fixture(autouse=True)
    def _keep_root_logging(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_installs_single_handler(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_LOG_LEVEL", "debug")
        configure_logging()
        configure_logging()
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG

    def test_json_format_outside_local(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_ENVIRONMENT", "production")
        configure_logging()
        assert isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)

    def test_json_formatter_output(self):
        record = logging.LogRecord("storefront.x", logging.INFO, __file__, 1, "placed %s", ("ORD-1",), None)
        payload = json.loads(JsonFormatter().format(record))
        assert payload["message"] == "placed ORD-1"
        assert payload["level"] == "INFO"

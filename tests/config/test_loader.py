"""
Tests for pricing configuration loading.

Covers:
- Parsing the YAML file into frozen dataclasses
- Resolution order: argument, environment variable, default file
- Validation failures
- PRICING_CONFIG_TRACE emission
"""

import dataclasses
import pytest
from decimal import Decimal

import yaml

from pricing_config import CONFIG_ENV_VAR, get_active_config
from pricing_config.loader import compute_checksum, parse_config

VALID = """
currency: cad
labour_sku: LABOUR
database_url: "sqlite://"
log_level: debug
catalog:
  tax_rate: "0.05"
  prices:
    widget: "10.00"
    float-priced: 19.99
"""


@pytest.fixture
def config_file(tmp_path):
    def _write(text: str = VALID):
        path = tmp_path / "pricing.yaml"
        path.write_text(text)
        return path

    return _write


class TestParse:

    def test_valid_file(self, config_file):
        config = get_active_config(config_file())

        assert config.currency == "CAD"
        assert config.labour_sku == "LABOUR"
        assert config.database_url == "sqlite://"
        assert config.log_level == "DEBUG"
        assert config.catalog.tax_rate == Decimal("0.05")
        assert config.catalog.prices == {
            "widget": Decimal("10.00"),
            "float-priced": Decimal("19.99"),
        }
        assert len(config.checksum) == 64

    def test_frozen(self, config_file):
        config = get_active_config(config_file())
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.currency = "USD"

    def test_defaults(self):
        config = parse_config({"currency": "USD"})

        assert config.labour_sku is None
        assert config.database_url == "sqlite://"
        assert config.log_level == "INFO"
        assert config.catalog.prices == {}

    def test_checksum_ignores_key_order(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_shipped_default_config(self):
        config = get_active_config()
        assert config.currency == "USD"
        assert config.catalog.prices["oil-change"] == Decimal("49.99")


class TestValidation:

    def test_missing_currency(self):
        with pytest.raises(KeyError):
            parse_config({"log_level": "INFO"})

    def test_unknown_currency(self):
        with pytest.raises(ValueError, match="Unknown currency"):
            parse_config({"currency": "XXY"})

    def test_unknown_log_level(self):
        with pytest.raises(ValueError, match="log level"):
            parse_config({"currency": "USD", "log_level": "LOUD"})

    def test_negative_tax_rate(self):
        with pytest.raises(ValueError, match="tax_rate"):
            parse_config({"currency": "USD", "catalog": {"tax_rate": "-0.1"}})

    def test_negative_price(self):
        with pytest.raises(ValueError, match="widget"):
            parse_config({"currency": "USD", "catalog": {"prices": {"widget": "-1"}}})

    def test_non_numeric_price(self):
        with pytest.raises(ValueError):
            parse_config({"currency": "USD", "catalog": {"prices": {"widget": "cheap"}}})

    def test_malformed_yaml(self, config_file):
        with pytest.raises(yaml.YAMLError):
            get_active_config(config_file("currency: [USD"))


class TestResolution:

    def test_environment_variable(self, config_file, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file()))
        assert get_active_config().currency == "CAD"

    def test_argument_beats_environment(self, config_file, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "missing.yaml"))
        assert get_active_config(config_file()).currency == "CAD"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "missing.yaml")

    def test_trace_logged(self, config_file, captured_logs):
        path = config_file()
        config = get_active_config(path)

        traces = [r for r in captured_logs() if r["message"] == "PRICING_CONFIG_TRACE"]
        assert traces[0]["config_path"] == str(path)
        assert traces[0]["checksum"] == config.checksum

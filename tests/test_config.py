"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest

from ledger_import.config import (
    DEFAULT_ACCOUNT_TYPES,
    DEFAULT_CURRENCIES,
    Config,
    ConfigValidationError,
    create_default_config,
    load_config,
)


class TestLoadConfig:
    """Tests for YAML loading and environment overrides."""

    def test_missing_file_gives_defaults(self, tmp_path: Path):
        config = load_config(tmp_path / "absent.yaml")
        assert config == Config()

    def test_default_file_round_trips(self, tmp_path: Path):
        """The generated default file loads back to the built-in defaults."""
        path = tmp_path / "nested" / "config.yaml"
        create_default_config(path)

        assert path.exists()
        assert load_config(path) == Config()

    def test_file_values(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text(
            """parsing:
  delimiter: ";"
  date_sample_size: 50
matching:
  match_threshold: 55
defaults:
  default_currency: usd
  supported_currencies: [usd, eur]
"""
        )
        config = load_config(path)

        assert config.parsing.delimiter == ";"
        assert config.parsing.date_sample_size == 50
        assert config.matching.match_threshold == 55.0
        assert config.matching.similarity_floor == 0.6
        assert config.defaults.default_currency == "USD"
        assert config.defaults.supported_currencies == ["USD", "EUR"]
        assert config.defaults.account_types == DEFAULT_ACCOUNT_TYPES

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path) == Config()

    def test_environment_overrides(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("LEDGER_IMPORT_DELIMITER", ";")
        monkeypatch.setenv("LEDGER_IMPORT_DATE_SAMPLE_SIZE", "5")
        monkeypatch.setenv("LEDGER_IMPORT_MATCH_THRESHOLD", "60.5")
        monkeypatch.setenv("LEDGER_IMPORT_DEFAULT_CURRENCY", "gbp")

        config = load_config(tmp_path / "absent.yaml")

        assert config.parsing.delimiter == ";"
        assert config.parsing.date_sample_size == 5
        assert config.matching.match_threshold == 60.5
        assert config.defaults.default_currency == "GBP"

    def test_malformed_numeric_override_is_ignored(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("LEDGER_IMPORT_DATE_SAMPLE_SIZE", "many")
        monkeypatch.setenv("LEDGER_IMPORT_MATCH_THRESHOLD", "high")

        config = load_config(tmp_path / "absent.yaml")

        assert config.parsing.date_sample_size == 20
        assert config.matching.match_threshold == 40.0


class TestConfigValidation:
    """Tests for Config.validate()."""

    def test_defaults_are_valid(self):
        config = Config()
        assert config.validate() == []
        config.ensure_valid()
        assert config.defaults.supported_currencies == DEFAULT_CURRENCIES

    def test_bad_delimiter(self):
        config = Config()
        config.parsing.delimiter = ";;"
        assert "parsing.delimiter must be exactly one character" in config.validate()

    def test_threshold_range(self):
        config = Config()
        config.matching.match_threshold = 140
        assert any("match_threshold" in error for error in config.validate())

    def test_unsupported_default_currency(self):
        config = Config()
        config.defaults.default_currency = "JPY"
        assert any("default_currency" in error for error in config.validate())

    def test_unknown_new_account_type(self):
        config = Config()
        config.defaults.new_account_type = "Wallet"
        assert any("new_account_type" in error for error in config.validate())

    def test_ensure_valid_raises(self):
        config = Config()
        config.parsing.date_sample_size = 0
        with pytest.raises(ConfigValidationError, match="date_sample_size"):
            config.ensure_valid()

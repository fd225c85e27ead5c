"""
Configuration management.

This module defines ALL configuration for the import pipeline.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- The core never reads the environment or the filesystem; callers load a
  Config here and hand the relevant values to the pipeline.
- Defaults mirror the application's built-in catalogs (currencies, account types).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_CURRENCIES = ["USD", "EUR", "GBP", "BTC", "RON"]

ASSET_ACCOUNT_TYPES = [
    "Checking",
    "Savings",
    "Investment",
    "Property",
    "Vehicle",
    "Other Assets",
    "Lending",
]
DEBT_ACCOUNT_TYPES = ["Credit Card", "Loan", "Other Liabilities"]
DEFAULT_ACCOUNT_TYPES = ASSET_ACCOUNT_TYPES + DEBT_ACCOUNT_TYPES


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class ParsingConfig:
    """Tokenizer and date detection settings."""

    # Field delimiter (single character; "," and ";" are the common ones)
    delimiter: str = ","
    # Number of non-empty values inspected when detecting the date layout
    date_sample_size: int = 20


@dataclass
class MatchingConfig:
    """Header-to-field matching settings."""

    # A header must score strictly above this to be auto-mapped (0-100 scale)
    match_threshold: float = 40.0
    # Minimum edit-distance similarity for a fuzzy keyword hit
    similarity_floor: float = 0.6


@dataclass
class DefaultsConfig:
    """Fallback values applied while cleaning and publishing."""

    default_currency: str = "EUR"
    supported_currencies: list[str] = field(default_factory=lambda: list(DEFAULT_CURRENCIES))
    account_types: list[str] = field(default_factory=lambda: list(DEFAULT_ACCOUNT_TYPES))
    # Type given to accounts synthesized at publish time
    new_account_type: str = "Checking"
    # Category assigned to transactions without a category mapping
    uncategorized_label: str = "Uncategorized"


@dataclass
class Config:
    """Application configuration.

    All configuration is centralized here. No other module should define
    configuration keys or defaults.
    """

    parsing: ParsingConfig = field(default_factory=ParsingConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)

    def validate(self) -> list[str]:
        """Validate configuration completeness and consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if len(self.parsing.delimiter) != 1:
            errors.append("parsing.delimiter must be exactly one character")
        if self.parsing.date_sample_size < 1:
            errors.append("parsing.date_sample_size must be >= 1")

        if not 0 <= self.matching.match_threshold <= 100:
            errors.append("matching.match_threshold must be between 0 and 100")
        if not 0 <= self.matching.similarity_floor < 1:
            errors.append("matching.similarity_floor must be in [0, 1)")

        if not self.defaults.default_currency:
            errors.append("defaults.default_currency is required")
        elif self.defaults.default_currency not in self.defaults.supported_currencies:
            errors.append("defaults.default_currency must be one of supported_currencies")
        if self.defaults.new_account_type not in self.defaults.account_types:
            errors.append("defaults.new_account_type must be one of account_types")

        return errors

    def ensure_valid(self) -> None:
        """Raise ConfigValidationError if validate() reports any problem."""
        errors = self.validate()
        if errors:
            raise ConfigValidationError("; ".join(errors))


def load_config(config_path: Path) -> Config:
    """
    Load configuration from YAML file.

    Environment variables can override config values:
    - LEDGER_IMPORT_DELIMITER
    - LEDGER_IMPORT_DATE_SAMPLE_SIZE
    - LEDGER_IMPORT_MATCH_THRESHOLD
    - LEDGER_IMPORT_DEFAULT_CURRENCY
    """
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    # Parsing config
    parsing_data = data.get("parsing", {})
    sample_size = parsing_data.get("date_sample_size", 20)
    sample_size_env = os.environ.get("LEDGER_IMPORT_DATE_SAMPLE_SIZE", "")
    if sample_size_env:
        try:
            sample_size = int(sample_size_env)
        except ValueError:
            pass  # Keep file value

    parsing = ParsingConfig(
        delimiter=os.environ.get("LEDGER_IMPORT_DELIMITER", parsing_data.get("delimiter", ",")),
        date_sample_size=sample_size,
    )

    # Matching config
    matching_data = data.get("matching", {})
    threshold = matching_data.get("match_threshold", 40.0)
    threshold_env = os.environ.get("LEDGER_IMPORT_MATCH_THRESHOLD", "")
    if threshold_env:
        try:
            threshold = float(threshold_env)
        except ValueError:
            pass

    matching = MatchingConfig(
        match_threshold=float(threshold),
        similarity_floor=float(matching_data.get("similarity_floor", 0.6)),
    )

    # Defaults
    defaults_data = data.get("defaults", {})
    defaults = DefaultsConfig(
        default_currency=os.environ.get(
            "LEDGER_IMPORT_DEFAULT_CURRENCY", defaults_data.get("default_currency", "EUR")
        ).upper(),
        supported_currencies=[
            c.upper() for c in defaults_data.get("supported_currencies", DEFAULT_CURRENCIES)
        ],
        account_types=list(defaults_data.get("account_types", DEFAULT_ACCOUNT_TYPES)),
        new_account_type=defaults_data.get("new_account_type", "Checking"),
        uncategorized_label=defaults_data.get("uncategorized_label", "Uncategorized"),
    )

    return Config(parsing=parsing, matching=matching, defaults=defaults)


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# ledger-import configuration
#
# Environment overrides:
#   LEDGER_IMPORT_DELIMITER, LEDGER_IMPORT_DATE_SAMPLE_SIZE,
#   LEDGER_IMPORT_MATCH_THRESHOLD, LEDGER_IMPORT_DEFAULT_CURRENCY

parsing:
  delimiter: ","                 # Single character; use ";" for most EU bank exports
  date_sample_size: 20           # Values inspected when detecting the date layout

matching:
  match_threshold: 40.0          # Headers must score above this (0-100) to auto-map
  similarity_floor: 0.6          # Minimum fuzzy similarity for a keyword hit

defaults:
  default_currency: "EUR"        # Used for blank currency cells and unknown codes
  supported_currencies: ["USD", "EUR", "GBP", "BTC", "RON"]
  account_types:
    - "Checking"
    - "Savings"
    - "Investment"
    - "Property"
    - "Vehicle"
    - "Other Assets"
    - "Lending"
    - "Credit Card"
    - "Loan"
    - "Other Liabilities"
  new_account_type: "Checking"   # Type of accounts created during import
  uncategorized_label: "Uncategorized"
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)

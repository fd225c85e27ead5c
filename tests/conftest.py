"""Test fixtures and utilities."""

from itertools import count
from pathlib import Path

import pytest

from ledger_import.config import Config
from ledger_import.schemas import Account, Category, ImportContext, ImportType
from ledger_import.pipeline import PipelineController

# Bank export with a per-row account column
SAMPLE_BANK_CSV = """Date,Description,Amount,Category,Account
2024-01-05,Coffee,-4.50,Food,Main Checking
2024-01-06,Salary,2000.00,Income,Wallet
2024-01-07,Rent,-800,Housing,Wallet
"""

# Credit/debit export, day-first dates, semicolon separated
SAMPLE_DOUBLE_ENTRY_CSV = """Date;Description;Credit;Debit
13/01/2024;Salary;2000;
14/01/2024;Coffee;;4.5
"""

SAMPLE_ACCOUNTS_CSV = """Name,Type,Balance,Currency
Savings Pot,savings,"1,500.00",EUR
Cold Wallet,Crypto,20,BTC
"""

CONFIG_ENV_VARS = (
    "LEDGER_IMPORT_DELIMITER",
    "LEDGER_IMPORT_DATE_SAMPLE_SIZE",
    "LEDGER_IMPORT_MATCH_THRESHOLD",
    "LEDGER_IMPORT_DEFAULT_CURRENCY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep config environment overrides from leaking into tests."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def bank_csv() -> str:
    return SAMPLE_BANK_CSV


@pytest.fixture
def double_entry_csv() -> str:
    return SAMPLE_DOUBLE_ENTRY_CSV


@pytest.fixture
def accounts_csv() -> str:
    return SAMPLE_ACCOUNTS_CSV


@pytest.fixture
def import_context() -> ImportContext:
    """Host application with one account and a small category tree."""
    return ImportContext.from_config(
        Config(),
        accounts=[Account(id="acc-1", name="Main Checking", type="Checking")],
        categories=[
            Category(
                id="cat-food",
                name="Food",
                sub_categories=[Category(id="cat-groceries", name="Groceries")],
            ),
            Category(id="cat-income", name="Income", classification="income"),
        ],
    )


@pytest.fixture
def id_factory():
    """Deterministic ids for accounts created at publish."""
    counter = count(1)
    return lambda: f"new-{next(counter)}"


@pytest.fixture
def make_controller(import_context, id_factory):
    """Build a controller with the sample context loaded with some text."""

    def _make(
        text: str,
        import_type: ImportType = ImportType.TRANSACTIONS,
        delimiter: str = ",",
    ) -> PipelineController:
        controller = PipelineController(import_type, import_context, id_factory=id_factory)
        controller.set_delimiter(delimiter)
        controller.load_text(text, "export.csv")
        return controller

    return _make


@pytest.fixture
def context_yaml(tmp_path) -> Path:
    """Context file for the CLI run command."""
    path = tmp_path / "context.yaml"
    path.write_text(
        """accounts:
  - id: acc-1
    name: Main Checking
    type: Checking
    currency: EUR
categories:
  - id: cat-food
    name: Food
    sub_categories:
      - id: cat-groceries
        name: Groceries
  - id: cat-income
    name: Income
    classification: income
"""
    )
    return path

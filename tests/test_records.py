"""Tests for the canonical record types and schema catalog."""

from datetime import date
from decimal import Decimal

import pytest

from ledger_import.schemas import (
    SCHEMA_CATALOG,
    Account,
    Category,
    CleanedRow,
    EntityAction,
    EntityRef,
    ImportedRecord,
    ImportType,
    PublishResult,
    flatten_categories,
    get_schema,
)


class TestEntityRef:
    """Tests for the tagged entity reference."""

    @pytest.mark.parametrize(
        "ref,token",
        [
            (EntityRef.existing("acc-1"), "acc-1"),
            (EntityRef.create_new("Travel"), "_CREATE_NEW_:Travel"),
            (EntityRef.unassigned(), "_UNASSIGNED_"),
            (EntityRef.skip(), "_SKIP_"),
        ],
    )
    def test_token_conversion(self, ref, token):
        assert ref.to_token() == token
        assert EntityRef.from_token(token) == ref

    def test_empty_token_is_unassigned(self):
        assert EntityRef.from_token("").action == EntityAction.UNASSIGNED

    def test_create_new_name_may_contain_colons(self):
        ref = EntityRef.from_token("_CREATE_NEW_:Trips: Europe")
        assert ref == EntityRef.create_new("Trips: Europe")

    def test_existing_name_defaults_to_id(self):
        assert EntityRef.existing("Savings").name == "Savings"


class TestCleanedRow:
    def test_get_default(self):
        assert CleanedRow(0).get("missing", "x") == "x"


class TestFlattenCategories:
    def test_depth_first_with_parent_ids(self):
        tree = [
            Category(
                id="1",
                name="Food",
                sub_categories=[Category(id="2", name="Groceries"), Category(id="3", name="Cafe")],
            ),
            Category(id="4", name="Rent"),
        ]
        flat = flatten_categories(tree)

        assert [(cat.id, cat.parent_id) for cat in flat] == [
            ("1", None),
            ("2", "1"),
            ("3", "1"),
            ("4", None),
        ]
        assert all(cat.sub_categories == [] for cat in flat)


class TestSchemaCatalog:
    """Tests for the import schema catalog."""

    def test_every_import_type_has_a_schema(self):
        assert set(SCHEMA_CATALOG) == set(ImportType)

    def test_transactions_fields(self):
        schema = get_schema("transactions")
        assert schema.keys == [
            "date",
            "name",
            "amount",
            "category",
            "currency",
            "account",
            "amountIn",
            "amountOut",
        ]
        assert schema.required_keys == ["date", "name", "amount"]
        assert schema.has_account_source

    def test_only_transactions_take_an_account(self):
        takes_account = [t for t in ImportType if get_schema(t).has_account_source]
        assert takes_account == [ImportType.TRANSACTIONS]

    def test_field_lookup(self):
        schema = get_schema(ImportType.INVOICES)
        assert schema.field("total").required
        assert schema.field("nope") is None

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            get_schema("payroll")


class TestPublishResult:
    def test_to_dict(self):
        result = PublishResult(
            import_type=ImportType.GOALS,
            file_name="goals.csv",
            records=[
                ImportedRecord(
                    original_index=0,
                    values={"name": "Bike", "amount": Decimal("500"), "date": date(2024, 6, 1)},
                )
            ],
            new_accounts=[Account(id="new-1", name="Wallet")],
            original_rows=[{"Goal": "Bike"}],
            errors={1: {"name": "Missing required field"}},
        )

        assert result.to_dict() == {
            "import_type": "goals",
            "file_name": "goals.csv",
            "records": [
                {"original_index": 0, "name": "Bike", "amount": "500", "date": "2024-06-01"}
            ],
            "new_accounts": [
                {
                    "id": "new-1",
                    "name": "Wallet",
                    "type": "Checking",
                    "balance": "0",
                    "currency": "EUR",
                    "status": "open",
                }
            ],
            "original_rows": [{"Goal": "Bike"}],
            "errors": {"1": {"name": "Missing required field"}},
        }

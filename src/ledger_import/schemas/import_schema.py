"""
Import schema catalog (SSOT).

Every importable type declares its fields here: key, display label, required
flag and the keyword synonyms the column matcher scores headers against.
No other module may invent field keys.
"""

from dataclasses import dataclass
from enum import Enum


class ImportType(str, Enum):
    """Kinds of records that can be imported from a delimited file."""

    TRANSACTIONS = "transactions"
    ACCOUNTS = "accounts"
    CATEGORIES = "categories"
    INVOICES = "invoices"
    GOALS = "goals"
    TASKS = "tasks"
    MEMBERSHIPS = "memberships"
    TAGS = "tags"
    BUDGETS = "budgets"


@dataclass(frozen=True)
class FieldSpec:
    """One importable column."""

    key: str
    label: str
    required: bool = False
    keywords: tuple[str, ...] = ()


@dataclass(frozen=True)
class ImportSchema:
    """Ordered field list for one import type."""

    import_type: ImportType
    fields: tuple[FieldSpec, ...]
    # Rows carry an account, read from a column or fixed to one chosen account,
    # and may split the amount into credit and debit columns
    has_account_source: bool = False

    def field(self, key: str) -> FieldSpec | None:
        """Return the field with the given key, if declared."""
        for spec in self.fields:
            if spec.key == key:
                return spec
        return None

    @property
    def keys(self) -> list[str]:
        return [spec.key for spec in self.fields]

    @property
    def required_keys(self) -> list[str]:
        return [spec.key for spec in self.fields if spec.required]


def _f(key: str, label: str, required: bool, *keywords: str) -> FieldSpec:
    return FieldSpec(key=key, label=label, required=required, keywords=tuple(keywords))


SCHEMA_CATALOG: dict[ImportType, ImportSchema] = {
    ImportType.TRANSACTIONS: ImportSchema(
        import_type=ImportType.TRANSACTIONS,
        fields=(
            _f("date", "Date", True, "date", "time", "datum"),
            _f(
                "name",
                "Description",
                True,
                "description",
                "payee",
                "merchant",
                "details",
                "narrative",
                "memo",
            ),
            _f("amount", "Amount", True, "amount", "value", "sum", "total"),
            _f("category", "Category", False, "category", "class", "group"),
            _f("currency", "Currency", False, "currency", "curr"),
            _f("account", "Account", False, "account", "source"),
            _f("amountIn", "Credit (In)", False, "credit", "in", "deposit"),
            _f("amountOut", "Debit (Out)", False, "debit", "out", "payment", "withdrawal"),
        ),
        has_account_source=True,
    ),
    ImportType.ACCOUNTS: ImportSchema(
        import_type=ImportType.ACCOUNTS,
        fields=(
            _f("name", "Account Name", True, "name", "account name", "title"),
            _f("type", "Type", True, "type", "subtype", "kind"),
            _f("balance", "Balance", True, "balance", "current balance", "amount"),
            _f("currency", "Currency", False, "currency"),
        ),
    ),
    ImportType.CATEGORIES: ImportSchema(
        import_type=ImportType.CATEGORIES,
        fields=(
            _f("name", "Category Name", True, "name", "category"),
            _f("classification", "Type (Income/Expense)", True, "type", "classification", "group"),
            _f("color", "Color", False, "color"),
        ),
    ),
    ImportType.INVOICES: ImportSchema(
        import_type=ImportType.INVOICES,
        fields=(
            _f("number", "Invoice #", True, "number", "id", "invoice no", "ref"),
            _f("date", "Date Issued", True, "date", "issue date", "created"),
            _f("dueDate", "Due Date", False, "due", "expiry", "deadline"),
            _f(
                "entityName",
                "Client/Merchant",
                True,
                "client",
                "customer",
                "merchant",
                "vendor",
                "to",
                "from",
            ),
            _f("total", "Total Amount", True, "total", "amount", "grand total"),
            _f("status", "Status", False, "status", "state"),
            _f("type", "Type (Inv/Quote)", False, "type", "doc type"),
        ),
    ),
    ImportType.GOALS: ImportSchema(
        import_type=ImportType.GOALS,
        fields=(
            _f("name", "Goal Name", True, "name", "goal", "title"),
            _f("amount", "Target Amount", True, "target", "amount", "goal amount"),
            _f("currentAmount", "Current Saved", False, "current", "saved", "balance"),
            _f("date", "Target Date", False, "date", "deadline", "target date"),
            _f("type", "Type (One-time/Recurring)", False, "type", "recurrence"),
        ),
    ),
    ImportType.TASKS: ImportSchema(
        import_type=ImportType.TASKS,
        fields=(
            _f("title", "Title", True, "title", "name", "task", "subject"),
            _f("description", "Description", False, "description", "notes", "details"),
            _f("dueDate", "Due Date", False, "due", "date", "deadline"),
            _f("status", "Status", False, "status", "state"),
            _f("priority", "Priority", False, "priority", "importance", "level"),
        ),
    ),
    ImportType.MEMBERSHIPS: ImportSchema(
        import_type=ImportType.MEMBERSHIPS,
        fields=(
            _f("provider", "Provider", True, "provider", "name", "company", "program"),
            _f("memberId", "Member ID", True, "id", "number", "code", "membership no"),
            _f("tier", "Tier", False, "tier", "level", "status"),
            _f("expiryDate", "Expiry Date", False, "expiry", "expiration", "valid until"),
            _f("category", "Category", False, "category", "group"),
        ),
    ),
    ImportType.TAGS: ImportSchema(
        import_type=ImportType.TAGS,
        fields=(
            _f("name", "Tag Name", True, "name", "tag", "label"),
            _f("color", "Color", False, "color", "hex"),
            _f("icon", "Icon", False, "icon", "symbol"),
        ),
    ),
    # No keywords: budget columns are always mapped by hand
    ImportType.BUDGETS: ImportSchema(
        import_type=ImportType.BUDGETS,
        fields=(
            _f("categoryName", "Category", True),
            _f("amount", "Amount", True),
        ),
    ),
}


def get_schema(import_type: ImportType | str) -> ImportSchema:
    """Look up the schema for an import type.

    Raises:
        ValueError: If the import type is unknown
    """
    return SCHEMA_CATALOG[ImportType(import_type)]

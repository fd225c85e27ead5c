"""
Canonical record types flowing through the import pipeline (SSOT).

Raw rows come out of the tokenizer, cleaned rows out of the transformer,
entity references out of the reconciler and typed records out of publish.
No other module may invent another row or entity shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from .import_schema import ImportType

# Header -> raw cell text, one per non-blank data line
RawRow = dict[str, str]
# Field key -> chosen CSV header
ColumnMap = dict[str, str]
# Row index -> field key -> message
ErrorMap = dict[int, dict[str, str]]

CREATE_NEW_PREFIX = "_CREATE_NEW_:"
UNASSIGNED_TOKEN = "_UNASSIGNED_"
SKIP_TOKEN = "_SKIP_"


class EntityAction(str, Enum):
    """How an observed free-text value resolves to a domain entity."""

    EXISTING = "existing"  # Link to a known entity
    CREATE_NEW = "create_new"  # Synthesize a new entity at publish
    UNASSIGNED = "unassigned"  # No entity; rows using it are dropped at publish
    SKIP = "skip"  # User asked to drop rows carrying this value


class EntityKind(str, Enum):
    """Columns whose values are reconciled against existing entities."""

    CATEGORY = "category"
    ACCOUNT = "account"
    ACCOUNT_TYPE = "account_type"
    CURRENCY = "currency"


@dataclass(frozen=True)
class EntityRef:
    """
    Resolved or pending reference to a domain entity.

    EXISTING carries the entity id and its canonical name, CREATE_NEW carries
    the name of the entity to create, UNASSIGNED and SKIP carry nothing.
    """

    action: EntityAction
    entity_id: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def existing(cls, entity_id: str, name: str | None = None) -> EntityRef:
        return cls(EntityAction.EXISTING, entity_id=entity_id, name=name or entity_id)

    @classmethod
    def create_new(cls, name: str) -> EntityRef:
        return cls(EntityAction.CREATE_NEW, name=name)

    @classmethod
    def unassigned(cls) -> EntityRef:
        return cls(EntityAction.UNASSIGNED)

    @classmethod
    def skip(cls) -> EntityRef:
        return cls(EntityAction.SKIP)

    @property
    def is_existing(self) -> bool:
        return self.action == EntityAction.EXISTING

    @property
    def is_create_new(self) -> bool:
        return self.action == EntityAction.CREATE_NEW

    def to_token(self) -> str:
        """Encode as the sentinel string used by form widgets."""
        if self.action == EntityAction.EXISTING:
            return self.entity_id or ""
        if self.action == EntityAction.CREATE_NEW:
            return f"{CREATE_NEW_PREFIX}{self.name}"
        if self.action == EntityAction.SKIP:
            return SKIP_TOKEN
        return UNASSIGNED_TOKEN

    @classmethod
    def from_token(cls, token: str) -> EntityRef:
        """Decode a sentinel string; anything else is an existing entity id."""
        if token.startswith(CREATE_NEW_PREFIX):
            return cls.create_new(token[len(CREATE_NEW_PREFIX) :])
        if token == UNASSIGNED_TOKEN or not token:
            return cls.unassigned()
        if token == SKIP_TOKEN:
            return cls.skip()
        return cls.existing(token)


EntityMap = dict[str, EntityRef]


@dataclass(frozen=True)
class CleanedRow:
    """A source row after coercion and validation, indexed back to its origin."""

    original_index: int
    values: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)


@dataclass
class Account:
    """Account as known to the host application."""

    id: str
    name: str
    type: str = "Checking"
    balance: Decimal = Decimal("0")
    currency: str = "EUR"
    status: str = "open"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "balance": str(self.balance),
            "currency": self.currency,
            "status": self.status,
        }


@dataclass
class Category:
    """Category node; the host application keeps categories as a tree."""

    id: str
    name: str
    classification: str = "expense"  # "income" or "expense"
    color: str = ""
    icon: str = ""
    sub_categories: list[Category] = field(default_factory=list)
    parent_id: Optional[str] = None


def flatten_categories(categories: list[Category], parent_id: str | None = None) -> list[Category]:
    """Flatten a category tree depth-first, recording each node's parent id."""
    flat: list[Category] = []
    for cat in categories:
        flat.append(
            Category(
                id=cat.id,
                name=cat.name,
                classification=cat.classification,
                color=cat.color,
                icon=cat.icon,
                parent_id=parent_id,
            )
        )
        if cat.sub_categories:
            flat.extend(flatten_categories(cat.sub_categories, cat.id))
    return flat


@dataclass
class ImportContext:
    """Collaborator inputs supplied by the host application."""

    accounts: list[Account] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    supported_currencies: list[str] = field(
        default_factory=lambda: ["USD", "EUR", "GBP", "BTC", "RON"]
    )
    account_types: list[str] = field(
        default_factory=lambda: [
            "Checking",
            "Savings",
            "Investment",
            "Property",
            "Vehicle",
            "Other Assets",
            "Lending",
            "Credit Card",
            "Loan",
            "Other Liabilities",
        ]
    )
    default_currency: str = "EUR"
    new_account_type: str = "Checking"
    uncategorized_label: str = "Uncategorized"

    @classmethod
    def from_config(
        cls,
        config: Any,
        accounts: list[Account] | None = None,
        categories: list[Category] | None = None,
    ) -> ImportContext:
        """Build a context from a Config's defaults section."""
        defaults = config.defaults
        return cls(
            accounts=list(accounts or []),
            categories=list(categories or []),
            supported_currencies=list(defaults.supported_currencies),
            account_types=list(defaults.account_types),
            default_currency=defaults.default_currency,
            new_account_type=defaults.new_account_type,
            uncategorized_label=defaults.uncategorized_label,
        )

    @property
    def flat_categories(self) -> list[Category]:
        return flatten_categories(self.categories)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


@dataclass
class TransactionRecord:
    """Typed transaction ready to be persisted by the host application."""

    original_index: int
    account_id: str
    name: str
    amount: Decimal
    date: date
    currency: str
    category: str
    type: str  # "income" or "expense"

    def to_dict(self) -> dict:
        return {
            "original_index": self.original_index,
            "account_id": self.account_id,
            "name": self.name,
            "amount": str(self.amount),
            "date": self.date.isoformat(),
            "currency": self.currency,
            "category": self.category,
            "type": self.type,
        }


@dataclass
class AccountRecord:
    """Typed account row from an accounts import."""

    original_index: int
    name: str
    type: str
    balance: Decimal
    currency: str

    def to_dict(self) -> dict:
        return {
            "original_index": self.original_index,
            "name": self.name,
            "type": self.type,
            "balance": str(self.balance),
            "currency": self.currency,
        }


@dataclass
class ImportedRecord:
    """Pass-through record for import types without special handling."""

    original_index: int
    values: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "original_index": self.original_index,
            **{key: _jsonable(value) for key, value in self.values.items()},
        }


TypedRow = TransactionRecord | AccountRecord | ImportedRecord


@dataclass
class PublishResult:
    """Everything the import hands to the persistence layer."""

    import_type: ImportType
    file_name: str
    records: list[TypedRow] = field(default_factory=list)
    new_accounts: list[Account] = field(default_factory=list)
    original_rows: list[RawRow] = field(default_factory=list)
    errors: ErrorMap = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "import_type": self.import_type.value,
            "file_name": self.file_name,
            "records": [record.to_dict() for record in self.records],
            "new_accounts": [account.to_dict() for account in self.new_accounts],
            "original_rows": self.original_rows,
            "errors": {str(index): fields for index, fields in self.errors.items()},
        }

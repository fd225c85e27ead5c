"""
Entity reconciliation for imported rows.

Maps free-text values found in cleaned rows (category names, account names,
account types, currency codes) to entities the host application already
knows. Values without a match are seeded as CREATE_NEW (open sets:
categories, accounts) or UNASSIGNED (closed set: account types).

The maps are defaults only: the user may overwrite any entry before publish,
which is where CREATE_NEW references are turned into real records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from ..schemas.import_schema import ImportType
from ..schemas.records import (
    Account,
    Category,
    CleanedRow,
    EntityKind,
    EntityMap,
    EntityRef,
    ImportContext,
)
from .transformer import AccountSource

logger = logging.getLogger(__name__)


@dataclass
class EntityMaps:
    """The four reconciliation maps of one import."""

    category: EntityMap = field(default_factory=dict)
    account: EntityMap = field(default_factory=dict)
    account_type: EntityMap = field(default_factory=dict)
    currency: EntityMap = field(default_factory=dict)

    def get(self, kind: EntityKind) -> EntityMap:
        return getattr(self, kind.value)

    def with_entry(self, kind: EntityKind, value: str, ref: EntityRef) -> EntityMaps:
        """Return a copy with one entry replaced."""
        updated = {k.value: dict(self.get(k)) for k in EntityKind}
        updated[kind.value][value] = ref
        return EntityMaps(**updated)

    def to_tokens(self) -> dict[str, dict[str, str]]:
        """Sentinel-token view of every map, keyed by kind."""
        return {
            kind.value: {value: ref.to_token() for value, ref in self.get(kind).items()}
            for kind in EntityKind
        }


def distinct_values(rows: Iterable[CleanedRow], key: str) -> list[str]:
    """Distinct stripped non-empty values of one column, in first-seen order."""
    seen: dict[str, None] = {}
    for row in rows:
        value = row.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            seen.setdefault(text, None)
    return list(seen)


class EntityReconciler:
    """
    Resolves observed values against the collaborator's entity lists.

    Lookups are exact and case-insensitive. Indexes are built once per
    reconciler from the ImportContext.
    """

    def __init__(self, context: ImportContext):
        """
        Initialize the reconciler.

        Args:
            context: Existing accounts, categories and closed value sets
        """
        self.context = context
        self._categories: dict[str, Category] = {}
        for cat in context.flat_categories:
            self._categories.setdefault(cat.name.lower().strip(), cat)
        self._accounts: dict[str, Account] = {}
        for acc in context.accounts:
            self._accounts.setdefault(acc.name.lower().strip(), acc)
        self._account_types = {t.lower(): t for t in context.account_types}
        self._currencies = set(context.supported_currencies)

    def resolve_category(self, name: str) -> EntityRef:
        existing = self._categories.get(name.lower().strip())
        if existing:
            return EntityRef.existing(existing.id, existing.name)
        return EntityRef.create_new(name)

    def resolve_account(self, name: str) -> EntityRef:
        existing = self._accounts.get(name.lower().strip())
        if existing:
            return EntityRef.existing(existing.id, existing.name)
        return EntityRef.create_new(name)

    def resolve_account_type(self, name: str) -> EntityRef:
        # Account types are a closed enum: no CREATE_NEW
        label = self._account_types.get(name.lower().strip())
        if label:
            return EntityRef.existing(label, label)
        return EntityRef.unassigned()

    def category_map(self, rows: list[CleanedRow], key: str) -> EntityMap:
        return {value: self.resolve_category(value) for value in distinct_values(rows, key)}

    def account_map(self, rows: list[CleanedRow]) -> EntityMap:
        return {value: self.resolve_account(value) for value in distinct_values(rows, "account")}

    def account_type_map(self, rows: list[CleanedRow]) -> EntityMap:
        return {value: self.resolve_account_type(value) for value in distinct_values(rows, "type")}

    def currency_map(self, rows: list[CleanedRow]) -> EntityMap:
        """Unsupported currency codes, each defaulted to the default currency."""
        default = EntityRef.existing(self.context.default_currency)
        return {
            value: default
            for value in distinct_values(rows, "currency")
            if value not in self._currencies
        }

    def reconcile(
        self,
        rows: list[CleanedRow],
        import_type: ImportType,
        account_source: AccountSource = AccountSource.COLUMN,
        excluded: Iterable[int] = (),
    ) -> EntityMaps:
        """
        Seed all entity maps for the cleaned rows of one import.

        Args:
            rows: Cleaned rows
            import_type: Active import type
            account_source: Account source mode (transactions only)
            excluded: Original row indexes the user excluded

        Returns:
            Fresh EntityMaps; nothing from a previous run is carried over
        """
        excluded_set = set(excluded)
        valid = [row for row in rows if row.original_index not in excluded_set]
        maps = EntityMaps(currency=self.currency_map(valid))

        if import_type == ImportType.TRANSACTIONS:
            maps.category = self.category_map(valid, "category")
            if account_source == AccountSource.COLUMN:
                maps.account = self.account_map(valid)
        elif import_type == ImportType.CATEGORIES:
            maps.category = self.category_map(valid, "name")
        elif import_type == ImportType.ACCOUNTS:
            maps.account_type = self.account_type_map(valid)

        pending = sum(
            1
            for entity_map in (maps.category, maps.account)
            for ref in entity_map.values()
            if ref.is_create_new
        )
        logger.info(
            "Reconciled %d rows: %d categories, %d accounts, %d account types, "
            "%d unsupported currencies (%d to create)",
            len(valid),
            len(maps.category),
            len(maps.account),
            len(maps.account_type),
            len(maps.currency),
            pending,
        )
        return maps


def reconcile_entities(
    rows: list[CleanedRow],
    import_type: ImportType,
    context: ImportContext,
    account_source: AccountSource = AccountSource.COLUMN,
    excluded: Iterable[int] = (),
) -> EntityMaps:
    """Functional entry point: seed entity maps with a throwaway reconciler."""
    return EntityReconciler(context).reconcile(rows, import_type, account_source, excluded)

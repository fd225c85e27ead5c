"""
Publish step: turn the confirmed pipeline state into typed records.

This is the only place where pending entity references are resolved:
- CREATE_NEW accounts become draft Account records with fresh ids
- Rows excluded by the user are dropped
- Category, account, account type and currency values are remapped
  through the (possibly user-edited) entity maps

Nothing is persisted here; the PublishResult is handed to the caller.
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Callable, Optional

from ..schemas.import_schema import ImportType, get_schema
from ..schemas.records import (
    Account,
    AccountRecord,
    CleanedRow,
    EntityAction,
    ImportContext,
    ImportedRecord,
    PublishResult,
    TransactionRecord,
    TypedRow,
)
from ..services.reconciliation import EntityMaps
from ..services.transformer import AccountSource
from .state import PipelineState

logger = logging.getLogger(__name__)


def new_account_id() -> str:
    """Identifier for an account synthesized during import."""
    return f"new-{uuid.uuid4()}"


def _key(value: object) -> str:
    return str(value).strip() if value is not None else ""


def _map_currency(currency: Optional[str], maps: EntityMaps, default: str) -> Optional[str]:
    """Remap a currency code; None means the row must be dropped."""
    if not currency:
        return default
    ref = maps.currency.get(_key(currency))
    if ref is None:
        return currency
    if ref.action == EntityAction.SKIP:
        return None
    if ref.action == EntityAction.EXISTING:
        return ref.entity_id
    if ref.action == EntityAction.CREATE_NEW:
        return ref.name
    return default


def _create_accounts(
    state: PipelineState,
    context: ImportContext,
    id_factory: Callable[[], str],
) -> tuple[list[Account], dict[str, str]]:
    """Draft one Account per CREATE_NEW account reference."""
    new_accounts: list[Account] = []
    new_ids: dict[str, str] = {}

    for value, ref in state.entity_maps.account.items():
        if not ref.is_create_new:
            continue
        sample = next((row for row in state.cleaned if _key(row.get("account")) == value), None)
        currency = _map_currency(
            sample.get("currency") if sample else None,
            state.entity_maps,
            context.default_currency,
        )
        account = Account(
            id=id_factory(),
            name=ref.name or value,
            type=context.new_account_type,
            balance=Decimal("0"),
            currency=currency or context.default_currency,
            status="open",
        )
        new_ids[value] = account.id
        new_accounts.append(account)
        logger.info("Drafted new account %r (%s)", account.name, account.id)

    return new_accounts, new_ids


def _transaction_record(
    row: CleanedRow,
    state: PipelineState,
    context: ImportContext,
    currency: str,
    new_ids: dict[str, str],
) -> Optional[TransactionRecord]:
    maps = state.entity_maps

    if state.account_source == AccountSource.SINGLE:
        account_id = row.get("account")
    else:
        value = _key(row.get("account"))
        ref = maps.account.get(value)
        if ref is None or ref.action in (EntityAction.UNASSIGNED, EntityAction.SKIP):
            return None
        account_id = new_ids.get(value) if ref.is_create_new else ref.entity_id
    if not account_id:
        return None

    category = context.uncategorized_label
    category_ref = maps.category.get(_key(row.get("category")))
    if category_ref is not None and category_ref.action in (
        EntityAction.EXISTING,
        EntityAction.CREATE_NEW,
    ):
        category = category_ref.name or category

    amount: Decimal = row.get("amount")
    return TransactionRecord(
        original_index=row.original_index,
        account_id=account_id,
        name=row.get("name"),
        amount=amount,
        date=row.get("date"),
        currency=currency,
        category=category,
        type="income" if amount >= 0 else "expense",
    )


def _account_record(
    row: CleanedRow,
    state: PipelineState,
    currency: str,
) -> Optional[AccountRecord]:
    ref = state.entity_maps.account_type.get(_key(row.get("type")))
    if ref is None or not ref.is_existing:
        return None
    return AccountRecord(
        original_index=row.original_index,
        name=row.get("name"),
        type=ref.entity_id,
        balance=row.get("balance"),
        currency=currency,
    )


def publish(
    state: PipelineState,
    context: ImportContext,
    id_factory: Callable[[], str] = new_account_id,
) -> PublishResult:
    """
    Build the final record set from a confirmed pipeline state.

    Args:
        state: Pipeline state at the confirm step
        context: Collaborator inputs (defaults, labels)
        id_factory: Generator for ids of synthesized accounts

    Returns:
        PublishResult with typed records, new accounts, the original rows
        and the error map for audit
    """
    new_accounts: list[Account] = []
    new_ids: dict[str, str] = {}
    if (
        get_schema(state.import_type).has_account_source
        and state.account_source == AccountSource.COLUMN
    ):
        new_accounts, new_ids = _create_accounts(state, context, id_factory)

    records: list[TypedRow] = []
    dropped = 0

    for row in state.active_rows:
        currency = _map_currency(row.get("currency"), state.entity_maps, context.default_currency)
        if currency is None:
            dropped += 1
            continue

        record: Optional[TypedRow]
        if state.import_type == ImportType.TRANSACTIONS:
            record = _transaction_record(row, state, context, currency, new_ids)
        elif state.import_type == ImportType.ACCOUNTS:
            record = _account_record(row, state, currency)
        else:
            values = dict(row.values)
            if "currency" in values:
                values["currency"] = currency
            record = ImportedRecord(original_index=row.original_index, values=values)

        if record is None:
            dropped += 1
            continue
        records.append(record)

    logger.info(
        "Published %d %s records (%d dropped, %d excluded, %d new accounts)",
        len(records),
        state.import_type.value,
        dropped,
        len(state.cleaned) - len(state.active_rows),
        len(new_accounts),
    )

    return PublishResult(
        import_type=state.import_type,
        file_name=state.file_name,
        records=records,
        new_accounts=new_accounts,
        original_rows=list(state.rows),
        errors={index: dict(fields) for index, fields in state.errors.items()},
    )

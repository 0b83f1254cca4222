"""Income and expense entries against a single account.

Recording writes the entry row, then moves the account balance by the entry
amount. Deleting reverts the balance, then removes the row. Each side is an
independent committed write, so when the second write fails the first one is
undone; if that fails too the account is left unreconciled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Protocol

from finboard.core.datetime_utils import utc_now_naive
from finboard.core.errors import (
    AccountNotFoundError,
    EntryNotFoundError,
    InvalidEntryTypeError,
    NotAuthenticatedError,
    PersistenceError,
    StoreError,
    UnreconciledEntryError,
    ValidationError,
)
from finboard.core.money import parse_amount
from finboard.core.transfer import AccountStore
from finboard.models.account import Account
from finboard.models.transaction import Transaction

logger = logging.getLogger(__name__)

ENTRY_INCOME = "income"
ENTRY_EXPENSE = "expense"
ENTRY_TYPES = (ENTRY_INCOME, ENTRY_EXPENSE)


@dataclass(frozen=True)
class EntryRequest:
    account_id: int
    type: str
    # Raw user input; parsed during validation.
    amount: Any
    description: str | None = None
    notes: str | None = None
    occurred_at: datetime | None = None


@dataclass(frozen=True)
class LedgerEntry:
    user_id: int
    account_id: int
    type: str
    amount: Decimal
    description: str | None = None
    notes: str | None = None
    occurred_at: datetime = field(default_factory=utc_now_naive)


@dataclass(frozen=True)
class EntryResult:
    entry_id: int
    account_id: int
    account_balance: Decimal


class EntryStore(Protocol):
    def add_entry(self, entry: LedgerEntry) -> int: ...

    def get_entry(self, entry_id: int) -> Transaction | None: ...

    def delete_entry(self, entry_id: int) -> None: ...


def balance_delta(entry_type: str, amount: Decimal) -> Decimal:
    return amount if entry_type == ENTRY_INCOME else -amount


class LedgerRecorder:
    def __init__(self, accounts: AccountStore, entries: EntryStore) -> None:
        self._accounts = accounts
        self._entries = entries

    def record_entry(self, user_id: int | None, request: EntryRequest) -> EntryResult:
        if user_id is None:
            raise NotAuthenticatedError()

        try:
            if request.type not in ENTRY_TYPES:
                raise InvalidEntryTypeError()
            amount = parse_amount(request.amount)
            account = self._load_account(user_id, request.account_id)
            if account.is_archived:
                raise AccountNotFoundError(request.account_id)
        except ValidationError as exc:
            logger.info("Entry rejected for user %s (%s): %s", user_id, exc.code, exc.message)
            raise

        balance_after = Decimal(account.balance) + balance_delta(request.type, amount)

        try:
            entry_id = self._entries.add_entry(
                LedgerEntry(
                    user_id=user_id,
                    account_id=account.id,
                    type=request.type,
                    amount=amount,
                    description=request.description or None,
                    notes=request.notes or None,
                    occurred_at=request.occurred_at or utc_now_naive(),
                )
            )
        except StoreError as exc:
            logger.warning("Saving %s entry for account %s failed: %s", request.type, account.id, exc)
            raise PersistenceError(
                PersistenceError.STAGE_ENTRY, "Could not save the transaction; no balance was changed"
            ) from exc

        try:
            self._accounts.update_account_balance(account.id, balance_after)
        except Exception as exc:
            logger.error("Balance update of account %s failed, discarding entry %s: %s", account.id, entry_id, exc)
            self._undo(lambda: self._entries.delete_entry(entry_id), account_id=account.id, entry_id=entry_id)
            raise PersistenceError(
                PersistenceError.STAGE_BALANCE,
                "Could not update the account balance; the transaction was not saved",
            ) from exc

        logger.info("Recorded %s of %s on account %s (user %s)", request.type, amount, account.id, user_id)
        return EntryResult(entry_id=entry_id, account_id=account.id, account_balance=balance_after)

    def delete_entry(self, user_id: int | None, entry_id: int) -> EntryResult:
        if user_id is None:
            raise NotAuthenticatedError()

        try:
            entry = self._entries.get_entry(entry_id)
        except StoreError as exc:
            logger.warning("Loading entry %s failed: %s", entry_id, exc)
            raise PersistenceError(
                PersistenceError.STAGE_READ, "Could not load the transaction; no balance was changed"
            ) from exc
        if entry is None or entry.user_id != user_id:
            raise EntryNotFoundError(entry_id)

        # Archived accounts still take the reversal; their history stays consistent.
        account = self._load_account(user_id, entry.account_id)
        balance_before = Decimal(account.balance)
        balance_after = balance_before - balance_delta(entry.type, Decimal(entry.amount))

        try:
            self._accounts.update_account_balance(account.id, balance_after)
        except StoreError as exc:
            logger.warning("Reverting entry %s on account %s failed: %s", entry_id, account.id, exc)
            raise PersistenceError(
                PersistenceError.STAGE_BALANCE, "Could not revert the account balance; the transaction was kept"
            ) from exc

        try:
            self._entries.delete_entry(entry_id)
        except Exception as exc:
            logger.error("Deleting entry %s failed, restoring account %s: %s", entry_id, account.id, exc)
            self._undo(
                lambda: self._accounts.update_account_balance(account.id, balance_before),
                account_id=account.id,
                entry_id=entry_id,
            )
            raise PersistenceError(
                PersistenceError.STAGE_ENTRY, "Could not delete the transaction; the account balance was restored"
            ) from exc

        logger.info("Deleted %s entry %s on account %s (user %s)", entry.type, entry_id, account.id, user_id)
        return EntryResult(entry_id=entry_id, account_id=account.id, account_balance=balance_after)

    def _load_account(self, user_id: int, account_id: int) -> Account:
        try:
            account = self._accounts.get_account(account_id)
        except StoreError as exc:
            logger.warning("Loading account %s failed: %s", account_id, exc)
            raise PersistenceError(
                PersistenceError.STAGE_READ, "Could not load the account; no balance was changed"
            ) from exc
        if account is None or account.user_id != user_id:
            raise AccountNotFoundError(account_id)
        return account

    def _undo(self, write: Callable[[], None], *, account_id: int, entry_id: int) -> None:
        try:
            write()
        except Exception as exc:
            logger.critical(
                "UNRECONCILED entry %s: balance of account %s and the stored transaction disagree "
                "and undoing the first write failed: %s",
                entry_id,
                account_id,
                exc,
            )
            raise UnreconciledEntryError(account_id=account_id, entry_id=entry_id) from exc

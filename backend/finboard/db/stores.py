"""SQLAlchemy-backed stores for the transfer processor and the ledger.

Each write commits on its own. That is the storage contract the processor is
written against: two balance updates are two independent row writes.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finboard.core.datetime_utils import utc_now_naive
from finboard.core.errors import StoreError
from finboard.core.ledger import LedgerEntry
from finboard.core.transfer import TransferRecord
from finboard.models.account import Account
from finboard.models.transaction import Transaction
from finboard.models.transfer import Transfer


class SqlAccountStore:
    def __init__(self, db: Session) -> None:
        self._db = db

    def get_account(self, account_id: int) -> Account | None:
        try:
            # populate_existing: always the row as stored now, never a stale identity-map copy
            return self._db.get(Account, account_id, populate_existing=True)
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StoreError(f"Could not read account {account_id}") from exc

    def update_account_balance(self, account_id: int, new_balance: Decimal) -> None:
        try:
            result = self._db.execute(
                update(Account)
                .where(Account.id == account_id)
                .values(balance=new_balance, updated_at=utc_now_naive())
            )
            if result.rowcount == 0:
                self._db.rollback()
                raise StoreError(f"Account {account_id} no longer exists")
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StoreError(f"Could not update balance of account {account_id}") from exc


class SqlAuditStore:
    def __init__(self, db: Session) -> None:
        self._db = db

    def append_transfer_record(self, record: TransferRecord) -> int:
        row = Transfer(
            user_id=record.user_id,
            source_account_id=record.source_account_id,
            destination_account_id=record.destination_account_id,
            amount=record.amount,
            notes=record.notes,
            idempotency_key=record.idempotency_key,
            created_at=record.created_at,
        )
        try:
            self._db.add(row)
            self._db.flush()
            transfer_id = int(row.id)
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StoreError("Could not append transfer record") from exc
        return transfer_id


class SqlEntryStore:
    def __init__(self, db: Session) -> None:
        self._db = db

    def add_entry(self, entry: LedgerEntry) -> int:
        row = Transaction(
            user_id=entry.user_id,
            account_id=entry.account_id,
            type=entry.type,
            amount=entry.amount,
            description=entry.description,
            notes=entry.notes,
            occurred_at=entry.occurred_at,
        )
        try:
            self._db.add(row)
            self._db.flush()
            entry_id = int(row.id)
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StoreError("Could not save transaction") from exc
        return entry_id

    def get_entry(self, entry_id: int) -> Transaction | None:
        try:
            return self._db.get(Transaction, entry_id, populate_existing=True)
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StoreError(f"Could not read transaction {entry_id}") from exc

    def delete_entry(self, entry_id: int) -> None:
        try:
            result = self._db.execute(delete(Transaction).where(Transaction.id == entry_id))
            if result.rowcount == 0:
                self._db.rollback()
                raise StoreError(f"Transaction {entry_id} no longer exists")
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StoreError(f"Could not delete transaction {entry_id}") from exc

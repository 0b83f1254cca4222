"""Moving money between two accounts of the same user.

The account store has no multi-row transaction, so a transfer is two
independent absolute-value balance writes (debit, then credit). If the credit
fails the debit is compensated by writing the original source balance back.
The audit record is written last and is best-effort.

Balances are read once per transfer and written back as absolute values, so
two transfers touching the same account concurrently can lose an update.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol

from finboard.core.datetime_utils import utc_now_naive
from finboard.core.errors import (
    AccountNotFoundError,
    InsufficientFundsError,
    NotAuthenticatedError,
    PersistenceError,
    SameAccountError,
    StoreError,
    UnreconciledStateError,
    ValidationError,
)
from finboard.core.idempotency import IdempotencyRegistry
from finboard.core.money import parse_amount
from finboard.models.account import Account

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferRequest:
    source_account_id: int
    destination_account_id: int
    # Raw user input; parsed during validation.
    amount: Any
    notes: str | None = None
    idempotency_key: str | None = None


@dataclass(frozen=True)
class TransferRecord:
    user_id: int
    source_account_id: int
    destination_account_id: int
    amount: Decimal
    notes: str | None = None
    idempotency_key: str | None = None
    created_at: datetime = field(default_factory=utc_now_naive)


@dataclass(frozen=True)
class TransferResult:
    source_balance: Decimal
    destination_balance: Decimal
    transfer_id: int | None = None
    audit_recorded: bool = True


class AccountStore(Protocol):
    def get_account(self, account_id: int) -> Account | None: ...

    def update_account_balance(self, account_id: int, new_balance: Decimal) -> None: ...


class AuditStore(Protocol):
    def append_transfer_record(self, record: TransferRecord) -> int: ...


def _safe_to_retry(exc: Exception) -> bool:
    """True when the failed attempt cannot have changed any balance."""

    if isinstance(exc, ValidationError):
        return True
    if isinstance(exc, PersistenceError):
        return exc.stage in (PersistenceError.STAGE_READ, PersistenceError.STAGE_DEBIT)
    return False


class TransferProcessor:
    def __init__(
        self,
        accounts: AccountStore,
        audit: AuditStore,
        idempotency: IdempotencyRegistry | None = None,
    ) -> None:
        self._accounts = accounts
        self._audit = audit
        self._idempotency = idempotency

    def execute_transfer(self, user_id: int | None, request: TransferRequest) -> TransferResult:
        if user_id is None:
            raise NotAuthenticatedError()

        key = request.idempotency_key
        if not key or self._idempotency is None:
            return self._execute(user_id, request)

        previous = self._idempotency.begin(user_id, key)
        if previous is not None:
            logger.info("Replaying transfer result for idempotency key %s (user %s)", key, user_id)
            return previous

        try:
            result = self._execute(user_id, request)
        except Exception as exc:
            if _safe_to_retry(exc):
                self._idempotency.release(user_id, key)
            else:
                # The debit may have been applied: the key stays claimed until balances are checked.
                self._idempotency.fail(user_id, key, exc)
            raise
        self._idempotency.complete(user_id, key, result)
        return result

    def _execute(self, user_id: int, request: TransferRequest) -> TransferResult:
        src_id = request.source_account_id
        dst_id = request.destination_account_id

        try:
            amount = parse_amount(request.amount)
            if src_id == dst_id:
                raise SameAccountError()

            source = self._load_account(user_id, src_id)
            destination = self._load_account(user_id, dst_id)

            source_before = Decimal(source.balance)
            destination_before = Decimal(destination.balance)
            if amount > source_before:
                raise InsufficientFundsError(available=source_before, requested=amount)
        except ValidationError as exc:
            logger.info("Transfer rejected for user %s (%s): %s", user_id, exc.code, exc.message)
            raise

        source_after = source_before - amount
        destination_after = destination_before + amount

        try:
            self._accounts.update_account_balance(src_id, source_after)
        except StoreError as exc:
            logger.warning("Debit of account %s failed, nothing changed: %s", src_id, exc)
            raise PersistenceError(PersistenceError.STAGE_DEBIT) from exc

        # From here on the source is debited: every path must credit or compensate.
        try:
            self._accounts.update_account_balance(dst_id, destination_after)
        except Exception as exc:
            logger.error("Credit of account %s failed, reverting debit of account %s: %s", dst_id, src_id, exc)
            self._compensate(
                source_account_id=src_id,
                destination_account_id=dst_id,
                amount=amount,
                source_before=source_before,
            )
            raise PersistenceError(PersistenceError.STAGE_CREDIT) from exc

        transfer_id = self._record(
            TransferRecord(
                user_id=user_id,
                source_account_id=src_id,
                destination_account_id=dst_id,
                amount=amount,
                notes=request.notes or None,
                idempotency_key=request.idempotency_key,
            )
        )

        logger.info(
            "Transferred %s from account %s to account %s (user %s)",
            amount,
            src_id,
            dst_id,
            user_id,
        )
        return TransferResult(
            source_balance=source_after,
            destination_balance=destination_after,
            transfer_id=transfer_id,
            audit_recorded=transfer_id is not None,
        )

    def _load_account(self, user_id: int, account_id: int) -> Account:
        try:
            account = self._accounts.get_account(account_id)
        except StoreError as exc:
            logger.warning("Loading account %s failed: %s", account_id, exc)
            raise PersistenceError(
                PersistenceError.STAGE_READ, "Could not load accounts; no balance was changed"
            ) from exc

        # Foreign and archived accounts look exactly like missing ones to the caller.
        if account is None or account.user_id != user_id or account.is_archived:
            raise AccountNotFoundError(account_id)
        return account

    def _compensate(
        self,
        *,
        source_account_id: int,
        destination_account_id: int,
        amount: Decimal,
        source_before: Decimal,
    ) -> None:
        try:
            self._accounts.update_account_balance(source_account_id, source_before)
        except Exception as exc:
            logger.critical(
                "UNRECONCILED transfer: account %s debited by %s but account %s was not credited "
                "and restoring balance %s failed: %s",
                source_account_id,
                amount,
                destination_account_id,
                source_before,
                exc,
            )
            raise UnreconciledStateError(
                source_account_id=source_account_id,
                destination_account_id=destination_account_id,
                amount=amount,
                source_balance_before=source_before,
            ) from exc

        logger.info("Reverted account %s to %s after failed credit", source_account_id, source_before)

    def _record(self, record: TransferRecord) -> int | None:
        try:
            return self._audit.append_transfer_record(record)
        except Exception:
            logger.exception(
                "Failed to log transfer of %s from account %s to account %s; balances already updated",
                record.amount,
                record.source_account_id,
                record.destination_account_id,
            )
            return None

"""Error taxonomy for balance-mutating operations.

Three families, never mixed:

* ``ValidationError``: the request was rejected before any side effect.
  Safe to retry once the input is corrected.
* ``PersistenceError``: a store write failed. The operation cleaned up after
  itself (nothing written, or the first write was undone).
* ``UnreconciledStateError`` and ``UnreconciledEntryError``: the first of two
  writes was applied, the second was not, and undoing the first failed too.
  Needs an operator; never retry blindly.
"""

from __future__ import annotations

from decimal import Decimal

CATEGORY_INVALID_INPUT = "invalid_input"
CATEGORY_INSUFFICIENT_FUNDS = "insufficient_funds"
CATEGORY_TRANSIENT = "transient_failure"
CATEGORY_INCONSISTENT = "system_inconsistency"


class StoreError(Exception):
    """Raised by account/audit stores when a read or write does not go through."""


class TransferError(Exception):
    code: str = "transfer_error"
    category: str = CATEGORY_INVALID_INPUT
    status_code: int = 400
    default_message: str = "Transfer failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TransferError):
    pass


class NotAuthenticatedError(ValidationError):
    code = "not_authenticated"
    status_code = 401
    default_message = "Not authenticated"


class AccountNotFoundError(ValidationError):
    code = "account_not_found"
    status_code = 404
    default_message = "Account not found"

    def __init__(self, account_id: int, message: str | None = None) -> None:
        self.account_id = account_id
        super().__init__(message or f"Account {account_id} not found")


class SameAccountError(ValidationError):
    code = "same_account"
    default_message = "Source and destination accounts must be different"


class InvalidAmountError(ValidationError):
    code = "invalid_amount"
    default_message = "Amount must be a positive number with at most 2 decimal places"


class InvalidEntryTypeError(ValidationError):
    code = "invalid_entry_type"
    default_message = "Entry type must be 'income' or 'expense'"


class EntryNotFoundError(ValidationError):
    code = "entry_not_found"
    status_code = 404

    def __init__(self, entry_id: int) -> None:
        self.entry_id = entry_id
        super().__init__(f"Transaction {entry_id} not found")


class InsufficientFundsError(ValidationError):
    code = "insufficient_funds"
    category = CATEGORY_INSUFFICIENT_FUNDS
    default_message = "Insufficient funds"

    def __init__(self, available: Decimal, requested: Decimal) -> None:
        self.available = available
        self.requested = requested
        super().__init__(f"Insufficient funds: available {available}, requested {requested}")


class DuplicateRequestError(ValidationError):
    code = "duplicate_request"
    status_code = 409
    default_message = "A request with this idempotency key is already in progress"


class PersistenceError(TransferError):
    code = "write_failed"
    category = CATEGORY_TRANSIENT
    status_code = 503

    STAGE_READ = "read"
    STAGE_DEBIT = "debit"
    STAGE_CREDIT = "credit"
    STAGE_ENTRY = "entry"
    STAGE_BALANCE = "balance"

    def __init__(self, stage: str, message: str | None = None) -> None:
        self.stage = stage
        if message is None:
            if stage == self.STAGE_DEBIT:
                message = "Could not debit the source account; no balance was changed"
            else:
                message = (
                    "Could not credit the destination account; the source debit was reverted "
                    "and the transfer did not complete"
                )
        super().__init__(message)


class UnreconciledStateError(TransferError):
    code = "unreconciled"
    category = CATEGORY_INCONSISTENT
    status_code = 500

    def __init__(
        self,
        *,
        source_account_id: int,
        destination_account_id: int,
        amount: Decimal,
        source_balance_before: Decimal,
    ) -> None:
        self.source_account_id = source_account_id
        self.destination_account_id = destination_account_id
        self.amount = amount
        self.source_balance_before = source_balance_before
        super().__init__(
            "Transfer left accounts unreconciled: source debited but destination not credited. "
            "Contact support before retrying."
        )


class UnreconciledEntryError(TransferError):
    code = "unreconciled"
    category = CATEGORY_INCONSISTENT
    status_code = 500

    def __init__(self, *, account_id: int, entry_id: int) -> None:
        self.account_id = account_id
        self.entry_id = entry_id
        super().__init__(
            f"Account {account_id} balance no longer matches transaction {entry_id}. "
            "Contact support before retrying."
        )

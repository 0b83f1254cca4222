from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from finboard.api.deps import get_current_user, get_db, get_ledger_recorder
from finboard.core.datetime_utils import as_utc, to_utc_naive
from finboard.core.ledger import ENTRY_EXPENSE, ENTRY_INCOME, ENTRY_TYPES, EntryRequest, LedgerRecorder
from finboard.models.transaction import Transaction
from finboard.models.user import User
from finboard.schemas.transaction import (
    TransactionCreate,
    TransactionDeletedOut,
    TransactionListOut,
    TransactionOut,
    TransactionRecordedOut,
)
from finboard.schemas.transfer import ErrorOut

router = APIRouter(prefix="/transactions", tags=["transactions"])

ERROR_RESPONSES = {code: {"model": ErrorOut} for code in (400, 401, 404, 500, 503)}


def to_transaction_out(row: Transaction) -> TransactionOut:
    return TransactionOut(
        id=row.id,
        accountId=row.account_id,
        type=row.type,
        amount=row.amount,
        description=row.description,
        notes=row.notes,
        occurredAt=as_utc(row.occurred_at),
        createdAt=as_utc(row.created_at),
    )


@router.post("", response_model=TransactionRecordedOut, responses=ERROR_RESPONSES)
def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    recorder: LedgerRecorder = Depends(get_ledger_recorder),
) -> TransactionRecordedOut:
    result = recorder.record_entry(
        current_user.id,
        EntryRequest(
            account_id=payload.accountId,
            type=payload.type,
            amount=payload.amount,
            description=payload.description,
            notes=payload.notes,
            occurred_at=to_utc_naive(payload.occurredAt) if payload.occurredAt else None,
        ),
    )
    row = db.get(Transaction, result.entry_id)
    return TransactionRecordedOut(
        **to_transaction_out(row).model_dump(),
        accountBalance=result.account_balance,
    )


@router.get("", response_model=TransactionListOut)
def list_transactions(
    type: str = "all",
    accountId: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = 1,
    pageSize: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TransactionListOut:
    if type != "all" and type not in ENTRY_TYPES:
        raise HTTPException(status_code=400, detail="Invalid type")
    if page < 1:
        raise HTTPException(status_code=400, detail="Invalid page")
    if pageSize < 1 or pageSize > 200:
        raise HTTPException(status_code=400, detail="Invalid pageSize")

    filters: list = [Transaction.user_id == current_user.id]
    if type != "all":
        filters.append(Transaction.type == type)
    if accountId is not None:
        filters.append(Transaction.account_id == accountId)
    if start is not None:
        filters.append(Transaction.occurred_at >= to_utc_naive(start))
    if end is not None:
        filters.append(Transaction.occurred_at <= to_utc_naive(end))

    base = select(Transaction).where(*filters)
    total = int(db.scalar(select(func.count()).select_from(base.subquery())) or 0)

    def _sum(entry_type: str) -> Decimal:
        value = db.scalar(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(*filters, Transaction.type == entry_type)
        )
        return Decimal(value or 0).quantize(Decimal("0.01"))

    rows = db.scalars(
        base.order_by(Transaction.occurred_at.desc(), Transaction.id.desc())
        .offset((page - 1) * pageSize)
        .limit(pageSize)
    ).all()

    return TransactionListOut(
        items=[to_transaction_out(r) for r in rows],
        total=total,
        incomeTotal=_sum(ENTRY_INCOME),
        expenseTotal=_sum(ENTRY_EXPENSE),
    )


@router.get("/{tx_id}", response_model=TransactionOut)
def get_transaction(
    tx_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TransactionOut:
    row = db.get(Transaction, tx_id)
    if not row or row.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return to_transaction_out(row)


@router.delete("/{tx_id}", response_model=TransactionDeletedOut, responses=ERROR_RESPONSES)
def delete_transaction(
    tx_id: int,
    current_user: User = Depends(get_current_user),
    recorder: LedgerRecorder = Depends(get_ledger_recorder),
) -> TransactionDeletedOut:
    result = recorder.delete_entry(current_user.id, tx_id)
    return TransactionDeletedOut(accountId=result.account_id, accountBalance=result.account_balance)

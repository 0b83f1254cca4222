from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from finboard.api.deps import get_current_user, get_db, get_transfer_processor
from finboard.core.datetime_utils import as_utc
from finboard.core.transfer import TransferProcessor, TransferRequest
from finboard.models.transfer import Transfer
from finboard.models.user import User
from finboard.schemas.transfer import ErrorOut, TransferCreate, TransferListOut, TransferOut, TransferResultOut

router = APIRouter(prefix="/transfers", tags=["transfers"])


def to_transfer_out(row: Transfer) -> TransferOut:
    return TransferOut(
        id=row.id,
        sourceAccountId=row.source_account_id,
        destinationAccountId=row.destination_account_id,
        amount=row.amount,
        notes=row.notes,
        createdAt=as_utc(row.created_at),
    )


@router.post(
    "",
    response_model=TransferResultOut,
    responses={code: {"model": ErrorOut} for code in (400, 401, 404, 409, 500, 503)},
)
def create_transfer(
    payload: TransferCreate,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key", max_length=100),
    current_user: User = Depends(get_current_user),
    processor: TransferProcessor = Depends(get_transfer_processor),
) -> TransferResultOut:
    result = processor.execute_transfer(
        current_user.id,
        TransferRequest(
            source_account_id=payload.sourceAccountId,
            destination_account_id=payload.destinationAccountId,
            amount=payload.amount,
            notes=payload.notes,
            idempotency_key=idempotency_key,
        ),
    )
    return TransferResultOut(
        sourceBalance=result.source_balance,
        destinationBalance=result.destination_balance,
        transferId=result.transfer_id,
        auditRecorded=result.audit_recorded,
    )


@router.get("", response_model=TransferListOut)
def list_transfers(
    page: int = 1,
    pageSize: int = 50,
    accountId: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TransferListOut:
    if page < 1:
        raise HTTPException(status_code=400, detail="Invalid page")
    if pageSize < 1 or pageSize > 200:
        raise HTTPException(status_code=400, detail="Invalid pageSize")

    filters: list = [Transfer.user_id == current_user.id]
    if accountId is not None:
        filters.append(
            or_(Transfer.source_account_id == accountId, Transfer.destination_account_id == accountId)
        )

    base = select(Transfer).where(*filters)
    total = int(db.scalar(select(func.count()).select_from(base.subquery())) or 0)
    rows = db.scalars(
        base.order_by(Transfer.created_at.desc(), Transfer.id.desc())
        .offset((page - 1) * pageSize)
        .limit(pageSize)
    ).all()

    return TransferListOut(items=[to_transfer_out(r) for r in rows], total=total)


@router.get("/{transfer_id}", response_model=TransferOut)
def get_transfer(
    transfer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> TransferOut:
    row = db.get(Transfer, transfer_id)
    if not row or row.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Transfer not found")
    return to_transfer_out(row)

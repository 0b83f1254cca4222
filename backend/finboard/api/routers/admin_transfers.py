from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from finboard.api.deps import get_db, require_admin_user
from finboard.api.routers.transfers import to_transfer_out
from finboard.core.datetime_utils import to_utc_naive
from finboard.models.transfer import Transfer
from finboard.models.user import User
from finboard.schemas.transfer import TransferListOut

router = APIRouter(prefix="/admin/transfers", tags=["admin"])


@router.get("", response_model=TransferListOut)
def list_all_transfers(
    page: int = 1,
    pageSize: int = 50,
    order: str = "asc",
    userId: int | None = None,
    accountId: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin_user),
) -> TransferListOut:
    """Audit view across all users, used when reconciling balances by hand."""

    if page < 1:
        raise HTTPException(status_code=400, detail="Invalid page")
    if pageSize < 1 or pageSize > 200:
        raise HTTPException(status_code=400, detail="Invalid pageSize")
    if order not in ("asc", "desc"):
        raise HTTPException(status_code=400, detail="Invalid order")

    filters: list = []
    if userId is not None:
        filters.append(Transfer.user_id == userId)
    if accountId is not None:
        filters.append(
            (Transfer.source_account_id == accountId) | (Transfer.destination_account_id == accountId)
        )
    if start is not None:
        filters.append(Transfer.created_at >= to_utc_naive(start))
    if end is not None:
        filters.append(Transfer.created_at <= to_utc_naive(end))

    base = select(Transfer).where(*filters)
    total = int(db.scalar(select(func.count()).select_from(base.subquery())) or 0)

    order_by = (
        (Transfer.created_at.asc(), Transfer.id.asc())
        if order == "asc"
        else (Transfer.created_at.desc(), Transfer.id.desc())
    )
    rows = db.scalars(base.order_by(*order_by).offset((page - 1) * pageSize).limit(pageSize)).all()

    return TransferListOut(items=[to_transfer_out(r) for r in rows], total=total)

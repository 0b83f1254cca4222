from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from finboard.api.deps import get_current_user, get_db
from finboard.core.datetime_utils import as_utc
from finboard.models.account import Account
from finboard.models.user import User
from finboard.schemas.account import AccountCreate, AccountOut, AccountUpdate

router = APIRouter(prefix="/accounts", tags=["accounts"])


def _to_out(row: Account) -> AccountOut:
    return AccountOut(
        id=row.id,
        name=row.name,
        balance=row.balance,
        currency=row.currency,
        accountType=row.account_type,
        color=row.color,
        icon=row.icon,
        hideBalance=row.hide_balance,
        isArchived=row.is_archived,
        createdAt=as_utc(row.created_at),
        updatedAt=as_utc(row.updated_at),
    )


def _get_owned_account(db: Session, current_user: User, account_id: int) -> Account:
    row = db.get(Account, account_id)
    if not row or row.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Account not found")
    return row


@router.get("", response_model=list[AccountOut])
def list_accounts(
    includeArchived: bool = False,
    forTransfer: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[AccountOut]:
    query = select(Account).where(Account.user_id == current_user.id)
    # Transfer candidates never include archived accounts, whatever includeArchived says.
    if forTransfer or not includeArchived:
        query = query.where(Account.is_archived.is_(False))

    rows = db.scalars(query.order_by(Account.name.asc(), Account.id.asc())).all()
    return [_to_out(r) for r in rows]


@router.post("", response_model=AccountOut)
def create_account(
    payload: AccountCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AccountOut:
    row = Account(
        user_id=current_user.id,
        name=payload.name,
        balance=payload.balance,
        currency=payload.currency,
        account_type=payload.accountType,
        color=payload.color,
        icon=payload.icon,
        hide_balance=payload.hideBalance,
        is_archived=False,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return _to_out(row)


@router.get("/{account_id}", response_model=AccountOut)
def get_account(
    account_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AccountOut:
    return _to_out(_get_owned_account(db, current_user, account_id))


@router.patch("/{account_id}", response_model=AccountOut)
def update_account(
    account_id: int,
    payload: AccountUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AccountOut:
    row = _get_owned_account(db, current_user, account_id)
    if row.is_archived:
        raise HTTPException(status_code=400, detail="Archived accounts cannot be edited")

    if payload.name is not None:
        row.name = payload.name
    if payload.balance is not None:
        row.balance = payload.balance
    if payload.currency is not None:
        row.currency = payload.currency
    if payload.accountType is not None:
        row.account_type = payload.accountType
    if payload.color is not None:
        row.color = payload.color
    if payload.icon is not None:
        row.icon = payload.icon
    if payload.hideBalance is not None:
        row.hide_balance = payload.hideBalance

    db.add(row)
    db.commit()
    db.refresh(row)
    return _to_out(row)


@router.post("/{account_id}/toggle-visibility", response_model=AccountOut)
def toggle_visibility(
    account_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AccountOut:
    row = _get_owned_account(db, current_user, account_id)
    row.hide_balance = not row.hide_balance
    db.add(row)
    db.commit()
    db.refresh(row)
    return _to_out(row)


@router.delete("/{account_id}", response_model=AccountOut)
def archive_account(
    account_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AccountOut:
    # Archive instead of delete: transfers keep pointing at the row.
    row = _get_owned_account(db, current_user, account_id)
    row.is_archived = True
    db.add(row)
    db.commit()
    db.refresh(row)
    return _to_out(row)

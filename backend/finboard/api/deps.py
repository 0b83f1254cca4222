from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from finboard.core.config import settings
from finboard.core.errors import NotAuthenticatedError
from finboard.core.idempotency import IdempotencyRegistry
from finboard.core.ledger import LedgerRecorder
from finboard.core.security import decode_access_token
from finboard.core.transfer import TransferProcessor
from finboard.db.session import SessionLocal
from finboard.db.stores import SqlAccountStore, SqlAuditStore, SqlEntryStore
from finboard.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)

# Process-wide: duplicate submissions are caught across requests, tabs and devices.
transfer_idempotency = IdempotencyRegistry(window_seconds=settings.idempotency_window_seconds)


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    request: Request,
    cred: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    token: str | None = None
    if cred and cred.credentials:
        token = cred.credentials
    else:
        token = request.cookies.get(settings.auth_cookie_name)

    if not token:
        raise NotAuthenticatedError()

    try:
        user_id = decode_access_token(token)
    except ValueError:
        raise NotAuthenticatedError("Invalid token")

    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise NotAuthenticatedError("User inactive")
    return user


def require_admin_user(current_user: User = Depends(get_current_user)) -> User:
    if getattr(current_user, "role", User.ROLE_USER) != User.ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Admin only")
    return current_user


def get_transfer_processor(db: Session = Depends(get_db)) -> TransferProcessor:
    return TransferProcessor(
        accounts=SqlAccountStore(db),
        audit=SqlAuditStore(db),
        idempotency=transfer_idempotency,
    )


def get_ledger_recorder(db: Session = Depends(get_db)) -> LedgerRecorder:
    return LedgerRecorder(accounts=SqlAccountStore(db), entries=SqlEntryStore(db))

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from finboard.api.deps import get_current_user, get_db
from finboard.core.config import settings
from finboard.core.security import create_access_token, hash_password, verify_password
from finboard.models.user import User
from finboard.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserMe

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserMe)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> UserMe:
    existing = db.scalar(select(User).where(User.username == payload.username))
    if existing:
        raise HTTPException(status_code=400, detail="Username already exists")

    user = User(username=payload.username, password_hash=hash_password(payload.password), role=User.ROLE_USER)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s (%r)", user.id, user.username)
    return UserMe(id=user.id, username=user.username, role=user.role)


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)) -> TokenResponse:
    user = db.scalar(select(User).where(User.username == payload.username))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not verify_password(payload.password, user.password_hash):
        logger.info("Rejected login for %r", payload.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token(user.id)

    # Store JWT in HttpOnly cookie so refresh doesn't lose login state.
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        secure=bool(settings.auth_cookie_secure),
        samesite=settings.auth_cookie_samesite,
        max_age=int(settings.jwt_expire_minutes) * 60,
        path="/",
    )

    return TokenResponse(access_token=token)


@router.post("/logout")
def logout(response: Response) -> dict:
    response.delete_cookie(key=settings.auth_cookie_name, path="/")
    return {"ok": True}


@router.get("/me", response_model=UserMe)
def me(current_user: User = Depends(get_current_user)) -> UserMe:
    return UserMe(id=current_user.id, username=current_user.username, role=current_user.role)

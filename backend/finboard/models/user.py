from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from finboard.core.datetime_utils import utc_now_naive
from finboard.models.base import Base


class User(Base):
    __tablename__ = "users"

    ROLE_ADMIN = "admin"
    ROLE_USER = "user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))

    # 'admin' | 'user'
    role: Mapped[str] = mapped_column(String(10), default=ROLE_USER)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=utc_now_naive)

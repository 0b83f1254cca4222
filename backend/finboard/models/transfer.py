from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from finboard.core.datetime_utils import utc_now_naive
from finboard.models.base import Base


class Transfer(Base):
    """Append-only audit row for a completed transfer."""

    __tablename__ = "transfers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)

    source_account_id: Mapped[int] = mapped_column(Integer, ForeignKey("accounts.id"), index=True)
    destination_account_id: Mapped[int] = mapped_column(Integer, ForeignKey("accounts.id"), index=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    idempotency_key: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), default=utc_now_naive, index=True)

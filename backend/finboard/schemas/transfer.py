from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field


class TransferCreate(BaseModel):
    sourceAccountId: int
    destinationAccountId: int
    # Strings are accepted as typed by the user and validated by the transfer processor.
    amount: Any
    notes: str | None = Field(default=None, max_length=1000)


class TransferResultOut(BaseModel):
    sourceBalance: Decimal
    destinationBalance: Decimal
    transferId: int | None = None
    auditRecorded: bool


class TransferOut(BaseModel):
    id: int
    sourceAccountId: int
    destinationAccountId: int
    amount: Decimal
    notes: str | None
    createdAt: datetime


class TransferListOut(BaseModel):
    items: list[TransferOut] = Field(default_factory=list)
    total: int


class ErrorOut(BaseModel):
    detail: str
    code: str
    category: str

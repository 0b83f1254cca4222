from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field


class TransactionCreate(BaseModel):
    accountId: int
    # 'income' | 'expense'; checked by the ledger so errors carry a code.
    type: str
    amount: Any
    description: str | None = Field(default=None, max_length=200)
    notes: str | None = Field(default=None, max_length=1000)
    occurredAt: datetime | None = None


class TransactionOut(BaseModel):
    id: int
    accountId: int
    type: str
    amount: Decimal
    description: str | None
    notes: str | None
    occurredAt: datetime
    createdAt: datetime


class TransactionRecordedOut(TransactionOut):
    accountBalance: Decimal


class TransactionDeletedOut(BaseModel):
    ok: bool = True
    accountId: int
    accountBalance: Decimal


class TransactionListOut(BaseModel):
    items: list[TransactionOut] = Field(default_factory=list)
    total: int
    incomeTotal: Decimal
    expenseTotal: Decimal

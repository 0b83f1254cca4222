from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class AccountCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    balance: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    currency: str = Field(default="EUR", pattern="^[A-Z]{3}$")
    accountType: str = Field(default="main", min_length=1, max_length=30)
    color: str | None = Field(default="#cbf587", max_length=20)
    icon: str | None = Field(default="wallet", max_length=50)
    hideBalance: bool = False


class AccountUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    balance: Decimal | None = Field(default=None, max_digits=14, decimal_places=2)
    currency: str | None = Field(default=None, pattern="^[A-Z]{3}$")
    accountType: str | None = Field(default=None, min_length=1, max_length=30)
    color: str | None = Field(default=None, max_length=20)
    icon: str | None = Field(default=None, max_length=50)
    hideBalance: bool | None = None


class AccountOut(BaseModel):
    id: int
    name: str
    balance: Decimal
    currency: str
    accountType: str
    color: str | None
    icon: str | None
    hideBalance: bool
    isArchived: bool
    createdAt: datetime
    updatedAt: datetime

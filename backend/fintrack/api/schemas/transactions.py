from __future__ import annotations

import datetime as dt
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field

from fintrack.domain.money import Currency

_ACCOUNT_ID = Field(default=None, validation_alias=AliasChoices("account_id", "accountId"))


class ExpenseWriteRequest(BaseModel):
    """Corps de POST /expenses et PUT /expenses/{id} (remplacement complet)."""
    amount: float = Field(..., gt=0, examples=[12.5, 150000])
    currency: Currency
    date: dt.date
    category: str = Field(..., min_length=1)
    description: str | None = None
    account_id: UUID | None = _ACCOUNT_ID


class IncomeWriteRequest(BaseModel):
    amount: float = Field(..., gt=0)
    currency: Currency
    date: dt.date
    type: str = Field(..., min_length=1, examples=["Salario", "Freelance"])
    description: str | None = None
    account_id: UUID | None = _ACCOUNT_ID


class ExpenseResponse(BaseModel):
    id: UUID
    amount: float
    currency: Currency
    date: dt.date
    category: str
    description: str | None
    account_id: UUID | None
    created_at: dt.datetime


class IncomeResponse(BaseModel):
    id: UUID
    amount: float
    currency: Currency
    date: dt.date
    type: str
    description: str | None
    account_id: UUID | None
    created_at: dt.datetime

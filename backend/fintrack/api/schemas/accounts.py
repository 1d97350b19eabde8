from __future__ import annotations

import datetime as dt
from uuid import UUID

from pydantic import BaseModel, Field

from fintrack.domain.money import Currency


class AccountCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    balance: float = 0.0                  # solde initial
    currency: Currency
    description: str | None = None


class AccountUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    balance: float | None = None
    currency: Currency | None = None
    # absent != null : null efface la description
    description: str | None = None


class AccountResponse(BaseModel):
    id: UUID
    name: str
    balance: float
    currency: Currency
    description: str | None
    created_at: dt.datetime

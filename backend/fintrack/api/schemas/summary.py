from __future__ import annotations

import datetime as dt

from pydantic import BaseModel

from fintrack.domain.money import Currency


class MonthlySummaryResponse(BaseModel):
    month: int
    year: int
    currency: Currency
    total_expenses: float
    expense_count: int
    expenses_by_category: dict[str, float]
    expenses_by_day: dict[int, float]
    total_incomes: float
    income_count: int
    incomes_by_type: dict[str, float]
    net: float


class RateEntry(BaseModel):
    from_currency: Currency
    to_currency: Currency
    rate: float


class ExchangeRateResponse(BaseModel):
    USD_TO_COP: float | None
    COP_TO_USD: float | None
    last_updated: dt.datetime | None
    rates: list[RateEntry]

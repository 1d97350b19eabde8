# fintrack/services/transaction_query_service.py
from __future__ import annotations

import calendar
from dataclasses import dataclass
import datetime as dt
from typing import Sequence
from uuid import UUID

from fintrack.domain.transaction import Transaction, TransactionKind
from fintrack.errors import ValidationError


@dataclass(frozen=True)
class TransactionFilter:
    month: int | None = None  # 1..12, toujours avec year
    year: int | None = None
    category: str | None = None  # comparaison exacte (sensible à la casse)
    account_id: UUID | None = None
    kind: TransactionKind | None = None

    def __post_init__(self) -> None:
        if (self.month is None) != (self.year is None):
            raise ValidationError("month and year must be provided together")
        if self.month is not None and not (1 <= self.month <= 12):
            raise ValidationError("month must be between 1 and 12")
        if self.year is not None and not (1 <= self.year <= 9999):
            raise ValidationError("year must be between 1 and 9999")


def month_bounds(month: int, year: int) -> tuple[dt.date, dt.date]:
    """Premier et dernier jour (inclus) du mois calendaire."""
    if not (1 <= month <= 12):
        raise ValidationError("month must be between 1 and 12")
    _, last_day = calendar.monthrange(year, month)
    return dt.date(year, month, 1), dt.date(year, month, last_day)


def apply_transaction_filter(txs: Sequence[Transaction], f: TransactionFilter) -> list[Transaction]:
    out = list(txs)

    # -------- filters (AND) --------
    if f.month is not None and f.year is not None:
        first, last = month_bounds(f.month, f.year)
        out = [t for t in out if first <= t.date <= last]

    if f.category is not None:
        out = [t for t in out if t.category == f.category]

    if f.account_id is not None:
        out = [t for t in out if t.account_id == f.account_id]

    if f.kind is not None:
        out = [t for t in out if t.kind == f.kind]

    # -------- tri déterministe : plus récent d'abord --------
    out.sort(key=lambda t: (t.date, t.created_at, str(t.id)), reverse=True)
    return out

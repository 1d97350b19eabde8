# fintrack/engine/summary.py
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Protocol

from fintrack.domain.money import Currency
from fintrack.domain.transaction import Transaction, TransactionKind
from fintrack.engine.currency_converter import CurrencyConverter
from fintrack.errors import ValidationError
from fintrack.services.transaction_query_service import month_bounds


@dataclass(frozen=True)
class MonthlyFinancialSummary:
    month: int
    year: int
    currency: Currency
    total_expenses: float = 0.0
    expense_count: int = 0
    expenses_by_category: dict[str, float] = field(default_factory=dict)
    expenses_by_day: dict[int, float] = field(default_factory=dict)
    total_incomes: float = 0.0
    income_count: int = 0
    incomes_by_type: dict[str, float] = field(default_factory=dict)

    @property
    def net(self) -> float:
        return self.total_incomes - self.total_expenses


class TransactionSource(Protocol):
    def list_transactions(self) -> list[Transaction]: ...


def compute_monthly_summary(
    txs: Iterable[Transaction],
    *,
    month: int,
    year: int,
    display_currency: Currency,
    converter: CurrencyConverter,
) -> MonthlyFinancialSummary:
    """
    Agrège les transactions du mois calendaire [month, year] dans la devise d'affichage.
    Fonction pure : aucune écriture, même entrée -> même sortie.
    """
    if isinstance(month, bool) or not isinstance(month, int) or not (1 <= month <= 12):
        raise ValidationError("month must be between 1 and 12")
    if isinstance(year, bool) or not isinstance(year, int) or not (1 <= year <= 9999):
        raise ValidationError("year must be between 1 and 9999")
    if not isinstance(display_currency, Currency):
        raise ValidationError("display_currency must be a Currency")

    first, last = month_bounds(month, year)

    total_expenses = 0.0
    expense_count = 0
    by_category: dict[str, float] = defaultdict(float)
    by_day: dict[int, float] = defaultdict(float)

    total_incomes = 0.0
    income_count = 0
    by_type: dict[str, float] = defaultdict(float)

    for t in txs:
        if not (first <= t.date <= last):
            continue

        amount = converter.convert(t.amount, t.currency, display_currency)

        if t.kind == TransactionKind.EXPENSE:
            expense_count += 1
            total_expenses += amount
            # clé = catégorie telle quelle (sensible à la casse)
            by_category[t.category] += amount
            by_day[t.date.day] += amount
        else:
            income_count += 1
            total_incomes += amount
            by_type[t.category] += amount

    return MonthlyFinancialSummary(
        month=month,
        year=year,
        currency=display_currency,
        total_expenses=total_expenses,
        expense_count=expense_count,
        expenses_by_category=dict(by_category),
        expenses_by_day=dict(sorted(by_day.items())),
        total_incomes=total_incomes,
        income_count=income_count,
        incomes_by_type=dict(by_type),
    )


class SummaryEngine:
    def __init__(self, source: TransactionSource, converter: CurrencyConverter) -> None:
        self._source = source
        self._converter = converter

    def monthly_summary(self, month: int, year: int, display_currency: Currency) -> MonthlyFinancialSummary:
        return compute_monthly_summary(
            self._source.list_transactions(),
            month=month,
            year=year,
            display_currency=display_currency,
            converter=self._converter,
        )

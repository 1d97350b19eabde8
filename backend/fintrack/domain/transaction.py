from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from fintrack.domain.account import normalize_description
from fintrack.domain.money import Currency, parse_currency, parse_positive_amount
from fintrack.errors import ValidationError


class TransactionKind(str, Enum):
    EXPENSE = "EXPENSE"
    INCOME = "INCOME"

    @property
    def balance_sign(self) -> int:
        # effet sur le solde du compte lié : une dépense débite, un revenu crédite
        return -1 if self is TransactionKind.EXPENSE else 1


@dataclass(frozen=True, slots=True)
class Transaction:
    id: UUID
    kind: TransactionKind
    amount: float
    currency: Currency
    date: dt.date
    category: str
    description: Optional[str]
    account_id: Optional[UUID]
    created_at: dt.datetime

    @property
    def signed_amount(self) -> float:
        return self.kind.balance_sign * self.amount

    @staticmethod
    def create(
        *,
        kind: TransactionKind,
        amount: float | int | str,
        currency: Currency | str,
        date: dt.date,
        category: str,
        description: Optional[str] = None,
        account_id: Optional[UUID] = None,
        id: Optional[UUID] = None,
        created_at: Optional[dt.datetime] = None,
    ) -> "Transaction":
        if not isinstance(kind, TransactionKind):
            raise ValidationError("kind must be a TransactionKind")

        # dt.datetime est aussi une dt.date : on refuse pour garder un jour calendaire pur
        if not isinstance(date, dt.date) or isinstance(date, dt.datetime):
            raise ValidationError("date must be a date")

        if not isinstance(category, str) or category.strip() == "":
            raise ValidationError("category cannot be empty")

        if account_id is not None and not isinstance(account_id, UUID):
            raise ValidationError("account_id must be a UUID")

        if created_at is None:
            final_created_at = dt.datetime.now(dt.timezone.utc)
        else:
            if not isinstance(created_at, dt.datetime):
                raise ValidationError("created_at must be a datetime")
            if created_at.tzinfo is None:
                raise ValidationError("created_at must be timezone-aware (UTC recommended)")
            final_created_at = created_at.astimezone(dt.timezone.utc)

        return Transaction(
            id=id or uuid4(),
            kind=kind,
            amount=parse_positive_amount(amount),
            currency=parse_currency(currency),
            date=date,
            category=category.strip(),
            description=normalize_description(description),
            account_id=account_id,
            created_at=final_created_at,
        )

from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
from typing import Optional
from uuid import UUID, uuid4

from fintrack.domain.money import Currency, parse_amount, parse_currency
from fintrack.errors import ValidationError


def normalize_name(name: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("account.name must be non-empty")
    return name.strip()


def normalize_description(description: Optional[str]) -> Optional[str]:
    # description vide == pas de description
    if description is None:
        return None
    if not isinstance(description, str):
        raise ValidationError("description must be a string")
    return description.strip() or None


@dataclass(frozen=True, slots=True)
class Account:
    """
    Objet métier (domain), immuable.
    Seul le LedgerStore produit de nouvelles versions (balance mise à jour).
    """
    id: UUID
    name: str
    balance: float
    currency: Currency
    description: Optional[str]
    created_at: dt.datetime

    @staticmethod
    def create(
        *,
        name: str,
        balance: float | int | str,
        currency: Currency | str,
        description: Optional[str] = None,
        id: Optional[UUID] = None,
        created_at: Optional[dt.datetime] = None,
    ) -> "Account":
        if created_at is None:
            final_created_at = dt.datetime.now(dt.timezone.utc)
        else:
            if not isinstance(created_at, dt.datetime):
                raise ValidationError("created_at must be a datetime")
            if created_at.tzinfo is None:
                raise ValidationError("created_at must be timezone-aware (UTC recommended)")
            final_created_at = created_at.astimezone(dt.timezone.utc)

        return Account(
            id=id or uuid4(),
            name=normalize_name(name),
            balance=parse_amount(balance),
            currency=parse_currency(currency),
            description=normalize_description(description),
            created_at=final_created_at,
        )

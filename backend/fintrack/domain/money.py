from __future__ import annotations

import math
from enum import Enum

from fintrack.errors import ValidationError


class Currency(str, Enum):
    COP = "COP"
    USD = "USD"
    EUR = "EUR"


def parse_currency(value: Currency | str) -> Currency:
    if isinstance(value, Currency):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("currency cannot be empty")
    try:
        return Currency(value.strip().upper())
    except ValueError:
        raise ValidationError(f"unsupported currency '{value}'")


def parse_amount(value: float | int | str) -> float:
    """
    Parse robuste vers float.
    Autorise 12.34, "12.34", "-12.34", "12" et optionnellement "12,34".
    """
    if isinstance(value, bool):
        raise ValidationError("amount must be a number")

    if isinstance(value, str):
        raw = value.strip()
        if raw == "":
            raise ValidationError("amount cannot be empty")
        # tolérance minimale pour les virgules décimales
        raw = raw.replace(",", ".")
        try:
            amount = float(raw)
        except ValueError as exc:
            raise ValidationError(f"invalid amount: {value!r}") from exc
    elif isinstance(value, (int, float)):
        amount = float(value)
    else:
        raise ValidationError("amount must be a number")

    if not math.isfinite(amount):
        raise ValidationError("amount must be finite")
    return amount


def parse_positive_amount(value: float | int | str) -> float:
    amount = parse_amount(value)
    if amount <= 0:
        raise ValidationError("amount must be > 0")
    return amount

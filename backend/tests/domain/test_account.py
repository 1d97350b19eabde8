import datetime as dt

import pytest

from fintrack.domain.account import Account
from fintrack.domain.money import Currency, parse_amount, parse_currency
from fintrack.errors import ValidationError


def test_account_create_ok():
    acc = Account.create(name=" Checking ", balance="1000", currency="USD", description=" main ")
    assert acc.name == "Checking"
    assert acc.balance == 1000.0
    assert acc.currency == Currency.USD
    assert acc.description == "main"
    assert acc.created_at.tzinfo is not None


def test_account_allows_negative_balance():
    acc = Account.create(name="Credit", balance=-250.5, currency=Currency.COP)
    assert acc.balance == -250.5


def test_account_name_must_be_non_empty():
    with pytest.raises(ValidationError):
        Account.create(name="  ", balance=0, currency=Currency.USD)


def test_account_is_immutable():
    acc = Account.create(name="A", balance=0, currency=Currency.USD)
    with pytest.raises(Exception):
        acc.balance = 10  # type: ignore[misc]


def test_account_created_at_is_normalized_to_utc():
    tz = dt.timezone(dt.timedelta(hours=-5))
    acc = Account.create(
        name="A", balance=0, currency=Currency.COP, created_at=dt.datetime(2026, 1, 1, 7, 0, tzinfo=tz)
    )
    assert acc.created_at == dt.datetime(2026, 1, 1, 12, 0, tzinfo=dt.timezone.utc)


def test_parse_amount_accepts_comma_decimal():
    assert parse_amount("12,34") == 12.34
    assert parse_amount(-3) == -3.0


def test_parse_currency_is_case_insensitive():
    assert parse_currency(" cop ") == Currency.COP
    with pytest.raises(ValidationError):
        parse_currency("XYZ")

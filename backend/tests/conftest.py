from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from fintrack.api.deps import LedgerContext
from fintrack.api.main import create_app
from fintrack.domain.money import Currency
from fintrack.engine.currency_converter import CurrencyConverter
from fintrack.services.ledger_store import LedgerStore


@pytest.fixture
def converter() -> CurrencyConverter:
    # table par défaut : USD->COP 4000, COP->USD 0.00025
    return CurrencyConverter()


@pytest.fixture
def store(converter: CurrencyConverter) -> LedgerStore:
    return LedgerStore(converter)


@pytest.fixture
def ledger(store: LedgerStore) -> LedgerContext:
    return LedgerContext(store=store, display_currency=Currency.USD)


@pytest.fixture
def client(ledger: LedgerContext) -> TestClient:
    return TestClient(create_app(ledger))

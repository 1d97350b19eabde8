from __future__ import annotations

import datetime as dt

from fintrack.domain.money import Currency
from fintrack.services.ledger_store import LedgerStore


def seed_sample_data(store: LedgerStore, *, today: dt.date | None = None) -> dict:
    """
    Jeu de démo (mêmes comptes que l'app mobile d'origine).
    Ne fait rien si le ledger contient déjà des comptes.
    """
    if store.list_accounts():
        return {"accounts": 0, "transactions": 0}

    day = today or dt.date.today()
    first = day.replace(day=1)

    savings = store.create_account("Cuenta de Ahorros", 2_500_000, Currency.COP)
    checking = store.create_account("Cuenta Corriente", 1_200_000, Currency.COP)
    invest = store.create_account("Inversiones", 500, Currency.USD)

    store.create_expense(150_000, Currency.COP, first, "Alimentación", "Compras semanales", savings.id)
    store.create_expense(250_000, Currency.COP, first + dt.timedelta(days=1), "Vivienda", "Pago de arriendo", checking.id)
    store.create_expense(100, Currency.USD, first + dt.timedelta(days=2), "Entretenimiento", "Suscripciones", invest.id)
    store.create_income(3_000_000, Currency.COP, first, "Salario", None, checking.id)

    return {"accounts": 3, "transactions": 4}

from __future__ import annotations

import datetime as dt
import random
from uuid import uuid4

import pytest

from fintrack.domain.money import Currency
from fintrack.domain.transaction import TransactionKind
from fintrack.engine.currency_converter import CurrencyConverter
from fintrack.errors import ConstraintViolation, NotFoundError, ValidationError
from fintrack.services.ledger_store import LedgerStore
from fintrack.services.transaction_query_service import TransactionFilter

D = dt.date(2026, 5, 10)


def expected_balance(store: LedgerStore, account_id, initial: float) -> float:
    """Recalcule le solde attendu depuis les transactions actuellement liées."""
    acc = store.require_account(account_id)
    total = initial
    for t in store.list_transactions(TransactionFilter(account_id=account_id)):
        total += t.kind.balance_sign * store.converter.convert(t.amount, t.currency, acc.currency)
    return total


# ---------- create ----------

def test_expense_debits_linked_account(store: LedgerStore):
    acc = store.create_account("Checking", 1000, Currency.USD)
    store.create_expense(100, Currency.USD, D, "Food", account_id=acc.id)
    assert store.require_account(acc.id).balance == 900


def test_foreign_currency_expense_is_converted_into_account_currency(store: LedgerStore):
    acc = store.create_account("A", 1_000_000, Currency.COP)
    store.create_expense(100, Currency.USD, D, "Food", account_id=acc.id)
    assert store.require_account(acc.id).balance == 600_000


def test_income_credits_linked_account(store: LedgerStore):
    acc = store.create_account("A", 10, Currency.USD)
    store.create_income(400000, Currency.COP, D, "Salario", account_id=acc.id)
    assert store.require_account(acc.id).balance == pytest.approx(110.0)


def test_unlinked_or_unknown_account_has_no_balance_effect(store: LedgerStore):
    acc = store.create_account("A", 10, Currency.USD)
    store.create_expense(5, Currency.USD, D, "Food")
    ghost = uuid4()
    tx = store.create_expense(5, Currency.USD, D, "Food", account_id=ghost)
    assert tx.account_id == ghost
    assert store.require_account(acc.id).balance == 10


def test_create_account_rejects_invalid_input(store: LedgerStore):
    with pytest.raises(ValidationError):
        store.create_account("", 0, Currency.USD)
    with pytest.raises(ValidationError):
        store.create_account("A", 0, "XXX")
    assert store.list_accounts() == []


def test_invalid_transaction_does_not_touch_balance(store: LedgerStore):
    acc = store.create_account("A", 100, Currency.USD)
    with pytest.raises(ValidationError):
        store.create_expense(0, Currency.USD, D, "Food", account_id=acc.id)
    with pytest.raises(ValidationError):
        store.create_expense(10, Currency.USD, D, "", account_id=acc.id)
    assert store.require_account(acc.id).balance == 100
    assert store.list_transactions() == []


def test_ids_are_unique(store: LedgerStore):
    accs = [store.create_account(f"A{i}", 0, Currency.USD) for i in range(20)]
    txs = [store.create_expense(1, Currency.USD, D, "X") for _ in range(20)]
    assert len({a.id for a in accs}) == 20
    assert len({t.id for t in txs}) == 20


# ---------- update_transaction ----------

def test_update_same_account_applies_net_delta(store: LedgerStore):
    acc = store.create_account("A", 1_000_000, Currency.COP)
    tx = store.create_expense(100, Currency.USD, D, "Food", account_id=acc.id)

    store.update_transaction(tx.id, amount=150000, currency=Currency.COP, date=D, category="Food", account_id=acc.id)

    assert store.require_account(acc.id).balance == 850_000


def test_update_moves_effect_between_accounts(store: LedgerStore):
    a = store.create_account("A", 1000, Currency.USD)
    b = store.create_account("B", 1_000_000, Currency.COP)
    tx = store.create_expense(100, Currency.USD, D, "Food", account_id=a.id)

    store.update_transaction(tx.id, amount=50, currency=Currency.USD, date=D, category="Food", account_id=b.id)

    assert store.require_account(a.id).balance == 1000
    assert store.require_account(b.id).balance == 800_000
    assert store.require_transaction(tx.id).account_id == b.id


def test_update_unlinks_transaction(store: LedgerStore):
    a = store.create_account("A", 1000, Currency.USD)
    tx = store.create_expense(100, Currency.USD, D, "Food", account_id=a.id)

    store.update_transaction(tx.id, amount=100, currency=Currency.USD, date=D, category="Food", account_id=None)

    assert store.require_account(a.id).balance == 1000


def test_update_links_previously_unlinked_transaction(store: LedgerStore):
    a = store.create_account("A", 1000, Currency.USD)
    tx = store.create_expense(100, Currency.USD, D, "Food")

    store.update_transaction(tx.id, amount=100, currency=Currency.USD, date=D, category="Food", account_id=a.id)

    assert store.require_account(a.id).balance == 900


def test_update_income_uses_income_sign(store: LedgerStore):
    a = store.create_account("A", 0, Currency.USD)
    tx = store.create_income(100, Currency.USD, D, "Salario", account_id=a.id)

    store.update_transaction(tx.id, amount=80, currency=Currency.USD, date=D, category="Salario", account_id=a.id)

    assert store.require_account(a.id).balance == 80


def test_update_with_identical_values_is_noop(store: LedgerStore):
    a = store.create_account("A", 1_000_000, Currency.COP)
    tx = store.create_expense(123.45, Currency.USD, D, "Food", "desc", account_id=a.id)
    before = store.require_account(a.id).balance

    updated = store.update_transaction(
        tx.id,
        amount=tx.amount,
        currency=tx.currency,
        date=tx.date,
        category=tx.category,
        description=tx.description,
        account_id=tx.account_id,
    )

    assert store.require_account(a.id).balance == before
    assert updated == tx


def test_update_keeps_identity_kind_and_created_at(store: LedgerStore):
    tx = store.create_income(10, Currency.USD, D, "Salario")
    updated = store.update_transaction(
        tx.id, amount=20, currency=Currency.COP, date=dt.date(2026, 6, 1), category="Regalo", description="x"
    )
    assert updated.id == tx.id
    assert updated.kind == TransactionKind.INCOME
    assert updated.created_at == tx.created_at
    assert (updated.amount, updated.currency, updated.category, updated.description) == (20, Currency.COP, "Regalo", "x")


def test_invalid_update_leaves_state_untouched(store: LedgerStore):
    a = store.create_account("A", 1000, Currency.USD)
    b = store.create_account("B", 1000, Currency.USD)
    tx = store.create_expense(100, Currency.USD, D, "Food", account_id=a.id)

    with pytest.raises(ValidationError):
        store.update_transaction(tx.id, amount=-1, currency=Currency.USD, date=D, category="Food", account_id=b.id)

    assert store.require_account(a.id).balance == 900
    assert store.require_account(b.id).balance == 1000
    assert store.require_transaction(tx.id) == tx


def test_update_unknown_transaction(store: LedgerStore):
    with pytest.raises(NotFoundError):
        store.update_transaction(uuid4(), amount=1, currency=Currency.USD, date=D, category="X")


# ---------- delete ----------

def test_delete_transaction_reverts_effect(store: LedgerStore):
    a = store.create_account("A", 1_000_000, Currency.COP)
    tx = store.create_expense(100, Currency.USD, D, "Food", account_id=a.id)

    store.delete_transaction(tx.id)

    assert store.require_account(a.id).balance == 1_000_000
    assert store.get_transaction(tx.id) is None
    with pytest.raises(NotFoundError):
        store.delete_transaction(tx.id)


def test_delete_account_guard(store: LedgerStore):
    x = store.create_account("X", 500, Currency.USD)
    tx = store.create_expense(20, Currency.USD, D, "Food", account_id=x.id)

    with pytest.raises(ConstraintViolation):
        store.delete_account(x.id)

    # rien n'a bougé
    assert store.require_account(x.id).balance == 480
    assert store.require_transaction(tx.id).account_id == x.id

    store.delete_transaction(tx.id)
    store.delete_account(x.id)
    assert store.get_account(x.id) is None
    assert store.list_accounts() == []


def test_delete_account_guard_counts_incomes_too(store: LedgerStore):
    x = store.create_account("X", 0, Currency.USD)
    store.create_income(1, Currency.USD, D, "Regalo", account_id=x.id)
    with pytest.raises(ConstraintViolation):
        store.delete_account(x.id)


def test_delete_unknown_account(store: LedgerStore):
    with pytest.raises(NotFoundError):
        store.delete_account(uuid4())


# ---------- update_account ----------

def test_update_account_fields(store: LedgerStore):
    a = store.create_account("A", 100, Currency.USD, "old")

    updated = store.update_account(a.id, name=" B ", balance=250, currency="COP", description=None)

    assert (updated.name, updated.balance, updated.currency, updated.description) == ("B", 250, Currency.COP, None)
    assert updated.created_at == a.created_at
    assert store.require_account(a.id) == updated


def test_update_account_keeps_description_when_not_given(store: LedgerStore):
    a = store.create_account("A", 100, Currency.USD, "keep me")
    updated = store.update_account(a.id, name="B")
    assert updated.description == "keep me"


def test_update_account_rejects_empty_name(store: LedgerStore):
    a = store.create_account("A", 100, Currency.USD)
    with pytest.raises(ValidationError):
        store.update_account(a.id, name=" ", balance=5)
    assert store.require_account(a.id) == a


# ---------- queries ----------

def test_list_transactions_filters_and_orders_most_recent_first(store: LedgerStore):
    a = store.create_account("A", 0, Currency.USD)
    t1 = store.create_expense(1, Currency.USD, dt.date(2026, 5, 1), "Food", account_id=a.id)
    t2 = store.create_expense(2, Currency.USD, dt.date(2026, 5, 20), "Food")
    t3 = store.create_expense(3, Currency.USD, dt.date(2026, 5, 10), "Rent", account_id=a.id)
    store.create_expense(4, Currency.USD, dt.date(2026, 6, 1), "Food", account_id=a.id)

    may = store.list_transactions(TransactionFilter(month=5, year=2026))
    assert [t.id for t in may] == [t2.id, t3.id, t1.id]

    may_food_a = store.list_transactions(TransactionFilter(month=5, year=2026, category="Food", account_id=a.id))
    assert [t.id for t in may_food_a] == [t1.id]


# ---------- invariant ----------

def test_balance_invariant_holds_over_random_operations():
    rng = random.Random(20260519)
    conv = CurrencyConverter({(Currency.USD, Currency.COP): 4000.0, (Currency.EUR, Currency.USD): 1.1})
    store = LedgerStore(conv)

    currencies = list(Currency)
    initial = {}
    for i in range(4):
        bal = rng.uniform(-1000, 100000)
        acc = store.create_account(f"acc{i}", bal, rng.choice(currencies))
        initial[acc.id] = bal
    account_ids = list(initial) + [None]

    for _ in range(300):
        txs = store.list_transactions()
        op = rng.random()
        if op < 0.45 or not txs:
            kind = rng.choice(list(TransactionKind))
            store.create_transaction(
                kind,
                round(rng.uniform(0.01, 5000), 2),
                rng.choice(currencies),
                dt.date(2026, rng.randint(1, 12), rng.randint(1, 28)),
                rng.choice(["Food", "Rent", "food", "Salario"]),
                None,
                rng.choice(account_ids),
            )
        elif op < 0.8:
            tx = rng.choice(txs)
            store.update_transaction(
                tx.id,
                amount=rng.choice([tx.amount, round(rng.uniform(0.01, 5000), 2)]),
                currency=rng.choice([tx.currency, rng.choice(currencies)]),
                date=tx.date,
                category=tx.category,
                account_id=rng.choice([tx.account_id] + account_ids),
            )
        else:
            store.delete_transaction(rng.choice(txs).id)

        for acc_id, bal in initial.items():
            assert store.require_account(acc_id).balance == pytest.approx(
                expected_balance(store, acc_id, bal), rel=1e-9, abs=1e-3
            )


def test_snapshot_round_trip_is_exact(store: LedgerStore, converter: CurrencyConverter):
    a = store.create_account("A", 1000, Currency.USD)
    store.create_expense(12.34, Currency.COP, D, "Food", account_id=a.id)
    store.create_income(5, Currency.USD, D, "Regalo")

    clone = LedgerStore.from_snapshot(store.snapshot(), converter)

    assert clone.list_accounts() == store.list_accounts()
    assert clone.list_transactions() == store.list_transactions()

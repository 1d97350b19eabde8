from __future__ import annotations

import dataclasses
import datetime as dt
import logging
import math
import threading
from typing import Optional
from uuid import UUID

from fintrack.domain.account import Account, normalize_description, normalize_name
from fintrack.domain.money import Currency, parse_amount, parse_currency
from fintrack.domain.snapshot import LedgerSnapshot
from fintrack.domain.transaction import Transaction, TransactionKind
from fintrack.engine.currency_converter import CurrencyConverter
from fintrack.errors import ConstraintViolation, NotFoundError, ValidationError
from fintrack.services.transaction_query_service import TransactionFilter, apply_transaction_filter

logger = logging.getLogger(__name__)

_UNSET = object()


class LedgerStore:
    """
    Collection en mémoire, unique et autoritaire, des comptes et transactions.

    C'est le seul composant autorisé à modifier Account.balance. Pour chaque compte :
        balance == solde initial - sum(dépenses converties) + sum(revenus convertis)
    sur les transactions actuellement liées au compte.

    Les comptes et transactions sont des objets immuables : chaque mutation remplace
    l'objet stocké, et les appelants ne reçoivent que des valeurs. Toutes les
    opérations publiques passent par un verrou unique (accès concurrent depuis l'API).
    """

    def __init__(self, converter: CurrencyConverter) -> None:
        self._converter = converter
        self._accounts: dict[UUID, Account] = {}
        self._transactions: dict[UUID, Transaction] = {}
        self._lock = threading.RLock()

    @property
    def converter(self) -> CurrencyConverter:
        return self._converter

    # ---------- snapshot ----------
    @classmethod
    def from_snapshot(cls, snapshot: LedgerSnapshot, converter: CurrencyConverter) -> "LedgerStore":
        store = cls(converter)
        store.restore(snapshot)
        return store

    def restore(self, snapshot: LedgerSnapshot) -> None:
        """Remplace tout l'état par le snapshot (tel quel, sans rejouer les soldes)."""
        accounts: dict[UUID, Account] = {}
        for acc in snapshot.accounts:
            if acc.id in accounts:
                raise ValidationError(f"duplicate account id '{acc.id}' in snapshot")
            accounts[acc.id] = acc
        transactions: dict[UUID, Transaction] = {}
        for tx in snapshot.transactions:
            if tx.id in transactions:
                raise ValidationError(f"duplicate transaction id '{tx.id}' in snapshot")
            transactions[tx.id] = tx

        with self._lock:
            self._accounts = accounts
            self._transactions = transactions

    def snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot(
                accounts=list(self._accounts.values()),
                transactions=list(self._transactions.values()),
            )

    # ---------- accounts ----------
    def create_account(
        self,
        name: str,
        balance: float | int | str,
        currency: Currency | str,
        description: Optional[str] = None,
    ) -> Account:
        account = Account.create(name=name, balance=balance, currency=currency, description=description)
        with self._lock:
            # uuid4 : collision improbable, mais un id ne doit jamais servir deux fois
            if account.id in self._accounts:
                raise ValidationError(f"account id '{account.id}' already exists")
            self._accounts[account.id] = account
        logger.info("Account created id=%s currency=%s", account.id, account.currency.value)
        return account

    def list_accounts(self) -> list[Account]:
        with self._lock:
            return list(self._accounts.values())

    def get_account(self, account_id: UUID) -> Account | None:
        with self._lock:
            return self._accounts.get(account_id)

    def require_account(self, account_id: UUID) -> Account:
        acc = self.get_account(account_id)
        if acc is None:
            raise NotFoundError("account", account_id)
        return acc

    def update_account(
        self,
        account_id: UUID,
        *,
        name: Optional[str] = None,
        balance: float | int | str | None = None,
        currency: Currency | str | None = None,
        description: object = _UNSET,
    ) -> Account:
        """
        Applique les champs fournis. Le solde est directement modifiable (correction
        du solde initial) : il n'est pas recalculé depuis les transactions.
        """
        with self._lock:
            acc = self.require_account(account_id)

            changes: dict[str, object] = {}
            if name is not None:
                changes["name"] = normalize_name(name)
            if balance is not None:
                changes["balance"] = parse_amount(balance)
            if currency is not None:
                changes["currency"] = parse_currency(currency)
            if description is not _UNSET:
                changes["description"] = normalize_description(description)  # type: ignore[arg-type]

            if "balance" in changes and self._has_linked_transactions(acc.id):
                logger.warning(
                    "Balance of account id=%s overwritten while transactions are linked to it", acc.id
                )

            updated = dataclasses.replace(acc, **changes)
            self._accounts[acc.id] = updated

        logger.info("Account updated id=%s fields=%s", account_id, sorted(changes))
        return updated

    def delete_account(self, account_id: UUID) -> None:
        with self._lock:
            acc = self.require_account(account_id)
            linked = sum(1 for t in self._transactions.values() if t.account_id == acc.id)
            if linked:
                raise ConstraintViolation(
                    f"Cannot delete account '{acc.name}': {linked} transaction(s) still reference it. "
                    "Delete those transactions first."
                )
            del self._accounts[acc.id]
        logger.info("Account deleted id=%s", account_id)

    # ---------- transactions ----------
    def create_transaction(
        self,
        kind: TransactionKind,
        amount: float | int | str,
        currency: Currency | str,
        date: dt.date,
        category: str,
        description: Optional[str] = None,
        account_id: Optional[UUID] = None,
    ) -> Transaction:
        tx = Transaction.create(
            kind=kind,
            amount=amount,
            currency=currency,
            date=date,
            category=category,
            description=description,
            account_id=account_id,
        )
        with self._lock:
            if tx.id in self._transactions:
                raise ValidationError(f"transaction id '{tx.id}' already exists")

            acc = self._linked_account(tx.account_id)
            if acc is not None:
                self._set_balance(acc, acc.balance + self._balance_effect(tx, acc))

            self._transactions[tx.id] = tx

        logger.info("Transaction created id=%s kind=%s account_id=%s", tx.id, tx.kind.value, tx.account_id)
        return tx

    def create_expense(
        self,
        amount: float | int | str,
        currency: Currency | str,
        date: dt.date,
        category: str,
        description: Optional[str] = None,
        account_id: Optional[UUID] = None,
    ) -> Transaction:
        return self.create_transaction(
            TransactionKind.EXPENSE, amount, currency, date, category, description, account_id
        )

    def create_income(
        self,
        amount: float | int | str,
        currency: Currency | str,
        date: dt.date,
        income_type: str,
        description: Optional[str] = None,
        account_id: Optional[UUID] = None,
    ) -> Transaction:
        return self.create_transaction(
            TransactionKind.INCOME, amount, currency, date, income_type, description, account_id
        )

    def get_transaction(self, tx_id: UUID) -> Transaction | None:
        with self._lock:
            return self._transactions.get(tx_id)

    def require_transaction(self, tx_id: UUID) -> Transaction:
        tx = self.get_transaction(tx_id)
        if tx is None:
            raise NotFoundError("transaction", tx_id)
        return tx

    def list_transactions(self, tx_filter: Optional[TransactionFilter] = None) -> list[Transaction]:
        with self._lock:
            items = list(self._transactions.values())
        return apply_transaction_filter(items, tx_filter or TransactionFilter())

    def update_transaction(
        self,
        tx_id: UUID,
        *,
        amount: float | int | str,
        currency: Currency | str,
        date: dt.date,
        category: str,
        description: Optional[str] = None,
        account_id: Optional[UUID] = None,
    ) -> Transaction:
        with self._lock:
            old = self.require_transaction(tx_id)

            # validation complète avant toute mutation
            new = Transaction.create(
                id=old.id,
                kind=old.kind,
                amount=amount,
                currency=currency,
                date=date,
                category=category,
                description=description,
                account_id=account_id,
                created_at=old.created_at,
            )

            old_acc = self._linked_account(old.account_id)
            new_acc = self._linked_account(new.account_id)
            money_changed = new.amount != old.amount or new.currency != old.currency

            pending: list[tuple[Account, float]] = []
            if old.account_id == new.account_id:
                # même compte : un seul delta net, pas d'aller-retour sur le solde
                if old_acc is not None and money_changed:
                    delta = self._balance_effect(new, old_acc) - self._balance_effect(old, old_acc)
                    pending.append((old_acc, old_acc.balance + delta))
            else:
                if old_acc is not None:
                    pending.append((old_acc, old_acc.balance - self._balance_effect(old, old_acc)))
                if new_acc is not None:
                    pending.append((new_acc, new_acc.balance + self._balance_effect(new, new_acc)))

            for acc, balance in pending:
                self._check_balance(acc, balance)
            for acc, balance in pending:
                self._set_balance(acc, balance)

            self._transactions[new.id] = new

        logger.info(
            "Transaction updated id=%s account_id=%s->%s", tx_id, old.account_id, new.account_id
        )
        return new

    def delete_transaction(self, tx_id: UUID) -> None:
        with self._lock:
            tx = self.require_transaction(tx_id)
            acc = self._linked_account(tx.account_id)
            if acc is not None:
                self._set_balance(acc, acc.balance - self._balance_effect(tx, acc))
            del self._transactions[tx.id]
        logger.info("Transaction deleted id=%s", tx_id)

    # ---------- internals ----------
    def _linked_account(self, account_id: Optional[UUID]) -> Account | None:
        if account_id is None:
            return None
        acc = self._accounts.get(account_id)
        if acc is None:
            logger.debug("Transaction references unknown account id=%s, no balance effect", account_id)
        return acc

    def _has_linked_transactions(self, account_id: UUID) -> bool:
        return any(t.account_id == account_id for t in self._transactions.values())

    def _balance_effect(self, tx: Transaction, acc: Account) -> float:
        # montant signé (dépense < 0, revenu > 0) exprimé dans la devise du compte
        return self._converter.convert(tx.signed_amount, tx.currency, acc.currency)

    @staticmethod
    def _check_balance(acc: Account, balance: float) -> None:
        if not math.isfinite(balance):
            raise ValidationError(f"balance of account '{acc.id}' would not be finite")

    def _set_balance(self, acc: Account, balance: float) -> None:
        self._check_balance(acc, balance)
        self._accounts[acc.id] = dataclasses.replace(acc, balance=balance)

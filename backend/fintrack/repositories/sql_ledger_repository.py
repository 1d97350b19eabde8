from __future__ import annotations

import datetime as dt
from uuid import UUID

from sqlalchemy import Date, DateTime, Float, Integer, String, delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Mapped, mapped_column

from fintrack.db import init_db, make_session_factory
from fintrack.db_base import Base
from fintrack.domain.account import Account
from fintrack.domain.money import Currency
from fintrack.domain.snapshot import LedgerSnapshot
from fintrack.domain.transaction import Transaction, TransactionKind
from fintrack.repositories.ledger_repository import LedgerRepository


class AccountRow(Base):
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    balance: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class TransactionRow(Base):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, index=True, nullable=False)
    category: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    # pas de ForeignKey : les liens compte/transaction sont vérifiés par le LedgerStore
    account_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)


def _as_utc(value: dt.datetime) -> dt.datetime:
    # sqlite ne conserve pas le fuseau : les valeurs écrites sont en UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


class SqlLedgerRepository(LedgerRepository):
    """
    Snapshot SQL : save() remplace le contenu des deux tables dans une seule transaction.
    `position` conserve l'ordre d'insertion du store.
    """

    def __init__(self, *, engine: Engine) -> None:
        # ensure tables exist (V1 simple)
        init_db(engine)
        self._session_factory = make_session_factory(engine)

    def load(self) -> LedgerSnapshot:
        with self._session_factory() as s:
            acc_rows = s.execute(select(AccountRow).order_by(AccountRow.position.asc())).scalars().all()
            tx_rows = s.execute(select(TransactionRow).order_by(TransactionRow.position.asc())).scalars().all()

            return LedgerSnapshot(
                accounts=[self._account_to_domain(r) for r in acc_rows],
                transactions=[self._tx_to_domain(r) for r in tx_rows],
            )

    def save(self, snapshot: LedgerSnapshot) -> None:
        with self._session_factory() as s:
            s.execute(delete(TransactionRow))
            s.execute(delete(AccountRow))

            for i, acc in enumerate(snapshot.accounts):
                s.add(
                    AccountRow(
                        id=str(acc.id),
                        position=i,
                        name=acc.name,
                        balance=acc.balance,
                        currency=acc.currency.value,
                        description=acc.description,
                        created_at=acc.created_at,
                    )
                )

            for i, tx in enumerate(snapshot.transactions):
                s.add(
                    TransactionRow(
                        id=str(tx.id),
                        position=i,
                        kind=tx.kind.value,
                        amount=tx.amount,
                        currency=tx.currency.value,
                        date=tx.date,
                        category=tx.category,
                        description=tx.description,
                        account_id=str(tx.account_id) if tx.account_id else None,
                        created_at=tx.created_at,
                    )
                )

            s.commit()

    @staticmethod
    def _account_to_domain(row: AccountRow) -> Account:
        return Account.create(
            id=UUID(row.id),
            name=row.name,
            balance=row.balance,
            currency=Currency(row.currency),
            description=row.description,
            created_at=_as_utc(row.created_at),
        )

    @staticmethod
    def _tx_to_domain(row: TransactionRow) -> Transaction:
        return Transaction.create(
            id=UUID(row.id),
            kind=TransactionKind(row.kind),
            amount=row.amount,
            currency=Currency(row.currency),
            date=row.date,
            category=row.category,
            description=row.description,
            account_id=UUID(row.account_id) if row.account_id else None,
            created_at=_as_utc(row.created_at),
        )

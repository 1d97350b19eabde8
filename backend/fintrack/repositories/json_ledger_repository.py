from __future__ import annotations

import json
import datetime as dt
from pathlib import Path
from uuid import UUID

from fintrack.domain.account import Account
from fintrack.domain.money import Currency
from fintrack.domain.snapshot import LedgerSnapshot
from fintrack.domain.transaction import Transaction, TransactionKind
from fintrack.repositories.ledger_repository import LedgerRepository


class JsonLedgerRepository(LedgerRepository):
    """
    Snapshot complet du ledger dans un seul fichier JSON :
    {"version": 1, "accounts": [...], "transactions": [...]}
    Écriture atomique (fichier .tmp puis replace).
    """

    def __init__(self, *, ledger_path: Path) -> None:
        self._path = ledger_path

    def load(self) -> LedgerSnapshot:
        if not self._path.exists():
            # bootstrap contrôlé : pas encore de fichier == ledger vide
            return LedgerSnapshot()

        payload = self._read_file()

        accounts: list[Account] = []
        seen_accounts: set[UUID] = set()
        for i, rec in enumerate(payload["accounts"]):
            acc = self._account_from_record(rec, ctx=f"accounts[{i}]")
            if acc.id in seen_accounts:
                raise ValueError(f"ledger.json: duplicate account id '{acc.id}'")
            seen_accounts.add(acc.id)
            accounts.append(acc)

        transactions: list[Transaction] = []
        seen_txs: set[UUID] = set()
        for i, rec in enumerate(payload["transactions"]):
            tx = self._tx_from_record(rec, ctx=f"transactions[{i}]")
            if tx.id in seen_txs:
                raise ValueError(f"ledger.json: duplicate transaction id '{tx.id}'")
            seen_txs.add(tx.id)
            transactions.append(tx)

        return LedgerSnapshot(accounts=accounts, transactions=transactions)

    def save(self, snapshot: LedgerSnapshot) -> None:
        payload = {
            "version": 1,
            "accounts": [self._account_to_record(a) for a in snapshot.accounts],
            "transactions": [self._tx_to_record(t) for t in snapshot.transactions],
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2) + "\n",
            encoding="utf-8",
        )
        tmp_path.replace(self._path)

    # ---------- helpers ----------
    def _read_file(self) -> dict:
        raw = self._path.read_text(encoding="utf-8")
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"ledger.json: invalid JSON ({e})") from e

        if not isinstance(payload, dict):
            raise ValueError("ledger.json: root must be an object")

        if payload.get("version") != 1:
            raise ValueError("ledger.json: version must be 1")

        for key in ("accounts", "transactions"):
            if key not in payload or not isinstance(payload[key], list):
                raise ValueError(f"ledger.json: '{key}' must be a list")

        return payload

    @staticmethod
    def _account_to_record(acc: Account) -> dict:
        return {
            "id": str(acc.id),
            "name": acc.name,
            # float JSON natif : aucune perte au rechargement
            "balance": acc.balance,
            "currency": acc.currency.value,
            "description": acc.description,
            "created_at": acc.created_at.isoformat(),
        }

    @staticmethod
    def _tx_to_record(tx: Transaction) -> dict:
        return {
            "id": str(tx.id),
            "kind": tx.kind.value,
            "amount": tx.amount,
            "currency": tx.currency.value,
            "date": tx.date.isoformat(),
            "category": tx.category,
            "description": tx.description,
            "account_id": str(tx.account_id) if tx.account_id else None,
            "created_at": tx.created_at.isoformat(),
        }

    def _account_from_record(self, rec: object, *, ctx: str) -> Account:
        if not isinstance(rec, dict):
            raise ValueError(f"ledger.json: {ctx} must be an object")
        try:
            return Account.create(
                id=UUID(self._require_str(rec, "id", ctx=ctx)),
                name=self._require_str(rec, "name", ctx=ctx),
                balance=self._require_number(rec, "balance", ctx=ctx),
                currency=Currency(self._require_str(rec, "currency", ctx=ctx)),
                description=self._optional_str(rec, "description", ctx=ctx),
                created_at=self._parse_datetime(self._require_str(rec, "created_at", ctx=ctx), ctx=ctx),
            )
        except ValueError as e:
            raise ValueError(f"ledger.json: {ctx}: {e}") from e

    def _tx_from_record(self, rec: object, *, ctx: str) -> Transaction:
        if not isinstance(rec, dict):
            raise ValueError(f"ledger.json: {ctx} must be an object")
        try:
            account_raw = self._optional_str(rec, "account_id", ctx=ctx)
            return Transaction.create(
                id=UUID(self._require_str(rec, "id", ctx=ctx)),
                kind=TransactionKind(self._require_str(rec, "kind", ctx=ctx)),
                amount=self._require_number(rec, "amount", ctx=ctx),
                currency=Currency(self._require_str(rec, "currency", ctx=ctx)),
                date=dt.date.fromisoformat(self._require_str(rec, "date", ctx=ctx)),
                category=self._require_str(rec, "category", ctx=ctx),
                description=self._optional_str(rec, "description", ctx=ctx),
                account_id=UUID(account_raw) if account_raw else None,
                created_at=self._parse_datetime(self._require_str(rec, "created_at", ctx=ctx), ctx=ctx),
            )
        except ValueError as e:
            raise ValueError(f"ledger.json: {ctx}: {e}") from e

    @staticmethod
    def _require_str(obj: dict, key: str, *, ctx: str) -> str:
        if key not in obj:
            raise ValueError(f"missing field '{key}'")
        val = obj[key]
        if not isinstance(val, str):
            raise ValueError(f"{ctx}.{key} must be a string")
        return val

    @staticmethod
    def _optional_str(obj: dict, key: str, *, ctx: str) -> str | None:
        val = obj.get(key)
        if val is not None and not isinstance(val, str):
            raise ValueError(f"{ctx}.{key} must be null or a string")
        return val

    @staticmethod
    def _require_number(obj: dict, key: str, *, ctx: str) -> float:
        if key not in obj:
            raise ValueError(f"missing field '{key}'")
        val = obj[key]
        if isinstance(val, bool) or not isinstance(val, (int, float)):
            raise ValueError(f"{ctx}.{key} must be a number")
        return float(val)

    @staticmethod
    def _parse_datetime(value: str, *, ctx: str) -> dt.datetime:
        try:
            out = dt.datetime.fromisoformat(value)
        except ValueError as e:
            raise ValueError(f"{ctx}.created_at must be an ISO datetime") from e
        if out.tzinfo is None:
            raise ValueError(f"{ctx}.created_at must be timezone-aware")
        return out

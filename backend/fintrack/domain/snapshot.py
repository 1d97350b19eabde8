from __future__ import annotations

from dataclasses import dataclass, field

from fintrack.domain.account import Account
from fintrack.domain.transaction import Transaction


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    Photo complète du ledger (comptes + transactions).
    Les soldes sont stockés tels quels : recharger un snapshot ne rejoue aucune logique.
    """
    accounts: list[Account] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)

from __future__ import annotations

from abc import ABC, abstractmethod

from fintrack.domain.snapshot import LedgerSnapshot


class LedgerRepository(ABC):
    @abstractmethod
    def load(self) -> LedgerSnapshot: ...

    @abstractmethod
    def save(self, snapshot: LedgerSnapshot) -> None: ...

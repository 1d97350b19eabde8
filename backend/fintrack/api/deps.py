from __future__ import annotations

import datetime as dt
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional

from fastapi import Request

from fintrack.db import get_engine
from fintrack.domain.money import Currency
from fintrack.engine.currency_converter import CurrencyConverter, RateProvider
from fintrack.engine.summary import SummaryEngine
from fintrack.errors import PersistenceError
from fintrack.providers.exchange_rate_provider import HttpExchangeRateProvider
from fintrack.repositories.json_ledger_repository import JsonLedgerRepository
from fintrack.repositories.ledger_repository import LedgerRepository
from fintrack.repositories.sql_ledger_repository import SqlLedgerRepository
from fintrack.services.ledger_store import LedgerStore
from fintrack.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class LedgerContext:
    """
    Tout ce dont les routes ont besoin, construit une fois au démarrage
    (remplace le singleton global de l'app d'origine).
    """
    store: LedgerStore
    repository: Optional[LedgerRepository] = None
    rate_provider: Optional[RateProvider] = None
    display_currency: Currency = Currency.COP
    _persist_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def converter(self) -> CurrencyConverter:
        return self.store.converter

    @property
    def summary(self) -> SummaryEngine:
        return SummaryEngine(self.store, self.store.converter)

    @contextmanager
    def mutation(self) -> Iterator[None]:
        """
        Encadre une mutation du store : le snapshot complet est sauvegardé à la sortie.
        Si la sauvegarde échoue, l'état d'avant est restauré et PersistenceError est levée.
        """
        if self.repository is None:
            yield
            return

        # mutations sérialisées : un rollback ne peut pas effacer une mutation concurrente
        with self._persist_lock:
            before = self.store.snapshot()
            yield
            try:
                self.repository.save(self.store.snapshot())
            except Exception as e:
                self.store.restore(before)
                logger.error("Ledger save failed, change rolled back", exc_info=True)
                raise PersistenceError("Ledger could not be saved; the change was not applied") from e

    def refresh_rates_if_stale(self) -> bool:
        if self.rate_provider is None:
            return False
        return self.converter.refresh_if_stale(self.rate_provider)

    def start_rate_refresh(self) -> Optional[threading.Thread]:
        """Lance le rafraîchissement des taux dans un thread daemon, sans l'attendre."""
        if self.rate_provider is None or not self.converter.refresh_due():
            return None
        thread = threading.Thread(target=self.refresh_rates_if_stale, name="fintrack-rate-refresh", daemon=True)
        thread.start()
        return thread


def build_repository(settings: Settings) -> Optional[LedgerRepository]:
    if settings.storage == "json":
        return JsonLedgerRepository(ledger_path=settings.data_dir / "ledger.json")
    if settings.storage == "sql":
        return SqlLedgerRepository(engine=get_engine())
    return None


def build_context(settings: Settings) -> LedgerContext:
    converter = CurrencyConverter(refresh_interval=dt.timedelta(hours=settings.rate_refresh_hours))

    repository = build_repository(settings)
    if repository is not None:
        store = LedgerStore.from_snapshot(repository.load(), converter)
        logger.info(
            "Ledger loaded from %s storage (%d accounts, %d transactions)",
            settings.storage,
            len(store.list_accounts()),
            len(store.list_transactions()),
        )
    else:
        store = LedgerStore(converter)

    rate_provider = None
    if settings.rate_refresh_hours > 0:
        rate_provider = HttpExchangeRateProvider(url=settings.rate_url)

    return LedgerContext(
        store=store,
        repository=repository,
        rate_provider=rate_provider,
        display_currency=settings.display_currency,
    )


def get_ledger(request: Request) -> LedgerContext:
    return request.app.state.ledger

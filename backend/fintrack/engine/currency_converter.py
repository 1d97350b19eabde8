from __future__ import annotations

import datetime as dt
import logging
import math
import threading
from typing import Mapping, Optional, Protocol

from fintrack.domain.money import Currency
from fintrack.errors import ValidationError

logger = logging.getLogger(__name__)

RateKey = tuple[Currency, Currency]

DEFAULT_RATES: dict[RateKey, float] = {
    (Currency.USD, Currency.COP): 4000.0,
    (Currency.COP, Currency.USD): 0.00025,
}

DEFAULT_REFRESH_INTERVAL = dt.timedelta(hours=24)
# délai minimal entre deux tentatives après un échec du provider
DEFAULT_RETRY_INTERVAL = dt.timedelta(hours=1)


class RateProvider(Protocol):
    def fetch(self) -> Mapping[RateKey, float]: ...


def _check_rate(key: RateKey, rate: float) -> float:
    src, dst = key
    if not isinstance(src, Currency) or not isinstance(dst, Currency):
        raise ValidationError("rate key must be a (Currency, Currency) pair")
    if src == dst:
        raise ValidationError("rate key must use two different currencies")
    if isinstance(rate, bool):
        raise ValidationError(f"invalid rate for {src.value}->{dst.value}: {rate!r}")
    try:
        value = float(rate)
    except (TypeError, ValueError):
        raise ValidationError(f"invalid rate for {src.value}->{dst.value}: {rate!r}")
    if not math.isfinite(value) or value <= 0:
        raise ValidationError(f"rate for {src.value}->{dst.value} must be finite and > 0")
    return value


class CurrencyConverter:
    """
    Conversion de montants entre devises via une table de taux dirigés.

    Politique de résolution :
    - même devise -> montant inchangé (exact)
    - taux direct (from, to) -> amount * rate
    - taux inverse (to, from) -> amount / rate
    - sinon -> montant inchangé (dégradation silencieuse, jamais d'exception)
    """

    def __init__(
        self,
        rates: Optional[Mapping[RateKey, float]] = None,
        *,
        refresh_interval: dt.timedelta = DEFAULT_REFRESH_INTERVAL,
        retry_interval: dt.timedelta = DEFAULT_RETRY_INTERVAL,
        last_updated: Optional[dt.datetime] = None,
    ) -> None:
        source = DEFAULT_RATES if rates is None else rates
        self._rates: dict[RateKey, float] = {k: _check_rate(k, v) for k, v in source.items()}
        self._refresh_interval = refresh_interval
        self._retry_interval = retry_interval
        self._last_updated = last_updated
        self._last_attempt: Optional[dt.datetime] = None
        self._lock = threading.Lock()
        # un seul appel provider à la fois
        self._refresh_lock = threading.Lock()

    @property
    def last_updated(self) -> Optional[dt.datetime]:
        return self._last_updated

    @property
    def last_attempt(self) -> Optional[dt.datetime]:
        return self._last_attempt

    @property
    def refresh_interval(self) -> dt.timedelta:
        return self._refresh_interval

    def rates(self) -> dict[RateKey, float]:
        with self._lock:
            return dict(self._rates)

    def rate(self, from_currency: Currency, to_currency: Currency) -> Optional[float]:
        """Facteur effectif from -> to, ou None si la paire n'est pas résoluble."""
        if from_currency == to_currency:
            return 1.0
        with self._lock:
            direct = self._rates.get((from_currency, to_currency))
            if direct is not None:
                return direct
            inverse = self._rates.get((to_currency, from_currency))
            if inverse is not None:
                return 1.0 / inverse
        return None

    def convert(self, amount: float, from_currency: Currency, to_currency: Currency) -> float:
        if from_currency == to_currency:
            return amount

        with self._lock:
            direct = self._rates.get((from_currency, to_currency))
            inverse = self._rates.get((to_currency, from_currency))

        if direct is not None:
            return amount * direct
        if inverse is not None:
            return amount / inverse

        logger.debug(
            "No rate for %s->%s, amount left unconverted",
            getattr(from_currency, "value", from_currency),
            getattr(to_currency, "value", to_currency),
        )
        return amount

    def set_rate(self, from_currency: Currency, to_currency: Currency, rate: float) -> None:
        key = (from_currency, to_currency)
        value = _check_rate(key, rate)
        with self._lock:
            self._rates[key] = value

    # ---------- refresh ----------
    def is_stale(self, now: Optional[dt.datetime] = None) -> bool:
        if self._refresh_interval <= dt.timedelta(0):
            return False
        if self._last_updated is None:
            return True
        current = now or dt.datetime.now(dt.timezone.utc)
        return current - self._last_updated > self._refresh_interval

    def refresh_due(self, now: Optional[dt.datetime] = None) -> bool:
        """Table périmée et aucune tentative récente (réussie ou non)."""
        current = now or dt.datetime.now(dt.timezone.utc)
        if not self.is_stale(current):
            return False
        attempt = self._last_attempt
        return attempt is None or current - attempt >= self._retry_interval

    def refresh(self, provider: RateProvider, *, now: Optional[dt.datetime] = None) -> bool:
        """
        Fusionne les taux du provider dans la table.
        Toute erreur est journalisée puis ignorée : la table précédente est conservée.
        La tentative est datée dans tous les cas (voir refresh_due).
        """
        current = now or dt.datetime.now(dt.timezone.utc)
        with self._lock:
            self._last_attempt = current

        try:
            fetched = provider.fetch()
            fresh = {k: _check_rate(k, v) for k, v in fetched.items()}
        except Exception:
            logger.warning("Exchange rate refresh failed, keeping previous table", exc_info=True)
            return False

        if not fresh:
            logger.warning("Exchange rate provider returned no usable rate")
            return False

        with self._lock:
            self._rates.update(fresh)
            self._last_updated = current

        logger.info("Exchange rates refreshed (%d pairs)", len(fresh))
        return True

    def refresh_if_stale(self, provider: RateProvider, *, now: Optional[dt.datetime] = None) -> bool:
        if not self.refresh_due(now):
            return False
        # un rafraîchissement est déjà en cours : on ne double pas l'appel réseau
        if not self._refresh_lock.acquire(blocking=False):
            return False
        try:
            if not self.refresh_due(now):
                return False
            return self.refresh(provider, now=now)
        finally:
            self._refresh_lock.release()

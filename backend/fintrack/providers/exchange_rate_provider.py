from __future__ import annotations

import json
import logging
import time
from typing import Mapping
from urllib.request import Request, urlopen

from fintrack.domain.money import Currency
from fintrack.engine.currency_converter import RateKey
from fintrack.errors import RateProviderError

logger = logging.getLogger(__name__)


def rates_from_payload(payload: object) -> dict[RateKey, float]:
    """
    Payload attendu (format open.er-api.com) :
    {"result": "success", "base_code": "USD", "rates": {"COP": 4012.5, "EUR": 0.92, ...}}

    On ne garde que les devises supportées, dans les deux sens.
    """
    if not isinstance(payload, dict):
        raise RateProviderError("rate payload must be an object")

    if payload.get("result", "success") != "success":
        raise RateProviderError(f"rate provider answered result={payload.get('result')!r}")

    base_raw = payload.get("base_code") or payload.get("base")
    try:
        base = Currency(str(base_raw).upper())
    except ValueError:
        raise RateProviderError(f"unsupported base currency {base_raw!r}")

    raw_rates = payload.get("rates")
    if not isinstance(raw_rates, dict):
        raise RateProviderError("rate payload missing 'rates' object")

    out: dict[RateKey, float] = {}
    for code, value in raw_rates.items():
        try:
            cur = Currency(str(code).upper())
        except ValueError:
            continue
        if cur == base:
            continue
        if isinstance(value, bool):
            continue
        try:
            rate = float(value)
        except (TypeError, ValueError):
            continue
        if rate <= 0:
            continue
        out[(base, cur)] = rate
        out[(cur, base)] = 1.0 / rate

    return out


class HttpExchangeRateProvider:
    def __init__(self, *, url: str, timeout_sec: int = 15, retries: int = 3, backoff_sec: float = 1.0) -> None:
        self._url = url
        self._timeout = timeout_sec
        self._retries = retries
        self._backoff = backoff_sec

    def fetch(self) -> dict[RateKey, float]:
        last_err: Exception | None = None
        for attempt in range(1, self._retries + 1):
            try:
                req = Request(self._url, headers={"Accept": "application/json", "User-Agent": "fintrack/0.1"})
                with urlopen(req, timeout=self._timeout) as resp:
                    payload = json.loads(resp.read().decode("utf-8"))
                return rates_from_payload(payload)
            except RateProviderError:
                # réponse lisible mais inexploitable : inutile de réessayer
                raise
            except Exception as e:
                last_err = e
                logger.debug("Rate fetch attempt %d/%d failed: %s", attempt, self._retries, e)
                if attempt < self._retries:
                    time.sleep(self._backoff * attempt)

        raise RateProviderError(f"rate provider unreachable after {self._retries} attempts: {last_err}")


class StaticRateProvider:
    """Provider hors-ligne : renvoie toujours la même table."""

    def __init__(self, rates: Mapping[RateKey, float]) -> None:
        self._rates = dict(rates)

    def fetch(self) -> dict[RateKey, float]:
        return dict(self._rates)

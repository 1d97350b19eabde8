from __future__ import annotations

import logging

from fintrack.engine.currency_converter import CurrencyConverter
from fintrack.providers.exchange_rate_provider import HttpExchangeRateProvider
from fintrack.settings import get_settings


def main() -> int:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    converter = CurrencyConverter()
    ok = converter.refresh(HttpExchangeRateProvider(url=settings.rate_url))
    for (src, dst), rate in sorted(converter.rates().items(), key=lambda kv: (kv[0][0].value, kv[0][1].value)):
        print(f"{src.value}->{dst.value} {rate}")
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())

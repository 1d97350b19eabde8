from __future__ import annotations

import datetime as dt

from fintrack.api.deps import build_repository
from fintrack.engine.currency_converter import CurrencyConverter
from fintrack.services.ledger_store import LedgerStore
from fintrack.services.sample_data import seed_sample_data
from fintrack.settings import get_settings


def main() -> int:
    settings = get_settings()
    repo = build_repository(settings)
    if repo is None:
        print("FINTRACK_STORAGE=memory: nothing to seed (set json or sql)")
        return 1

    converter = CurrencyConverter(refresh_interval=dt.timedelta(hours=settings.rate_refresh_hours))
    store = LedgerStore.from_snapshot(repo.load(), converter)
    res = seed_sample_data(store)
    repo.save(store.snapshot())
    print(res)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from fintrack.domain.money import Currency

_STORAGES = ("memory", "json", "sql")


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    storage: str
    database_url: str | None
    display_currency: Currency
    rate_url: str
    rate_refresh_hours: float
    log_level: str


def _env(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def get_settings() -> Settings:
    # 1) env var
    env = _env("FINTRACK_DATA_DIR")
    if env:
        data_dir = Path(env).expanduser()
    else:
        # 2) default: backend/data
        # fintrack/settings.py -> fintrack/ -> backend/
        data_dir = Path(__file__).resolve().parents[1] / "data"

    storage = (_env("FINTRACK_STORAGE") or "memory").lower()
    if storage not in _STORAGES:
        raise ValueError(f"FINTRACK_STORAGE must be one of {_STORAGES} (got '{storage}')")

    # le dossier data n'est créé que si on persiste réellement quelque chose
    if storage != "memory":
        data_dir.mkdir(parents=True, exist_ok=True)

    cur = _env("FINTRACK_DISPLAY_CURRENCY") or Currency.COP.value
    try:
        display_currency = Currency(cur.upper())
    except ValueError:
        raise ValueError(f"FINTRACK_DISPLAY_CURRENCY invalid (got '{cur}')")

    hours_raw = _env("FINTRACK_RATE_REFRESH_HOURS") or "24"
    try:
        refresh_hours = float(hours_raw)
    except ValueError:
        raise ValueError(f"FINTRACK_RATE_REFRESH_HOURS must be a number (got '{hours_raw}')")
    if refresh_hours < 0:
        raise ValueError("FINTRACK_RATE_REFRESH_HOURS cannot be negative")

    return Settings(
        data_dir=data_dir,
        storage=storage,
        database_url=_env("FINTRACK_DATABASE_URL"),
        display_currency=display_currency,
        rate_url=_env("FINTRACK_RATE_URL") or "https://open.er-api.com/v6/latest/USD",
        rate_refresh_hours=refresh_hours,
        log_level=(_env("FINTRACK_LOG_LEVEL") or "INFO").upper(),
    )

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response

from fintrack.api.deps import LedgerContext, get_ledger
from fintrack.api.mappers.ledger_mapper import summary_to_response
from fintrack.api.schemas.summary import ExchangeRateResponse, MonthlySummaryResponse, RateEntry
from fintrack.domain.money import Currency
from fintrack.services.report_export_service import (
    XLSX_MEDIA_TYPE,
    export_monthly_report_csv,
    export_monthly_report_xlsx,
    report_filename,
)
from fintrack.services.transaction_query_service import TransactionFilter

logger = logging.getLogger(__name__)
router = APIRouter(tags=["summary"])


@router.get("/summary", response_model=MonthlySummaryResponse)
def monthly_summary(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=1, le=9999),
    currency: Currency | None = Query(default=None),
    ledger: LedgerContext = Depends(get_ledger),
) -> MonthlySummaryResponse:
    display = currency or ledger.display_currency
    return summary_to_response(ledger.summary.monthly_summary(month, year, display))


@router.get("/exchange-rate", response_model=ExchangeRateResponse)
def exchange_rate(
    background_tasks: BackgroundTasks,
    ledger: LedgerContext = Depends(get_ledger),
) -> ExchangeRateResponse:
    # table courante tout de suite ; si elle est périmée, rafraîchie après la réponse
    if ledger.rate_provider is not None and ledger.converter.refresh_due():
        background_tasks.add_task(ledger.refresh_rates_if_stale)

    conv = ledger.converter
    table = conv.rates()
    return ExchangeRateResponse(
        USD_TO_COP=conv.rate(Currency.USD, Currency.COP),
        COP_TO_USD=conv.rate(Currency.COP, Currency.USD),
        last_updated=conv.last_updated,
        rates=[
            RateEntry(from_currency=src, to_currency=dst, rate=rate)
            for (src, dst), rate in sorted(table.items(), key=lambda kv: (kv[0][0].value, kv[0][1].value))
        ],
    )


@router.get("/export/csv")
def export_csv(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=1, le=9999),
    currency: Currency | None = Query(default=None),
    ledger: LedgerContext = Depends(get_ledger),
) -> Response:
    display = currency or ledger.display_currency
    summary = ledger.summary.monthly_summary(month, year, display)
    txs = ledger.store.list_transactions(TransactionFilter(month=month, year=year))

    content = export_monthly_report_csv(summary, txs, converter=ledger.converter)
    logger.info("CSV report exported month=%d year=%d rows=%d", month, year, len(txs))

    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={report_filename(month, year)}"},
    )


@router.get("/export/excel")
def export_excel(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=1, le=9999),
    currency: Currency | None = Query(default=None),
    ledger: LedgerContext = Depends(get_ledger),
) -> Response:
    display = currency or ledger.display_currency
    summary = ledger.summary.monthly_summary(month, year, display)
    txs = ledger.store.list_transactions(TransactionFilter(month=month, year=year))

    content = export_monthly_report_xlsx(summary, txs, converter=ledger.converter)
    logger.info("Excel report exported month=%d year=%d rows=%d", month, year, len(txs))

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={report_filename(month, year, 'xlsx')}"},
    )

from __future__ import annotations

import csv
import io
from typing import Sequence

from openpyxl import Workbook
from openpyxl.styles import Font

from fintrack.domain.transaction import Transaction
from fintrack.engine.currency_converter import CurrencyConverter
from fintrack.engine.summary import MonthlyFinancialSummary
from fintrack.services.transaction_query_service import month_bounds

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def report_filename(month: int, year: int, ext: str = "csv") -> str:
    return f"reporte_financiero_{month}_{year}.{ext}"


def _fmt(amount: float) -> str:
    return f"{amount:.2f}"


def _summary_rows(summary: MonthlyFinancialSummary) -> list[list]:
    return [
        ["total_expenses", summary.total_expenses],
        ["expense_count", summary.expense_count],
        ["total_incomes", summary.total_incomes],
        ["income_count", summary.income_count],
        ["net", summary.net],
    ]


def _category_rows(summary: MonthlyFinancialSummary) -> list[list]:
    # gros postes en haut, puis ordre alphabétique
    items = sorted(summary.expenses_by_category.items(), key=lambda kv: (-kv[1], kv[0].casefold()))
    return [[category, total] for category, total in items]


def _transaction_header(summary: MonthlyFinancialSummary) -> list[str]:
    return ["date", "kind", "category", "description", "amount", "currency", f"amount_{summary.currency.value}"]


def _transaction_rows(
    summary: MonthlyFinancialSummary,
    transactions: Sequence[Transaction],
    converter: CurrencyConverter,
) -> list[list]:
    first, last = month_bounds(summary.month, summary.year)
    rows = []
    for t in transactions:
        if not (first <= t.date <= last):
            continue
        rows.append(
            [
                t.date,
                t.kind.value,
                t.category,
                t.description or "",
                t.amount,
                t.currency.value,
                converter.convert(t.amount, t.currency, summary.currency),
            ]
        )
    return rows


def export_monthly_report_csv(
    summary: MonthlyFinancialSummary,
    transactions: Sequence[Transaction],
    *,
    converter: CurrencyConverter,
) -> str:
    """
    Rapport mensuel CSV en trois blocs :
    1) résumé (totaux), 2) dépenses par catégorie, 3) détail des transactions du mois.
    Les montants convertis sont exprimés dans summary.currency.
    """
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")

    w.writerow(["month", "year", "currency"])
    w.writerow([summary.month, summary.year, summary.currency.value])
    w.writerow([])

    w.writerow(["metric", "value"])
    for metric, value in _summary_rows(summary):
        w.writerow([metric, value if isinstance(value, int) else _fmt(value)])
    w.writerow([])

    w.writerow(["category", "total"])
    for category, total in _category_rows(summary):
        w.writerow([category, _fmt(total)])
    w.writerow([])

    w.writerow(_transaction_header(summary))
    for d, kind, category, description, amount, currency, converted in _transaction_rows(
        summary, transactions, converter
    ):
        w.writerow([d.isoformat(), kind, category, description, _fmt(amount), currency, _fmt(converted)])

    return buf.getvalue()


def export_monthly_report_xlsx(
    summary: MonthlyFinancialSummary,
    transactions: Sequence[Transaction],
    *,
    converter: CurrencyConverter,
) -> bytes:
    """
    Même rapport en classeur Excel : feuilles "Resumen", "Categorias", "Transacciones".
    Les montants restent numériques (format 0.00) pour pouvoir être recalculés.
    """
    wb = Workbook()
    bold = Font(bold=True)

    ws = wb.active
    ws.title = "Resumen"
    ws.append(["month", summary.month])
    ws.append(["year", summary.year])
    ws.append(["currency", summary.currency.value])
    for row in _summary_rows(summary):
        ws.append(row)
    for cell in ws["A"]:
        cell.font = bold

    ws = wb.create_sheet("Categorias")
    ws.append(["category", "total"])
    for row in _category_rows(summary):
        ws.append(row)

    ws = wb.create_sheet("Transacciones")
    ws.append(_transaction_header(summary))
    for row in _transaction_rows(summary, transactions, converter):
        ws.append(row)

    for sheet in wb.worksheets:
        if sheet.title != "Resumen":
            for cell in sheet[1]:
                cell.font = bold
        for row in sheet.iter_rows():
            for cell in row:
                if isinstance(cell.value, float):
                    cell.number_format = "0.00"
    wb["Transacciones"].column_dimensions["A"].width = 12

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from fintrack.api.deps import LedgerContext, get_ledger
from fintrack.api.mappers.ledger_mapper import income_to_response
from fintrack.api.routes.expenses import require_transaction_of_kind
from fintrack.api.schemas.transactions import IncomeResponse, IncomeWriteRequest
from fintrack.domain.transaction import TransactionKind
from fintrack.services.transaction_query_service import TransactionFilter

router = APIRouter(prefix="/incomes", tags=["incomes"])


@router.get("", response_model=list[IncomeResponse])
def list_incomes(
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=1, le=9999),
    income_type: str | None = Query(default=None, alias="type"),
    account_id: UUID | None = Query(default=None, alias="accountId"),
    ledger: LedgerContext = Depends(get_ledger),
) -> list[IncomeResponse]:
    tx_filter = TransactionFilter(
        month=month,
        year=year,
        category=income_type,
        account_id=account_id,
        kind=TransactionKind.INCOME,
    )
    return [income_to_response(t) for t in ledger.store.list_transactions(tx_filter)]


@router.post("", response_model=IncomeResponse, status_code=201)
def create_income(payload: IncomeWriteRequest, ledger: LedgerContext = Depends(get_ledger)) -> IncomeResponse:
    with ledger.mutation():
        tx = ledger.store.create_income(
            amount=payload.amount,
            currency=payload.currency,
            date=payload.date,
            income_type=payload.type,
            description=payload.description,
            account_id=payload.account_id,
        )
    return income_to_response(tx)


@router.get("/{tx_id}", response_model=IncomeResponse)
def get_income(tx_id: UUID, ledger: LedgerContext = Depends(get_ledger)) -> IncomeResponse:
    return income_to_response(require_transaction_of_kind(ledger, tx_id, TransactionKind.INCOME))


@router.put("/{tx_id}", response_model=IncomeResponse)
def update_income(
    tx_id: UUID,
    payload: IncomeWriteRequest,
    ledger: LedgerContext = Depends(get_ledger),
) -> IncomeResponse:
    require_transaction_of_kind(ledger, tx_id, TransactionKind.INCOME)
    with ledger.mutation():
        tx = ledger.store.update_transaction(
            tx_id,
            amount=payload.amount,
            currency=payload.currency,
            date=payload.date,
            category=payload.type,
            description=payload.description,
            account_id=payload.account_id,
        )
    return income_to_response(tx)


@router.delete("/{tx_id}", status_code=204)
def delete_income(tx_id: UUID, ledger: LedgerContext = Depends(get_ledger)) -> Response:
    require_transaction_of_kind(ledger, tx_id, TransactionKind.INCOME)
    with ledger.mutation():
        ledger.store.delete_transaction(tx_id)
    return Response(status_code=204)

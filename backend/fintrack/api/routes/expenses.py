from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from fintrack.api.deps import LedgerContext, get_ledger
from fintrack.api.mappers.ledger_mapper import expense_to_response
from fintrack.api.schemas.transactions import ExpenseResponse, ExpenseWriteRequest
from fintrack.domain.transaction import Transaction, TransactionKind
from fintrack.errors import NotFoundError
from fintrack.services.transaction_query_service import TransactionFilter

router = APIRouter(prefix="/expenses", tags=["expenses"])


def require_transaction_of_kind(ledger: LedgerContext, tx_id: UUID, kind: TransactionKind) -> Transaction:
    tx = ledger.store.get_transaction(tx_id)
    # un revenu n'est pas visible via /expenses (et inversement)
    if tx is None or tx.kind != kind:
        raise NotFoundError(kind.value.lower(), tx_id)
    return tx


@router.get("", response_model=list[ExpenseResponse])
def list_expenses(
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=1, le=9999),
    category: str | None = Query(default=None),
    account_id: UUID | None = Query(default=None, alias="accountId"),
    ledger: LedgerContext = Depends(get_ledger),
) -> list[ExpenseResponse]:
    tx_filter = TransactionFilter(
        month=month,
        year=year,
        category=category,
        account_id=account_id,
        kind=TransactionKind.EXPENSE,
    )
    return [expense_to_response(t) for t in ledger.store.list_transactions(tx_filter)]


@router.post("", response_model=ExpenseResponse, status_code=201)
def create_expense(payload: ExpenseWriteRequest, ledger: LedgerContext = Depends(get_ledger)) -> ExpenseResponse:
    with ledger.mutation():
        tx = ledger.store.create_expense(
            amount=payload.amount,
            currency=payload.currency,
            date=payload.date,
            category=payload.category,
            description=payload.description,
            account_id=payload.account_id,
        )
    return expense_to_response(tx)


@router.get("/{tx_id}", response_model=ExpenseResponse)
def get_expense(tx_id: UUID, ledger: LedgerContext = Depends(get_ledger)) -> ExpenseResponse:
    return expense_to_response(require_transaction_of_kind(ledger, tx_id, TransactionKind.EXPENSE))


@router.put("/{tx_id}", response_model=ExpenseResponse)
def update_expense(
    tx_id: UUID,
    payload: ExpenseWriteRequest,
    ledger: LedgerContext = Depends(get_ledger),
) -> ExpenseResponse:
    require_transaction_of_kind(ledger, tx_id, TransactionKind.EXPENSE)
    with ledger.mutation():
        tx = ledger.store.update_transaction(
            tx_id,
            amount=payload.amount,
            currency=payload.currency,
            date=payload.date,
            category=payload.category,
            description=payload.description,
            account_id=payload.account_id,
        )
    return expense_to_response(tx)


@router.delete("/{tx_id}", status_code=204)
def delete_expense(tx_id: UUID, ledger: LedgerContext = Depends(get_ledger)) -> Response:
    require_transaction_of_kind(ledger, tx_id, TransactionKind.EXPENSE)
    with ledger.mutation():
        ledger.store.delete_transaction(tx_id)
    return Response(status_code=204)

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from fintrack.api.deps import LedgerContext, get_ledger
from fintrack.api.mappers.ledger_mapper import account_to_response
from fintrack.api.schemas.accounts import AccountCreateRequest, AccountResponse, AccountUpdateRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("", response_model=list[AccountResponse])
def list_accounts(ledger: LedgerContext = Depends(get_ledger)) -> list[AccountResponse]:
    return [account_to_response(a) for a in ledger.store.list_accounts()]


@router.post("", status_code=201, response_model=AccountResponse)
def create_account(req: AccountCreateRequest, ledger: LedgerContext = Depends(get_ledger)) -> AccountResponse:
    with ledger.mutation():
        account = ledger.store.create_account(
            name=req.name,
            balance=req.balance,
            currency=req.currency,
            description=req.description,
        )
    return account_to_response(account)


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(account_id: UUID, ledger: LedgerContext = Depends(get_ledger)) -> AccountResponse:
    return account_to_response(ledger.store.require_account(account_id))


@router.put("/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: UUID,
    req: AccountUpdateRequest,
    ledger: LedgerContext = Depends(get_ledger),
) -> AccountResponse:
    extra = {}
    # description seulement si envoyée (null explicite = effacer)
    if "description" in req.model_fields_set:
        extra["description"] = req.description

    with ledger.mutation():
        account = ledger.store.update_account(
            account_id,
            name=req.name,
            balance=req.balance,
            currency=req.currency,
            **extra,
        )
    return account_to_response(account)


@router.delete("/{account_id}", status_code=204)
def delete_account(account_id: UUID, ledger: LedgerContext = Depends(get_ledger)) -> Response:
    # ConstraintViolation (409) si des transactions référencent encore le compte
    with ledger.mutation():
        ledger.store.delete_account(account_id)
    return Response(status_code=204)

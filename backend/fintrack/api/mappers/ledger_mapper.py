from __future__ import annotations

from fintrack.api.schemas.accounts import AccountResponse
from fintrack.api.schemas.summary import MonthlySummaryResponse
from fintrack.api.schemas.transactions import ExpenseResponse, IncomeResponse
from fintrack.domain.account import Account
from fintrack.domain.transaction import Transaction
from fintrack.engine.summary import MonthlyFinancialSummary


def account_to_response(acc: Account) -> AccountResponse:
    return AccountResponse(
        id=acc.id,
        name=acc.name,
        balance=acc.balance,
        currency=acc.currency,
        description=acc.description,
        created_at=acc.created_at,
    )


def expense_to_response(tx: Transaction) -> ExpenseResponse:
    return ExpenseResponse(
        id=tx.id,
        amount=tx.amount,
        currency=tx.currency,
        date=tx.date,
        category=tx.category,
        description=tx.description,
        account_id=tx.account_id,
        created_at=tx.created_at,
    )


def income_to_response(tx: Transaction) -> IncomeResponse:
    return IncomeResponse(
        id=tx.id,
        amount=tx.amount,
        currency=tx.currency,
        date=tx.date,
        type=tx.category,  # côté revenus, la "catégorie" s'appelle type
        description=tx.description,
        account_id=tx.account_id,
        created_at=tx.created_at,
    )


def summary_to_response(s: MonthlyFinancialSummary) -> MonthlySummaryResponse:
    return MonthlySummaryResponse(
        month=s.month,
        year=s.year,
        currency=s.currency,
        total_expenses=s.total_expenses,
        expense_count=s.expense_count,
        expenses_by_category=s.expenses_by_category,
        expenses_by_day=s.expenses_by_day,
        total_incomes=s.total_incomes,
        income_count=s.income_count,
        incomes_by_type=s.incomes_by_type,
        net=s.net,
    )

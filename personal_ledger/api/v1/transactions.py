"""Ledger endpoints: record entries, balance, filtered history, account summary"""

from contextlib import closing
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from personal_ledger.api.dependencies import get_ledger, get_request_id
from personal_ledger.api.v1.errors import to_http_exception
from personal_ledger.api.v1.schemas import (
    BalanceResponse,
    HistoryResponse,
    SummaryResponse,
    TransactionCreatedResponse,
    TransactionRequest,
    TransactionSchema,
)
from personal_ledger.domain.exceptions import DomainException
from personal_ledger.domain.models import HistoryFilter, SortField, SortOrder, TransactionKind
from personal_ledger.engine.ledger import Ledger

router = APIRouter()


@router.post("/transactions", response_model=TransactionCreatedResponse, status_code=201)
def create_transaction(
    request_body: TransactionRequest,
    request: Request,
    ledger: Ledger = Depends(get_ledger),
):
    """
    Record a Debit or Credit entry.

    Flow:
    1. Refuse users blocked by an overdue loan (403)
    2. Validate amount, description and, for Credit, ceiling and balance (422)
    3. Append the entry and skim Credit entries into savings
    4. Return the new entry id and the resulting balance
    """
    try:
        transaction_id = ledger.record_transaction(
            request_body.user_email,
            request_body.kind,
            request_body.amount,
            request_body.description,
        )
        balance = ledger.get_balance(request_body.user_email)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))

    return TransactionCreatedResponse(transaction_id=transaction_id, balance=balance)


@router.get("/transactions", response_model=HistoryResponse)
def get_history(
    request: Request,
    user_email: str = Query(..., description="Ledger owner"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    kind: Optional[str] = Query(None, description="Debit or Credit, any case"),
    min_amount: Optional[Decimal] = Query(None),
    max_amount: Optional[Decimal] = Query(None),
    sort_by: Optional[SortField] = Query(None),
    order: SortOrder = Query(SortOrder.DESC),
    ledger: Ledger = Depends(get_ledger),
):
    """
    Retrieve the user's transactions narrowed by every supplied filter.

    Returns:
        Entries most-recent-first unless ``sort_by`` is given
    """
    try:
        parsed_kind = TransactionKind.from_str(kind) if kind else None
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    history_filter = HistoryFilter(
        start_date=start_date,
        end_date=end_date,
        kind=parsed_kind,
        min_amount=min_amount,
        max_amount=max_amount,
        sort_field=sort_by,
        sort_order=order,
    )

    try:
        with closing(iter(ledger.get_history(user_email, history_filter))) as rows:
            items = [
                TransactionSchema(
                    transaction_id=t.transaction_id,
                    kind=t.kind,
                    amount=t.amount,
                    description=t.description,
                    timestamp=t.timestamp,
                )
                for t in rows
            ]
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))

    return HistoryResponse(user_email=user_email, transactions=items)


@router.get("/balance", response_model=BalanceResponse)
def get_balance(
    request: Request,
    user_email: str = Query(...),
    ledger: Ledger = Depends(get_ledger),
):
    try:
        balance = ledger.get_balance(user_email)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return BalanceResponse(user_email=user_email, balance=balance)


@router.get("/summary", response_model=SummaryResponse)
def get_summary(
    request: Request,
    user_email: str = Query(...),
    ledger: Ledger = Depends(get_ledger),
):
    """Balance, un-swept savings and outstanding loans shown after login"""
    try:
        summary = ledger.summary(user_email)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return SummaryResponse(
        user_email=summary.user_email,
        balance=summary.balance,
        savings=summary.savings,
        outstanding_loans=summary.outstanding_loans,
    )

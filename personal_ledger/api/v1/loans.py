"""Loan endpoints: apply, repay, outstanding total, blocking state, reminders"""

from fastapi import APIRouter, Depends, Query, Request

from personal_ledger.api.dependencies import get_loan_engine, get_request_id
from personal_ledger.api.v1.errors import to_http_exception
from personal_ledger.api.v1.schemas import (
    BlockedResponse,
    LoanRequest,
    LoanResponse,
    OutstandingResponse,
    RemindersResponse,
    ReminderSchema,
    RepaymentResponse,
    RepayRequest,
)
from personal_ledger.domain.exceptions import DomainException
from personal_ledger.engine.loans import LoanEngine

router = APIRouter()


@router.post("/loans", response_model=LoanResponse, status_code=201)
def apply_for_loan(
    request_body: LoanRequest,
    request: Request,
    loans: LoanEngine = Depends(get_loan_engine),
):
    """
    Create a loan and disburse the principal into the ledger.

    Returns:
        Loan terms: total repayment as outstanding balance, monthly instalment
    """
    try:
        loan = loans.apply(
            request_body.user_email,
            request_body.principal,
            request_body.annual_rate_percent,
            request_body.period_months,
        )
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))

    return LoanResponse(
        loan_id=loan.loan_id,
        principal_amount=loan.principal_amount,
        interest_rate=loan.interest_rate,
        repayment_period_months=loan.repayment_period_months,
        outstanding_balance=loan.outstanding_balance,
        monthly_repayment=loan.monthly_repayment,
        status=loan.status,
        created_at=loan.created_at,
    )


@router.post("/loans/repay", response_model=RepaymentResponse)
def repay_loan(
    request_body: RepayRequest,
    request: Request,
    loans: LoanEngine = Depends(get_loan_engine),
):
    try:
        result = loans.repay(request_body.user_email)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))

    return RepaymentResponse(
        loan_id=result.loan_id,
        transaction_id=result.transaction_id,
        amount_paid=result.amount_paid,
        outstanding_balance=result.outstanding_balance,
        status=result.status,
    )


@router.get("/loans/outstanding", response_model=OutstandingResponse)
def outstanding(request: Request, user_email: str = Query(...), loans: LoanEngine = Depends(get_loan_engine)):
    try:
        total = loans.outstanding_loan_total(user_email)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return OutstandingResponse(user_email=user_email, outstanding=total)


@router.get("/loans/blocked", response_model=BlockedResponse)
def blocked(request: Request, user_email: str = Query(...), loans: LoanEngine = Depends(get_loan_engine)):
    try:
        is_blocked = loans.is_blocked(user_email)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return BlockedResponse(user_email=user_email, blocked=is_blocked)


@router.get("/loans/reminders", response_model=RemindersResponse)
def reminders(request: Request, user_email: str = Query(...), loans: LoanEngine = Depends(get_loan_engine)):
    """
    Active loans due today or later.

    Note: every future due date is listed, not only the next seven days.
    """
    try:
        upcoming = loans.upcoming_reminders(user_email)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return RemindersResponse(
        user_email=user_email,
        reminders=[
            ReminderSchema(loan_id=r.loan_id, due_date=r.due_date, outstanding_balance=r.outstanding_balance)
            for r in upcoming
        ],
    )

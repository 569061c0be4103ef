"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import List

from personal_ledger.domain.models import LoanStatus, TransactionKind


class UserCreateRequest(BaseModel):
    """Request body for POST /v1/users (credential already hashed by the auth layer)"""

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    credential_hash: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    email: str
    exists: bool
    user_id: int | None = None


class TransactionRequest(BaseModel):
    """Request body for POST /v1/transactions"""

    user_email: str
    kind: TransactionKind
    amount: Decimal
    description: str = ""


class TransactionCreatedResponse(BaseModel):
    transaction_id: int
    balance: Decimal


class TransactionSchema(BaseModel):
    """Single ledger entry"""

    transaction_id: int
    kind: TransactionKind
    amount: Decimal
    description: str
    timestamp: datetime


class HistoryResponse(BaseModel):
    """Response for GET /v1/transactions"""

    user_email: str
    transactions: List[TransactionSchema]


class BalanceResponse(BaseModel):
    user_email: str
    balance: Decimal


class SummaryResponse(BaseModel):
    """Response for GET /v1/summary"""

    user_email: str
    balance: Decimal
    savings: Decimal
    outstanding_loans: Decimal


class SavingsRequest(BaseModel):
    """Request body for PUT /v1/savings"""

    user_email: str
    percentage: int


class SavingsResponse(BaseModel):
    user_email: str
    percentage: int
    saved_amount: Decimal


class LoanRequest(BaseModel):
    """Request body for POST /v1/loans"""

    user_email: str
    principal: Decimal
    annual_rate_percent: Decimal = Field(..., description="5 means 5%")
    period_months: int


class LoanResponse(BaseModel):
    loan_id: int
    principal_amount: Decimal
    interest_rate: Decimal
    repayment_period_months: int
    outstanding_balance: Decimal
    monthly_repayment: Decimal
    status: LoanStatus
    created_at: datetime


class RepayRequest(BaseModel):
    user_email: str


class RepaymentResponse(BaseModel):
    """Response for POST /v1/loans/repay"""

    loan_id: int
    transaction_id: int
    amount_paid: Decimal
    outstanding_balance: Decimal
    status: LoanStatus


class OutstandingResponse(BaseModel):
    user_email: str
    outstanding: Decimal


class BlockedResponse(BaseModel):
    user_email: str
    blocked: bool


class ReminderSchema(BaseModel):
    loan_id: int
    due_date: date
    outstanding_balance: Decimal


class RemindersResponse(BaseModel):
    """Response for GET /v1/loans/reminders"""

    user_email: str
    reminders: List[ReminderSchema]


class InterestRequest(BaseModel):
    """Request body for POST /v1/interest/predict"""

    deposit: Decimal
    bank: str


class InterestResponse(BaseModel):
    bank: str
    deposit: Decimal
    monthly_interest: Decimal

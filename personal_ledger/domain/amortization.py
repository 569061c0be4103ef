"""Loan amortization rules: terms, repayment sizing, due dates"""

from datetime import date, datetime
from decimal import Decimal

from personal_ledger.config import settings
from personal_ledger.domain.exceptions import ValidationError
from personal_ledger.domain.models import Loan, LoanStatus, LoanTerms
from personal_ledger.utils.date_utils import add_months
from personal_ledger.utils.money import has_sub_cent_digits, to_money, to_money_up


def compute_loan_terms(
    principal: Decimal,
    annual_rate_percent: Decimal,
    period_months: int,
) -> LoanTerms:
    """
    Flat-interest amortization.

    Requirements:
    - Total repayment = principal * (1 + rate), rate given as a percentage
    - Equal monthly repayments across the whole period
    - Principal and period must be positive, rate non-negative
    - Principal in whole cents
    - Monthly amount rounded up to storage scale, so the last payment is the
      short one and the loan closes in ceil(total / monthly) payments

    Example:
        1200 at 5% over 12 months -> total 1260, monthly 105
    """
    if principal <= 0:
        raise ValidationError("Principal must be positive")
    if has_sub_cent_digits(principal):
        raise ValidationError("Principal must be in whole cents")
    if period_months <= 0:
        raise ValidationError("Repayment period must be at least one month")
    if annual_rate_percent < 0:
        raise ValidationError("Interest rate cannot be negative")

    rate = Decimal(annual_rate_percent) / 100
    total_repayment = to_money(principal * (1 + rate))
    monthly_repayment = to_money_up(total_repayment / period_months)

    return LoanTerms(total_repayment=total_repayment, monthly_repayment=monthly_repayment)


def next_payment(outstanding_balance: Decimal, monthly_repayment: Decimal) -> Decimal:
    """Last payment only covers what is left, never a full month"""
    return min(outstanding_balance, monthly_repayment)


def status_after_payment(new_balance: Decimal) -> LoanStatus:
    """Balances within a cent of zero count as repaid"""
    return LoanStatus.REPAID if new_balance <= settings.repaid_epsilon else LoanStatus.ACTIVE


def loan_due_date(created_at: date | datetime, period_months: int) -> date:
    """Full-term due date: creation date plus the repayment period"""
    return add_months(created_at, period_months)


def is_overdue(loan: Loan, today: date) -> bool:
    """Active, unpaid loan whose full term ends on or before ``today``"""
    return (
        loan.status is LoanStatus.ACTIVE
        and loan.outstanding_balance > 0
        and loan_due_date(loan.created_at, loan.repayment_period_months) <= today
    )

"""Loan engine: disbursement, repayment and the overdue blocking gate"""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, List

from sqlalchemy.orm import Session

from personal_ledger.domain.amortization import (
    compute_loan_terms,
    is_overdue,
    loan_due_date,
    next_payment,
    status_after_payment,
)
from personal_ledger.domain.exceptions import LoanOverdueError, NoActiveLoanError, NotFoundError
from personal_ledger.domain.models import Loan, LoanReminder, RepaymentResult, TransactionKind
from personal_ledger.infrastructure.database.repositories import (
    LoanRepository,
    TransactionRepository,
    UserRepository,
    to_loan,
)
from personal_ledger.infrastructure.database.session import Store
from personal_ledger.infrastructure.observability.logging import log_repayment
from personal_ledger.infrastructure.observability.metrics import (
    loan_disbursed_counter,
    refusal_counter,
    repayment_counter,
)
from personal_ledger.utils.date_utils import utc_today
from personal_ledger.utils.money import to_money

DISBURSEMENT_DESCRIPTION = "Loan disbursement"
REPAYMENT_DESCRIPTION = "Loan repayment"


class LoanEngine:
    """
    Loans move active -> repaid exactly once; nothing else changes status.

    ``created_at`` is stamped by the store in UTC, so due dates are compared
    against a UTC calendar date.
    """

    def __init__(self, store: Store, clock: Callable[[], date] = utc_today):
        self.store = store
        self.clock = clock

    def apply(
        self,
        user_email: str,
        principal: Decimal,
        annual_rate_percent: Decimal,
        period_months: int,
    ) -> Loan:
        """
        Create an active loan and credit the principal to the cash ledger.

        Interest only accrues on the loan's own balance: the ledger receives a
        Debit "Loan disbursement" for the principal, not the total repayment.

        Raises:
            ValidationError: Non-positive principal or period, negative rate,
                principal finer than a cent
            NotFoundError: Unknown user
            LoanOverdueError: User already holds an overdue loan
        """
        principal = Decimal(str(principal))
        annual_rate_percent = Decimal(str(annual_rate_percent))
        terms = compute_loan_terms(principal, annual_rate_percent, period_months)
        principal = to_money(principal)

        with self.store.transaction() as db:
            if not UserRepository(db).exists(user_email):
                raise NotFoundError(f"User {user_email} is not registered")
            if self._has_overdue(db, user_email):
                refusal_counter.labels(reason="loan_overdue").inc()
                raise LoanOverdueError("Cannot take a new loan while another is overdue")

            db_loan = LoanRepository(db).create_loan(
                user_email=user_email,
                principal=principal,
                interest_rate=annual_rate_percent / 100,
                period_months=period_months,
                total_repayment=terms.total_repayment,
                monthly_repayment=terms.monthly_repayment,
            )
            TransactionRepository(db).add(user_email, TransactionKind.DEBIT, principal, DISBURSEMENT_DESCRIPTION)
            loan = to_loan(db_loan)

        loan_disbursed_counter.inc()
        logging.info(
            "Loan disbursed",
            extra={
                "user_email": user_email,
                "step": "loan_disbursed",
                "loan_id": loan.loan_id,
                "principal": str(principal),
                "total_repayment": str(terms.total_repayment),
                "monthly_repayment": str(terms.monthly_repayment),
            },
        )
        return loan

    def repay(self, user_email: str) -> RepaymentResult:
        """
        Pay one instalment on the most recently created active loan.

        The Credit "Loan repayment" entry and the loan's new balance/status are
        written in one store transaction; a failure leaves neither behind.

        Raises:
            NoActiveLoanError: Nothing left to repay
            PersistenceError: Store failure (both writes rolled back)
        """
        with self.store.transaction() as db:
            loans = LoanRepository(db)
            db_loan = loans.get_latest_repayable(user_email)
            if db_loan is None:
                raise NoActiveLoanError("No active loan to repay")

            balance = to_money(db_loan.outstanding_balance)
            payment = next_payment(balance, to_money(db_loan.monthly_repayment))

            txn = TransactionRepository(db).add(user_email, TransactionKind.CREDIT, payment, REPAYMENT_DESCRIPTION)

            new_balance = balance - payment
            status = status_after_payment(new_balance)
            loans.apply_payment(db_loan, new_balance, status)

            result = RepaymentResult(
                loan_id=db_loan.id,
                transaction_id=txn.transaction_id,
                amount_paid=payment,
                outstanding_balance=new_balance,
                status=status,
            )

        repayment_counter.labels(outcome=status.value).inc()
        log_repayment(user_email, result.loan_id, payment, new_balance, status.value)
        return result

    def outstanding_loan_total(self, user_email: str) -> Decimal:
        with self.store.transaction() as db:
            return LoanRepository(db).outstanding_total(user_email)

    def is_blocked(self, user_email: str) -> bool:
        """
        True when an active loan is past its full term with money still owed.

        Evaluated per call without locking; it is a business gate, not a
        safety invariant.
        """
        with self.store.transaction() as db:
            return self._has_overdue(db, user_email)

    def upcoming_reminders(self, user_email: str) -> List[LoanReminder]:
        """Active loans whose full-term due date is today or later, soonest first"""
        today = self.clock()
        with self.store.transaction() as db:
            active = LoanRepository(db).get_active_loans(user_email)

        reminders = []
        for loan in active:
            due = loan_due_date(loan.created_at, loan.repayment_period_months)
            if not due < today:
                reminders.append(LoanReminder(loan.loan_id, due, loan.outstanding_balance))
        return sorted(reminders, key=lambda r: (r.due_date, r.loan_id))

    def _has_overdue(self, db: Session, user_email: str) -> bool:
        today = self.clock()
        return any(is_overdue(loan, today) for loan in LoanRepository(db).get_active_loans(user_email))

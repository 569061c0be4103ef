"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class TransactionKind(str, Enum):
    """Ledger entry kind; Debit adds to the balance, Credit subtracts"""

    DEBIT = "Debit"
    CREDIT = "Credit"

    @classmethod
    def from_str(cls, value: str) -> "TransactionKind":
        """Parse a kind ignoring case, e.g. "credit" -> CREDIT"""
        try:
            normalised = value.strip().lower()
        except AttributeError as e:
            raise ValueError(f"Unsupported transaction kind: {value}") from e
        for kind in cls:
            if kind.value.lower() == normalised:
                return kind
        raise ValueError(f"Unsupported transaction kind: {value}")


class LoanStatus(str, Enum):
    """Loan lifecycle: active -> repaid (terminal)"""

    ACTIVE = "active"
    REPAID = "repaid"


class SortField(str, Enum):
    DATE = "date"
    AMOUNT = "amount"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass
class Transaction:
    """Immutable ledger entry"""

    transaction_id: int
    kind: TransactionKind
    amount: Decimal
    description: str
    user_email: str
    timestamp: datetime


@dataclass
class Loan:
    """Interest-bearing loan with its amortized terms"""

    loan_id: int
    user_email: str
    principal_amount: Decimal
    interest_rate: Decimal  # fraction, 0.05 == 5%
    repayment_period_months: int
    outstanding_balance: Decimal
    monthly_repayment: Decimal
    status: LoanStatus
    created_at: datetime
    next_payment_date: Optional[date] = None


@dataclass
class LoanTerms:
    """Output of the amortization calculation"""

    total_repayment: Decimal
    monthly_repayment: Decimal


@dataclass
class RepaymentResult:
    """Outcome of a single loan repayment"""

    loan_id: int
    transaction_id: int
    amount_paid: Decimal
    outstanding_balance: Decimal
    status: LoanStatus


@dataclass
class LoanReminder:
    """Upcoming due date for an active loan"""

    loan_id: int
    due_date: date
    outstanding_balance: Decimal


@dataclass
class SavingsProfile:
    """Per-user skim percentage and un-swept accumulation"""

    user_email: str
    percentage: int
    saved_amount: Decimal


@dataclass
class SweepReport:
    """Result of one sweep pass across all users"""

    swept: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    total_amount: Decimal = Decimal("0")


@dataclass
class HistoryFilter:
    """
    Structured history query. Every field is optional; each one that is set
    narrows the result. Without a sort field rows come most-recent-first.
    """

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    kind: Optional[TransactionKind] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    sort_field: Optional[SortField] = None
    sort_order: SortOrder = SortOrder.DESC


@dataclass
class AccountSummary:
    """Snapshot shown to a user after login"""

    user_email: str
    balance: Decimal
    savings: Decimal
    outstanding_loans: Decimal

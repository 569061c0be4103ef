"""Data access layer for ledger entities"""

from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Iterator, List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from personal_ledger.domain.models import (
    HistoryFilter,
    Loan,
    LoanStatus,
    SavingsProfile,
    SortField,
    SortOrder,
    Transaction,
    TransactionKind,
)
from personal_ledger.infrastructure.database.models import (
    LoanRecord,
    SavingsRecord,
    TransactionRecord,
    UserRecord,
)
from personal_ledger.utils.money import to_money


class UserRepository:
    """Repository for registered users"""

    def __init__(self, db: Session):
        self.db = db

    def exists(self, email: str) -> bool:
        return self.db.scalar(select(UserRecord.id).where(UserRecord.email == email)) is not None

    def create_user(self, name: str, email: str, credential_hash: str) -> UserRecord:
        db_user = UserRecord(name=name, email=email, credential_hash=credential_hash)
        self.db.add(db_user)
        self.db.flush()
        return db_user


class TransactionRepository:
    """Repository for the append-only transaction log"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, user_email: str, kind: TransactionKind, amount: Decimal, description: str) -> Transaction:
        """Append a ledger entry; the timestamp is assigned by the database"""
        db_txn = TransactionRecord(
            type=kind.value,
            amount=amount,
            description=description,
            user_email=user_email,
        )
        self.db.add(db_txn)
        self.db.flush()  # Get ID without committing
        self.db.refresh(db_txn)  # Load server-side timestamp
        return to_transaction(db_txn)

    def balance(self, user_email: str) -> Decimal:
        """Signed sum of the user's log: Debit adds, Credit subtracts"""
        signed = case(
            (TransactionRecord.type == TransactionKind.CREDIT.value, -TransactionRecord.amount),
            (TransactionRecord.type == TransactionKind.DEBIT.value, TransactionRecord.amount),
            else_=0,
        )
        total = self.db.scalar(
            select(func.coalesce(func.sum(signed), 0)).where(TransactionRecord.user_email == user_email)
        )
        return to_money(total)

    def iter_history(self, user_email: str, history_filter: HistoryFilter) -> Iterator[Transaction]:
        """Stream the user's entries matching every set field of the filter"""
        stmt = select(TransactionRecord).where(TransactionRecord.user_email == user_email)

        if history_filter.start_date is not None:
            stmt = stmt.where(TransactionRecord.timestamp >= datetime.combine(history_filter.start_date, time.min))
        if history_filter.end_date is not None:
            # Inclusive end date: anything before the following midnight
            end = datetime.combine(history_filter.end_date + timedelta(days=1), time.min)
            stmt = stmt.where(TransactionRecord.timestamp < end)
        if history_filter.kind is not None:
            stmt = stmt.where(TransactionRecord.type == history_filter.kind.value)
        if history_filter.min_amount is not None:
            stmt = stmt.where(TransactionRecord.amount >= history_filter.min_amount)
        if history_filter.max_amount is not None:
            stmt = stmt.where(TransactionRecord.amount <= history_filter.max_amount)

        descending = history_filter.sort_order is SortOrder.DESC
        if history_filter.sort_field is SortField.AMOUNT:
            primary = TransactionRecord.amount
        else:
            primary = TransactionRecord.timestamp
        if descending:
            stmt = stmt.order_by(primary.desc(), TransactionRecord.id.desc())
        else:
            stmt = stmt.order_by(primary.asc(), TransactionRecord.id.asc())

        for db_txn in self.db.scalars(stmt.execution_options(yield_per=100)):
            yield to_transaction(db_txn)


class LoanRepository:
    """Repository for loans"""

    def __init__(self, db: Session):
        self.db = db

    def create_loan(
        self,
        user_email: str,
        principal: Decimal,
        interest_rate: Decimal,
        period_months: int,
        total_repayment: Decimal,
        monthly_repayment: Decimal,
    ) -> LoanRecord:
        db_loan = LoanRecord(
            user_email=user_email,
            principal_amount=principal,
            interest_rate=interest_rate,
            repayment_period_months=period_months,
            outstanding_balance=total_repayment,
            monthly_repayment=monthly_repayment,
            status=LoanStatus.ACTIVE.value,
        )
        self.db.add(db_loan)
        self.db.flush()
        self.db.refresh(db_loan)
        return db_loan

    def get_latest_repayable(self, user_email: str) -> Optional[LoanRecord]:
        """Most recently created active loan that still has a balance, locked for update"""
        return self.db.scalar(
            select(LoanRecord)
            .where(LoanRecord.user_email == user_email)
            .where(LoanRecord.status == LoanStatus.ACTIVE.value)
            .where(LoanRecord.outstanding_balance > 0)
            .where(LoanRecord.monthly_repayment.is_not(None))
            .order_by(LoanRecord.created_at.desc(), LoanRecord.id.desc())
            .limit(1)
            .with_for_update()
        )

    def apply_payment(self, db_loan: LoanRecord, new_balance: Decimal, status: LoanStatus) -> LoanRecord:
        db_loan.outstanding_balance = new_balance
        db_loan.status = status.value
        self.db.flush()
        return db_loan

    def get_active_loans(self, user_email: str) -> List[Loan]:
        rows = self.db.scalars(
            select(LoanRecord)
            .where(LoanRecord.user_email == user_email)
            .where(LoanRecord.status == LoanStatus.ACTIVE.value)
            .order_by(LoanRecord.created_at.asc(), LoanRecord.id.asc())
        )
        return [to_loan(r) for r in rows]

    def outstanding_total(self, user_email: str) -> Decimal:
        total = self.db.scalar(
            select(func.coalesce(func.sum(LoanRecord.outstanding_balance), 0))
            .where(LoanRecord.user_email == user_email)
            .where(LoanRecord.status == LoanStatus.ACTIVE.value)
            .where(LoanRecord.outstanding_balance > 0)
        )
        return to_money(total)


class SavingsRepository:
    """Repository for savings profiles"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_email: str, for_update: bool = False) -> Optional[SavingsRecord]:
        stmt = select(SavingsRecord).where(SavingsRecord.user_email == user_email)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.scalar(stmt)

    def upsert_percentage(self, user_email: str, percentage: int) -> SavingsRecord:
        """Create the profile or change its percentage; the accumulation is kept"""
        db_savings = self.get(user_email, for_update=True)
        if db_savings is None:
            db_savings = SavingsRecord(user_email=user_email, percentage=percentage, saved_amount=0)
            self.db.add(db_savings)
        else:
            db_savings.percentage = percentage
        self.db.flush()
        return db_savings

    def add_to_saved(self, db_savings: SavingsRecord, amount: Decimal) -> None:
        db_savings.saved_amount = to_money(db_savings.saved_amount) + amount
        self.db.flush()

    def reset(self, db_savings: SavingsRecord) -> None:
        db_savings.saved_amount = 0
        self.db.flush()

    def emails_with_savings(self) -> List[str]:
        return list(
            self.db.scalars(
                select(SavingsRecord.user_email)
                .where(SavingsRecord.saved_amount > 0)
                .order_by(SavingsRecord.id.asc())
            )
        )


def to_transaction(db_txn: TransactionRecord) -> Transaction:
    return Transaction(
        transaction_id=db_txn.id,
        kind=TransactionKind(db_txn.type),
        amount=to_money(db_txn.amount),
        description=db_txn.description,
        user_email=db_txn.user_email,
        timestamp=db_txn.timestamp,
    )


def to_loan(db_loan: LoanRecord) -> Loan:
    return Loan(
        loan_id=db_loan.id,
        user_email=db_loan.user_email,
        principal_amount=to_money(db_loan.principal_amount),
        interest_rate=Decimal(str(db_loan.interest_rate)),
        repayment_period_months=db_loan.repayment_period_months,
        outstanding_balance=to_money(db_loan.outstanding_balance),
        monthly_repayment=to_money(db_loan.monthly_repayment),
        status=LoanStatus(db_loan.status),
        created_at=db_loan.created_at,
        next_payment_date=db_loan.next_payment_date,
    )


def to_savings_profile(db_savings: SavingsRecord) -> SavingsProfile:
    return SavingsProfile(
        user_email=db_savings.user_email,
        percentage=db_savings.percentage,
        saved_amount=to_money(db_savings.saved_amount),
    )

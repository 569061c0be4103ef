"""Ledger: balances derived from the transaction log, and the rules for appending to it"""

from decimal import Decimal, InvalidOperation
from typing import Iterator

from personal_ledger.config import settings
from personal_ledger.domain.exceptions import (
    InsufficientBalanceError,
    LoanOverdueError,
    NotFoundError,
    ValidationError,
)
from personal_ledger.domain.models import AccountSummary, HistoryFilter, Transaction, TransactionKind
from personal_ledger.engine.loans import LoanEngine
from personal_ledger.engine.savings import SavingsEngine
from personal_ledger.infrastructure.database.repositories import TransactionRepository, UserRepository
from personal_ledger.infrastructure.database.session import Store
from personal_ledger.infrastructure.observability.logging import log_transaction
from personal_ledger.infrastructure.observability.metrics import refusal_counter, transaction_counter
from personal_ledger.utils.money import has_sub_cent_digits, to_money


class TransactionHistory:
    """
    Lazy view over a user's filtered history.

    Nothing is read until iteration starts, and every new iteration runs the
    query again, so the view can be walked any number of times.

    An iteration holds a read transaction open until it is exhausted or
    closed. Callers that may stop early should close the iterator, e.g.
    ``with closing(iter(history)) as rows``, so that writers are not left
    waiting on the SQLite lock.
    """

    def __init__(self, store: Store, user_email: str, history_filter: HistoryFilter):
        self.store = store
        self.user_email = user_email
        self.history_filter = history_filter

    def __iter__(self) -> Iterator[Transaction]:
        with self.store.transaction() as db:
            yield from TransactionRepository(db).iter_history(self.user_email, self.history_filter)


class Ledger:
    """Single running balance per user, computed from the append-only log"""

    def __init__(self, store: Store, savings: SavingsEngine, loans: LoanEngine):
        self.store = store
        self.savings = savings
        self.loans = loans

    def record_transaction(
        self,
        user_email: str,
        kind: TransactionKind,
        amount: Decimal,
        description: str,
    ) -> int:
        """
        Append an entry and return its identifier.

        Rules, checked in order before anything is written:
        - Users with an overdue loan are refused (LoanOverdueError)
        - Amount must be positive and in whole cents, description at most
          100 characters
        - Credit entries only: amount capped at the sanity ceiling and at the
          current balance; Debit entries post unconditionally

        A Credit entry is skimmed into savings in the same store transaction.
        """
        if self.loans.is_blocked(user_email):
            refusal_counter.labels(reason="loan_overdue").inc()
            raise LoanOverdueError("Cannot perform transactions - you have overdue loans")

        amount = self._validate(kind, amount, description)

        with self.store.transaction() as db:
            if not UserRepository(db).exists(user_email):
                raise NotFoundError(f"User {user_email} is not registered")

            transactions = TransactionRepository(db)
            if kind is TransactionKind.CREDIT:
                balance = transactions.balance(user_email)
                if amount > balance:
                    refusal_counter.labels(reason="insufficient_balance").inc()
                    raise InsufficientBalanceError(f"Insufficient balance ({balance}) for {amount}")

            txn = transactions.add(user_email, kind, amount, description)

            skimmed = Decimal("0")
            if kind is TransactionKind.CREDIT:
                skimmed = self.savings.skim_on_debit(user_email, amount, db=db)

        transaction_counter.labels(kind=kind.value).inc()
        log_transaction(user_email, kind.value, amount, txn.transaction_id, skimmed)
        return txn.transaction_id

    def get_balance(self, user_email: str) -> Decimal:
        """Debits minus credits over the whole log; zero for a user with no entries"""
        with self.store.transaction() as db:
            return TransactionRepository(db).balance(user_email)

    def get_history(self, user_email: str, history_filter: HistoryFilter | None = None) -> TransactionHistory:
        return TransactionHistory(self.store, user_email, history_filter or HistoryFilter())

    def user_exists(self, email: str) -> bool:
        with self.store.transaction() as db:
            return UserRepository(db).exists(email)

    def register_user(self, name: str, email: str, credential_hash: str) -> int:
        """Persist a user whose credential was already hashed by the auth layer"""
        if not name or not email or not credential_hash:
            raise ValidationError("Name, email and credential hash are required")

        with self.store.transaction() as db:
            users = UserRepository(db)
            if users.exists(email):
                raise ValidationError(f"Email {email} is already registered")
            return users.create_user(name, email, credential_hash).id

    def summary(self, user_email: str) -> AccountSummary:
        """Balance, un-swept savings and outstanding loans in one snapshot"""
        return AccountSummary(
            user_email=user_email,
            balance=self.get_balance(user_email),
            savings=self.savings.accumulated_savings(user_email),
            outstanding_loans=self.loans.outstanding_loan_total(user_email),
        )

    def _validate(self, kind: TransactionKind, amount, description: str) -> Decimal:
        try:
            amount = Decimal(str(amount))
            if not amount.is_finite():
                raise ValueError(amount)
            sub_cent = has_sub_cent_digits(amount)
        except (InvalidOperation, ValueError) as e:
            refusal_counter.labels(reason="validation").inc()
            raise ValidationError(f"Invalid amount: {amount}") from e

        if amount <= 0:
            refusal_counter.labels(reason="validation").inc()
            raise ValidationError("Amount must be positive")
        # Whole cents keep every percentage skim exact at storage scale
        if sub_cent:
            refusal_counter.labels(reason="validation").inc()
            raise ValidationError("Amount must be in whole cents")
        if description is None or len(description) > settings.description_max_length:
            refusal_counter.labels(reason="validation").inc()
            raise ValidationError(f"Description must be at most {settings.description_max_length} characters")
        if kind is TransactionKind.CREDIT and amount > settings.transaction_ceiling:
            refusal_counter.labels(reason="validation").inc()
            raise ValidationError(f"Amount exceeds the {settings.transaction_ceiling} ceiling")
        return to_money(amount)

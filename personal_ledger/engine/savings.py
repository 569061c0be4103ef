"""Savings engine: percentage skim on outgoing entries and the monthly sweep"""

import logging
import time
from decimal import Decimal

from sqlalchemy.orm import Session

from personal_ledger.domain.exceptions import NotFoundError, PersistenceError, ValidationError
from personal_ledger.domain.models import SavingsProfile, SweepReport, TransactionKind
from personal_ledger.infrastructure.database.repositories import (
    SavingsRepository,
    TransactionRepository,
    UserRepository,
    to_savings_profile,
)
from personal_ledger.infrastructure.database.session import Store
from personal_ledger.infrastructure.observability.logging import log_sweep
from personal_ledger.infrastructure.observability.metrics import record_sweep, sweep_duration_histogram
from personal_ledger.utils.money import to_money

SWEEP_DESCRIPTION = "Monthly savings transfer"

MIN_PERCENTAGE = 1
MAX_PERCENTAGE = 100


class SavingsEngine:
    """Holds no state of its own; every call reads and writes through the store"""

    def __init__(self, store: Store):
        self.store = store

    def activate(self, user_email: str, percentage: int) -> SavingsProfile:
        """Create the profile or change its percentage, keeping any accumulated amount"""
        if not MIN_PERCENTAGE <= percentage <= MAX_PERCENTAGE:
            raise ValidationError(f"Percentage must be between {MIN_PERCENTAGE} and {MAX_PERCENTAGE}")

        with self.store.transaction() as db:
            if not UserRepository(db).exists(user_email):
                raise NotFoundError(f"User {user_email} is not registered")
            profile = to_savings_profile(SavingsRepository(db).upsert_percentage(user_email, percentage))

        logging.info(
            "Savings activated",
            extra={"user_email": user_email, "step": "savings_activated", "percentage": percentage},
        )
        return profile

    def skim_on_debit(self, user_email: str, amount: Decimal, db: Session | None = None) -> Decimal:
        """
        Add ``amount * percentage / 100`` to the user's accumulation.

        Pass the caller's session so the skim commits or rolls back together
        with the entry that triggered it. Returns the amount skimmed (zero
        when the user has no profile).
        """
        if db is None:
            with self.store.transaction() as own_db:
                return self._skim(own_db, user_email, amount)
        return self._skim(db, user_email, amount)

    def get_profile(self, user_email: str) -> SavingsProfile:
        with self.store.transaction() as db:
            db_savings = SavingsRepository(db).get(user_email)
            if db_savings is None:
                raise NotFoundError(f"No savings profile for {user_email}")
            return to_savings_profile(db_savings)

    def accumulated_savings(self, user_email: str) -> Decimal:
        """Un-swept savings, zero when the user never activated savings"""
        with self.store.transaction() as db:
            db_savings = SavingsRepository(db).get(user_email)
            return to_money(db_savings.saved_amount if db_savings is not None else None)

    def sweep_all(self) -> SweepReport:
        """
        Move every user's accumulated savings into their ledger.

        Each user is swept in its own store transaction: the Credit "Monthly
        savings transfer" and the reset to zero commit together or not at all.
        A failed user is logged and reported; the remaining users still run.
        """
        start_time = time.time()

        with self.store.transaction() as db:
            emails = SavingsRepository(db).emails_with_savings()

        report = SweepReport()
        for email in emails:
            try:
                amount = self._sweep_user(email)
            except PersistenceError as e:
                logging.error(f"Savings sweep failed for {email}: {e}", extra={"user_email": email})
                report.failed.append(email)
                continue
            if amount > 0:
                report.swept.append(email)
                report.total_amount += amount

        duration = time.time() - start_time
        sweep_duration_histogram.observe(duration)
        record_sweep(len(report.swept), len(report.failed), report.total_amount)
        log_sweep(len(report.swept), len(report.failed), report.total_amount, duration * 1000)
        return report

    def _skim(self, db: Session, user_email: str, amount: Decimal) -> Decimal:
        savings = SavingsRepository(db)
        db_savings = savings.get(user_email, for_update=True)
        if db_savings is None:
            return Decimal("0")

        skim = to_money(amount * db_savings.percentage / 100)
        savings.add_to_saved(db_savings, skim)
        return skim

    def _sweep_user(self, user_email: str) -> Decimal:
        with self.store.transaction() as db:
            savings = SavingsRepository(db)
            db_savings = savings.get(user_email, for_update=True)
            if db_savings is None:
                return Decimal("0")

            # Re-read under lock: a concurrent pass may already have swept this user
            amount = to_money(db_savings.saved_amount)
            if amount <= 0:
                return Decimal("0")

            TransactionRepository(db).add(user_email, TransactionKind.CREDIT, amount, SWEEP_DESCRIPTION)
            savings.reset(db_savings)
            return amount

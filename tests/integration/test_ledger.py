"""Integration tests for the ledger against a SQLite store"""

import pytest
from contextlib import closing
from datetime import timedelta
from decimal import Decimal
from sqlalchemy.exc import SQLAlchemyError

from personal_ledger.domain.exceptions import (
    InsufficientBalanceError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from personal_ledger.domain.models import HistoryFilter, SortField, SortOrder, TransactionKind
from personal_ledger.infrastructure.database.repositories import SavingsRepository

DEBIT = TransactionKind.DEBIT
CREDIT = TransactionKind.CREDIT


def test_balance_is_zero_without_transactions(ledger, user):
    assert ledger.get_balance(user) == Decimal("0")


def test_balance_matches_log_for_every_prefix(ledger, user):
    """Balance == sum(Debit) - sum(Credit) after each append"""
    entries = [
        (DEBIT, Decimal("500")),
        (CREDIT, Decimal("120.50")),
        (DEBIT, Decimal("0.25")),
        (CREDIT, Decimal("379.75")),
        (DEBIT, Decimal("1000")),
    ]
    expected = Decimal("0")
    for kind, amount in entries:
        ledger.record_transaction(user, kind, amount, "entry")
        expected += amount if kind is DEBIT else -amount
        assert ledger.get_balance(user) == expected


def test_record_transaction_returns_increasing_ids(ledger, user):
    first = ledger.record_transaction(user, DEBIT, Decimal("10"), "first")
    second = ledger.record_transaction(user, DEBIT, Decimal("10"), "second")
    assert second > first


def test_debit_posts_without_balance_or_ceiling_check(ledger, user):
    ledger.record_transaction(user, DEBIT, Decimal("2000000"), "Large deposit")
    assert ledger.get_balance(user) == Decimal("2000000")


def test_credit_requires_sufficient_balance(ledger, user):
    ledger.record_transaction(user, DEBIT, Decimal("100"), "Salary")

    with pytest.raises(InsufficientBalanceError):
        ledger.record_transaction(user, CREDIT, Decimal("100.01"), "Rent")

    ledger.record_transaction(user, CREDIT, Decimal("100"), "Rent")
    assert ledger.get_balance(user) == Decimal("0")


def test_credit_ceiling(ledger, user):
    ledger.record_transaction(user, DEBIT, Decimal("3000000"), "Windfall")

    ledger.record_transaction(user, CREDIT, Decimal("1000000"), "At the ceiling")
    with pytest.raises(ValidationError):
        ledger.record_transaction(user, CREDIT, Decimal("1000000.01"), "Over the ceiling")


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), Decimal("-0.01")])
def test_non_positive_amounts_rejected(ledger, user, amount):
    with pytest.raises(ValidationError):
        ledger.record_transaction(user, DEBIT, amount, "bad")
    assert list(ledger.get_history(user)) == []


@pytest.mark.parametrize("amount", [Decimal("0.0001"), Decimal("0.00004"), Decimal("10.005"), Decimal("10.00005")])
def test_sub_cent_amounts_rejected(ledger, user, amount):
    with pytest.raises(ValidationError, match="whole cents"):
        ledger.record_transaction(user, DEBIT, amount, "bad")
    assert list(ledger.get_history(user)) == []


@pytest.mark.parametrize("amount", ["NaN", "Infinity", "ten"])
def test_malformed_amounts_rejected(ledger, user, amount):
    with pytest.raises(ValidationError, match="Invalid amount"):
        ledger.record_transaction(user, DEBIT, amount, "bad")


def test_trailing_zeros_are_whole_cents(ledger, user):
    ledger.record_transaction(user, DEBIT, Decimal("10.500"), "deposit")
    assert ledger.get_balance(user) == Decimal("10.5")


def test_description_length_boundary(ledger, user):
    ledger.record_transaction(user, DEBIT, Decimal("1"), "x" * 100)
    with pytest.raises(ValidationError):
        ledger.record_transaction(user, DEBIT, Decimal("1"), "x" * 101)
    assert len(list(ledger.get_history(user))) == 1


def test_unregistered_user_is_not_found(ledger):
    with pytest.raises(NotFoundError):
        ledger.record_transaction("ghost@example.com", DEBIT, Decimal("10"), "deposit")


def test_register_user_rejects_duplicate_email(ledger, user):
    assert ledger.user_exists(user) is True
    assert ledger.user_exists("nobody@example.com") is False
    with pytest.raises(ValidationError):
        ledger.register_user("Alice Again", user, "hash")


def test_credit_is_skimmed_into_savings(ledger, savings, user):
    savings.activate(user, 10)

    ledger.record_transaction(user, DEBIT, Decimal("1000"), "Salary")
    assert savings.accumulated_savings(user) == Decimal("0")

    ledger.record_transaction(user, CREDIT, Decimal("200"), "Groceries")
    ledger.record_transaction(user, CREDIT, Decimal("55.55"), "Fuel")
    assert savings.accumulated_savings(user) == Decimal("25.5550")


def test_skim_of_cent_amounts_is_exact(ledger, savings, user):
    savings.activate(user, 33)
    ledger.record_transaction(user, DEBIT, Decimal("1"), "deposit")

    for _ in range(3):
        ledger.record_transaction(user, CREDIT, Decimal("0.07"), "sweets")

    # 3 x 0.07 x 33 / 100
    assert savings.accumulated_savings(user) == Decimal("0.0693")

    savings.activate(user, 50)
    ledger.record_transaction(user, CREDIT, Decimal("0.01"), "gum")
    ledger.record_transaction(user, CREDIT, Decimal("0.01"), "gum")
    assert savings.accumulated_savings(user) == Decimal("0.0793")


def test_failed_skim_rolls_back_the_entry(ledger, savings, user, monkeypatch):
    savings.activate(user, 10)
    ledger.record_transaction(user, DEBIT, Decimal("1000"), "Salary")

    def broken_add(self, db_savings, amount):
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(SavingsRepository, "add_to_saved", broken_add)

    with pytest.raises(PersistenceError):
        ledger.record_transaction(user, CREDIT, Decimal("200"), "Groceries")

    assert ledger.get_balance(user) == Decimal("1000")
    assert [t.description for t in ledger.get_history(user)] == ["Salary"]
    assert savings.accumulated_savings(user) == Decimal("0")


def test_summary(ledger, savings, loans, user):
    savings.activate(user, 5)
    ledger.record_transaction(user, DEBIT, Decimal("400"), "Salary")
    ledger.record_transaction(user, CREDIT, Decimal("100"), "Shopping")
    loans.apply(user, Decimal("1200"), Decimal("5"), 12)

    summary = ledger.summary(user)

    assert summary.balance == Decimal("1500")
    assert summary.savings == Decimal("5")
    assert summary.outstanding_loans == Decimal("1260")


@pytest.fixture
def populated(ledger, user):
    ledger.record_transaction(user, DEBIT, Decimal("500"), "Salary")
    ledger.record_transaction(user, CREDIT, Decimal("40"), "Food market")
    ledger.record_transaction(user, DEBIT, Decimal("75"), "Refund")
    ledger.record_transaction(user, CREDIT, Decimal("250"), "Rent")
    return user


def test_history_defaults_to_most_recent_first(ledger, populated):
    descriptions = [t.description for t in ledger.get_history(populated)]
    assert descriptions == ["Rent", "Refund", "Food market", "Salary"]


def test_history_filters_by_kind(ledger, populated):
    history = ledger.get_history(populated, HistoryFilter(kind=CREDIT))
    assert [t.description for t in history] == ["Rent", "Food market"]


def test_history_filters_by_amount_range(ledger, populated):
    history = ledger.get_history(populated, HistoryFilter(min_amount=Decimal("40"), max_amount=Decimal("250")))
    assert sorted(t.amount for t in history) == [Decimal("40"), Decimal("75"), Decimal("250")]


def test_history_filters_are_conjunctive(ledger, populated):
    history = ledger.get_history(populated, HistoryFilter(kind=DEBIT, max_amount=Decimal("100")))
    assert [t.description for t in history] == ["Refund"]


def test_history_sorts_by_amount(ledger, populated):
    ascending = ledger.get_history(populated, HistoryFilter(sort_field=SortField.AMOUNT, sort_order=SortOrder.ASC))
    assert [t.amount for t in ascending] == [Decimal("40"), Decimal("75"), Decimal("250"), Decimal("500")]

    descending = ledger.get_history(populated, HistoryFilter(sort_field=SortField.AMOUNT))
    assert [t.amount for t in descending] == [Decimal("500"), Decimal("250"), Decimal("75"), Decimal("40")]


def test_history_sorts_by_date_ascending(ledger, populated):
    history = ledger.get_history(populated, HistoryFilter(sort_field=SortField.DATE, sort_order=SortOrder.ASC))
    assert [t.description for t in history] == ["Salary", "Food market", "Refund", "Rent"]


def test_history_filters_by_date_range(ledger, populated):
    recorded_on = next(iter(ledger.get_history(populated))).timestamp.date()

    same_day = ledger.get_history(populated, HistoryFilter(start_date=recorded_on, end_date=recorded_on))
    assert len(list(same_day)) == 4

    earlier = ledger.get_history(populated, HistoryFilter(end_date=recorded_on - timedelta(days=1)))
    assert list(earlier) == []

    later = ledger.get_history(populated, HistoryFilter(start_date=recorded_on + timedelta(days=1)))
    assert list(later) == []


def test_history_is_lazy_and_restartable(ledger, user):
    history = ledger.get_history(user)
    ledger.record_transaction(user, DEBIT, Decimal("10"), "after the view was created")

    first_pass = [t.transaction_id for t in history]
    second_pass = [t.transaction_id for t in history]

    assert len(first_pass) == 1
    assert first_pass == second_pass


def test_closed_history_iteration_releases_the_store(ledger, user):
    for amount in ("1", "2", "3"):
        ledger.record_transaction(user, DEBIT, Decimal(amount), "deposit")

    with closing(iter(ledger.get_history(user))) as rows:
        newest = next(rows)

    # A write after stopping early must not wait on the reader
    ledger.record_transaction(user, DEBIT, Decimal("4"), "deposit")

    assert newest.amount == Decimal("3")
    assert len(list(ledger.get_history(user))) == 4


def test_history_is_scoped_to_user(ledger, user, other_user):
    ledger.record_transaction(user, DEBIT, Decimal("10"), "mine")
    ledger.record_transaction(other_user, DEBIT, Decimal("20"), "theirs")

    assert [t.description for t in ledger.get_history(user)] == ["mine"]
    assert ledger.get_balance(other_user) == Decimal("20")

"""Prometheus metrics for ledger activity, loan repayments and savings sweeps"""

from decimal import Decimal

from prometheus_client import Counter, Histogram

# Ledger metrics
transaction_counter = Counter(
    "ledger_transactions_total",
    "Ledger entries recorded",
    ["kind"],  # Debit | Credit
)

refusal_counter = Counter(
    "ledger_refusals_total",
    "Transaction requests refused before any write",
    ["reason"],  # validation | insufficient_balance | loan_overdue
)

# Loan metrics
loan_disbursed_counter = Counter(
    "ledger_loans_disbursed_total",
    "Loans created",
)

repayment_counter = Counter(
    "ledger_loan_repayments_total",
    "Loan repayments applied",
    ["outcome"],  # active | repaid
)

# Savings metrics
sweep_counter = Counter(
    "ledger_savings_sweeps_total",
    "Per-user savings sweep attempts",
    ["outcome"],  # swept | failed
)

swept_amount_counter = Counter(
    "ledger_savings_swept_amount_total",
    "Currency units moved by savings sweeps",
)

sweep_duration_histogram = Histogram(
    "ledger_savings_sweep_duration_seconds",
    "Duration of a full sweep pass",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_sweep(swept_users: int, failed_users: int, total_amount: Decimal) -> None:
    """Record per-user sweep outcomes and the amount moved"""
    if swept_users:
        sweep_counter.labels(outcome="swept").inc(swept_users)
    if failed_users:
        sweep_counter.labels(outcome="failed").inc(failed_users)
    swept_amount_counter.inc(float(total_amount))

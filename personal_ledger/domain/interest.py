"""Deposit interest predictor for fixed-deposit comparisons"""

from decimal import Decimal
from typing import Dict

from personal_ledger.domain.exceptions import ValidationError
from personal_ledger.utils.money import to_cents

# Annual deposit rates in percent
BANK_RATES: Dict[str, Decimal] = {
    "RHB": Decimal("2.6"),
    "Maybank": Decimal("2.5"),
    "Hong Leong": Decimal("2.3"),
    "Alliance": Decimal("2.85"),
    "AmBank": Decimal("2.55"),
    "Standard Chartered": Decimal("2.65"),
}


def predict_monthly_interest(deposit: Decimal, bank: str) -> Decimal:
    """
    Monthly interest earned on ``deposit`` at ``bank``'s annual rate.

    Example:
        12000 at Maybank (2.5%) -> 25.00 per month
    """
    if deposit <= 0:
        raise ValidationError("Deposit amount must be positive")

    rate = next((r for name, r in BANK_RATES.items() if name.lower() == bank.strip().lower()), None)
    if rate is None:
        raise ValidationError(f"Unknown bank: {bank}")

    return to_cents(deposit * rate / 12 / 100)

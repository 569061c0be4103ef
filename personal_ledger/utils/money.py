"""Decimal helpers for money values"""

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP, ROUND_UP

# Matches the Numeric(18, 4) storage scale
MONEY_QUANTUM = Decimal("0.0001")
CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """
    Normalize a stored or computed amount to a Decimal at storage scale.

    SQLite hands numeric aggregates back as floats; going through ``str``
    keeps 0.1 as 0.1 instead of its binary expansion. ``None`` (SUM over no
    rows) becomes zero.
    """
    if value is None:
        return Decimal("0").quantize(MONEY_QUANTUM)
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def to_money_up(value: Decimal) -> Decimal:
    """Storage scale, rounding away from zero (19.44444 -> 19.4445)"""
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_UP)


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def has_sub_cent_digits(value: Decimal) -> bool:
    """True for amounts finer than a cent, e.g. 10.005; 10.50 and 10.500 are whole cents"""
    return value != value.quantize(CENT, rounding=ROUND_DOWN)

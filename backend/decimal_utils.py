"""
RothPlanner - Decimal Helpers
=============================
Currency arithmetic and formatting.

Every dollar amount in the engine is a Decimal. Floats only appear at the
edges (user input, JSON), and are converted through their string form so
that 0.1 stays 0.1.
"""

from decimal import Decimal, ROUND_HALF_UP, getcontext, localcontext
from typing import Union

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")
INFINITY = Decimal("Infinity")

# Enough digits for $100M compounded at 100% for 82 years, plus cents
MONEY_PRECISION = 60


def money_context():
    """Decimal context wide enough for every validated balance and horizon."""
    context = getcontext().copy()
    context.prec = MONEY_PRECISION
    return localcontext(context)


def to_decimal(value: Number) -> Decimal:
    """Coerce a number to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round_cents(value: Number) -> Decimal:
    """Round to the cent, half away from zero (how dollar amounts are quoted)."""
    value = to_decimal(value)
    if not value.is_finite():
        return value
    with money_context():
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_percent(value: Number) -> Decimal:
    """Round a percent figure to two places (22.456 -> 22.46)."""
    return round_cents(value)


def percent_of(amount: Number, percent: Number) -> Decimal:
    """amount * percent / 100"""
    return to_decimal(amount) * to_decimal(percent) / HUNDRED


def safe_divide(numerator: Number, denominator: Number, default: Number = ZERO) -> Decimal:
    """Divide, returning `default` instead of raising on a zero denominator."""
    denominator = to_decimal(denominator)
    if denominator == 0:
        return to_decimal(default)
    return to_decimal(numerator) / denominator


# =============================================================================
# FORMATTING
# =============================================================================

def format_currency(amount: Number, cents: bool = False) -> str:
    """
    Format a dollar amount for messages, e.g. $10,000,000.

    Whole dollars by default, matching how limits are quoted to users.
    """
    amount = to_decimal(amount)
    if not amount.is_finite():
        return "unlimited"
    if cents:
        return f"${round_cents(amount):,.2f}" if amount >= 0 else f"-${abs(round_cents(amount)):,.2f}"
    with money_context():
        whole = amount.quantize(ONE, rounding=ROUND_HALF_UP)
    return f"${whole:,.0f}" if whole >= 0 else f"-${abs(whole):,.0f}"


def format_percentage(value: Number, places: int = 1) -> str:
    """Format a percent value (22 -> '22.0%')."""
    return f"{to_decimal(value):.{places}f}%"


def format_rate(rate: Number) -> str:
    """Format a fractional bracket rate (0.22 -> '22%')."""
    return f"{to_decimal(rate) * HUNDRED:.0f}%"

"""
RothPlanner - Tax Engine
========================
Incremental federal tax on an amount stacked on top of a base income.

All bracket math is Decimal. Only the final tax figure is rounded, to the
cent; slice amounts and running totals keep full precision.
"""

from decimal import Decimal
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from decimal_utils import HUNDRED, ZERO, Number, round_cents, to_decimal
from roth_constants import (
    FilingStatus,
    TAX_BRACKETS,
    STANDARD_DEDUCTION,
    ROTH_IRA_PHASE_OUT,
    ROTH_CONVERSION_INCOME_LIMIT,
)
from roth_models import FilingStatusConfig, TaxBracket, TaxBracketSlice


# =============================================================================
# BRACKET TABLE LOOKUP
# =============================================================================

def build_brackets(table: Sequence[Tuple[Optional[int], float]]) -> Tuple[TaxBracket, ...]:
    """Turn (upper_limit, rate) rows into contiguous TaxBracket models."""
    brackets = []
    lower = ZERO
    for limit, rate in table:
        upper = None if limit is None else to_decimal(limit)
        brackets.append(TaxBracket(rate=to_decimal(rate), lower_bound=lower, upper_bound=upper))
        if upper is not None:
            lower = upper
    return tuple(brackets)


def _build_config(tax_year: int, filing_status: FilingStatus) -> FilingStatusConfig:
    start, end = ROTH_IRA_PHASE_OUT[tax_year][filing_status]
    limit = ROTH_CONVERSION_INCOME_LIMIT.get(tax_year, {}).get(filing_status)
    return FilingStatusConfig(
        tax_year=tax_year,
        filing_status=filing_status,
        standard_deduction=to_decimal(STANDARD_DEDUCTION[tax_year][filing_status]),
        brackets=build_brackets(TAX_BRACKETS[tax_year][filing_status]),
        roth_contribution_phase_out=(to_decimal(start), to_decimal(end)),
        roth_conversion_income_limit=None if limit is None else to_decimal(limit),
    )


FILING_STATUS_CONFIGS: Dict[Tuple[int, FilingStatus], FilingStatusConfig] = {
    (year, status): _build_config(year, status)
    for year, statuses in TAX_BRACKETS.items()
    for status in statuses
}


def has_filing_status_config(tax_year: int, filing_status: FilingStatus) -> bool:
    return (tax_year, filing_status) in FILING_STATUS_CONFIGS


def get_filing_status_config(tax_year: int, filing_status: FilingStatus) -> FilingStatusConfig:
    """
    Look up the config for a tax year and filing status.

    Raises KeyError for an unknown pair; requests are validated before
    they get here.
    """
    try:
        return FILING_STATUS_CONFIGS[(tax_year, FilingStatus(filing_status))]
    except (KeyError, ValueError):
        raise KeyError(f"No tax table for {tax_year} / {filing_status}") from None


# =============================================================================
# BRACKET WALK
# =============================================================================

def _iter_slices(
    amount: Decimal,
    base_income: Decimal,
    brackets: Sequence[TaxBracket],
) -> Iterator[Tuple[TaxBracket, Decimal, Decimal]]:
    """Yield (bracket, slice_start, taxable_in_bracket) for [base, base + amount)."""
    remaining = amount
    income = base_income

    for bracket in brackets:
        if remaining <= 0:
            break

        upper = bracket.upper
        if income >= upper or bracket.width <= 0:
            continue

        start = max(bracket.lower_bound, income)
        taxable_in_bracket = min(remaining, upper - start)
        if taxable_in_bracket <= 0:
            continue

        yield bracket, start, taxable_in_bracket
        remaining -= taxable_in_bracket
        income = start + taxable_in_bracket


def _raw_tax(amount: Decimal, base_income: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    tax = ZERO
    for bracket, _, taxable in _iter_slices(amount, base_income, brackets):
        tax += taxable * bracket.rate
    return tax


def calculate_tax_due(
    amount: Number,
    base_income: Number,
    brackets: Sequence[TaxBracket],
) -> Decimal:
    """
    Tax owed on `amount` when it is added on top of `base_income`.

    Args:
        amount: Income being added (e.g. a Roth conversion)
        base_income: Taxable income already earned that year
        brackets: Ordered brackets, lowest first

    Returns:
        Incremental tax, rounded to the cent
    """
    amount = to_decimal(amount)
    if amount <= 0:
        return round_cents(ZERO)
    base_income = max(ZERO, to_decimal(base_income))
    return round_cents(_raw_tax(amount, base_income, brackets))


def calculate_tax_breakdown(
    amount: Number,
    base_income: Number,
    brackets: Sequence[TaxBracket],
) -> List[TaxBracketSlice]:
    """Calculate incremental tax with a per-bracket breakdown."""
    amount = to_decimal(amount)
    if amount <= 0:
        return []
    base_income = max(ZERO, to_decimal(base_income))

    breakdown = []
    for bracket, start, taxable in _iter_slices(amount, base_income, brackets):
        breakdown.append(TaxBracketSlice(
            rate=bracket.rate,
            slice_start=start,
            slice_end=start + taxable,
            amount_in_bracket=round_cents(taxable),
            tax_in_bracket=round_cents(taxable * bracket.rate),
        ))
    return breakdown


def calculate_effective_tax_rate(
    amount: Number,
    base_income: Number,
    brackets: Sequence[TaxBracket],
) -> Decimal:
    """Incremental tax as a percent of `amount` (unrounded). Zero for a zero amount."""
    amount = to_decimal(amount)
    if amount <= 0:
        return ZERO
    base_income = max(ZERO, to_decimal(base_income))
    return _raw_tax(amount, base_income, brackets) / amount * HUNDRED


def find_marginal_rate(income: Number, brackets: Sequence[TaxBracket]) -> Decimal:
    """Rate applied to the last dollar of `income`."""
    income = to_decimal(income)
    for bracket in reversed(brackets):
        if income > bracket.lower_bound:
            return bracket.rate
    return brackets[0].rate

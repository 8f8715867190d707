"""
RothPlanner - Projections
=========================
Portfolio growth and required minimum distribution projections.

Both projectors are pure: they hold only read-only inputs and every loop
is bounded by a constant from roth_constants.
"""

import logging
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence

from decimal_utils import (
    CENT,
    HUNDRED,
    ONE,
    ZERO,
    Number,
    money_context,
    percent_of,
    round_cents,
    safe_divide,
    to_decimal,
)
from roth_constants import ANALYSIS_LIMITS, RMD_START_AGE, UNIFORM_LIFETIME_TABLE
from roth_models import Account, Investment, RMDSummary, RMDYear

logger = logging.getLogger(__name__)


def equal_weighted_mean(
    accounts: Sequence[Account],
    value_of: Callable[[Investment], Decimal],
) -> Decimal:
    """
    Allocation-weighted value per account, averaged with equal account weight.

    Each account contributes sum(allocation * value) / 100. An account with
    no investments contributes zero; no accounts at all gives zero.
    """
    if not accounts:
        return ZERO

    total = ZERO
    for account in accounts:
        account_value = sum(
            (inv.allocation * value_of(inv) for inv in account.investments),
            ZERO,
        )
        total += account_value / HUNDRED
    return total / len(accounts)


# =============================================================================
# GROWTH PROJECTOR
# =============================================================================

class GrowthProjector:
    """
    Compounds balances at the blended expected return of a set of accounts.

    Example:
        projector = GrowthProjector(request.accounts)
        projector.future_value(Decimal("100000"), 25)
    """

    def __init__(self, accounts: Sequence[Account]):
        self.accounts = list(accounts)
        self.blended_return = self.calculate_blended_return(self.accounts)

    @staticmethod
    def calculate_blended_return(accounts: Sequence[Account]) -> Decimal:
        """Blended annual return in percent (equal account weighting)."""
        return equal_weighted_mean(accounts, lambda inv: inv.expected_return)

    @property
    def growth_factor(self) -> Decimal:
        return ONE + self.blended_return / HUNDRED

    def project_growth(self, balance: Number) -> Decimal:
        """One year of growth on `balance`, to the cent."""
        return round_cents(percent_of(balance, self.blended_return))

    def future_value(self, balance: Number, years: int) -> Decimal:
        """balance * (1 + r/100) ** years, to the cent. Negative years count as zero."""
        years = max(0, int(years))
        if years == 0:
            return round_cents(balance)
        with money_context():
            return round_cents(to_decimal(balance) * self.growth_factor ** years)

    def break_even_years(self, tax_paid: Number) -> int:
        """
        Years for the tax paid up front to double at the blended return.

        Capped at max_break_even_years so a zero or negative return
        terminates.
        """
        tax_paid = to_decimal(tax_paid)
        target = tax_paid * 2
        growth = tax_paid
        years = 0
        limit = ANALYSIS_LIMITS["max_break_even_years"]

        while growth < target and years < limit:
            growth *= self.growth_factor
            years += 1

        return years


# =============================================================================
# RMD PROJECTOR
# =============================================================================

class RMDProjector:
    """
    Required minimum distributions from an age -> divisor table.

    RMD for a year = balance at the start of that year / divisor(age).
    """

    def __init__(
        self,
        table: Optional[Dict[int, Decimal]] = None,
        statutory_start_age: int = RMD_START_AGE,
    ):
        self.table = dict(table or UNIFORM_LIFETIME_TABLE)
        self.statutory_start_age = statutory_start_age
        self._max_age = max(self.table)

    def start_age(self, retirement_age: int) -> int:
        return max(self.statutory_start_age, retirement_age)

    def get_divisor(self, age: int) -> Decimal:
        """Divisor for `age`; past the end of the table the last divisor applies."""
        divisor = self.table.get(age)
        if divisor is not None:
            return divisor
        if age > self._max_age:
            return self.table[self._max_age]
        return self.table.get(self.statutory_start_age, self.table[min(self.table)])

    def _withdrawal(self, balance: Decimal, divisor: Decimal) -> Decimal:
        if balance <= 0:
            return ZERO
        withdrawal = round_cents(safe_divide(balance, divisor, default=balance))
        if withdrawal <= 0:
            # Keep shrinking a balance too small to round to a cent
            withdrawal = CENT
        return min(withdrawal, balance)

    def first_year_rmd(self, balance: Number, age: int) -> Decimal:
        return self._withdrawal(to_decimal(balance), self.get_divisor(age))

    def project_schedule(self, balance: Number, start_age: int, end_age: int) -> List[RMDYear]:
        """
        Withdraw each year from `start_age` through `end_age` inclusive.

        Each year's RMD is taken from what is left after the prior years'
        withdrawals. An end age before the start age yields no years.
        """
        remaining = to_decimal(balance)
        last_age = min(end_age, start_age + ANALYSIS_LIMITS["max_rmd_years"] - 1)
        schedule = []

        for age in range(start_age, last_age + 1):
            if remaining <= 0:
                break
            divisor = self.get_divisor(age)
            withdrawal = self._withdrawal(remaining, divisor)
            remaining -= withdrawal
            schedule.append(RMDYear(
                age=age,
                divisor=divisor,
                withdrawal=withdrawal,
                remaining_balance=remaining,
            ))

        return schedule

    def summarize(self, balance: Number, retirement_age: int, life_expectancy: int) -> RMDSummary:
        """
        First-year RMD and lifetime total for a tax-deferred balance.

        With no RMD years (nothing left, or life expectancy before the
        start age) both amounts are zero.
        """
        start = self.start_age(retirement_age)
        schedule = self.project_schedule(balance, start, life_expectancy)
        if not schedule:
            logger.debug(f"No RMD years: start age {start}, life expectancy {life_expectancy}")

        return RMDSummary(
            start_age=start,
            first_year_amount=schedule[0].withdrawal if schedule else round_cents(ZERO),
            lifetime_total=round_cents(sum((year.withdrawal for year in schedule), ZERO)),
            schedule=tuple(schedule),
        )

"""
RothPlanner - Conversion Planner
================================
Year-by-year Roth conversion plan.

The optimizer is a single-year greedy bracket fill: each year it converts
whatever keeps the effective rate on the converted dollars lowest, given
that year's base income. It does not look ahead across years, so the plan
is not a global optimum (e.g. it never converts more now to avoid a higher
bracket later). That limitation is intentional and kept as-is.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from decimal_utils import ZERO, Number, to_decimal
from roth_constants import ANALYSIS_LIMITS
from roth_models import (
    AnalysisIssue,
    ConversionPlanYear,
    ConversionRequest,
    FilingStatusConfig,
    IssueKind,
    IssueSeverity,
    PlannerState,
)
from tax_engine import calculate_effective_tax_rate, calculate_tax_breakdown, calculate_tax_due, find_marginal_rate
from projections import GrowthProjector

logger = logging.getLogger(__name__)


# =============================================================================
# OPTIMIZER
# =============================================================================

class ConversionOptimizer:
    """Picks one year's conversion amount from the bracket table."""

    def __init__(self, config: FilingStatusConfig):
        self.config = config
        self.brackets = config.brackets

    def is_blocked(self, base_income: Number) -> bool:
        """True when income is over the conversion income limit (if the year has one)."""
        limit = self.config.roth_conversion_income_limit
        return limit is not None and to_decimal(base_income) > limit

    def optimal_conversion(self, base_income: Number, available: Number) -> Decimal:
        """
        Conversion amount with the lowest effective tax rate.

        For every bracket not already filled by the base income, the
        candidate is the bracket's remaining room (capped at the available
        balance). Ties go to the larger amount, so cheap room is always
        used up before anything is taxed at a higher rate.
        """
        base_income = max(ZERO, to_decimal(base_income))
        available = to_decimal(available)

        if available <= 0 or self.is_blocked(base_income):
            return ZERO

        best_amount = ZERO
        best_rate: Optional[Decimal] = None

        for bracket in self.brackets:
            upper = bracket.upper
            if base_income >= upper:
                continue

            room = upper - max(base_income, bracket.lower_bound)
            if room <= 0:
                continue

            candidate = min(available, room)
            rate = calculate_effective_tax_rate(candidate, base_income, self.brackets)

            if best_rate is None or rate < best_rate or (rate == best_rate and candidate > best_amount):
                best_rate = rate
                best_amount = candidate

        return best_amount


# =============================================================================
# PLANNER
# =============================================================================

@dataclass
class ConversionPlanOutcome:
    """Everything the planner produced, plus the balances it ended with."""
    plan: List[ConversionPlanYear]
    state: PlannerState
    starting_deferred_balance: Decimal
    remaining_balance: Decimal
    roth_balance: Decimal
    total_converted: Decimal
    total_tax_due: Decimal
    warnings: List[AnalysisIssue] = field(default_factory=list)


class ConversionPlanner:
    """
    Runs the optimizer once per year until the tax-deferred balance is gone
    or the year cap is reached.

    States: PLANNING -> EXHAUSTED (balance fully converted) or
    PLANNING -> CAPPED_BY_ITERATION_LIMIT. Neither is an error.

    Example:
        planner = ConversionPlanner(config, GrowthProjector(request.accounts))
        outcome = planner.build_plan(request)
    """

    def __init__(
        self,
        config: FilingStatusConfig,
        growth_projector: GrowthProjector,
        max_years: int = ANALYSIS_LIMITS["max_conversion_years"],
    ):
        self.config = config
        self.optimizer = ConversionOptimizer(config)
        self.growth_projector = growth_projector
        self.max_years = max_years

    def base_income_for_year(self, request: ConversionRequest, year_index: int) -> Decimal:
        """Current income in the first year, projected retirement income afterwards."""
        income = request.current_income if year_index == 0 else request.projected_retirement_income
        income = to_decimal(income)
        if request.apply_standard_deduction:
            income = max(ZERO, income - self.config.standard_deduction)
        return income

    def build_plan(self, request: ConversionRequest) -> ConversionPlanOutcome:
        remaining = sum((a.balance for a in request.accounts if a.is_tax_deferred), ZERO)
        roth = sum((a.balance for a in request.accounts if not a.is_tax_deferred), ZERO)
        starting_deferred = remaining

        plan: List[ConversionPlanYear] = []
        warnings: List[AnalysisIssue] = []
        total_tax = ZERO
        total_converted = ZERO
        state = PlannerState.PLANNING

        for year_index in range(self.max_years):
            if remaining <= 0:
                state = PlannerState.EXHAUSTED
                break

            base_income = self.base_income_for_year(request, year_index)

            if self.optimizer.is_blocked(base_income):
                field_name = "current_income" if year_index == 0 else "projected_retirement_income"
                if not any(w.field == field_name for w in warnings):
                    warnings.append(AnalysisIssue(
                        kind=IssueKind.CALCULATION,
                        severity=IssueSeverity.WARNING,
                        field=field_name,
                        value=base_income,
                        message="Income exceeds the Roth conversion income limit; no conversion planned",
                    ))

            amount = self.optimizer.optimal_conversion(base_income, remaining)
            tax_due = calculate_tax_due(amount, base_income, self.config.brackets)

            remaining -= amount
            roth += amount
            total_tax += tax_due
            total_converted += amount

            plan.append(ConversionPlanYear(
                year=request.tax_year + year_index,
                amount=amount,
                marginal_rate=find_marginal_rate(base_income + amount, self.config.brackets),
                tax_due=tax_due,
                remaining_balance=remaining,
                roth_balance=roth,
                projected_growth=self.growth_projector.project_growth(roth),
                bracket_breakdown=tuple(calculate_tax_breakdown(amount, base_income, self.config.brackets)),
            ))
            logger.debug(
                f"Year {request.tax_year + year_index}: converted {amount} on base {base_income}, "
                f"tax {tax_due}, remaining {remaining}"
            )
        else:
            state = PlannerState.EXHAUSTED if remaining <= 0 else PlannerState.CAPPED_BY_ITERATION_LIMIT

        logger.debug(f"Conversion plan finished after {len(plan)} years: {state.value}")

        return ConversionPlanOutcome(
            plan=plan,
            state=state,
            starting_deferred_balance=starting_deferred,
            remaining_balance=remaining,
            roth_balance=roth,
            total_converted=total_converted,
            total_tax_due=total_tax,
            warnings=warnings,
        )

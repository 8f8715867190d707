"""
RothPlanner - Conversion Analyzer
=================================
Top-level entry point: request in, AnalysisResult out.

Flow:
1. Validate every input (failures come back as data, nothing else runs)
2. Plan conversions year by year
3. Project RMDs and growth from the planner's final balances
4. Score risk and assemble the aggregate analysis

The analyzer keeps no state between calls. Identical requests give
identical results, so callers may cache by request fingerprint.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from decimal_utils import (
    ZERO,
    format_currency,
    format_percentage,
    money_context,
    round_cents,
    round_percent,
    safe_divide,
    to_decimal,
)
from roth_models import (
    AnalysisIssue,
    AnalysisResult,
    ConversionAnalysis,
    ConversionRequest,
    FilingStatusConfig,
    IssueKind,
    IssueSeverity,
    RothEligibility,
    WealthTransfer,
)
from tax_engine import calculate_tax_due, get_filing_status_config
from conversion_planner import ConversionPlanner
from projections import GrowthProjector, RMDProjector
from risk_assessment import RiskAssessor
from validation import validate_request

logger = logging.getLogger(__name__)


def roth_contribution_eligibility(income: Decimal, config: FilingStatusConfig) -> RothEligibility:
    """Direct Roth contribution eligibility from the phase-out range."""
    start, end = config.roth_contribution_phase_out
    if income < start:
        return RothEligibility.FULL
    if income >= end:
        return RothEligibility.NONE
    return RothEligibility.PARTIAL


class RothConversionAnalyzer:
    """
    Roth conversion analysis engine.
    All math is local and deterministic - no I/O, no clock, no randomness.

    Example:
        analyzer = RothConversionAnalyzer()
        result = analyzer.analyze(request)
        if not result.is_valid:
            show(result.errors)
    """

    def __init__(
        self,
        rmd_projector: Optional[RMDProjector] = None,
        risk_assessor: Optional[RiskAssessor] = None,
    ):
        self.rmd_projector = rmd_projector or RMDProjector()
        self.risk_assessor = risk_assessor or RiskAssessor()

    def analyze(self, request: ConversionRequest) -> AnalysisResult:
        """
        Validate the request and, if it is clean, run the full analysis.

        Returns:
            AnalysisResult with either `errors` or `analysis` + `plan`
        """
        errors = validate_request(request)
        if errors:
            logger.warning(
                f"Rejected conversion request with {len(errors)} validation failure(s): "
                f"{', '.join(e.field for e in errors)}"
            )
            return AnalysisResult(errors=errors)

        logger.info(
            f"Analyzing Roth conversion: {request.tax_year} {request.filing_status.value}, "
            f"{len(request.accounts)} account(s)"
        )

        config = get_filing_status_config(request.tax_year, request.filing_status)
        growth = GrowthProjector(request.accounts)
        warnings = self._calculation_warnings(request)

        # Step 1: Conversion plan
        outcome = ConversionPlanner(config, growth).build_plan(request)
        warnings.extend(outcome.warnings)

        # Step 2: RMDs on whatever stays tax-deferred
        rmds = self.rmd_projector.summarize(
            outcome.remaining_balance,
            request.retirement_age,
            request.life_expectancy,
        )

        # Step 3: Wealth transfer at life expectancy
        years = request.life_expectancy - request.current_age
        traditional_value = growth.future_value(outcome.remaining_balance, years)
        roth_value = growth.future_value(outcome.roth_balance, years)

        # Step 4: Lifetime savings - tax the traditional value would have owed
        retirement_base = to_decimal(request.projected_retirement_income)
        if request.apply_standard_deduction:
            retirement_base = max(ZERO, retirement_base - config.standard_deduction)
        with money_context():
            lifetime_tax_savings = calculate_tax_due(traditional_value, retirement_base, config.brackets)
            transfer_savings = roth_value - traditional_value

        # Step 5: Risk
        risk = self.risk_assessor.assess(
            request.accounts,
            outcome.remaining_balance,
            request.projected_retirement_income,
            rmds.first_year_amount,
        )

        total_tax = round_cents(outcome.total_tax_due)
        effective_rate = round_percent(safe_divide(total_tax * 100, outcome.total_converted))

        analysis = ConversionAnalysis(
            total_tax_due=total_tax,
            total_converted=round_cents(outcome.total_converted),
            effective_tax_rate=effective_rate,
            break_even_years=growth.break_even_years(total_tax),
            lifetime_tax_savings=lifetime_tax_savings,
            blended_return=growth.blended_return,
            rmds=rmds,
            wealth_transfer=WealthTransfer(
                traditional_value=traditional_value,
                roth_value=roth_value,
                tax_savings=transfer_savings,
            ),
            risk_analysis=risk,
            roth_contribution_eligibility=roth_contribution_eligibility(
                to_decimal(request.current_income), config
            ),
            planner_state=outcome.state,
            summary=self._summarize(outcome.total_converted, len(outcome.plan), total_tax, effective_rate),
        )

        logger.info(
            f"Conversion plan: {len(outcome.plan)} year(s), {outcome.state.value}, "
            f"tax {total_tax}, overall risk {risk.overall_risk.value}"
        )

        return AnalysisResult(warnings=warnings, analysis=analysis, plan=outcome.plan)

    def _calculation_warnings(self, request: ConversionRequest) -> List[AnalysisIssue]:
        """Inputs the engine handles with a neutral value instead of failing."""
        warnings = []

        if not request.accounts:
            warnings.append(AnalysisIssue(
                kind=IssueKind.CALCULATION,
                severity=IssueSeverity.WARNING,
                field="accounts",
                value=0,
                message="No accounts provided; growth is projected at 0%",
            ))
        elif not any(a.is_tax_deferred and a.balance > 0 for a in request.accounts):
            warnings.append(AnalysisIssue(
                kind=IssueKind.CALCULATION,
                severity=IssueSeverity.INFO,
                field="accounts",
                value=len(request.accounts),
                message="No tax-deferred balance to convert",
            ))

        return warnings

    @staticmethod
    def _summarize(converted: Decimal, years: int, tax: Decimal, effective_rate: Decimal) -> str:
        if converted <= 0:
            return "No conversion is planned."
        return (
            f"Converting {format_currency(converted)} over {years} year(s) costs "
            f"{format_currency(tax)} in tax ({format_percentage(effective_rate)} effective)."
        )

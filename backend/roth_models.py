"""
RothPlanner - Data Models
=========================
Pydantic models for the conversion engine.

These models serve as the contract between:
- The host application (HTTP API, cache)
- The validator
- The planning and projection engines

Request models deliberately carry no range constraints: out-of-range
numbers must reach the validator and come back as data, not as a
pydantic ValidationError.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from decimal_utils import INFINITY, ZERO
from roth_constants import AccountType, FilingStatus, InvestmentType, RiskLevel


# =============================================================================
# ENUMS
# =============================================================================

class IssueKind(str, Enum):
    VALIDATION = "validation"
    CALCULATION = "calculation"
    DATA = "data"


class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class PlannerState(str, Enum):
    PLANNING = "planning"
    EXHAUSTED = "exhausted"
    CAPPED_BY_ITERATION_LIMIT = "capped_by_iteration_limit"


class RothEligibility(str, Enum):
    FULL = "full"
    PARTIAL = "partial"
    NONE = "none"


# =============================================================================
# ISSUES (validation failures and calculation warnings)
# =============================================================================

class AnalysisIssue(BaseModel):
    """A field-tagged problem, returned as data instead of raised."""
    model_config = ConfigDict(frozen=True)

    kind: IssueKind = IssueKind.VALIDATION
    severity: IssueSeverity = IssueSeverity.ERROR
    field: str
    value: Any = None
    message: str


# =============================================================================
# ACCOUNT MODELS
# =============================================================================

class Investment(BaseModel):
    """One holding inside an account."""
    investment_type: InvestmentType = InvestmentType.STOCKS
    allocation: Decimal = Field(default=ZERO, description="Percent of the account")
    expected_return: Decimal = Field(default=ZERO, description="Expected annual return, percent")


class Contribution(BaseModel):
    year: int
    amount: Decimal = ZERO
    deductible: bool = True


class Account(BaseModel):
    """
    A retirement account. Everything except a Roth IRA is tax-deferred
    and is a candidate for conversion.
    """
    account_type: AccountType = AccountType.TRADITIONAL_IRA
    balance: Decimal = ZERO
    basis: Decimal = Field(default=ZERO, description="Already-taxed portion of the balance")
    investments: List[Investment] = Field(default_factory=list)
    contributions: List[Contribution] = Field(default_factory=list)

    @computed_field
    @property
    def is_tax_deferred(self) -> bool:
        return self.account_type != AccountType.ROTH_IRA

    @computed_field
    @property
    def total_allocation(self) -> Decimal:
        return sum((inv.allocation for inv in self.investments), ZERO)


# =============================================================================
# TAX TABLE MODELS
# =============================================================================

class TaxBracket(BaseModel):
    """Single bracket. A missing upper bound marks the top bracket."""
    model_config = ConfigDict(frozen=True)

    rate: Decimal = Field(description="Marginal rate as a fraction, e.g. 0.22")
    lower_bound: Decimal
    upper_bound: Optional[Decimal] = None

    @property
    def upper(self) -> Decimal:
        """Upper bound with the top bracket treated as infinite."""
        return INFINITY if self.upper_bound is None else self.upper_bound

    @property
    def width(self) -> Decimal:
        return self.upper - self.lower_bound


class FilingStatusConfig(BaseModel):
    """Immutable tax parameters for one (tax year, filing status) pair."""
    model_config = ConfigDict(frozen=True)

    tax_year: int
    filing_status: FilingStatus
    standard_deduction: Decimal
    brackets: Tuple[TaxBracket, ...]
    roth_contribution_phase_out: Tuple[Decimal, Decimal]
    roth_conversion_income_limit: Optional[Decimal] = None

    @model_validator(mode="after")
    def check_brackets(self) -> "FilingStatusConfig":
        """Brackets must be contiguous, ascending, with one unbounded top bracket."""
        if not self.brackets:
            raise ValueError("at least one bracket is required")

        unbounded = [b for b in self.brackets if b.upper_bound is None]
        if len(unbounded) != 1 or self.brackets[-1].upper_bound is not None:
            raise ValueError("exactly one bracket, the last, may be unbounded")

        for lower, upper in zip(self.brackets, self.brackets[1:]):
            if upper.lower_bound != lower.upper_bound:
                raise ValueError(f"bracket starting at {upper.lower_bound} is not contiguous")
            if upper.rate <= lower.rate or upper.upper <= upper.lower_bound:
                raise ValueError(f"bracket starting at {upper.lower_bound} is not ascending")
        return self


# =============================================================================
# REQUEST
# =============================================================================

class ConversionRequest(BaseModel):
    """Everything one analysis needs. Parsed, but not yet validated."""

    filing_status: FilingStatus = FilingStatus.SINGLE
    tax_year: int = 2025
    current_age: int
    retirement_age: int
    life_expectancy: int
    accounts: List[Account] = Field(default_factory=list)
    current_income: Decimal = ZERO
    projected_retirement_income: Decimal = ZERO

    # Treat incomes as gross and subtract the standard deduction before
    # stacking conversions on top. Off: incomes are already taxable income.
    apply_standard_deduction: bool = False

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "filing_status": "single",
                "tax_year": 2024,
                "current_age": 60,
                "retirement_age": 65,
                "life_expectancy": 90,
                "current_income": "90000",
                "projected_retirement_income": "40000",
                "accounts": [
                    {
                        "account_type": "traditional_ira",
                        "balance": "50000",
                        "basis": "0",
                        "investments": [
                            {"investment_type": "stocks", "allocation": "60", "expected_return": "8"},
                            {"investment_type": "bonds", "allocation": "40", "expected_return": "4"}
                        ],
                        "contributions": []
                    }
                ]
            }
        }
    )


# =============================================================================
# RESULTS
# =============================================================================

class TaxBracketSlice(BaseModel):
    """Portion of a taxed amount that fell into one bracket."""
    model_config = ConfigDict(frozen=True)

    rate: Decimal
    slice_start: Decimal
    slice_end: Decimal
    amount_in_bracket: Decimal
    tax_in_bracket: Decimal


class ConversionPlanYear(BaseModel):
    """One simulated conversion year. Never mutated once produced."""
    model_config = ConfigDict(frozen=True)

    year: int
    amount: Decimal
    marginal_rate: Decimal
    tax_due: Decimal
    remaining_balance: Decimal
    roth_balance: Decimal
    projected_growth: Decimal
    bracket_breakdown: Tuple[TaxBracketSlice, ...] = ()


class RMDYear(BaseModel):
    model_config = ConfigDict(frozen=True)

    age: int
    divisor: Decimal
    withdrawal: Decimal
    remaining_balance: Decimal


class RMDSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_age: int
    first_year_amount: Decimal
    lifetime_total: Decimal
    schedule: Tuple[RMDYear, ...] = ()


class WealthTransfer(BaseModel):
    model_config = ConfigDict(frozen=True)

    traditional_value: Decimal
    roth_value: Decimal
    tax_savings: Decimal


class RiskAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    market_risk: RiskLevel
    tax_risk: RiskLevel
    rmd_risk: RiskLevel
    overall_risk: RiskLevel


class ConversionAnalysis(BaseModel):
    """Aggregate result of one analysis."""
    model_config = ConfigDict(frozen=True)

    total_tax_due: Decimal
    total_converted: Decimal
    effective_tax_rate: Decimal = Field(description="Percent of the converted amount")
    break_even_years: int
    lifetime_tax_savings: Decimal
    blended_return: Decimal
    rmds: RMDSummary
    wealth_transfer: WealthTransfer
    risk_analysis: RiskAnalysis
    roth_contribution_eligibility: RothEligibility
    planner_state: PlannerState
    summary: str = ""


class AnalysisResult(BaseModel):
    """Either validation errors, or an analysis with its plan."""
    errors: List[AnalysisIssue] = Field(default_factory=list)
    warnings: List[AnalysisIssue] = Field(default_factory=list)
    analysis: Optional[ConversionAnalysis] = None
    plan: List[ConversionPlanYear] = Field(default_factory=list)

    @computed_field
    @property
    def is_valid(self) -> bool:
        return not self.errors

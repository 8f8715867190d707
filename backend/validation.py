"""
RothPlanner - Request Validation
================================
Bounds checks for a ConversionRequest.

Every check runs and every failure is returned; nothing is raised and
nothing stops at the first problem. An empty list means the request is
safe to analyze.
"""

from decimal import Decimal
from typing import List

from decimal_utils import Number, format_currency, to_decimal
from roth_constants import ANALYSIS_LIMITS as LIMITS, RMD_START_AGE, SUPPORTED_TAX_YEARS
from roth_models import Account, AnalysisIssue, ConversionRequest, IssueKind
from tax_engine import has_filing_status_config


def _outside(value: Number, low: Number, high: Number) -> bool:
    value = to_decimal(value)
    if not value.is_finite():
        return True
    return value < to_decimal(low) or value > to_decimal(high)


def _failure(field: str, value, message: str, kind: IssueKind = IssueKind.VALIDATION) -> AnalysisIssue:
    return AnalysisIssue(kind=kind, field=field, value=value, message=message)


def _validate_ages(request: ConversionRequest) -> List[AnalysisIssue]:
    errors = []
    min_age, max_age = LIMITS["min_age"], LIMITS["max_age"]

    if _outside(request.current_age, min_age, max_age):
        errors.append(_failure(
            "current_age", request.current_age,
            f"Age must be between {min_age} and {max_age}",
        ))

    if request.retirement_age <= request.current_age or request.retirement_age > max_age:
        errors.append(_failure(
            "retirement_age", request.retirement_age,
            f"Retirement age must be greater than current age and no more than {max_age}",
        ))

    if request.life_expectancy <= request.retirement_age or request.life_expectancy > max_age:
        errors.append(_failure(
            "life_expectancy", request.life_expectancy,
            f"Life expectancy must be greater than retirement age and no more than {max_age}",
        ))
    elif request.life_expectancy < RMD_START_AGE:
        errors.append(_failure(
            "life_expectancy", request.life_expectancy,
            f"Life expectancy must be at least the RMD start age ({RMD_START_AGE})",
        ))

    return errors


def _validate_income(request: ConversionRequest) -> List[AnalysisIssue]:
    errors = []
    low, high = LIMITS["min_income"], LIMITS["max_income"]
    income_range = f"{format_currency(low)} and {format_currency(high)}"

    if _outside(request.current_income, low, high):
        errors.append(_failure(
            "current_income", request.current_income,
            f"Current income must be between {income_range}",
        ))

    if _outside(request.projected_retirement_income, low, high):
        errors.append(_failure(
            "projected_retirement_income", request.projected_retirement_income,
            f"Projected retirement income must be between {income_range}",
        ))

    return errors


def _validate_account(index: int, account: Account) -> List[AnalysisIssue]:
    errors = []
    prefix = f"accounts[{index}]"

    if _outside(account.balance, LIMITS["min_balance"], LIMITS["max_balance"]):
        errors.append(_failure(
            f"{prefix}.balance", account.balance,
            f"Account balance must be between {format_currency(LIMITS['min_balance'])} "
            f"and {format_currency(LIMITS['max_balance'])}",
        ))

    # A bad balance makes the upper bound meaningless, but the basis is still checked
    if not account.basis.is_finite() or account.basis < 0 or (
        account.balance.is_finite() and account.basis > account.balance
    ):
        errors.append(_failure(
            f"{prefix}.basis", account.basis,
            "Cost basis cannot be negative or exceed account balance",
        ))

    total_allocation = sum((inv.allocation for inv in account.investments), Decimal(0))
    if not total_allocation.is_finite() or abs(total_allocation - 100) > LIMITS["allocation_tolerance"]:
        errors.append(_failure(
            f"{prefix}.investments", total_allocation,
            "Investment allocations must total 100%",
        ))

    for inv_index, investment in enumerate(account.investments):
        inv_prefix = f"{prefix}.investments[{inv_index}]"

        if _outside(investment.allocation, LIMITS["min_allocation"], LIMITS["max_allocation"]):
            errors.append(_failure(
                f"{inv_prefix}.allocation", investment.allocation,
                f"Allocation must be between {LIMITS['min_allocation']}% and {LIMITS['max_allocation']}%",
            ))

        if _outside(investment.expected_return, LIMITS["min_return"], LIMITS["max_return"]):
            errors.append(_failure(
                f"{inv_prefix}.expected_return", investment.expected_return,
                f"Expected return must be between {LIMITS['min_return']}% and {LIMITS['max_return']}%",
            ))

    for cont_index, contribution in enumerate(account.contributions):
        if _outside(contribution.amount, LIMITS["min_contribution"], LIMITS["max_contribution"]):
            errors.append(_failure(
                f"{prefix}.contributions[{cont_index}].amount", contribution.amount,
                f"Contribution amount must be between {format_currency(LIMITS['min_contribution'])} "
                f"and {format_currency(LIMITS['max_contribution'])}",
            ))

    return errors


def validate_request(request: ConversionRequest) -> List[AnalysisIssue]:
    """
    Check every input against its bounds.

    Returns:
        All failures found, in field order. Empty when the request is valid.
    """
    errors: List[AnalysisIssue] = []

    if not has_filing_status_config(request.tax_year, request.filing_status):
        errors.append(_failure(
            "tax_year", request.tax_year,
            f"No tax table for {request.tax_year} ({request.filing_status.value}); "
            f"supported years: {', '.join(str(y) for y in SUPPORTED_TAX_YEARS)}",
            kind=IssueKind.DATA,
        ))

    errors.extend(_validate_ages(request))
    errors.extend(_validate_income(request))

    for index, account in enumerate(request.accounts):
        errors.extend(_validate_account(index, account))

    return errors

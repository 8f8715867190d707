"""
RothPlanner - Tax and Analysis Constants
========================================
Hardcoded federal brackets, deductions, Roth limits and RMD divisors.

CRITICAL: These tables are the ONLY source of truth for the engine.
Adding a tax year means adding an entry below - brackets are never computed.

Sources: IRS Rev. Proc. 2022-38 (2023), 2023-34 (2024), 2024-40 (2025),
standard deductions for 2025 as amended in July 2025, and the 2022+
Uniform Lifetime Table (Treas. Reg. 1.401(a)(9)-9).
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from decimal_utils import format_rate, to_decimal


# =============================================================================
# ENUMS
# =============================================================================

class FilingStatus(str, Enum):
    SINGLE = "single"
    MARRIED_FILING_JOINTLY = "married_filing_jointly"
    MARRIED_FILING_SEPARATELY = "married_filing_separately"
    HEAD_OF_HOUSEHOLD = "head_of_household"
    QUALIFYING_WIDOW = "qualifying_widow"


class AccountType(str, Enum):
    TRADITIONAL_IRA = "traditional_ira"
    SEP_IRA = "sep_ira"
    SIMPLE_IRA = "simple_ira"
    ROLLOVER_IRA = "rollover_ira"
    ROTH_IRA = "roth_ira"


class InvestmentType(str, Enum):
    STOCKS = "stocks"
    BONDS = "bonds"
    CASH = "cash"
    REAL_ESTATE = "real_estate"
    COMMODITIES = "commodities"
    TARGET_DATE = "target_date"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# =============================================================================
# FEDERAL TAX BRACKETS
# Format: List of (upper_limit, marginal_rate) tuples, lowest first.
# The last tuple uses None for unlimited income.
# =============================================================================

BracketTable = List[Tuple[Optional[int], float]]

TAX_BRACKETS: Dict[int, Dict[FilingStatus, BracketTable]] = {
    2023: {
        FilingStatus.SINGLE: [
            (11000, 0.10),
            (44725, 0.12),
            (95375, 0.22),
            (182100, 0.24),
            (231250, 0.32),
            (578125, 0.35),
            (None, 0.37),
        ],
        FilingStatus.MARRIED_FILING_JOINTLY: [
            (22000, 0.10),
            (89450, 0.12),
            (190750, 0.22),
            (364200, 0.24),
            (462500, 0.32),
            (693750, 0.35),
            (None, 0.37),
        ],
        FilingStatus.MARRIED_FILING_SEPARATELY: [
            (11000, 0.10),
            (44725, 0.12),
            (95375, 0.22),
            (182100, 0.24),
            (231250, 0.32),
            (346875, 0.35),
            (None, 0.37),
        ],
        FilingStatus.HEAD_OF_HOUSEHOLD: [
            (15700, 0.10),
            (59850, 0.12),
            (95350, 0.22),
            (182100, 0.24),
            (231250, 0.32),
            (578100, 0.35),
            (None, 0.37),
        ],
    },
    2024: {
        FilingStatus.SINGLE: [
            (11600, 0.10),      # 10% on first $11,600
            (47150, 0.12),      # 12% on $11,601 to $47,150
            (100525, 0.22),     # 22% on $47,151 to $100,525
            (191950, 0.24),     # 24% on $100,526 to $191,950
            (243725, 0.32),     # 32% on $191,951 to $243,725
            (609350, 0.35),     # 35% on $243,726 to $609,350
            (None, 0.37),       # 37% on over $609,350
        ],
        FilingStatus.MARRIED_FILING_JOINTLY: [
            (23200, 0.10),
            (94300, 0.12),
            (201050, 0.22),
            (383900, 0.24),
            (487450, 0.32),
            (731200, 0.35),
            (None, 0.37),
        ],
        FilingStatus.MARRIED_FILING_SEPARATELY: [
            (11600, 0.10),
            (47150, 0.12),
            (100525, 0.22),
            (191950, 0.24),
            (243725, 0.32),
            (365600, 0.35),
            (None, 0.37),
        ],
        FilingStatus.HEAD_OF_HOUSEHOLD: [
            (16550, 0.10),
            (63100, 0.12),
            (100500, 0.22),
            (191950, 0.24),
            (243700, 0.32),
            (609350, 0.35),
            (None, 0.37),
        ],
    },
    2025: {
        FilingStatus.SINGLE: [
            (11925, 0.10),
            (48475, 0.12),
            (103350, 0.22),
            (197300, 0.24),
            (250525, 0.32),
            (626350, 0.35),
            (None, 0.37),
        ],
        FilingStatus.MARRIED_FILING_JOINTLY: [
            (23850, 0.10),
            (96950, 0.12),
            (206700, 0.22),
            (394600, 0.24),
            (501050, 0.32),
            (751600, 0.35),
            (None, 0.37),
        ],
        FilingStatus.MARRIED_FILING_SEPARATELY: [
            (11925, 0.10),
            (48475, 0.12),
            (103350, 0.22),
            (197300, 0.24),
            (250525, 0.32),
            (375800, 0.35),
            (None, 0.37),
        ],
        FilingStatus.HEAD_OF_HOUSEHOLD: [
            (17000, 0.10),
            (64850, 0.12),
            (103350, 0.22),
            (197300, 0.24),
            (250500, 0.32),
            (626350, 0.35),
            (None, 0.37),
        ],
    },
}

# Qualifying surviving spouses use the joint tables
for _year_table in TAX_BRACKETS.values():
    _year_table[FilingStatus.QUALIFYING_WIDOW] = _year_table[FilingStatus.MARRIED_FILING_JOINTLY]


# =============================================================================
# STANDARD DEDUCTIONS
# =============================================================================

STANDARD_DEDUCTION: Dict[int, Dict[FilingStatus, int]] = {
    2023: {
        FilingStatus.SINGLE: 13850,
        FilingStatus.MARRIED_FILING_JOINTLY: 27700,
        FilingStatus.MARRIED_FILING_SEPARATELY: 13850,
        FilingStatus.HEAD_OF_HOUSEHOLD: 20800,
        FilingStatus.QUALIFYING_WIDOW: 27700,
    },
    2024: {
        FilingStatus.SINGLE: 14600,
        FilingStatus.MARRIED_FILING_JOINTLY: 29200,
        FilingStatus.MARRIED_FILING_SEPARATELY: 14600,
        FilingStatus.HEAD_OF_HOUSEHOLD: 21900,
        FilingStatus.QUALIFYING_WIDOW: 29200,
    },
    2025: {
        FilingStatus.SINGLE: 15750,
        FilingStatus.MARRIED_FILING_JOINTLY: 31500,
        FilingStatus.MARRIED_FILING_SEPARATELY: 15750,
        FilingStatus.HEAD_OF_HOUSEHOLD: 23625,
        FilingStatus.QUALIFYING_WIDOW: 31500,
    },
}


# =============================================================================
# ROTH IRA CONTRIBUTION PHASE-OUTS (MAGI)
# Format: (phase_out_start, phase_out_end)
# =============================================================================

ROTH_IRA_PHASE_OUT: Dict[int, Dict[FilingStatus, Tuple[int, int]]] = {
    2023: {
        FilingStatus.SINGLE: (138000, 153000),
        FilingStatus.MARRIED_FILING_JOINTLY: (218000, 228000),
        FilingStatus.MARRIED_FILING_SEPARATELY: (0, 10000),
        FilingStatus.HEAD_OF_HOUSEHOLD: (138000, 153000),
        FilingStatus.QUALIFYING_WIDOW: (218000, 228000),
    },
    2024: {
        FilingStatus.SINGLE: (146000, 161000),
        FilingStatus.MARRIED_FILING_JOINTLY: (230000, 240000),
        FilingStatus.MARRIED_FILING_SEPARATELY: (0, 10000),
        FilingStatus.HEAD_OF_HOUSEHOLD: (146000, 161000),
        FilingStatus.QUALIFYING_WIDOW: (230000, 240000),
    },
    2025: {
        FilingStatus.SINGLE: (150000, 165000),
        FilingStatus.MARRIED_FILING_JOINTLY: (236000, 246000),
        FilingStatus.MARRIED_FILING_SEPARATELY: (0, 10000),
        FilingStatus.HEAD_OF_HOUSEHOLD: (150000, 165000),
        FilingStatus.QUALIFYING_WIDOW: (236000, 246000),
    },
}

# Conversions have had no income limit since 2010. Entries here are the
# exception, keyed like the tables above.
ROTH_CONVERSION_INCOME_LIMIT: Dict[int, Dict[FilingStatus, int]] = {}

SUPPORTED_TAX_YEARS: List[int] = sorted(TAX_BRACKETS)


# =============================================================================
# REQUIRED MINIMUM DISTRIBUTIONS
# =============================================================================

RMD_START_AGE = 73  # SECURE 2.0

UNIFORM_LIFETIME_TABLE = {
    age: to_decimal(divisor) for age, divisor in {
        72: 27.4, 73: 26.5, 74: 25.5, 75: 24.6, 76: 23.7, 77: 22.9,
        78: 22.0, 79: 21.1, 80: 20.2, 81: 19.4, 82: 18.5, 83: 17.7,
        84: 16.8, 85: 16.0, 86: 15.2, 87: 14.4, 88: 13.7, 89: 12.9,
        90: 12.2, 91: 11.5, 92: 10.8, 93: 10.1, 94: 9.5, 95: 8.9,
        96: 8.4, 97: 7.8, 98: 7.3, 99: 6.8, 100: 6.4, 101: 6.0,
        102: 5.6, 103: 5.2, 104: 4.9, 105: 4.6, 106: 4.3, 107: 4.1,
        108: 3.9, 109: 3.7, 110: 3.5, 111: 3.4, 112: 3.3, 113: 3.1,
        114: 3.0, 115: 2.9, 116: 2.8, 117: 2.7, 118: 2.5, 119: 2.3,
        120: 2.0,
    }.items()
}


# =============================================================================
# INVESTMENT ASSUMPTIONS
# Annualized volatility (standard deviation, percent) per investment kind.
# =============================================================================

INVESTMENT_VOLATILITY = {
    InvestmentType.STOCKS: to_decimal(16),
    InvestmentType.BONDS: to_decimal(6),
    InvestmentType.CASH: to_decimal(1),
    InvestmentType.REAL_ESTATE: to_decimal(14),
    InvestmentType.COMMODITIES: to_decimal(20),
    InvestmentType.TARGET_DATE: to_decimal(10),
}


# =============================================================================
# ANALYSIS LIMITS
# =============================================================================

ANALYSIS_LIMITS = {
    "min_age": 18,
    "max_age": 100,
    "min_income": to_decimal(0),
    "max_income": to_decimal(10_000_000),
    "min_balance": to_decimal(0),
    "max_balance": to_decimal(100_000_000),
    "min_allocation": to_decimal(0),
    "max_allocation": to_decimal(100),
    "allocation_tolerance": to_decimal("0.01"),
    "min_return": to_decimal(-100),
    "max_return": to_decimal(100),
    "min_contribution": to_decimal(0),
    "max_contribution": to_decimal(1_000_000),

    # Loop guards
    "max_conversion_years": 10,
    "max_break_even_years": 50,
    "max_rmd_years": 120,
}

# Value below "low" -> LOW, above "high" -> HIGH, otherwise MEDIUM
RISK_THRESHOLDS = {
    "market": {"low": to_decimal(8), "high": to_decimal(15)},          # blended volatility, %
    "tax": {"low": to_decimal(100), "high": to_decimal(300)},          # deferred balance / income, %
    "rmd": {"low": to_decimal(10_000), "high": to_decimal(50_000)},    # first-year RMD, $
}

RISK_SCORES = {
    RiskLevel.LOW: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.HIGH: 3,
}


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_tax_bracket_info(tax_year: int, filing_status: FilingStatus) -> str:
    """
    Return a formatted string of tax brackets for the given year and status.
    Used by the reference endpoint.
    """
    brackets = TAX_BRACKETS[tax_year][filing_status]
    lines = [f"{tax_year} Federal Tax Brackets for {filing_status.value.replace('_', ' ').title()}:"]
    prev_limit = 0

    for limit, rate in brackets:
        if limit is None:
            lines.append(f"  Over ${prev_limit:,}: {format_rate(rate)}")
        else:
            lines.append(f"  ${prev_limit:,} to ${limit:,}: {format_rate(rate)}")
            prev_limit = limit

    return "\n".join(lines)

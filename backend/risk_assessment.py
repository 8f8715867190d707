"""
RothPlanner - Risk Assessment
=============================
Low / Medium / High ratings for market, tax and RMD exposure.
"""

from decimal import Decimal
from typing import Dict, Optional, Sequence

from decimal_utils import HUNDRED, ZERO, Number, to_decimal
from roth_constants import INVESTMENT_VOLATILITY, RISK_SCORES, RISK_THRESHOLDS, RiskLevel
from roth_models import Account, RiskAnalysis
from projections import equal_weighted_mean


def classify(value: Number, low: Decimal, high: Decimal) -> RiskLevel:
    """Below `low` is LOW, above `high` is HIGH, anything in between is MEDIUM."""
    value = to_decimal(value)
    if value < low:
        return RiskLevel.LOW
    if value > high:
        return RiskLevel.HIGH
    return RiskLevel.MEDIUM


class RiskAssessor:
    """Scores the three risk dimensions and rolls them into one rating."""

    def __init__(self, thresholds: Optional[Dict[str, Dict[str, Decimal]]] = None):
        self.thresholds = thresholds or RISK_THRESHOLDS

    def _classify(self, dimension: str, value: Number) -> RiskLevel:
        limits = self.thresholds[dimension]
        return classify(value, limits["low"], limits["high"])

    @staticmethod
    def blended_volatility(accounts: Sequence[Account]) -> Decimal:
        """Allocation-weighted volatility, equal weight per account."""
        return equal_weighted_mean(
            accounts,
            lambda inv: INVESTMENT_VOLATILITY.get(inv.investment_type, ZERO),
        )

    def assess_market_risk(self, accounts: Sequence[Account]) -> RiskLevel:
        return self._classify("market", self.blended_volatility(accounts))

    def assess_tax_risk(self, deferred_balance: Number, retirement_income: Number) -> RiskLevel:
        """
        Size of the remaining tax-deferred balance relative to retirement
        income, in percent. With no income, any balance is HIGH.
        """
        deferred_balance = to_decimal(deferred_balance)
        retirement_income = to_decimal(retirement_income)

        if retirement_income <= 0:
            return RiskLevel.HIGH if deferred_balance > 0 else RiskLevel.LOW

        ratio = deferred_balance / retirement_income * HUNDRED
        return self._classify("tax", ratio)

    def assess_rmd_risk(self, first_year_rmd: Number) -> RiskLevel:
        return self._classify("rmd", first_year_rmd)

    @staticmethod
    def overall_risk(market: RiskLevel, tax: RiskLevel, rmd: RiskLevel) -> RiskLevel:
        average = Decimal(RISK_SCORES[market] + RISK_SCORES[tax] + RISK_SCORES[rmd]) / 3
        if average <= Decimal("1.5"):
            return RiskLevel.LOW
        if average >= Decimal("2.5"):
            return RiskLevel.HIGH
        return RiskLevel.MEDIUM

    def assess(
        self,
        accounts: Sequence[Account],
        deferred_balance: Number,
        retirement_income: Number,
        first_year_rmd: Number,
    ) -> RiskAnalysis:
        market = self.assess_market_risk(accounts)
        tax = self.assess_tax_risk(deferred_balance, retirement_income)
        rmd = self.assess_rmd_risk(first_year_rmd)

        return RiskAnalysis(
            market_risk=market,
            tax_risk=tax,
            rmd_risk=rmd,
            overall_risk=self.overall_risk(market, tax, rmd),
        )

"""Opportunity cost: what a purchase amount could grow to if invested."""

from __future__ import annotations

import math
import sys
from typing import Protocol

from purchase_guard.advisor.types import OpportunityCost

DEFAULT_ANNUAL_RETURN = 0.07

MAX_AMOUNT = sys.float_info.max


def _finite(value: float) -> float:
    """Clamp to [0, MAX_AMOUNT]; NaN becomes 0."""
    if math.isnan(value):
        return 0.0
    return max(0.0, min(MAX_AMOUNT, value))


class OpportunityCostCalculator(Protocol):
    def calculate(self, amount: float, currency: str) -> OpportunityCost: ...


class CompoundGrowthCalculator:
    """Yearly compounding at a fixed annual return.

    Results are always finite: amounts whose projection overflows a float
    are capped at ``MAX_AMOUNT``.
    """

    def __init__(self, annual_return: float = DEFAULT_ANNUAL_RETURN):
        self.annual_return = annual_return

    def future_value(self, amount: float, years: int) -> float:
        try:
            value = amount * (1 + self.annual_return) ** years
        except OverflowError:
            value = math.inf
        return round(_finite(value), 2)

    def calculate(self, amount: float, currency: str) -> OpportunityCost:
        amount = _finite(float(amount))
        years20 = self.future_value(amount, 20)
        return OpportunityCost(
            amount=round(amount, 2),
            years5=self.future_value(amount, 5),
            years10=self.future_value(amount, 10),
            years20=years20,
            comparison_text=(
                f"Invested instead, {currency} {amount:,.2f} could grow to "
                f"{currency} {years20:,.2f} in 20 years."
            ),
        )

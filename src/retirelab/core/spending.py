"""
Spending target and guardrail adjuster.

The target is inflated from the start year, scaled by the survivor factor once
one spouse has died, and then optionally adjusted by guardrails:

- **ceiling**: when the start-of-year portfolio exceeds 20x the inflated
  ceiling, spend the inflated ceiling
- **floor**: when the target would draw more than 6% of the portfolio, drop
  to the inflated floor
"""

from __future__ import annotations

from dataclasses import dataclass

from .context import YearContext
from .specs import SpendingPlan

GUARDRAIL_PORTFOLIO_CEILING_MULTIPLIER = 20.0
GUARDRAIL_MAX_WITHDRAWAL_RATE_PCT = 6.0

CEILING = "ceiling"
FLOOR = "floor"


@dataclass(frozen=True)
class SpendingDecision:
    target: float
    actual: float
    guardrail: str | None = None


def inflated_target(spending: SpendingPlan, ctx: YearContext) -> float:
    """Inflated target, scaled by the survivor factor in the survivor phase."""
    if not ctx.phase.living:
        return 0.0
    target = spending.target_annual_spend * ctx.inflation_factor
    if ctx.phase.is_survivor_phase:
        target *= spending.survivor_spending_adjustment_pct / 100.0
    return target


def decide_spending(
    spending: SpendingPlan,
    ctx: YearContext,
    start_of_year_balance: float,
    guardrails_enabled: bool,
) -> SpendingDecision:
    target = inflated_target(spending, ctx)
    if not guardrails_enabled or target <= 0:
        return SpendingDecision(target=target, actual=target)

    if spending.ceiling_annual_spend is not None:
        ceiling = spending.ceiling_annual_spend * ctx.inflation_factor
        if start_of_year_balance > GUARDRAIL_PORTFOLIO_CEILING_MULTIPLIER * ceiling:
            return SpendingDecision(target=target, actual=ceiling, guardrail=CEILING)

    if spending.floor_annual_spend is not None:
        floor = spending.floor_annual_spend * ctx.inflation_factor
        max_rate = GUARDRAIL_MAX_WITHDRAWAL_RATE_PCT / 100.0
        if start_of_year_balance <= 0 or target / start_of_year_balance > max_rate:
            return SpendingDecision(target=target, actual=floor, guardrail=FLOOR)

    return SpendingDecision(target=target, actual=target)

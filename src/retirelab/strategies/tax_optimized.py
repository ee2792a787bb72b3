"""
Tax-optimized withdrawal strategy.

A greedy bucket algorithm that always takes the cheapest dollars first:

1. **deductionFill**: tax-deferred income that the standard deduction
   shelters completely
2. **basisReturn**: taxable accounts whose per-dollar tax cost (gain fraction
   times the capital-gains rate) does not exceed the year's blended rate
3. **lowBracketFill**: more tax-deferred income, stopping once the blended
   effective rate would rise by more than two points
4. **capitalGains**: the remaining taxable accounts, lowest gain fraction first
5. **ordinary**: the remaining tax-deferred balances
6. **roth**: Roth accounts last

With RMD smoothing enabled, step 3 draws up to 20% more when an owner is
within three years of their RMD start age and the first RMD would exceed the
standard deduction, pulling income forward out of future RMD years.
"""

from __future__ import annotations

from typing import Sequence

from retirelab.calculators.cost_basis import gain_fraction
from retirelab.core.context import AccountState
from retirelab.core.interfaces import (
    IWithdrawalStrategy,
    TaxContext,
    WithdrawalPlan,
    largest_within,
)
from retirelab.core.kinds import K

from .ordered import drain, roth_bucket, tax_deferred_bucket, taxable_bucket

BLENDED_RATE_STEP = 0.02
RMD_SMOOTHING_BOOST = 0.20
RMD_SMOOTHING_WINDOW_YEARS = 3


class TaxOptimized(IWithdrawalStrategy):
    """Six-step greedy withdrawal ordering (kind: 'taxOptimized')."""

    name = K.W_TAX_OPTIMIZED

    def allocate(
        self, gap: float, accounts: Sequence[AccountState], tax_ctx: TaxContext
    ) -> WithdrawalPlan:
        plan = WithdrawalPlan(requested=max(0.0, gap))
        if plan.remaining <= 0:
            return plan

        deferred = tax_deferred_bucket(accounts)
        taxable = sorted(
            taxable_bucket(accounts), key=lambda a: gain_fraction(a.balance, a.basis)
        )

        self._fill_deduction(plan, deferred, tax_ctx)
        self._return_basis(plan, taxable, tax_ctx)
        self._fill_low_bracket(plan, deferred, tax_ctx)
        drain(plan, taxable, K.STEP_CAPITAL_GAINS)
        drain(plan, deferred, K.STEP_ORDINARY)
        drain(plan, roth_bucket(accounts), K.STEP_ROTH)
        return plan

    def _fill_deduction(
        self, plan: WithdrawalPlan, deferred: list[AccountState], tax_ctx: TaxContext
    ) -> None:
        available = sum(a.balance for a in deferred)
        income = plan.income(tax_ctx.base_income)
        space = tax_ctx.deduction_space(income, min(plan.remaining, available))
        if space > 0:
            drain(plan, deferred, K.STEP_DEDUCTION_FILL, limit=space)

    def _return_basis(
        self, plan: WithdrawalPlan, taxable: list[AccountState], tax_ctx: TaxContext
    ) -> None:
        rates = tax_ctx.rates
        gains_rate = (rates.cap_gains_pct + rates.state_cap_gains_pct) / 100.0
        for acct in taxable:
            if plan.remaining <= 0:
                return
            cost = gain_fraction(acct.balance, acct.basis) * gains_rate
            current = tax_ctx.blended_rate(plan.income(tax_ctx.base_income))
            if cost <= current:
                plan.draw(acct, plan.remaining, K.STEP_BASIS_RETURN)

    def _fill_low_bracket(
        self, plan: WithdrawalPlan, deferred: list[AccountState], tax_ctx: TaxContext
    ) -> None:
        limit = min(plan.remaining, sum(a.balance for a in deferred))
        if limit <= 0:
            return
        income = plan.income(tax_ctx.base_income)
        ceiling = tax_ctx.blended_rate(income) + BLENDED_RATE_STEP
        amount = largest_within(
            lambda x: tax_ctx.blended_rate(income.plus(ordinary=x)) <= ceiling, limit
        )
        if self._smoothing_applies(tax_ctx):
            amount = min(limit, amount * (1.0 + RMD_SMOOTHING_BOOST))
        if amount > 0:
            drain(plan, deferred, K.STEP_LOW_BRACKET_FILL, limit=amount)

    @staticmethod
    def _smoothing_applies(tax_ctx: TaxContext) -> bool:
        if not tax_ctx.rmd_smoothing or tax_ctx.years_to_rmd is None:
            return False
        if not 0 < tax_ctx.years_to_rmd <= RMD_SMOOTHING_WINDOW_YEARS:
            return False
        return tax_ctx.projected_first_rmd > tax_ctx.deduction

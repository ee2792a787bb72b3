"""
Pro-rata withdrawal strategy.
"""

from __future__ import annotations

from typing import Sequence

from retirelab.core.context import AccountState
from retirelab.core.interfaces import IWithdrawalStrategy, TaxContext, WithdrawalPlan
from retirelab.core.kinds import K

from .ordered import discretionary, drain, roth_bucket


class ProRata(IWithdrawalStrategy):
    """
    Withdraw from taxable and tax-deferred accounts in proportion to their
    balances (kind: 'proRata').

    Roth accounts are only touched once every other account is exhausted.
    """

    name = K.W_PRO_RATA

    def allocate(
        self, gap: float, accounts: Sequence[AccountState], tax_ctx: TaxContext
    ) -> WithdrawalPlan:
        plan = WithdrawalPlan(requested=max(0.0, gap))
        pool = [a for a in discretionary(accounts) if not a.is_roth]
        total = sum(a.balance for a in pool)
        if total > 0 and plan.remaining > 0:
            amount = min(plan.remaining, total)
            # Balances shrink as we draw, so compute every share up front.
            shares = [(a, amount * a.balance / total) for a in pool]
            for acct, share in shares:
                plan.draw(acct, share, K.STEP_PRO_RATA)
        if plan.remaining > 0:
            drain(plan, roth_bucket(accounts), K.STEP_ROTH)
        return plan

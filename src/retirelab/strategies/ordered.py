"""
Fixed-order withdrawal strategies.

Both strategies drain whole buckets in priority order and fall through to the
next bucket once one is exhausted. Roth is always the last bucket.
"""

from __future__ import annotations

from typing import Sequence

from retirelab.core.context import AccountState
from retirelab.core.interfaces import IWithdrawalStrategy, TaxContext, WithdrawalPlan
from retirelab.core.kinds import K


def discretionary(accounts: Sequence[AccountState]) -> list[AccountState]:
    """Accounts a strategy may draw from freely."""
    return [a for a in accounts if a.discretionary and a.balance > 0]


def taxable_bucket(accounts: Sequence[AccountState]) -> list[AccountState]:
    return [a for a in discretionary(accounts) if a.is_taxable]


def tax_deferred_bucket(accounts: Sequence[AccountState]) -> list[AccountState]:
    """Traditional accounts first, then unscheduled deferred comp."""
    pool = [a for a in discretionary(accounts) if a.is_tax_deferred]
    return sorted(pool, key=lambda a: a.type == K.ACCT_DEFERRED_COMP)


def roth_bucket(accounts: Sequence[AccountState]) -> list[AccountState]:
    return [a for a in discretionary(accounts) if a.is_roth]


def drain(
    plan: WithdrawalPlan,
    accounts: Sequence[AccountState],
    step: str,
    limit: float | None = None,
) -> float:
    """Draw from ``accounts`` in order until the gap (or ``limit``) is covered."""
    budget = plan.remaining if limit is None else min(limit, plan.remaining)
    taken_total = 0.0
    for acct in accounts:
        if budget - taken_total <= 0:
            break
        taken_total += plan.draw(acct, budget - taken_total, step)
    return taken_total


class TaxableFirst(IWithdrawalStrategy):
    """
    Withdraw taxable, then tax-deferred, then Roth (kind: 'taxableFirst').

    Keeps tax-deferred money growing longest at the cost of realizing capital
    gains early.
    """

    name = K.W_TAXABLE_FIRST

    def buckets(self, accounts: Sequence[AccountState]) -> list[list[AccountState]]:
        return [
            taxable_bucket(accounts),
            tax_deferred_bucket(accounts),
            roth_bucket(accounts),
        ]

    def allocate(
        self, gap: float, accounts: Sequence[AccountState], tax_ctx: TaxContext
    ) -> WithdrawalPlan:
        plan = WithdrawalPlan(requested=max(0.0, gap))
        for bucket in self.buckets(accounts):
            if plan.remaining <= 0:
                break
            step = K.STEP_ROTH if bucket and bucket[0].is_roth else K.STEP_ORDERED
            drain(plan, bucket, step)
        return plan


class TaxDeferredFirst(TaxableFirst):
    """Withdraw tax-deferred, then taxable, then Roth (kind: 'taxDeferredFirst')."""

    name = K.W_TAX_DEFERRED_FIRST

    def buckets(self, accounts: Sequence[AccountState]) -> list[list[AccountState]]:
        return [
            tax_deferred_bucket(accounts),
            taxable_bucket(accounts),
            roth_bucket(accounts),
        ]

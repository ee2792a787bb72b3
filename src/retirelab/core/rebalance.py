"""
Fees and rebalancing.

Rebalancing moves notional balances between accounts that carry a
``target_allocation_pct`` so each holds its share of their combined balance.
Transfers are not taxed: a taxable inflow adds to basis and a taxable outflow
reduces basis proportionally, exactly like a withdrawal.
"""

from __future__ import annotations

from typing import Sequence

from retirelab.calculators.cost_basis import basis_after_outflow

from .context import AccountState

MIN_TRANSFER = 0.01


def apply_fees(accounts: Sequence[AccountState]) -> dict[str, float]:
    """Deduct annual fees; returns the fee charged per account."""
    charged = {}
    for acct in accounts:
        if acct.balance <= 0 or not acct.fee_pct:
            continue
        fee = acct.balance * acct.fee_pct / 100.0
        acct.balance -= fee
        acct.clamp_basis()
        charged[acct.id] = fee
    return charged


def rebalance(accounts: Sequence[AccountState]) -> dict[str, float]:
    """
    Move targeted accounts to their allocation; returns the signed transfer per account.

    Accounts without a target are left untouched. Deltas smaller than a cent
    are skipped.
    """
    targeted = [a for a in accounts if a.target_allocation_pct]
    if len(targeted) < 2:
        return {}
    total = sum(a.balance for a in targeted)
    if total <= 0:
        return {}

    deltas = {
        a.id: total * a.target_allocation_pct / 100.0 - a.balance for a in targeted
    }
    transfers = {}
    for acct in targeted:
        delta = deltas[acct.id]
        if abs(delta) < MIN_TRANSFER:
            continue
        if delta > 0:
            acct.deposit(delta)
        else:
            outflow = min(-delta, acct.balance)
            if acct.is_taxable:
                acct.basis = basis_after_outflow(outflow, acct.balance, acct.basis)
            acct.balance -= outflow
            acct.clamp_basis()
            delta = -outflow
        transfers[acct.id] = delta
    return transfers

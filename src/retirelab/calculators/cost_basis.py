"""
Cost-basis tracking for taxable accounts.

A withdrawal from a taxable account is split into a gain portion (taxed as
capital gains) and a return of basis (untaxed) in proportion to the account's
unrealized gain. Growth never increases basis; only deposits do.
"""

from __future__ import annotations


def gain_fraction(balance: float, basis: float) -> float:
    """Share of ``balance`` that is unrealized gain, clamped to [0, 1]."""
    if balance <= 0:
        return 0.0
    return min(1.0, max(0.0, (balance - basis) / balance))


def split_withdrawal(amount: float, balance: float, basis: float) -> tuple[float, float]:
    """
    Split a withdrawal into (taxable_gain, new_basis).

    Args:
        amount: Withdrawal amount (already capped at the balance)
        balance: Account balance before the withdrawal
        basis: Cost basis before the withdrawal

    Returns:
        Tuple of (taxable gain realized, basis remaining after the withdrawal)
    """
    gf = gain_fraction(balance, basis)
    taxable_gain = amount * gf
    new_basis = max(0.0, basis - amount * (1.0 - gf))
    return taxable_gain, new_basis


def basis_after_outflow(amount: float, balance: float, basis: float) -> float:
    """Basis left after a non-taxable transfer out (rebalancing outflow)."""
    return split_withdrawal(amount, balance, basis)[1]

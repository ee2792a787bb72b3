"""
Withdrawal-strategy interface for RetireLab.
Defines the contract every withdrawal strategy satisfies and the value types
passed across it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence, runtime_checkable

from retirelab.calculators.tax import (
    ClassifiedIncome,
    TaxRates,
    blended_rate,
    compute_taxes,
)

from .context import AccountState
from .kinds import K

BISECTION_STEPS = 40


@dataclass(frozen=True)
class WithdrawalRecord:
    """One draw from one account, tagged with the solver step that produced it."""

    account_id: str
    amount: float
    step: str
    account_type: str
    taxable_gain: float = 0.0
    ordinary_income: float = 0.0

    @property
    def untaxed(self) -> float:
        return self.amount - self.taxable_gain - self.ordinary_income


@dataclass
class WithdrawalPlan:
    """
    Result of allocating a spending gap across accounts.

    ``requested`` is the gap handed to the strategy; ``remaining`` is whatever the
    accounts could not cover.
    """

    requested: float
    records: list[WithdrawalRecord] = field(default_factory=list)

    def draw(self, account: AccountState, amount: float, step: str) -> float:
        """Withdraw from ``account`` and record it; returns the amount taken."""
        taken, gain = account.withdraw(amount)
        if taken <= 0:
            return 0.0
        self.records.append(
            WithdrawalRecord(
                account_id=account.id,
                amount=taken,
                step=step,
                account_type=account.type,
                taxable_gain=gain,
                ordinary_income=taken if account.is_tax_deferred else 0.0,
            )
        )
        return taken

    @property
    def total(self) -> float:
        return sum(r.amount for r in self.records)

    @property
    def remaining(self) -> float:
        return max(0.0, self.requested - self.total)

    @property
    def ordinary_income(self) -> float:
        return sum(r.ordinary_income for r in self.records)

    @property
    def capital_gains(self) -> float:
        return sum(r.taxable_gain for r in self.records)

    @property
    def roth_total(self) -> float:
        return sum(r.amount for r in self.records if r.account_type == K.ACCT_ROTH)

    @property
    def untaxed(self) -> float:
        return sum(r.untaxed for r in self.records)

    def by_account(self) -> dict[str, float]:
        out: dict[str, float] = {}
        for r in self.records:
            out[r.account_id] = out.get(r.account_id, 0.0) + r.amount
        return out

    def by_step(self) -> dict[str, float]:
        out: dict[str, float] = {}
        for r in self.records:
            out[r.step] = out.get(r.step, 0.0) + r.amount
        return out

    def income(self, base: ClassifiedIncome) -> ClassifiedIncome:
        """``base`` plus the income these withdrawals generate."""
        return base.plus(
            ordinary=self.ordinary_income,
            capital_gains=self.capital_gains,
            untaxed=self.untaxed,
        )


@dataclass(frozen=True)
class TaxContext:
    """
    Tax view of the year handed to strategies.

    ``base_income`` already contains all mandatory income and RMDs, so a
    strategy can ask what tax or blended rate a candidate withdrawal would
    produce on top of it.
    """

    filing_status: str
    deduction: float
    rates: TaxRates
    base_income: ClassifiedIncome
    years_to_rmd: int | None = None
    rmd_smoothing: bool = False
    projected_first_rmd: float = 0.0

    def tax_on(self, income: ClassifiedIncome) -> float:
        return compute_taxes(income, self.filing_status, self.deduction, self.rates).total

    def blended_rate(self, income: ClassifiedIncome) -> float:
        return blended_rate(income, self.filing_status, self.deduction, self.rates)

    def taxable_ordinary(self, income: ClassifiedIncome) -> float:
        """Ordinary income including the taxable share of Social Security."""
        return compute_taxes(
            income, self.filing_status, self.deduction, self.rates
        ).taxable_ordinary_income

    def deduction_space(self, income: ClassifiedIncome, limit: float) -> float:
        """
        Extra ordinary income (up to ``limit``) that stays within the deduction.

        Solved by bisection because extra ordinary income also raises the
        taxable share of Social Security.
        """
        return largest_within(
            lambda x: self.taxable_ordinary(income.plus(ordinary=x)) <= self.deduction,
            limit,
        )


def largest_within(predicate, limit: float) -> float:
    """Largest x in [0, limit] with predicate(x) true, assuming it is monotone."""
    if limit <= 0 or not predicate(0.0):
        return 0.0
    if predicate(limit):
        return limit
    lo, hi = 0.0, limit
    for _ in range(BISECTION_STEPS):
        mid = (lo + hi) / 2
        if predicate(mid):
            lo = mid
        else:
            hi = mid
    return lo


@runtime_checkable
class IWithdrawalStrategy(Protocol):
    """
    Contract for withdrawal strategies.
    Responsibilities: cover a spending gap from discretionary account draws.
    """

    name: str

    def allocate(
        self,
        gap: float,
        accounts: Sequence[AccountState],
        tax_ctx: TaxContext,
    ) -> WithdrawalPlan:
        """
        Withdraw up to ``gap`` from ``accounts`` (mutating their balances).

        Every draw is capped at the account's balance; the part of the gap
        that cannot be covered is reported as ``WithdrawalPlan.remaining``.
        """
        ...

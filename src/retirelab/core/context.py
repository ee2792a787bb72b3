"""
Mutable per-run simulation state and the per-year context.

A :class:`SimulationState` is created fresh for every ``simulate`` call and
owned by its year loop; nothing in it is shared between runs.
"""

from __future__ import annotations

from dataclasses import dataclass

from retirelab.calculators.cost_basis import split_withdrawal

from .kinds import K
from .phase import PhaseInfo
from .specs import DeferredCompSchedule, PlanInput

# Amounts below this are treated as zero when clamping balances.
BALANCE_EPSILON = 1e-6


@dataclass
class AccountState:
    """Running balance and basis for one account."""

    id: str
    name: str
    type: str
    owner: str
    balance: float
    basis: float = 0.0
    expected_return_pct: float = 0.0
    fee_pct: float = 0.0
    target_allocation_pct: float | None = None
    schedule: DeferredCompSchedule | None = None

    @property
    def is_taxable(self) -> bool:
        return self.type == K.ACCT_TAXABLE

    @property
    def is_roth(self) -> bool:
        return self.type == K.ACCT_ROTH

    @property
    def is_tax_deferred(self) -> bool:
        return K.is_tax_deferred(self.type)

    @property
    def discretionary(self) -> bool:
        """Scheduled deferred-comp accounts pay out on schedule only."""
        return not (self.type == K.ACCT_DEFERRED_COMP and self.schedule is not None)

    def withdraw(self, amount: float) -> tuple[float, float]:
        """
        Withdraw up to ``amount``; returns (amount taken, taxable gain realized).

        Taxable accounts realize a proportional gain and reduce basis; other
        account types realize no capital gain.
        """
        take = min(max(0.0, amount), self.balance)
        if take <= 0:
            return 0.0, 0.0
        gain = 0.0
        if self.is_taxable:
            gain, self.basis = split_withdrawal(take, self.balance, self.basis)
        self.balance -= take
        if self.balance < BALANCE_EPSILON:
            self.balance = 0.0
        self.clamp_basis()
        return take, gain

    def deposit(self, amount: float) -> None:
        self.balance += amount
        if self.is_taxable:
            self.basis += amount

    def clamp_basis(self) -> None:
        if self.basis > self.balance:
            self.basis = self.balance


@dataclass
class SimulationState:
    """Balances, basis and carried counters for one simulation run."""

    accounts: list[AccountState]
    prior_total_tax: float | None = None
    ownership_consolidated: bool = False

    @classmethod
    def from_plan(cls, plan: PlanInput) -> SimulationState:
        accounts = [
            AccountState(
                id=a.id,
                name=a.name or a.id,
                type=a.type,
                owner=a.owner,
                balance=float(a.balance),
                basis=float(a.initial_basis),
                expected_return_pct=a.expected_return_pct,
                fee_pct=a.fee_pct,
                target_allocation_pct=a.target_allocation_pct,
                schedule=a.deferred_comp_schedule,
            )
            for a in plan.accounts
        ]
        return cls(accounts=accounts)

    def account(self, account_id: str) -> AccountState:
        for acct in self.accounts:
            if acct.id == account_id:
                return acct
        raise KeyError(account_id)

    def total_balance(self) -> float:
        return sum(a.balance for a in self.accounts)

    def balances(self) -> dict[str, float]:
        return {a.id: a.balance for a in self.accounts}

    def bases(self) -> dict[str, float]:
        return {a.id: a.basis for a in self.accounts if a.is_taxable}

    def snapshot(self) -> list[tuple[float, float]]:
        return [(a.balance, a.basis) for a in self.accounts]

    def restore(self, snapshot: list[tuple[float, float]]) -> None:
        for acct, (balance, basis) in zip(self.accounts, snapshot):
            acct.balance = balance
            acct.basis = basis

    def reassign_owner(self, deceased: str, survivor: str) -> list[str]:
        """Move the deceased's and joint accounts to the survivor; returns moved ids."""
        moved = []
        for acct in self.accounts:
            if acct.owner in (deceased, K.OWNER_JOINT):
                acct.owner = survivor
                moved.append(acct.id)
        self.ownership_consolidated = True
        return moved


@dataclass(frozen=True)
class YearContext:
    """Everything the year's steps need to know about the calendar and household."""

    year_index: int
    year: int
    phase: PhaseInfo
    inflation_pct: float
    inflation_factor: float
    market_return_pct: float | None = None

    @property
    def filing_status(self) -> str:
        return self.phase.filing_status

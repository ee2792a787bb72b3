"""
Plan input specifications for RetireLab.

A :class:`PlanInput` is the complete, immutable description of one household
retirement plan: who is in the household, which accounts they hold, what other
income and one-off adjustments apply, how much they want to spend, and which
tax, market and strategy assumptions the engine should use.

All dataclasses here are frozen. The engine copies balances into its own
:class:`~retirelab.core.context.SimulationState`, so the same ``PlanInput``
can be handed to many concurrent runs without cloning.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from .kinds import K

DEFAULT_START_YEAR = 2026
SCHEMA_VERSION = "1.0.0"


def _freeze(obj, name: str) -> None:
    """Store a sequence attribute as a tuple on a frozen dataclass."""
    value = getattr(obj, name)
    if value is not None and not isinstance(value, tuple):
        object.__setattr__(obj, name, tuple(value))


@dataclass(frozen=True)
class SocialSecurityClaim:
    """Social-Security claim: age at claim, monthly benefit at claim, annual COLA %."""

    claim_age: int
    monthly_benefit: float
    cola_pct: float = 0.0


@dataclass(frozen=True)
class Person:
    """
    One household member.

    ``birth_year`` is optional; when omitted it is derived from the plan's
    start year and ``current_age``.
    """

    current_age: int
    life_expectancy: int
    retirement_age: int | None = None
    birth_year: int | None = None
    social_security: SocialSecurityClaim | None = None

    def birth_year_for(self, start_year: int) -> int:
        if self.birth_year is not None:
            return self.birth_year
        return start_year - self.current_age

    @property
    def years_remaining(self) -> int:
        """Simulated years this person is alive (death year = age reaches LE)."""
        return self.life_expectancy - self.current_age


@dataclass(frozen=True)
class Household:
    primary: Person
    spouse: Person | None = None
    marital_status: str = K.MARITAL_SINGLE
    filing_status: str = K.FILING_SINGLE
    state_of_residence: str = "TX"

    @property
    def horizon(self) -> int:
        """Number of simulated years until both members exit the plan."""
        years = [self.primary.years_remaining]
        if self.spouse is not None:
            years.append(self.spouse.years_remaining)
        return max(years)

    def person(self, role: str) -> Person | None:
        if role == K.OWNER_PRIMARY:
            return self.primary
        if role == K.OWNER_SPOUSE:
            return self.spouse
        return None


@dataclass(frozen=True)
class DeferredCompSchedule:
    """NQDC payout schedule: ``amount`` per period between start and end year."""

    start_year: int
    end_year: int
    amount: float
    frequency: str = K.FREQ_ANNUAL
    inflation_adjusted: bool = False

    @property
    def annual_amount(self) -> float:
        if self.frequency == K.FREQ_MONTHLY:
            return self.amount * 12
        return self.amount


@dataclass(frozen=True)
class Account:
    """
    A single investment account.

    ``cost_basis`` only applies to taxable accounts and defaults to the balance
    (no embedded gain). ``target_allocation_pct`` opts the account into
    rebalancing. ``volatility_pct`` is read only by the Monte-Carlo path
    generator.
    """

    id: str
    type: str
    balance: float
    name: str = ""
    owner: str = K.OWNER_PRIMARY
    expected_return_pct: float = 0.0
    fee_pct: float = 0.0
    cost_basis: float | None = None
    target_allocation_pct: float | None = None
    deferred_comp_schedule: DeferredCompSchedule | None = None
    volatility_pct: float | None = None

    @property
    def initial_basis(self) -> float:
        if self.type != K.ACCT_TAXABLE:
            return 0.0
        if self.cost_basis is None:
            return self.balance
        return self.cost_basis


@dataclass(frozen=True)
class IncomeStream:
    """Pension, annuity, rental or other recurring income."""

    id: str
    annual_amount: float
    start_year: int
    end_year: int | None = None
    name: str = ""
    owner: str = K.OWNER_PRIMARY
    taxable: bool = True
    cola_pct: float = 0.0
    survivor_continues: bool = False


@dataclass(frozen=True)
class Adjustment:
    """One-time or bounded income (positive) or expense (negative)."""

    id: str
    year: int
    amount: float
    end_year: int | None = None
    name: str = ""
    taxable: bool = False
    inflation_adjusted: bool = False

    @property
    def last_year(self) -> int:
        return self.year if self.end_year is None else self.end_year


@dataclass(frozen=True)
class SpendingPlan:
    target_annual_spend: float
    inflation_pct: float = 2.5
    floor_annual_spend: float | None = None
    ceiling_annual_spend: float | None = None
    survivor_spending_adjustment_pct: float = 100.0


@dataclass(frozen=True)
class TaxConfig:
    federal_model: str = K.TAX_EFFECTIVE
    state_model: str = K.TAX_NONE
    federal_effective_rate_pct: float = 22.0
    cap_gains_rate_pct: float = 15.0
    state_effective_rate_pct: float | None = None
    state_cap_gains_rate_pct: float | None = None
    standard_deduction_override: float | None = None


@dataclass(frozen=True)
class MarketConfig:
    simulation_mode: str = K.MODE_DETERMINISTIC
    baseline_return_pct: float | None = None
    historical_scenario_ids: tuple[str, ...] = ()
    stress_scenario_ids: tuple[str, ...] = ()
    monte_carlo_runs: int = 1000
    seed: int | None = None

    def __post_init__(self):
        _freeze(self, "historical_scenario_ids")
        _freeze(self, "stress_scenario_ids")

    @property
    def scenario_ids(self) -> tuple[str, ...]:
        """Scenario ids relevant to the configured mode."""
        if self.simulation_mode == K.MODE_HISTORICAL:
            return self.historical_scenario_ids
        if self.simulation_mode == K.MODE_STRESS:
            return self.stress_scenario_ids
        return ()


@dataclass(frozen=True)
class StrategyConfig:
    withdrawal_order: str = K.W_TAX_OPTIMIZED
    rebalance_frequency: str = K.REBALANCE_NONE
    guardrails_enabled: bool = False
    rmd_smoothing: bool = False


@dataclass(frozen=True)
class PlanInput:
    """Complete plan handed to :func:`retirelab.core.engine.simulate`."""

    household: Household
    accounts: tuple[Account, ...]
    spending: SpendingPlan
    other_income: tuple[IncomeStream, ...] = ()
    adjustments: tuple[Adjustment, ...] = ()
    taxes: TaxConfig = field(default_factory=TaxConfig)
    market: MarketConfig = field(default_factory=MarketConfig)
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    schema_version: str = SCHEMA_VERSION
    start_year: int = DEFAULT_START_YEAR

    def __post_init__(self):
        _freeze(self, "accounts")
        _freeze(self, "other_income")
        _freeze(self, "adjustments")

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary (snake_case keys) for serialization."""
        return asdict(self)

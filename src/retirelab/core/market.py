"""
Market-scenario overlay and inflation schedule.

In deterministic mode every account grows at its own expected return. When a
return path is supplied (historical replay, stress test or one Monte-Carlo
draw), each account instead earns the path's market return plus its own
offset from the baseline::

    account_return = market_return + (expected_return - baseline_return)

so a bond fund expected to trail the market by 3 points still trails it by 3
points in a replayed crash. Years past the end of a path fall back to
expected returns. Path inflation, where present, replaces the plan's
inflation assumption (and benefit COLAs) for the years it covers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from retirelab.data.scenarios import MarketScenario, get_scenario

from .context import AccountState
from .kinds import K
from .specs import PlanInput


@dataclass(frozen=True)
class ReturnPath:
    """A per-year market return sequence (percent) with optional inflation."""

    returns_pct: tuple[float, ...]
    inflation_pct: tuple[float, ...] | None = None
    scenario_id: str | None = None
    label: str = ""

    @classmethod
    def from_scenario(cls, scenario: MarketScenario) -> ReturnPath:
        return cls(
            returns_pct=tuple(scenario.returns_pct),
            inflation_pct=(
                tuple(scenario.inflation_pct) if scenario.inflation_pct is not None else None
            ),
            scenario_id=scenario.id,
            label=scenario.name,
        )

    @classmethod
    def from_sequences(
        cls,
        returns_pct: Sequence[float],
        inflation_pct: Sequence[float] | None = None,
        label: str = "",
    ) -> ReturnPath:
        return cls(
            returns_pct=tuple(float(r) for r in returns_pct),
            inflation_pct=(
                tuple(float(i) for i in inflation_pct) if inflation_pct is not None else None
            ),
            label=label,
        )

    def market_return(self, year_index: int) -> float | None:
        if 0 <= year_index < len(self.returns_pct):
            return self.returns_pct[year_index]
        return None

    def inflation(self, year_index: int) -> float | None:
        if self.inflation_pct is not None and 0 <= year_index < len(self.inflation_pct):
            return self.inflation_pct[year_index]
        return None


def resolve_path(plan: PlanInput, scenario_id: str | None = None) -> ReturnPath | None:
    """
    Return path implied by the plan's market config.

    Deterministic and Monte-Carlo plans resolve to ``None`` (Monte-Carlo paths
    are generated by the batch layer). Historical and stress plans replay the
    requested scenario, or the first configured one.
    """
    if scenario_id is not None:
        return ReturnPath.from_scenario(get_scenario(scenario_id))
    ids = plan.market.scenario_ids
    if plan.market.simulation_mode in (K.MODE_HISTORICAL, K.MODE_STRESS) and ids:
        return ReturnPath.from_scenario(get_scenario(ids[0]))
    return None


def baseline_return(accounts: Sequence[AccountState], configured: float | None = None) -> float:
    """Configured baseline, else the balance-weighted average expected return."""
    if configured is not None:
        return configured
    total = sum(a.balance for a in accounts if a.balance > 0)
    if total <= 0:
        if not accounts:
            return 0.0
        return sum(a.expected_return_pct for a in accounts) / len(accounts)
    return sum(a.expected_return_pct * a.balance for a in accounts if a.balance > 0) / total


def account_returns(
    accounts: Sequence[AccountState],
    market_return: float | None,
    configured_baseline: float | None = None,
) -> dict[str, float]:
    """Per-account return (percent) for the year."""
    if market_return is None:
        return {a.id: a.expected_return_pct for a in accounts}
    baseline = baseline_return(accounts, configured_baseline)
    return {
        a.id: market_return + (a.expected_return_pct - baseline) for a in accounts
    }


def grow(account: AccountState, return_pct: float, fraction: float = 1.0) -> None:
    """Compound ``fraction`` of a year's return into the balance (floored at 0)."""
    if account.balance <= 0:
        return
    growth = max(0.0, 1.0 + return_pct / 100.0) ** fraction
    account.balance *= growth
    account.clamp_basis()


class InflationSchedule:
    """
    Per-year inflation rates and cumulative factors for one run.

    ``factor(i)`` is the cumulative inflation from the start year to simulated
    year ``i`` (``factor(0) == 1``).
    """

    def __init__(self, plan_inflation_pct: float, horizon: int, path: ReturnPath | None = None):
        self.plan_inflation_pct = plan_inflation_pct
        self.path = path
        self._factors = [1.0]
        for idx in range(horizon):
            self._factors.append(self._factors[-1] * (1.0 + self.rate(idx) / 100.0))

    def rate(self, year_index: int) -> float:
        scenario = self.path.inflation(max(0, year_index)) if self.path else None
        return self.plan_inflation_pct if scenario is None else scenario

    def factor(self, year_index: int) -> float:
        return self._factors[year_index]

    def between(self, start_index: int, end_index: int) -> float:
        """Compound inflation over year indices [start, end)."""
        multiplier = 1.0
        for idx in range(start_index, end_index):
            multiplier *= 1.0 + self.rate(idx) / 100.0
        return multiplier

    def cola_between(self, start_index: int, end_index: int, cola_pct: float) -> float:
        """COLA growth over [start, end); path inflation replaces the COLA where present."""
        multiplier = 1.0
        for idx in range(start_index, end_index):
            scenario = self.path.inflation(idx) if self.path else None
            rate = cola_pct if scenario is None else scenario
            multiplier *= 1.0 + rate / 100.0
        return multiplier

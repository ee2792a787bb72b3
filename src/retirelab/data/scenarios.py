"""
Historical and stress market scenarios.

Each scenario is an annual sequence of broad-market total returns (percent)
and, optionally, CPI inflation (percent). Historical series are S&P 500 total
returns and December-to-December CPI-U for the named calendar years; stress
series are synthetic paths built to probe sequence-of-returns risk.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from retirelab.core.errors import ConfigError
from retirelab.core.kinds import K


@dataclass(frozen=True)
class MarketScenario:
    id: str
    name: str
    kind: str
    returns_pct: tuple[float, ...]
    inflation_pct: tuple[float, ...] | None = None
    start_year: int | None = None
    description: str = ""

    def __post_init__(self):
        if self.inflation_pct is not None and len(self.inflation_pct) != len(
            self.returns_pct
        ):
            raise ConfigError(
                f"Scenario '{self.id}': inflation and return sequences differ in length"
            )

    @property
    def years(self) -> int:
        return len(self.returns_pct)


_SCENARIOS = (
    MarketScenario(
        id="dotcom_bust",
        name="Dot-com bust (2000-2012)",
        kind=K.MODE_HISTORICAL,
        start_year=2000,
        returns_pct=(
            -9.10, -11.89, -22.10, 28.68, 10.88, 4.91, 15.79,
            5.49, -37.00, 26.46, 15.06, 2.11, 16.00,
        ),
        inflation_pct=(
            3.4, 1.6, 2.4, 1.9, 3.3, 3.4, 2.5,
            4.1, 0.1, 2.7, 1.5, 3.0, 1.7,
        ),
        description="Three down years at the start of retirement, then the 2008 crash.",
    ),
    MarketScenario(
        id="gfc_2008",
        name="Global financial crisis (2007-2016)",
        kind=K.MODE_HISTORICAL,
        start_year=2007,
        returns_pct=(5.49, -37.00, 26.46, 15.06, 2.11, 16.00, 32.39, 13.69, 1.38, 11.96),
        inflation_pct=(4.1, 0.1, 2.7, 1.5, 3.0, 1.7, 1.5, 0.8, 0.7, 2.1),
        description="A single deep drawdown followed by a long recovery.",
    ),
    MarketScenario(
        id="high_inflation_decade",
        name="High-inflation decade (1973-1982)",
        kind=K.MODE_HISTORICAL,
        start_year=1973,
        returns_pct=(-14.66, -26.47, 37.20, 23.84, -7.18, 6.56, 18.44, 32.42, -4.91, 21.55),
        inflation_pct=(8.7, 12.3, 6.9, 4.9, 6.7, 9.0, 13.3, 12.5, 8.9, 3.8),
        description="Stagflation: weak real returns with double-digit inflation.",
    ),
    MarketScenario(
        id="early_drawdown",
        name="Early drawdown",
        kind=K.MODE_STRESS,
        returns_pct=(-25.0, -15.0, -5.0, 8.0, 10.0, 7.0, 7.0, 7.0, 7.0, 7.0),
        inflation_pct=(3.0,) * 10,
        description="Cumulative loss of roughly 40% in the first three years.",
    ),
    MarketScenario(
        id="low_return_regime",
        name="Low-return regime",
        kind=K.MODE_STRESS,
        returns_pct=(2.0, 1.0, 3.0, 0.0, 2.5, 1.5, 3.0, 2.0, 1.0, 2.5) * 2,
        inflation_pct=(2.5,) * 20,
        description="Twenty years of returns barely above inflation.",
    ),
)

SCENARIOS = MappingProxyType({scenario.id: scenario for scenario in _SCENARIOS})


def get_scenario(scenario_id: str) -> MarketScenario:
    """Look up a scenario by id, raising ConfigError for unknown ids."""
    try:
        return SCENARIOS[scenario_id]
    except KeyError:
        known = ", ".join(sorted(SCENARIOS))
        raise ConfigError(
            f"Unknown market scenario '{scenario_id}'. Known scenarios: {known}"
        ) from None


def list_scenarios(kind: str | None = None) -> list[MarketScenario]:
    """All scenarios, optionally filtered by kind (historical/stress)."""
    return [s for s in _SCENARIOS if kind is None or s.kind == kind]

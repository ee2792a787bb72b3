"""
Tests for scenario sweeps and Monte-Carlo aggregation.
"""

from dataclasses import replace

import numpy as np
import pytest

from conftest import build_plan
from retirelab.batch import (
    generate_return_paths,
    run_monte_carlo,
    run_plan,
    run_scenarios,
    summarize,
)
from retirelab.core.engine import simulate
from retirelab.core.errors import ConfigError
from retirelab.core.kinds import K
from retirelab.core.specs import MarketConfig, SpendingPlan


@pytest.fixture
def plan():
    return build_plan()


@pytest.fixture
def monte_carlo_plan():
    return build_plan(
        market=MarketConfig(simulation_mode=K.MODE_MONTE_CARLO, monte_carlo_runs=5, seed=42)
    )


class TestSummarize:
    def test_empty(self):
        summary = summarize([])
        assert summary.runs == 0
        assert summary.success_probability is None

    def test_mixed_outcomes(self, plan):
        ok = simulate(plan)
        starved = simulate(
            replace(plan, spending=SpendingPlan(target_annual_spend=200_000, inflation_pct=2.0))
        )
        summary = summarize([ok, starved])
        assert summary.runs == 2
        assert summary.success_probability == pytest.approx(0.5)
        assert summary.worst_case_shortfall == pytest.approx(starved.total_shortfall)
        assert summary.median_terminal_value == pytest.approx(
            (ok.terminal_value + starved.terminal_value) / 2
        )


class TestScenarioSweep:
    def test_results_keyed_in_order(self, plan):
        results = run_scenarios(plan, ["early_drawdown", "gfc_2008"])
        assert list(results) == ["early_drawdown", "gfc_2008"]
        assert results["gfc_2008"].assumptions_used["scenario_id"] == "gfc_2008"

    def test_stress_path_hurts(self, plan):
        baseline = simulate(plan)
        stressed = run_scenarios(plan, ["early_drawdown"])["early_drawdown"]
        assert stressed.terminal_value < baseline.terminal_value

    def test_unknown_scenario(self, plan):
        with pytest.raises(ConfigError):
            run_scenarios(plan, ["tulip_mania"])


class TestReturnPaths:
    def test_shape_and_seed(self, plan):
        paths = generate_return_paths(plan, runs=4, seed=3)
        assert len(paths) == 4
        assert all(len(p.returns_pct) == plan.household.horizon for p in paths)
        again = generate_return_paths(plan, runs=4, seed=3)
        assert [p.returns_pct for p in paths] == [p.returns_pct for p in again]
        assert paths[0].label == "monte-carlo #1"

    def test_centered_on_expected_return(self, plan):
        paths = generate_return_paths(plan, runs=400, seed=0)
        draws = np.array([p.returns_pct for p in paths])
        assert draws.mean() == pytest.approx(6.0, abs=0.5)
        assert draws.std() == pytest.approx(12.0, abs=0.5)


class TestMonteCarlo:
    def test_serial_runs_are_reproducible(self, monte_carlo_plan):
        first = run_monte_carlo(monte_carlo_plan, processes=1)
        second = run_monte_carlo(monte_carlo_plan, processes=1)
        assert len(first) == 5
        assert [r.terminal_value for r in first] == [r.terminal_value for r in second]

    def test_pool_matches_serial(self, monte_carlo_plan):
        serial = run_monte_carlo(monte_carlo_plan, runs=3, processes=1)
        pooled = run_monte_carlo(monte_carlo_plan, runs=3, processes=2)
        assert [r.terminal_value for r in pooled] == pytest.approx(
            [r.terminal_value for r in serial]
        )

    def test_run_plan_returns_median_run(self, monte_carlo_plan):
        result = run_plan(monte_carlo_plan)
        runs = run_monte_carlo(monte_carlo_plan, processes=1)
        terminals = sorted(r.terminal_value for r in runs)
        assert result.summary.runs == 5
        assert result.terminal_value == pytest.approx(terminals[2])
        assert result.summary.median_terminal_value == pytest.approx(terminals[2])


class TestRunPlan:
    def test_deterministic(self, plan):
        result = run_plan(plan)
        assert result.summary.runs == 1
        assert result.summary.success_probability == 1.0
        assert result.terminal_value == pytest.approx(simulate(plan).terminal_value)

    def test_historical_summarizes_every_scenario(self, plan):
        historical = replace(
            plan,
            market=MarketConfig(
                simulation_mode=K.MODE_HISTORICAL,
                historical_scenario_ids=("gfc_2008", "dotcom_bust"),
            ),
        )
        result = run_plan(historical)
        assert result.summary.runs == 2
        assert result.assumptions_used["scenario_id"] == "gfc_2008"

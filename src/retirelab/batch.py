"""
Aggregation over many simulation runs.

A single :func:`~retirelab.core.engine.simulate` call is deterministic and owns
all of its state, so scenario sweeps and Monte-Carlo batches are plain maps of
independent runs. This module dispatches those batches and reduces them to a
:class:`~retirelab.core.results.PlanSummary`.
"""

from __future__ import annotations

import logging
import multiprocessing as mp
from dataclasses import replace
from typing import Sequence

import numpy as np

from retirelab.core.engine import simulate
from retirelab.core.kinds import K
from retirelab.core.market import ReturnPath, baseline_return
from retirelab.core.results import PlanResult, PlanSummary
from retirelab.core.specs import PlanInput
from retirelab.core.validation import ensure_valid
from retirelab.data.scenarios import get_scenario

logger = logging.getLogger(__name__)

DEFAULT_VOLATILITY_PCT = 12.0


def summarize(results: Sequence[PlanResult]) -> PlanSummary:
    """
    Reduce runs to summary statistics.

    Success means no year of the run had a shortfall. The median terminal value
    is taken over final total balances; the worst-case shortfall is the largest
    cumulative shortfall of any run.
    """
    if not results:
        return PlanSummary()
    successes = np.array([r.total_shortfall <= 0 for r in results], dtype=float)
    terminal = np.array([r.terminal_value for r in results], dtype=float)
    shortfalls = np.array([r.total_shortfall for r in results], dtype=float)
    return PlanSummary(
        success_probability=float(successes.mean()),
        median_terminal_value=float(np.median(terminal)),
        worst_case_shortfall=float(shortfalls.max()),
        runs=len(results),
    )


def run_scenarios(
    plan: PlanInput, scenario_ids: Sequence[str] | None = None
) -> dict[str, PlanResult]:
    """
    Replay the plan against each market scenario.

    Args:
        plan: Plan to simulate
        scenario_ids: Scenarios to replay; defaults to the plan's configured
            historical and stress scenario ids

    Returns:
        Results keyed by scenario id, in the order requested
    """
    ensure_valid(plan)
    ids = list(scenario_ids) if scenario_ids is not None else list(plan.market.scenario_ids)
    results: dict[str, PlanResult] = {}
    for scenario_id in ids:
        path = ReturnPath.from_scenario(get_scenario(scenario_id))
        logger.info("Replaying scenario %s (%s)", scenario_id, path.label)
        results[scenario_id] = simulate(plan, path, validate=False)
    return results


def _path_statistics(plan: PlanInput) -> tuple[float, float]:
    """Balance-weighted mean return and volatility (percent) of the portfolio."""
    mean = baseline_return(plan.accounts, plan.market.baseline_return_pct)
    total = sum(a.balance for a in plan.accounts if a.balance > 0)
    if total <= 0:
        return mean, DEFAULT_VOLATILITY_PCT
    volatility = sum(
        (a.volatility_pct if a.volatility_pct is not None else DEFAULT_VOLATILITY_PCT)
        * a.balance
        for a in plan.accounts
        if a.balance > 0
    ) / total
    return mean, volatility


def generate_return_paths(
    plan: PlanInput, runs: int, seed: int | None = None
) -> list[ReturnPath]:
    """
    Draw independent normal market-return paths, one per run.

    Each path covers the plan's full horizon; inflation stays at the plan's
    assumption.
    """
    mean, volatility = _path_statistics(plan)
    rng = np.random.default_rng(seed)
    draws = rng.normal(mean, volatility, size=(runs, plan.household.horizon))
    return [
        ReturnPath.from_sequences(row, label=f"monte-carlo #{i + 1}")
        for i, row in enumerate(draws)
    ]


def _simulate_path(args: tuple[PlanInput, ReturnPath]) -> PlanResult:
    plan, path = args
    return simulate(plan, path, validate=False)


def run_monte_carlo(
    plan: PlanInput,
    runs: int | None = None,
    processes: int | None = None,
    seed: int | None = None,
) -> list[PlanResult]:
    """
    Simulate the plan over generated return paths.

    Args:
        plan: Plan to simulate
        runs: Number of paths (defaults to ``plan.market.monte_carlo_runs``)
        processes: Worker processes; ``1`` runs serially, ``None`` uses all
            cores but one
        seed: Random seed (defaults to ``plan.market.seed``)

    Returns:
        One PlanResult per path, in path order
    """
    ensure_valid(plan)
    runs = runs if runs is not None else plan.market.monte_carlo_runs
    seed = seed if seed is not None else plan.market.seed
    paths = generate_return_paths(plan, runs, seed)
    tasks = [(plan, path) for path in paths]

    if processes is None:
        processes = max(1, (mp.cpu_count() or 2) - 1)
    logger.info("Running %d Monte-Carlo paths on %d process(es)", runs, processes)
    if processes == 1 or runs <= 1:
        return [_simulate_path(task) for task in tasks]
    with mp.Pool(processes) as pool:
        return pool.map(_simulate_path, tasks)


def _median_run(results: Sequence[PlanResult]) -> PlanResult:
    ordered = sorted(results, key=lambda r: r.terminal_value)
    return ordered[(len(ordered) - 1) // 2]


def run_plan(plan: PlanInput, processes: int | None = 1) -> PlanResult:
    """
    Run the plan in its configured simulation mode.

    Deterministic plans run once. Historical and stress plans replay every
    configured scenario and return the first. Monte-Carlo plans return the
    median-terminal-value run. In every case the summary covers all runs.
    """
    mode = plan.market.simulation_mode
    if mode in (K.MODE_HISTORICAL, K.MODE_STRESS):
        results = list(run_scenarios(plan).values())
        representative = results[0]
    elif mode == K.MODE_MONTE_CARLO:
        results = run_monte_carlo(plan, processes=processes)
        representative = _median_run(results)
    else:
        representative = simulate(plan)
        results = [representative]
    return replace(representative, summary=summarize(results))

"""
Replay a plan against every built-in scenario and compare the outcomes.

Run from the repository root:

    python examples/scenario_comparison_example.py examples/couple_plan.yaml
"""

from __future__ import annotations

import sys

import pandas as pd
from retirelab import load_plan, run_monte_carlo, run_scenarios, summarize
from retirelab.data.scenarios import list_scenarios
from retirelab.kpi import cumulative_taxes, depletion_year


def scenario_table(plan) -> pd.DataFrame:
    results = run_scenarios(plan, [s.id for s in list_scenarios()])
    rows = []
    for scenario_id, result in results.items():
        frame = result.to_frame()
        rows.append(
            {
                "scenario": scenario_id,
                "terminal_value": result.terminal_value,
                "total_shortfall": result.total_shortfall,
                "lifetime_taxes": cumulative_taxes(frame).iloc[-1],
                "depleted_in": depletion_year(frame),
            }
        )
    return pd.DataFrame(rows).set_index("scenario")


def main(path: str) -> None:
    plan = load_plan(path)

    print("Scenario replays")
    print(scenario_table(plan).round(0).to_string())

    runs = run_monte_carlo(plan, runs=200, processes=None)
    summary = summarize(runs)
    print()
    print(f"Monte Carlo over {summary.runs} runs")
    print(f"  success probability:   {summary.success_probability:.1%}")
    print(f"  median terminal value: {summary.median_terminal_value:,.0f}")
    print(f"  worst-case shortfall:  {summary.worst_case_shortfall:,.0f}")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else "examples/couple_plan.yaml")

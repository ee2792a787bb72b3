"""
Unit tests for plan and scenario charts.
"""

from __future__ import annotations

import importlib.util

import pytest

from conftest import build_plan
from retirelab.core.engine import simulate

plotly_available = importlib.util.find_spec("plotly") is not None


def _skip_if_no_plotly():
    return pytest.mark.skipif(
        not plotly_available, reason="Plotly is required for chart tests"
    )


@pytest.fixture(scope="module")
def result():
    return simulate(build_plan())


@_skip_if_no_plotly()
def test_balance_trajectory_tidy_frame(result):
    from retirelab.charts import balance_trajectory

    fig, tidy = balance_trajectory(result)
    assert set(tidy.columns) == {"year", "account", "balance"}
    assert len(tidy) == result.horizon
    assert fig.layout.title.text == "Portfolio Balance by Account"


@_skip_if_no_plotly()
def test_income_composition_includes_spending_line(result):
    from retirelab.charts import income_composition

    fig, tidy = income_composition(result)
    assert "Withdrawals" in set(tidy["source"])
    assert any(trace.name == "Spending" for trace in fig.data)


@_skip_if_no_plotly()
def test_taxes_over_time_effective_rate(result):
    from retirelab.charts import taxes_over_time

    fig, data = taxes_over_time(result)
    assert len(fig.data) == 3
    assert ((data["effective_rate"] >= 0) & (data["effective_rate"] < 1)).all()


@_skip_if_no_plotly()
def test_scenario_terminal_values(result):
    from retirelab.charts import scenario_terminal_values

    fig, data = scenario_terminal_values({"baseline": result})
    assert list(data["scenario"]) == ["baseline"]
    assert data["terminal_value"].iloc[0] == pytest.approx(result.terminal_value)

    empty_fig, empty = scenario_terminal_values({})
    assert empty.empty
    assert len(empty_fig.data) == 0


@_skip_if_no_plotly()
def test_save_chart_html_and_bad_format(result, tmp_path):
    from retirelab.charts import balance_trajectory, save_chart

    fig, _ = balance_trajectory(result)
    out = tmp_path / "balances.html"
    save_chart(fig, str(out))
    assert out.exists()
    with pytest.raises(ValueError, match="Unsupported format"):
        save_chart(fig, str(tmp_path / "balances.gif"), format="gif")

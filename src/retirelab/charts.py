"""
Chart functions for visualizing retirement plan results.

- Plan level: balance trajectory, income composition, taxes
- Batch level: terminal values across scenarios or Monte-Carlo runs

All chart functions return (figure, dataframe_used) for consistency.
"""

from __future__ import annotations

from typing import Mapping

import pandas as pd

from retirelab.core.results import PlanResult

# Plotly imports with graceful fallback
try:
    import plotly.express as px
    import plotly.graph_objects as go

    PLOTLY_AVAILABLE = True
except ImportError:
    PLOTLY_AVAILABLE = False


def _check_plotly() -> None:
    """Check if Plotly is available and raise helpful error if not."""
    if not PLOTLY_AVAILABLE:
        raise ImportError(
            "Plotly is required for chart functions. Install with:\n"
            "pip install plotly kaleido\n"
            "or\n"
            "pip install retirelab[charts]"
        )


def balance_trajectory(result: PlanResult) -> tuple[go.Figure, pd.DataFrame]:
    """
    Plot end-of-year balances per account, stacked.

    **Args:**
        result: A simulated plan

    **Returns:**
        Tuple of (plotly_figure, tidy_dataframe_used)

    **Example:**
        ```python
        from retirelab import simulate, load_plan
        from retirelab.charts import balance_trajectory

        fig, data = balance_trajectory(simulate(load_plan("plan.yaml")))
        fig.show()
        ```
    """
    _check_plotly()

    tidy = (
        result.balances_frame()
        .reset_index()
        .melt(id_vars="year", var_name="account", value_name="balance")
    )
    fig = px.area(
        tidy,
        x="year",
        y="balance",
        color="account",
        title="Portfolio Balance by Account",
        labels={"balance": "End-of-Year Balance", "year": "Year"},
    )
    fig.update_layout(hovermode="x unified", legend_title="Account")
    return fig, tidy


def income_composition(result: PlanResult) -> tuple[go.Figure, pd.DataFrame]:
    """
    Plot where each year's cash came from (stacked bars).

    Args:
        result: A simulated plan

    Returns:
        Tuple of (plotly_figure, tidy_dataframe_used)
    """
    _check_plotly()

    labels = {
        "social_security_income": "Social Security",
        "pension_and_other_income": "Pensions & Other",
        "nqdc_distributions": "NQDC",
        "adjustment_income": "Adjustments",
        "rmd_total": "RMDs",
        "total_withdrawals": "Withdrawals",
    }
    frame = result.to_frame()
    tidy = (
        frame[list(labels)]
        .rename(columns=labels)
        .reset_index()
        .melt(id_vars="year", var_name="source", value_name="amount")
    )

    fig = px.bar(
        tidy,
        x="year",
        y="amount",
        color="source",
        title="Income Composition",
        labels={"amount": "Amount", "year": "Year"},
    )
    fig.add_trace(
        go.Scatter(
            x=frame.index,
            y=frame["actual_spend"],
            name="Spending",
            mode="lines",
            line={"color": "black", "dash": "dash"},
        )
    )
    fig.update_layout(barmode="relative", legend_title="Source")
    return fig, tidy


def taxes_over_time(result: PlanResult) -> tuple[go.Figure, pd.DataFrame]:
    """Federal and state taxes per year with the effective rate on a second axis."""
    _check_plotly()

    frame = result.to_frame()
    data = frame[["taxes_federal", "taxes_state", "gross_income"]].copy()
    data["effective_rate"] = (
        (data["taxes_federal"] + data["taxes_state"])
        / data["gross_income"].where(data["gross_income"] > 0)
    ).fillna(0.0)

    fig = go.Figure()
    fig.add_trace(
        go.Bar(name="Federal", x=data.index, y=data["taxes_federal"], marker_color="#1f77b4")
    )
    fig.add_trace(
        go.Bar(name="State", x=data.index, y=data["taxes_state"], marker_color="#ff7f0e")
    )
    fig.add_trace(
        go.Scatter(
            name="Effective Rate",
            x=data.index,
            y=data["effective_rate"],
            mode="lines+markers",
            yaxis="y2",
        )
    )
    fig.update_layout(
        title="Taxes Over Time",
        xaxis_title="Year",
        yaxis_title="Tax",
        yaxis2={"title": "Effective Rate", "overlaying": "y", "side": "right", "tickformat": ".0%"},
        barmode="stack",
    )
    return fig, data.reset_index()


def scenario_terminal_values(
    results: Mapping[str, PlanResult],
) -> tuple[go.Figure, pd.DataFrame]:
    """
    Compare terminal values and shortfalls across runs.

    Args:
        results: Results keyed by scenario id (see :func:`retirelab.batch.run_scenarios`)

    Returns:
        Tuple of (plotly_figure, summary_dataframe_used)
    """
    _check_plotly()

    data = pd.DataFrame(
        [
            {
                "scenario": key,
                "terminal_value": res.terminal_value,
                "total_shortfall": res.total_shortfall,
            }
            for key, res in results.items()
        ]
    )

    fig = go.Figure()
    if data.empty:
        fig.update_layout(title="Terminal Value by Scenario")
        return fig, data

    fig.add_trace(
        go.Bar(
            name="Terminal Value",
            x=data["scenario"],
            y=data["terminal_value"],
            marker_color="#2ca02c",
        )
    )
    fig.add_trace(
        go.Bar(
            name="Total Shortfall",
            x=data["scenario"],
            y=data["total_shortfall"],
            marker_color="#d62728",
        )
    )
    fig.update_layout(
        title="Terminal Value by Scenario",
        xaxis_title="Scenario",
        yaxis_title="Amount",
        barmode="group",
    )
    return fig, data


def save_chart(fig: go.Figure, filename: str, format: str = "html") -> None:
    """
    Save chart to file.

    Args:
        fig: Plotly figure
        filename: Output filename
        format: Output format ('html', 'png', 'pdf', 'svg')
    """
    _check_plotly()

    if format == "html":
        fig.write_html(filename)
    elif format in ("png", "pdf", "svg"):
        fig.write_image(filename, format=format)
    else:
        raise ValueError(f"Unsupported format: {format}")

"""
KPI calculation utilities for retirement plan analysis.

All functions operate on the yearly frame produced by
:meth:`retirelab.core.results.PlanResult.to_frame` (one row per simulated
year, indexed by calendar year) and return pandas Series, DataFrames or
scalars.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

# Cash sources in the order they appear in income_mix().
INCOME_SOURCES = (
    "social_security_income",
    "pension_and_other_income",
    "nqdc_distributions",
    "adjustment_income",
    "rmd_total",
    "total_withdrawals",
)


def total_balance(df: pd.DataFrame, balance_col: str = "end_balance") -> pd.Series:
    """End-of-year total balance across all accounts."""
    return df[balance_col].rename("total_balance")


def depletion_year(
    df: pd.DataFrame,
    balance_col: str = "end_balance",
    threshold: float = 1.0,
) -> int | None:
    """
    First year whose end-of-year balance is at or below ``threshold``.

    Args:
        df: Yearly frame
        balance_col: Column name for the total balance
        threshold: Balance treated as depleted

    Returns:
        Calendar year, or None if the portfolio lasts the whole horizon
    """
    depleted = df.index[df[balance_col] <= threshold]
    if len(depleted) == 0:
        return None
    return int(depleted[0])


def shortfall_years(df: pd.DataFrame, shortfall_col: str = "shortfall") -> pd.Series:
    """Shortfall amounts for the years that had one."""
    shortfall = df[shortfall_col]
    return shortfall[shortfall > 0].rename("shortfall")


def effective_tax_rate(
    df: pd.DataFrame,
    taxes_col: str = "total_taxes",
    income_col: str = "gross_income",
) -> pd.Series:
    """
    Calculate the effective tax rate per year (taxes / gross income).

    Args:
        df: Yearly frame
        taxes_col: Column name for total taxes
        income_col: Column name for gross income

    Returns:
        Series with the effective tax rate (0 where there is no income)
    """
    income = df[income_col]
    rate = np.where(income > 0, df[taxes_col] / income.where(income > 0, 1.0), 0.0)
    return pd.Series(rate, index=df.index, name="effective_tax_rate")


def withdrawal_rate(
    df: pd.DataFrame,
    initial_balance: float | None = None,
    withdrawals_col: str = "total_withdrawals",
    rmd_col: str = "rmd_total",
    balance_col: str = "end_balance",
) -> pd.Series:
    """
    Portfolio withdrawals (discretionary plus RMD) over the prior year-end balance.

    The first year has no prior row; pass ``initial_balance`` to rate it,
    otherwise it is NaN.
    """
    drawn = df[withdrawals_col] + df[rmd_col]
    prior = df[balance_col].shift(1)
    if initial_balance is not None and len(prior):
        prior.iloc[0] = initial_balance
    rate = np.where(prior > 0, drawn / prior.where(prior > 0, 1.0), np.nan)
    return pd.Series(rate, index=df.index, name="withdrawal_rate")


def max_drawdown(series_or_df: pd.Series | pd.DataFrame) -> pd.Series:
    """
    Calculate maximum drawdown from peak.

    For a Series, returns the maximum drawdown.
    For a DataFrame, returns maximum drawdown per column.

    Args:
        series_or_df: Series or DataFrame with values to analyze

    Returns:
        Series with maximum drawdown values (as negative fractions)
    """
    if isinstance(series_or_df, pd.Series):
        return pd.Series(
            [_drawdown(series_or_df)],
            index=[series_or_df.name or "value"],
            name="max_drawdown",
        )
    results = {}
    for col in series_or_df.columns:
        if pd.api.types.is_numeric_dtype(series_or_df[col]):
            results[col] = _drawdown(series_or_df[col])
        else:
            results[col] = np.nan
    return pd.Series(results, name="max_drawdown")


def _drawdown(values: pd.Series) -> float:
    running_max = values.expanding().max()
    drawdown = np.where(running_max > 0, (values - running_max) / running_max, 0.0)
    return float(drawdown.min()) if len(drawdown) else 0.0


def cumulative_taxes(df: pd.DataFrame, taxes_col: str = "total_taxes") -> pd.Series:
    """Running total of federal and state taxes."""
    return df[taxes_col].cumsum().rename("cumulative_taxes")


def income_mix(df: pd.DataFrame) -> pd.DataFrame:
    """
    Share of each cash source in the year's total cash received.

    Negative adjustments (one-off expenses) are excluded from the mix.
    """
    sources = df[list(INCOME_SOURCES)].clip(lower=0.0)
    totals = sources.sum(axis=1)
    return sources.div(totals.where(totals > 0, np.nan), axis=0).fillna(0.0)

"""
Shared plan builders for the RetireLab test suite.
"""

from __future__ import annotations

import pytest

from retirelab.core.kinds import K
from retirelab.core.specs import (
    Account,
    Household,
    MarketConfig,
    Person,
    PlanInput,
    SpendingPlan,
    StrategyConfig,
    TaxConfig,
)


def build_plan(
    accounts=None,
    *,
    household=None,
    spending=None,
    taxes=None,
    market=None,
    strategy=None,
    other_income=(),
    adjustments=(),
    start_year=2026,
) -> PlanInput:
    """
    Single retiree aged 65 (LE 90) with one $1M taxable account by default.

    Any section can be replaced by passing it explicitly.
    """
    if accounts is None:
        accounts = [
            Account(
                id="brokerage",
                type=K.ACCT_TAXABLE,
                balance=1_000_000,
                cost_basis=600_000,
                expected_return_pct=6.0,
                fee_pct=0.10,
            )
        ]
    return PlanInput(
        household=household or Household(primary=Person(current_age=65, life_expectancy=90)),
        accounts=accounts,
        spending=spending or SpendingPlan(target_annual_spend=50_000, inflation_pct=2.0),
        other_income=other_income,
        adjustments=adjustments,
        taxes=taxes or TaxConfig(federal_effective_rate_pct=12, cap_gains_rate_pct=15),
        market=market or MarketConfig(),
        strategy=strategy or StrategyConfig(withdrawal_order=K.W_TAXABLE_FIRST),
        start_year=start_year,
    )


def married_household(
    primary_age=66, primary_le=90, spouse_age=64, spouse_le=92, state="TX", **kwargs
) -> Household:
    return Household(
        primary=Person(current_age=primary_age, life_expectancy=primary_le, **kwargs),
        spouse=Person(current_age=spouse_age, life_expectancy=spouse_le),
        marital_status=K.MARITAL_MARRIED,
        filing_status=K.FILING_MFJ,
        state_of_residence=state,
    )


@pytest.fixture
def make_plan():
    """Factory fixture around :func:`build_plan`."""
    return build_plan


@pytest.fixture
def make_household():
    """Factory fixture around :func:`married_household`."""
    return married_household


@pytest.fixture
def base_plan():
    return build_plan()

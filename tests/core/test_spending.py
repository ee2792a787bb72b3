"""
Tests for spending targets, the survivor factor and guardrails.
"""

import pytest

from retirelab.core.context import YearContext
from retirelab.core.phase import determine_phase
from retirelab.core.spending import CEILING, FLOOR, decide_spending, inflated_target
from retirelab.core.specs import Household, Person, SpendingPlan


def _ctx(household, year_index=0, factor=1.0):
    return YearContext(
        year_index=year_index,
        year=2026 + year_index,
        phase=determine_phase(household, year_index),
        inflation_pct=2.0,
        inflation_factor=factor,
    )


class TestInflatedTarget:
    def test_inflation_factor_applies(self):
        hh = Household(primary=Person(current_age=65, life_expectancy=90))
        spending = SpendingPlan(target_annual_spend=50_000)
        assert inflated_target(spending, _ctx(hh, 24, 1.02**24)) == pytest.approx(
            50_000 * 1.02**24
        )

    def test_survivor_factor(self, make_household):
        hh = make_household(primary_age=66, primary_le=70, spouse_age=64, spouse_le=80)
        spending = SpendingPlan(target_annual_spend=100_000, survivor_spending_adjustment_pct=75)
        assert inflated_target(spending, _ctx(hh, 3)) == pytest.approx(100_000)
        assert inflated_target(spending, _ctx(hh, 4)) == pytest.approx(75_000)
        # The factor persists after survivor filing ends.
        assert inflated_target(spending, _ctx(hh, 9)) == pytest.approx(75_000)


class TestGuardrails:
    @pytest.fixture
    def ctx(self):
        return _ctx(Household(primary=Person(current_age=65, life_expectancy=90)))

    @pytest.fixture
    def spending(self):
        return SpendingPlan(
            target_annual_spend=100_000,
            floor_annual_spend=80_000,
            ceiling_annual_spend=120_000,
        )

    def test_disabled_returns_target(self, spending, ctx):
        decision = decide_spending(spending, ctx, 10_000_000, guardrails_enabled=False)
        assert decision.actual == 100_000
        assert decision.guardrail is None

    def test_ceiling_when_portfolio_is_large(self, spending, ctx):
        # 2.5M > 20 x 120k
        decision = decide_spending(spending, ctx, 2_500_000, guardrails_enabled=True)
        assert decision.actual == pytest.approx(120_000)
        assert decision.guardrail == CEILING

    def test_floor_when_withdrawal_rate_too_high(self, spending, ctx):
        # 100k / 1.5M = 6.7% > 6%
        decision = decide_spending(spending, ctx, 1_500_000, guardrails_enabled=True)
        assert decision.actual == pytest.approx(80_000)
        assert decision.guardrail == FLOOR

    def test_target_inside_band(self, spending, ctx):
        # 100k / 2M = 5%, and 2M < 2.4M
        decision = decide_spending(spending, ctx, 2_000_000, guardrails_enabled=True)
        assert decision.actual == pytest.approx(100_000)
        assert decision.guardrail is None

    def test_floor_on_empty_portfolio(self, spending, ctx):
        decision = decide_spending(spending, ctx, 0.0, guardrails_enabled=True)
        assert decision.guardrail == FLOOR

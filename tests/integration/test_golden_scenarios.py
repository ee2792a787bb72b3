"""
End-to-end scenarios with hand-checked numbers.
"""

import pytest

from conftest import build_plan, married_household
from retirelab.core.engine import simulate
from retirelab.core.kinds import K
from retirelab.core.specs import (
    Account,
    Household,
    IncomeStream,
    MarketConfig,
    Person,
    SpendingPlan,
    StrategyConfig,
    TaxConfig,
)

pytestmark = pytest.mark.golden


class TestStableBaseline:
    @pytest.fixture(scope="class")
    def result(self):
        return simulate(build_plan())

    def test_horizon(self, result):
        assert result.horizon == 25
        assert result.yearly[0].age_primary == 65
        assert result.yearly[-1].age_primary == 89

    def test_no_shortfall(self, result):
        assert all(y.shortfall == 0 for y in result.yearly)

    def test_final_target_is_inflated(self, result):
        assert result.yearly[-1].target_spend == pytest.approx(50_000 * 1.02**24, abs=1.0)
        assert result.yearly[-1].actual_spend == result.yearly[-1].target_spend

    def test_money_left_at_the_end(self, result):
        assert result.terminal_value > 0

    def test_converged_every_year(self, result):
        assert result.converged
        assert all(y.converged for y in result.yearly)

    def test_first_year_cash_flow(self, result):
        first = result.yearly[0]
        # 1M grows 6% before withdrawals; basis stays at 600k
        gain_fraction = (1_060_000 - 600_000) / 1_060_000
        assert first.taxable_capital_gains == pytest.approx(
            first.total_withdrawals * gain_fraction, rel=1e-9
        )
        assert first.taxes_federal == pytest.approx(first.taxable_capital_gains * 0.15)
        assert first.net_spendable == pytest.approx(50_000, abs=0.02)


class TestRmdDominance:
    @pytest.fixture(scope="class")
    def result(self):
        plan = build_plan(
            [
                Account(
                    id="ira",
                    type=K.ACCT_TAX_DEFERRED,
                    balance=3_000_000,
                    expected_return_pct=5.0,
                    fee_pct=0.15,
                )
            ],
            household=Household(primary=Person(current_age=74, life_expectancy=95)),
            spending=SpendingPlan(target_annual_spend=80_000, inflation_pct=2.0),
            strategy=StrategyConfig(withdrawal_order=K.W_TAX_OPTIMIZED),
        )
        return simulate(plan)

    def test_first_rmd_on_post_return_balance(self, result):
        assert result.yearly[0].rmd_total == pytest.approx(3_150_000 / 25.5, abs=0.01)
        assert result.yearly[0].rmd_by_account == {"ira": pytest.approx(123_529.41, abs=0.01)}

    def test_rmd_covers_spending(self, result):
        first = result.yearly[0]
        assert first.total_withdrawals == 0.0
        assert first.shortfall == 0.0
        assert first.surplus > 0

    def test_taxes_on_rmd(self, result):
        first = result.yearly[0]
        # 15,000 + 1,550 age-65 addition
        assert first.standard_deduction == pytest.approx(16_550)
        assert first.taxes_federal == pytest.approx((first.rmd_total - 16_550) * 0.12)

    def test_surplus_without_taxable_account_is_reported_only(self, result):
        first = result.yearly[0]
        remaining = 3_150_000 - first.rmd_total
        assert first.end_balance == pytest.approx(remaining * (1 - 0.0015))


class TestSurvivorTransition:
    @pytest.fixture(scope="class")
    def result(self):
        plan = build_plan(
            [
                Account(
                    id="brokerage",
                    type=K.ACCT_TAXABLE,
                    owner=K.OWNER_JOINT,
                    balance=2_000_000,
                    cost_basis=2_000_000,
                    expected_return_pct=4.0,
                ),
                Account(
                    id="ira",
                    type=K.ACCT_TAX_DEFERRED,
                    owner=K.OWNER_PRIMARY,
                    balance=500_000,
                    expected_return_pct=4.0,
                ),
            ],
            household=married_household(
                primary_age=76, primary_le=78, spouse_age=60, spouse_le=90
            ),
            spending=SpendingPlan(
                target_annual_spend=60_000,
                inflation_pct=2.0,
                survivor_spending_adjustment_pct=70,
            ),
            other_income=[
                IncomeStream(id="pension", annual_amount=20_000, start_year=2026),
                IncomeStream(
                    id="annuity",
                    annual_amount=10_000,
                    start_year=2026,
                    survivor_continues=True,
                ),
            ],
        )
        return simulate(plan)

    def test_phases_and_filing_status(self, result):
        phases = [y.phase for y in result.yearly[:7]]
        assert phases == [
            K.PHASE_JOINT,
            K.PHASE_JOINT,
            K.PHASE_SURVIVOR,
            K.PHASE_SURVIVOR,
            K.PHASE_SURVIVOR,
            K.PHASE_SURVIVOR_SINGLE,
            K.PHASE_SURVIVOR_SINGLE,
        ]
        filing = [y.filing_status for y in result.yearly[:6]]
        assert filing == [
            K.FILING_MFJ,
            K.FILING_MFJ,
            K.FILING_SURVIVOR,
            K.FILING_SURVIVOR,
            K.FILING_SURVIVOR,
            K.FILING_SINGLE,
        ]
        assert [y.survivor_year_count for y in result.yearly[:4]] == [0, 0, 1, 2]

    def test_survivor_spending(self, result):
        assert result.yearly[1].target_spend == pytest.approx(60_000 * 1.02)
        assert result.yearly[2].target_spend == pytest.approx(60_000 * 1.02**2 * 0.70)

    def test_deceased_age_is_frozen(self, result):
        assert result.yearly[1].age_primary == 77
        assert result.yearly[5].age_primary == 78
        assert result.yearly[5].age_spouse == 65

    def test_income_streams_follow_survivor_rules(self, result):
        assert result.yearly[1].pension_and_other_income == pytest.approx(30_000)
        assert result.yearly[2].pension_and_other_income == pytest.approx(10_000)

    def test_ira_moves_to_survivor(self, result):
        # Primary (born 1950) takes RMDs; the 62-year-old survivor does not
        assert result.yearly[0].rmd_total > 0
        assert result.yearly[1].rmd_total > 0
        assert all(y.rmd_total == 0 for y in result.yearly[2:14])

    def test_horizon_follows_survivor(self, result):
        assert result.horizon == 30


class TestGuardrails:
    def _plan(self, enabled, **spending):
        return build_plan(
            [
                Account(
                    id="brokerage",
                    type=K.ACCT_TAXABLE,
                    balance=5_000_000,
                    cost_basis=5_000_000,
                    expected_return_pct=8.0,
                )
            ],
            spending=SpendingPlan(
                target_annual_spend=100_000, inflation_pct=2.0, **spending
            ),
            strategy=StrategyConfig(
                withdrawal_order=K.W_TAXABLE_FIRST, guardrails_enabled=enabled
            ),
        )

    def test_ceiling_applies_on_large_portfolio(self):
        result = simulate(self._plan(True, ceiling_annual_spend=150_000))
        capped = [y for y in result.yearly if y.guardrail == "ceiling"]
        assert capped
        first = result.yearly[0]
        assert first.guardrail == "ceiling"
        assert first.actual_spend == pytest.approx(150_000)
        assert any(
            y.actual_spend == pytest.approx(150_000 * 1.02**y.year_index) for y in capped
        )

    def test_disabled_guardrails_spend_target_exactly(self):
        result = simulate(self._plan(False, ceiling_annual_spend=150_000))
        assert all(y.actual_spend == y.target_spend for y in result.yearly)
        assert all(y.guardrail is None for y in result.yearly)

    def test_floor_applies_on_high_withdrawal_rate(self):
        plan = build_plan(
            spending=SpendingPlan(
                target_annual_spend=100_000, inflation_pct=2.0, floor_annual_spend=70_000
            ),
            strategy=StrategyConfig(
                withdrawal_order=K.W_TAXABLE_FIRST, guardrails_enabled=True
            ),
        )
        first = simulate(plan).yearly[0]
        assert first.guardrail == "floor"
        assert first.actual_spend == pytest.approx(70_000)


class TestStateTax:
    def _plan(self, taxes):
        return build_plan(
            [
                Account(
                    id="ira",
                    type=K.ACCT_TAX_DEFERRED,
                    balance=1_000_000,
                    expected_return_pct=5.0,
                )
            ],
            taxes=taxes,
        )

    def test_state_rate_raises_taxes_and_lowers_balance(self):
        federal_only = simulate(
            self._plan(TaxConfig(federal_effective_rate_pct=12, cap_gains_rate_pct=15))
        )
        with_state = simulate(
            self._plan(
                TaxConfig(
                    federal_effective_rate_pct=12,
                    cap_gains_rate_pct=15,
                    state_model=K.TAX_EFFECTIVE,
                    state_effective_rate_pct=5.0,
                )
            )
        )
        first = with_state.yearly[0]
        # Same base and deduction, so state tax is 5/12 of federal
        assert first.taxes_state == pytest.approx(first.taxes_federal * 5 / 12)
        assert federal_only.yearly[0].taxes_state == 0.0
        assert with_state.yearly[0].total_taxes > federal_only.yearly[0].total_taxes
        assert with_state.terminal_value < federal_only.terminal_value


class TestRothLast:
    def test_roth_untouched_until_others_exhausted(self):
        plan = build_plan(
            [
                Account(id="brokerage", type=K.ACCT_TAXABLE, balance=300_000, cost_basis=300_000),
                Account(id="ira", type=K.ACCT_TAX_DEFERRED, balance=300_000),
                Account(id="roth", type=K.ACCT_ROTH, balance=300_000),
            ],
            spending=SpendingPlan(target_annual_spend=80_000, inflation_pct=0.0),
            taxes=TaxConfig(federal_effective_rate_pct=0, cap_gains_rate_pct=0),
        )
        result = simulate(plan)
        roth_years = [y for y in result.yearly if y.roth_withdrawals > 0]
        assert roth_years
        for y in roth_years:
            assert y.end_balance_by_account["brokerage"] == 0
            assert y.end_balance_by_account["ira"] == 0
        first_roth = roth_years[0].year_index
        assert all(
            y.end_balance_by_account["roth"] == 300_000 for y in result.yearly[:first_roth]
        )


class TestQuarterlyRebalance:
    def _plan(self, frequency):
        return build_plan(
            [
                Account(
                    id="ira",
                    type=K.ACCT_TAX_DEFERRED,
                    balance=600_000,
                    expected_return_pct=10.0,
                    target_allocation_pct=60,
                ),
                Account(
                    id="roth",
                    type=K.ACCT_ROTH,
                    balance=400_000,
                    expected_return_pct=0.0,
                    target_allocation_pct=40,
                ),
            ],
            spending=SpendingPlan(target_annual_spend=0.0, inflation_pct=2.0),
            strategy=StrategyConfig(
                withdrawal_order=K.W_TAXABLE_FIRST, rebalance_frequency=frequency
            ),
        )

    def test_annual_rebalance(self):
        first = simulate(self._plan(K.REBALANCE_ANNUAL)).yearly[0]
        assert first.end_balance == pytest.approx(1_060_000)
        assert first.end_balance_by_account["ira"] == pytest.approx(636_000)

    def test_quarterly_rebalance_compounds_per_quarter(self):
        first = simulate(self._plan(K.REBALANCE_QUARTERLY)).yearly[0]
        quarter = 1 + 0.6 * (1.10**0.25 - 1)
        expected = 1_000_000 * quarter**4
        assert first.end_balance == pytest.approx(expected)
        assert first.end_balance_by_account["ira"] == pytest.approx(0.6 * expected)
        assert first.end_balance_by_account["roth"] == pytest.approx(0.4 * expected)


class TestHistoricalReplay:
    @pytest.fixture(scope="class")
    def result(self):
        plan = build_plan(
            market=MarketConfig(
                simulation_mode=K.MODE_HISTORICAL, historical_scenario_ids=("gfc_2008",)
            )
        )
        return simulate(plan)

    def test_first_configured_scenario_is_replayed(self, result):
        assert result.assumptions_used["scenario_id"] == "gfc_2008"

    def test_scenario_inflation_replaces_plan_inflation(self, result):
        assert result.yearly[1].target_spend == pytest.approx(50_000 * 1.041)
        # Past the ten-year path the plan's 2% applies again
        factor = 1.0
        for rate in (4.1, 0.1, 2.7, 1.5, 3.0, 1.7, 1.5, 0.8, 0.7, 2.1):
            factor *= 1 + rate / 100
        assert result.yearly[11].target_spend == pytest.approx(50_000 * factor * 1.02)

    def test_crash_year_loses_value(self, result):
        assert result.yearly[1].end_balance < result.yearly[0].end_balance * 0.7

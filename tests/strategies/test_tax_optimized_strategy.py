"""
Tests for the six-step tax-optimized withdrawal strategy.
"""

import pytest

from retirelab.calculators.tax import ClassifiedIncome, TaxRates
from retirelab.core.context import AccountState
from retirelab.core.interfaces import TaxContext, largest_within
from retirelab.core.kinds import K
from retirelab.strategies.tax_optimized import TaxOptimized


def _acct(id, type, balance, basis=0.0):
    return AccountState(
        id=id, name=id, type=type, owner=K.OWNER_PRIMARY, balance=balance, basis=basis
    )


def _ctx(**kwargs):
    return TaxContext(
        filing_status=K.FILING_SINGLE,
        deduction=15_000,
        rates=TaxRates(federal_pct=12.0, cap_gains_pct=15.0),
        base_income=ClassifiedIncome(),
        **kwargs,
    )


class TestTaxOptimized:
    def test_deduction_fill_then_basis_return(self):
        accounts = [
            _acct("ira", K.ACCT_TAX_DEFERRED, 500_000),
            _acct("brokerage", K.ACCT_TAXABLE, 200_000, basis=200_000),
            _acct("roth", K.ACCT_ROTH, 100_000),
        ]
        plan = TaxOptimized().allocate(60_000, accounts, _ctx())
        steps = plan.by_step()
        assert steps[K.STEP_DEDUCTION_FILL] == pytest.approx(15_000, abs=0.01)
        assert steps[K.STEP_BASIS_RETURN] == pytest.approx(45_000, abs=0.01)
        assert plan.roth_total == 0.0

    def test_low_bracket_fill_then_capital_gains(self):
        accounts = [
            _acct("ira", K.ACCT_TAX_DEFERRED, 500_000),
            _acct("brokerage", K.ACCT_TAXABLE, 200_000, basis=0.0),
        ]
        plan = TaxOptimized().allocate(60_000, accounts, _ctx())
        steps = plan.by_step()
        assert K.STEP_BASIS_RETURN not in steps
        # 0.12x / (15,000 + x) <= 0.02  ->  x <= 3,000
        assert steps[K.STEP_LOW_BRACKET_FILL] == pytest.approx(3_000, abs=0.01)
        assert steps[K.STEP_CAPITAL_GAINS] == pytest.approx(42_000, abs=0.02)
        assert plan.total == pytest.approx(60_000)

    def test_rmd_smoothing_boosts_low_bracket_fill(self):
        accounts = [
            _acct("ira", K.ACCT_TAX_DEFERRED, 500_000),
            _acct("brokerage", K.ACCT_TAXABLE, 200_000, basis=0.0),
        ]
        ctx = _ctx(rmd_smoothing=True, years_to_rmd=2, projected_first_rmd=20_000)
        plan = TaxOptimized().allocate(60_000, accounts, ctx)
        assert plan.by_step()[K.STEP_LOW_BRACKET_FILL] == pytest.approx(3_600, abs=0.02)

    def test_smoothing_ignored_outside_window(self):
        accounts = [
            _acct("ira", K.ACCT_TAX_DEFERRED, 500_000),
            _acct("brokerage", K.ACCT_TAXABLE, 200_000, basis=0.0),
        ]
        ctx = _ctx(rmd_smoothing=True, years_to_rmd=5, projected_first_rmd=20_000)
        plan = TaxOptimized().allocate(60_000, accounts, ctx)
        assert plan.by_step()[K.STEP_LOW_BRACKET_FILL] == pytest.approx(3_000, abs=0.01)

    def test_roth_last(self):
        accounts = [
            _acct("roth", K.ACCT_ROTH, 100_000),
            _acct("ira", K.ACCT_TAX_DEFERRED, 10_000),
        ]
        plan = TaxOptimized().allocate(50_000, accounts, _ctx())
        assert plan.by_account() == {
            "ira": pytest.approx(10_000),
            "roth": pytest.approx(40_000),
        }
        assert plan.records[-1].step == K.STEP_ROTH

    def test_insufficient_balances(self):
        accounts = [_acct("ira", K.ACCT_TAX_DEFERRED, 5_000)]
        plan = TaxOptimized().allocate(50_000, accounts, _ctx())
        assert plan.total == pytest.approx(5_000)
        assert plan.remaining == pytest.approx(45_000)


class TestLargestWithin:
    def test_limit_when_always_true(self):
        assert largest_within(lambda x: True, 100.0) == 100.0

    def test_zero_when_false_at_origin(self):
        assert largest_within(lambda x: False, 100.0) == 0.0

    def test_bisects_threshold(self):
        assert largest_within(lambda x: x <= 37.5, 100.0) == pytest.approx(37.5, abs=1e-6)

"""
Tests for the bounded fixed-point tax iteration.
"""

import pytest

from retirelab.core.convergence import MAX_PASSES, solve_fixed_point


class TestSolveFixedPoint:
    def test_immediate_convergence(self):
        result = solve_fixed_point(lambda est: ("ok", 100.0), 100.0)
        assert result.converged
        assert result.passes == 1
        assert result.outcome == "ok"

    def test_linear_tax_converges_with_secant(self):
        # tax = 20% of (spend + tax estimate)
        def evaluate(estimate):
            actual = 0.2 * (50_000 + estimate)
            return actual, actual

        result = solve_fixed_point(evaluate, 0.0)
        assert result.converged
        assert result.passes <= MAX_PASSES
        assert result.actual == pytest.approx(12_500, abs=0.01)

    def test_pass_cap_and_last_outcome_kept(self):
        calls = []

        def evaluate(estimate):
            calls.append(estimate)
            return len(calls), estimate + 10.0

        result = solve_fixed_point(evaluate, 0.0)
        assert not result.converged
        assert result.passes == MAX_PASSES
        assert len(calls) == MAX_PASSES
        assert result.outcome == MAX_PASSES
        assert result.residual == pytest.approx(10.0)

    def test_negative_estimates_are_floored(self):
        seen = []

        def evaluate(estimate):
            seen.append(estimate)
            return None, 0.0

        solve_fixed_point(evaluate, -500.0)
        assert seen[0] == 0.0

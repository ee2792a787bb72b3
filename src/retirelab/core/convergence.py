"""
Bounded fixed-point iteration for the tax/withdrawal circularity.

Withdrawals must cover taxes, but taxes depend on which withdrawals were made.
The engine guesses the year's tax, runs the withdrawal solver, computes the
actual tax and repeats with a better guess. After two passes the update uses
a secant step, which is exact when tax is linear in the guess (the usual case
under effective-rate taxation). The loop never exceeds ``max_passes``; if it
has not settled, the last pass is kept and flagged.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

CONVERGENCE_TOLERANCE = 0.01
MAX_PASSES = 3


@dataclass(frozen=True)
class ConvergenceResult(Generic[T]):
    outcome: T
    estimate: float
    actual: float
    converged: bool
    passes: int

    @property
    def residual(self) -> float:
        return self.actual - self.estimate


def _next_estimate(history: list[tuple[float, float]]) -> float:
    x1, y1 = history[-1]
    if len(history) < 2:
        return max(0.0, y1)
    x0, y0 = history[-2]
    f0, f1 = y0 - x0, y1 - x1
    if f1 == f0:
        return max(0.0, y1)
    guess = x1 - f1 * (x1 - x0) / (f1 - f0)
    if not math.isfinite(guess) or guess < 0:
        return max(0.0, y1)
    return guess


def solve_fixed_point(
    evaluate: Callable[[float], tuple[T, float]],
    initial_estimate: float,
    tolerance: float = CONVERGENCE_TOLERANCE,
    max_passes: int = MAX_PASSES,
) -> ConvergenceResult[T]:
    """
    Iterate ``estimate -> evaluate(estimate) -> actual`` until they agree.

    Args:
        evaluate: Runs one pass for a tax estimate and returns (outcome, actual tax).
            It must be repeatable: each call starts from the same state.
        initial_estimate: First tax guess
        tolerance: Maximum |actual - estimate| accepted as converged
        max_passes: Hard cap on evaluations

    Returns:
        ConvergenceResult holding the outcome of the final pass
    """
    estimate = max(0.0, initial_estimate)
    history: list[tuple[float, float]] = []
    outcome, actual = None, estimate
    for passes in range(1, max_passes + 1):
        outcome, actual = evaluate(estimate)
        history.append((estimate, actual))
        if abs(actual - estimate) <= tolerance:
            return ConvergenceResult(outcome, estimate, actual, True, passes)
        if passes < max_passes:
            estimate = _next_estimate(history)
    return ConvergenceResult(outcome, estimate, actual, False, max_passes)

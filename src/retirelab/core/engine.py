"""
Annual cash-flow orchestrator.

:func:`simulate` runs a fixed pipeline once per simulated year:

 1. phase, ages and filing status (survivor state machine)
 2. returns on beginning-of-year balances (scenario overlay if any)
 3. mandatory income: Social Security, NQDC payouts, income streams, adjustments
 4. standard deduction and RMDs on post-return balances
 5. spending target with survivor factor and guardrails
 6. discretionary withdrawal target
 7. withdrawal strategy
 8. taxes, iterating 6-8 until the tax estimate settles
 9. net spendable, shortfall or surplus
10. fees
11. rebalancing
12. year result; balances carry forward

A run owns all of its mutable state, so concurrent runs over the same
:class:`~retirelab.core.specs.PlanInput` are safe.
"""

from __future__ import annotations

import logging
import warnings

from retirelab.calculators.rmd import (
    distribution_period,
    required_distribution,
    rmd_start_age,
    years_until_rmd,
)
from retirelab.calculators.tax import (
    ClassifiedIncome,
    TaxRates,
    compute_taxes,
    standard_deduction,
)
from retirelab.data.tax_tables import ADDITIONAL_DEDUCTION_AGE

from .context import BALANCE_EPSILON, SimulationState, YearContext
from .convergence import CONVERGENCE_TOLERANCE, MAX_PASSES, solve_fixed_point
from .errors import ConfigError, ConvergenceWarning, SimulationInvariantError
from .income import MandatoryIncome, collect_mandatory_income
from .interfaces import IWithdrawalStrategy, TaxContext, WithdrawalPlan
from .kinds import K
from .market import InflationSchedule, ReturnPath, account_returns, grow, resolve_path
from .phase import PhaseInfo, determine_phase
from .rebalance import apply_fees, rebalance
from .registry import get_strategy
from .results import ConvergenceDiagnostic, PlanResult, PlanSummary, YearResult
from .spending import SpendingDecision, decide_spending
from .specs import PlanInput
from .validation import ensure_valid

logger = logging.getLogger(__name__)

# Shortfall/surplus amounts below a cent are treated as settled.
SETTLEMENT_TOLERANCE = 0.01
QUARTERS = 4
# Year-one tax guess as a share of spend x federal rate.
INITIAL_TAX_GUESS_FACTOR = 0.5


def simulate(
    plan: PlanInput,
    path: ReturnPath | None = None,
    *,
    validate: bool = True,
) -> PlanResult:
    """
    Simulate a retirement plan year by year.

    Args:
        plan: Complete plan input
        path: Market return path to replay. When omitted, historical and stress
            plans replay their first configured scenario and every other mode
            uses each account's expected return.
        validate: Validate the plan first (raises PlanValidationError)

    Returns:
        PlanResult with one YearResult per simulated year. The summary is left
        empty; use :func:`retirelab.batch.summarize` to aggregate runs.

    Raises:
        PlanValidationError: If the plan is invalid
        ConfigError: If the plan references an unknown strategy or scenario
        SimulationInvariantError: If a balance goes negative (internal error)
    """
    if validate:
        ensure_valid(plan)
    horizon = plan.household.horizon
    if horizon <= 0:
        raise ConfigError("Simulation horizon must be positive")

    strategy = get_strategy(plan.strategy.withdrawal_order)
    if path is None:
        path = resolve_path(plan)

    state = SimulationState.from_plan(plan)
    inflation = InflationSchedule(plan.spending.inflation_pct, horizon, path)
    rates = TaxRates.from_config(plan.taxes, plan.household.state_of_residence)

    logger.debug(
        "Simulating %d years from %d (strategy=%s, path=%s)",
        horizon,
        plan.start_year,
        strategy.name,
        path.scenario_id or path.label if path else "expected",
    )

    yearly: list[YearResult] = []
    diagnostics: list[ConvergenceDiagnostic] = []
    for year_index in range(horizon):
        result, diagnostic = _simulate_year(
            plan, state, year_index, strategy, inflation, rates, path
        )
        yearly.append(result)
        if diagnostic is not None:
            diagnostics.append(diagnostic)

    if diagnostics:
        warnings.warn(
            f"Tax/withdrawal iteration did not converge in {len(diagnostics)} of "
            f"{horizon} years; best estimates were used",
            ConvergenceWarning,
            stacklevel=2,
        )

    return PlanResult(
        summary=PlanSummary(),
        yearly=yearly,
        assumptions_used=_assumptions(plan, rates, horizon, path),
        diagnostics=diagnostics,
    )


def _simulate_year(
    plan: PlanInput,
    state: SimulationState,
    year_index: int,
    strategy: IWithdrawalStrategy,
    inflation: InflationSchedule,
    rates: TaxRates,
    path: ReturnPath | None,
) -> tuple[YearResult, ConvergenceDiagnostic | None]:
    # Step 1: phase
    phase = determine_phase(plan.household, year_index)
    ctx = YearContext(
        year_index=year_index,
        year=plan.start_year + year_index,
        phase=phase,
        inflation_pct=inflation.rate(year_index),
        inflation_factor=inflation.factor(year_index),
        market_return_pct=path.market_return(year_index) if path else None,
    )
    if phase.is_transition_year and not state.ownership_consolidated:
        moved = state.reassign_owner(phase.deceased, phase.survivor)
        logger.info(
            "%d: %s died; accounts %s now owned by %s",
            ctx.year,
            phase.deceased,
            ", ".join(moved) or "(none)",
            phase.survivor,
        )
    start_balance = state.total_balance()

    # Step 2: returns precede withdrawals
    _apply_returns(plan, state, ctx)

    # Step 3: mandatory income
    income = collect_mandatory_income(state, plan, ctx, inflation)

    # Step 4: deduction and RMDs
    deduction = _standard_deduction(plan, phase, ctx)
    rmd_by_account = _take_rmds(plan, state, phase)
    rmd_total = sum(rmd_by_account.values())

    # Step 5: spending
    spending = decide_spending(
        plan.spending, ctx, start_balance, plan.strategy.guardrails_enabled
    )

    # Steps 6-8: withdrawals and taxes, iterated
    base_income = ClassifiedIncome(
        ordinary=income.ordinary + rmd_total,
        social_security=income.social_security,
        untaxed=income.untaxed,
    )
    tax_ctx = _tax_context(plan, state, phase, deduction, rates, base_income)
    mandatory_cash = income.total + rmd_total
    snapshot = state.snapshot()

    def evaluate(tax_estimate: float):
        state.restore(snapshot)
        gap = max(0.0, spending.actual + tax_estimate - mandatory_cash)
        withdrawals = strategy.allocate(gap, state.accounts, tax_ctx)
        taxes = compute_taxes(
            withdrawals.income(base_income), phase.filing_status, deduction, rates
        )
        return (withdrawals, taxes), taxes.total

    if state.prior_total_tax is not None:
        initial_estimate = state.prior_total_tax
    else:
        initial_estimate = (
            spending.actual * rates.federal_pct / 100.0 * INITIAL_TAX_GUESS_FACTOR
        )
    solved = solve_fixed_point(evaluate, initial_estimate)
    withdrawals, taxes = solved.outcome
    state.prior_total_tax = taxes.total

    diagnostic = None
    if not solved.converged:
        diagnostic = ConvergenceDiagnostic(
            year=ctx.year,
            passes=solved.passes,
            estimate=solved.estimate,
            actual=solved.actual,
        )
        logger.warning(
            "%d: tax estimate did not settle after %d passes (residual %.2f)",
            ctx.year,
            solved.passes,
            solved.residual,
        )

    # Step 9: net spendable
    net, shortfall, surplus = _settle(income, rmd_total, withdrawals, taxes.total, spending)
    if surplus > 0:
        _deposit_surplus(state, surplus)

    # Steps 10-11: fees and rebalancing
    apply_fees(state.accounts)
    if plan.strategy.rebalance_frequency != K.REBALANCE_NONE:
        rebalance(state.accounts)

    # Step 12: result
    _check_invariants(state, ctx.year)
    non_roth = withdrawals.total - withdrawals.roth_total
    result = YearResult(
        year=ctx.year,
        year_index=year_index,
        age_primary=phase.age_primary,
        age_spouse=phase.age_spouse,
        phase=phase.phase,
        is_survivor_phase=phase.is_survivor_phase,
        survivor_year_count=phase.survivor_year_count,
        filing_status=phase.filing_status,
        target_spend=spending.target,
        actual_spend=spending.actual,
        guardrail=spending.guardrail,
        gross_income=income.total + rmd_total + non_roth,
        social_security_income=income.social_security,
        taxable_social_security=taxes.taxable_social_security,
        nqdc_distributions=income.nqdc,
        rmd_total=rmd_total,
        pension_and_other_income=income.streams,
        adjustment_income=income.adjustments,
        roth_withdrawals=withdrawals.roth_total,
        total_withdrawals=withdrawals.total,
        withdrawals_by_account=withdrawals.by_account(),
        rmd_by_account=rmd_by_account,
        nqdc_by_account=dict(income.nqdc_by_account),
        withdrawal_steps=tuple(
            {"account_id": r.account_id, "amount": r.amount, "step": r.step}
            for r in withdrawals.records
        ),
        standard_deduction=deduction,
        taxes_federal=taxes.federal,
        taxes_state=taxes.state,
        taxable_ordinary_income=taxes.taxable_ordinary_income,
        taxable_capital_gains=taxes.taxable_capital_gains,
        net_spendable=net,
        shortfall=shortfall,
        surplus=surplus,
        end_balance_by_account=state.balances(),
        cost_basis_by_account=state.bases(),
        converged=solved.converged,
        tax_iterations=solved.passes,
    )
    logger.debug(
        "%d: spend=%.2f withdrawals=%.2f rmd=%.2f tax=%.2f end=%.2f",
        ctx.year,
        spending.actual,
        withdrawals.total,
        rmd_total,
        taxes.total,
        result.end_balance,
    )
    return result, diagnostic


def _apply_returns(plan: PlanInput, state: SimulationState, ctx: YearContext) -> None:
    returns = account_returns(
        state.accounts, ctx.market_return_pct, plan.market.baseline_return_pct
    )
    if plan.strategy.rebalance_frequency != K.REBALANCE_QUARTERLY:
        for acct in state.accounts:
            grow(acct, returns[acct.id])
        return
    # Quarterly: rebalance between sub-periods; the fourth pass runs after fees.
    for quarter in range(QUARTERS):
        for acct in state.accounts:
            grow(acct, returns[acct.id], 1.0 / QUARTERS)
        if quarter < QUARTERS - 1:
            rebalance(state.accounts)


def _standard_deduction(plan: PlanInput, phase: PhaseInfo, ctx: YearContext) -> float:
    seniors = sum(
        1
        for role in phase.living
        if (phase.age_of(role) or 0) >= ADDITIONAL_DEDUCTION_AGE
    )
    return standard_deduction(
        phase.filing_status,
        inflation_factor=ctx.inflation_factor,
        seniors=seniors,
        override=plan.taxes.standard_deduction_override,
    )


def _owner_age_and_birth_year(
    plan: PlanInput, phase: PhaseInfo, owner: str
) -> tuple[int, int]:
    role = K.OWNER_PRIMARY if owner == K.OWNER_JOINT else owner
    person = plan.household.person(role) or plan.household.primary
    return phase.age_of(role), person.birth_year_for(plan.start_year)


def _take_rmds(
    plan: PlanInput, state: SimulationState, phase: PhaseInfo
) -> dict[str, float]:
    """Withdraw RMDs from traditional tax-deferred accounts (post-return balances)."""
    taken: dict[str, float] = {}
    for acct in state.accounts:
        if acct.type != K.ACCT_TAX_DEFERRED or acct.balance <= 0:
            continue
        age, birth_year = _owner_age_and_birth_year(plan, phase, acct.owner)
        amount = required_distribution(acct.balance, age, birth_year)
        if amount > 0:
            got, _ = acct.withdraw(amount)
            taken[acct.id] = got
    return taken


def _tax_context(
    plan: PlanInput,
    state: SimulationState,
    phase: PhaseInfo,
    deduction: float,
    rates: TaxRates,
    base_income: ClassifiedIncome,
) -> TaxContext:
    years_to_rmd = None
    projected = 0.0
    if plan.strategy.rmd_smoothing:
        for acct in state.accounts:
            if acct.type != K.ACCT_TAX_DEFERRED or acct.balance <= 0:
                continue
            age, birth_year = _owner_age_and_birth_year(plan, phase, acct.owner)
            remaining = years_until_rmd(age, birth_year)
            if remaining <= 0:
                continue
            years_to_rmd = remaining if years_to_rmd is None else min(years_to_rmd, remaining)
            divisor = distribution_period(rmd_start_age(birth_year))
            if divisor > 0:
                projected += acct.balance / divisor
    return TaxContext(
        filing_status=phase.filing_status,
        deduction=deduction,
        rates=rates,
        base_income=base_income,
        years_to_rmd=years_to_rmd,
        rmd_smoothing=plan.strategy.rmd_smoothing,
        projected_first_rmd=projected,
    )


def _settle(
    income: MandatoryIncome,
    rmd_total: float,
    withdrawals: WithdrawalPlan,
    total_tax: float,
    spending: SpendingDecision,
) -> tuple[float, float, float]:
    """Net spendable cash and the resulting (shortfall, surplus)."""
    net = income.total + rmd_total + withdrawals.total - total_tax
    gap = spending.actual - net
    if abs(gap) < SETTLEMENT_TOLERANCE:
        gap = 0.0
    return net, max(0.0, gap), max(0.0, -gap)


def _deposit_surplus(state: SimulationState, surplus: float) -> None:
    """Reinvest surplus cash in the largest taxable account, if any."""
    taxable = [a for a in state.accounts if a.is_taxable]
    if not taxable:
        return
    target = max(taxable, key=lambda a: a.balance)
    target.deposit(surplus)


def _check_invariants(state: SimulationState, year: int) -> None:
    for acct in state.accounts:
        if acct.balance < -BALANCE_EPSILON:
            raise SimulationInvariantError(
                year, f"account '{acct.id}' balance is negative ({acct.balance:.2f})"
            )
        if acct.balance < 0:
            acct.balance = 0.0
        acct.clamp_basis()


def _assumptions(
    plan: PlanInput, rates: TaxRates, horizon: int, path: ReturnPath | None
) -> dict:
    return {
        "simulation_mode": plan.market.simulation_mode,
        "scenario_id": path.scenario_id if path else None,
        "scenario_label": path.label if path else None,
        "inflation_pct": plan.spending.inflation_pct,
        "federal_effective_rate_pct": rates.federal_pct,
        "cap_gains_rate_pct": rates.cap_gains_pct,
        "state_model": plan.taxes.state_model,
        "state_effective_rate_pct": rates.state_pct,
        "state_cap_gains_rate_pct": rates.state_cap_gains_pct,
        "withdrawal_order": plan.strategy.withdrawal_order,
        "rebalance_frequency": plan.strategy.rebalance_frequency,
        "guardrails_enabled": plan.strategy.guardrails_enabled,
        "rmd_smoothing": plan.strategy.rmd_smoothing,
        "horizon": horizon,
        "start_year": plan.start_year,
        "convergence_tolerance": CONVERGENCE_TOLERANCE,
        "max_tax_passes": MAX_PASSES,
    }

"""
Mandatory (non-discretionary) income for a simulated year.

Collects Social Security, scheduled deferred-compensation payouts, pensions
and other income streams, and one-off adjustments into a single
:class:`MandatoryIncome` figure. RMDs are handled separately by the engine
because they depend on post-return balances and owner ages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .context import SimulationState, YearContext
from .kinds import K
from .market import InflationSchedule
from .specs import IncomeStream, Person, PlanInput

logger = logging.getLogger(__name__)


@dataclass
class MandatoryIncome:
    social_security: float = 0.0
    nqdc: float = 0.0
    nqdc_by_account: dict[str, float] = field(default_factory=dict)
    streams: float = 0.0
    taxable_streams: float = 0.0
    adjustments: float = 0.0
    taxable_adjustments: float = 0.0

    @property
    def total(self) -> float:
        return self.social_security + self.nqdc + self.streams + self.adjustments

    @property
    def ordinary(self) -> float:
        """Income taxed as ordinary (Social Security is classified separately)."""
        return self.nqdc + self.taxable_streams + self.taxable_adjustments

    @property
    def untaxed(self) -> float:
        return (self.streams - self.taxable_streams) + (
            self.adjustments - self.taxable_adjustments
        )


def person_social_security(
    person: Person | None,
    plan: PlanInput,
    ctx: YearContext,
    inflation: InflationSchedule,
) -> float:
    """Annual benefit for one person, grown by COLA from the claim year."""
    if person is None or person.social_security is None:
        return 0.0
    ss = person.social_security
    claim_year = person.birth_year_for(plan.start_year) + ss.claim_age
    if ctx.year < claim_year:
        return 0.0
    claim_index = claim_year - plan.start_year
    return ss.monthly_benefit * 12 * inflation.cola_between(
        claim_index, ctx.year_index, ss.cola_pct
    )


def household_social_security(
    plan: PlanInput, ctx: YearContext, inflation: InflationSchedule
) -> float:
    """
    Household benefit for the year.

    Living members' benefits are summed; in the survivor phase the survivor
    keeps the larger of their own and the deceased's benefit.
    """
    hh = plan.household
    phase = ctx.phase
    primary = person_social_security(hh.primary, plan, ctx, inflation)
    spouse = person_social_security(hh.spouse, plan, ctx, inflation)

    if phase.is_survivor_phase:
        return max(primary, spouse)
    total = 0.0
    if phase.primary_alive:
        total += primary
    if phase.spouse_alive:
        total += spouse
    return total


def stream_amount(
    stream: IncomeStream,
    plan: PlanInput,
    ctx: YearContext,
    inflation: InflationSchedule,
) -> float:
    """Payment from an income stream this year (0 when inactive)."""
    if ctx.year < stream.start_year:
        return 0.0
    if stream.end_year is not None and ctx.year > stream.end_year:
        return 0.0
    phase = ctx.phase
    if not phase.is_alive(stream.owner):
        if not (phase.is_survivor_phase and stream.survivor_continues):
            return 0.0
    if not stream.cola_pct:
        return stream.annual_amount
    start_index = stream.start_year - plan.start_year
    return stream.annual_amount * inflation.cola_between(
        start_index, ctx.year_index, stream.cola_pct
    )


def pay_deferred_comp(
    state: SimulationState, plan: PlanInput, ctx: YearContext, inflation: InflationSchedule
) -> dict[str, float]:
    """
    Pay scheduled NQDC distributions out of their accounts.

    Within the schedule window the payout is capped at the remaining balance;
    anything left after ``end_year`` is paid as a lump sum.
    """
    payouts: dict[str, float] = {}
    for acct in state.accounts:
        sched = acct.schedule
        if acct.type != K.ACCT_DEFERRED_COMP or sched is None or acct.balance <= 0:
            continue
        if ctx.year < sched.start_year:
            continue
        if ctx.year <= sched.end_year:
            amount = sched.annual_amount
            if sched.inflation_adjusted:
                amount *= inflation.between(
                    sched.start_year - plan.start_year, ctx.year_index
                )
        else:
            amount = acct.balance
            logger.debug("%s: lump-sum NQDC payout of %.2f from %s", ctx.year, amount, acct.id)
        taken, _ = acct.withdraw(amount)
        if taken > 0:
            payouts[acct.id] = taken
    return payouts


def collect_mandatory_income(
    state: SimulationState,
    plan: PlanInput,
    ctx: YearContext,
    inflation: InflationSchedule,
) -> MandatoryIncome:
    """Resolve all mandatory income for the year (mutates NQDC balances)."""
    income = MandatoryIncome()
    income.social_security = household_social_security(plan, ctx, inflation)

    income.nqdc_by_account = pay_deferred_comp(state, plan, ctx, inflation)
    income.nqdc = sum(income.nqdc_by_account.values())

    for stream in plan.other_income:
        amount = stream_amount(stream, plan, ctx, inflation)
        income.streams += amount
        if stream.taxable:
            income.taxable_streams += amount

    for adj in plan.adjustments:
        if not adj.year <= ctx.year <= adj.last_year:
            continue
        amount = adj.amount
        if adj.inflation_adjusted:
            amount *= inflation.between(adj.year - plan.start_year, ctx.year_index)
        income.adjustments += amount
        if adj.taxable:
            income.taxable_adjustments += amount

    return income

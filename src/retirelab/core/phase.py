"""
Household life-cycle state machine.

A couple moves ``joint -> survivor (3 years) -> survivorSingle`` once the first
member's simulated age reaches their life expectancy. The death year and the
two following years file as ``survivor``; afterwards the survivor files as
``single``. One-person households stay in the ``single`` phase throughout.

Everything here is a pure function of the household and the year index, so
the machine needs no carried state.
"""

from __future__ import annotations

from dataclasses import dataclass

from .kinds import K
from .specs import Household

SURVIVOR_FILING_YEARS = 3


@dataclass(frozen=True)
class PhaseInfo:
    phase: str
    filing_status: str
    primary_alive: bool
    spouse_alive: bool
    age_primary: int
    age_spouse: int | None
    survivor_year_count: int = 0
    survivor: str | None = None
    deceased: str | None = None

    @property
    def is_survivor_phase(self) -> bool:
        return self.phase in (K.PHASE_SURVIVOR, K.PHASE_SURVIVOR_SINGLE)

    @property
    def is_transition_year(self) -> bool:
        """First year after a death: accounts move to the survivor."""
        return self.survivor_year_count == 1

    def is_alive(self, role: str) -> bool:
        if role == K.OWNER_PRIMARY:
            return self.primary_alive
        if role == K.OWNER_SPOUSE:
            return self.spouse_alive
        return self.primary_alive or self.spouse_alive

    def age_of(self, role: str) -> int | None:
        if role == K.OWNER_SPOUSE:
            return self.age_spouse
        return self.age_primary

    @property
    def living(self) -> list[str]:
        roles = []
        if self.primary_alive:
            roles.append(K.OWNER_PRIMARY)
        if self.spouse_alive:
            roles.append(K.OWNER_SPOUSE)
        return roles


def first_death_index(household: Household) -> int | None:
    """Year index of the first death in a couple, or None if they die together."""
    if household.spouse is None:
        return None
    p = household.primary.years_remaining
    s = household.spouse.years_remaining
    if p == s:
        return None
    return min(p, s)


def determine_phase(household: Household, year_index: int) -> PhaseInfo:
    """Resolve phase, ages and filing status for simulated year ``year_index``."""
    primary = household.primary
    spouse = household.spouse

    primary_alive = year_index < primary.years_remaining
    age_primary = primary.current_age + year_index if primary_alive else primary.life_expectancy

    if spouse is None:
        return PhaseInfo(
            phase=K.PHASE_SINGLE,
            filing_status=household.filing_status,
            primary_alive=primary_alive,
            spouse_alive=False,
            age_primary=age_primary,
            age_spouse=None,
        )

    spouse_alive = year_index < spouse.years_remaining
    age_spouse = spouse.current_age + year_index if spouse_alive else spouse.life_expectancy

    if primary_alive and spouse_alive:
        return PhaseInfo(
            phase=K.PHASE_JOINT,
            filing_status=household.filing_status,
            primary_alive=True,
            spouse_alive=True,
            age_primary=age_primary,
            age_spouse=age_spouse,
        )

    if primary_alive or spouse_alive:
        survivor = K.OWNER_PRIMARY if primary_alive else K.OWNER_SPOUSE
        deceased = K.OWNER_SPOUSE if primary_alive else K.OWNER_PRIMARY
        count = year_index - first_death_index(household) + 1
        in_survivor_years = count <= SURVIVOR_FILING_YEARS
        return PhaseInfo(
            phase=K.PHASE_SURVIVOR if in_survivor_years else K.PHASE_SURVIVOR_SINGLE,
            filing_status=K.FILING_SURVIVOR if in_survivor_years else K.FILING_SINGLE,
            primary_alive=primary_alive,
            spouse_alive=spouse_alive,
            age_primary=age_primary,
            age_spouse=age_spouse,
            survivor_year_count=count,
            survivor=survivor,
            deceased=deceased,
        )

    return PhaseInfo(
        phase=K.PHASE_SURVIVOR_SINGLE,
        filing_status=K.FILING_SINGLE,
        primary_alive=False,
        spouse_alive=False,
        age_primary=age_primary,
        age_spouse=age_spouse,
    )

"""
Tests for the household phase state machine.
"""

import pytest

from retirelab.core.kinds import K
from retirelab.core.phase import (
    SURVIVOR_FILING_YEARS,
    determine_phase,
    first_death_index,
)
from retirelab.core.specs import Household, Person


class TestDeterminePhase:
    @pytest.fixture
    def couple(self, make_household):
        # Primary dies after 4 simulated years; spouse lives 16.
        return make_household(primary_age=66, primary_le=70, spouse_age=64, spouse_le=80)

    def test_single_household(self):
        hh = Household(primary=Person(current_age=65, life_expectancy=90))
        info = determine_phase(hh, 3)
        assert info.phase == K.PHASE_SINGLE
        assert info.filing_status == K.FILING_SINGLE
        assert info.age_primary == 68
        assert info.age_spouse is None
        assert not info.is_survivor_phase

    def test_joint_years(self, couple):
        for idx in range(4):
            info = determine_phase(couple, idx)
            assert info.phase == K.PHASE_JOINT
            assert info.filing_status == K.FILING_MFJ
            assert info.living == [K.OWNER_PRIMARY, K.OWNER_SPOUSE]

    def test_transition_year(self, couple):
        info = determine_phase(couple, 4)
        assert info.phase == K.PHASE_SURVIVOR
        assert info.filing_status == K.FILING_SURVIVOR
        assert info.is_transition_year
        assert info.survivor == K.OWNER_SPOUSE
        assert info.deceased == K.OWNER_PRIMARY
        assert info.living == [K.OWNER_SPOUSE]

    def test_survivor_filing_window(self, couple):
        last_survivor = 4 + SURVIVOR_FILING_YEARS - 1
        assert determine_phase(couple, last_survivor).filing_status == K.FILING_SURVIVOR
        assert determine_phase(couple, last_survivor).survivor_year_count == 3
        after = determine_phase(couple, last_survivor + 1)
        assert after.phase == K.PHASE_SURVIVOR_SINGLE
        assert after.filing_status == K.FILING_SINGLE
        assert after.is_survivor_phase
        assert not after.is_transition_year

    def test_deceased_age_is_frozen(self, couple):
        info = determine_phase(couple, 10)
        assert info.age_primary == 70
        assert info.age_spouse == 74

    def test_joint_ownership_alive_if_either_alive(self, couple):
        info = determine_phase(couple, 6)
        assert not info.is_alive(K.OWNER_PRIMARY)
        assert info.is_alive(K.OWNER_SPOUSE)
        assert info.is_alive(K.OWNER_JOINT)


class TestFirstDeath:
    def test_simultaneous_deaths(self, make_household):
        hh = make_household(primary_age=70, primary_le=90, spouse_age=70, spouse_le=90)
        assert first_death_index(hh) is None
        assert determine_phase(hh, 19).phase == K.PHASE_JOINT

    def test_single_has_no_first_death(self):
        hh = Household(primary=Person(current_age=65, life_expectancy=90))
        assert first_death_index(hh) is None

    def test_spouse_dies_first(self, make_household):
        hh = make_household(primary_age=60, primary_le=95, spouse_age=70, spouse_le=80)
        assert first_death_index(hh) == 10
        info = determine_phase(hh, 10)
        assert info.survivor == K.OWNER_PRIMARY
        assert info.deceased == K.OWNER_SPOUSE

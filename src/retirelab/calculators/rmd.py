"""
Required Minimum Distribution calculator.

RMDs apply to traditional tax-deferred accounts once the owner reaches the
SECURE 2.0 start age for their birth year. The amount is the account balance
divided by the Uniform Lifetime Table distribution period for the owner's age.
"""

from __future__ import annotations

from retirelab.data.rmd_table import (
    DIVISOR_AFTER_TABLE,
    MAX_TABLE_AGE,
    MIN_LOOKUP_AGE,
    RMD_START_AGE_BY_BIRTH_YEAR,
    RMD_START_AGE_DEFAULT,
    RMD_START_AGE_LATEST,
    UNIFORM_LIFETIME_TABLE,
)


def rmd_start_age(birth_year: int | None) -> int:
    """SECURE 2.0 RMD start age for a given birth year."""
    if birth_year is None:
        return RMD_START_AGE_DEFAULT
    for last_birth_year, age in RMD_START_AGE_BY_BIRTH_YEAR:
        if birth_year <= last_birth_year:
            return age
    return RMD_START_AGE_LATEST


def distribution_period(age: int) -> float:
    """ULT divisor for ``age``; 0 below the lookup floor, 2.0 past the table."""
    if age < MIN_LOOKUP_AGE:
        return 0.0
    if age > MAX_TABLE_AGE:
        return DIVISOR_AFTER_TABLE
    return UNIFORM_LIFETIME_TABLE[age]


def required_distribution(balance: float, age: int, birth_year: int | None = None) -> float:
    """
    RMD owed for the year.

    Returns 0 before the owner's start age, for empty balances, and where the
    table has no divisor. The result never exceeds ``balance``.
    """
    if balance <= 0 or age < rmd_start_age(birth_year):
        return 0.0
    divisor = distribution_period(age)
    if divisor <= 0:
        return 0.0
    return min(balance, balance / divisor)


def years_until_rmd(age: int, birth_year: int | None = None) -> int:
    """Years until RMDs begin (0 once they have started)."""
    return max(0, rmd_start_age(birth_year) - age)

"""
Pure calculators used by the engine: taxes, RMDs and cost basis.
"""

from .cost_basis import gain_fraction, split_withdrawal
from .rmd import distribution_period, required_distribution, rmd_start_age
from .tax import (
    ClassifiedIncome,
    TaxRates,
    TaxResult,
    compute_taxes,
    standard_deduction,
    taxable_social_security,
)

__all__ = [
    "gain_fraction",
    "split_withdrawal",
    "distribution_period",
    "required_distribution",
    "rmd_start_age",
    "ClassifiedIncome",
    "TaxRates",
    "TaxResult",
    "compute_taxes",
    "standard_deduction",
    "taxable_social_security",
]

"""
Withdrawal strategy implementations for RetireLab.

Each strategy covers a year's spending gap from discretionary account draws
and is selected by the plan's ``strategy.withdrawal_order`` name.

Registry System:
The module automatically registers all default strategies in the global
registry when imported.
"""

from .ordered import TaxableFirst, TaxDeferredFirst
from .pro_rata import ProRata
from .registry import register_defaults
from .tax_optimized import TaxOptimized

# Register all default strategies when module is imported
register_defaults()

__all__ = [
    "TaxableFirst",
    "TaxDeferredFirst",
    "ProRata",
    "TaxOptimized",
    "register_defaults",
]

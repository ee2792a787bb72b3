"""
Static reference data: Uniform Lifetime Table, federal tax tables, state tax
table and market scenarios. All tables are immutable mappings built at import.
"""

from .rmd_table import UNIFORM_LIFETIME_TABLE
from .scenarios import SCENARIOS, MarketScenario, get_scenario, list_scenarios
from .state_tax import STATE_TAX_TABLE, StateTaxEntry, lookup_state
from .tax_tables import SS_THRESHOLDS, STANDARD_DEDUCTIONS

__all__ = [
    "UNIFORM_LIFETIME_TABLE",
    "SCENARIOS",
    "MarketScenario",
    "get_scenario",
    "list_scenarios",
    "STATE_TAX_TABLE",
    "StateTaxEntry",
    "lookup_state",
    "SS_THRESHOLDS",
    "STANDARD_DEDUCTIONS",
]

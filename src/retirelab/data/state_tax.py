"""
State income-tax reference table (effective-rate approximation).

Rates are percentages. ``ss_tax_exempt`` is ``"yes"`` when Social Security is
fully exempt from state tax and ``"partial"`` when half of the federally
taxable amount is exempt. ``standard_deduction`` is ``None`` where the state
has no separate figure; callers fall back to the federal deduction.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

SS_EXEMPT_FULL = "yes"
SS_EXEMPT_PARTIAL = "partial"


@dataclass(frozen=True)
class StateTaxEntry:
    code: str
    name: str
    income_rate_pct: float
    cap_gains_rate_pct: float
    ss_tax_exempt: str = SS_EXEMPT_FULL
    standard_deduction: float | None = None


_ENTRIES = (
    StateTaxEntry("AL", "Alabama", 5.0, 5.0, "yes", 3000),
    StateTaxEntry("AK", "Alaska", 0, 0, "yes"),
    StateTaxEntry("AZ", "Arizona", 2.5, 2.5, "yes", 14600),
    StateTaxEntry("AR", "Arkansas", 4.4, 4.4, "yes", 2340),
    StateTaxEntry("CA", "California", 13.3, 13.3, "yes", 5540),
    StateTaxEntry("CO", "Colorado", 4.4, 4.4, "partial", 14600),
    StateTaxEntry("CT", "Connecticut", 6.99, 6.99, "partial", 0),
    StateTaxEntry("DE", "Delaware", 6.6, 6.6, "yes", 3250),
    StateTaxEntry("FL", "Florida", 0, 0, "yes"),
    StateTaxEntry("GA", "Georgia", 5.49, 5.49, "yes", 5400),
    StateTaxEntry("HI", "Hawaii", 11.0, 7.25, "yes", 2200),
    StateTaxEntry("ID", "Idaho", 5.8, 5.8, "yes", 14600),
    StateTaxEntry("IL", "Illinois", 4.95, 4.95, "yes", 0),
    StateTaxEntry("IN", "Indiana", 3.05, 3.05, "yes", 0),
    StateTaxEntry("IA", "Iowa", 5.7, 5.7, "yes", 2210),
    StateTaxEntry("KS", "Kansas", 5.7, 5.7, "partial", 3500),
    StateTaxEntry("KY", "Kentucky", 4.0, 4.0, "yes", 3160),
    StateTaxEntry("LA", "Louisiana", 4.25, 4.25, "yes", 4500),
    StateTaxEntry("ME", "Maine", 7.15, 7.15, "yes", 14600),
    StateTaxEntry("MD", "Maryland", 5.75, 5.75, "yes", 2550),
    StateTaxEntry("MA", "Massachusetts", 5.0, 5.0, "yes", 0),
    StateTaxEntry("MI", "Michigan", 4.25, 4.25, "yes", 0),
    StateTaxEntry("MN", "Minnesota", 9.85, 9.85, "partial", 14575),
    StateTaxEntry("MS", "Mississippi", 5.0, 5.0, "yes", 2300),
    StateTaxEntry("MO", "Missouri", 4.95, 4.95, "partial", 14600),
    StateTaxEntry("MT", "Montana", 6.75, 6.75, "partial", 5540),
    StateTaxEntry("NE", "Nebraska", 6.64, 6.64, "yes", 7900),
    StateTaxEntry("NV", "Nevada", 0, 0, "yes"),
    StateTaxEntry("NH", "New Hampshire", 0, 0, "yes"),
    StateTaxEntry("NJ", "New Jersey", 10.75, 10.75, "yes", 0),
    StateTaxEntry("NM", "New Mexico", 5.9, 5.9, "partial", 14600),
    StateTaxEntry("NY", "New York", 10.9, 10.9, "yes", 8000),
    StateTaxEntry("NC", "North Carolina", 4.5, 4.5, "yes", 12750),
    StateTaxEntry("ND", "North Dakota", 2.5, 2.5, "partial", 14600),
    StateTaxEntry("OH", "Ohio", 3.5, 3.5, "yes", 0),
    StateTaxEntry("OK", "Oklahoma", 4.75, 4.75, "yes", 6350),
    StateTaxEntry("OR", "Oregon", 9.9, 9.9, "yes", 2745),
    StateTaxEntry("PA", "Pennsylvania", 3.07, 3.07, "yes", 0),
    StateTaxEntry("RI", "Rhode Island", 5.99, 5.99, "partial", 10550),
    StateTaxEntry("SC", "South Carolina", 6.4, 6.4, "yes", 14600),
    StateTaxEntry("SD", "South Dakota", 0, 0, "yes"),
    StateTaxEntry("TN", "Tennessee", 0, 0, "yes"),
    StateTaxEntry("TX", "Texas", 0, 0, "yes"),
    StateTaxEntry("UT", "Utah", 4.65, 4.65, "partial", 0),
    StateTaxEntry("VT", "Vermont", 8.75, 8.75, "partial", 6500),
    StateTaxEntry("VA", "Virginia", 5.75, 5.75, "yes", 8000),
    StateTaxEntry("WA", "Washington", 0, 7.0, "yes"),
    StateTaxEntry("WV", "West Virginia", 6.5, 6.5, "partial", 0),
    StateTaxEntry("WI", "Wisconsin", 7.65, 7.65, "yes", 12760),
    StateTaxEntry("WY", "Wyoming", 0, 0, "yes"),
    StateTaxEntry("DC", "District of Columbia", 10.75, 10.75, "yes", 14600),
)

STATE_TAX_TABLE = MappingProxyType({entry.code: entry for entry in _ENTRIES})


def lookup_state(code: str | None) -> StateTaxEntry | None:
    """Return the table entry for a two-letter state code, or None."""
    return STATE_TAX_TABLE.get(code.upper()) if code else None

"""
Federal reference tables: standard deduction, age-65 additional deduction,
Social-Security provisional-income thresholds and default effective rates.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from retirelab.core.kinds import K

STANDARD_DEDUCTIONS = MappingProxyType(
    {
        K.FILING_SINGLE: 15_000.0,
        K.FILING_MFJ: 30_000.0,
        K.FILING_SURVIVOR: 30_000.0,
    }
)

# Additional standard deduction per person aged 65 or older.
AGE_65_ADDITIONAL_DEDUCTION = MappingProxyType(
    {
        K.FILING_SINGLE: 1_550.0,
        K.FILING_MFJ: 1_300.0,
        K.FILING_SURVIVOR: 1_300.0,
    }
)
ADDITIONAL_DEDUCTION_AGE = 65


@dataclass(frozen=True)
class SSThresholds:
    """Provisional-income band edges for Social-Security taxability."""

    lower: float
    upper: float

    @property
    def mid_band_cap(self) -> float:
        """Maximum taxable amount contributed by the 50% band."""
        return 0.5 * (self.upper - self.lower)


_MFJ_THRESHOLDS = SSThresholds(lower=32_000.0, upper=44_000.0)
_SINGLE_THRESHOLDS = SSThresholds(lower=16_000.0, upper=22_000.0)

SS_THRESHOLDS = MappingProxyType(
    {
        K.FILING_MFJ: _MFJ_THRESHOLDS,
        K.FILING_SURVIVOR: _MFJ_THRESHOLDS,
        K.FILING_SINGLE: _SINGLE_THRESHOLDS,
    }
)

SS_MID_BAND_RATE = 0.5
SS_UPPER_BAND_RATE = 0.85

DEFAULT_FEDERAL_EFFECTIVE_RATE_PCT = 22.0
DEFAULT_CAP_GAINS_RATE_PCT = 15.0

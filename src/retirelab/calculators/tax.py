"""
Effective-rate tax calculator.

Income for a year is classified into three buckets before tax is applied:

- **ordinary**: tax-deferred and deferred-comp withdrawals, RMDs, NQDC
  payouts, taxable pensions/streams, taxable adjustments, plus the taxable
  share of Social Security
- **capital gains**: the gain portion of taxable-account withdrawals
- **untaxed**: Roth withdrawals, return of basis, non-taxable income

Federal tax is ``max(0, ordinary - standard deduction) * federal rate +
capital gains * cap-gains rate``. State tax mirrors the same shape with the
state's rate, deduction and Social-Security exemption. Marginal brackets are
intentionally not modelled.
"""

from __future__ import annotations

from dataclasses import dataclass

from retirelab.core.kinds import K
from retirelab.core.specs import TaxConfig
from retirelab.data.state_tax import SS_EXEMPT_FULL, SS_EXEMPT_PARTIAL, lookup_state
from retirelab.data.tax_tables import (
    AGE_65_ADDITIONAL_DEDUCTION,
    SS_MID_BAND_RATE,
    SS_THRESHOLDS,
    SS_UPPER_BAND_RATE,
    STANDARD_DEDUCTIONS,
)


@dataclass(frozen=True)
class TaxRates:
    """Resolved percentage rates and state rules for one plan."""

    federal_pct: float
    cap_gains_pct: float
    state_pct: float = 0.0
    state_cap_gains_pct: float = 0.0
    state_ss_exempt: str | None = None
    state_deduction: float | None = None
    state_enabled: bool = False

    @classmethod
    def from_config(cls, taxes: TaxConfig, state_code: str | None) -> TaxRates:
        """
        Resolve rates from a :class:`TaxConfig` and the state of residence.

        An explicit state rate wins over the table; the state capital-gains rate
        falls back to the explicit state rate, then to the table's gains rate.
        """
        if taxes.state_model == K.TAX_NONE:
            return cls(
                federal_pct=taxes.federal_effective_rate_pct,
                cap_gains_pct=taxes.cap_gains_rate_pct,
            )

        entry = lookup_state(state_code)
        if taxes.state_effective_rate_pct is not None:
            state_pct = taxes.state_effective_rate_pct
            default_cg = state_pct
        else:
            state_pct = entry.income_rate_pct if entry else 0.0
            default_cg = entry.cap_gains_rate_pct if entry else 0.0
        state_cg = (
            taxes.state_cap_gains_rate_pct
            if taxes.state_cap_gains_rate_pct is not None
            else default_cg
        )
        return cls(
            federal_pct=taxes.federal_effective_rate_pct,
            cap_gains_pct=taxes.cap_gains_rate_pct,
            state_pct=state_pct,
            state_cap_gains_pct=state_cg,
            state_ss_exempt=entry.ss_tax_exempt if entry else None,
            state_deduction=entry.standard_deduction if entry else None,
            state_enabled=True,
        )


@dataclass(frozen=True)
class ClassifiedIncome:
    """Income for one year, split by tax treatment (Social Security kept apart)."""

    ordinary: float = 0.0
    capital_gains: float = 0.0
    social_security: float = 0.0
    untaxed: float = 0.0

    def plus(
        self, ordinary: float = 0.0, capital_gains: float = 0.0, untaxed: float = 0.0
    ) -> ClassifiedIncome:
        return ClassifiedIncome(
            ordinary=self.ordinary + ordinary,
            capital_gains=self.capital_gains + capital_gains,
            social_security=self.social_security,
            untaxed=self.untaxed + untaxed,
        )

    @property
    def gross(self) -> float:
        return self.ordinary + self.capital_gains + self.social_security + self.untaxed


@dataclass(frozen=True)
class TaxResult:
    federal: float
    state: float
    taxable_social_security: float
    taxable_ordinary_income: float
    taxable_capital_gains: float

    @property
    def total(self) -> float:
        return self.federal + self.state


def taxable_social_security(
    benefits: float, other_ordinary: float, filing_status: str
) -> float:
    """
    Taxable portion of Social-Security benefits from provisional income.

    Provisional income is ``other_ordinary + 0.5 * benefits``. Below the lower
    threshold nothing is taxable; between the thresholds up to 50% is taxable;
    above the upper threshold up to 85% is taxable.
    """
    if benefits <= 0:
        return 0.0
    thresholds = SS_THRESHOLDS.get(filing_status, SS_THRESHOLDS[K.FILING_SINGLE])
    provisional = other_ordinary + 0.5 * benefits

    if provisional <= thresholds.lower:
        return 0.0
    if provisional <= thresholds.upper:
        return min(SS_MID_BAND_RATE * benefits, SS_MID_BAND_RATE * (provisional - thresholds.lower))

    mid_band = min(thresholds.mid_band_cap, SS_MID_BAND_RATE * benefits)
    return min(
        SS_UPPER_BAND_RATE * benefits,
        SS_UPPER_BAND_RATE * (provisional - thresholds.upper) + mid_band,
    )


def standard_deduction(
    filing_status: str,
    inflation_factor: float = 1.0,
    seniors: int = 0,
    override: float | None = None,
) -> float:
    """
    Standard deduction for the year.

    Args:
        filing_status: single, mfj or survivor
        inflation_factor: Cumulative inflation since the plan's start year
        seniors: Number of living household members aged 65 or older
        override: Replaces the filing-status base amount when provided

    Returns:
        Inflated deduction including the age-65 additional amount
    """
    base = override if override is not None else STANDARD_DEDUCTIONS[filing_status]
    extra = AGE_65_ADDITIONAL_DEDUCTION[filing_status] * seniors
    return (base + extra) * inflation_factor


def compute_taxes(
    income: ClassifiedIncome,
    filing_status: str,
    deduction: float,
    rates: TaxRates,
) -> TaxResult:
    """Federal and state tax on a year's classified income."""
    taxable_ss = taxable_social_security(
        income.social_security, income.ordinary, filing_status
    )
    ordinary = income.ordinary + taxable_ss
    gains = max(0.0, income.capital_gains)

    federal = (
        max(0.0, ordinary - deduction) * rates.federal_pct / 100.0
        + gains * rates.cap_gains_pct / 100.0
    )

    state = 0.0
    if rates.state_enabled:
        state_ordinary = ordinary
        if rates.state_ss_exempt == SS_EXEMPT_FULL:
            state_ordinary -= taxable_ss
        elif rates.state_ss_exempt == SS_EXEMPT_PARTIAL:
            state_ordinary -= 0.5 * taxable_ss
        state_deduction = (
            rates.state_deduction if rates.state_deduction is not None else deduction
        )
        state = (
            max(0.0, state_ordinary - state_deduction) * rates.state_pct / 100.0
            + gains * rates.state_cap_gains_pct / 100.0
        )

    return TaxResult(
        federal=federal,
        state=state,
        taxable_social_security=taxable_ss,
        taxable_ordinary_income=ordinary,
        taxable_capital_gains=gains,
    )


def blended_rate(income: ClassifiedIncome, filing_status: str, deduction: float, rates: TaxRates) -> float:
    """Total tax as a fraction of gross income (0 when there is no income)."""
    gross = income.gross
    if gross <= 0:
        return 0.0
    return compute_taxes(income, filing_status, deduction, rates).total / gross

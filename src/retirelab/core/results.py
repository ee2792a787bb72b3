"""
Results and output structures for RetireLab.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any

import numpy as np
import pandas as pd

# YearResult fields holding per-account mappings; flattened in balances_frame().
_MAPPING_FIELDS = (
    "withdrawals_by_account",
    "rmd_by_account",
    "nqdc_by_account",
    "end_balance_by_account",
    "cost_basis_by_account",
)


@dataclass(frozen=True)
class YearResult:
    """
    One simulated calendar year.

    Income components are annual dollar amounts. ``withdrawals_by_account``
    holds discretionary draws only; RMDs are reported separately in
    ``rmd_by_account`` and ``rmd_total``, and deferred-comp payouts in
    ``nqdc_by_account``. ``shortfall`` and ``surplus`` are never both positive.
    """

    year: int
    year_index: int
    age_primary: int
    age_spouse: int | None
    phase: str
    is_survivor_phase: bool
    survivor_year_count: int
    filing_status: str
    target_spend: float
    actual_spend: float
    guardrail: str | None
    gross_income: float
    social_security_income: float
    taxable_social_security: float
    nqdc_distributions: float
    rmd_total: float
    pension_and_other_income: float
    adjustment_income: float
    roth_withdrawals: float
    total_withdrawals: float
    withdrawals_by_account: dict[str, float]
    rmd_by_account: dict[str, float]
    nqdc_by_account: dict[str, float]
    withdrawal_steps: tuple[dict[str, Any], ...]
    standard_deduction: float
    taxes_federal: float
    taxes_state: float
    taxable_ordinary_income: float
    taxable_capital_gains: float
    net_spendable: float
    shortfall: float
    surplus: float
    end_balance_by_account: dict[str, float]
    cost_basis_by_account: dict[str, float]
    converged: bool = True
    tax_iterations: int = 1

    @property
    def total_taxes(self) -> float:
        return self.taxes_federal + self.taxes_state

    @property
    def end_balance(self) -> float:
        return sum(self.end_balance_by_account.values())


@dataclass
class PlanSummary:
    """
    Aggregate statistics over one or more runs.

    Left empty by a single ``simulate`` call; populated by
    :func:`retirelab.batch.summarize`.
    """

    success_probability: float | None = None
    median_terminal_value: float | None = None
    worst_case_shortfall: float | None = None
    runs: int = 0


@dataclass(frozen=True)
class ConvergenceDiagnostic:
    year: int
    passes: int
    estimate: float
    actual: float

    @property
    def residual(self) -> float:
        return self.actual - self.estimate


@dataclass
class PlanResult:
    """Output of one simulation run (or an aggregate of runs)."""

    summary: PlanSummary
    yearly: list[YearResult]
    assumptions_used: dict[str, Any]
    diagnostics: list[ConvergenceDiagnostic] = field(default_factory=list)

    @property
    def horizon(self) -> int:
        return len(self.yearly)

    @property
    def terminal_value(self) -> float:
        return self.yearly[-1].end_balance if self.yearly else 0.0

    @property
    def total_shortfall(self) -> float:
        return sum(y.shortfall for y in self.yearly)

    @property
    def converged(self) -> bool:
        return not self.diagnostics

    def to_frame(self) -> pd.DataFrame:
        """
        Yearly results as a DataFrame indexed by calendar year.

        Per-account mappings and solver step diagnostics are left out; use
        :meth:`balances_frame` for per-account detail.
        """
        rows = []
        for y in self.yearly:
            row = {
                k: v
                for k, v in asdict(y).items()
                if k not in _MAPPING_FIELDS and k != "withdrawal_steps"
            }
            row["total_taxes"] = y.total_taxes
            row["end_balance"] = y.end_balance
            rows.append(row)
        df = pd.DataFrame(rows)
        if not df.empty:
            df = df.set_index("year")
        return df

    def balances_frame(self, field_name: str = "end_balance_by_account") -> pd.DataFrame:
        """Per-account values over time (years x account ids)."""
        if field_name not in _MAPPING_FIELDS:
            raise ValueError(f"Unknown per-account field '{field_name}'")
        df = pd.DataFrame(
            [getattr(y, field_name) for y in self.yearly],
            index=pd.Index([y.year for y in self.yearly], name="year"),
        )
        return df.fillna(0.0)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "summary": asdict(self.summary),
            "yearly": [asdict(y) for y in self.yearly],
            "assumptions_used": dict(self.assumptions_used),
            "diagnostics": [
                {**asdict(d), "residual": d.residual} for d in self.diagnostics
            ],
        }


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy scalars and arrays, pandas objects and results."""

    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, pd.DataFrame):
            return obj.reset_index().to_dict("records")
        elif isinstance(obj, pd.Series):
            return obj.to_dict()
        elif isinstance(obj, PlanResult):
            return obj.to_dict()
        elif is_dataclass(obj) and not isinstance(obj, type):
            return asdict(obj)
        return super().default(obj)

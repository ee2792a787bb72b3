"""
Validation and reporting utilities for RetireLab.

Every plan is validated before any simulation work begins. Validation collects
all problems into a structured :class:`ValidationReport` instead of stopping
at the first one, so callers can show the full list to a user.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any

from retirelab.data.scenarios import SCENARIOS
from retirelab.data.state_tax import lookup_state

from .errors import VALIDATION_FAILED, PlanValidationError
from .kinds import K
from .specs import Account, Person, PlanInput

ERROR = "error"
WARNING = "warning"

REBALANCE_SUM_TOLERANCE = 0.01
MIN_CLAIM_AGE = 62
MAX_CLAIM_AGE = 70
MAX_AGE = 120

_SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$")


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    message: str
    severity: str = ERROR

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass
class ValidationReport:
    """
    Structured validation report for a plan.

    Provides machine-readable validation results with clear error/warning
    categorization for CLI exit codes and user feedback.
    """

    issues: list[ValidationIssue] = field(default_factory=list)

    def error(self, path: str, message: str) -> None:
        self.issues.append(ValidationIssue(path, message, ERROR))

    def warn(self, path: str, message: str) -> None:
        self.issues.append(ValidationIssue(path, message, WARNING))

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == WARNING]

    def has_errors(self) -> bool:
        return bool(self.errors)

    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def is_valid(self) -> bool:
        """Check if validation passed (no errors, warnings are OK)."""
        return not self.has_errors()

    def get_exit_code(self) -> int:
        """
        Get appropriate CLI exit code.

        Returns:
            0: Valid (no errors)
            1: Errors present
            2: Warnings only
        """
        if self.has_errors():
            return 1
        elif self.has_warnings():
            return 2
        else:
            return 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": VALIDATION_FAILED if self.has_errors() else None,
            "issues": [
                {"field": i.field, "message": i.message, "severity": i.severity}
                for i in self.issues
            ],
            "has_errors": self.has_errors(),
            "has_warnings": self.has_warnings(),
            "is_valid": self.is_valid(),
            "exit_code": self.get_exit_code(),
        }

    def __str__(self) -> str:
        if not self.issues:
            return "✅ Plan is valid"
        lines = []
        if self.errors:
            lines.append(f"❌ {len(self.errors)} error(s):")
            lines.extend(f"  - {issue}" for issue in self.errors)
        if self.warnings:
            lines.append(f"⚠️  {len(self.warnings)} warning(s):")
            lines.extend(f"  - {issue}" for issue in self.warnings)
        return "\n".join(lines)


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _check_range(
    report: ValidationReport,
    path: str,
    value: Any,
    low: float | None = None,
    high: float | None = None,
    *,
    optional: bool = False,
    whole: bool = False,
) -> bool:
    """
    Record an error unless ``value`` is a finite number within [low, high].

    With ``whole=True`` the value must also be an ``int``, so ``65.0`` is
    rejected like ``65.5``.
    """
    if value is None and optional:
        return True
    if not _is_number(value):
        report.error(path, f"must be a finite number (got {value!r})")
        return False
    if whole and not isinstance(value, int):
        report.error(path, f"must be a whole number (got {value!r})")
        return False
    if low is not None and value < low:
        report.error(path, f"must be >= {low} (got {value})")
        return False
    if high is not None and value > high:
        report.error(path, f"must be <= {high} (got {value})")
        return False
    return True


def validate_plan(plan: PlanInput) -> ValidationReport:
    """Validate a plan and return a report with every issue found."""
    report = ValidationReport()

    if not isinstance(plan.schema_version, str) or not _SEMVER_RE.match(
        plan.schema_version
    ):
        report.error("schema_version", f"must be a semver string (got {plan.schema_version!r})")
    _check_range(report, "start_year", plan.start_year, 1900, 2200, whole=True)

    _validate_household(plan, report)
    _validate_accounts(plan, report)
    _validate_income(plan, report)
    _validate_spending(plan, report)
    _validate_taxes(plan, report)
    _validate_market(plan, report)
    _validate_strategy(plan, report)
    return report


def ensure_valid(plan: PlanInput) -> ValidationReport:
    """Validate and raise :class:`PlanValidationError` if any error is present."""
    report = validate_plan(plan)
    if report.has_errors():
        fields = [issue.field for issue in report.errors]
        raise PlanValidationError(
            f"Plan failed validation with {len(fields)} error(s)",
            report=report,
            problem_fields=fields,
        )
    return report


def _validate_person(person: Person, path: str, report: ValidationReport) -> None:
    age_ok = _check_range(
        report, f"{path}.current_age", person.current_age, 0, MAX_AGE, whole=True
    )
    le_ok = _check_range(
        report, f"{path}.life_expectancy", person.life_expectancy, 1, MAX_AGE, whole=True
    )
    if age_ok and le_ok and person.life_expectancy < person.current_age:
        report.error(
            f"{path}.life_expectancy",
            f"must be >= current_age (got {person.life_expectancy} < {person.current_age})",
        )
    _check_range(
        report,
        f"{path}.retirement_age",
        person.retirement_age,
        0,
        MAX_AGE,
        optional=True,
        whole=True,
    )
    _check_range(
        report, f"{path}.birth_year", person.birth_year, 1900, 2100, optional=True, whole=True
    )
    ss = person.social_security
    if ss is not None:
        _check_range(
            report,
            f"{path}.social_security.claim_age",
            ss.claim_age,
            MIN_CLAIM_AGE,
            MAX_CLAIM_AGE,
            whole=True,
        )
        _check_range(report, f"{path}.social_security.monthly_benefit", ss.monthly_benefit, 0)
        _check_range(report, f"{path}.social_security.cola_pct", ss.cola_pct, -10, 20)


def _validate_household(plan: PlanInput, report: ValidationReport) -> None:
    hh = plan.household
    _validate_person(hh.primary, "household.primary", report)
    if hh.spouse is not None:
        _validate_person(hh.spouse, "household.spouse", report)

    if hh.marital_status not in (K.MARITAL_SINGLE, K.MARITAL_MARRIED):
        report.error("household.marital_status", f"unknown marital status '{hh.marital_status}'")
    elif hh.marital_status == K.MARITAL_SINGLE and hh.spouse is not None:
        report.error("household.spouse", "a single household cannot have a spouse")
    elif hh.marital_status == K.MARITAL_MARRIED and hh.spouse is None:
        report.error("household.spouse", "a married household requires a spouse")

    if hh.filing_status not in K.filing_statuses():
        report.error("household.filing_status", f"unknown filing status '{hh.filing_status}'")
    elif hh.filing_status == K.FILING_MFJ and hh.marital_status != K.MARITAL_MARRIED:
        report.error("household.filing_status", "mfj requires a married household")

    if not isinstance(hh.state_of_residence, str) or len(hh.state_of_residence) != 2:
        report.error("household.state_of_residence", "must be a two-letter state code")

    ages_ok = all(
        isinstance(p.current_age, int) and isinstance(p.life_expectancy, int)
        for p in (hh.primary, hh.spouse)
        if p is not None
    )
    if ages_ok and hh.horizon <= 0:
        report.error(
            "household",
            "simulation horizon must be positive (life expectancy must exceed current age)",
        )


def _validate_account(
    acct: Account, path: str, plan: PlanInput, report: ValidationReport
) -> None:
    if not isinstance(acct.id, str) or not acct.id.strip():
        report.error(f"{path}.id", "is required")
    if acct.type not in K.account_types():
        report.error(f"{path}.type", f"unknown account type '{acct.type}'")
    if acct.owner not in K.owners():
        report.error(f"{path}.owner", f"unknown owner '{acct.owner}'")
    elif acct.owner == K.OWNER_JOINT and acct.type != K.ACCT_TAXABLE:
        report.error(f"{path}.owner", "joint ownership is only allowed for taxable accounts")
    elif acct.owner == K.OWNER_SPOUSE and plan.household.spouse is None:
        report.error(f"{path}.owner", "owner is 'spouse' but the household has no spouse")

    balance_ok = _check_range(report, f"{path}.balance", acct.balance, 0)
    _check_range(report, f"{path}.expected_return_pct", acct.expected_return_pct, -100, 100)
    _check_range(report, f"{path}.fee_pct", acct.fee_pct, 0, 100)
    _check_range(
        report, f"{path}.target_allocation_pct", acct.target_allocation_pct, 0, 100, optional=True
    )
    _check_range(report, f"{path}.volatility_pct", acct.volatility_pct, 0, 100, optional=True)

    if acct.cost_basis is not None:
        if acct.type != K.ACCT_TAXABLE:
            report.warn(f"{path}.cost_basis", "ignored for non-taxable accounts")
        elif _check_range(report, f"{path}.cost_basis", acct.cost_basis, 0) and balance_ok:
            if acct.cost_basis > acct.balance:
                report.error(f"{path}.cost_basis", "cost basis cannot exceed the balance")

    sched = acct.deferred_comp_schedule
    if sched is not None:
        spath = f"{path}.deferred_comp_schedule"
        if acct.type != K.ACCT_DEFERRED_COMP:
            report.error(spath, "only deferredComp accounts can have a payout schedule")
        _check_range(report, f"{spath}.amount", sched.amount, 0)
        if sched.frequency not in (K.FREQ_ANNUAL, K.FREQ_MONTHLY):
            report.error(f"{spath}.frequency", f"unknown frequency '{sched.frequency}'")
        start_ok = _check_range(report, f"{spath}.start_year", sched.start_year, whole=True)
        end_ok = _check_range(report, f"{spath}.end_year", sched.end_year, whole=True)
        if start_ok and end_ok and sched.start_year > sched.end_year:
            report.error(spath, "start_year must not be after end_year")


def _validate_accounts(plan: PlanInput, report: ValidationReport) -> None:
    if not plan.accounts:
        report.error("accounts", "at least one account is required")
        return
    seen: set[str] = set()
    for idx, acct in enumerate(plan.accounts):
        path = f"accounts[{idx}]"
        if acct.id in seen:
            report.error(f"{path}.id", f"duplicate account id '{acct.id}'")
        seen.add(acct.id)
        _validate_account(acct, path, plan, report)


def _validate_income(plan: PlanInput, report: ValidationReport) -> None:
    for idx, stream in enumerate(plan.other_income):
        path = f"other_income[{idx}]"
        _check_range(report, f"{path}.annual_amount", stream.annual_amount, 0)
        _check_range(report, f"{path}.cola_pct", stream.cola_pct, -10, 20)
        start_ok = _check_range(report, f"{path}.start_year", stream.start_year, whole=True)
        end_ok = _check_range(
            report, f"{path}.end_year", stream.end_year, optional=True, whole=True
        )
        if start_ok and end_ok and stream.end_year is not None:
            if stream.start_year > stream.end_year:
                report.error(path, "start_year must not be after end_year")
        if stream.owner not in K.owners():
            report.error(f"{path}.owner", f"unknown owner '{stream.owner}'")
        elif stream.owner == K.OWNER_SPOUSE and plan.household.spouse is None:
            report.error(f"{path}.owner", "owner is 'spouse' but the household has no spouse")

    for idx, adj in enumerate(plan.adjustments):
        path = f"adjustments[{idx}]"
        _check_range(report, f"{path}.amount", adj.amount)
        year_ok = _check_range(report, f"{path}.year", adj.year, whole=True)
        end_ok = _check_range(report, f"{path}.end_year", adj.end_year, optional=True, whole=True)
        if year_ok and end_ok and adj.end_year is not None and adj.year > adj.end_year:
            report.error(path, "year must not be after end_year")


def _validate_spending(plan: PlanInput, report: ValidationReport) -> None:
    sp = plan.spending
    _check_range(report, "spending.target_annual_spend", sp.target_annual_spend, 0)
    _check_range(report, "spending.inflation_pct", sp.inflation_pct, -10, 50)
    _check_range(
        report,
        "spending.survivor_spending_adjustment_pct",
        sp.survivor_spending_adjustment_pct,
        10,
        100,
    )
    floor_ok = _check_range(
        report, "spending.floor_annual_spend", sp.floor_annual_spend, 0, optional=True
    )
    ceiling_ok = _check_range(
        report, "spending.ceiling_annual_spend", sp.ceiling_annual_spend, 0, optional=True
    )

    if not plan.strategy.guardrails_enabled:
        return
    if sp.floor_annual_spend is None and sp.ceiling_annual_spend is None:
        report.warn("spending", "guardrails are enabled but no floor or ceiling is set")
        return
    if not (floor_ok and ceiling_ok and _is_number(sp.target_annual_spend)):
        return
    if sp.floor_annual_spend is not None and sp.floor_annual_spend >= sp.target_annual_spend:
        report.error("spending.floor_annual_spend", "floor must be below the target spend")
    if sp.ceiling_annual_spend is not None and sp.ceiling_annual_spend <= sp.target_annual_spend:
        report.error("spending.ceiling_annual_spend", "ceiling must be above the target spend")


def _validate_taxes(plan: PlanInput, report: ValidationReport) -> None:
    tx = plan.taxes
    if tx.federal_model == K.TAX_BRACKET:
        report.error("taxes.federal_model", "bracket tax model is not supported; use 'effective'")
    elif tx.federal_model != K.TAX_EFFECTIVE:
        report.error("taxes.federal_model", f"unknown federal model '{tx.federal_model}'")
    if tx.state_model == K.TAX_BRACKET:
        report.error("taxes.state_model", "bracket tax model is not supported; use 'effective'")
    elif tx.state_model not in (K.TAX_EFFECTIVE, K.TAX_NONE):
        report.error("taxes.state_model", f"unknown state model '{tx.state_model}'")

    _check_range(report, "taxes.federal_effective_rate_pct", tx.federal_effective_rate_pct, 0, 100)
    _check_range(report, "taxes.cap_gains_rate_pct", tx.cap_gains_rate_pct, 0, 100)
    _check_range(
        report, "taxes.state_effective_rate_pct", tx.state_effective_rate_pct, 0, 100, optional=True
    )
    _check_range(
        report, "taxes.state_cap_gains_rate_pct", tx.state_cap_gains_rate_pct, 0, 100, optional=True
    )
    _check_range(
        report,
        "taxes.standard_deduction_override",
        tx.standard_deduction_override,
        0,
        optional=True,
    )

    if tx.state_model == K.TAX_EFFECTIVE and tx.state_effective_rate_pct is None:
        if lookup_state(plan.household.state_of_residence) is None:
            report.error(
                "taxes.state_effective_rate_pct",
                "required when the state of residence is not in the state tax table",
            )


def _validate_market(plan: PlanInput, report: ValidationReport) -> None:
    mk = plan.market
    if mk.simulation_mode not in K.simulation_modes():
        report.error("market.simulation_mode", f"unknown simulation mode '{mk.simulation_mode}'")
        return
    _check_range(report, "market.baseline_return_pct", mk.baseline_return_pct, -100, 100, optional=True)
    for attr in ("historical_scenario_ids", "stress_scenario_ids"):
        for idx, scenario_id in enumerate(getattr(mk, attr)):
            if scenario_id not in SCENARIOS:
                report.error(f"market.{attr}[{idx}]", f"unknown scenario '{scenario_id}'")
    if mk.simulation_mode in (K.MODE_HISTORICAL, K.MODE_STRESS) and not mk.scenario_ids:
        report.error(
            "market",
            f"simulation mode '{mk.simulation_mode}' requires at least one scenario id",
        )
    if mk.simulation_mode == K.MODE_MONTE_CARLO:
        _check_range(report, "market.monte_carlo_runs", mk.monte_carlo_runs, 1, 100_000)


def _validate_strategy(plan: PlanInput, report: ValidationReport) -> None:
    st = plan.strategy
    if st.withdrawal_order not in K.withdrawal_orders():
        report.error("strategy.withdrawal_order", f"unknown withdrawal order '{st.withdrawal_order}'")
    if st.rebalance_frequency not in K.rebalance_frequencies():
        report.error(
            "strategy.rebalance_frequency", f"unknown rebalance frequency '{st.rebalance_frequency}'"
        )
        return

    targeted = [
        a for a in plan.accounts if a.target_allocation_pct is not None and _is_number(a.target_allocation_pct)
    ]
    if st.rebalance_frequency == K.REBALANCE_NONE:
        if targeted:
            report.warn("accounts", "target allocations are ignored when rebalancing is off")
        return
    if len(targeted) < 2:
        report.error(
            "accounts",
            "rebalancing requires at least two accounts with target_allocation_pct",
        )
        return
    total = sum(a.target_allocation_pct for a in targeted)
    if abs(total - 100.0) > REBALANCE_SUM_TOLERANCE:
        report.error(
            "accounts",
            f"target allocations must sum to 100 (got {total:.2f})",
        )

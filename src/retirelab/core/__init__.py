"""
Core module for RetireLab.

This module contains the plan model, the annual simulation engine and the
building blocks it composes.
"""

from .context import AccountState, SimulationState, YearContext
from .convergence import ConvergenceResult, solve_fixed_point
from .engine import simulate
from .errors import (
    ConfigError,
    ConvergenceWarning,
    PlanLoadError,
    PlanValidationError,
    RetireLabError,
    SimulationInvariantError,
)
from .interfaces import IWithdrawalStrategy, TaxContext, WithdrawalPlan, WithdrawalRecord
from .kinds import K
from .loader import load_plan, plan_from_dict
from .market import InflationSchedule, ReturnPath, resolve_path
from .phase import PhaseInfo, determine_phase
from .registry import WithdrawalRegistry, get_strategy
from .results import (
    ConvergenceDiagnostic,
    NumpyEncoder,
    PlanResult,
    PlanSummary,
    YearResult,
)
from .specs import (
    Account,
    Adjustment,
    DeferredCompSchedule,
    Household,
    IncomeStream,
    MarketConfig,
    Person,
    PlanInput,
    SocialSecurityClaim,
    SpendingPlan,
    StrategyConfig,
    TaxConfig,
)
from .validation import ValidationReport, ensure_valid, validate_plan

__all__ = [
    # Errors
    "RetireLabError",
    "ConfigError",
    "PlanValidationError",
    "PlanLoadError",
    "SimulationInvariantError",
    "ConvergenceWarning",
    # Kinds
    "K",
    # Specs
    "SocialSecurityClaim",
    "Person",
    "Household",
    "DeferredCompSchedule",
    "Account",
    "IncomeStream",
    "Adjustment",
    "SpendingPlan",
    "TaxConfig",
    "MarketConfig",
    "StrategyConfig",
    "PlanInput",
    # Loading and validation
    "load_plan",
    "plan_from_dict",
    "ValidationReport",
    "validate_plan",
    "ensure_valid",
    # State
    "AccountState",
    "SimulationState",
    "YearContext",
    "PhaseInfo",
    "determine_phase",
    # Market
    "ReturnPath",
    "InflationSchedule",
    "resolve_path",
    # Strategies
    "IWithdrawalStrategy",
    "TaxContext",
    "WithdrawalPlan",
    "WithdrawalRecord",
    "WithdrawalRegistry",
    "get_strategy",
    # Engine and results
    "ConvergenceResult",
    "solve_fixed_point",
    "simulate",
    "YearResult",
    "PlanSummary",
    "PlanResult",
    "ConvergenceDiagnostic",
    "NumpyEncoder",
]

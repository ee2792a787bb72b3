"""
RetireLab - Household Retirement Cash-Flow Simulator

RetireLab projects a household's retirement finances year by year: market
returns, Social Security, pensions and deferred compensation, required
minimum distributions, tax-aware withdrawals across taxable, tax-deferred and
Roth accounts, and the transition to a surviving spouse.

Key Features:
- **Deterministic Core**: ``simulate(plan)`` is a pure function of its input
- **Strategy Pattern**: Withdrawal orders are registered strategies selected by name
- **Tax-Aware**: Effective-rate federal and state taxes with Social Security taxability
- **Survivor Modeling**: Filing status, spending and ownership change at the first death
- **Market Scenarios**: Historical replays, stress paths and Monte-Carlo batches
- **Rich Visualizations**: Interactive charts with Plotly integration

Architecture Overview:
- **PlanInput**: Immutable plan (household, accounts, income, spending, taxes, market, strategy)
- **Engine**: Twelve-step annual pipeline orchestrated by ``simulate``
- **Calculators**: Pure tax, RMD and cost-basis functions
- **Registry System**: Maps withdrawal-order names to strategy implementations
- **Batch Layer**: Scenario sweeps and Monte-Carlo aggregation

Quick Start:
    ```python
    from retirelab import load_plan, simulate

    plan = load_plan("plan.yaml")
    result = simulate(plan)
    print(result.to_frame()[["actual_spend", "total_taxes", "end_balance"]])
    ```

Available Withdrawal Orders:
    - 'taxableFirst': taxable, then tax-deferred, then Roth
    - 'taxDeferredFirst': tax-deferred, then taxable, then Roth
    - 'proRata': proportional across non-Roth accounts, then Roth
    - 'taxOptimized': six-step bracket-aware solver
"""

# Version information
__version__ = "0.1.0"
__author__ = "RetireLab Team"
__description__ = "Household Retirement Cash-Flow Simulator"

# Registers the default withdrawal strategies
import retirelab.strategies

from .batch import (
    generate_return_paths,
    run_monte_carlo,
    run_plan,
    run_scenarios,
    summarize,
)
from .core import (
    Account,
    Adjustment,
    ConfigError,
    ConvergenceWarning,
    DeferredCompSchedule,
    Household,
    IncomeStream,
    IWithdrawalStrategy,
    K,
    MarketConfig,
    Person,
    PlanInput,
    PlanLoadError,
    PlanResult,
    PlanSummary,
    PlanValidationError,
    RetireLabError,
    ReturnPath,
    SimulationInvariantError,
    SocialSecurityClaim,
    SpendingPlan,
    StrategyConfig,
    TaxConfig,
    ValidationReport,
    WithdrawalRegistry,
    YearResult,
    load_plan,
    plan_from_dict,
    simulate,
    validate_plan,
)
from .kpi import (
    cumulative_taxes,
    depletion_year,
    effective_tax_rate,
    income_mix,
    max_drawdown,
    shortfall_years,
    total_balance,
    withdrawal_rate,
)

# Chart functions (optional - requires plotly)
from .charts import PLOTLY_AVAILABLE as CHARTS_AVAILABLE

__all__ = [
    # Plan model
    "SocialSecurityClaim",
    "Person",
    "Household",
    "Account",
    "DeferredCompSchedule",
    "IncomeStream",
    "Adjustment",
    "SpendingPlan",
    "TaxConfig",
    "MarketConfig",
    "StrategyConfig",
    "PlanInput",
    "K",
    # Loading and validation
    "load_plan",
    "plan_from_dict",
    "validate_plan",
    "ValidationReport",
    # Engine and results
    "simulate",
    "ReturnPath",
    "YearResult",
    "PlanSummary",
    "PlanResult",
    # Batch
    "summarize",
    "run_plan",
    "run_scenarios",
    "generate_return_paths",
    "run_monte_carlo",
    # Strategies
    "IWithdrawalStrategy",
    "WithdrawalRegistry",
    # Errors
    "RetireLabError",
    "ConfigError",
    "PlanValidationError",
    "PlanLoadError",
    "SimulationInvariantError",
    "ConvergenceWarning",
    # KPI utilities
    "total_balance",
    "depletion_year",
    "shortfall_years",
    "effective_tax_rate",
    "withdrawal_rate",
    "max_drawdown",
    "cumulative_taxes",
    "income_mix",
    # Version info
    "__version__",
    "__author__",
    "__description__",
    "CHARTS_AVAILABLE",
]

if CHARTS_AVAILABLE:
    from .charts import (
        balance_trajectory,
        income_composition,
        save_chart,
        scenario_terminal_values,
        taxes_over_time,
    )

    __all__.extend(
        [
            "balance_trajectory",
            "income_composition",
            "taxes_over_time",
            "scenario_terminal_values",
            "save_chart",
        ]
    )

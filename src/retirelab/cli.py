"""
Command-line interface for RetireLab.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace

import yaml

from retirelab import __version__
from retirelab.batch import run_plan
from retirelab.core.errors import PlanLoadError, RetireLabError
from retirelab.core.kinds import K
from retirelab.core.loader import load_plan
from retirelab.core.results import NumpyEncoder, PlanResult
from retirelab.core.validation import validate_plan
from retirelab.data.scenarios import list_scenarios

EXAMPLE_PLAN = {
    "schemaVersion": "1.0.0",
    "startYear": 2026,
    "household": {
        "maritalStatus": "married",
        "filingStatus": "mfj",
        "stateOfResidence": "CA",
        "primary": {
            "currentAge": 64,
            "retirementAge": 64,
            "lifeExpectancy": 92,
            "socialSecurity": {"claimAge": 67, "monthlyBenefit": 3200, "colaPct": 2.5},
        },
        "spouse": {
            "currentAge": 62,
            "retirementAge": 62,
            "lifeExpectancy": 88,
            "socialSecurity": {"claimAge": 67, "monthlyBenefit": 2100, "colaPct": 2.5},
        },
    },
    "accounts": [
        {
            "id": "brokerage",
            "name": "Joint Brokerage",
            "type": "taxable",
            "owner": "joint",
            "balance": 600000,
            "costBasis": 350000,
            "expectedReturnPct": 6.0,
            "feePct": 0.1,
        },
        {
            "id": "ira",
            "name": "Traditional IRA",
            "type": "taxDeferred",
            "owner": "primary",
            "balance": 900000,
            "expectedReturnPct": 5.5,
            "feePct": 0.1,
        },
        {
            "id": "roth",
            "name": "Roth IRA",
            "type": "roth",
            "owner": "spouse",
            "balance": 250000,
            "expectedReturnPct": 6.5,
            "feePct": 0.05,
        },
    ],
    "otherIncome": [
        {
            "id": "pension",
            "name": "School District Pension",
            "annualAmount": 18000,
            "startYear": 2026,
            "owner": "spouse",
            "colaPct": 1.5,
            "survivorContinues": True,
        }
    ],
    "adjustments": [
        {"id": "roof", "name": "New Roof", "year": 2029, "amount": -25000}
    ],
    "spending": {
        "targetAnnualSpend": 110000,
        "inflationPct": 2.5,
        "floorAnnualSpend": 90000,
        "ceilingAnnualSpend": 130000,
        "survivorSpendingAdjustmentPct": 75,
    },
    "taxes": {
        "federalModel": "effective",
        "stateModel": "effective",
        "federalEffectiveRatePct": 18,
        "capGainsRatePct": 15,
    },
    "market": {"simulationMode": "deterministic"},
    "strategy": {
        "withdrawalOrder": "taxOptimized",
        "rebalanceFrequency": "none",
        "guardrailsEnabled": True,
        "rmdSmoothing": True,
    },
}


def _save_json(path: str, data: dict) -> None:
    """Save data as JSON to file path."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, cls=NumpyEncoder)


def _print_run_summary(result: PlanResult) -> None:
    """Print run summary to stdout."""
    summary = result.summary
    parts = [
        f"Simulated {result.horizon} years",
        f"terminal value {result.terminal_value:,.0f}",
        f"total shortfall {result.total_shortfall:,.0f}",
    ]
    if summary.runs > 1:
        parts.append(
            f"success {summary.success_probability:.1%} over {summary.runs} runs"
            f" (median terminal {summary.median_terminal_value:,.0f})"
        )
    print("; ".join(parts))
    for diag in result.diagnostics:
        print(
            f"  {diag.year}: tax estimate did not converge "
            f"(residual {diag.residual:,.2f} after {diag.passes} passes)"
        )


def cmd_example(args) -> int:
    """Print a complete example plan."""
    if args.format == "yaml":
        yaml.safe_dump(EXAMPLE_PLAN, sys.stdout, sort_keys=False)
    else:
        json.dump(EXAMPLE_PLAN, sys.stdout, indent=2)
        sys.stdout.write("\n")
    return 0


def cmd_validate(args) -> int:
    """Validate a plan file."""
    try:
        plan = load_plan(args.input)
    except (PlanLoadError, FileNotFoundError) as e:
        if args.format == "json":
            error_report = {
                "has_errors": True,
                "has_warnings": False,
                "is_valid": False,
                "exit_code": 1,
                "error": str(e),
            }
            json.dump(error_report, sys.stdout, indent=2)
            sys.stdout.write("\n")
        else:
            print(f"❌ Could not load plan: {e}")
        return 1

    report = validate_plan(plan)
    if args.format == "json":
        json.dump(report.to_dict(), sys.stdout, indent=2)
        sys.stdout.write("\n")
    else:
        print(str(report))
    return report.get_exit_code()


def cmd_run(args) -> int:
    """Run a plan and export JSON (and optionally CSV) results."""
    try:
        plan = load_plan(args.input)
        market_overrides = {}
        if args.mode:
            market_overrides["simulation_mode"] = args.mode
        if args.runs is not None:
            market_overrides["monte_carlo_runs"] = args.runs
        if args.seed is not None:
            market_overrides["seed"] = args.seed
        if market_overrides:
            plan = replace(plan, market=replace(plan.market, **market_overrides))

        result = run_plan(plan, processes=args.processes)

        _print_run_summary(result)
        _save_json(args.output, result.to_dict())
        print(f"Results saved to {args.output}")
        if args.csv:
            result.to_frame().to_csv(args.csv)
            print(f"Yearly table saved to {args.csv}")
        return 0

    except (RetireLabError, PlanLoadError, FileNotFoundError) as e:
        print(f"Error running plan: {e}", file=sys.stderr)
        return 1


def cmd_scenarios(args) -> int:
    """List built-in market scenarios."""
    scenarios = list_scenarios(args.kind)
    if args.json:
        payload = [
            {
                "id": s.id,
                "name": s.name,
                "kind": s.kind,
                "start_year": s.start_year,
                "years": s.years,
                "returns_pct": list(s.returns_pct),
                "inflation_pct": list(s.inflation_pct) if s.inflation_pct else None,
                "description": s.description,
            }
            for s in scenarios
        ]
        json.dump(payload, sys.stdout, indent=2)
        sys.stdout.write("\n")
        return 0

    for s in scenarios:
        span = f"{s.start_year}-{s.start_year + s.years - 1}" if s.start_year else f"{s.years}y"
        print(f"{s.id} [{s.kind}, {span}]: {s.name}")
        if s.description:
            print(f"  {s.description}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="retirelab", description="RetireLab - Retirement cash-flow simulator"
    )

    # Version argument
    parser.add_argument("--version", action="version", version=f"RetireLab {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Log progress (-vv for debug)"
    )

    subparsers = parser.add_subparsers(
        dest="cmd", required=True, help="Available commands"
    )

    # Example command
    example_parser = subparsers.add_parser("example", help="Print a complete example plan")
    example_parser.add_argument(
        "--format", choices=["json", "yaml"], default="json", help="Output format"
    )
    example_parser.set_defaults(func=cmd_example)

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a plan file")
    validate_parser.add_argument(
        "-i", "--input", required=True, help="Input plan (YAML or JSON)"
    )
    validate_parser.add_argument(
        "--format", choices=["human", "json"], default="human", help="Output format"
    )
    validate_parser.set_defaults(func=cmd_validate)

    # Run command
    run_parser = subparsers.add_parser(
        "run", help="Simulate a plan and export JSON results"
    )
    run_parser.add_argument(
        "-i", "--input", required=True, help="Input plan (YAML or JSON)"
    )
    run_parser.add_argument(
        "-o", "--output", required=True, help="Output results JSON file"
    )
    run_parser.add_argument("--csv", help="Also write the yearly table as CSV")
    run_parser.add_argument(
        "--mode",
        choices=list(K.simulation_modes()),
        help="Override the plan's simulation mode",
    )
    run_parser.add_argument("--runs", type=int, help="Monte-Carlo run count")
    run_parser.add_argument("--seed", type=int, help="Monte-Carlo random seed")
    run_parser.add_argument(
        "--processes",
        type=int,
        default=1,
        help="Worker processes for Monte-Carlo runs (default: 1)",
    )
    run_parser.set_defaults(func=cmd_run)

    # Scenarios command
    scenarios_parser = subparsers.add_parser(
        "scenarios", help="List built-in historical and stress scenarios"
    )
    scenarios_parser.add_argument(
        "--kind", choices=["historical", "stress"], help="Only list one kind"
    )
    scenarios_parser.add_argument(
        "--json", action="store_true", help="Output in JSON format"
    )
    scenarios_parser.set_defaults(func=cmd_scenarios)

    # Parse arguments and execute
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose > 1 else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
        )
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()

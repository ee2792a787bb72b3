"""Utilities for loading retirement plans from YAML/JSON sources."""

from __future__ import annotations

import json
import logging
import re
from copy import deepcopy
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from .errors import PlanLoadError
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

__all__ = [
    "load_plan",
    "plan_from_dict",
    "normalize_keys",
]

logger = logging.getLogger(__name__)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

# Interchange names that differ from the dataclass field names.
_ALIASES = {
    "current_balance": "balance",
    "estimated_monthly_benefit_at_claim": "monthly_benefit",
    "monthly_benefit_at_claim": "monthly_benefit",
}

# Interchange fields with no engine meaning.
_IGNORED = {"pia_monthly_at_fra"}


def normalize_keys(value: Any) -> Any:
    """Recursively convert camelCase mapping keys to snake_case."""
    if isinstance(value, dict):
        out = {}
        for key, item in value.items():
            snake = _CAMEL_RE.sub("_", str(key)).lower()
            out[_ALIASES.get(snake, snake)] = normalize_keys(item)
        return out
    if isinstance(value, list):
        return [normalize_keys(item) for item in value]
    return value


def load_plan(
    source: str | Path | dict[str, Any], *, format: str | None = None
) -> PlanInput:
    """Parse a plan from a YAML/JSON file or an in-memory mapping."""

    mapping, label = _read_source(source, format=format)
    return plan_from_dict(mapping, label=label)


def plan_from_dict(mapping: dict[str, Any], *, label: str = "<mapping>") -> PlanInput:
    """Build a :class:`PlanInput` from a camelCase or snake_case mapping."""
    data = normalize_keys(_ensure_dict(mapping, label))

    household = _build_household(data.get("household"), f"{label}::household")
    accounts = [
        _build_account(entry, f"{label}::accounts[{idx}]")
        for idx, entry in enumerate(_ensure_list(data.get("accounts"), f"{label}::accounts"))
    ]
    other_income = [
        _build(IncomeStream, entry, f"{label}::other_income[{idx}]")
        for idx, entry in enumerate(
            _ensure_list(data.get("other_income"), f"{label}::other_income", allow_none=True)
            or []
        )
    ]
    adjustments = [
        _build(Adjustment, entry, f"{label}::adjustments[{idx}]")
        for idx, entry in enumerate(
            _ensure_list(data.get("adjustments"), f"{label}::adjustments", allow_none=True)
            or []
        )
    ]
    if data.get("spending") is None:
        raise PlanLoadError(f"{label}: 'spending' section is required")
    spending = _build(SpendingPlan, data["spending"], f"{label}::spending")
    taxes = _build(TaxConfig, data.get("taxes") or {}, f"{label}::taxes")
    market = _build(MarketConfig, data.get("market") or {}, f"{label}::market")
    strategy = _build(StrategyConfig, data.get("strategy") or {}, f"{label}::strategy")

    top = {
        key: data[key] for key in ("schema_version", "start_year") if key in data
    }
    return PlanInput(
        household=household,
        accounts=accounts,
        spending=spending,
        other_income=other_income,
        adjustments=adjustments,
        taxes=taxes,
        market=market,
        strategy=strategy,
        **top,
    )


def _read_source(
    source: str | Path | dict[str, Any], *, format: str | None
) -> tuple[dict[str, Any], str]:
    if isinstance(source, dict):
        return deepcopy(source), "<mapping>"

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(path)

    fmt = (format or path.suffix.lstrip(".")).lower()
    text = path.read_text(encoding="utf-8")
    try:
        if fmt in {"yaml", "yml", ""}:
            data = yaml.safe_load(text)
        elif fmt == "json":
            data = json.loads(text)
        else:
            raise PlanLoadError(f"Unsupported plan format '{fmt}' for {path}")
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise PlanLoadError(f"Could not parse {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise PlanLoadError(f"Plan root must be a mapping (source={path})")
    return data, str(path)


def _build_household(raw: Any, ctx: str) -> Household:
    data = _ensure_dict(raw, ctx)
    if "primary" not in data:
        raise PlanLoadError(f"{ctx}: 'primary' is required")
    data["primary"] = _build_person(data["primary"], f"{ctx}.primary")
    if data.get("spouse") is not None:
        data["spouse"] = _build_person(data["spouse"], f"{ctx}.spouse")
    return _build(Household, data, ctx)


def _build_person(raw: Any, ctx: str) -> Person:
    data = _ensure_dict(raw, ctx)
    data.pop("id", None)
    if data.get("social_security") is not None:
        data["social_security"] = _build(
            SocialSecurityClaim, data["social_security"], f"{ctx}.social_security"
        )
    return _build(Person, data, ctx)


def _build_account(raw: Any, ctx: str) -> Account:
    data = _ensure_dict(raw, ctx)
    if data.get("deferred_comp_schedule") is not None:
        data["deferred_comp_schedule"] = _build(
            DeferredCompSchedule,
            data["deferred_comp_schedule"],
            f"{ctx}.deferred_comp_schedule",
        )
    return _build(Account, data, ctx)


def _build(cls, raw: Any, ctx: str):
    """Instantiate ``cls`` from a mapping, dropping and logging unknown keys."""
    data = _ensure_dict(raw, ctx)
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known - _IGNORED)
    if unknown:
        logger.warning("%s: ignoring unknown keys %s", ctx, ", ".join(unknown))
    kwargs = {key: value for key, value in data.items() if key in known}
    try:
        return cls(**kwargs)
    except TypeError as exc:
        raise PlanLoadError(f"{ctx}: {exc}") from exc


def _ensure_dict(value: Any, ctx: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise PlanLoadError(f"{ctx}: expected a mapping")
    return deepcopy(value)


def _ensure_list(value: Any, ctx: str, *, allow_none: bool = False) -> list[Any] | None:
    if value is None:
        if allow_none:
            return None
        raise PlanLoadError(f"{ctx}: expected a list")
    if not isinstance(value, list):
        raise PlanLoadError(f"{ctx}: expected a list")
    return list(value)

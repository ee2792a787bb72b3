"""
Tests for loading plans from YAML/JSON documents.
"""

import json
import logging

import pytest
import yaml

from retirelab.core.errors import PlanLoadError
from retirelab.core.kinds import K
from retirelab.core.loader import load_plan, normalize_keys, plan_from_dict

CAMEL_PLAN = {
    "schemaVersion": "1.0.0",
    "startYear": 2027,
    "household": {
        "maritalStatus": "married",
        "filingStatus": "mfj",
        "stateOfResidence": "NY",
        "primary": {
            "id": "p1",
            "currentAge": 66,
            "lifeExpectancy": 90,
            "socialSecurity": {
                "claimAge": 67,
                "estimatedMonthlyBenefitAtClaim": 3000,
                "piaMonthlyAtFra": 2900,
            },
        },
        "spouse": {"currentAge": 63, "lifeExpectancy": 91},
    },
    "accounts": [
        {
            "id": "brokerage",
            "type": "taxable",
            "owner": "joint",
            "currentBalance": 400000,
            "costBasis": 250000,
            "expectedReturnPct": 6,
        },
        {
            "id": "nqdc",
            "type": "deferredComp",
            "currentBalance": 120000,
            "deferredCompSchedule": {
                "startYear": 2027,
                "endYear": 2030,
                "amount": 2500,
                "frequency": "monthly",
            },
        },
    ],
    "otherIncome": [
        {"id": "pension", "annualAmount": 12000, "startYear": 2027, "survivorContinues": True}
    ],
    "spending": {"targetAnnualSpend": 90000, "inflationPct": 2.5},
    "strategy": {"withdrawalOrder": "proRata", "guardrailsEnabled": False},
}


class TestNormalizeKeys:
    def test_camel_to_snake(self):
        assert normalize_keys({"targetAnnualSpend": 1}) == {"target_annual_spend": 1}

    def test_nested_lists(self):
        assert normalize_keys({"a": [{"costBasis": 1}]}) == {"a": [{"cost_basis": 1}]}

    def test_aliases(self):
        assert normalize_keys({"currentBalance": 5}) == {"balance": 5}


class TestPlanFromDict:
    def test_camel_case_document(self):
        plan = plan_from_dict(CAMEL_PLAN)
        assert plan.start_year == 2027
        assert plan.household.filing_status == K.FILING_MFJ
        assert plan.household.primary.social_security.monthly_benefit == 3000
        assert plan.accounts[0].balance == 400_000
        assert plan.accounts[0].owner == K.OWNER_JOINT
        assert plan.accounts[1].deferred_comp_schedule.annual_amount == 30_000
        assert plan.other_income[0].survivor_continues is True
        assert plan.strategy.withdrawal_order == K.W_PRO_RATA

    def test_defaults_fill_missing_sections(self):
        plan = plan_from_dict(CAMEL_PLAN)
        assert plan.taxes.federal_effective_rate_pct == 22.0
        assert plan.market.simulation_mode == K.MODE_DETERMINISTIC

    def test_unknown_keys_are_logged(self, caplog):
        doc = {**CAMEL_PLAN, "spending": {"targetAnnualSpend": 1, "luxuryBudget": 5}}
        with caplog.at_level(logging.WARNING, logger="retirelab.core.loader"):
            plan_from_dict(doc)
        assert "luxury_budget" in caplog.text

    def test_missing_spending(self):
        doc = {k: v for k, v in CAMEL_PLAN.items() if k != "spending"}
        with pytest.raises(PlanLoadError, match="spending"):
            plan_from_dict(doc)

    def test_missing_required_field(self):
        doc = {**CAMEL_PLAN, "accounts": [{"id": "x", "type": "roth"}]}
        with pytest.raises(PlanLoadError):
            plan_from_dict(doc)


class TestLoadPlan:
    def test_yaml_file(self, tmp_path):
        path = tmp_path / "plan.yaml"
        path.write_text(yaml.safe_dump(CAMEL_PLAN), encoding="utf-8")
        plan = load_plan(path)
        assert plan.household.state_of_residence == "NY"

    def test_json_file(self, tmp_path):
        path = tmp_path / "plan.json"
        path.write_text(json.dumps(CAMEL_PLAN), encoding="utf-8")
        assert load_plan(path).accounts[1].type == K.ACCT_DEFERRED_COMP

    def test_mapping_is_not_mutated(self):
        doc = json.loads(json.dumps(CAMEL_PLAN))
        load_plan(doc)
        assert doc == CAMEL_PLAN

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_plan(tmp_path / "absent.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("household: [unclosed", encoding="utf-8")
        with pytest.raises(PlanLoadError):
            load_plan(path)

    def test_root_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(PlanLoadError, match="mapping"):
            load_plan(path)

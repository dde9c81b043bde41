"""Tests for campaign_sim.models."""

import pytest
from pydantic import ValidationError

from campaign_sim.models import (
    DEFAULT_PARTY_CLASSES,
    ExecutionConfig,
    Plan,
    PlanProperties,
    Session,
    SessionOptions,
    SessionProperties,
)


class TestPlanProperties:
    def test_reads_wire_keys(self) -> None:
        p = PlanProperties.model_validate(
            {"campaignId": "x", "sessionNumber": 2, "title": "The Sunken Vault"}
        )
        assert p.campaign_id == "x"
        assert p.session_number == 2
        assert p.title == "The Sunken Vault"

    def test_defaults(self) -> None:
        p = PlanProperties(campaign_id="x", session_number=0, title="Opening")
        assert p.objectives == []
        assert p.content == ""
        assert p.party_info is None
        assert p.session_guide is None

    def test_negative_session_number_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PlanProperties(campaign_id="x", session_number=-1, title="t")

    def test_empty_campaign_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PlanProperties(campaign_id="", session_number=0, title="t")

    def test_missing_title_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PlanProperties.model_validate({"campaignId": "x", "sessionNumber": 0})

    def test_extra_generated_keys_kept_in_dump(self) -> None:
        p = PlanProperties.model_validate({
            "campaignId": "x", "sessionNumber": 1, "title": "t",
            "villain": "The Ash King",
        })
        dumped = p.model_dump(by_alias=True, exclude_none=True)
        assert dumped["villain"] == "The Ash King"
        assert dumped["campaignId"] == "x"
        assert "partyInfo" not in dumped


class TestSessionProperties:
    def test_summary_required(self) -> None:
        with pytest.raises(ValidationError):
            SessionProperties.model_validate({"campaignId": "x", "sessionNumber": 0})

    def test_dump_uses_wire_keys(self) -> None:
        s = SessionProperties(campaign_id="x", session_number=3, summary="They won.")
        assert s.model_dump(by_alias=True) == {
            "campaignId": "x", "sessionNumber": 3, "summary": "They won.",
        }


class TestRecords:
    def test_plan_parses_properties(self) -> None:
        plan = Plan.model_validate({
            "id": "p1", "name": "[x] Opening",
            "properties": {"campaignId": "x", "sessionNumber": 0, "title": "Opening"},
        })
        assert isinstance(plan.properties, PlanProperties)
        assert plan.session_number == 0

    def test_session_with_malformed_properties_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Session.model_validate({"id": "s1", "properties": {"campaignId": "x"}})


class TestSessionOptions:
    def test_defaults(self) -> None:
        o = SessionOptions()
        assert o.level == 1
        assert o.size == 4
        assert o.classes == DEFAULT_PARTY_CLASSES
        assert o.objectives == []

    def test_default_classes_not_shared(self) -> None:
        a = SessionOptions()
        a.classes.append("Bard")
        assert SessionOptions().classes == DEFAULT_PARTY_CLASSES

    def test_zero_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SessionOptions(level=0)

    def test_execution_config(self) -> None:
        o = SessionOptions(model="gpt-x", environment="env-1")
        assert o.execution_config() == ExecutionConfig(environment="env-1", model="gpt-x")

    def test_execution_config_omits_unset_on_wire(self) -> None:
        assert SessionOptions().execution_config().model_dump(exclude_none=True) == {}

"""Widget identifiers and typed action construction."""

import pytest

from recruitment_kernel.domain.actions import (
    ActionKey,
    BackgroundCheckFinalize,
    BackgroundCheckUpdateSelection,
    ObservationStart,
    ObservationSubmit,
    RecommendSubmit,
    Stage,
    Verb,
    action_from_key,
    action_name,
    action_origin,
)
from recruitment_kernel.domain.background_check import FinalizeDecision
from recruitment_kernel.exceptions import MalformedActionError


def _build(raw: str, **kwargs):
    return action_from_key(
        ActionKey.decode(raw), correlation_id="corr-1", actor_id="42", **kwargs
    )


class TestActionKeyDecode:
    @pytest.mark.parametrize(
        "raw",
        [
            "bgcheck:start:123",
            "bgcheck:select:123",
            "bgcheck:finalize:123:pass",
            "bgcheck:finalize:123:fail",
            "bgcheck:cancel:123",
            "observation:start:123:1",
            "observation:view:123:3",
            "observation:submit:123:2",
            "recommend:continue:tok",
            "recommend:cancel:tok",
            "recommend:submit:tok",
        ],
    )
    def test_valid_keys_survive_encode(self, raw):
        assert ActionKey.decode(raw).encode() == raw

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "bgcheck",
            "bgcheck:start",
            "bgcheck:start:",
            "payroll:start:123",
            "bgcheck:explode:123",
            "bgcheck:finalize:123",
            "bgcheck:finalize:123:maybe",
            "bgcheck:start:123:extra",
            "observation:start:123",
            "observation:start:123:one",
            "observation:submit:123:1:2",
            "recommend:start:tok",
            "observation:finalize:123:1",
        ],
    )
    def test_malformed_keys_rejected(self, raw):
        with pytest.raises(MalformedActionError) as exc_info:
            ActionKey.decode(raw)
        assert exc_info.value.raw == raw

    def test_slot_parsed_for_observation(self):
        key = ActionKey.decode("observation:view:123:2")
        assert key.stage is Stage.OBSERVATION
        assert key.verb is Verb.VIEW
        assert key.slot == 2

    def test_no_slot_outside_observation(self):
        assert ActionKey.decode("bgcheck:start:123").slot is None


class TestActionFromKey:
    def test_finalize_carries_decision(self):
        action = _build("bgcheck:finalize:555:fail")

        assert isinstance(action, BackgroundCheckFinalize)
        assert action.decision is FinalizeDecision.FAIL
        assert action.origin_id == "555"
        assert action_name(action) == "bgcheck.finalize"
        assert action_origin(action) == "555"

    def test_selection_carries_values(self):
        action = _build("bgcheck:select:555", values=("age", "seen"))

        assert isinstance(action, BackgroundCheckUpdateSelection)
        assert action.values == ("age", "seen")

    def test_observation_start(self):
        action = _build("observation:start:555:3")

        assert isinstance(action, ObservationStart)
        assert action.slot == 3
        assert action_name(action) == "observation.start"

    def test_observation_submit_reads_form_fields(self):
        action = _build(
            "observation:submit:555:1",
            fields={"notes": "Great", "date": "01/02/2024", "issues": ""},
        )

        assert isinstance(action, ObservationSubmit)
        assert action.content.notes == "Great"
        assert action.content.date == "01/02/2024"
        assert action.content.subject_username is None

    def test_recommend_submit_has_no_origin(self):
        action = _build(
            "recommend:submit:tok",
            fields={"candidate_username": "Someone", "reason": "Kind"},
        )

        assert isinstance(action, RecommendSubmit)
        assert action.token == "tok"
        assert action.actor_id == "42"
        assert action_origin(action) is None

"""Checklist normalization, completeness and the finalize policy."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from recruitment_kernel.domain.background_check import (
    BackgroundCheckSnapshot,
    BackgroundCheckStage,
    BackgroundCheckStatus,
    FinalizeDecision,
    FinalizePolicy,
    check_decision_allowed,
    pass_allowed,
    stage_of,
)
from recruitment_kernel.domain.checklist import Checklist, ChecklistCriterion
from recruitment_kernel.exceptions import ChecklistIncompleteError, UnknownCriterionError

CHECKLIST = Checklist()
KEYS = CHECKLIST.keys


class TestChecklist:
    def test_reference_checklist_has_five_criteria(self):
        assert KEYS == ("age", "safechat", "seen", "comms", "history")
        assert CHECKLIST.size == 5

    def test_normalize_orders_and_deduplicates(self):
        assert CHECKLIST.normalize(["history", "age", "age"]) == ("age", "history")

    def test_normalize_empty_selection(self):
        assert CHECKLIST.normalize([]) == ()

    def test_unknown_key_rejected(self):
        with pytest.raises(UnknownCriterionError) as exc_info:
            CHECKLIST.normalize(["age", "vibes"])
        assert exc_info.value.keys == ["vibes"]

    def test_lines_mark_each_criterion(self):
        lines = CHECKLIST.lines(["age", "seen"])

        assert lines[0] == "✅ 60+ day account age"
        assert lines[1] == "❌ No Safechat"
        assert lines[2] == "✅ Seen 2+ days by recommender"
        assert len(lines) == 5

    def test_is_complete(self):
        assert CHECKLIST.is_complete(KEYS)
        assert not CHECKLIST.is_complete(KEYS[:4])

    def test_duplicate_criteria_rejected(self):
        with pytest.raises(ValueError):
            Checklist((ChecklistCriterion("a", "A"), ChecklistCriterion("a", "B")))

    def test_empty_checklist_rejected(self):
        with pytest.raises(ValueError):
            Checklist(())

    @given(st.lists(st.sampled_from(KEYS), max_size=12))
    def test_normalize_is_idempotent_and_ordered(self, values):
        normalized = CHECKLIST.normalize(values)

        assert CHECKLIST.normalize(normalized) == normalized
        assert set(normalized) == set(values)
        assert list(normalized) == sorted(normalized, key=KEYS.index)


class TestFinalizePolicy:
    def test_pass_requires_complete_checklist(self):
        assert pass_allowed(KEYS, CHECKLIST, FinalizePolicy.REQUIRE_COMPLETE_CHECKLIST)
        assert not pass_allowed(
            KEYS[:3], CHECKLIST, FinalizePolicy.REQUIRE_COMPLETE_CHECKLIST
        )

    def test_always_allow_pass(self):
        assert pass_allowed((), CHECKLIST, FinalizePolicy.ALWAYS_ALLOW_PASS)

    def test_partial_pass_raises_with_counts(self):
        snapshot = BackgroundCheckSnapshot(origin_id="o1", selected=KEYS[:3])

        with pytest.raises(ChecklistIncompleteError) as exc_info:
            check_decision_allowed(
                snapshot,
                FinalizeDecision.PASS,
                CHECKLIST,
                FinalizePolicy.REQUIRE_COMPLETE_CHECKLIST,
            )
        assert (exc_info.value.selected, exc_info.value.required) == (3, 5)

    def test_fail_is_always_allowed(self):
        snapshot = BackgroundCheckSnapshot(origin_id="o1")

        check_decision_allowed(
            snapshot,
            FinalizeDecision.FAIL,
            CHECKLIST,
            FinalizePolicy.REQUIRE_COMPLETE_CHECKLIST,
        )


class TestStages:
    def test_missing_row_is_not_started(self):
        assert stage_of(None) is BackgroundCheckStage.NOT_STARTED

    def test_unset_row_is_selecting(self):
        snapshot = BackgroundCheckSnapshot(origin_id="o1", selected=("age",))
        assert stage_of(snapshot) is BackgroundCheckStage.SELECTING
        assert not snapshot.is_terminal

    @pytest.mark.parametrize("status", [BackgroundCheckStatus.PASS, BackgroundCheckStatus.FAIL])
    def test_terminal_statuses(self, status):
        snapshot = BackgroundCheckSnapshot(origin_id="o1", status=status)
        assert stage_of(snapshot) is BackgroundCheckStage.FINALIZED
        assert snapshot.is_terminal
        assert snapshot.passed is (status is BackgroundCheckStatus.PASS)

    def test_decision_maps_to_status(self):
        assert FinalizeDecision.PASS.status is BackgroundCheckStatus.PASS
        assert FinalizeDecision.FAIL.status.header == "FAIL"

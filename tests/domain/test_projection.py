"""View projection: record surfaces, review panel, observation views."""

from datetime import datetime, timezone

from recruitment_kernel.domain.background_check import (
    BackgroundCheckSnapshot,
    BackgroundCheckStatus,
    FinalizePolicy,
)
from recruitment_kernel.domain.checklist import Checklist
from recruitment_kernel.domain.observation import ObservationRecord
from recruitment_kernel.domain.projection import (
    OBSERVATION_COLOR,
    RECOMMENDATION_COLOR,
    background_check_panel,
    observation_embed,
    observation_form,
    project,
    recommendation_form,
    requirements_panel,
    role_mention,
)
from recruitment_kernel.domain.recommendation import Recommendation
from recruitment_kernel.domain.records import CandidateRecord, SurfaceKind
from recruitment_kernel.domain.views import SelectMenu

NOW = datetime(2024, 3, 5, 9, 30, tzinfo=timezone.utc)
CHECKLIST = Checklist()

RECOMMENDATION = Recommendation(
    origin_id="777",
    channel_id="100",
    recommender_id="1001",
    candidate_username="CandidateLR",
    reason="Always on time",
    proof_url="https://cdn.example.test/proof.png",
    created_at=NOW,
    source_guild_name="Flawn Salon",
)


def _observation(slot: int) -> ObservationRecord:
    return ObservationRecord(
        origin_id="777",
        slot=slot,
        date="03/05/2024",
        notes="Friendly",
        issues="",
        author_id="3001",
        created_at=NOW,
    )


def _record(status=None, selected=(), slots=()) -> CandidateRecord:
    bg = None
    if status is not None:
        bg = BackgroundCheckSnapshot(origin_id="777", status=status, selected=selected)
    return CandidateRecord(
        recommendation=RECOMMENDATION,
        slot_count=3,
        background_check=bg,
        observations=tuple(_observation(s) for s in slots),
    )


class TestRecordSurface:
    def test_fresh_record_offers_background_check(self):
        view = project(_record(), CHECKLIST)

        embed = view.embeds[0]
        assert embed.title == "Recommendation"
        assert embed.color == RECOMMENDATION_COLOR
        assert embed.field("Recommender").value == "<@1001>"
        assert embed.field("LR Username").value == "CandidateLR"
        assert embed.field("Reason").value == "Always on time"
        assert embed.footer == "Submitted from: Flawn Salon"
        assert embed.image_url == RECOMMENDATION.proof_url

        buttons = view.buttons()
        assert [b.label for b in buttons] == ["Background check"]
        assert buttons[0].action_key == "bgcheck:start:777"
        assert not buttons[0].disabled

    def test_draft_selection_is_not_shown(self):
        view = project(_record(BackgroundCheckStatus.UNSET, ("age",)), CHECKLIST)

        assert not any("Background Check" in f.name for f in view.embeds[0].fields)

    def test_pass_shows_checklist_and_observation_slots(self):
        view = project(
            _record(BackgroundCheckStatus.PASS, CHECKLIST.keys, slots=(2,)), CHECKLIST
        )

        field = view.embeds[0].field("✅ Background Check: PASS")
        assert field is not None
        assert field.value.count("✅") == 5
        assert [b.label for b in view.buttons()] == [
            "Observation 1",
            "View Observation 2",
            "Observation 3",
        ]
        assert view.buttons()[1].action_key == "observation:view:777:2"
        assert view.buttons()[2].action_key == "observation:start:777:3"

    def test_fail_shows_header_and_disables_button(self):
        view = project(_record(BackgroundCheckStatus.FAIL, ("age", "seen")), CHECKLIST)

        field = view.embeds[0].field("❌ Background Check: FAIL")
        assert field.value.count("✅") == 2
        assert field.value.count("❌") == 3
        buttons = view.buttons()
        assert len(buttons) == 1
        assert buttons[0].disabled

    def test_mirror_differs_only_in_title(self):
        record = _record(BackgroundCheckStatus.PASS, CHECKLIST.keys, slots=(1, 2, 3))
        origin = project(record, CHECKLIST, SurfaceKind.ORIGIN)
        mirror = project(record, CHECKLIST, SurfaceKind.MIRROR)

        assert mirror.embeds[0].title == "Promotion Poll"
        assert mirror.embeds[0].fields == origin.embeds[0].fields
        assert mirror.rows == origin.rows

    def test_many_slots_split_into_rows_of_five(self):
        record = CandidateRecord(
            recommendation=RECOMMENDATION,
            slot_count=7,
            background_check=BackgroundCheckSnapshot(
                origin_id="777", status=BackgroundCheckStatus.PASS
            ),
        )
        view = project(record, CHECKLIST)

        assert [len(row.items) for row in view.rows] == [5, 2]

    def test_projection_is_deterministic(self):
        record = _record(BackgroundCheckStatus.PASS, CHECKLIST.keys, slots=(1,))
        assert project(record, CHECKLIST) == project(record, CHECKLIST)


class TestBackgroundCheckPanel:
    def test_partial_selection_disables_pass(self):
        snapshot = BackgroundCheckSnapshot(origin_id="777", selected=("age",))
        view = background_check_panel(
            snapshot, CHECKLIST, FinalizePolicy.REQUIRE_COMPLETE_CHECKLIST
        )

        menu = view.rows[0].items[0]
        assert isinstance(menu, SelectMenu)
        assert menu.action_key == "bgcheck:select:777"
        assert menu.max_values == 5
        assert [o.default for o in menu.options] == [True, False, False, False, False]

        labels = {b.label: b for b in view.buttons()}
        assert labels["Pass"].disabled
        assert not labels["Decline"].disabled
        assert labels["Pass"].action_key == "bgcheck:finalize:777:pass"
        assert labels["Decline"].action_key == "bgcheck:finalize:777:fail"
        assert labels["Cancel"].action_key == "bgcheck:cancel:777"

    def test_complete_selection_enables_pass(self):
        snapshot = BackgroundCheckSnapshot(origin_id="777", selected=CHECKLIST.keys)
        view = background_check_panel(
            snapshot, CHECKLIST, FinalizePolicy.REQUIRE_COMPLETE_CHECKLIST
        )

        assert not {b.label: b for b in view.buttons()}["Pass"].disabled

    def test_always_allow_pass_policy(self):
        snapshot = BackgroundCheckSnapshot(origin_id="777")
        view = background_check_panel(snapshot, CHECKLIST, FinalizePolicy.ALWAYS_ALLOW_PASS)

        assert not {b.label: b for b in view.buttons()}["Pass"].disabled


class TestObservationViews:
    def test_observation_embed(self):
        embed = observation_embed(_observation(2), RECOMMENDATION)

        assert embed.title == "Observation 2"
        assert embed.color == OBSERVATION_COLOR
        assert embed.field("Observer").value == "<@3001>"
        assert embed.field("Observation Issues").value == "None"
        assert embed.field("Recommended Individual").value == "CandidateLR"
        assert embed.field("Observed Username") is None

    def test_observation_form_prefills_today(self):
        form = observation_form("777", 1, NOW)

        assert form.action_key == "observation:submit:777:1"
        fields = {f.key: f for f in form.fields}
        assert fields["date"].value == "03/05/2024"
        assert fields["notes"].required
        assert not fields["issues"].required
        assert "subject_username" not in fields

    def test_observation_form_optional_username(self):
        form = observation_form("777", 1, NOW, include_subject_username=True)
        assert "subject_username" in {f.key for f in form.fields}


class TestRecommendationViews:
    def test_requirements_panel(self):
        view = requirements_panel("tok", "Be kind.")

        assert view.embeds[0].description == "Be kind."
        assert [b.action_key for b in view.buttons()] == [
            "recommend:continue:tok",
            "recommend:cancel:tok",
        ]

    def test_recommendation_form(self):
        form = recommendation_form("tok")

        assert form.action_key == "recommend:submit:tok"
        assert [f.key for f in form.fields] == ["candidate_username", "reason"]

    def test_role_mention(self):
        assert role_mention("300") == "<@&300>"
        assert role_mention(None) is None

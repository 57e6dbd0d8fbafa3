"""
Tests for the metric submission flow: step transitions, date guard,
new vs edit mode, and creative filtering.
"""

from datetime import date

import pytest

from trackflow.models.engine_models import (
    RejectionCode,
    SubmissionMode,
    SubmissionState,
    SubmissionStep,
)
from trackflow.models.metric_models import Creative, DailyMetricRecord
from trackflow.analyzer.submission_flow import (
    back,
    confirm,
    filter_creatives,
    pick_date,
    select_creative,
    submit,
)

TODAY = date(2024, 3, 10)

FULL_FORM = {
    "spend": "80",
    "revenue": "120",
    "impressions": "2000",
    "clicks": "40",
    "conversions": "2",
}


@pytest.fixture
def creative():
    return Creative(id="cr-1", offer_id="of-1", code="FB-0001", source="facebook")


@pytest.fixture
def at_pick_date(creative):
    return confirm(select_creative(SubmissionState(), creative))


# ============================================================================
# filter_creatives
# ============================================================================

class TestFilterCreatives:
    @pytest.fixture
    def creatives(self):
        return [
            Creative(id="1", offer_id="o", code="FB-0001", source="facebook", status="released"),
            Creative(id="2", offer_id="o", code="YT-0002", source="youtube", status="testing"),
            Creative(id="3", offer_id="o", code="FB-0003", source="facebook", status="archived"),
        ]

    def test_excludes_archived(self, creatives):
        assert [c.id for c in filter_creatives(creatives)] == ["1", "2"]

    def test_search_is_case_insensitive(self, creatives):
        assert [c.id for c in filter_creatives(creatives, search="yt-")] == ["2"]

    def test_source_filter(self, creatives):
        assert [c.id for c in filter_creatives(creatives, source="facebook")] == ["1"]


# ============================================================================
# Transitions
# ============================================================================

class TestTransitions:
    def test_select_then_confirm(self, creative):
        state = select_creative(SubmissionState(), creative)
        assert state.step == SubmissionStep.CONFIRM
        assert state.creative_id == "cr-1"
        assert confirm(state).step == SubmissionStep.PICK_DATE

    def test_wrong_step_raises(self):
        with pytest.raises(ValueError, match="Expected step"):
            confirm(SubmissionState())

    def test_future_date_rejected(self, at_pick_date):
        state, rejection = pick_date(at_pick_date, date(2024, 3, 11), TODAY)
        assert rejection.code == RejectionCode.FUTURE_DATE
        assert state.step == SubmissionStep.PICK_DATE

    def test_pick_date_without_record_is_new_mode(self, at_pick_date):
        state, rejection = pick_date(at_pick_date, TODAY, TODAY)
        assert rejection is None
        assert state.step == SubmissionStep.FILL_OR_EDIT
        assert state.mode == SubmissionMode.NEW
        assert state.date == "2024-03-10"

    def test_pick_date_with_record_is_edit_mode(self, at_pick_date):
        existing = DailyMetricRecord(id="r", subject_id="cr-1", date="2024-03-09", spend=10.0)
        state, _ = pick_date(at_pick_date, date(2024, 3, 9), TODAY, existing)
        assert state.mode == SubmissionMode.EDIT
        assert state.existing is existing

    def test_back_clears_later_choices(self, at_pick_date):
        state, _ = pick_date(at_pick_date, TODAY, TODAY)
        previous = back(state)
        assert previous.step == SubmissionStep.PICK_DATE
        assert previous.date is None
        assert previous.mode is None
        assert back(back(previous)).creative_id is None

    def test_back_from_first_step_is_a_noop(self):
        state = SubmissionState()
        assert back(state) is state


# ============================================================================
# submit
# ============================================================================

class TestSubmit:
    def test_new_submission_reaches_review(self, at_pick_date):
        state, _ = pick_date(at_pick_date, TODAY, TODAY)
        state, rejection = submit(state, FULL_FORM)
        assert rejection is None
        assert state.step == SubmissionStep.REVIEW
        assert state.result.is_new
        assert state.result.merged.subject_id == "cr-1"
        assert state.result.merged.date == "2024-03-10"
        assert state.result.merged.roas == pytest.approx(1.5)

    def test_rejection_keeps_current_step(self, at_pick_date):
        state, _ = pick_date(at_pick_date, TODAY, TODAY)
        form = {**FULL_FORM, "impressions": ""}
        after, rejection = submit(state, form)
        assert rejection.code == RejectionCode.FIELD_REQUIRED
        assert after.step == SubmissionStep.FILL_OR_EDIT
        assert after.result is None

    def test_noop_edit_is_rejected(self, at_pick_date):
        existing = DailyMetricRecord(id="r", subject_id="cr-1", date="2024-03-10", spend=80.0)
        state, _ = pick_date(at_pick_date, TODAY, TODAY, existing)
        _, rejection = submit(state, {"spend": "80"}, {"spend"})
        assert rejection.code == RejectionCode.NO_CHANGE

    def test_edit_reaches_review_with_deltas(self, at_pick_date):
        existing = DailyMetricRecord(id="r", subject_id="cr-1", date="2024-03-10", spend=80.0)
        state, _ = pick_date(at_pick_date, TODAY, TODAY, existing)
        state, rejection = submit(state, {"spend": "95"}, {"spend"})
        assert rejection is None
        assert state.result.deltas["spend"].new == 95.0
        assert state.result.merged.id == "r"

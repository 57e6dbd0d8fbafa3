"""TrackFlow — Metric Submission Flow.

Step state for the "submit metrics" dialog:
select → confirm → pick_date → fill_or_edit → review

State values are immutable; every transition returns a new SubmissionState.
Transitions that can fail for user reasons return (state, Rejection) and
leave the step unchanged.
"""

from typing import Any, Iterable, List, Mapping, Optional, Tuple

from trackflow.models.engine_models import (
    Rejection,
    RejectionCode,
    SubmissionMode,
    SubmissionState,
    SubmissionStep,
)
from trackflow.models.metric_models import Creative, CreativeStatus, DailyMetricRecord
from trackflow.analyzer.period_engine import DayLike, format_local_date
from trackflow.analyzer.reconcile_engine import reconcile
from trackflow.core.logging import get_logger

logger = get_logger("analyzer.submission")

_PREVIOUS_STEP = {
    SubmissionStep.CONFIRM: SubmissionStep.SELECT,
    SubmissionStep.PICK_DATE: SubmissionStep.CONFIRM,
    SubmissionStep.FILL_OR_EDIT: SubmissionStep.PICK_DATE,
}


def filter_creatives(
    creatives: Iterable[Creative], search: str = "", source: str = "all"
) -> List[Creative]:
    """Creatives an operator may submit metrics for."""
    term = search.strip().lower()
    return [
        c
        for c in creatives
        if c.status != CreativeStatus.ARCHIVED.value
        and (not term or term in c.code.lower())
        and (source == "all" or c.source == source)
    ]


def _require_step(state: SubmissionState, step: SubmissionStep) -> None:
    if state.step != step:
        raise ValueError(f"Expected step {step.value}, currently at {state.step.value}")


def select_creative(state: SubmissionState, creative: Creative) -> SubmissionState:
    _require_step(state, SubmissionStep.SELECT)
    return state.model_copy(
        update={"step": SubmissionStep.CONFIRM, "creative_id": creative.id}
    )


def confirm(state: SubmissionState) -> SubmissionState:
    _require_step(state, SubmissionStep.CONFIRM)
    return state.model_copy(update={"step": SubmissionStep.PICK_DATE})


def pick_date(
    state: SubmissionState,
    day: DayLike,
    today: DayLike,
    existing: Optional[DailyMetricRecord] = None,
) -> Tuple[SubmissionState, Optional[Rejection]]:
    """Choose the day to submit for.

    existing is the stored record for (creative, day), if the caller found
    one; it switches the form into edit mode.
    """
    _require_step(state, SubmissionStep.PICK_DATE)
    chosen = format_local_date(day)
    if chosen > format_local_date(today):
        return state, Rejection(
            code=RejectionCode.FUTURE_DATE,
            message="Metrics cannot be submitted for a future date",
            field="date",
        )

    mode = SubmissionMode.EDIT if existing is not None else SubmissionMode.NEW
    return (
        state.model_copy(
            update={
                "step": SubmissionStep.FILL_OR_EDIT,
                "date": chosen,
                "mode": mode,
                "existing": existing,
            }
        ),
        None,
    )


def submit(
    state: SubmissionState,
    proposed: Mapping[str, Any],
    fields_selected: Optional[Iterable[str]] = None,
) -> Tuple[SubmissionState, Optional[Rejection]]:
    """Reconcile the form against the stored record and move to review."""
    _require_step(state, SubmissionStep.FILL_OR_EDIT)
    payload = {**proposed, "subject_id": state.creative_id, "date": state.date}
    outcome = reconcile(state.existing, payload, fields_selected)

    if isinstance(outcome, Rejection):
        logger.info(
            f"Submission rejected: {outcome.code.value}",
            extra={"subject_id": state.creative_id},
        )
        return state, outcome

    return state.model_copy(update={"step": SubmissionStep.REVIEW, "result": outcome}), None


def back(state: SubmissionState) -> SubmissionState:
    """Step back; the review step and the first step have nowhere to go."""
    previous = _PREVIOUS_STEP.get(state.step)
    if previous is None:
        return state

    update: dict = {"step": previous}
    if previous == SubmissionStep.SELECT:
        update["creative_id"] = None
    if previous == SubmissionStep.PICK_DATE:
        update.update({"date": None, "mode": None, "existing": None})
    return state.model_copy(update=update)

"""TrackFlow — Reconcile Engine.

Decides what a metric submission for a (subject, date) key does:
- no stored record → every raw field is mandatory, the submission becomes
  the new record
- stored record → only the selected fields are edited; the edit must change
  at least one value, otherwise it is rejected

Rejections are returned, not raised, and nothing is mutated before
validation passes.
"""

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from trackflow.config import settings
from trackflow.core.metric_registry import RECORD_FIELDS
from trackflow.models.engine_models import (
    MetricDelta,
    ReconcileResult,
    Rejection,
    RejectionCode,
)
from trackflow.models.metric_models import DailyMetricRecord, SubjectType
from trackflow.analyzer.aggregate_engine import derive_record_metrics
from trackflow.analyzer.period_engine import format_local_date
from trackflow.core.logging import get_logger

logger = get_logger("analyzer.reconcile")

ReconcileOutcome = Union[ReconcileResult, Rejection]

_RAW_FIELDS = list(RECORD_FIELDS)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_numeric(value: Any, integer: bool = False) -> float:
    """Parse operator input; empty or unparseable text counts as 0."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError, OverflowError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number) if integer else number


def _parse_field(field: str, value: Any) -> float:
    return parse_numeric(value, integer=RECORD_FIELDS[field].integer)


def _build_record(values: Dict[str, Any], **keys: Any) -> DailyMetricRecord:
    derived = derive_record_metrics(
        values["spend"],
        values["revenue"],
        values["impressions"],
        values["clicks"],
        values["conversions"],
    )
    return DailyMetricRecord(**keys, **values, **derived)


def _check_fields(fields: Iterable[str]) -> List[str]:
    selected = []
    for field in fields:
        if field not in RECORD_FIELDS:
            raise ValueError(f"Unknown metric field: {field}")
        if field not in selected:
            selected.append(field)
    # Keep a stable field order regardless of how the caller built the set
    return [f for f in _RAW_FIELDS if f in selected]


def _reconcile_new(proposed: Mapping[str, Any]) -> ReconcileOutcome:
    # Validation runs on the raw text: "" is missing even though it parses to 0
    missing = [f for f in _RAW_FIELDS if _is_blank(proposed.get(f))]
    if missing:
        return Rejection(
            code=RejectionCode.FIELD_REQUIRED,
            message=f"{missing[0]} is required",
            field=missing[0],
            fields=missing,
        )

    subject_id = proposed.get("subject_id")
    day = proposed.get("date")
    if _is_blank(subject_id) or _is_blank(day):
        return Rejection(
            code=RejectionCode.SUBJECT_REQUIRED,
            message="Subject and date are required",
        )

    values = {f: _parse_field(f, proposed[f]) for f in _RAW_FIELDS}
    merged = _build_record(
        values,
        subject_type=proposed.get("subject_type") or SubjectType.CREATIVE.value,
        subject_id=subject_id,
        date=format_local_date(day),
        data_source=proposed.get("data_source") or settings.data_source_default,
    )
    logger.info(
        f"New daily record for {merged.subject_id} on {merged.date}",
        extra={"subject_id": merged.subject_id, "field_count": len(_RAW_FIELDS)},
    )
    return ReconcileResult(merged=merged, deltas={}, is_new=True)


def _reconcile_edit(
    existing: DailyMetricRecord,
    proposed: Mapping[str, Any],
    fields_selected: Optional[Iterable[str]],
) -> ReconcileOutcome:
    selected = _check_fields(fields_selected or ())
    if not selected:
        return Rejection(
            code=RejectionCode.NO_FIELD_SELECTED,
            message="Select at least one field to edit",
        )

    deltas: Dict[str, MetricDelta] = {}
    values = {f: getattr(existing, f) or 0 for f in _RAW_FIELDS}
    for field in selected:
        old = values[field]
        new = _parse_field(field, proposed.get(field))
        values[field] = new
        if old != new:
            deltas[field] = MetricDelta(old=old, new=new)

    if not deltas:
        return Rejection(
            code=RejectionCode.NO_CHANGE,
            message="No change detected: no value was actually changed",
            fields=selected,
        )

    merged = _build_record(
        values,
        id=existing.id,
        subject_type=existing.subject_type,
        subject_id=existing.subject_id,
        date=existing.date,
        data_source=existing.data_source,
        updated_at=existing.updated_at,
    )
    logger.info(
        f"Edited {len(deltas)} field(s) for {existing.subject_id} on {existing.date}",
        extra={"subject_id": existing.subject_id, "field_count": len(deltas)},
    )
    return ReconcileResult(merged=merged, deltas=deltas, is_new=False)


def reconcile(
    existing: Optional[DailyMetricRecord],
    proposed: Mapping[str, Any],
    fields_selected: Optional[Iterable[str]] = None,
) -> ReconcileOutcome:
    """Validate a submission against the stored record for its key.

    proposed holds raw operator input keyed by field name; for a new record it
    must also carry subject_id and date. Returns a ReconcileResult with the
    record to store (existing is never mutated) or a Rejection.
    Raises ValueError if fields_selected names an unknown field.
    """
    if existing is None:
        return _reconcile_new(proposed)
    return _reconcile_edit(existing, proposed, fields_selected)

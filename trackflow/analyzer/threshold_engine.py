"""TrackFlow — Threshold Engine.

Parses an offer's stored threshold configuration and classifies metric values
into health statuses:
- roas: higher is better (green if value >= green)
- ic / cpc: lower is better (green if value <= green)
Boundaries are inclusive on the better side.
"""

import json
import math
from typing import Any, Dict, Mapping, Optional

from trackflow.core.metric_registry import (
    Direction,
    MetricKind,
    direction_of,
    safe_ratio,
)
from trackflow.models.engine_models import HealthStatus, MetricThreshold, ThresholdSet
from trackflow.models.metric_models import DailyMetricRecord, Offer
from trackflow.core.logging import get_logger

logger = get_logger("analyzer.threshold")

# System defaults, applied per kind when the stored config lacks one
DEFAULT_THRESHOLDS = ThresholdSet(
    roas=MetricThreshold(green=1.30, yellow=1.10),
    ic=MetricThreshold(green=50.0, yellow=60.0),
    cpc=MetricThreshold(green=1.50, yellow=2.00),
)

# Stored configs written by older clients use Portuguese keys
_BOUND_KEYS = {"green": ("green", "verde"), "yellow": ("yellow", "amarelo")}


def _safe_number(value: Any) -> Optional[float]:
    """Return value as a finite float, or None if it isn't one."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _parse_bound(entry: Mapping[str, Any], bound: str) -> Optional[float]:
    for key in _BOUND_KEYS[bound]:
        if key in entry:
            return _safe_number(entry[key])
    return None


def _parse_kind(raw: Any, default: MetricThreshold, kind: MetricKind) -> MetricThreshold:
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.debug(
                f"Malformed {kind.value} thresholds, using defaults",
                extra={"metric": kind.value},
            )
        return default.model_copy()

    green = _parse_bound(raw, "green")
    yellow = _parse_bound(raw, "yellow")
    if green is None or yellow is None:
        logger.debug(
            f"Incomplete {kind.value} thresholds, filling from defaults",
            extra={"metric": kind.value},
        )
    return MetricThreshold(
        green=default.green if green is None else green,
        yellow=default.yellow if yellow is None else yellow,
    )


def parse_thresholds(raw: Any) -> ThresholdSet:
    """Normalize a stored threshold config into a complete ThresholdSet.

    Accepts None, a mapping, or a JSON string. Anything missing or malformed
    is replaced by the system default for that kind/bound. Never raises.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            raw = None
    if not isinstance(raw, Mapping):
        return DEFAULT_THRESHOLDS.model_copy(deep=True)

    return ThresholdSet(
        **{
            kind.value: _parse_kind(
                raw.get(kind.value), DEFAULT_THRESHOLDS.for_kind(kind), kind
            )
            for kind in MetricKind
        }
    )


def update_thresholds(current_raw: Any, inputs: Mapping[str, Any]) -> ThresholdSet:
    """Build the replacement config from operator inputs.

    Inputs are keyed "<kind>_green" / "<kind>_yellow". A blank or unparseable
    input keeps the current value. Zero is a valid threshold.
    """
    current = parse_thresholds(current_raw)
    updated: Dict[str, MetricThreshold] = {}
    for kind in MetricKind:
        existing = current.for_kind(kind)
        bounds = {}
        for bound in ("green", "yellow"):
            value = inputs.get(f"{kind.value}_{bound}")
            if isinstance(value, str):
                value = value.strip() or None
            number = _safe_number(value)
            bounds[bound] = getattr(existing, bound) if number is None else number
        updated[kind.value] = MetricThreshold(**bounds)

    result = ThresholdSet(**updated)
    logger.info(f"Thresholds updated: {result.to_storage()}")
    return result


def new_offer(name: str, niche: str = "", country: str = "", **fields: Any) -> Offer:
    """Create an Offer carrying the system default thresholds."""
    return Offer(
        name=name,
        niche=niche,
        country=country,
        thresholds=DEFAULT_THRESHOLDS.to_storage(),
        **fields,
    )


def classify(value: float, kind: MetricKind | str, thresholds: ThresholdSet) -> HealthStatus:
    """Classify a metric value as success / warning / danger.

    Raises ValueError for an unknown kind.
    """
    kind = MetricKind(kind)
    threshold = thresholds.for_kind(kind)

    if direction_of(kind) == Direction.HIGHER_IS_BETTER:
        if value >= threshold.green:
            return HealthStatus.SUCCESS
        if value >= threshold.yellow:
            return HealthStatus.WARNING
        return HealthStatus.DANGER

    if value <= threshold.green:
        return HealthStatus.SUCCESS
    if value <= threshold.yellow:
        return HealthStatus.WARNING
    return HealthStatus.DANGER


def offer_health(roas: float, thresholds: ThresholdSet) -> HealthStatus:
    """Overall offer health, driven by ROAS alone."""
    return classify(roas, MetricKind.ROAS, thresholds)


def derived_values(record: DailyMetricRecord) -> Dict[MetricKind, float]:
    """Zero-guarded roas / ic / cpc computed from a record's raw fields."""
    spend = record.spend or 0.0
    return {
        MetricKind.ROAS: safe_ratio(record.revenue or 0.0, spend),
        MetricKind.IC: safe_ratio(spend, record.conversions or 0),
        MetricKind.CPC: safe_ratio(spend, record.clicks or 0),
    }


def classify_record(
    record: DailyMetricRecord, thresholds: ThresholdSet
) -> Dict[MetricKind, HealthStatus]:
    """Status for every classified kind of a single daily record."""
    return {
        kind: classify(value, kind, thresholds)
        for kind, value in derived_values(record).items()
    }

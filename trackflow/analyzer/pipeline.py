"""TrackFlow — Report Pipeline.

Wires the engines together for dashboard screens:
  resolve period → filter + aggregate records → classify against thresholds
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from trackflow.core.metric_registry import MetricKind
from trackflow.models.engine_models import (
    HealthStatus,
    OfferReport,
    PeriodSelector,
)
from trackflow.models.metric_models import DailyMetricRecord
from trackflow.analyzer.aggregate_engine import aggregate
from trackflow.analyzer.period_engine import DayLike, resolve_period
from trackflow.analyzer.threshold_engine import classify, parse_thresholds
from trackflow.core.logging import get_logger

logger = get_logger("analyzer.pipeline")


def build_offer_report(
    thresholds_raw: Any,
    records: Iterable[DailyMetricRecord],
    selector: PeriodSelector | str,
    today: DayLike,
    custom_bounds: Optional[Sequence[Optional[DayLike]]] = None,
    offer_id: str = "",
) -> OfferReport:
    """Summarize an offer's records over a period and color each metric.

    With no records in the window every status is neutral: there is nothing
    to classify.
    """
    thresholds = parse_thresholds(thresholds_raw)
    window = resolve_period(selector, today, custom_bounds)
    summary = aggregate(records, window)

    if summary.record_count == 0:
        statuses = {kind: HealthStatus.NEUTRAL for kind in MetricKind}
    else:
        statuses = {
            kind: classify(getattr(summary, kind.value), kind, thresholds)
            for kind in MetricKind
        }

    return OfferReport(
        offer_id=offer_id,
        window=window,
        summary=summary,
        thresholds=thresholds,
        statuses=statuses,
        health=statuses[MetricKind.ROAS],
    )


def build_dashboard(
    offers: Mapping[str, Any],
    records: Iterable[DailyMetricRecord],
    selector: PeriodSelector | str,
    today: DayLike,
    custom_bounds: Optional[Sequence[Optional[DayLike]]] = None,
) -> Dict[str, OfferReport]:
    """One report per offer id.

    offers maps offer id → stored thresholds; records are offer-level daily
    records keyed by subject_id = offer id.
    """
    by_offer: Dict[str, List[DailyMetricRecord]] = defaultdict(list)
    for r in records:
        by_offer[r.subject_id].append(r)

    reports = {
        offer_id: build_offer_report(
            thresholds_raw,
            by_offer.get(offer_id, []),
            selector,
            today,
            custom_bounds,
            offer_id=offer_id,
        )
        for offer_id, thresholds_raw in offers.items()
    }

    unhealthy = sum(1 for r in reports.values() if r.health == HealthStatus.DANGER)
    logger.info(
        f"Built dashboard for {len(reports)} offers ({unhealthy} in danger)",
        extra={"period": PeriodSelector(selector).value},
    )
    return reports

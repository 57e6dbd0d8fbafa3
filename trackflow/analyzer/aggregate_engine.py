"""TrackFlow — Aggregate Engine.

Reduces daily metric records into period summaries:
sums of spend/revenue/volume, ROAS, profit, MC, ratio-of-sums IC/CPC/CTR/CPM,
and IC/CPC means over the records that carry them.
"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List

from trackflow.core.metric_registry import safe_ratio
from trackflow.models.engine_models import (
    AggregateSummary,
    CreativeRollup,
    DashboardTotals,
    DateWindow,
    PeriodSelector,
)
from trackflow.models.metric_models import DailyMetricRecord
from trackflow.analyzer.period_engine import resolve_period, trailing_window
from trackflow.core.logging import get_logger

logger = get_logger("analyzer.aggregate")


def _record_day(record: DailyMetricRecord) -> str:
    day = record.date
    return day.isoformat() if isinstance(day, date) else day


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def derive_record_metrics(
    spend: float, revenue: float, impressions: int, clicks: int, conversions: int
) -> Dict[str, float]:
    """Derived values stored alongside a record's raw fields."""
    return {
        "roas": safe_ratio(revenue, spend),
        "ic": safe_ratio(spend, conversions),
        "cpc": safe_ratio(spend, clicks),
        "ctr": safe_ratio(clicks, impressions, 100),
        "cpm": safe_ratio(spend, impressions, 1000),
    }


def filter_window(
    records: Iterable[DailyMetricRecord], window: DateWindow
) -> List[DailyMetricRecord]:
    """Records whose date falls inside the window, inclusive."""
    return [r for r in records if window.contains(_record_day(r))]


def summarize(records: Iterable[DailyMetricRecord]) -> AggregateSummary:
    """Summarize records without any date filtering."""
    count = 0
    spend = revenue = 0.0
    impressions = clicks = conversions = 0
    ic_values: List[float] = []
    cpc_values: List[float] = []

    for r in records:
        count += 1
        spend += r.spend or 0.0
        revenue += r.revenue or 0.0
        impressions += r.impressions or 0
        clicks += r.clicks or 0
        conversions += r.conversions or 0
        # Absent values are skipped, not averaged in as zero
        if r.ic is not None:
            ic_values.append(r.ic)
        if r.cpc is not None:
            cpc_values.append(r.cpc)

    profit = revenue - spend

    return AggregateSummary(
        record_count=count,
        spend=spend,
        revenue=revenue,
        impressions=int(impressions),
        clicks=int(clicks),
        conversions=int(conversions),
        roas=safe_ratio(revenue, spend),
        profit=profit,
        mc=safe_ratio(profit, revenue, 100),
        ic=safe_ratio(spend, conversions),
        cpc=safe_ratio(spend, clicks),
        ctr=safe_ratio(clicks, impressions, 100),
        cpm=safe_ratio(spend, impressions, 1000),
        avg_ic=_mean(ic_values),
        avg_cpc=_mean(cpc_values),
    )


def aggregate(
    records: Iterable[DailyMetricRecord], window: DateWindow
) -> AggregateSummary:
    """Summarize the records that fall inside the window."""
    selected = filter_window(records, window)
    summary = summarize(selected)
    logger.info(
        f"Aggregated {summary.record_count} records for {window.start} → {window.end}",
        extra={"period": f"{window.start}/{window.end}"},
    )
    return summary


def aggregate_by_subject(
    records: Iterable[DailyMetricRecord], window: DateWindow
) -> Dict[str, AggregateSummary]:
    """One summary per subject id with records inside the window."""
    grouped: Dict[str, List[DailyMetricRecord]] = defaultdict(list)
    for r in filter_window(records, window):
        grouped[r.subject_id].append(r)

    return {subject_id: summarize(rows) for subject_id, rows in grouped.items()}


def dashboard_totals(
    records: Iterable[DailyMetricRecord], today
) -> DashboardTotals:
    """Totals for today, the last 7 days and all recorded history."""
    records = list(records)

    return DashboardTotals(
        today=summarize(filter_window(records, resolve_period(PeriodSelector.TODAY, today))),
        last7=summarize(filter_window(records, resolve_period(PeriodSelector.LAST7, today))),
        total=summarize(filter_window(records, resolve_period(PeriodSelector.ALL, today))),
    )


def creative_rollups(
    records: Iterable[DailyMetricRecord], today
) -> Dict[str, CreativeRollup]:
    """Per-subject summaries for trailing 1, 3 and 7 day windows."""
    records = list(records)
    windows = {days: trailing_window(today, days) for days in (1, 3, 7)}
    by_days = {days: aggregate_by_subject(records, w) for days, w in windows.items()}

    subjects = {r.subject_id for r in filter_window(records, windows[7])}
    empty = AggregateSummary()
    return {
        subject_id: CreativeRollup(
            today=by_days[1].get(subject_id, empty),
            last3=by_days[3].get(subject_id, empty),
            last7=by_days[7].get(subject_id, empty),
        )
        for subject_id in subjects
    }

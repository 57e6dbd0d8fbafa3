"""TrackFlow — Period Engine.

Resolves a period selector into inclusive local-calendar-day bounds.

Dates are formatted from the year/month/day of the value the caller passes
in. An aware datetime is never converted to UTC first, so local midnight
stays on its own day.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Sequence, Union

from trackflow.config import settings
from trackflow.models.engine_models import DateWindow, PeriodSelector, PeriodValue
from trackflow.core.logging import get_logger

logger = get_logger("analyzer.period")

DayLike = Union[date, datetime, str]

# Trailing days before today included by each rolling selector
_TRAILING_DAYS = {
    PeriodSelector.TODAY: 0,
    PeriodSelector.LAST7: 6,
    PeriodSelector.LAST30: 29,
}


def _local_day(value: DayLike) -> date:
    if isinstance(value, datetime):
        # datetime.date() keeps the value's own calendar components
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, "%Y-%m-%d").date()


def format_local_date(value: DayLike) -> str:
    """YYYY-MM-DD from the local calendar components of value."""
    day = _local_day(value)
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def trailing_window(today: DayLike, days: int) -> DateWindow:
    """Inclusive window of `days` calendar days ending today."""
    if days < 1:
        raise ValueError(f"Window must span at least one day, got {days}")
    end = _local_day(today)
    start = end - timedelta(days=days - 1)
    return DateWindow(start=format_local_date(start), end=format_local_date(end))


def resolve_period(
    selector: PeriodSelector | str,
    today: DayLike,
    custom_bounds: Optional[Sequence[Optional[DayLike]]] = None,
) -> DateWindow:
    """Resolve a selector against the caller-supplied current date.

    custom_bounds is (start, end) and is only read for the custom selector;
    a missing end collapses the window to the start day.
    """
    selector = PeriodSelector(selector)
    end = format_local_date(today)

    if selector == PeriodSelector.CUSTOM:
        if not custom_bounds or custom_bounds[0] is None:
            raise ValueError("Custom period requires at least a start date")
        start = format_local_date(custom_bounds[0])
        custom_end = custom_bounds[1] if len(custom_bounds) > 1 else None
        return DateWindow(
            start=start,
            end=start if custom_end is None else format_local_date(custom_end),
        )

    if selector == PeriodSelector.ALL:
        return DateWindow(start=settings.history_start_date, end=end)

    start = _local_day(today) - timedelta(days=_TRAILING_DAYS[selector])
    window = DateWindow(start=format_local_date(start), end=end)
    logger.debug(
        f"Resolved {selector.value}: {window.start} → {window.end}",
        extra={"period": selector.value},
    )
    return window


def apply_period(
    selector: PeriodSelector | str,
    today: DayLike,
    custom_bounds: Optional[Sequence[Optional[DayLike]]] = None,
) -> PeriodValue:
    """New PeriodValue for a selector change."""
    window = resolve_period(selector, today, custom_bounds)
    return PeriodValue(selector=PeriodSelector(selector), start=window.start, end=window.end)


def refresh_period(value: PeriodValue, today: DayLike) -> PeriodValue:
    """Re-derive a non-custom period from today; custom bounds are kept."""
    if value.selector == PeriodSelector.CUSTOM:
        return value
    return apply_period(value.selector, today)

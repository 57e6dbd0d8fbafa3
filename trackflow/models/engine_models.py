"""TrackFlow — Engine Input/Output Models."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel

from trackflow.core.metric_registry import MetricKind
from trackflow.models.metric_models import DailyMetricRecord


# ─────────────────────────────────────────────
# THRESHOLDS & HEALTH
# ─────────────────────────────────────────────


class HealthStatus(str, Enum):
    """Display status of a metric.

    NEUTRAL is for callers with no value to show yet; classify never returns it.
    """

    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"
    NEUTRAL = "neutral"


class MetricThreshold(BaseModel):
    """Green/yellow boundaries for one metric kind.

    For roas (higher is better) a sane config has green >= yellow; for ic and
    cpc (lower is better) green <= yellow. Neither is enforced.
    """

    green: float
    yellow: float


class ThresholdSet(BaseModel):
    """A complete threshold configuration, one entry per MetricKind."""

    roas: MetricThreshold
    ic: MetricThreshold
    cpc: MetricThreshold

    def for_kind(self, kind: MetricKind | str) -> MetricThreshold:
        return getattr(self, MetricKind(kind).value)

    def to_storage(self) -> dict:
        """JSON value stored on Offer.thresholds."""
        return self.model_dump()


# ─────────────────────────────────────────────
# PERIODS
# ─────────────────────────────────────────────


class PeriodSelector(str, Enum):
    TODAY = "today"
    LAST7 = "last7"
    LAST30 = "last30"
    CUSTOM = "custom"
    ALL = "all"

    @classmethod
    def _missing_(cls, value):
        alias = _SELECTOR_ALIASES.get(value)
        return cls(alias) if alias else None


_SELECTOR_ALIASES = {"7d": "last7", "30d": "last30"}


class DateWindow(BaseModel):
    """Inclusive [start, end] range of local calendar days (YYYY-MM-DD)."""

    start: str
    end: str

    def contains(self, day: str) -> bool:
        return self.start <= day <= self.end


class PeriodValue(BaseModel):
    """A selector together with the bounds it last resolved to."""

    selector: PeriodSelector
    start: str
    end: str

    @property
    def window(self) -> DateWindow:
        return DateWindow(start=self.start, end=self.end)


# ─────────────────────────────────────────────
# AGGREGATES
# ─────────────────────────────────────────────


class AggregateSummary(BaseModel):
    """Totals and derived ratios for a set of daily records."""

    record_count: int = 0
    spend: float = 0.0
    revenue: float = 0.0
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    roas: float = 0.0
    profit: float = 0.0
    mc: float = 0.0  # % of revenue
    # Ratios of sums
    ic: float = 0.0
    cpc: float = 0.0
    ctr: float = 0.0
    cpm: float = 0.0
    # Means over records where the stored value is present
    avg_ic: float = 0.0
    avg_cpc: float = 0.0


class DashboardTotals(BaseModel):
    """Headline cards: today, last 7 days and all time."""

    today: AggregateSummary
    last7: AggregateSummary
    total: AggregateSummary


class CreativeRollup(BaseModel):
    """Trailing-window summaries for one creative."""

    today: AggregateSummary
    last3: AggregateSummary
    last7: AggregateSummary


class OfferReport(BaseModel):
    """Summary of one offer over a period, colored against its thresholds."""

    offer_id: str = ""
    window: DateWindow
    summary: AggregateSummary
    thresholds: ThresholdSet
    statuses: Dict[MetricKind, HealthStatus]
    health: HealthStatus


# ─────────────────────────────────────────────
# RECONCILIATION
# ─────────────────────────────────────────────


class RejectionCode(str, Enum):
    SUBJECT_REQUIRED = "subject_required"
    FIELD_REQUIRED = "field_required"
    NO_FIELD_SELECTED = "no_field_selected"
    NO_CHANGE = "no_change"
    FUTURE_DATE = "future_date"


class Rejection(BaseModel):
    """A user-correctable validation failure. Nothing was changed."""

    code: RejectionCode
    message: str
    field: Optional[str] = None
    fields: List[str] = []


class MetricDelta(BaseModel):
    old: float
    new: float


class ReconcileResult(BaseModel):
    """Accepted submission: the record to store and what changed."""

    merged: DailyMetricRecord
    deltas: Dict[str, MetricDelta] = {}
    is_new: bool = False


# ─────────────────────────────────────────────
# SUBMISSION WIZARD
# ─────────────────────────────────────────────


class SubmissionStep(str, Enum):
    SELECT = "select"
    CONFIRM = "confirm"
    PICK_DATE = "pick_date"
    FILL_OR_EDIT = "fill_or_edit"
    REVIEW = "review"


class SubmissionMode(str, Enum):
    NEW = "new"
    EDIT = "edit"


class SubmissionState(BaseModel):
    """Where an operator is in the metric-submission dialog."""

    step: SubmissionStep = SubmissionStep.SELECT
    creative_id: Optional[str] = None
    date: Optional[str] = None
    mode: Optional[SubmissionMode] = None
    existing: Optional[DailyMetricRecord] = None
    result: Optional[ReconcileResult] = None

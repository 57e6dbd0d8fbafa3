"""TrackFlow — Metric Registry.

Defines the raw fields a daily metric record carries, the metrics derived
from them, and the threshold-classified metric kinds with their comparison
direction. Adding a new classified kind means adding it to MetricKind and
to THRESHOLD_DIRECTIONS.
"""

from enum import Enum
from typing import Dict


class MetricType(str, Enum):
    """How a metric is categorised."""

    VOLUME = "volume"  # Raw counts: impressions, clicks, conversions
    COST = "cost"  # Monetary: spend
    REVENUE = "revenue"  # Income: revenue ("faturado")
    DERIVED = "derived"  # Computed: roas, ic, cpc, ctr, cpm, profit, mc


class MetricKind(str, Enum):
    """Metrics classified against per-offer thresholds."""

    ROAS = "roas"
    IC = "ic"
    CPC = "cpc"


class Direction(str, Enum):
    HIGHER_IS_BETTER = "higher_is_better"
    LOWER_IS_BETTER = "lower_is_better"


THRESHOLD_DIRECTIONS: Dict[MetricKind, Direction] = {
    MetricKind.ROAS: Direction.HIGHER_IS_BETTER,
    MetricKind.IC: Direction.LOWER_IS_BETTER,
    MetricKind.CPC: Direction.LOWER_IS_BETTER,
}


class MetricDefinition:
    """Describes a single metric."""

    def __init__(
        self,
        name: str,
        metric_type: MetricType,
        unit: str = "",
        description: str = "",
        integer: bool = False,
    ):
        self.name = name
        self.metric_type = metric_type
        self.unit = unit
        self.description = description
        self.integer = integer

    def __repr__(self) -> str:
        return f"<Metric {self.name} ({self.metric_type.value})>"


# ─────────────────────────────────────────────
# RECORD FIELDS — Entered by the operator, mandatory on a new record
# ─────────────────────────────────────────────

RECORD_FIELDS: Dict[str, MetricDefinition] = {
    "spend": MetricDefinition("spend", MetricType.COST, "currency", "Ad spend"),
    "revenue": MetricDefinition(
        "revenue", MetricType.REVENUE, "currency", "Billed revenue"
    ),
    "impressions": MetricDefinition(
        "impressions", MetricType.VOLUME, "count", "Times the ad was shown", True
    ),
    "clicks": MetricDefinition(
        "clicks", MetricType.VOLUME, "count", "Total clicks", True
    ),
    "conversions": MetricDefinition(
        "conversions", MetricType.VOLUME, "count", "Total conversions", True
    ),
}


# ─────────────────────────────────────────────
# DERIVED METRICS — Zero when the denominator is zero
# ─────────────────────────────────────────────

DERIVED_METRICS: Dict[str, MetricDefinition] = {
    "roas": MetricDefinition("roas", MetricType.DERIVED, "ratio", "Revenue / spend"),
    "ic": MetricDefinition(
        "ic", MetricType.DERIVED, "currency", "Spend / conversions"
    ),
    "cpc": MetricDefinition("cpc", MetricType.DERIVED, "currency", "Spend / clicks"),
    "ctr": MetricDefinition("ctr", MetricType.DERIVED, "%", "Clicks / impressions"),
    "cpm": MetricDefinition(
        "cpm", MetricType.DERIVED, "currency", "Cost per 1000 impressions"
    ),
    "profit": MetricDefinition(
        "profit", MetricType.DERIVED, "currency", "Revenue - spend"
    ),
    "mc": MetricDefinition(
        "mc", MetricType.DERIVED, "%", "Contribution margin: profit / revenue"
    ),
}


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

ALL_METRICS = {**RECORD_FIELDS, **DERIVED_METRICS}


def get_metric(name: str) -> MetricDefinition | None:
    """Look up a metric by name."""
    return ALL_METRICS.get(name)


def metrics_by_type(metric_type: MetricType) -> list[MetricDefinition]:
    """Return all metrics of a given type."""
    return [m for m in ALL_METRICS.values() if m.metric_type == metric_type]


def direction_of(kind: MetricKind | str) -> Direction:
    """Comparison direction for a classified kind. Raises ValueError if unknown."""
    return THRESHOLD_DIRECTIONS[MetricKind(kind)]


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """numerator / denominator * scale, or 0.0 when the denominator is zero."""
    return (numerator / denominator * scale) if denominator else 0.0

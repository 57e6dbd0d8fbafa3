"""TrackFlow — Stored Record Models.

Storage-shaped entities the engines consume as plain values. The engines never
read or write a database; the data-access layer that owns these tables hands
records in and persists the results it gets back.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field, UniqueConstraint


class SubjectType(str, Enum):
    OFFER = "offer"
    CREATIVE = "creative"


class CreativeSource(str, Enum):
    FACEBOOK = "facebook"
    YOUTUBE = "youtube"
    TIKTOK = "tiktok"
    OTHER = "other"


class CreativeStatus(str, Enum):
    RELEASED = "released"
    TESTING = "testing"
    NOT_VALIDATED = "not_validated"
    PAUSED = "paused"
    ARCHIVED = "archived"


class Offer(SQLModel, table=True):
    """A tracked campaign/product.

    `thresholds` holds the expected-metrics configuration as free-form JSON;
    read it through analyzer.threshold_engine.parse_thresholds.
    """

    __tablename__ = "offers"

    id: Optional[str] = Field(default=None, primary_key=True)
    name: str = Field(description="Offer name")
    niche: str = Field(default="")
    country: str = Field(default="")
    status: str = Field(default="active", description="active | paused | archived")
    thresholds: Optional[Dict[str, Any]] = Field(
        default=None, sa_column=Column(JSON)
    )


class Creative(SQLModel, table=True):
    """One ad variant belonging to an offer."""

    __tablename__ = "creatives"

    id: Optional[str] = Field(default=None, primary_key=True)
    offer_id: str = Field(index=True)
    code: str = Field(description="Human-facing unique code, e.g. FB-0123")
    source: str = Field(default=CreativeSource.FACEBOOK.value)
    copywriter: str = Field(default="")
    status: str = Field(default=CreativeStatus.TESTING.value)


class DailyMetricRecord(SQLModel, table=True):
    """One day of performance numbers for an offer or a creative.

    Unique on (subject_type, subject_id, date): a second submission for the
    same key updates this row, it never adds another one.
    """

    __tablename__ = "daily_metrics"
    __table_args__ = (
        UniqueConstraint(
            "subject_type",
            "subject_id",
            "date",
            name="uq_daily_metric",
        ),
    )

    id: Optional[str] = Field(default=None, primary_key=True)
    subject_type: str = Field(
        default=SubjectType.CREATIVE.value, index=True, description="offer | creative"
    )
    subject_id: str = Field(index=True)
    date: str = Field(index=True, description="YYYY-MM-DD, local calendar day")

    spend: float = 0.0
    revenue: float = 0.0
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0

    # Stored derived values; None when the row was written without them
    roas: Optional[float] = None
    ic: Optional[float] = None
    cpc: Optional[float] = None
    ctr: Optional[float] = None
    cpm: Optional[float] = None

    data_source: str = Field(default="manual", description="manual | import")
    updated_at: Optional[datetime] = None

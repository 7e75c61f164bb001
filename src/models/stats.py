"""
Derived Value Models

Everything in this module is computed from a transaction snapshot and
thrown away on the next refresh. Nothing here is ever persisted.

DESIGN DECISION: Every chart/table record has a fixed shape.
Presentation code reads named fields, not open-ended dicts.
"""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from src.models.transaction import PaymentMethod


# =============================================================================
# DASHBOARD VALUES
# =============================================================================

class DashboardStats(BaseModel):
    """Lifetime and period-bucketed income/expense totals."""

    total_income: float = 0.0
    total_expense: float = 0.0
    balance: float = Field(
        default=0.0,
        description="Lifetime income minus lifetime expense"
    )
    today_income: float = 0.0
    today_expense: float = 0.0
    month_income: float = 0.0
    month_expense: float = 0.0
    year_income: float = 0.0
    year_expense: float = 0.0


class MonthlyEntry(BaseModel):
    """One month of the current-year chart."""

    month: int = Field(..., ge=1, le=12)
    name: str = Field(..., description="Short month label, e.g. 'Jan'")
    income: float = 0.0
    expense: float = 0.0


class CategoryEntry(BaseModel):
    """One slice of the expense-category chart."""

    name: str
    value: float


class TeamContributionEntry(BaseModel):
    """
    Spend attributed to one team member (or orphaned investor label).

    user_id is only populated when attribution is keyed by user id.
    """

    name: str
    value: float = 0.0
    user_id: Optional[str] = None


class PaymentChannelEntry(BaseModel):
    """Signed net flow through one payment method."""

    method: PaymentMethod
    amount: float


class PaymentChannelSummary(BaseModel):
    """
    Net flow per payment method for a filtered set.

    Only methods that appeared in the set are listed, in first-seen order.
    These are the exact figures printed on exported statements.
    """

    entries: list[PaymentChannelEntry] = Field(default_factory=list)

    def as_dict(self) -> dict[str, float]:
        return {entry.method.value: entry.amount for entry in self.entries}

    @property
    def total_volume(self) -> float:
        """Sum of absolute net flows across all channels."""
        return sum(abs(entry.amount) for entry in self.entries)


class StatementSummary(BaseModel):
    """Figures for one monthly or yearly statement."""

    total_income: float = 0.0
    total_expense: float = 0.0
    net_balance: float = 0.0
    transaction_count: int = Field(default=0, ge=0)
    channels: PaymentChannelSummary = Field(default_factory=PaymentChannelSummary)


class DashboardSnapshot(BaseModel):
    """All dashboard views computed from one fetch."""

    as_of: dt.date
    stats: DashboardStats
    monthly: list[MonthlyEntry]
    categories: list[CategoryEntry]
    team: list[TeamContributionEntry]
    transaction_count: int = Field(default=0, ge=0)


class PortfolioPoint(BaseModel):
    """Cumulative invested amount at the end of a month."""

    period: str = Field(..., description="YYYY-MM")
    value: float


class SipProjection(BaseModel):
    """Result of the SIP calculator."""

    invested: float
    total: float

    @property
    def gain(self) -> float:
        return self.total - self.invested


# =============================================================================
# QUERY MODELS
# =============================================================================

class ReportType(str, Enum):
    """Statement period granularity."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


class StatementQuery(BaseModel):
    """
    Parameters for one statement.

    payment_method None means all channels.
    """

    report_type: ReportType = ReportType.MONTHLY
    year: int = Field(..., ge=1900, le=9999)
    month: Optional[int] = Field(
        default=None,
        ge=1,
        le=12,
        description="Required for monthly statements"
    )
    payment_method: Optional[PaymentMethod] = None
    user_id: Optional[str] = None

    @model_validator(mode="after")
    def require_month_for_monthly(self) -> "StatementQuery":
        if self.report_type == ReportType.MONTHLY and self.month is None:
            raise ValueError("Monthly statements need a month")
        return self

    def describe(self) -> str:
        """Human-readable period label, e.g. 'March 2024 | GPAY'."""
        if self.report_type == ReportType.MONTHLY:
            period = dt.date(self.year, self.month, 1).strftime("%B %Y")
        else:
            period = f"Year {self.year}"
        channel = self.payment_method.value if self.payment_method else "ALL"
        return f"{period} | {channel}"


# =============================================================================
# RESULT MODELS
# =============================================================================

class DashboardResult(BaseModel):
    """Outcome of one dashboard refresh."""

    executed_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
    success: bool
    error_message: Optional[str] = None
    snapshot: Optional[DashboardSnapshot] = None


class StatementResult(BaseModel):
    """Outcome of one statement computation."""

    query: StatementQuery
    executed_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
    success: bool
    error_message: Optional[str] = None
    summary: Optional[StatementSummary] = None
    query_description: str = ""

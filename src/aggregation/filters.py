"""
Date Ranges and List Filters

Small, pure helpers that decide which transactions a view looks at.
A transaction with no readable date never matches a date filter.
"""

import datetime as dt
from typing import Callable, Iterable, Optional, Union

from pydantic import BaseModel, Field, model_validator

from src.models.stats import ReportType, StatementQuery
from src.models.transaction import InvestmentType, Transaction, TransactionType


DatePredicate = Callable[[dt.date], bool]


def same_month(year: int, month: int) -> DatePredicate:
    """Predicate matching dates in the given calendar month."""
    def predicate(value: dt.date) -> bool:
        return value.year == year and value.month == month
    return predicate


def same_year(year: int) -> DatePredicate:
    """Predicate matching dates in the given calendar year."""
    def predicate(value: dt.date) -> bool:
        return value.year == year
    return predicate


class DateRange(BaseModel):
    """A statement period: one month or one whole year."""

    report_type: ReportType = ReportType.MONTHLY
    year: int
    month: Optional[int] = Field(default=None, ge=1, le=12)

    @model_validator(mode="after")
    def require_month_for_monthly(self) -> "DateRange":
        if self.report_type == ReportType.MONTHLY and self.month is None:
            raise ValueError("Monthly ranges need a month")
        return self

    @classmethod
    def from_query(cls, query: StatementQuery) -> "DateRange":
        return cls(report_type=query.report_type, year=query.year, month=query.month)

    def predicate(self) -> DatePredicate:
        if self.report_type == ReportType.MONTHLY:
            return same_month(self.year, self.month)
        return same_year(self.year)

    def contains(self, value: Optional[dt.date]) -> bool:
        if value is None:
            return False
        return self.predicate()(value)


def matches_date(
    transaction: Transaction,
    date_filter: Optional[Union[DatePredicate, DateRange]],
) -> bool:
    """
    Apply a date filter to one transaction.

    Undated transactions never match, even when no filter is given,
    because every caller of this helper is a date-bucketed view.
    """
    if transaction.date is None:
        return False
    if date_filter is None:
        return True
    if isinstance(date_filter, DateRange):
        return date_filter.contains(transaction.date)
    return bool(date_filter(transaction.date))


def filter_transactions(
    transactions: Iterable[Transaction],
    search: str = "",
    type_filter: Optional[TransactionType] = None,
    investment_filter: Optional[InvestmentType] = None,
) -> list[Transaction]:
    """
    Filter the transaction list the way the transactions table does.

    - search: case-insensitive substring of description, creator or category
    - type_filter: exact transaction type
    - investment_filter: TEAM keeps team splits, SINGLE keeps everything else
    """
    needle = search.lower()
    results = []

    for t in transactions:
        if needle and not (
            needle in t.description.lower()
            or needle in t.user_name.lower()
            or needle in t.category.lower()
        ):
            continue
        if type_filter is not None and t.type != type_filter:
            continue
        if investment_filter == InvestmentType.TEAM:
            if t.investment_type != InvestmentType.TEAM:
                continue
        elif investment_filter == InvestmentType.SINGLE:
            if t.investment_type == InvestmentType.TEAM:
                continue
        results.append(t)

    return results

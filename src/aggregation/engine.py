"""
Aggregation Engine

DESIGN DECISION: Aggregation is a set of PURE functions.
They take a snapshot (transactions + roster) and return fresh values.
No I/O, no caches, no state carried between calls.

The surrounding flows own the snapshot lifecycle:
fetch -> hold -> recompute -> discard on next fetch.

RECORD POLICY (one policy, applied everywhere):
- amount missing   -> counts as 0
- date missing     -> excluded from date-bucketed views
                      (today/month/year, monthly series, payment channels)
                      but still counted in lifetime totals, categories
                      and team contribution
- type missing     -> skipped by every view that depends on type

None of these functions raise on record content.
"""

import calendar
import datetime as dt
from enum import Enum
from typing import Iterable, Optional, Union

from src.aggregation.filters import DatePredicate, DateRange, matches_date
from src.models.stats import (
    CategoryEntry,
    DashboardSnapshot,
    DashboardStats,
    MonthlyEntry,
    PaymentChannelEntry,
    PaymentChannelSummary,
    StatementSummary,
    TeamContributionEntry,
)
from src.models.transaction import (
    PaymentMethod,
    Transaction,
    TransactionType,
    User,
)


DEFAULT_CATEGORY_LIMIT = 6
UNKNOWN_MEMBER_LABEL = "Unknown"


class AttributionKey(str, Enum):
    """
    How team contribution entries are keyed.

    NAME: by display name (merges duplicate and renamed users).
    USER_ID: by stable user id, name is display only.
    """
    NAME = "name"
    USER_ID = "user_id"


def _amount(t: Transaction) -> float:
    return t.amount if t.amount is not None else 0.0


def _as_date(value: Union[dt.date, dt.datetime]) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    return value


# =============================================================================
# PERIOD TOTALS
# =============================================================================

def compute_period_totals(
    transactions: Iterable[Transaction],
    as_of: Union[dt.date, dt.datetime],
) -> DashboardStats:
    """
    Lifetime, today, this-month and this-year income/expense totals.

    Buckets compare each transaction's own date against as_of.
    A transaction counts once in every bucket it falls into.
    """
    today = _as_date(as_of)
    income = {"total": 0.0, "today": 0.0, "month": 0.0, "year": 0.0}
    expense = {"total": 0.0, "today": 0.0, "month": 0.0, "year": 0.0}

    for t in transactions:
        if t.type == TransactionType.INCOME:
            bucket = income
        elif t.type == TransactionType.EXPENSE:
            bucket = expense
        else:
            continue

        amount = _amount(t)
        bucket["total"] += amount

        if t.date is None:
            continue
        if t.date.year == today.year:
            bucket["year"] += amount
            if t.date.month == today.month:
                bucket["month"] += amount
                if t.date.day == today.day:
                    bucket["today"] += amount

    return DashboardStats(
        total_income=income["total"],
        total_expense=expense["total"],
        balance=income["total"] - expense["total"],
        today_income=income["today"],
        today_expense=expense["today"],
        month_income=income["month"],
        month_expense=expense["month"],
        year_income=income["year"],
        year_expense=expense["year"],
    )


# =============================================================================
# MONTHLY SERIES
# =============================================================================

def compute_monthly_series(
    transactions: Iterable[Transaction],
    year: int,
) -> list[MonthlyEntry]:
    """
    Income/expense per calendar month of `year`.

    Always 12 entries, January first, zero-filled for empty months.
    """
    months = {m: {"income": 0.0, "expense": 0.0} for m in range(1, 13)}

    for t in transactions:
        if t.date is None or t.date.year != year:
            continue
        if t.type == TransactionType.INCOME:
            months[t.date.month]["income"] += _amount(t)
        elif t.type == TransactionType.EXPENSE:
            months[t.date.month]["expense"] += _amount(t)

    return [
        MonthlyEntry(
            month=m,
            name=calendar.month_abbr[m],
            income=totals["income"],
            expense=totals["expense"],
        )
        for m, totals in months.items()
    ]


# =============================================================================
# CATEGORY BREAKDOWN
# =============================================================================

def compute_category_breakdown(
    transactions: Iterable[Transaction],
    limit: int = DEFAULT_CATEGORY_LIMIT,
) -> list[CategoryEntry]:
    """
    Top expense categories by total amount, highest first.

    Categories are grouped by exact string ("food" != "Food").
    Ties keep the order in which the category was first seen.
    """
    groups: dict[str, float] = {}

    for t in transactions:
        if t.type != TransactionType.EXPENSE:
            continue
        groups[t.category] = groups.get(t.category, 0.0) + _amount(t)

    ranked = sorted(groups.items(), key=lambda item: item[1], reverse=True)
    return [CategoryEntry(name=name, value=value) for name, value in ranked[:max(limit, 0)]]


# =============================================================================
# TEAM CONTRIBUTION
# =============================================================================

def compute_team_contribution(
    transactions: Iterable[Transaction],
    users: Iterable[User],
    key: AttributionKey = AttributionKey.NAME,
    unknown_label: str = UNKNOWN_MEMBER_LABEL,
) -> list[TeamContributionEntry]:
    """
    Attribute expense spend to team members.

    - Every roster member starts at 0 so idle members still show up.
    - A non-empty investors list splits the amount evenly among those
      names (no rounding). Names not on the roster get their own entry.
    - Otherwise the creator bears the full amount (unknown_label when
      the creator name is blank).
    - Income is ignored.

    The entries always sum to the total expense of the input.
    """
    if key == AttributionKey.USER_ID:
        return _team_contribution_by_id(transactions, users, unknown_label)

    totals: dict[str, float] = {}
    for user in users:
        totals[user.name] = 0.0

    for t in transactions:
        if t.type != TransactionType.EXPENSE:
            continue
        amount = _amount(t)

        if t.investors:
            share = amount / len(t.investors)
            for investor in t.investors:
                totals[investor] = totals.get(investor, 0.0) + share
        else:
            creator = t.user_name or unknown_label
            totals[creator] = totals.get(creator, 0.0) + amount

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [TeamContributionEntry(name=name, value=value) for name, value in ranked]


def _team_contribution_by_id(
    transactions: Iterable[Transaction],
    users: Iterable[User],
    unknown_label: str,
) -> list[TeamContributionEntry]:
    # key -> [display name, user id or None, running total]
    totals: dict[str, list] = {}
    id_by_name: dict[str, str] = {}

    for user in users:
        if not user.id:
            totals.setdefault(f"name:{user.name}", [user.name, None, 0.0])
            continue
        totals.setdefault(f"id:{user.id}", [user.name, user.id, 0.0])
        id_by_name.setdefault(user.name, user.id)

    def credit(slot_key: str, name: str, user_id: Optional[str], amount: float) -> None:
        slot = totals.setdefault(slot_key, [name, user_id, 0.0])
        slot[2] += amount

    for t in transactions:
        if t.type != TransactionType.EXPENSE:
            continue
        amount = _amount(t)

        if t.investors:
            share = amount / len(t.investors)
            for investor in t.investors:
                user_id = id_by_name.get(investor)
                if user_id:
                    credit(f"id:{user_id}", investor, user_id, share)
                else:
                    credit(f"name:{investor}", investor, None, share)
        elif t.user_id:
            credit(f"id:{t.user_id}", t.user_name or unknown_label, t.user_id, amount)
        else:
            label = t.user_name or unknown_label
            credit(f"name:{label}", label, None, amount)

    ranked = sorted(totals.values(), key=lambda slot: slot[2], reverse=True)
    return [
        TeamContributionEntry(name=name, user_id=user_id, value=value)
        for name, user_id, value in ranked
    ]


# =============================================================================
# PAYMENT CHANNELS
# =============================================================================

def compute_payment_channel_summary(
    transactions: Iterable[Transaction],
    date_filter: Optional[Union[DatePredicate, DateRange]] = None,
    payment_method: Optional[PaymentMethod] = None,
) -> PaymentChannelSummary:
    """
    Signed net flow per payment method within a date filter.

    Income adds, expense subtracts. Only methods that actually appear in
    the filtered set are listed (no zero pre-seeding), in first-seen order.
    """
    flows: dict[PaymentMethod, float] = {}

    for t in transactions:
        if not matches_date(t, date_filter):
            continue
        if t.payment_method is None:
            continue
        if payment_method is not None and t.payment_method != payment_method:
            continue

        if t.type == TransactionType.INCOME:
            flows[t.payment_method] = flows.get(t.payment_method, 0.0) + _amount(t)
        elif t.type == TransactionType.EXPENSE:
            flows[t.payment_method] = flows.get(t.payment_method, 0.0) - _amount(t)

    return PaymentChannelSummary(
        entries=[
            PaymentChannelEntry(method=method, amount=amount)
            for method, amount in flows.items()
        ]
    )


def compute_statement(
    transactions: Iterable[Transaction],
    date_range: DateRange,
    payment_method: Optional[PaymentMethod] = None,
) -> StatementSummary:
    """Totals and channel breakdown for one statement period."""
    selected = [
        t for t in transactions
        if date_range.contains(t.date)
        and (payment_method is None or t.payment_method == payment_method)
    ]

    total_income = sum(_amount(t) for t in selected if t.type == TransactionType.INCOME)
    total_expense = sum(_amount(t) for t in selected if t.type == TransactionType.EXPENSE)

    return StatementSummary(
        total_income=total_income,
        total_expense=total_expense,
        net_balance=total_income - total_expense,
        transaction_count=len(selected),
        channels=compute_payment_channel_summary(selected),
    )


# =============================================================================
# DASHBOARD BUNDLE
# =============================================================================

def compute_dashboard(
    transactions: Iterable[Transaction],
    users: Iterable[User],
    as_of: Union[dt.date, dt.datetime],
    category_limit: int = DEFAULT_CATEGORY_LIMIT,
    key: AttributionKey = AttributionKey.NAME,
    unknown_label: str = UNKNOWN_MEMBER_LABEL,
) -> DashboardSnapshot:
    """Every dashboard view for one snapshot, as of one moment."""
    txs = list(transactions)
    roster = list(users)
    today = _as_date(as_of)

    return DashboardSnapshot(
        as_of=today,
        stats=compute_period_totals(txs, today),
        monthly=compute_monthly_series(txs, today.year),
        categories=compute_category_breakdown(txs, category_limit),
        team=compute_team_contribution(txs, roster, key, unknown_label),
        transaction_count=len(txs),
    )

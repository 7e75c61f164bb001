"""
Investment (SIP) Rollups

Investment transactions are ordinary transactions whose category
mentions SIP or INVESTMENT. Plans are matched to their installments
by name appearing in the transaction description.
"""

import calendar
import datetime as dt
import math
from typing import Iterable, Optional, Sequence

from src.models.sip import MemberPaymentStatus, PaymentStatus, PlanMember, SipPlan
from src.models.stats import PortfolioPoint, SipProjection
from src.models.transaction import (
    InvestmentType,
    PaymentMethod,
    Transaction,
    TransactionDraft,
    TransactionType,
    User,
)


INVESTMENT_MARKERS = ("SIP", "INVESTMENT")


def is_investment(transaction: Transaction) -> bool:
    """True when the category marks this as an investment installment."""
    category = transaction.category.upper()
    return any(marker in category for marker in INVESTMENT_MARKERS)


def investment_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Investment transactions, newest first. Undated ones sort last."""
    sips = [t for t in transactions if is_investment(t)]
    dated = sorted((t for t in sips if t.date is not None), key=lambda t: t.date, reverse=True)
    undated = [t for t in sips if t.date is None]
    return dated + undated


def compute_portfolio_total(transactions: Iterable[Transaction]) -> float:
    """Total invested across all investment transactions."""
    return sum(t.amount or 0.0 for t in transactions if is_investment(t))


def compute_portfolio_history(transactions: Iterable[Transaction]) -> list[PortfolioPoint]:
    """
    Cumulative invested amount by month.

    One point per month that has at least one dated installment,
    in chronological order.
    """
    per_month: dict[str, float] = {}
    for t in transactions:
        if not is_investment(t) or t.date is None:
            continue
        period = t.date.strftime("%Y-%m")
        per_month[period] = per_month.get(period, 0.0) + (t.amount or 0.0)

    running = 0.0
    history = []
    for period in sorted(per_month):
        running += per_month[period]
        history.append(PortfolioPoint(period=period, value=running))
    return history


def compute_plan_invested(transactions: Iterable[Transaction], plan_name: str) -> float:
    """Sum of installments whose description mentions the plan (case-sensitive)."""
    if not plan_name:
        return 0.0
    return sum(t.amount or 0.0 for t in transactions if plan_name in t.description)


def project_sip_value(
    monthly_amount: float,
    annual_rate_percent: float,
    years: int,
) -> SipProjection:
    """
    Future value of a monthly SIP, paid at the start of each month.

    total = A * ((1 + i)^n - 1) / i * (1 + i), i = rate / 12 / 100, n = years * 12
    """
    months = max(years, 0) * 12
    invested = monthly_amount * months
    if months == 0:
        return SipProjection(invested=0.0, total=0.0)

    i = annual_rate_percent / 12 / 100
    if i == 0:
        return SipProjection(invested=invested, total=float(round(invested)))

    total = monthly_amount * (((1 + i) ** months - 1) / i) * (1 + i)
    return SipProjection(invested=invested, total=float(round(total)))


def split_plan_equally(total_amount: float, member_names: Sequence[str]) -> list[PlanMember]:
    """
    Give every member the same whole-rupee share of the monthly amount.

    Shares are floored, so the remainder of an uneven split stays unassigned:
    1000 over three members is 333 each.
    """
    if not member_names:
        return []
    share = float(math.floor(total_amount / len(member_names)))
    return [PlanMember(name=name, amount=max(share, 0.0)) for name in member_names]


def next_due_date(plan: SipPlan, as_of: dt.date) -> dt.date:
    """
    The installment due date on or after `as_of`.

    A due day past the end of a short month falls on its last day.
    """
    year, month = as_of.year, as_of.month
    due = _due_in_month(plan.day_of_month, year, month)
    if due < as_of:
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
        due = _due_in_month(plan.day_of_month, year, month)
    return due


def _due_in_month(day_of_month: int, year: int, month: int) -> dt.date:
    last_day = calendar.monthrange(year, month)[1]
    return dt.date(year, month, min(day_of_month, last_day))


def is_plan_installment(transaction: Transaction, plan: SipPlan, member_name: str) -> bool:
    """
    True when the transaction pays `member_name`'s share of the plan.

    The plan name must appear in the description (any case) and the member
    must be one of the investors or the creator.
    """
    if not plan.name:
        return False
    if plan.name.lower() not in transaction.description.lower():
        return False
    return member_name in (transaction.investors or []) or transaction.user_name == member_name


def has_paid_installment(
    transactions: Iterable[Transaction],
    plan: SipPlan,
    member_name: str,
    year: int,
    month: int,
) -> bool:
    """True when the member has an installment for the plan dated in the given month."""
    for t in transactions:
        if t.date is None or t.date.year != year or t.date.month != month:
            continue
        if is_plan_installment(t, plan, member_name):
            return True
    return False


def compute_plan_payment_status(
    transactions: Sequence[Transaction],
    plan: SipPlan,
    as_of: dt.date,
) -> list[MemberPaymentStatus]:
    """
    PAID or PENDING for every member of the plan, in member order.

    A member is PAID once an installment dated in the calendar month of
    `as_of` exists; otherwise the installment is PENDING until the next
    due date.
    """
    due = next_due_date(plan, as_of)
    days_remaining = (due - as_of).days
    statuses = []
    for member in plan.members:
        paid = has_paid_installment(transactions, plan, member.name, as_of.year, as_of.month)
        statuses.append(MemberPaymentStatus(
            name=member.name,
            amount=member.amount,
            status=PaymentStatus.PAID if paid else PaymentStatus.PENDING,
            next_due_date=due,
            days_remaining=days_remaining,
        ))
    return statuses


def build_installment_draft(
    plan: SipPlan,
    member_name: str,
    payer: User,
    on: dt.date,
    attachment: Optional[str] = None,
) -> TransactionDraft:
    """
    The transaction recording one member's installment.

    The payer is whoever records it; the member is the sole investor, so
    team contribution credits the member.

    Raises:
        ValueError: If the member is not on the plan
    """
    share = plan.share_of(member_name)
    if share is None:
        raise ValueError(f"{member_name!r} is not a member of plan {plan.name!r}")
    return TransactionDraft(
        user_id=payer.id,
        user_name=payer.name,
        date=on,
        type=TransactionType.EXPENSE,
        category="SIP Investment",
        amount=share,
        payment_method=PaymentMethod.BANK_TRANSFER,
        description=f"SIP Installment: {plan.name}",
        investment_type=InvestmentType.TEAM,
        investors=[member_name],
        attachment=attachment,
    )

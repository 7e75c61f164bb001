"""Aggregation package: pure computations over transaction snapshots."""

from src.aggregation.engine import (
    AttributionKey,
    compute_category_breakdown,
    compute_dashboard,
    compute_monthly_series,
    compute_payment_channel_summary,
    compute_period_totals,
    compute_statement,
    compute_team_contribution,
)
from src.aggregation.filters import (
    DateRange,
    filter_transactions,
    same_month,
    same_year,
)
from src.aggregation.investments import (
    build_installment_draft,
    compute_plan_payment_status,
    compute_plan_invested,
    compute_portfolio_history,
    compute_portfolio_total,
    has_paid_installment,
    investment_transactions,
    is_investment,
    is_plan_installment,
    next_due_date,
    project_sip_value,
    split_plan_equally,
)

__all__ = [
    # Engine
    "AttributionKey",
    "compute_category_breakdown",
    "compute_dashboard",
    "compute_monthly_series",
    "compute_payment_channel_summary",
    "compute_period_totals",
    "compute_statement",
    "compute_team_contribution",
    # Filters
    "DateRange",
    "filter_transactions",
    "same_month",
    "same_year",
    # Investments
    "build_installment_draft",
    "compute_plan_payment_status",
    "compute_plan_invested",
    "compute_portfolio_history",
    "compute_portfolio_total",
    "has_paid_installment",
    "investment_transactions",
    "is_investment",
    "is_plan_installment",
    "next_due_date",
    "project_sip_value",
    "split_plan_equally",
]

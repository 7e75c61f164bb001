"""
Data Models Package

This package contains all Pydantic models used in Crew Ledger.
All data flowing through the system must conform to these schemas.
"""

from src.models.transaction import (
    InvestmentType,
    PaymentMethod,
    Transaction,
    TransactionDraft,
    TransactionType,
    User,
    UserDraft,
    ValidationIssue,
    ValidationResult,
    parse_transactions,
    parse_users,
)
from src.models.sip import (
    MemberPaymentStatus,
    PaymentStatus,
    PlanMember,
    SipPlan,
    SipPlanDraft,
    SplitType,
    parse_sip_plans,
)
from src.models.stats import (
    CategoryEntry,
    DashboardResult,
    DashboardSnapshot,
    DashboardStats,
    MonthlyEntry,
    PaymentChannelEntry,
    PaymentChannelSummary,
    PortfolioPoint,
    ReportType,
    SipProjection,
    StatementQuery,
    StatementResult,
    StatementSummary,
    TeamContributionEntry,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Records and drafts
    "InvestmentType",
    "PaymentMethod",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "User",
    "UserDraft",
    "ValidationIssue",
    "ValidationResult",
    "parse_transactions",
    "parse_users",
    # SIP plans
    "MemberPaymentStatus",
    "PaymentStatus",
    "PlanMember",
    "SipPlan",
    "SipPlanDraft",
    "SplitType",
    "parse_sip_plans",
    # Derived values
    "CategoryEntry",
    "DashboardResult",
    "DashboardSnapshot",
    "DashboardStats",
    "MonthlyEntry",
    "PaymentChannelEntry",
    "PaymentChannelSummary",
    "PortfolioPoint",
    "ReportType",
    "SipProjection",
    "StatementQuery",
    "StatementResult",
    "StatementSummary",
    "TeamContributionEntry",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]

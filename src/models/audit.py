"""
Audit Models for Crew Ledger

Every change to the shared ledger is logged for audit purposes.
This provides:
1. Traceability of who recorded, edited or removed what
2. Debugging information when a refresh or save fails
3. A record of which statement figures were produced and when

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTIONS_BULK_DELETED = "transactions_bulk_deleted"
    TRANSACTIONS_BULK_RECATEGORIZED = "transactions_bulk_recategorized"
    VALIDATION_FAILED = "validation_failed"

    # Team members
    MEMBER_CREATED = "member_created"
    MEMBER_UPDATED = "member_updated"
    MEMBER_DELETED = "member_deleted"

    # SIP plans
    SIP_PLAN_CREATED = "sip_plan_created"
    SIP_PLAN_DELETED = "sip_plan_deleted"

    # Reporting
    SNAPSHOT_REFRESHED = "snapshot_refreshed"
    STATEMENT_GENERATED = "statement_generated"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'member', 'statement')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Store-assigned id of the entity"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one user action)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(tx_id, category, amount, cid)
        event = AuditEventBuilder.member_deleted(user_id, cid)
    """

    @staticmethod
    def transaction_created(
        transaction_id: str,
        category: str,
        amount: float,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction recorded: {category} - ₹{amount:,.2f}",
            details={
                "category": category,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        fields: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction updated: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def transactions_bulk_deleted(
        transaction_ids: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_BULK_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"{len(transaction_ids)} transactions deleted",
            details={"ids": transaction_ids},
            is_user_action=True,
        )

    @staticmethod
    def transactions_bulk_recategorized(
        transaction_ids: list[str],
        category: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_BULK_RECATEGORIZED,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"{len(transaction_ids)} transactions moved to '{category}'",
            details={"ids": transaction_ids, "category": category},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Transaction rejected with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def member_changed(
        event_type: AuditEventType,
        user_id: str,
        name: str,
        correlation_id: UUID
    ) -> AuditEvent:
        verbs = {
            AuditEventType.MEMBER_CREATED: "added",
            AuditEventType.MEMBER_UPDATED: "updated",
            AuditEventType.MEMBER_DELETED: "removed",
        }
        return AuditEvent(
            event_type=event_type,
            severity=(
                AuditSeverity.WARNING
                if event_type == AuditEventType.MEMBER_DELETED
                else AuditSeverity.INFO
            ),
            entity_type="member",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"Team member {verbs.get(event_type, 'changed')}: {name or user_id}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def sip_plan_changed(
        event_type: AuditEventType,
        plan_id: str,
        name: str,
        correlation_id: UUID
    ) -> AuditEvent:
        deleted = event_type == AuditEventType.SIP_PLAN_DELETED
        verb = "deleted" if deleted else "created"
        return AuditEvent(
            event_type=event_type,
            severity=AuditSeverity.WARNING if deleted else AuditSeverity.INFO,
            entity_type="sip_plan",
            entity_id=plan_id,
            correlation_id=correlation_id,
            description=f"SIP plan {verb}: {name or plan_id}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def snapshot_refreshed(
        transaction_count: int,
        member_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_REFRESHED,
            severity=AuditSeverity.DEBUG,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description=(
                f"Dashboard refreshed: {transaction_count} transactions, "
                f"{member_count} members"
            ),
            details={
                "transaction_count": transaction_count,
                "member_count": member_count,
            },
        )

    @staticmethod
    def statement_generated(
        period: str,
        net_balance: float,
        transaction_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATEMENT_GENERATED,
            entity_type="statement",
            correlation_id=correlation_id,
            description=f"Statement generated: {period}",
            details={
                "period": period,
                "net_balance": net_balance,
                "transaction_count": transaction_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )

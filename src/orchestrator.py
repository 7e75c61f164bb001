"""
Main Orchestrator for Crew Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Dashboard (poll -> fetch snapshot -> recompute -> publish)
2. Statements (filter -> compute -> audit)
3. Transactions (draft -> validate -> save -> audit)
4. Team roster (add / rename / remove members)
5. SIP plans (create, record installments, track who has paid)

DESIGN DECISION: The orchestrator owns the snapshot lifecycle.
The aggregation engine holds no state; the dashboard flow keeps only
the latest computed snapshot and replaces it wholesale on each refresh.
"""

import asyncio
import datetime as dt
import inspect
from typing import Any, Awaitable, Callable, Optional, Union
from uuid import UUID

import structlog

from src.aggregation import (
    build_installment_draft,
    compute_plan_payment_status,
    split_plan_equally,
)
from src.audit import AuditLogger, create_correlation_id
from src.config import get_settings
from src.models.audit import AuditEventType
from src.models.sip import MemberPaymentStatus, SipPlan, SipPlanDraft, SplitType
from src.models.stats import (
    DashboardResult,
    DashboardSnapshot,
    StatementQuery,
    StatementResult,
)
from src.models.transaction import (
    Transaction,
    TransactionDraft,
    User,
    UserDraft,
    ValidationResult,
)
from src.queries import ReportExecutor
from src.services.storage import (
    InMemoryAuditStorage,
    InMemorySipPlanStore,
    InMemoryTransactionStore,
    InMemoryUserDirectory,
    LedgerApiClient,
    RestSipPlanStore,
    RestTransactionStore,
    RestUserDirectory,
    SipPlanStoreInterface,
    StorageError,
    TransactionStoreInterface,
    UserDirectoryInterface,
)
from src.validation import TransactionValidator


logger = structlog.get_logger(__name__)

UpdateCallback = Callable[[DashboardResult], Union[Awaitable[None], None]]


class DashboardFlow:
    """
    Keeps the dashboard current.

    Flow:
    1. Fetch full snapshot (transactions + roster)
    2. Recompute every view from scratch
    3. Replace the held snapshot
    4. Wait for the refresh interval, repeat

    Overlapping refreshes are not deduplicated; each one computes
    independently from its own snapshot.
    """

    def __init__(
        self,
        executor: ReportExecutor,
        audit_logger: Optional[AuditLogger] = None,
        refresh_interval_seconds: Optional[float] = None,
    ):
        self._executor = executor
        self._audit_logger = audit_logger
        self._interval = (
            refresh_interval_seconds
            if refresh_interval_seconds is not None
            else get_settings().dashboard.refresh_interval_seconds
        )
        self._latest: Optional[DashboardSnapshot] = None

    @property
    def latest(self) -> Optional[DashboardSnapshot]:
        """Most recent successfully computed snapshot."""
        return self._latest

    async def refresh(
        self,
        as_of: Optional[dt.date] = None,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> DashboardResult:
        """
        Re-fetch and recompute.

        On failure the previously held snapshot stays in place
        and the failure is returned to the caller.
        """
        correlation_id = correlation_id or create_correlation_id()
        result = await self._executor.dashboard(as_of=as_of, user_id=user_id)

        if result.success and result.snapshot is not None:
            self._latest = result.snapshot
            if self._audit_logger:
                await self._audit_logger.log_snapshot_refreshed(
                    transaction_count=result.snapshot.transaction_count,
                    member_count=len(result.snapshot.team),
                    correlation_id=correlation_id,
                )
        elif self._audit_logger:
            await self._audit_logger.log_external_service_error(
                service="ledger_api",
                error_message=result.error_message or "Unknown error",
                correlation_id=correlation_id,
            )

        return result

    async def run_polling(
        self,
        on_update: UpdateCallback,
        stop_event: asyncio.Event,
        user_id: Optional[str] = None,
    ) -> int:
        """
        Refresh on a fixed interval until stop_event is set.

        Refreshes once immediately. Returns the number of refreshes done.
        Fetch failures arrive as failed results. Any other exception
        raised by a refresh is logged, audited as a system error and
        also delivered as a failed result.
        """
        refreshes = 0
        while not stop_event.is_set():
            try:
                result = await self.refresh(user_id=user_id)
            except Exception as e:
                # Keep polling; the next tick may recover
                logger.exception("dashboard_refresh_crashed")
                if self._audit_logger:
                    await self._audit_logger.log_error(
                        error_type=type(e).__name__,
                        error_message=str(e),
                        details={"flow": "dashboard_polling"},
                    )
                result = DashboardResult(success=False, error_message=str(e))
            refreshes += 1

            outcome = on_update(result)
            if inspect.isawaitable(outcome):
                await outcome

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue

        logger.info("dashboard_polling_stopped", refreshes=refreshes)
        return refreshes

    async def statement(
        self,
        query: StatementQuery,
        correlation_id: Optional[UUID] = None,
    ) -> StatementResult:
        """Compute statement figures for export."""
        correlation_id = correlation_id or create_correlation_id()
        result = await self._executor.statement(query)

        if self._audit_logger:
            if result.success and result.summary is not None:
                await self._audit_logger.log_statement_generated(
                    period=result.query_description,
                    net_balance=result.summary.net_balance,
                    transaction_count=result.summary.transaction_count,
                    correlation_id=correlation_id,
                )
            else:
                await self._audit_logger.log_external_service_error(
                    service="ledger_api",
                    error_message=result.error_message or "Unknown error",
                    correlation_id=correlation_id,
                )

        return result


class TransactionFlow:
    """
    Orchestrates changes to the shared ledger.

    Every write is validated (for creates) and audited.
    Storage errors are audited and re-raised to the caller.
    """

    def __init__(
        self,
        transaction_store: TransactionStoreInterface,
        user_directory: Optional[UserDirectoryInterface] = None,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = transaction_store
        self._users = user_directory
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger

    async def _roster(self) -> Optional[list[User]]:
        if self._users is None:
            return None
        try:
            return await self._users.list_users()
        except StorageError as e:
            # Investor names just go unchecked
            logger.warning("roster_unavailable", error=str(e))
            return None

    async def _report_failure(self, error: Exception, correlation_id: UUID) -> None:
        if self._audit_logger:
            await self._audit_logger.log_external_service_error(
                service="ledger_api",
                error_message=str(error),
                correlation_id=correlation_id,
            )

    async def record(
        self,
        draft: TransactionDraft,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[Transaction], ValidationResult]:
        """
        Validate and save a new transaction.

        Returns:
            (saved_transaction, validation_result)
            saved_transaction is None when validation found errors.
        """
        correlation_id = correlation_id or create_correlation_id()

        validation = self._validator.validate(draft, roster=await self._roster())
        if not validation.is_valid:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    issues=[
                        {"field": i.field, "type": i.issue_type, "message": i.message}
                        for i in validation.issues
                    ],
                    correlation_id=correlation_id,
                )
            return None, validation

        try:
            saved = await self._store.create_transaction(draft)
        except StorageError as e:
            await self._report_failure(e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_transaction_created(
                transaction_id=saved.id,
                category=saved.category,
                amount=saved.amount or 0.0,
                correlation_id=correlation_id,
            )
        return saved, validation

    async def update(
        self,
        transaction_id: str,
        updates: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """Apply a partial update (camelCase wire field names)."""
        correlation_id = correlation_id or create_correlation_id()
        try:
            updated = await self._store.update_transaction(transaction_id, updates)
        except StorageError as e:
            await self._report_failure(e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_transaction_updated(
                transaction_id=transaction_id,
                fields=sorted(updates),
                correlation_id=correlation_id,
            )
        return updated

    async def delete(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        correlation_id = correlation_id or create_correlation_id()
        try:
            await self._store.delete_transaction(transaction_id)
        except StorageError as e:
            await self._report_failure(e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_transaction_deleted(
                transaction_id=transaction_id,
                correlation_id=correlation_id,
            )

    async def bulk_delete(
        self,
        transaction_ids: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        if not transaction_ids:
            return
        correlation_id = correlation_id or create_correlation_id()
        try:
            await self._store.bulk_delete(transaction_ids)
        except StorageError as e:
            await self._report_failure(e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_bulk_deleted(
                transaction_ids=list(transaction_ids),
                correlation_id=correlation_id,
            )

    async def bulk_update_category(
        self,
        transaction_ids: list[str],
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Move transactions to one category.

        Raises:
            ValueError: If the category is blank
        """
        category = category.strip()
        if not category:
            raise ValueError("Category cannot be empty")
        if not transaction_ids:
            return

        correlation_id = correlation_id or create_correlation_id()
        try:
            await self._store.bulk_update_category(transaction_ids, category)
        except StorageError as e:
            await self._report_failure(e, correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_bulk_recategorized(
                transaction_ids=list(transaction_ids),
                category=category,
                correlation_id=correlation_id,
            )


class TeamFlow:
    """
    Manages the team roster.

    NOTE: Renaming or removing a member leaves their old name on past
    transactions. Team contribution keeps crediting that name.
    """

    def __init__(
        self,
        user_directory: UserDirectoryInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._users = user_directory
        self._audit_logger = audit_logger

    async def list_members(self) -> list[User]:
        return await self._users.list_users()

    async def add_member(
        self,
        draft: UserDraft,
        correlation_id: Optional[UUID] = None,
    ) -> User:
        correlation_id = correlation_id or create_correlation_id()
        user = await self._users.create_user(draft)
        if self._audit_logger:
            await self._audit_logger.log_member_changed(
                event_type=AuditEventType.MEMBER_CREATED,
                user_id=user.id,
                name=user.name,
                correlation_id=correlation_id,
            )
        return user

    async def update_member(
        self,
        user_id: str,
        updates: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> User:
        correlation_id = correlation_id or create_correlation_id()
        user = await self._users.update_user(user_id, updates)
        if self._audit_logger:
            await self._audit_logger.log_member_changed(
                event_type=AuditEventType.MEMBER_UPDATED,
                user_id=user_id,
                name=user.name,
                correlation_id=correlation_id,
            )
        return user

    async def remove_member(
        self,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        correlation_id = correlation_id or create_correlation_id()
        await self._users.delete_user(user_id)
        if self._audit_logger:
            await self._audit_logger.log_member_changed(
                event_type=AuditEventType.MEMBER_DELETED,
                user_id=user_id,
                name="",
                correlation_id=correlation_id,
            )


class SipFlow:
    """
    Manages SIP plans and their monthly installments.

    Plans live in the plan store; installments are ordinary ledger
    transactions recorded through TransactionFlow, so they show up in
    every dashboard view like any other expense.
    """

    def __init__(
        self,
        plan_store: SipPlanStoreInterface,
        transaction_store: TransactionStoreInterface,
        transaction_flow: TransactionFlow,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._plans = plan_store
        self._transactions = transaction_store
        self._transaction_flow = transaction_flow
        self._audit_logger = audit_logger

    async def list_plans(self) -> list[SipPlan]:
        return await self._plans.list_plans()

    async def create_plan(
        self,
        draft: SipPlanDraft,
        correlation_id: Optional[UUID] = None,
    ) -> SipPlan:
        """
        Create a plan. EQUAL plans get their member shares recomputed
        from the monthly amount before saving.
        """
        correlation_id = correlation_id or create_correlation_id()
        if draft.split_type == SplitType.EQUAL:
            members = split_plan_equally(
                draft.total_amount, [m.name for m in draft.members]
            )
            draft = draft.model_copy(update={"members": members})

        plan = await self._plans.create_plan(draft)
        if self._audit_logger:
            await self._audit_logger.log_sip_plan_changed(
                event_type=AuditEventType.SIP_PLAN_CREATED,
                plan_id=plan.id,
                name=plan.name,
                correlation_id=correlation_id,
            )
        return plan

    async def delete_plan(
        self,
        plan_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        correlation_id = correlation_id or create_correlation_id()
        await self._plans.delete_plan(plan_id)
        if self._audit_logger:
            await self._audit_logger.log_sip_plan_changed(
                event_type=AuditEventType.SIP_PLAN_DELETED,
                plan_id=plan_id,
                name="",
                correlation_id=correlation_id,
            )

    async def record_payment(
        self,
        plan: SipPlan,
        member_name: str,
        payer: User,
        on: Optional[dt.date] = None,
        attachment: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[Transaction], ValidationResult]:
        """
        Record one member's installment as a team expense.

        Raises:
            ValueError: If the member is not on the plan
        """
        draft = build_installment_draft(
            plan,
            member_name,
            payer,
            on or dt.date.today(),
            attachment=attachment,
        )
        return await self._transaction_flow.record(draft, correlation_id=correlation_id)

    async def payment_status(
        self,
        plan: SipPlan,
        as_of: Optional[dt.date] = None,
    ) -> list[MemberPaymentStatus]:
        """PAID or PENDING for each member, from a fresh ledger snapshot."""
        transactions = await self._transactions.list_transactions()
        return compute_plan_payment_status(transactions, plan, as_of or dt.date.today())


def create_app_components(
    offline: Optional[bool] = None,
) -> tuple[DashboardFlow, TransactionFlow, TeamFlow, SipFlow]:
    """
    Factory function to create all application components.

    Args:
        offline: Use in-memory stores instead of the REST API.
                 Defaults to the APP offline_mode setting.

    Returns:
        (dashboard_flow, transaction_flow, team_flow, sip_flow)
    """
    settings = get_settings()
    if offline is None:
        offline = settings.app.offline_mode

    if offline:
        transaction_store = InMemoryTransactionStore()
        user_directory = InMemoryUserDirectory()
        plan_store = InMemorySipPlanStore()
        audit_logger = AuditLogger(InMemoryAuditStorage())
    else:
        client = LedgerApiClient(settings.api)
        transaction_store = RestTransactionStore(client)
        user_directory = RestUserDirectory(client)
        plan_store = RestSipPlanStore(client)
        audit_logger = AuditLogger()  # Local-only logging
    logger.info("components_created", offline=offline)

    executor = ReportExecutor(transaction_store, user_directory, settings.dashboard)

    dashboard_flow = DashboardFlow(
        executor,
        audit_logger=audit_logger,
        refresh_interval_seconds=settings.dashboard.refresh_interval_seconds,
    )
    transaction_flow = TransactionFlow(
        transaction_store,
        user_directory=user_directory,
        validator=TransactionValidator(settings.app),
        audit_logger=audit_logger,
    )
    team_flow = TeamFlow(user_directory, audit_logger=audit_logger)
    sip_flow = SipFlow(
        plan_store,
        transaction_store,
        transaction_flow,
        audit_logger=audit_logger,
    )

    return dashboard_flow, transaction_flow, team_flow, sip_flow

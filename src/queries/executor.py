"""
Report Execution

DESIGN DECISION: This is the boundary between the network and the
aggregation engine.
- Fetch a full snapshot from the stores
- Hand it to the pure engine functions
- Turn collaborator failures into a failed result

The engine never sees a network error, and callers never see an
exception from a refresh: they get success=False and a message.
"""

import datetime as dt
from typing import Optional

import structlog

from src.aggregation.engine import (
    AttributionKey,
    compute_dashboard,
    compute_statement,
)
from src.aggregation.filters import DateRange
from src.config import DashboardSettings, get_settings
from src.models.stats import (
    DashboardResult,
    StatementQuery,
    StatementResult,
)
from src.services.storage import (
    StorageError,
    TransactionStoreInterface,
    UserDirectoryInterface,
)


logger = structlog.get_logger(__name__)


class ReportExecutor:
    """
    Computes dashboard and statement figures from live data.

    GUARANTEES:
    - Every result is computed from a fresh snapshot
    - Figures come only from the engine, never estimated
    - A failed fetch yields a failed result, not stale numbers
    """

    def __init__(
        self,
        transaction_store: TransactionStoreInterface,
        user_directory: Optional[UserDirectoryInterface] = None,
        settings: Optional[DashboardSettings] = None,
    ):
        self._transactions = transaction_store
        self._users = user_directory
        self._settings = settings or get_settings().dashboard

    async def dashboard(
        self,
        as_of: Optional[dt.date] = None,
        user_id: Optional[str] = None,
    ) -> DashboardResult:
        """Fetch transactions and roster, then compute every dashboard view."""
        as_of = as_of or dt.date.today()
        try:
            transactions = await self._transactions.list_transactions(user_id=user_id)
            users = await self._users.list_users() if self._users else []
        except StorageError as e:
            logger.warning("dashboard_fetch_failed", error=str(e))
            return DashboardResult(success=False, error_message=str(e))

        snapshot = compute_dashboard(
            transactions,
            users,
            as_of,
            category_limit=self._settings.top_category_limit,
            key=AttributionKey(self._settings.attribution_key),
            unknown_label=self._settings.unknown_member_label,
        )
        return DashboardResult(success=True, snapshot=snapshot)

    async def statement(self, query: StatementQuery) -> StatementResult:
        """Fetch transactions and compute one statement's figures."""
        description = query.describe()
        try:
            transactions = await self._transactions.list_transactions(
                user_id=query.user_id
            )
        except StorageError as e:
            logger.warning("statement_fetch_failed", error=str(e), period=description)
            return StatementResult(
                query=query,
                success=False,
                error_message=str(e),
                query_description=f"Statement failed: {e}",
            )

        summary = compute_statement(
            transactions,
            DateRange.from_query(query),
            payment_method=query.payment_method,
        )
        return StatementResult(
            query=query,
            success=True,
            summary=summary,
            query_description=description,
        )

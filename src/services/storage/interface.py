"""
Abstract Storage Interface

DESIGN DECISION: We define abstract interfaces for the remote collaborators.
This allows us to:
1. Talk to the REST backend in production
2. Use in-memory storage for testing and offline mode
3. Keep aggregation and flows decoupled from transport

The interfaces mirror the backend's CRUD surface and nothing more.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from src.models.audit import AuditEvent
from src.models.sip import SipPlan, SipPlanDraft
from src.models.transaction import (
    Transaction,
    TransactionDraft,
    User,
    UserDraft,
)


class TransactionStoreInterface(ABC):
    """
    Abstract interface for the Transaction Store.

    Transactions are owned by the store. The client creates, updates and
    deletes through this interface and then re-fetches; it never edits a
    Transaction object in place.
    """

    @abstractmethod
    async def list_transactions(
        self,
        user_id: Optional[str] = None,
    ) -> list[Transaction]:
        """
        Fetch the full transaction snapshot.

        Args:
            user_id: Scope the fetch to what this user may see

        Returns:
            All matching transactions (absent optional fields permitted)

        Raises:
            ConnectionError: If the backend cannot be reached
            StorageError: If the backend rejects the request
        """
        pass

    @abstractmethod
    async def create_transaction(self, draft: TransactionDraft) -> Transaction:
        """
        Record a new transaction.

        Returns:
            The stored transaction, including its assigned id
        """
        pass

    @abstractmethod
    async def update_transaction(
        self,
        transaction_id: str,
        updates: dict[str, Any],
    ) -> Transaction:
        """
        Apply a partial update (camelCase wire field names).

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> None:
        """
        Delete one transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    async def bulk_delete(self, transaction_ids: list[str]) -> None:
        """Delete several transactions at once. Unknown ids are ignored."""
        pass

    @abstractmethod
    async def bulk_update_category(
        self,
        transaction_ids: list[str],
        category: str,
    ) -> None:
        """Move several transactions to one category. Unknown ids are ignored."""
        pass


class UserDirectoryInterface(ABC):
    """Abstract interface for the User Directory (team roster)."""

    @abstractmethod
    async def list_users(self) -> list[User]:
        """Fetch the full roster."""
        pass

    @abstractmethod
    async def create_user(self, draft: UserDraft) -> User:
        """Add a team member."""
        pass

    @abstractmethod
    async def update_user(self, user_id: str, updates: dict[str, Any]) -> User:
        """
        Apply a partial update to a member.

        NOTE: Renaming a member does NOT rewrite past transactions.
        Old names stay on their transactions as orphaned labels.

        Raises:
            NotFoundError: If the member doesn't exist
        """
        pass

    @abstractmethod
    async def delete_user(self, user_id: str) -> None:
        """
        Remove a member.

        Raises:
            NotFoundError: If the member doesn't exist
        """
        pass


class SipPlanStoreInterface(ABC):
    """
    Abstract interface for the SIP plan store.

    Plans are created and deleted, never edited. Installments are recorded
    in the Transaction Store, not here.
    """

    @abstractmethod
    async def list_plans(self) -> list[SipPlan]:
        """Fetch every plan."""
        pass

    @abstractmethod
    async def create_plan(self, draft: SipPlanDraft) -> SipPlan:
        """
        Create a plan.

        Returns:
            The stored plan, including its assigned id
        """
        pass

    @abstractmethod
    async def delete_plan(self, plan_id: str) -> None:
        """
        Delete a plan. Its recorded installments stay in the ledger.

        Raises:
            NotFoundError: If the plan doesn't exist
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass

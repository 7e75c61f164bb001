"""
In-Memory Storage Implementation

Used for offline mode and tests. Same contract as the REST stores:
records go in as drafts, come out as Transaction/User records with
an assigned id, and are replaced (never mutated) on update.
"""

from datetime import datetime, timezone
from typing import Any, Iterable, Optional
from uuid import uuid4

from src.models.audit import AuditEvent
from src.models.sip import SipPlan, SipPlanDraft
from src.models.transaction import (
    Transaction,
    TransactionDraft,
    User,
    UserDraft,
)
from src.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    SipPlanStoreInterface,
    TransactionStoreInterface,
    UserDirectoryInterface,
)


class InMemoryTransactionStore(TransactionStoreInterface):
    """Dict-backed Transaction Store, insertion ordered."""

    def __init__(self, transactions: Optional[Iterable[Transaction]] = None):
        self._transactions: dict[str, Transaction] = {}
        for t in transactions or []:
            self._transactions[t.id or uuid4().hex] = t

    async def list_transactions(
        self,
        user_id: Optional[str] = None,
    ) -> list[Transaction]:
        # The shared ledger is visible to every member; user_id only
        # identifies the caller.
        return list(self._transactions.values())

    async def create_transaction(self, draft: TransactionDraft) -> Transaction:
        transaction_id = uuid4().hex
        record = Transaction.model_validate({
            **draft.to_payload(),
            "id": transaction_id,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        })
        self._transactions[transaction_id] = record
        return record

    async def update_transaction(
        self,
        transaction_id: str,
        updates: dict[str, Any],
    ) -> Transaction:
        current = self._transactions.get(transaction_id)
        if current is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        merged = {**current.model_dump(by_alias=False), **_snake_case(updates)}
        merged["id"] = transaction_id
        record = Transaction.model_validate(merged)
        self._transactions[transaction_id] = record
        return record

    async def delete_transaction(self, transaction_id: str) -> None:
        if self._transactions.pop(transaction_id, None) is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

    async def bulk_delete(self, transaction_ids: list[str]) -> None:
        for transaction_id in transaction_ids:
            self._transactions.pop(transaction_id, None)

    async def bulk_update_category(
        self,
        transaction_ids: list[str],
        category: str,
    ) -> None:
        for transaction_id in transaction_ids:
            current = self._transactions.get(transaction_id)
            if current is not None:
                self._transactions[transaction_id] = current.model_copy(
                    update={"category": category}
                )


class InMemoryUserDirectory(UserDirectoryInterface):
    """Dict-backed User Directory, insertion ordered."""

    def __init__(self, users: Optional[Iterable[User]] = None):
        self._users: dict[str, User] = {}
        for user in users or []:
            self._users[user.id or uuid4().hex] = user

    async def list_users(self) -> list[User]:
        return list(self._users.values())

    async def create_user(self, draft: UserDraft) -> User:
        user_id = uuid4().hex
        user = User(
            id=user_id,
            name=draft.name,
            email=draft.email,
            position=draft.position,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self._users[user_id] = user
        return user

    async def update_user(self, user_id: str, updates: dict[str, Any]) -> User:
        current = self._users.get(user_id)
        if current is None:
            raise NotFoundError(f"User not found: {user_id}")
        merged = {**current.model_dump(), **_snake_case(updates)}
        merged["id"] = user_id
        user = User.model_validate(merged)
        self._users[user_id] = user
        return user

    async def delete_user(self, user_id: str) -> None:
        if self._users.pop(user_id, None) is None:
            raise NotFoundError(f"User not found: {user_id}")


class InMemorySipPlanStore(SipPlanStoreInterface):
    """Dict-backed SIP plan store, insertion ordered."""

    def __init__(self, plans: Optional[Iterable[SipPlan]] = None):
        self._plans: dict[str, SipPlan] = {}
        for plan in plans or []:
            self._plans[plan.id or uuid4().hex] = plan

    async def list_plans(self) -> list[SipPlan]:
        return list(self._plans.values())

    async def create_plan(self, draft: SipPlanDraft) -> SipPlan:
        plan_id = uuid4().hex
        plan = SipPlan.model_validate({**draft.to_payload(), "id": plan_id})
        self._plans[plan_id] = plan
        return plan

    async def delete_plan(self, plan_id: str) -> None:
        if self._plans.pop(plan_id, None) is None:
            raise NotFoundError(f"SIP plan not found: {plan_id}")


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]


_WIRE_TO_FIELD = {
    "userId": "user_id",
    "userName": "user_name",
    "paymentMethod": "payment_method",
    "investmentType": "investment_type",
    "bankAccountId": "bank_account_id",
    "bankName": "bank_name",
    "createdAt": "created_at",
}


def _snake_case(updates: dict[str, Any]) -> dict[str, Any]:
    """Map camelCase wire names in a partial update to field names."""
    return {_WIRE_TO_FIELD.get(key, key): value for key, value in updates.items()}

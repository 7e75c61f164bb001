"""
REST Storage Implementation

Talks to the ledger backend over HTTP/JSON:

    GET    /transactions?userId=...     POST /transactions
    PUT    /transactions/{id}           DELETE /transactions/{id}
    POST   /transactions/bulk-delete    POST /transactions/bulk-category
    GET    /users                       POST /users
    PUT    /users/{id}                  DELETE /users/{id}
    GET    /sip-plans                   POST /sip-plans
    DELETE /sip-plans/{id}

TRADEOFFS:
- The backend returns full lists; there is no paging or incremental sync
- Writes are not retried automatically beyond transport failures
  (a timed-out POST may or may not have been applied)

Field-level problems in returned records never fail a fetch; see
Transaction for the lenient parsing rules.
"""

from typing import Any, Optional
from urllib.parse import quote

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config import ApiSettings, get_settings
from src.models.sip import SipPlan, SipPlanDraft, parse_sip_plans
from src.models.transaction import (
    Transaction,
    TransactionDraft,
    User,
    UserDraft,
    parse_transactions,
    parse_users,
)
from src.services.storage.interface import (
    ConnectionError,
    NotFoundError,
    SipPlanStoreInterface,
    StorageError,
    TransactionStoreInterface,
    UserDirectoryInterface,
)


logger = structlog.get_logger(__name__)


class LedgerApiClient:
    """
    Low-level REST client wrapper.

    Handles base URL, timeouts, retry on transport failures and
    mapping of HTTP errors to storage exceptions.
    """

    def __init__(
        self,
        settings: Optional[ApiSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings or get_settings().api
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._settings.base_url,
                timeout=self._settings.timeout_seconds,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "LedgerApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        """
        Send one request and return the decoded JSON body (None if empty).

        Raises:
            ConnectionError: Backend unreachable after all attempts
            NotFoundError: 404
            StorageError: Any other error status, a request that failed
                before a response arrived, or an undecodable body
        """
        client = self._get_client()
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_retries),
            wait=wait_exponential(multiplier=self._settings.retry_wait_seconds, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    response = await client.request(method, path, params=params, json=json)
        except httpx.TransportError as e:
            logger.error("api_unreachable", method=method, path=path, error=str(e))
            raise ConnectionError(f"Failed to reach ledger API: {e}") from e
        except httpx.RequestError as e:
            # Redirect loops, undecodable bodies: not worth retrying
            logger.error("api_request_failed", method=method, path=path, error=str(e))
            raise StorageError(f"Ledger API request failed: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(f"Not found: {method} {path}")
        if response.status_code >= 400:
            detail = self._error_detail(response)
            logger.warning(
                "api_error",
                method=method,
                path=path,
                status=response.status_code,
                detail=detail,
            )
            raise StorageError(f"Ledger API error {response.status_code}: {detail}")

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise StorageError("Ledger API returned invalid JSON payload") from e

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text
        if isinstance(payload, dict):
            return str(payload.get("message") or payload.get("detail") or payload)
        return str(payload)


def _expect_list(payload: Any, resource: str) -> list:
    if not isinstance(payload, list):
        raise StorageError(f"Ledger API returned a non-list payload for {resource}")
    skipped = sum(1 for item in payload if not isinstance(item, dict))
    if skipped:
        logger.warning("malformed_records_skipped", resource=resource, count=skipped)
    return payload


class RestTransactionStore(TransactionStoreInterface):
    """REST implementation of the Transaction Store."""

    def __init__(self, client: Optional[LedgerApiClient] = None):
        self._client = client or LedgerApiClient()

    async def list_transactions(
        self,
        user_id: Optional[str] = None,
    ) -> list[Transaction]:
        params = {"userId": user_id} if user_id else None
        payload = await self._client.request("GET", "/transactions", params=params)
        return parse_transactions(_expect_list(payload, "transactions"))

    async def create_transaction(self, draft: TransactionDraft) -> Transaction:
        body = draft.to_payload()
        payload = await self._client.request("POST", "/transactions", json=body)
        if isinstance(payload, dict):
            return Transaction.model_validate(payload)
        # Backend acknowledged without echoing the record
        return Transaction.model_validate(body)

    async def update_transaction(
        self,
        transaction_id: str,
        updates: dict[str, Any],
    ) -> Transaction:
        payload = await self._client.request(
            "PUT", f"/transactions/{quote(transaction_id, safe='')}", json=updates
        )
        if isinstance(payload, dict):
            return Transaction.model_validate(payload)
        # Backend applied the update without echoing it; read it back
        for transaction in await self.list_transactions():
            if transaction.id == transaction_id:
                return transaction
        raise NotFoundError(f"Transaction not found after update: {transaction_id}")

    async def delete_transaction(self, transaction_id: str) -> None:
        await self._client.request(
            "DELETE", f"/transactions/{quote(transaction_id, safe='')}"
        )

    async def bulk_delete(self, transaction_ids: list[str]) -> None:
        if not transaction_ids:
            return
        await self._client.request(
            "POST", "/transactions/bulk-delete", json={"ids": list(transaction_ids)}
        )

    async def bulk_update_category(
        self,
        transaction_ids: list[str],
        category: str,
    ) -> None:
        if not transaction_ids:
            return
        await self._client.request(
            "POST",
            "/transactions/bulk-category",
            json={"ids": list(transaction_ids), "category": category},
        )


class RestUserDirectory(UserDirectoryInterface):
    """REST implementation of the User Directory."""

    def __init__(self, client: Optional[LedgerApiClient] = None):
        self._client = client or LedgerApiClient()

    async def list_users(self) -> list[User]:
        payload = await self._client.request("GET", "/users")
        return parse_users(_expect_list(payload, "users"))

    async def create_user(self, draft: UserDraft) -> User:
        body = draft.to_payload()
        payload = await self._client.request("POST", "/users", json=body)
        if isinstance(payload, dict):
            return User.model_validate(payload)
        return User.model_validate(body)

    async def update_user(self, user_id: str, updates: dict[str, Any]) -> User:
        payload = await self._client.request(
            "PUT", f"/users/{quote(user_id, safe='')}", json=updates
        )
        if isinstance(payload, dict):
            return User.model_validate(payload)
        for user in await self.list_users():
            if user.id == user_id:
                return user
        raise NotFoundError(f"User not found after update: {user_id}")

    async def delete_user(self, user_id: str) -> None:
        await self._client.request("DELETE", f"/users/{quote(user_id, safe='')}")


class RestSipPlanStore(SipPlanStoreInterface):
    """REST implementation of the SIP plan store."""

    def __init__(self, client: Optional[LedgerApiClient] = None):
        self._client = client or LedgerApiClient()

    async def list_plans(self) -> list[SipPlan]:
        payload = await self._client.request("GET", "/sip-plans")
        return parse_sip_plans(_expect_list(payload, "sip-plans"))

    async def create_plan(self, draft: SipPlanDraft) -> SipPlan:
        body = draft.to_payload()
        payload = await self._client.request("POST", "/sip-plans", json=body)
        if isinstance(payload, dict):
            return SipPlan.model_validate(payload)
        return SipPlan.model_validate(body)

    async def delete_plan(self, plan_id: str) -> None:
        await self._client.request("DELETE", f"/sip-plans/{quote(plan_id, safe='')}")

"""Services package."""

from src.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    InMemoryAuditStorage,
    InMemorySipPlanStore,
    InMemoryTransactionStore,
    InMemoryUserDirectory,
    LedgerApiClient,
    NotFoundError,
    RestSipPlanStore,
    RestTransactionStore,
    RestUserDirectory,
    SipPlanStoreInterface,
    StorageError,
    TransactionStoreInterface,
    UserDirectoryInterface,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "InMemoryAuditStorage",
    "InMemorySipPlanStore",
    "InMemoryTransactionStore",
    "InMemoryUserDirectory",
    "LedgerApiClient",
    "NotFoundError",
    "RestSipPlanStore",
    "RestTransactionStore",
    "RestUserDirectory",
    "SipPlanStoreInterface",
    "StorageError",
    "TransactionStoreInterface",
    "UserDirectoryInterface",
]

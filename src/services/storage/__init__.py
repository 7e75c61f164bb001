"""
Storage Services Package

Provides abstract interfaces and concrete implementations for the remote
Transaction Store, User Directory and SIP plan store.
Currently implements the REST backend, plus in-memory stores for offline
mode and tests.
"""

from src.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    SipPlanStoreInterface,
    StorageError,
    TransactionStoreInterface,
    UserDirectoryInterface,
)
from src.services.storage.http_api import (
    LedgerApiClient,
    RestSipPlanStore,
    RestTransactionStore,
    RestUserDirectory,
)
from src.services.storage.memory import (
    InMemoryAuditStorage,
    InMemorySipPlanStore,
    InMemoryTransactionStore,
    InMemoryUserDirectory,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "SipPlanStoreInterface",
    "TransactionStoreInterface",
    "UserDirectoryInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # REST implementation
    "LedgerApiClient",
    "RestSipPlanStore",
    "RestTransactionStore",
    "RestUserDirectory",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemorySipPlanStore",
    "InMemoryTransactionStore",
    "InMemoryUserDirectory",
]

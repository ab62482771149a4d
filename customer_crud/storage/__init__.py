"""
Storage layer for customer records.

Uses SQLite; one table, one statement per operation.
"""

from customer_crud.storage.database import CustomerDatabase, get_customer_db
from customer_crud.storage.errors import (
    CustomerNotDeletedError,
    CustomerNotFoundError,
    CustomerStoreError,
    CustomerStoreInternalError,
)

__all__ = [
    "CustomerDatabase",
    "get_customer_db",
    "CustomerStoreError",
    "CustomerNotFoundError",
    "CustomerNotDeletedError",
    "CustomerStoreInternalError",
]

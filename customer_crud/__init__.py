"""
Customer CRUD - a small HTTP service for customer records.

Customers can be created, updated, listed, blocked, unblocked and deleted.
Records live in a single SQLite table; the HTTP layer is FastAPI.

Example:
    >>> from customer_crud import get_settings
    >>> settings = get_settings()
    >>> print(settings.database.path)
"""

from customer_crud.config import get_settings

__all__ = ["get_settings"]

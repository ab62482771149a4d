"""
Authentication for the customer routes.

- HTTP Basic header parsing
- Pluggable credential verification (bcrypt-hashed configured login by default)
- Middleware rejecting unauthenticated requests before routing
"""

from customer_crud.auth.dependencies import (
    configured_credentials,
    hash_password,
    parse_basic_credentials,
)
from customer_crud.auth.middleware import BasicAuthMiddleware

__all__ = [
    "BasicAuthMiddleware",
    "configured_credentials",
    "hash_password",
    "parse_basic_credentials",
]

"""
API routers for the customer CRUD service.

Routers:
- customers: Customer CRUD and block/unblock
"""

from customer_crud.routers.customers import router as customers_router

__all__ = ["customers_router"]

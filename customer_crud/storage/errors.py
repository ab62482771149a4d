"""Error kinds raised by the customer store."""


class CustomerStoreError(Exception):
    """Base exception for customer store errors."""

    pass


class CustomerNotFoundError(CustomerStoreError):
    """Requested customer does not exist."""

    def __init__(self, customer_id: int):
        super().__init__(f"Customer {customer_id} not found")
        self.customer_id = customer_id


class CustomerNotDeletedError(CustomerStoreError):
    """Delete statement affected no rows."""

    def __init__(self, customer_id: int):
        super().__init__(f"No rows deleted for customer {customer_id}")
        self.customer_id = customer_id


class CustomerStoreInternalError(CustomerStoreError):
    """
    Unexpected database fault.

    The underlying error is logged where it occurs and chained as __cause__;
    callers only see the operation name.
    """

    def __init__(self, operation: str):
        super().__init__(f"Customer store operation '{operation}' failed")
        self.operation = operation

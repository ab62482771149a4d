"""
Customer data models.

A customer is the only entity in the service. The store assigns `id` and
`created`; clients only ever supply `name` and `phone`.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator

# Largest value a SQLite INTEGER column can hold
SQLITE_MAX_INTEGER = 2**63 - 1


class Customer(BaseModel):
    """
    Customer record as stored in the `customers` table.

    `created` is None only when echoing an update that matched no row.
    """

    id: int = Field(..., description="Store-assigned identifier")
    name: str
    phone: str
    active: bool = Field(default=True)
    created: datetime | None = Field(default_factory=lambda: datetime.now(UTC))


class CustomerSave(BaseModel):
    """
    Schema for creating or updating a customer.

    id == 0 means "not yet persisted" and triggers an insert; any other id
    updates the existing row. No format or presence checks on name/phone.
    """

    id: int = Field(default=0, ge=-SQLITE_MAX_INTEGER - 1, le=SQLITE_MAX_INTEGER)
    name: str = Field(default="")
    phone: str = Field(default="")

    @field_validator("id", mode="before")
    @classmethod
    def null_id_is_new(cls, v):
        return 0 if v is None else v

    @field_validator("name", "phone", mode="before")
    @classmethod
    def null_is_empty(cls, v):
        return "" if v is None else v

    @property
    def is_new(self) -> bool:
        return self.id == 0

"""
Customer API endpoints.

Each handler extracts its parameters, performs exactly one store call and
serializes the result. Store errors are not caught here: the exception
handlers registered in customer_crud.main map them to status codes.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Path, status

from customer_crud.models.customer import SQLITE_MAX_INTEGER, Customer, CustomerSave
from customer_crud.storage.database import CustomerDatabase, get_customer_db

router = APIRouter(prefix="/customers", tags=["Customers"])

CustomerId = Annotated[int, Path(ge=-SQLITE_MAX_INTEGER - 1, le=SQLITE_MAX_INTEGER)]


async def require_json_content_type(
    content_type: Optional[str] = Header(None, alias="Content-Type"),
) -> None:
    """Reject requests whose body is not declared as application/json."""
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if media_type != "application/json":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Content-Type must be application/json",
        )


@router.post(
    "",
    response_model=Customer,
    dependencies=[Depends(require_json_content_type)],
)
async def save_customer(
    customer_data: CustomerSave,
    db: CustomerDatabase = Depends(get_customer_db),
) -> Customer:
    """
    Create (id 0) or update (nonzero id) a customer.

    Returns:
        Customer: Stored record, including the generated id on create.
            Updating an unknown id changes nothing and echoes the request.

    Raises:
        400: Malformed JSON or missing JSON content type
    """
    return await db.save_customer(customer_data)


@router.get("", response_model=list[Customer])
async def list_customers(
    db: CustomerDatabase = Depends(get_customer_db),
) -> list[Customer]:
    """List all customers."""
    return await db.list_customers()


# Registered before /{customer_id} so "active" is not parsed as an id
@router.get("/active", response_model=list[Customer])
async def list_active_customers(
    db: CustomerDatabase = Depends(get_customer_db),
) -> list[Customer]:
    """List customers that are not blocked."""
    return await db.list_active_customers()


@router.get("/{customer_id}", response_model=Customer)
async def get_customer(
    customer_id: CustomerId,
    db: CustomerDatabase = Depends(get_customer_db),
) -> Customer:
    """
    Get customer by id.

    Raises:
        400: Id is not an integer
        404: Customer not found
    """
    return await db.get_customer(customer_id)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: CustomerId,
    db: CustomerDatabase = Depends(get_customer_db),
) -> None:
    """
    Permanently delete a customer.

    Raises:
        400: Id is not an integer
        404: Nothing was deleted
    """
    await db.delete_customer(customer_id)


@router.post("/{customer_id}/block", status_code=status.HTTP_204_NO_CONTENT)
async def block_customer(
    customer_id: CustomerId,
    db: CustomerDatabase = Depends(get_customer_db),
) -> None:
    """Mark a customer inactive. Blocking a blocked customer is a no-op."""
    await db.set_customer_active(customer_id, False)


@router.delete("/{customer_id}/block", status_code=status.HTTP_204_NO_CONTENT)
async def unblock_customer(
    customer_id: CustomerId,
    db: CustomerDatabase = Depends(get_customer_db),
) -> None:
    """Mark a customer active again."""
    await db.set_customer_active(customer_id, True)

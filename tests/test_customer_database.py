"""
Tests for the customer store.

Runs every operation against a real SQLite file in a temporary directory.
"""

import sqlite3

import pytest

from customer_crud.models.customer import CustomerSave
from customer_crud.storage.database import CustomerDatabase
from customer_crud.storage.errors import (
    CustomerNotDeletedError,
    CustomerNotFoundError,
    CustomerStoreInternalError,
)


class TestSchema:
    """Test suite for database initialization."""

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, db_path):
        db = CustomerDatabase(db_path=db_path)
        await db.initialize()
        await db.initialize()

        assert await db.count_customers() == 0
        db.close()

    @pytest.mark.asyncio
    async def test_initialize_creates_parent_directory(self, tmp_path):
        db = CustomerDatabase(db_path=str(tmp_path / "nested" / "dir" / "customers.db"))
        await db.initialize()

        assert (tmp_path / "nested" / "dir" / "customers.db").exists()
        db.close()

    @pytest.mark.asyncio
    async def test_in_memory_database(self):
        db = CustomerDatabase(db_path=":memory:")
        await db.initialize()

        customer = await db.save_customer(CustomerSave(name="Mem", phone="1"))
        assert (await db.get_customer(customer.id)).name == "Mem"
        db.close()

    @pytest.mark.asyncio
    async def test_ping(self, customer_db: CustomerDatabase):
        assert await customer_db.ping() is True


class TestSaveCustomer:
    """Test suite for insert/update semantics."""

    @pytest.mark.asyncio
    async def test_insert_returns_generated_id(self, customer_db: CustomerDatabase):
        customer = await customer_db.save_customer(CustomerSave(id=0, name="Alice", phone="123"))

        assert customer.id > 0
        assert customer.name == "Alice"
        assert customer.phone == "123"
        assert customer.active is True
        assert customer.created is not None

    @pytest.mark.asyncio
    async def test_each_insert_creates_distinct_record(self, customer_db: CustomerDatabase):
        first = await customer_db.save_customer(CustomerSave(name="Alice", phone="123"))
        second = await customer_db.save_customer(CustomerSave(name="Alice", phone="123"))

        assert first.id != second.id
        assert await customer_db.count_customers() == 2

    @pytest.mark.asyncio
    async def test_update_in_place(self, customer_db: CustomerDatabase):
        created = await customer_db.save_customer(CustomerSave(name="Alice", phone="123"))
        count_before = await customer_db.count_customers()

        updated = await customer_db.save_customer(
            CustomerSave(id=created.id, name="Alice Smith", phone="456")
        )

        assert updated.id == created.id
        assert updated.name == "Alice Smith"
        assert updated.phone == "456"
        assert updated.created == created.created
        assert await customer_db.count_customers() == count_before

    @pytest.mark.asyncio
    async def test_update_keeps_active_flag(self, customer_db: CustomerDatabase):
        created = await customer_db.save_customer(CustomerSave(name="Bob", phone="1"))
        await customer_db.set_customer_active(created.id, False)

        updated = await customer_db.save_customer(CustomerSave(id=created.id, name="Bob", phone="2"))

        assert updated.active is False

    @pytest.mark.asyncio
    async def test_update_unknown_id_is_noop(self, customer_db: CustomerDatabase):
        existing = await customer_db.save_customer(CustomerSave(name="Alice", phone="1"))

        echoed = await customer_db.save_customer(CustomerSave(id=999, name="Ghost", phone="0"))

        assert echoed.id == 999
        assert echoed.name == "Ghost"
        assert echoed.phone == "0"
        assert echoed.active is False
        assert echoed.created is None
        assert await customer_db.count_customers() == 1
        assert await customer_db.get_customer(existing.id) == existing
        with pytest.raises(CustomerNotFoundError):
            await customer_db.get_customer(999)


class TestGetCustomer:
    """Test suite for fetch by id."""

    @pytest.mark.asyncio
    async def test_returns_stored_record(self, customer_db: CustomerDatabase):
        created = await customer_db.save_customer(CustomerSave(name="Alice", phone="123"))

        fetched = await customer_db.get_customer(created.id)

        assert fetched == created

    @pytest.mark.asyncio
    async def test_missing_id(self, customer_db: CustomerDatabase):
        with pytest.raises(CustomerNotFoundError) as exc_info:
            await customer_db.get_customer(999)

        assert exc_info.value.customer_id == 999


class TestListCustomers:
    """Test suite for list all / list active."""

    @pytest.mark.asyncio
    async def test_list_empty(self, customer_db: CustomerDatabase):
        assert await customer_db.list_customers() == []
        assert await customer_db.list_active_customers() == []

    @pytest.mark.asyncio
    async def test_list_all_includes_blocked(self, customer_db: CustomerDatabase):
        alice = await customer_db.save_customer(CustomerSave(name="Alice", phone="1"))
        bob = await customer_db.save_customer(CustomerSave(name="Bob", phone="2"))
        await customer_db.set_customer_active(bob.id, False)

        customers = await customer_db.list_customers()

        assert [c.id for c in customers] == [alice.id, bob.id]

    @pytest.mark.asyncio
    async def test_list_active_never_returns_inactive(self, customer_db: CustomerDatabase):
        ids = []
        for i in range(5):
            customer = await customer_db.save_customer(CustomerSave(name=f"c{i}", phone=str(i)))
            ids.append(customer.id)
        await customer_db.set_customer_active(ids[1], False)
        await customer_db.set_customer_active(ids[3], False)

        active = await customer_db.list_active_customers()

        assert [c.id for c in active] == [ids[0], ids[2], ids[4]]
        assert all(c.active for c in active)


class TestDeleteCustomer:
    """Test suite for hard delete."""

    @pytest.mark.asyncio
    async def test_delete_existing(self, customer_db: CustomerDatabase):
        keep = await customer_db.save_customer(CustomerSave(name="Keep", phone="1"))
        gone = await customer_db.save_customer(CustomerSave(name="Gone", phone="2"))

        await customer_db.delete_customer(gone.id)

        assert await customer_db.count_customers() == 1
        assert (await customer_db.get_customer(keep.id)).name == "Keep"
        with pytest.raises(CustomerNotFoundError):
            await customer_db.get_customer(gone.id)

    @pytest.mark.asyncio
    async def test_delete_missing(self, customer_db: CustomerDatabase):
        with pytest.raises(CustomerNotDeletedError):
            await customer_db.delete_customer(999)

    @pytest.mark.asyncio
    async def test_delete_twice(self, customer_db: CustomerDatabase):
        customer = await customer_db.save_customer(CustomerSave(name="Once", phone="1"))
        await customer_db.delete_customer(customer.id)

        with pytest.raises(CustomerNotDeletedError):
            await customer_db.delete_customer(customer.id)


class TestSetCustomerActive:
    """Test suite for block/unblock."""

    @pytest.mark.asyncio
    async def test_block_is_idempotent(self, customer_db: CustomerDatabase):
        customer = await customer_db.save_customer(CustomerSave(name="Alice", phone="1"))

        await customer_db.set_customer_active(customer.id, False)
        await customer_db.set_customer_active(customer.id, False)

        assert (await customer_db.get_customer(customer.id)).active is False

    @pytest.mark.asyncio
    async def test_unblock(self, customer_db: CustomerDatabase):
        customer = await customer_db.save_customer(CustomerSave(name="Alice", phone="1"))
        await customer_db.set_customer_active(customer.id, False)

        await customer_db.set_customer_active(customer.id, True)

        assert (await customer_db.get_customer(customer.id)).active is True

    @pytest.mark.asyncio
    async def test_unblock_active_customer_is_noop(self, customer_db: CustomerDatabase):
        customer = await customer_db.save_customer(CustomerSave(name="Alice", phone="1"))

        await customer_db.set_customer_active(customer.id, True)

        assert await customer_db.get_customer(customer.id) == customer

    @pytest.mark.asyncio
    async def test_missing_id(self, customer_db: CustomerDatabase):
        with pytest.raises(CustomerNotFoundError):
            await customer_db.set_customer_active(999, False)


class TestInternalErrors:
    """Database faults surface as CustomerStoreInternalError."""

    @pytest.mark.asyncio
    async def test_missing_table(self, customer_db: CustomerDatabase):
        conn = customer_db._get_connection()
        conn.execute("DROP TABLE customers")
        conn.commit()

        with pytest.raises(CustomerStoreInternalError) as exc_info:
            await customer_db.get_customer(1)

        assert exc_info.value.operation == "get_customer"
        assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)

        for operation in (
            customer_db.list_customers(),
            customer_db.list_active_customers(),
            customer_db.save_customer(CustomerSave(name="x", phone="y")),
            customer_db.delete_customer(1),
            customer_db.set_customer_active(1, False),
        ):
            with pytest.raises(CustomerStoreInternalError):
                await operation

    @pytest.mark.asyncio
    async def test_corrupt_row(self, customer_db: CustomerDatabase):
        conn = customer_db._get_connection()
        conn.execute(
            "INSERT INTO customers (name, phone, active, created) VALUES ('a', 'b', 1, 'not-a-date')"
        )
        conn.commit()

        with pytest.raises(CustomerStoreInternalError):
            await customer_db.list_customers()

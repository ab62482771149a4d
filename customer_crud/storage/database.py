"""
Customer storage using SQLite.

Every public operation is one or two SQL statements against the `customers`
table. Database faults are logged here with full detail and re-raised as
CustomerStoreInternalError so callers only ever see a coarse error kind.
"""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

from fastapi import Request

from customer_crud.config import MEMORY_DATABASE
from customer_crud.models.customer import Customer, CustomerSave
from customer_crud.storage.errors import (
    CustomerNotDeletedError,
    CustomerNotFoundError,
    CustomerStoreInternalError,
)

logger = logging.getLogger(__name__)

_CUSTOMER_COLUMNS = "id, name, phone, active, created"


class CustomerDatabase:
    """
    Customer storage.

    Holds a single connection shared by all requests. The service runs on
    one event loop, so statements never interleave on the connection.
    The table is the only source of truth; nothing is cached between calls.
    """

    def __init__(
        self,
        db_path: str = "./data/customers.db",
        connect_timeout_seconds: float = 5.0,
    ):
        """
        Initialize customer database.

        Args:
            db_path: Path to SQLite database file, or ":memory:"
            connect_timeout_seconds: Bound on opening the connection and on
                waiting for a locked database
        """
        self.db_path = db_path
        self.connect_timeout_seconds = connect_timeout_seconds

        # Connection will be created lazily
        self._conn: sqlite3.Connection | None = None
        self._initialized = False

    async def initialize(self) -> None:
        """
        Open the connection and create the schema.

        Idempotent - safe to call multiple times.

        Raises:
            sqlite3.Error: If the database cannot be opened (startup failure)
        """
        if self._initialized:
            return

        logger.info(f"Initializing customer database at {self.db_path}")

        if self.db_path != MEMORY_DATABASE:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        conn = self._get_connection()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS customers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    phone TEXT NOT NULL,
                    active INTEGER NOT NULL DEFAULT 1,
                    created TEXT NOT NULL,

                    CHECK (active IN (0, 1))
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_customers_active ON customers(active)")
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

        self._initialized = True
        logger.info("Customer database initialized successfully")

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection (creates if needed)."""
        if self._conn is None:
            self._conn = sqlite3.connect(
                self.db_path,
                timeout=self.connect_timeout_seconds,
                check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
        return self._conn

    @contextmanager
    def _internal_errors(self, operation: str, **context) -> Iterator[sqlite3.Connection]:
        """Yield the connection; translate database faults into CustomerStoreInternalError."""
        conn = self._get_connection()
        try:
            yield conn
        except (sqlite3.Error, ValueError) as e:
            logger.error(
                f"Customer store operation '{operation}' failed: {e}",
                extra=context,
                exc_info=True,
            )
            if conn.in_transaction:
                conn.rollback()
            raise CustomerStoreInternalError(operation) from e

    @staticmethod
    def _row_to_customer(row: sqlite3.Row) -> Customer:
        return Customer(
            id=row["id"],
            name=row["name"],
            phone=row["phone"],
            active=bool(row["active"]),
            created=datetime.fromisoformat(row["created"]),
        )

    async def get_customer(self, customer_id: int) -> Customer:
        """
        Get customer by ID.

        Raises:
            CustomerNotFoundError: No row with this id
            CustomerStoreInternalError: Any other fault
        """
        with self._internal_errors("get_customer", customer_id=customer_id) as conn:
            row = conn.execute(
                f"SELECT {_CUSTOMER_COLUMNS} FROM customers WHERE id = ?", (customer_id,)
            ).fetchone()

            if row is None:
                raise CustomerNotFoundError(customer_id)

            return self._row_to_customer(row)

    async def list_customers(self) -> list[Customer]:
        """List every customer, ordered by id."""
        with self._internal_errors("list_customers") as conn:
            rows = conn.execute(
                f"SELECT {_CUSTOMER_COLUMNS} FROM customers ORDER BY id"
            ).fetchall()
            return [self._row_to_customer(row) for row in rows]

    async def list_active_customers(self) -> list[Customer]:
        """
        List customers whose active flag is set.

        The query filters on `active`; each row is checked again before it is
        returned so an inactive record can never leak into the result.
        """
        customers = []
        with self._internal_errors("list_active_customers") as conn:
            rows = conn.execute(
                f"SELECT {_CUSTOMER_COLUMNS} FROM customers WHERE active = 1 ORDER BY id"
            ).fetchall()

            for row in rows:
                customer = self._row_to_customer(row)
                if not customer.active:
                    continue
                customers.append(customer)

        return customers

    async def save_customer(self, data: CustomerSave) -> Customer:
        """
        Create or update a customer.

        Args:
            data: id 0 inserts a new row, any other id updates name/phone

        Returns:
            Customer: The stored record (with the generated id on insert).
                An update that matches no row writes nothing and echoes the
                submitted fields back (inactive, no creation time).

        Raises:
            CustomerStoreInternalError: Any database fault
        """
        if data.is_new:
            created = datetime.now(UTC)
            with self._internal_errors("insert_customer") as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO customers (name, phone, active, created)
                    VALUES (?, ?, 1, ?)
                    """,
                    (data.name, data.phone, created.isoformat()),
                )
                conn.commit()

            logger.info(f"Created customer: {cursor.lastrowid}")
            return Customer(
                id=cursor.lastrowid,
                name=data.name,
                phone=data.phone,
                active=True,
                created=created,
            )

        with self._internal_errors("update_customer", customer_id=data.id) as conn:
            cursor = conn.execute(
                "UPDATE customers SET name = ?, phone = ? WHERE id = ?",
                (data.name, data.phone, data.id),
            )
            conn.commit()

            row = None
            if cursor.rowcount > 0:
                row = conn.execute(
                    f"SELECT {_CUSTOMER_COLUMNS} FROM customers WHERE id = ?", (data.id,)
                ).fetchone()

            if row is not None:
                return self._row_to_customer(row)

        logger.info(f"Update matched no customer: {data.id}")
        return Customer(
            id=data.id,
            name=data.name,
            phone=data.phone,
            active=False,
            created=None,
        )

    async def delete_customer(self, customer_id: int) -> None:
        """
        Hard-delete a customer.

        Raises:
            CustomerNotDeletedError: No row was deleted
            CustomerStoreInternalError: Any other fault
        """
        with self._internal_errors("delete_customer", customer_id=customer_id) as conn:
            cursor = conn.execute("DELETE FROM customers WHERE id = ?", (customer_id,))
            conn.commit()

        if cursor.rowcount == 0:
            raise CustomerNotDeletedError(customer_id)

        logger.info(f"Deleted customer: {customer_id}")

    async def set_customer_active(self, customer_id: int, active: bool) -> None:
        """
        Block (active=False) or unblock (active=True) a customer.

        Reads the row once; if the flag already has the desired value nothing
        is written.

        Raises:
            CustomerNotFoundError: No row with this id
            CustomerStoreInternalError: Any other fault
        """
        with self._internal_errors("set_customer_active", customer_id=customer_id) as conn:
            row = conn.execute(
                "SELECT active FROM customers WHERE id = ?", (customer_id,)
            ).fetchone()

            if row is None:
                raise CustomerNotFoundError(customer_id)

            if bool(row["active"]) == active:
                logger.debug(f"Customer {customer_id} already has active={active}")
                return

            conn.execute(
                "UPDATE customers SET active = ? WHERE id = ?",
                (1 if active else 0, customer_id),
            )
            conn.commit()

        logger.info(f"Set customer {customer_id} active={active}")

    async def count_customers(self) -> int:
        """Number of rows in the table."""
        with self._internal_errors("count_customers") as conn:
            return conn.execute("SELECT COUNT(*) FROM customers").fetchone()[0]

    async def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        try:
            self._get_connection().execute("SELECT 1").fetchone()
        except sqlite3.Error as e:
            logger.warning(f"Customer database ping failed: {e}")
            return False
        return True

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self._initialized = False


def get_customer_db(request: Request) -> CustomerDatabase:
    """
    FastAPI dependency returning the store built by create_app().

    Returns:
        CustomerDatabase: Initialized database
    """
    return request.app.state.customer_db

#!/usr/bin/env python3
"""
Database initialization script for the customer CRUD service.

Creates the customers table in the configured SQLite database.

Usage:
    python scripts/init_customer_db.py [--dsn DSN] [--create-demo] [--hash-password PASSWORD]

Options:
    --dsn DSN                   Database connection string (default: DATABASE_DSN or
                                sqlite:///./data/customers.db)
    --create-demo               Insert a demo customer
    --hash-password PASSWORD    Print a bcrypt hash for AUTH_BASIC_PASSWORD_HASH and exit

This script is idempotent - safe to run multiple times.
"""

import argparse
import asyncio
import logging
import sys

from customer_crud.auth import hash_password
from customer_crud.config import get_settings, normalize_database_dsn
from customer_crud.models.customer import CustomerSave
from customer_crud.storage.database import CustomerDatabase

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def init_database(db_path: str, create_demo: bool = False) -> bool:
    """
    Initialize customer database schema.

    Args:
        db_path: Path to SQLite database file
        create_demo: Also insert a demo customer

    Returns:
        bool: True if initialization succeeded
    """
    db = CustomerDatabase(db_path=db_path)
    try:
        await db.initialize()

        if create_demo:
            customer = await db.save_customer(CustomerSave(name="Demo Customer", phone="+10000000000"))
            logger.info(f"✓ Demo customer created: id={customer.id}")

        count = await db.count_customers()
        logger.info(f"✓ customers: {count} rows")
        return True

    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)
        return False

    finally:
        db.close()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Initialize customer database schema")
    parser.add_argument("--dsn", default=None, help="Database connection string")
    parser.add_argument(
        "--create-demo",
        action="store_true",
        help="Insert a demo customer",
    )
    parser.add_argument(
        "--hash-password",
        metavar="PASSWORD",
        default=None,
        help="Print a bcrypt hash for AUTH_BASIC_PASSWORD_HASH and exit",
    )

    args = parser.parse_args()

    if args.hash_password is not None:
        print(hash_password(args.hash_password))
        return

    db_path = normalize_database_dsn(args.dsn) if args.dsn else get_settings().database.path

    if not asyncio.run(init_database(db_path, create_demo=args.create_demo)):
        logger.error("❌ Database initialization failed")
        sys.exit(1)

    logger.info("=== Database Ready ===")
    logger.info(f"Database path: {db_path}")


if __name__ == "__main__":
    main()

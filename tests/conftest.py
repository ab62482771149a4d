"""
Pytest configuration and fixtures.

Provides shared fixtures for:
- Test settings pointing at a temporary SQLite file
- An initialized customer database
- FastAPI test client (lifespan runs, so the schema is created)
"""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from customer_crud.config import AuthConfig, DatabaseConfig, LoggingConfig, Settings
from customer_crud.main import create_app
from customer_crud.storage.database import CustomerDatabase


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "customers.db")


@pytest.fixture
def test_settings(db_path: str) -> Settings:
    """Create test settings with a temporary database and no authentication."""
    return Settings(
        database=DatabaseConfig(dsn=f"sqlite:///{db_path}", connect_timeout_seconds=1.0),
        logging=LoggingConfig(level="DEBUG", json_output=False),
        auth=AuthConfig(basic_login=None, basic_password_hash=None),
    )


@pytest_asyncio.fixture
async def customer_db(db_path: str):
    """Initialized customer database, closed after the test."""
    db = CustomerDatabase(db_path=db_path)
    await db.initialize()
    yield db
    db.close()


@pytest.fixture
def app_db(db_path: str) -> CustomerDatabase:
    """Store handed to the application under test."""
    return CustomerDatabase(db_path=db_path)


@pytest.fixture
def app_client(test_settings: Settings, app_db: CustomerDatabase):
    """Create FastAPI test client backed by a temporary database."""
    app = create_app(settings=test_settings, customer_db=app_db)

    with TestClient(app) as client:
        yield client


@pytest.fixture
def create_customer(app_client: TestClient):
    """POST a new customer and return the response JSON."""

    def _create(name: str = "Alice", phone: str = "123") -> dict:
        response = app_client.post("/customers", json={"id": 0, "name": name, "phone": phone})
        assert response.status_code == 200
        return response.json()

    return _create

"""
FastAPI application for the customer CRUD service.

Composition: settings -> CustomerDatabase -> customer routes. The store is
built once per application and handed to handlers through app.state.

Run with:
    customer-crud
    uvicorn customer_crud.main:create_app --factory
"""

from contextlib import asynccontextmanager
from http import HTTPStatus

import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from customer_crud.auth import BasicAuthMiddleware, configured_credentials
from customer_crud.auth.dependencies import CredentialVerifier
from customer_crud.config import Settings, get_settings
from customer_crud.observability.logging import configure_logging, get_logger
from customer_crud.observability.logging_middleware import StructuredLoggingMiddleware
from customer_crud.routers import customers_router
from customer_crud.storage import (
    CustomerDatabase,
    CustomerNotDeletedError,
    CustomerNotFoundError,
    CustomerStoreError,
    CustomerStoreInternalError,
)

logger = get_logger(__name__)

STORE_ERROR_STATUS = {
    CustomerNotFoundError: status.HTTP_404_NOT_FOUND,
    CustomerNotDeletedError: status.HTTP_404_NOT_FOUND,
    CustomerStoreInternalError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    database: bool


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open the customer database on startup and close it on shutdown.

    A failure here aborts startup; uvicorn then exits non-zero.
    """
    customer_db: CustomerDatabase = app.state.customer_db

    logger.info("=== Customer CRUD Service Starting ===")
    try:
        await customer_db.initialize()
        logger.info("✓ Customer database ready", db_path=customer_db.db_path)

        logger.info("=== Service Ready ===")
        yield

    except Exception as e:
        logger.error(f"Startup failed: {e}", exc_info=True)
        raise

    finally:
        customer_db.close()
        logger.info("=== Shutdown complete ===")


def register_exception_handlers(app: FastAPI) -> None:
    """Map request and store errors to HTTP status codes."""

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        """Malformed ids and bodies are client errors (400), not 422."""
        errors = [
            {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
        logger.warning(
            "Request validation failed",
            method=request.method,
            path=request.url.path,
            errors=errors,
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": HTTPStatus.BAD_REQUEST.phrase, "errors": errors},
        )

    @app.exception_handler(CustomerStoreError)
    async def customer_store_error_handler(request: Request, exc: CustomerStoreError):
        """Expose only the error kind; the store has already logged any detail."""
        status_code = STORE_ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
        return JSONResponse(
            status_code=status_code,
            content={"detail": HTTPStatus(status_code).phrase},
        )


def create_app(
    settings: Settings | None = None,
    customer_db: CustomerDatabase | None = None,
    credential_verifier: CredentialVerifier | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration (defaults to environment via get_settings())
        customer_db: Store to serve from (defaults to one built from settings)
        credential_verifier: Basic auth predicate; overrides the configured login

    Returns:
        FastAPI: Application with routes, middleware and error handlers
    """
    settings = settings or get_settings()

    configure_logging(
        log_level=settings.logging.level,
        json_output=settings.logging.json_output,
        colorized=settings.logging.colorized,
        service_name=settings.logging.service_name,
        service_version=settings.logging.service_version,
        environment=settings.logging.environment,
    )

    if customer_db is None:
        customer_db = CustomerDatabase(
            db_path=settings.database.path,
            connect_timeout_seconds=settings.database.connect_timeout_seconds,
        )

    app = FastAPI(
        title="Customer CRUD API",
        description="Create, list, block and delete customer records",
        version=settings.logging.service_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.customer_db = customer_db

    register_exception_handlers(app)
    app.include_router(customers_router)

    if credential_verifier is None and settings.auth.enabled:
        credential_verifier = configured_credentials(
            settings.auth.basic_login, settings.auth.basic_password_hash
        )

    # Added first so request logging wraps it and records 401s
    if credential_verifier is not None:
        app.add_middleware(
            BasicAuthMiddleware,
            verify=credential_verifier,
            protected_prefix=customers_router.prefix,
        )
        logger.info("Basic authentication enabled for customer routes")
    else:
        logger.warning("Basic authentication disabled for customer routes")

    app.add_middleware(StructuredLoggingMiddleware)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health(request: Request, response: Response) -> HealthResponse:
        """Liveness plus a database ping. 503 when the database does not answer."""
        database_ok = await request.app.state.customer_db.ping()
        if not database_ok:
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

        return HealthResponse(
            status="ok" if database_ok else "unavailable",
            service=settings.logging.service_name,
            version=app.version,
            database=database_ok,
        )

    return app


def run() -> None:
    """Console entry point: serve until terminated."""
    settings = get_settings()

    uvicorn.run(
        create_app(settings),
        host=settings.service.host,
        port=settings.service.port,
        log_level=settings.service.log_level.lower(),
    )


if __name__ == "__main__":
    run()

"""
FastAPI Application Entry Point.

This is the main application file for the Treasury Ledger Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from treasury_backend.app.core.config import settings
from treasury_backend.app.api.v1.router import router as api_router
from treasury_backend.app.db.row_store import InMemoryRowStore
from treasury_backend.app.db.sheets_store import GoogleSheetsRowStore
from treasury_backend.app.db.session import engine, Base
from treasury_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from treasury_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from treasury_backend.app.models.payment import Payment

logger = logging.getLogger("treasury")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging.
    2. Prepares the configured record store (tables, or a row store handle).
    3. Releases the row store on shutdown.
    """
    configure_logging()

    row_store = None
    if settings.storage_backend == "database":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    elif settings.storage_backend == "sheets":
        row_store = GoogleSheetsRowStore.from_settings(settings)
        await row_store.initialize()
    elif settings.storage_backend == "memory":
        row_store = InMemoryRowStore()
    else:
        raise RuntimeError(f"Unknown storage backend: {settings.storage_backend}")

    app.state.row_store = row_store
    logger.info("Treasury ledger started with '%s' storage", settings.storage_backend)
    yield

    if row_store is not None:
        await row_store.close()
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Cash treasury ledger with VAT derivation and settlement tracking",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "storage_backend": settings.storage_backend,
    }


# Include API router
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to Treasury Ledger Backend API",
        "docs": "/docs",
        "health": "/health",
    }

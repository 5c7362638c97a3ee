"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rentals.api.routes import addresses, billing, health, meters, readings, tenancy
from rentals.core.config import settings
from rentals.core.database import Base, engine
from rentals.core.logging import configure_logging

# Import models for Base.metadata.create_all - order matters for foreign keys
from rentals.models import (
    address,  # noqa: F401
    apartment,  # noqa: F401
    meter,  # noqa: F401
    meter_reading,  # noqa: F401
    tenancy as tenancy_models,  # noqa: F401
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    configure_logging()
    # Startup: Create database tables
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Rental property utility metering and billing",
    lifespan=lifespan,
)

# Include API routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(addresses.router, prefix="/api")
app.include_router(meters.router, prefix="/api")
app.include_router(readings.router, prefix="/api")
app.include_router(billing.router, prefix="/api")
app.include_router(tenancy.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rentals.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )

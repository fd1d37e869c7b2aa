"""FastAPI Application for the Workshop Enrollment Microservice."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workshop_enrollment_ms.features.cart.presentation.router import (
    router as cart_router,
)
from workshop_enrollment_ms.features.catalog.presentation.router import (
    router as workshops_router,
)
from workshop_enrollment_ms.features.checkout.presentation.router import (
    router as checkout_router,
)
from workshop_enrollment_ms.features.enrollments.presentation.router import (
    router as enrollments_router,
)
from workshop_enrollment_ms.features.waitlist.presentation.router import (
    router as waitlist_router,
)
from workshop_enrollment_ms.features.webhooks.presentation.router import (
    router as webhooks_router,
)
from workshop_enrollment_ms.shared.core.logging_config import configure_logging
from workshop_enrollment_ms.shared.core.settings import get_settings
from workshop_enrollment_ms.shared.infrastructure.database import close_db, init_db
from workshop_enrollment_ms.shared.presentation.exception_handlers import (
    register_exception_handlers,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events."""
    settings = get_settings()
    logger.info(f"Workshop Enrollment Microservice starting on {settings.host}:{settings.port}")
    logger.info(
        f"Environment: {settings.environment}, payment provider: {settings.payment_provider}"
    )

    await init_db()

    yield

    await close_db()
    logger.info("Workshop Enrollment Microservice shutting down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title="Workshop Enrollment Microservice",
        description="Admission control, carts, waitlists and payment reconciliation for workshops",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(cart_router, prefix="/api/cart", tags=["Cart"])
    app.include_router(checkout_router, prefix="/api/checkout", tags=["Checkout"])
    app.include_router(waitlist_router, prefix="/api/waitlist", tags=["Waitlist"])
    app.include_router(enrollments_router, prefix="/api/enrollments", tags=["Enrollments"])
    app.include_router(workshops_router, prefix="/api/workshops", tags=["Workshops"])
    app.include_router(webhooks_router, prefix="/api/webhooks", tags=["Webhooks"])

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "workshop-enrollment-ms",
            "provider": settings.payment_provider,
        }

    return app


app = create_app()

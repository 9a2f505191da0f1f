"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from consultant_portal.api.routes import (
    bonus_router,
    client_invoices_router,
    clients_router,
    consultants_router,
    cycles_router,
    equipment_router,
    health_router,
    invoice_line_items_router,
    line_items_router,
    settings_router,
)
from consultant_portal.config import get_settings
from consultant_portal.database import create_schema, dispose_db
from consultant_portal.errors import AppError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    await create_schema()
    yield
    # Shutdown
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Consultant Portal API",
        description="Payroll cycles and client invoicing",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Map service errors to their HTTP status."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(client_invoices_router, prefix="/api")
    app.include_router(invoice_line_items_router, prefix="/api")
    app.include_router(cycles_router, prefix="/api")
    app.include_router(bonus_router, prefix="/api")
    app.include_router(line_items_router, prefix="/api")
    app.include_router(consultants_router, prefix="/api")
    app.include_router(equipment_router, prefix="/api")
    app.include_router(clients_router, prefix="/api")
    app.include_router(settings_router, prefix="/api")

    return app


# Default app instance for uvicorn
app = create_app()

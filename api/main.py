"""
FastAPI application initialization and configuration.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from api.schemas.common import ErrorResponse
from database.engine import init_db, close_db
from api.routes import health
from api.routes.v1 import (
    analytics,
    applications,
    companies,
    documents,
    keywords,
    users,
)

from core.middleware import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    StructuredLoggingMiddleware,
    setup_logging,
)

# Setup structured logging (do this first, before anything else)
setup_logging(
    log_level=settings.log_level,
    json_logs=settings.json_logs,
)

logger = logging.getLogger(__name__)

# Error envelope shared by every v1 route
ERROR_RESPONSES = {
    code: {"model": ErrorResponse}
    for code in (400, 401, 404, 409, 500)
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    logger.info(f"Starting {settings.app_name} in {settings.app_env} environment")
    await init_db()

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await close_db()


def create_app() -> FastAPI:
    """Build the application with middleware and routes."""
    app = FastAPI(
        title=settings.app_name,
        description="Personal job application tracker",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # Setup error handlers (before middleware)
    setup_error_handlers(app)

    # Middleware executes in reverse order of registration
    # 1. Error handling middleware (outermost - catches all errors)
    app.add_middleware(
        ErrorHandlingMiddleware,
        debug=settings.debug,
    )

    # 2. Structured logging middleware (logs all requests/responses)
    app.add_middleware(
        StructuredLoggingMiddleware,
        log_request_body=settings.log_request_body,
        log_response_body=settings.log_response_body,
        max_body_size=settings.log_max_body_size,
    )

    # 3. CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check routes
    app.include_router(health.router, tags=["Health"])

    # API v1 routes
    app.include_router(
        users.router,
        prefix=f"{settings.api_v1_prefix}/users",
        tags=["Users"],
        responses=ERROR_RESPONSES,
    )
    app.include_router(
        companies.router,
        prefix=f"{settings.api_v1_prefix}/companies",
        tags=["Companies"],
        responses=ERROR_RESPONSES,
    )
    app.include_router(
        applications.router,
        prefix=f"{settings.api_v1_prefix}/applications",
        tags=["Applications"],
        responses=ERROR_RESPONSES,
    )
    app.include_router(
        keywords.router,
        prefix=f"{settings.api_v1_prefix}/applications",
        tags=["Keywords"],
        responses=ERROR_RESPONSES,
    )
    app.include_router(
        documents.router,
        prefix=f"{settings.api_v1_prefix}/documents",
        tags=["Documents"],
        responses=ERROR_RESPONSES,
    )
    app.include_router(
        documents.shared_router,
        prefix=f"{settings.api_v1_prefix}/shared",
        tags=["Documents"],
        responses=ERROR_RESPONSES,
    )
    app.include_router(
        analytics.router,
        prefix=f"{settings.api_v1_prefix}/analytics",
        tags=["Analytics"],
        responses=ERROR_RESPONSES,
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )

"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import ValidationError as PydanticValidationError
import logging

from realty_api.config import settings
from realty_api.database import test_database_connection, create_tables, close_db_connection
from realty_api.routers import (
    auth_router,
    users_router,
    properties_router,
    inquiries_router,
    notifications_router,
    admin_router,
    analytics_router
)
from realty_api.utils.exceptions import APIException, ServiceUnavailableError
from realty_api.services.broker import get_broker
from realty_api.services.cache import create_response_cache
from realty_api.services.email_queue import get_email_queue
from realty_api.services.error_handler import ErrorHandlerService
from realty_api.services.maintenance import create_maintenance_tasks, register_maintenance_schedule
from realty_api.services.scheduler import TaskScheduler
from realty_api.middleware import RequestLoggingMiddleware, CacheMiddleware
from realty_api.utils.throttling import api_throttle, init_rate_limiter, close_rate_limiter

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    settings.log_degraded_features()

    db_connected = await test_database_connection()
    if db_connected:
        await create_tables()
    else:
        logger.error("Failed to connect to database on startup")

    await init_rate_limiter()

    scheduler = None
    if settings.enable_scheduler:
        broker = get_broker()
        create_maintenance_tasks(broker)
        scheduler = TaskScheduler()
        register_maintenance_schedule(scheduler, broker)
        scheduler.start()

    yield

    # Shutdown
    logger.info("Shutting down application")
    if scheduler is not None:
        scheduler.shutdown()
    if app.state.response_cache is not None:
        await app.state.response_cache.close()
    await close_rate_limiter()
    await close_db_connection()


# Create FastAPI application instance
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    REST backend for a real-estate listing platform.

    ## Features

    * **Property Directory**: Listings with search, filtering, geo lookup and image galleries
    * **Inquiries**: Public and authenticated inquiries with agent notifications and confirmation emails
    * **Notifications**: Per-user inbox with read tracking
    * **Administration**: Dashboard, analytics, system health and maintenance
    * **Caching**: Redis-backed response cache for hot listing routes

    ## Authentication

    Obtain a JWT from `/api/auth/login` and send it as `Authorization: Bearer <token>`.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Authentication", "description": "Registration, login and token management"},
        {"name": "Users", "description": "User administration"},
        {"name": "Properties", "description": "Property listings, search and images"},
        {"name": "Inquiries", "description": "Buyer inquiries about listings"},
        {"name": "Notifications", "description": "In-app notifications"},
        {"name": "Admin", "description": "Dashboard, analytics and maintenance"},
        {"name": "Analytics", "description": "Client event tracking and reporting"},
        {"name": "Health", "description": "Service health endpoints"},
    ],
    lifespan=lifespan,
)

# Shared clients; connections are opened lazily on first use
app.state.response_cache = create_response_cache()
app.state.email_queue = get_email_queue()

# Middleware runs in reverse order of registration: CORS, logging, cache
app.add_middleware(CacheMiddleware, api_prefix=settings.api_prefix)
app.add_middleware(
    RequestLoggingMiddleware,
    enable_request_logging=settings.debug
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Cache"],
)

# Include API routers; every API route shares the per-IP request budget
for api_router in (
    auth_router,
    users_router,
    properties_router,
    inquiries_router,
    notifications_router,
    admin_router,
    analytics_router,
):
    app.include_router(api_router, prefix=settings.api_prefix, dependencies=[Depends(api_throttle)])

if not settings.media_storage_configured:
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Handle custom API exceptions with structured error responses."""
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors with detailed field information."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    return ErrorHandlerService.handle_database_error(exc, request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with secure error responses."""
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/", tags=["Health"])
async def root():
    """Basic API information."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "healthy",
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "api_prefix": settings.api_prefix
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint with database connectivity test.
    Used by container health checks and load balancers.
    """
    db_healthy = await test_database_connection()
    if not db_healthy:
        raise ServiceUnavailableError("Database connection failed")

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "realty_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

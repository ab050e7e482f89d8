"""
Charity Association Backend - Main FastAPI Application
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import logging
import os

from app.config import Settings, settings as default_settings
from app.db.session import Database, DatabaseConnectionError
from app.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from app.api.v1 import (
    auth,
    members,
    payments,
    expenses,
    vehicles,
    trips,
    maintenance,
    reports,
    pdf
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, default_settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

ROUTERS = [
    (auth.router, "auth", "Authentication"),
    (members.router, "members", "Members"),
    (payments.router, "payments", "Payments"),
    (expenses.router, "expenses", "Expenses"),
    (vehicles.router, "vehicles", "Vehicles"),
    (trips.router, "trips", "Trips"),
    (maintenance.router, "maintenance", "Maintenance"),
    (reports.router, "reports", "Reports"),
    (pdf.router, "pdf", "PDF Reports"),
]


def error_body(message, status_code: int) -> dict:
    if isinstance(message, dict):
        return {"success": False, **message}
    return {"success": False, "message": message if message else f"HTTP {status_code}"}


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.detail, exc.status_code),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"] if part != "body"),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=jsonable_encoder({"success": False, "message": "Validation failed", "errors": errors})
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.exception(f"Internal server error: {exc}")
        content = {
            "success": False,
            "message": "An unexpected error occurred. Please try again later."
        }
        if not settings.is_production:
            content["error"] = str(exc)
        return JSONResponse(status_code=500, content=content)


def create_app(settings: Settings = default_settings, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application around one Database handle

    Tests pass their own handle; the process entry point builds one from settings.
    """
    if database is None:
        database = Database(
            settings.DATABASE_URL,
            engine_options=settings.database_engine_options,
            connect_retries=settings.DATABASE_CONNECT_RETRIES
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan context manager for startup and shutdown events
        """
        logger.info(f"Starting {settings.APP_NAME}...")
        logger.info(f"Environment: {settings.ENVIRONMENT}")

        try:
            database.connect(create_tables=settings.DATABASE_AUTO_CREATE)
        except DatabaseConnectionError as e:
            if settings.database_fail_fast:
                logger.critical(f"Database unreachable, refusing to start: {e}")
                raise
            logger.error(f"Database unreachable, serving in degraded mode: {e}")

        yield

        logger.info("Shutting down...")
        database.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Charity association management API: members, finances, fleet and reports",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan,
        debug=settings.DEBUG
    )
    app.state.db = database
    app.state.auto_create_tables = settings.DATABASE_AUTO_CREATE
    app.state.limiter = limiter

    # ========================================================================
    # MIDDLEWARE
    # ========================================================================

    logger.info(f"CORS configured for origins: {settings.CORS_ORIGINS}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_origin_regex=settings.CORS_ORIGIN_REGEX,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.ALLOWED_HOSTS
    )

    register_exception_handlers(app, settings)

    # ========================================================================
    # ROUTES
    # ========================================================================

    @app.get("/")
    async def root():
        """
        Root endpoint - API status
        """
        return {
            "success": True,
            "message": f"Welcome to {settings.APP_NAME}",
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
            "docs": "/docs",
            "health": "/health"
        }

    @app.get("/health")
    async def health_check(request: Request):
        """
        Health check endpoint for monitoring; stays up without a database
        """
        db: Database = request.app.state.db
        return {
            "success": True,
            "message": "Server is running",
            "timestamp": datetime.utcnow().isoformat(),
            "environment": settings.ENVIRONMENT,
            "database": "connected" if db.ping() else "disconnected"
        }

    for router, path, tag in ROUTERS:
        app.include_router(router, prefix=f"{settings.API_PREFIX}/{path}", tags=[tag])

    # ========================================================================
    # STATIC FILES
    # ========================================================================

    if settings.STORAGE_BACKEND == "local" and os.path.isdir(settings.UPLOAD_BASE_DIR):
        app.mount(settings.STATIC_URL_PREFIX, StaticFiles(directory=settings.UPLOAD_BASE_DIR), name="uploads")
        logger.info(f"Static files mounted at {settings.STATIC_URL_PREFIX} from {settings.UPLOAD_BASE_DIR}")
    else:
        logger.warning(f"Upload directory does not exist: {settings.UPLOAD_BASE_DIR}. Static file serving disabled.")

    return app


app = create_app()


# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
        log_level=default_settings.LOG_LEVEL.lower()
    )

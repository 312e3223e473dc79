"""
FastAPI Main Application
TaskHub API Service
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
import time
import structlog
from contextlib import asynccontextmanager

from taskhub.core.cache import cache
from taskhub.core.config import settings
from taskhub.core.database import AsyncSessionLocal, check_database_health, close_database, init_database
from taskhub.core.exceptions import InvalidTokenError, TaskHubError, UnauthenticatedError
from taskhub.core.logging import setup_logging
from taskhub.api.v1.router import api_router
from taskhub.middleware.security import SecurityHeadersMiddleware
from taskhub.middleware.logging import LoggingMiddleware
from taskhub.services.bootstrap import ensure_authorization_catalog

# Setup structured logging
setup_logging()
logger = structlog.get_logger()

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting TaskHub API Service", version=VERSION)

    await init_database()

    # Seed permission catalog and system roles (idempotent)
    if settings.BOOTSTRAP_ON_STARTUP:
        async with AsyncSessionLocal() as session:
            await ensure_authorization_catalog(session)

    yield

    logger.info("Shutting down TaskHub API Service")
    await cache.close()
    await close_database()


# Create FastAPI application
app = FastAPI(
    title="TaskHub API",
    description="Multi-tenant project and task management API",
    version=VERSION,
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None,
    lifespan=lifespan
)

# ==========================================
# CORS Middleware - MUST be added FIRST
# ==========================================
cors_origins = settings.cors_origins
if settings.ENVIRONMENT == "development":
    for origin in ("http://localhost:3000", "http://localhost:5173", "http://127.0.0.1:5173"):
        if origin not in cors_origins:
            cors_origins.append(origin)

logger.info("Configuring CORS", environment=settings.ENVIRONMENT, origins=cors_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Authorization",
        "Content-Type",
        "Accept",
        "X-Requested-With",
        "X-Request-ID",
        "Origin",
    ],
    expose_headers=["X-Request-ID"],
    max_age=600,
)

# ==========================================
# Security Middlewares (after CORS)
# ==========================================
app.add_middleware(SecurityHeadersMiddleware)

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# Add trusted host middleware for production
if settings.ENVIRONMENT == "production":
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=settings.allowed_hosts
    )

# Include API router
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint for Docker and load balancers"""
    database_ok = await check_database_health()
    cache_ok = await cache.ping()

    # The cache is optional; only the database decides readiness
    content = {
        "status": "healthy" if database_ok else "unhealthy",
        "service": "taskhub-api",
        "version": VERSION,
        "timestamp": time.time(),
        "database": "connected" if database_ok else "unavailable",
        "cache": {None: "disabled", True: "connected", False: "unavailable"}[cache_ok],
    }
    return JSONResponse(status_code=200 if database_ok else 503, content=content)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "TaskHub API Service",
        "version": VERSION,
        "docs": "/docs" if settings.ENVIRONMENT == "development" else "disabled",
        "health": "/health"
    }


@app.exception_handler(TaskHubError)
async def taskhub_exception_handler(request: Request, exc: TaskHubError):
    """Render domain errors as {"error": code, "message": message}"""
    headers = None

    if isinstance(exc, InvalidTokenError):
        # The failure reason stays in the server log
        logger.warning(
            "Credential rejected",
            path=request.url.path,
            reason=getattr(exc, "reason", "invalid"),
        )
        code, message = InvalidTokenError.code, InvalidTokenError.default_message
        headers = {"WWW-Authenticate": "Bearer"}
    else:
        code, message = exc.code, exc.message
        if isinstance(exc, UnauthenticatedError):
            headers = {"WWW-Authenticate": "Bearer"}

    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=code, message=exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": code, "message": message},
        headers=headers,
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "taskhub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower()
    )

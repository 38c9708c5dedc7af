"""
Elder Mood Mirror - Main FastAPI Application
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .api import auth_router, profile_router, mood_router, reports_router, messages_router
from .core.completion import KeyedLocks
from .core.errors import MoodMirrorError, ValidationError
from .core.logging_config import setup_logging
from .middleware import RequestLoggingMiddleware
from .storage import create_kv_store, init_kv_store

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    setup_logging(settings)

    init_kv_store(create_kv_store(settings.storage_type, settings.local_storage_path))
    logger.info(f"Key-value store initialized: {settings.storage_type}")

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Storage path: {settings.local_storage_path}")
    logger.info(f"Email delivery: {'enabled' if settings.resend_api_key else 'not configured'}")
    logger.info(f"Debug mode: {settings.debug}")
    yield
    # Shutdown
    logger.info(f"Shutting down {settings.app_name}")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Daily mood check-ins for elders with weekly reports for their guardians",
    lifespan=lifespan
)

# Per-key locks for completion merges and conversation appends
app.state.record_locks = KeyedLocks()

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware (after CORS)
if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(MoodMirrorError)
async def mood_mirror_error_handler(request: Request, exc: MoodMirrorError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_response(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}"
        for err in exc.errors()
    )
    error = ValidationError(f"Invalid request: {problems}")
    return JSONResponse(status_code=error.status_code, content=error.to_response())


# Include routers
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(mood_router)
app.include_router(reports_router)
app.include_router(messages_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "message": "Welcome to Elder Mood Mirror"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "storage": settings.storage_type,
        "version": settings.app_version
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "moodmirror.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )

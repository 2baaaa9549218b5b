"""
app/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Registers API routes and exception handlers
- No business logic should be written here
- Manages application lifecycle (startup/shutdown)
"""

from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager, suppress
from datetime import datetime, timezone
import asyncio
import time

from app.core.config import settings, validate_settings
from app.core.errors import add_exception_handlers
from app.core.logging import setup_logging, get_logger
from app.schemas.verification import HealthResponse
from app.services.verification_service import (
    VerificationService,
    get_verification_service,
    close_verification_service,
)
from app.api import verification

APP_VERSION = "1.0.0"

# Initialize logging first
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"🚀 Starting {settings.SERVICE_NAME}...")
    sweeper = None

    try:
        logger.info("Validating configuration...")
        validate_settings()
        logger.info("✅ Configuration validated")

        service = get_verification_service()
        health = service.health()
        if health["sender_configured"]:
            logger.info("✅ SMS sender: CONFIGURED")
        else:
            logger.warning("⚠️ SMS sender: DEMO MODE (codes are logged, not sent)")

        if settings.RATE_LIMIT_SWEEP_INTERVAL_SECONDS > 0:
            sweeper = asyncio.create_task(
                service.rate_limiter.run_sweeper(
                    settings.RATE_LIMIT_SWEEP_INTERVAL_SECONDS,
                    settings.RATE_LIMIT_RETENTION_WINDOWS,
                )
            )

        logger.info(f"🎉 {settings.SERVICE_NAME} started successfully!")
        logger.info(f"Environment: {settings.ENVIRONMENT}")
        logger.info(f"Debug Mode: {settings.DEBUG}")

    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        raise

    yield  # Application runs here

    # Shutdown
    logger.info(f"🛑 Shutting down {settings.SERVICE_NAME}...")

    try:
        if sweeper is not None:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper

        await close_verification_service()
        logger.info("👋 Shut down successfully")

    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}", exc_info=True)


app = FastAPI(
    title=settings.SERVICE_NAME,
    description="Issues and verifies one-time SMS codes",
    version=APP_VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/docs" if settings.is_development else None,  # Disable docs in production
    redoc_url="/redoc" if settings.is_development else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time header to all responses."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    # Log slow requests
    if process_time > 5.0:
        logger.warning(
            f"Slow request detected: {request.method} {request.url.path}",
            extra={"process_time": process_time}
        )

    return response


add_exception_handlers(app)

app.include_router(verification.router, prefix=settings.API_PREFIX, tags=["Verification"])


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic info."""
    return {
        "name": settings.SERVICE_NAME,
        "version": APP_VERSION,
        "status": "running",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health", tags=["Health"], response_model=HealthResponse)
async def health_check(service: VerificationService = Depends(get_verification_service)):
    """
    Health check endpoint.
    Reports whether a real SMS provider is configured.
    """
    health = service.health()

    return HealthResponse(
        status=health["status"],
        timestamp=datetime.now(timezone.utc).isoformat(),
        service=settings.SERVICE_NAME,
        version=APP_VERSION,
        sender=health["sender"],
        sender_configured=health["sender_configured"],
    )


# Liveness probe (for Kubernetes/orchestration)
@app.get("/live", tags=["Health"])
async def liveness_check():
    """
    Liveness probe - indicates if app is alive.
    """
    return {"status": "alive"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )

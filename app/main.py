"""Sayarti messaging backend main application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.conversations import router as conversations_router
from app.api.health import router as health_router
from app.api.notifications import router as notifications_router
from app.core.config import settings
from app.core.exceptions import AppError
from app.core.logging import (
    get_logger,
    log_shutdown_info,
    log_startup_info,
    setup_logging,
)
from app.core.realtime import PresenceRegistry, RealtimeDispatcher
from app.ws_gateway import router as ws_router

# Initialize logging first
setup_logging(level_override=settings.LOG_LEVEL)

# Get logger after setup
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    log_startup_info(settings)
    presence = PresenceRegistry()
    await presence.start()
    app.state.presence = presence
    app.state.dispatcher = RealtimeDispatcher(presence)
    logger.info("FastAPI application started successfully")
    yield
    # Shutdown
    logger.info("FastAPI application shutting down")
    online_users = presence.online_count()
    await presence.close()
    log_shutdown_info(settings, online_users)


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Buyer/seller messaging for the car marketplace",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": {"code": "VALIDATION_ERROR", "message": message}},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": {"code": "INTERNAL_ERROR", "message": "Internal server error"}},
    )


# Include routers
app.include_router(conversations_router, prefix=settings.API_V1_STR)
app.include_router(notifications_router, prefix=settings.API_V1_STR)
app.include_router(health_router, tags=["health"])
app.include_router(ws_router)


@app.get("/")
async def root():
    """Root endpoint for health checks."""
    return {"message": "Sayarti messaging backend is running", "status": "healthy"}

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from notenexus.core.config import settings
from notenexus.core.database import close_db, get_session_local, init_db
from notenexus.core.exceptions import NoteNexusError, error_response
from notenexus.core.logging_config import logger
from notenexus.core.middleware import RequestContextMiddleware
from notenexus.core.rate_limiter import limiter, rate_limit_exceeded_handler
from notenexus.core.redis_client import redis_client
from notenexus.api.v1.router import api_router


PLACEHOLDER_SECRETS = {"", "CHANGE_ME", "your-secret-key", "changeme"}


async def validate_critical_config():
    """Validate critical configuration at startup - fail fast if missing"""
    errors = []
    warnings = []

    if not settings.DATABASE_URL:
        errors.append("DATABASE_URL is not set")

    if not settings.REDIS_URL:
        errors.append("REDIS_URL is not set - email verification cannot work")

    if settings.JWT_SECRET_KEY in PLACEHOLDER_SECRETS:
        errors.append("JWT_SECRET_KEY is not set or using default value")

    if not (settings.SMTP_USER and settings.SMTP_PASSWORD):
        warnings.append("SMTP credentials not set - OTP emails will fail")

    if settings.is_s3_storage() and not settings.S3_BUCKET_NAME:
        errors.append("STORAGE_MODE is s3 but S3_BUCKET_NAME is not set")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info("[Startup] ✓ Critical configuration validated")
    return True


async def ensure_database_ready():
    """Ensure database tables exist"""
    session_factory = get_session_local()
    async with session_factory() as session:
        try:
            await session.execute(text("SELECT 1 FROM users LIMIT 1"))
            logger.info("[Startup] Database tables already exist")
            return True
        except SQLAlchemyError:
            logger.warning("[Startup] Database tables not found, creating...")

    await init_db()
    logger.info("[Startup] Database tables created successfully")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"API Version: {settings.API_VERSION}")
    logger.info("=" * 60)

    await validate_critical_config()
    await ensure_database_ready()
    await redis_client.connect()

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    await redis_client.disconnect()
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description="Share, moderate and discover study notes, tips and files",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False  # Prevent 307 redirects that break CORS
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Middleware (order matters - last added runs first)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# Exception handlers
@app.exception_handler(NoteNexusError)
async def notenexus_exception_handler(request: Request, exc: NoteNexusError):
    if exc.status_code >= 500:
        logger.log_error_with_context(exc, context=f"{request.method} {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=error_response(exc))


def _format_validation_errors(exc: RequestValidationError) -> list:
    formatted = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form")]
        formatted.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    return formatted


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = _format_validation_errors(exc)
    message = errors[0]["message"] if len(errors) == 1 else "Request validation failed"
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": {"code": "VALIDATION_ERROR", "message": message, "details": {"errors": errors}},
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.log_error_with_context(exc, context=f"{request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {
                "code": "INTERNAL_ERROR",
                "message": str(exc) if settings.DEBUG else "An error occurred",
                "details": {},
            },
        },
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")

if not settings.is_s3_storage():
    # Local uploads are served straight from disk
    app.mount(
        settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=str(settings.UPLOAD_DIR), check_dir=False),
        name="uploads",
    )
